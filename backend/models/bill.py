import json
from datetime import datetime, timezone

from bson import json_util
from mongoengine import (
    BooleanField,
    DateTimeField,
    DictField,
    Document,
    FloatField,
    ReferenceField,
    StringField,
)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form MongoDB hands datetimes back in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_plain_json(value):
    """
    Render a stored value with only JSON-native types.

    Parsed bill payloads may carry BSON types (Decimal128, ObjectId) that the
    response encoder rejects; these come out as relaxed Extended JSON, e.g.
    {"$numberDecimal": "0.97"}.
    """
    if value is None:
        return None
    return json.loads(
        json_util.dumps(value, json_options=json_util.RELAXED_JSON_OPTIONS)
    )


class Bill(Document):
    """
    One billing-period record for a company.

    `json_obj` holds the line items produced by upstream bill parsing and has
    no fixed schema; its period fields changed shape over time (see
    services.period_resolver). Field names on the wire and in the collection
    keep the camelCase used by the rest of the platform.
    """

    company = ReferenceField("Company", required=True)
    json_obj = DictField(db_field="jsonObj", required=True)
    payment_status = StringField(db_field="paymentStatus", default="pending")
    paid = BooleanField(default=False)
    payment_date = DateTimeField(db_field="paymentDate", null=True, default=None)
    amount = FloatField(null=True, default=None)
    bill_meta = DictField(db_field="meta", null=True, default=None)
    created_at = DateTimeField(db_field="createdAt")
    updated_at = DateTimeField(db_field="updatedAt")

    meta = {
        "collection": "bills",
        "indexes": [
            "company",
            ("company", "-created_at"),
        ],
    }

    def clean(self):
        """Called automatically before saving"""
        now = utcnow()
        if not self.created_at:
            self.created_at = now
        self.updated_at = now

    @property
    def company_id(self):
        # Read the stored ObjectId without dereferencing the company
        company = self.to_mongo().get("company")
        return str(company) if company is not None else None

    def to_dict(self) -> dict:
        return {
            "_id": str(self.id),
            "company": self.company_id,
            "jsonObj": to_plain_json(self.json_obj),
            "paymentStatus": self.payment_status,
            "paid": self.paid,
            "paymentDate": self.payment_date.isoformat()
            if self.payment_date
            else None,
            "amount": self.amount,
            "meta": to_plain_json(self.bill_meta),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
