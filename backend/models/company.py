from mongoengine import BooleanField, DateTimeField, Document, StringField

from models.bill import utcnow


class Company(Document):
    name = StringField(required=True, unique=True)
    email = StringField(required=True, unique=True)
    contact_person_name = StringField(required=True)
    contact_person_phone = StringField(required=True)
    address = StringField(null=True, default=None)

    is_active = BooleanField(db_field="isActive", default=True)
    is_payment_delay = BooleanField(db_field="isPaymentDelay", default=False)
    is_deleted = BooleanField(db_field="isDeleted", default=False)
    image = StringField(null=True, default=None)

    electricity_rate = StringField(db_field="electricityRate", null=True, default=None)
    billing_cycle_date = StringField(
        db_field="billingCycleDate", null=True, default=None
    )

    shift_a_from = StringField(db_field="shiftAFrom", null=True, default=None)
    shift_a_to = StringField(db_field="shiftATo", null=True, default=None)
    shift_b_from = StringField(db_field="shiftBFrom", null=True, default=None)
    shift_b_to = StringField(db_field="shiftBTo", null=True, default=None)
    shift_c_from = StringField(db_field="shiftCFrom", null=True, default=None)
    shift_c_to = StringField(db_field="shiftCTo", null=True, default=None)

    created_at = DateTimeField(db_field="createdAt")
    updated_at = DateTimeField(db_field="updatedAt")

    meta = {
        "collection": "companies",
        "indexes": ["is_deleted"],
    }

    # Request keys accepted on update, mapped to model attributes
    UPDATABLE_FIELDS = {
        "name": "name",
        "address": "address",
        "electricityRate": "electricity_rate",
        "billingCycleDate": "billing_cycle_date",
        "shiftAFrom": "shift_a_from",
        "shiftATo": "shift_a_to",
        "shiftBFrom": "shift_b_from",
        "shiftBTo": "shift_b_to",
        "shiftCFrom": "shift_c_from",
        "shiftCTo": "shift_c_to",
        "email": "email",
        "contact_person_name": "contact_person_name",
        "contact_person_phone": "contact_person_phone",
    }

    def clean(self):
        """Called automatically before saving"""
        for attribute in ("name", "email", "contact_person_name", "contact_person_phone"):
            value = getattr(self, attribute)
            if isinstance(value, str):
                setattr(self, attribute, value.strip())

        now = utcnow()
        if not self.created_at:
            self.created_at = now
        self.updated_at = now

    def to_dict(self) -> dict:
        data = {"_id": str(self.id)}
        for key, attribute in self.UPDATABLE_FIELDS.items():
            data[key] = getattr(self, attribute)
        data.update(
            {
                "isActive": self.is_active,
                "isPaymentDelay": self.is_payment_delay,
                "isDeleted": self.is_deleted,
                "image": self.image,
                "createdAt": self.created_at.isoformat() if self.created_at else None,
                "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            }
        )
        return data
