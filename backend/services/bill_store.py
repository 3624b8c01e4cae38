from datetime import datetime
from functools import wraps
from typing import Any, Dict, List, Optional

from bson import ObjectId
from loguru import logger
from mongoengine import ValidationError
from pymongo.errors import PyMongoError

from exceptions.exceptions import InvalidArgumentError, StoreFailureError
from models.bill import Bill


def store_call(f):
    """Translate driver failures into StoreFailureError at the store boundary."""

    @wraps(f)
    def wrapper(self, *args, **kwargs):
        try:
            return f(self, *args, **kwargs)
        except PyMongoError as e:
            logger.error(f"Bill store {f.__name__} failed: {type(e).__name__}: {e}")
            raise StoreFailureError(f"Bill store unavailable: {e}") from e

    return wrapper


class BillStore:
    """
    Handle over the bills collection.

    Every core operation receives one of these explicitly, so the period and
    aggregation logic never reaches for a module-level client.
    """

    def __init__(self, query_timeout_ms: int = 5000):
        self.query_timeout_ms = query_timeout_ms

    @store_call
    def find_for_period(
        self, company_id: str, period_clauses: List[Dict[str, Any]]
    ) -> Optional[Bill]:
        """Most recently created bill of the company matching any clause."""
        query = {"company": ObjectId(company_id), "$or": period_clauses}
        return (
            Bill.objects(__raw__=query)
            .order_by("-created_at", "-id")
            .max_time_ms(self.query_timeout_ms)
            .first()
        )

    @store_call
    def list_for_company(
        self,
        company_id: str,
        skip: int = 0,
        limit: int = 50,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Bill]:
        queryset = self._company_queryset(company_id, start_date, end_date)
        return list(
            queryset.order_by("-created_at", "-id")
            .skip(skip)
            .limit(limit)
            .max_time_ms(self.query_timeout_ms)
        )

    @store_call
    def count_for_company(
        self,
        company_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> int:
        return self._company_queryset(company_id, start_date, end_date).count()

    @store_call
    def get(self, company_id: str, bill_id: str) -> Optional[Bill]:
        return (
            Bill.objects(id=bill_id, company=ObjectId(company_id))
            .max_time_ms(self.query_timeout_ms)
            .first()
        )

    @store_call
    def save(self, bill: Bill) -> Bill:
        try:
            return bill.save()
        except ValidationError as e:
            raise InvalidArgumentError(str(e)) from e

    @store_call
    def delete(self, company_id: str, bill_id: str) -> Optional[Bill]:
        bill = Bill.objects(id=bill_id, company=ObjectId(company_id)).first()
        if bill is not None:
            bill.delete()
        return bill

    @store_call
    def json_keys_for_company(self, company_id: str) -> List[str]:
        """Distinct top-level jsonObj keys across the company's bills."""
        keys = set()
        documents = (
            Bill.objects(company=ObjectId(company_id))
            .only("json_obj")
            .max_time_ms(self.query_timeout_ms)
            .as_pymongo()
        )
        for document in documents:
            json_obj = document.get("jsonObj")
            if isinstance(json_obj, dict):
                keys.update(json_obj.keys())
        return sorted(keys)

    def _company_queryset(self, company_id, start_date, end_date):
        filters = {"company": ObjectId(company_id)}
        if start_date is not None:
            filters["created_at__gte"] = start_date
        if end_date is not None:
            filters["created_at__lte"] = end_date
        return Bill.objects(**filters)
