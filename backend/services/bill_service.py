import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from loguru import logger

from auth.utils import CurrentUser, is_authorized_for_company
from exceptions.exceptions import (
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from models.bill import Bill
from models.company import Company
from services.bill_store import BillStore, store_call
from services.case_metrics import bill_fields, extract_case, parse_case_id
from services.period_resolver import resolve_period
from services.yearly_aggregator import aggregate_year

_INTEGER = re.compile(r"[+-]?[0-9]+")
_BSON_INT_LIMIT = 2**63


def parse_year(raw: Any) -> int:
    """Any integer the store can hold is a valid year."""
    year = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        year = raw
    elif isinstance(raw, str) and _INTEGER.fullmatch(raw.strip()):
        year = int(raw.strip())

    if year is None or not -_BSON_INT_LIMIT <= year < _BSON_INT_LIMIT:
        raise InvalidArgumentError("Invalid year or month")
    return year


def parse_month(raw: Any) -> int:
    month = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        month = raw
    elif isinstance(raw, str) and _INTEGER.fullmatch(raw.strip()):
        month = int(raw.strip())

    if month is None or not 1 <= month <= 12:
        raise InvalidArgumentError("Invalid year or month")
    return month


def parse_object_id(raw: Any, name: str) -> str:
    if not ObjectId.is_valid(raw):
        raise InvalidArgumentError(f"Invalid {name}")
    return str(raw)


def parse_datetime(raw: Any, name: str) -> Optional[datetime]:
    """ISO-8601 string to naive UTC, None passes through."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        parsed = raw
    else:
        try:
            parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
        except ValueError:
            raise InvalidArgumentError(f"Invalid {name}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _positive_int(raw: Any, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


class BillService:
    """
    Service for bill records and the metric views derived from them.

    Company-scoped operations take the authenticated caller and enforce company
    ownership; the open period endpoints take no caller.
    """

    DEFAULT_PAGE = 1
    DEFAULT_LIMIT = 50
    PAYMENT_FIELDS = {
        "paymentStatus": "payment_status",
        "paid": "paid",
        "paymentDate": "payment_date",
        "amount": "amount",
        "meta": "bill_meta",
    }

    def __init__(
        self,
        store: BillStore,
        yearly_workers: int = 4,
        yearly_timeout: Optional[float] = None,
    ):
        """
        Args:
            store: Handle over the bills collection
            yearly_workers: Concurrent month lookups for yearly views
            yearly_timeout: Seconds allowed for a whole yearly view
        """
        self._store = store
        self._yearly_workers = yearly_workers
        self._yearly_timeout = yearly_timeout

    def _ensure_company_access(self, user: CurrentUser, company_id: str) -> str:
        if not is_authorized_for_company(user, company_id):
            logger.warning(
                f"User {getattr(user, 'id', None)} denied access to company {company_id}"
            )
            raise ForbiddenError("Forbidden")
        return parse_object_id(company_id, "companyId")

    @store_call
    def _get_company(self, company_id: str) -> Company:
        company = Company.objects(id=company_id).first()
        if not company:
            raise NotFoundError("Company not found")
        return company

    def _get_company_bill(self, company_id: str, bill_id: str) -> Bill:
        bill_id = parse_object_id(bill_id, "billId")
        bill = self._store.get(company_id, bill_id)
        if not bill:
            raise NotFoundError("Bill not found for this company")
        return bill

    def get_historical_bills(
        self,
        user: CurrentUser,
        company_id: str,
        page: Any = None,
        limit: Any = None,
        start_date: Any = None,
        end_date: Any = None,
    ) -> Dict:
        company_id = self._ensure_company_access(user, company_id)
        page = _positive_int(page, self.DEFAULT_PAGE)
        limit = _positive_int(limit, self.DEFAULT_LIMIT)
        start = parse_datetime(start_date, "startDate")
        end = parse_datetime(end_date, "endDate")

        bills = self._store.list_for_company(
            company_id, skip=(page - 1) * limit, limit=limit, start_date=start, end_date=end
        )
        total = self._store.count_for_company(company_id, start_date=start, end_date=end)
        return {
            "data": [bill.to_dict() for bill in bills],
            "meta": {"total": total, "page": page, "limit": limit},
        }

    def create_bill(self, user: CurrentUser, company_id: str, payload: Dict) -> Bill:
        company_id = self._ensure_company_access(user, company_id)
        company = self._get_company(company_id)

        json_obj = payload.get("jsonObj")
        if not json_obj:
            raise InvalidArgumentError("jsonObj is required")
        if not isinstance(json_obj, dict):
            raise InvalidArgumentError("jsonObj must be an object")

        bill = Bill(
            company=company,
            json_obj=json_obj,
            payment_status=payload.get("paymentStatus") or "pending",
            amount=payload.get("amount") or None,
            bill_meta=payload.get("meta") or None,
        )
        bill = self._store.save(bill)
        logger.info(f"Created bill {bill.id} for company {company_id}")
        return bill

    def update_bill_payment(
        self, user: CurrentUser, company_id: str, bill_id: str, payload: Dict
    ) -> Bill:
        company_id = self._ensure_company_access(user, company_id)
        bill = self._get_company_bill(company_id, bill_id)

        for key, attribute in self.PAYMENT_FIELDS.items():
            if key not in payload:
                continue
            value = payload[key]
            if key == "paymentDate":
                value = parse_datetime(value, "paymentDate")
            setattr(bill, attribute, value)

        bill = self._store.save(bill)
        logger.info(f"Updated payment details of bill {bill.id}")
        return bill

    def get_bill(self, user: CurrentUser, company_id: str, bill_id: str) -> Bill:
        company_id = self._ensure_company_access(user, company_id)
        return self._get_company_bill(company_id, bill_id)

    def delete_bill(self, user: CurrentUser, company_id: str, bill_id: str) -> str:
        company_id = self._ensure_company_access(user, company_id)
        bill_id = parse_object_id(bill_id, "billId")
        bill = self._store.delete(company_id, bill_id)
        if not bill:
            raise NotFoundError("Bill not found for this company")
        logger.info(f"Deleted bill {bill_id} of company {company_id}")
        return str(bill.id)

    def get_bill_params(self, user: CurrentUser, company_id: str) -> list:
        company_id = self._ensure_company_access(user, company_id)
        return self._store.json_keys_for_company(company_id)

    def get_bill_open(self, company_id: str, year: Any, month: Any) -> Bill:
        year = parse_year(year)
        month = parse_month(month)
        company_id = parse_object_id(company_id, "companyId")

        bill = resolve_period(self._store, company_id, year, month)
        if not bill:
            raise NotFoundError("Bill not found for the specified period")
        return bill

    def get_bill_case_details(
        self, company_id: str, year: Any, month: Any, case_id: Any
    ) -> Dict:
        year = parse_year(year)
        month = parse_month(month)
        case_id = parse_case_id(case_id)
        company_id = parse_object_id(company_id, "companyId")

        bill = resolve_period(self._store, company_id, year, month)
        if not bill:
            raise NotFoundError("Bill not found for the specified period")

        return {
            "companyId": company_id,
            "year": year,
            "month": month,
            "caseId": case_id,
            "data": extract_case(bill_fields(bill), case_id),
        }

    def get_yearly_case_details(self, company_id: str, year: Any, case_id: Any) -> Dict:
        year = parse_year(year)
        case_id = parse_case_id(case_id)
        company_id = parse_object_id(company_id, "companyId")

        data = aggregate_year(
            self._store,
            company_id,
            year,
            case_id,
            max_workers=self._yearly_workers,
            timeout=self._yearly_timeout,
        )
        return {"companyId": company_id, "year": year, "caseId": case_id, "data": data}
