"""
Locate the bill a company holds for a calendar month.

Bills were ingested over several parser generations and each one recorded the
billing period under a different key. The candidates below are tried as one
disjunctive query; creation time is the last resort and can match a bill that
was merely entered during the month.
"""

from datetime import datetime
from numbers import Number
from typing import Any, Dict, List, Mapping, Optional, Tuple

from loguru import logger

from models.bill import Bill

# (year path, month path), in order of specificity
PERIOD_FIELD_CANDIDATES: Tuple[Tuple[str, str], ...] = (
    ("jsonObj.year", "jsonObj.month"),
    ("jsonObj.billingPeriod.year", "jsonObj.billingPeriod.month"),
    ("jsonObj.billing_period.year", "jsonObj.billing_period.month"),
    ("jsonObj.bill_year", "jsonObj.bill_month"),
    ("jsonObj.fields.bill_year", "jsonObj.fields.bill_month"),
    ("jsonObj.fields.year", "jsonObj.fields.month"),
    ("jsonObj.billing_year", "jsonObj.billing_month"),
    ("jsonObj.period_year", "jsonObj.period_month"),
    ("meta.year", "meta.month"),
    ("meta.bill_year", "meta.bill_month"),
)

CREATED_AT_PATH = "createdAt"

_MISSING = object()


def month_bounds(year: int, month: int) -> Optional[Tuple[datetime, datetime]]:
    """
    Half-open UTC interval [first day of month, first day of next month).

    Returns None when the month cannot be represented as a datetime; the end
    bound saturates at datetime.max for December of the last representable year.
    """
    try:
        start = datetime(year, month, 1)
    except (ValueError, OverflowError):
        return None
    try:
        end = datetime(year + month // 12, month % 12 + 1, 1)
    except (ValueError, OverflowError):
        end = datetime.max
    return start, end


def build_period_clauses(year: int, month: int) -> List[Dict[str, Any]]:
    clauses = [
        {year_path: year, month_path: month}
        for year_path, month_path in PERIOD_FIELD_CANDIDATES
    ]
    bounds = month_bounds(year, month)
    if bounds is not None:
        start, end = bounds
        clauses.append({CREATED_AT_PATH: {"$gte": start, "$lt": end}})
    return clauses


def resolve_period(store, company_id: str, year: int, month: int) -> Optional[Bill]:
    """
    Find the bill of `company_id` for (year, month), or None.

    Callers validate month to 1..12 beforehand. When several bills match, the
    most recently created one is returned. Store failures raise
    StoreFailureError from the store handle.
    """
    bill = store.find_for_period(company_id, build_period_clauses(year, month))
    if bill is None:
        logger.debug(f"No bill for company {company_id} in {year}-{month:02d}")
        return None

    logger.opt(lazy=True).debug(
        f"Resolved bill {bill.id} for company {company_id} in {year}-{month:02d} via {{shape}}",
        shape=lambda: matched_period_shape(bill.to_mongo().to_dict(), year, month),
    )
    return bill


def _lookup(tree: Any, path: str) -> Any:
    node = tree
    for key in path.split("."):
        if not isinstance(node, Mapping) or key not in node:
            return _MISSING
        node = node[key]
    return node


def _equals(value: Any, expected: int) -> bool:
    # Mirrors store equality: numbers compare by value, strings and bools never match
    return (
        isinstance(value, Number)
        and not isinstance(value, bool)
        and value == expected
    )


def matched_period_shape(document: Mapping, year: int, month: int) -> Optional[str]:
    """
    Label of the first candidate the raw document satisfies.

    Evaluated against the stored document tree in candidate order, falling
    back to the creation-time interval. None when nothing matches.
    """
    for year_path, month_path in PERIOD_FIELD_CANDIDATES:
        if _equals(_lookup(document, year_path), year) and _equals(
            _lookup(document, month_path), month
        ):
            return f"{year_path}/{month_path}"

    created_at = _lookup(document, CREATED_AT_PATH)
    bounds = month_bounds(year, month)
    if isinstance(created_at, datetime) and bounds is not None:
        start, end = bounds
        if start <= created_at.replace(tzinfo=None) < end:
            return CREATED_AT_PATH
    return None
