from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Dict, List, Optional

from loguru import logger

from exceptions.exceptions import StoreFailureError
from services.case_metrics import bill_fields, extract_case, parse_case_id
from services.period_resolver import resolve_period

MONTH_LABELS = (
    "JAN",
    "FEB",
    "MAR",
    "APR",
    "MAY",
    "JUN",
    "JUL",
    "AUG",
    "SEP",
    "OCT",
    "NOV",
    "DEC",
)


def _month_record(store, company_id: str, year: int, month: int, case_id: int) -> Dict:
    bill = resolve_period(store, company_id, year, month)
    return {"month": MONTH_LABELS[month - 1], **extract_case(bill_fields(bill), case_id)}


def aggregate_year(
    store,
    company_id: str,
    year: int,
    case_id: int,
    max_workers: int = 4,
    timeout: Optional[float] = None,
) -> List[Dict]:
    """
    Case metrics for every month of `year`, January first.

    Months are resolved concurrently on a bounded pool and placed back by
    month index. A month without a bill gives a null-filled record; a store
    failure or a timeout on any month aborts the whole year with
    StoreFailureError.

    Args:
        store: Bill store handle
        company_id: Company whose bills are read
        year: Calendar year
        case_id: Metric view, 1-6
        max_workers: Upper bound on concurrent month lookups
        timeout: Seconds to wait for all months, None to wait indefinitely

    Returns:
        Twelve records labelled JAN..DEC
    """
    case_id = parse_case_id(case_id)
    records: List[Optional[Dict]] = [None] * len(MONTH_LABELS)

    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="yearly_case")
    try:
        futures = {
            executor.submit(_month_record, store, company_id, year, month, case_id): month
            for month in range(1, len(MONTH_LABELS) + 1)
        }
        done, pending = wait(futures, timeout=timeout, return_when=FIRST_EXCEPTION)

        for future in done:
            error = future.exception()
            if error is not None:
                logger.error(
                    f"Yearly case {case_id} for company {company_id} in {year} failed "
                    f"at month {futures[future]}: {error}"
                )
                raise error

        if pending:
            logger.error(
                f"Yearly case {case_id} for company {company_id} in {year} timed out "
                f"after {timeout}s with {len(pending)} months unresolved"
            )
            raise StoreFailureError(
                f"Timed out resolving bills for company {company_id} in {year}"
            )

        for future, month in futures.items():
            records[month - 1] = future.result()
    finally:
        # Lookups still running finish in the background; queued months never start
        executor.shutdown(wait=False, cancel_futures=True)

    months_with_data = sum(
        1
        for record in records
        if any(value is not None for key, value in record.items() if key != "month")
    )
    logger.info(
        f"Aggregated case {case_id} for company {company_id} in {year}: "
        f"{months_with_data}/12 months with data"
    )
    return records
