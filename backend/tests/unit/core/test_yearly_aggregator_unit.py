import threading
import time
from datetime import datetime

import pytest
from bson import ObjectId

from exceptions.exceptions import InvalidArgumentError, StoreFailureError
from services.bill_store import BillStore
from services.case_metrics import CASES
from services.yearly_aggregator import MONTH_LABELS, aggregate_year
from tests.unit.fixtures.models.bill import create_test_bill


class CountingStore(BillStore):
    """Bill store that records every period lookup."""

    def __init__(self):
        super().__init__(query_timeout_ms=2000)
        self.calls = []
        self._lock = threading.Lock()

    def find_for_period(self, company_id, period_clauses):
        with self._lock:
            self.calls.append(period_clauses[0])
        return super().find_for_period(company_id, period_clauses)


class FailingStore(CountingStore):
    def __init__(self, failing_month):
        super().__init__()
        self.failing_month = failing_month

    def find_for_period(self, company_id, period_clauses):
        if period_clauses[0]["jsonObj.month"] == self.failing_month:
            raise StoreFailureError("Bill store unavailable: connection reset")
        return super().find_for_period(company_id, period_clauses)


class SlowStore(CountingStore):
    def __init__(self, delay=1.0, failing_month=None):
        super().__init__()
        self.delay = delay
        self.failing_month = failing_month

    def find_for_period(self, company_id, period_clauses):
        if period_clauses[0]["jsonObj.month"] == self.failing_month:
            raise StoreFailureError("Bill store unavailable: connection reset")
        time.sleep(self.delay)
        return super().find_for_period(company_id, period_clauses)


@pytest.mark.unit
class TestAggregateYear:
    def test_twelve_records_in_calendar_order(self, bill_store, test_company):
        for month in (11, 2, 7):
            create_test_bill(
                test_company,
                json_obj={
                    "year": 2023,
                    "month": month,
                    "fields": {"billed_pf": str(0.9 + month / 1000)},
                },
                created_at=datetime(2019, 1, 1),
            )

        records = aggregate_year(bill_store, str(test_company.id), 2023, 1, max_workers=3)

        assert [record["month"] for record in records] == list(MONTH_LABELS)
        assert records[1]["billed_pf"] == pytest.approx(0.902)
        assert records[6]["billed_pf"] == pytest.approx(0.907)
        assert records[10]["billed_pf"] == pytest.approx(0.911)
        assert all(
            records[index]["billed_pf"] is None
            for index in range(12)
            if index not in (1, 6, 10)
        )

    @pytest.mark.parametrize("case_id", sorted(CASES))
    def test_months_without_bills_are_null_rows(self, bill_store, case_id):
        records = aggregate_year(bill_store, str(ObjectId()), 2024, case_id)

        assert len(records) == 12
        for label, record in zip(MONTH_LABELS, records):
            assert record == {
                "month": label,
                **{name: None for name in CASES[case_id].output_fields},
            }

    def test_every_month_is_looked_up_once(self, test_company):
        store = CountingStore()

        aggregate_year(store, str(test_company.id), 2024, 6, max_workers=4)

        looked_up = sorted(clause["jsonObj.month"] for clause in store.calls)
        assert looked_up == list(range(1, 13))
        assert all(clause["jsonObj.year"] == 2024 for clause in store.calls)

    def test_creation_time_fallback_per_month(self, bill_store, test_company, march_bill):
        records = aggregate_year(bill_store, str(test_company.id), 2024, 6)

        # Period fields place it in March, creation time places it in April
        assert records[2]["total_bill_amount_rounded"] == 158930.0
        assert records[3]["total_bill_amount_rounded"] == 158930.0
        assert records[4]["total_bill_amount_rounded"] is None

    @pytest.mark.parametrize("case_id", [0, 7, "abc", None])
    def test_invalid_case_touches_no_store(self, case_id):
        store = CountingStore()

        with pytest.raises(InvalidArgumentError):
            aggregate_year(store, str(ObjectId()), 2024, case_id)

        assert store.calls == []

    def test_store_failure_aborts_the_year(self, test_company):
        store = FailingStore(failing_month=5)

        with pytest.raises(StoreFailureError):
            aggregate_year(store, str(test_company.id), 2024, 1, max_workers=2)

    def test_timeout_is_a_store_failure(self, test_company):
        store = SlowStore(delay=1.0)

        started = time.monotonic()
        with pytest.raises(StoreFailureError) as exc_info:
            aggregate_year(
                store, str(test_company.id), 2024, 1, max_workers=4, timeout=0.1
            )
        elapsed = time.monotonic() - started

        assert "Timed out" in str(exc_info.value)
        # Returns at the deadline instead of waiting out running lookups
        assert elapsed < 0.6
        # Queued months were never started
        assert len(store.calls) <= 4

    def test_failure_does_not_wait_for_running_months(self, test_company):
        store = SlowStore(delay=1.0, failing_month=1)

        started = time.monotonic()
        with pytest.raises(StoreFailureError):
            aggregate_year(store, str(test_company.id), 2024, 1, max_workers=2)
        elapsed = time.monotonic() - started

        assert elapsed < 0.6

    def test_single_worker_gives_same_result(self, bill_store, test_company, march_bill):
        parallel = aggregate_year(bill_store, str(test_company.id), 2024, 5, max_workers=4)
        serial = aggregate_year(bill_store, str(test_company.id), 2024, 5, max_workers=1)
        assert parallel == serial
