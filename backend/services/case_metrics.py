"""
Fixed metric views ("cases") computed from a bill's parsed line items.

Every case always yields its full field set. Missing or malformed values, and
a missing bill, come through as None rather than as errors.
"""

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from bson.decimal128 import Decimal128

from exceptions.exceptions import InvalidArgumentError
from models.bill import Bill

# Leading numeric prefix, as a lenient float parse reads "0.97 lag" as 0.97
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_CASE_ID = re.compile(r"[0-9]+")


def try_parse_number(value: Any) -> Optional[float]:
    """
    Interpret a raw line-item value as a float.

    Numbers and numeric strings parse; booleans, containers, blank or
    non-numeric strings, NaN and infinities return None.
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, Decimal128):
            number = float(value.to_decimal())
        elif isinstance(value, (int, float, Decimal)):
            number = float(value)
        elif isinstance(value, str):
            match = _LEADING_NUMBER.match(value.strip())
            if not match:
                return None
            number = float(match.group(0))
        else:
            return None
    except (OverflowError, ValueError):
        return None

    return number if math.isfinite(number) else None


def _ratio(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    if numerator is None or not denominator:
        return None
    return numerator / denominator


def _paise_to_rupees(units: Optional[float], rate_psu: Optional[float]) -> Optional[float]:
    if units is None or rate_psu is None:
        return None
    return (units * rate_psu) / 100


@dataclass(frozen=True)
class CaseDefinition:
    """
    One metric view.

    reads maps an output field to the line-item keys tried in order; derived
    maps an output field to a function of the values read. output_fields fixes
    the response shape.
    """

    case_id: int
    name: str
    output_fields: Tuple[str, ...]
    reads: Dict[str, Tuple[str, ...]]
    derived: Dict[str, Callable[[Dict[str, Optional[float]]], Optional[float]]] = field(
        default_factory=dict
    )


CASES: Dict[int, CaseDefinition] = {
    1: CaseDefinition(
        case_id=1,
        name="power_factor",
        output_fields=("billed_pf",),
        reads={"billed_pf": ("billed_pf",)},
    ),
    2: CaseDefinition(
        case_id=2,
        name="consumption_trend",
        output_fields=("energy_charges", "consumption_rate", "total_units", "derived_units"),
        reads={
            "energy_charges": ("energy_charges",),
            "consumption_rate": ("total_consumption_rate_per_units",),
            "total_units": ("total_consumption_units",),
        },
        derived={
            # kWh approximated from charges and the per-unit rate
            "derived_units": lambda v: _ratio(v["energy_charges"], v["consumption_rate"]),
        },
    ),
    3: CaseDefinition(
        case_id=3,
        name="incentives",
        output_fields=("bcr", "icr", "excess_demand", "total_amount"),
        reads={
            "bcr": ("bulk_consumption_rebate",),
            "icr": ("incremental_consumption_rebate",),
            "excess_demand": ("charges_for_excess_demand",),
            "total_amount": ("total_bill_amount_rounded", "total_current_bill"),
        },
    ),
    4: CaseDefinition(
        case_id=4,
        name="demand_details",
        output_fields=(
            "contract_demand",
            "recorded_demand",
            "billed_demand",
            "seventy_five_contract_demand",
        ),
        reads={
            "contract_demand": ("contract_demand_kva",),
            "recorded_demand": ("recorder_max_demand",),
            "billed_demand": ("billed_demand_kva",),
            "seventy_five_contract_demand": ("demand_75pct_kva",),
        },
    ),
    5: CaseDefinition(
        case_id=5,
        name="bill_components",
        output_fields=(
            "energy_charges",
            "wheeling_charges",
            "demand_charges",
            "electricity_duty",
            "tax_on_sale",
            "total_units",
            "tax_rate_psu",
        ),
        reads={
            "energy_charges": ("energy_charges",),
            "wheeling_charges": ("wheeling_charge",),
            "demand_charges": ("demand_charges",),
            "electricity_duty": ("electricity_duty",),
            "total_units": ("total_consumption_units",),
            "tax_rate_psu": ("tax_on_sale_rate_psu",),
        },
        derived={
            # tax_on_sale_rate_psu is paise per unit
            "tax_on_sale": lambda v: _paise_to_rupees(v["total_units"], v["tax_rate_psu"]),
        },
    ),
    6: CaseDefinition(
        case_id=6,
        name="total_summary",
        output_fields=("total_bill_amount_rounded", "total_consumption_units"),
        reads={
            "total_bill_amount_rounded": ("total_bill_amount_rounded",),
            "total_consumption_units": ("total_consumption_units",),
        },
    ),
}

VALID_CASE_IDS = tuple(sorted(CASES))


def parse_case_id(raw: Any) -> int:
    """Validate a case id from a path parameter or caller."""
    case_id = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        case_id = raw
    elif isinstance(raw, str) and _CASE_ID.fullmatch(raw.strip()):
        case_id = int(raw.strip())

    if case_id not in CASES:
        raise InvalidArgumentError(
            f"Invalid caseId. Use {VALID_CASE_IDS[0]}-{VALID_CASE_IDS[-1]}."
        )
    return case_id


def bill_fields(bill: Optional[Bill]) -> Mapping:
    """The parsed line items of a bill, or an empty mapping."""
    if bill is None:
        return {}
    json_obj = bill.json_obj
    if not isinstance(json_obj, Mapping):
        return {}
    fields = json_obj.get("fields")
    return fields if isinstance(fields, Mapping) else {}


def extract_case(fields: Mapping, case_id: int) -> Dict[str, Optional[float]]:
    """
    Metric record for `case_id` from a bill's line items (see bill_fields).

    Raises InvalidArgumentError for an unknown case id.
    """
    definition = CASES.get(parse_case_id(case_id))

    values: Dict[str, Optional[float]] = {}
    for output, sources in definition.reads.items():
        values[output] = next(
            (
                number
                for number in (try_parse_number(fields.get(source)) for source in sources)
                if number is not None
            ),
            None,
        )
    for output, derive in definition.derived.items():
        values[output] = derive(values)

    return {output: values.get(output) for output in definition.output_fields}
