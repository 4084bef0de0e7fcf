from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

_HUNDRED = Decimal("100")


@dataclass(frozen=True, slots=True)
class LinePricing:
    discount_value_per_unit: Decimal
    mrp_total: Decimal
    gst_total: Decimal
    discount_total: Decimal
    total_amount: Decimal


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_line_pricing(
    unit_mrp: Decimal | int | float | str,
    unit_gst: Decimal | int | float | str,
    discount_percent: Decimal | int | float | str,
    quantity: int,
) -> LinePricing:
    """Price one order line.

    GST is a flat monetary amount per unit, not a percentage of the MRP. No rounding is
    applied here; the Money column precision is the only quantization.
    """

    mrp = _to_decimal(unit_mrp)
    gst = _to_decimal(unit_gst)
    discount_value_per_unit = mrp * _to_decimal(discount_percent) / _HUNDRED

    mrp_total = mrp * quantity
    gst_total = gst * quantity
    discount_total = discount_value_per_unit * quantity

    return LinePricing(
        discount_value_per_unit=discount_value_per_unit,
        mrp_total=mrp_total,
        gst_total=gst_total,
        discount_total=discount_total,
        total_amount=mrp_total - discount_total + gst_total,
    )
