"""
Cost ledger arithmetic.

Pure functions for weighted-average cost, cost of goods sold and pricing.
Monetary results are rounded half-up to two decimal places, once, at the
point of computation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from stockledger.core.entities.inventory import CostEntry, utc_now
from stockledger.core.exceptions import InvalidInputError, InvalidQuantityError

_CENT = Decimal("0.01")


def round_money(value: float) -> float:
    """Round half-up to cents."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def _require_finite(**values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value):
            raise InvalidInputError(f"{name} must be a finite number", **{name: value})


@dataclass(frozen=True)
class WACResult:
    new_wac: float
    new_total_units: int
    new_total_value: float


def compute_new_wac(
    current_stock: int,
    current_wac: float,
    incoming_qty: int,
    incoming_unit_cost: float,
) -> WACResult:
    """
    Blend an incoming lot into the existing cost basis.

    With no stock on hand the incoming unit cost becomes the WAC exactly.
    Otherwise WAC = (cs * cw + q * uc) / (cs + q).

    Raises:
        InvalidQuantityError: current_stock < 0, incoming_qty <= 0 or a
            negative cost.
    """
    _require_finite(current_wac=current_wac, incoming_unit_cost=incoming_unit_cost)
    if current_stock < 0:
        raise InvalidQuantityError(
            "Current stock cannot be negative", current_stock=current_stock
        )
    if incoming_qty <= 0:
        raise InvalidQuantityError(
            "Incoming quantity must be positive", quantity=incoming_qty
        )
    if current_wac < 0 or incoming_unit_cost < 0:
        raise InvalidQuantityError(
            "Costs cannot be negative",
            current_wac=current_wac,
            unit_cost=incoming_unit_cost,
        )

    if current_stock == 0:
        return WACResult(
            new_wac=incoming_unit_cost,
            new_total_units=incoming_qty,
            new_total_value=round_money(incoming_qty * incoming_unit_cost),
        )

    total_value = current_stock * current_wac + incoming_qty * incoming_unit_cost
    total_units = current_stock + incoming_qty
    # Rounding must not step outside the two input costs
    low, high = sorted((current_wac, incoming_unit_cost))
    return WACResult(
        new_wac=min(max(round_money(total_value / total_units), low), high),
        new_total_units=total_units,
        new_total_value=round_money(total_value),
    )


def compute_cogs(qty_sold: int, current_wac: float) -> float:
    """Cost of goods sold at the current WAC."""
    _require_finite(current_wac=current_wac)
    if qty_sold <= 0:
        raise InvalidQuantityError("Quantity sold must be positive", quantity=qty_sold)
    if current_wac < 0:
        raise InvalidQuantityError("WAC cannot be negative", current_wac=current_wac)
    return round_money(qty_sold * current_wac)


def recommended_price(wac: float, margin_percent: float = 40.0) -> float:
    """Selling price that yields ``margin_percent`` markup over WAC."""
    _require_finite(wac=wac, margin_percent=margin_percent)
    if wac <= 0:
        raise InvalidInputError("WAC must be greater than 0", wac=wac)
    if margin_percent < 0:
        raise InvalidInputError(
            "Margin percentage cannot be negative", margin_percent=margin_percent
        )
    return round_money(wac * (1 + margin_percent / 100))


def margin_percent(selling_price: float, wac: float) -> float:
    """Gross margin as a percentage of price. Zero when either input is <= 0."""
    if selling_price <= 0 or wac <= 0:
        return 0.0
    return round_money((selling_price - wac) / selling_price * 100)


def is_profitable(selling_price: float, wac: float, minimum_margin: float = 0.0) -> bool:
    return margin_percent(selling_price, wac) >= minimum_margin


@dataclass(frozen=True)
class PricingRecommendation:
    recommended_price: float
    minimum_price: float
    current_margin: float
    recommended_margin: float
    profit_per_unit: float


def pricing_recommendation(
    wac: float, selling_price: float, target_margin: float = 40.0
) -> PricingRecommendation:
    """Compare the current price against the target-margin price."""
    price = recommended_price(wac, target_margin)
    return PricingRecommendation(
        recommended_price=price,
        minimum_price=round_money(wac),
        current_margin=margin_percent(selling_price, wac),
        recommended_margin=target_margin,
        profit_per_unit=round_money(selling_price - wac),
    )


def create_cost_entry(
    quantity: int,
    unit_cost: float,
    running_average: float,
    supplier_id: str | None = None,
    invoice_reference: str | None = None,
    date: datetime | None = None,
) -> CostEntry:
    """Build the cost-history record for a received lot."""
    return CostEntry(
        date=date or utc_now(),
        quantity=quantity,
        unit_cost=round_money(unit_cost),
        total_cost=round_money(quantity * unit_cost),
        running_average=round_money(running_average),
        supplier_id=supplier_id,
        invoice_reference=invoice_reference,
    )
