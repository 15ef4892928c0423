"""Valuation and variance report endpoints."""

from datetime import datetime, timedelta

from fastapi import APIRouter, Depends

from stockledger.api.dependencies import get_valuation_svc
from stockledger.application.dto.requests import PeriodComparisonRequest
from stockledger.application.dto.responses import ErrorResponse
from stockledger.core.entities.inventory import utc_now
from stockledger.core.entities.valuation import (
    InventoryValuationReport,
    MovementAnalysis,
    PeriodComparison,
    VarianceAnalysis,
)
from stockledger.core.services import ValuationService
from stockledger.core.services.valuation import default_periods

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get(
    "/valuation",
    response_model=InventoryValuationReport,
    responses={400: {"model": ErrorResponse}},
)
async def get_valuation(
    start: datetime | None = None,
    end: datetime | None = None,
    service: ValuationService = Depends(get_valuation_svc),
) -> InventoryValuationReport:
    """
    Inventory value per product and category.

    Sales figures use sale transactions between ``start`` and ``end``.
    """
    return await service.get_inventory_valuation(start=start, end=end)


@router.get(
    "/variance",
    response_model=list[VarianceAnalysis],
    responses={400: {"model": ErrorResponse}},
)
async def get_variance(
    current: datetime | None = None,
    previous: datetime | None = None,
    service: ValuationService = Depends(get_valuation_svc),
) -> list[VarianceAnalysis]:
    """WAC change per product; defaults to the last 30 days."""
    current = current or utc_now()
    previous = previous or current - timedelta(days=30)
    return await service.get_variance_analysis(current, previous)


@router.get("/movement", response_model=MovementAnalysis)
async def get_movement(
    service: ValuationService = Depends(get_valuation_svc),
) -> MovementAnalysis:
    return await service.get_movement_analysis()


@router.get("/periods", response_model=PeriodComparison)
async def get_default_periods(
    months: int = 3,
    service: ValuationService = Depends(get_valuation_svc),
) -> PeriodComparison:
    """Inventory value now and at 30-day steps back."""
    return await service.get_period_comparison(default_periods(months=months))


@router.post(
    "/periods",
    response_model=PeriodComparison,
    responses={400: {"model": ErrorResponse}},
)
async def compare_periods(
    request: PeriodComparisonRequest,
    service: ValuationService = Depends(get_valuation_svc),
) -> PeriodComparison:
    return await service.get_period_comparison(
        [(p.label, p.as_of) for p in request.periods]
    )
