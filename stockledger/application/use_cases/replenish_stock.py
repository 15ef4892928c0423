"""Replenish Stock Use Case: purchase receipt with WAC recalculation."""

from stockledger.application.dto.requests import ReplenishStockRequest
from stockledger.application.dto.responses import StockMovementResponse
from stockledger.application.use_cases.converters import movement_to_response
from stockledger.config import get_logger
from stockledger.core.services.stock_movement import (
    StockMovementResult,
    StockMovementService,
)

logger = get_logger(__name__)


class ReplenishStockUseCase:
    """Receive purchased units into stock."""

    def __init__(self, movement_service: StockMovementService | None = None):
        self._movement_service = movement_service

    async def _get_movement_service(self) -> StockMovementService:
        if self._movement_service is None:
            from stockledger.application.services import get_stock_movement_service

            self._movement_service = await get_stock_movement_service()
        return self._movement_service

    async def execute(self, request: ReplenishStockRequest) -> StockMovementResult:
        logger.info(
            "replenish_stock_requested",
            product_id=request.product_id,
            quantity=request.quantity,
            unit_cost=request.unit_cost,
            actor=request.actor_id,
        )
        service = await self._get_movement_service()
        return await service.replenish(
            request.product_id,
            request.quantity,
            request.unit_cost,
            request.actor_id,
            supplier_id=request.supplier_id,
            invoice_reference=request.invoice_reference,
            notes=request.notes,
        )

    def to_response(self, result: StockMovementResult) -> StockMovementResponse:
        return movement_to_response(result)
