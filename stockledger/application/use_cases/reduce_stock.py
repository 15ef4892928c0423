"""Reduce Stock Use Case: sale or outbound adjustment at current WAC."""

from stockledger.application.dto.requests import ReduceStockRequest
from stockledger.application.dto.responses import StockMovementResponse
from stockledger.application.use_cases.converters import movement_to_response
from stockledger.config import get_logger
from stockledger.core.services.stock_movement import (
    StockMovementResult,
    StockMovementService,
)

logger = get_logger(__name__)


class ReduceStockUseCase:
    """Remove units from stock. Rejects anything beyond what is on hand."""

    def __init__(self, movement_service: StockMovementService | None = None):
        self._movement_service = movement_service

    async def _get_movement_service(self) -> StockMovementService:
        if self._movement_service is None:
            from stockledger.application.services import get_stock_movement_service

            self._movement_service = await get_stock_movement_service()
        return self._movement_service

    async def execute(self, request: ReduceStockRequest) -> StockMovementResult:
        logger.info(
            "reduce_stock_requested",
            product_id=request.product_id,
            quantity=request.quantity,
            type=request.type.value,
            actor=request.actor_id,
        )
        service = await self._get_movement_service()
        return await service.reduce_stock(
            request.product_id,
            request.quantity,
            request.type,
            request.actor_id,
            reference=request.reference,
            notes=request.notes,
        )

    def to_response(self, result: StockMovementResult) -> StockMovementResponse:
        return movement_to_response(result)
