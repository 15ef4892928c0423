"""Add Transaction Use Case: single quick-entry point for scanners."""

from stockledger.application.dto.requests import AddTransactionRequest
from stockledger.application.dto.responses import StockMovementResponse
from stockledger.application.use_cases.converters import movement_to_response
from stockledger.config import get_logger
from stockledger.core.services.stock_movement import (
    StockMovementResult,
    StockMovementService,
)

logger = get_logger(__name__)


class AddTransactionUseCase:
    """Route a typed quick entry to replenish, reduce or adjust."""

    def __init__(self, movement_service: StockMovementService | None = None):
        self._movement_service = movement_service

    async def _get_movement_service(self) -> StockMovementService:
        if self._movement_service is None:
            from stockledger.application.services import get_stock_movement_service

            self._movement_service = await get_stock_movement_service()
        return self._movement_service

    async def execute(self, request: AddTransactionRequest) -> StockMovementResult:
        logger.info(
            "quick_transaction_requested",
            product_id=request.product_id,
            type=request.type,
            quantity=request.quantity,
            actor=request.actor_id,
        )
        service = await self._get_movement_service()
        return await service.add_transaction(
            request.product_id,
            request.type,
            request.quantity,
            request.unit_price,
            request.actor_id,
            reason=request.reason,
            notes=request.notes,
        )

    def to_response(self, result: StockMovementResult) -> StockMovementResponse:
        return movement_to_response(result)
