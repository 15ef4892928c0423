"""Adjust Inventory Use Case: increase, decrease or correct stock with a reason."""

from stockledger.application.dto.requests import AdjustInventoryRequest
from stockledger.application.dto.responses import StockMovementResponse
from stockledger.application.use_cases.converters import movement_to_response
from stockledger.config import get_logger
from stockledger.core.services.stock_movement import (
    StockMovementResult,
    StockMovementService,
)

logger = get_logger(__name__)


class AdjustInventoryUseCase:
    def __init__(self, movement_service: StockMovementService | None = None):
        self._movement_service = movement_service

    async def _get_movement_service(self) -> StockMovementService:
        if self._movement_service is None:
            from stockledger.application.services import get_stock_movement_service

            self._movement_service = await get_stock_movement_service()
        return self._movement_service

    async def execute(self, request: AdjustInventoryRequest) -> StockMovementResult:
        logger.info(
            "adjust_inventory_requested",
            product_id=request.product_id,
            mode=request.mode.value,
            quantity=request.quantity,
            actor=request.actor_id,
        )
        service = await self._get_movement_service()
        return await service.adjust_inventory(
            request.product_id,
            request.mode,
            request.quantity,
            request.reason,
            request.actor_id,
            unit_cost=request.unit_cost,
            notes=request.notes,
        )

    def to_response(self, result: StockMovementResult) -> StockMovementResponse:
        return movement_to_response(result)
