"""Transfer Stock Use Case: move units between product records at source WAC."""

from stockledger.application.dto.requests import TransferStockRequest
from stockledger.application.dto.responses import TransferStockResponse
from stockledger.application.use_cases.converters import movement_to_response
from stockledger.config import get_logger
from stockledger.core.services.stock_movement import (
    StockMovementResult,
    StockMovementService,
)

logger = get_logger(__name__)


class TransferStockUseCase:
    def __init__(self, movement_service: StockMovementService | None = None):
        self._movement_service = movement_service

    async def _get_movement_service(self) -> StockMovementService:
        if self._movement_service is None:
            from stockledger.application.services import get_stock_movement_service

            self._movement_service = await get_stock_movement_service()
        return self._movement_service

    async def execute(
        self, request: TransferStockRequest
    ) -> tuple[StockMovementResult, StockMovementResult]:
        logger.info(
            "transfer_stock_requested",
            source=request.source_product_id,
            destination=request.destination_product_id,
            quantity=request.quantity,
            actor=request.actor_id,
        )
        service = await self._get_movement_service()
        return await service.transfer_stock(
            request.source_product_id,
            request.destination_product_id,
            request.quantity,
            request.actor_id,
            reference=request.reference,
            notes=request.notes,
        )

    def to_response(
        self, result: tuple[StockMovementResult, StockMovementResult]
    ) -> TransferStockResponse:
        source, destination = result
        return TransferStockResponse(
            source=movement_to_response(source),
            destination=movement_to_response(destination),
        )
