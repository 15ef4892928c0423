"""Process Bulk Adjustments Use Case: apply an uploaded adjustment sheet."""

from stockledger.application.dto.requests import BulkAdjustmentRequest
from stockledger.application.dto.responses import (
    BulkOperationResponse,
    BulkRowErrorResponse,
)
from stockledger.config import get_logger
from stockledger.core.entities.bulk import BulkOperationResult
from stockledger.core.services.bulk_adjustment import BulkAdjustmentService

logger = get_logger(__name__)


class ProcessBulkAdjustmentsUseCase:
    """
    Validate every row, apply the valid ones and report per-row failures.

    Sheet-level problems (empty file, missing headers, too many rows) are
    raised before any row is applied.
    """

    def __init__(self, bulk_service: BulkAdjustmentService | None = None):
        self._bulk_service = bulk_service

    async def _get_bulk_service(self) -> BulkAdjustmentService:
        if self._bulk_service is None:
            from stockledger.application.services import get_bulk_adjustment_service

            self._bulk_service = await get_bulk_adjustment_service()
        return self._bulk_service

    async def execute(self, request: BulkAdjustmentRequest) -> BulkOperationResult:
        logger.info(
            "bulk_adjustment_requested",
            size=len(request.content),
            actor=request.actor_id,
        )
        service = await self._get_bulk_service()
        return await service.process_bulk_adjustments(request.content, request.actor_id)

    def to_response(self, result: BulkOperationResult) -> BulkOperationResponse:
        return BulkOperationResponse(
            total=result.total,
            successful=result.successful,
            failed=result.failed,
            errors=[BulkRowErrorResponse(**e.model_dump()) for e in result.errors],
            committed_rows=result.committed_rows,
        )
