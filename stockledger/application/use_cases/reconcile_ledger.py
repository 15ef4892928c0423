"""Reconcile Ledger Use Case: detect and repair stock/ledger drift."""

from stockledger.application.dto.responses import ReconciliationResponse
from stockledger.application.use_cases.converters import reconciliation_to_response
from stockledger.config import get_logger
from stockledger.core.entities.valuation import LedgerReconciliation
from stockledger.core.services.ledger_history import LedgerService

logger = get_logger(__name__)


class ReconcileLedgerUseCase:
    def __init__(self, ledger_service: LedgerService | None = None):
        self._ledger_service = ledger_service

    async def _get_ledger_service(self) -> LedgerService:
        if self._ledger_service is None:
            from stockledger.application.services import get_ledger_service

            self._ledger_service = await get_ledger_service()
        return self._ledger_service

    async def execute(
        self, product_id: str, repair: bool = False, actor_id: str | None = None
    ) -> LedgerReconciliation:
        service = await self._get_ledger_service()
        if repair:
            logger.info("ledger_repair_requested", product_id=product_id, actor=actor_id)
            return await service.repair(product_id, actor_id or "")
        return await service.reconcile(product_id)

    def to_response(self, status: LedgerReconciliation) -> ReconciliationResponse:
        return reconciliation_to_response(status)
