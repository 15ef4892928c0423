"""Reorder alert use cases: generation and status transitions."""

from stockledger.application.dto.requests import AlertActionRequest
from stockledger.application.dto.responses import (
    GenerateAlertsResponse,
    ReorderAlertResponse,
)
from stockledger.application.use_cases.converters import alert_to_response
from stockledger.config import get_logger
from stockledger.core.entities.alert import AlertStatus, ReorderAlert
from stockledger.core.exceptions import InvalidInputError
from stockledger.core.services.reorder_analytics import ReorderAnalyticsService

logger = get_logger(__name__)


class _ReorderUseCase:
    def __init__(self, reorder_service: ReorderAnalyticsService | None = None):
        self._reorder_service = reorder_service

    async def _get_reorder_service(self) -> ReorderAnalyticsService:
        if self._reorder_service is None:
            from stockledger.application.services import get_reorder_analytics_service

            self._reorder_service = await get_reorder_analytics_service()
        return self._reorder_service


class GenerateReorderAlertsUseCase(_ReorderUseCase):
    """Scan active products and raise alerts for those at their reorder point."""

    async def execute(self) -> list[ReorderAlert]:
        service = await self._get_reorder_service()
        return await service.generate_alerts()

    def to_response(self, alerts: list[ReorderAlert]) -> GenerateAlertsResponse:
        return GenerateAlertsResponse(
            created=len(alerts),
            alerts=[alert_to_response(a) for a in alerts],
        )


class UpdateAlertStatusUseCase(_ReorderUseCase):
    """Acknowledge, mark ordered or resolve an alert."""

    async def execute(
        self, alert_id: str, status: AlertStatus, request: AlertActionRequest
    ) -> ReorderAlert:
        service = await self._get_reorder_service()
        status = AlertStatus(status)
        logger.info(
            "alert_status_requested",
            alert_id=alert_id,
            status=status.value,
            actor=request.actor_id,
        )
        if status is AlertStatus.ACKNOWLEDGED:
            return await service.acknowledge(alert_id, request.actor_id, request.notes)
        if status is AlertStatus.ORDERED:
            return await service.mark_ordered(alert_id, request.actor_id, request.notes)
        if status is AlertStatus.RESOLVED:
            return await service.resolve(alert_id, request.actor_id, request.notes)
        raise InvalidInputError("Alerts cannot be moved back to active", alert_id=alert_id)

    def to_response(self, alert: ReorderAlert) -> ReorderAlertResponse:
        return alert_to_response(alert)
