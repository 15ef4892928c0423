"""Reorder alert endpoints."""

from fastapi import APIRouter, Depends

from stockledger.api.dependencies import (
    get_generate_alerts_use_case,
    get_reorder_service,
    get_update_alert_status_use_case,
)
from stockledger.application.dto.requests import AlertActionRequest
from stockledger.application.dto.responses import (
    ErrorResponse,
    GenerateAlertsResponse,
    ReorderAlertResponse,
)
from stockledger.application.use_cases import (
    GenerateReorderAlertsUseCase,
    UpdateAlertStatusUseCase,
)
from stockledger.application.use_cases.converters import alert_to_response
from stockledger.core.entities.alert import AlertStatus, ReorderRecommendation
from stockledger.core.services import ReorderAnalyticsService

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


@router.post("/generate", response_model=GenerateAlertsResponse)
async def generate_alerts(
    use_case: GenerateReorderAlertsUseCase = Depends(get_generate_alerts_use_case),
) -> GenerateAlertsResponse:
    """Raise alerts for active products at or below their reorder point."""
    alerts = await use_case.execute()
    return use_case.to_response(alerts)


@router.get("/active", response_model=list[ReorderAlertResponse])
async def get_active_alerts(
    service: ReorderAnalyticsService = Depends(get_reorder_service),
) -> list[ReorderAlertResponse]:
    """Active alerts, most urgent first."""
    return [alert_to_response(a) for a in await service.get_active_alerts()]


@router.get("/recommendations", response_model=list[ReorderRecommendation])
async def get_recommendations(
    service: ReorderAnalyticsService = Depends(get_reorder_service),
) -> list[ReorderRecommendation]:
    return await service.get_recommendations()


async def _update(
    alert_id: str,
    target: AlertStatus,
    request: AlertActionRequest,
    use_case: UpdateAlertStatusUseCase,
) -> ReorderAlertResponse:
    alert = await use_case.execute(alert_id, target, request)
    return use_case.to_response(alert)


@router.post(
    "/{alert_id}/acknowledge",
    response_model=ReorderAlertResponse,
    responses={404: {"model": ErrorResponse}},
)
async def acknowledge_alert(
    alert_id: str,
    request: AlertActionRequest,
    use_case: UpdateAlertStatusUseCase = Depends(get_update_alert_status_use_case),
) -> ReorderAlertResponse:
    return await _update(alert_id, AlertStatus.ACKNOWLEDGED, request, use_case)


@router.post(
    "/{alert_id}/order",
    response_model=ReorderAlertResponse,
    responses={404: {"model": ErrorResponse}},
)
async def mark_alert_ordered(
    alert_id: str,
    request: AlertActionRequest,
    use_case: UpdateAlertStatusUseCase = Depends(get_update_alert_status_use_case),
) -> ReorderAlertResponse:
    return await _update(alert_id, AlertStatus.ORDERED, request, use_case)


@router.post(
    "/{alert_id}/resolve",
    response_model=ReorderAlertResponse,
    responses={404: {"model": ErrorResponse}},
)
async def resolve_alert(
    alert_id: str,
    request: AlertActionRequest,
    use_case: UpdateAlertStatusUseCase = Depends(get_update_alert_status_use_case),
) -> ReorderAlertResponse:
    return await _update(alert_id, AlertStatus.RESOLVED, request, use_case)
