"""Bulk adjustment upload, template and CSV export endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import Response

from stockledger.api.dependencies import (
    get_app_settings,
    get_bulk_service,
    get_process_bulk_adjustments_use_case,
)
from stockledger.application.dto.requests import BulkAdjustmentRequest
from stockledger.application.dto.responses import (
    AdjustmentTemplateResponse,
    BulkOperationResponse,
    ErrorResponse,
)
from stockledger.application.use_cases import ProcessBulkAdjustmentsUseCase
from stockledger.config import Settings
from stockledger.core.entities.inventory import TransactionType
from stockledger.core.services import BulkAdjustmentService

router = APIRouter(prefix="/api/bulk", tags=["bulk"])


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/adjustments",
    response_model=BulkOperationResponse,
    responses={400: {"model": ErrorResponse}},
)
async def process_adjustments(
    request: BulkAdjustmentRequest,
    use_case: ProcessBulkAdjustmentsUseCase = Depends(get_process_bulk_adjustments_use_case),
) -> BulkOperationResponse:
    """Apply an adjustment sheet sent as CSV text."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/adjustments/upload",
    response_model=BulkOperationResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
)
async def upload_adjustments(
    file: UploadFile = File(...),
    actor_id: str = Form(..., min_length=1),
    settings: Settings = Depends(get_app_settings),
    use_case: ProcessBulkAdjustmentsUseCase = Depends(get_process_bulk_adjustments_use_case),
) -> BulkOperationResponse:
    """
    Apply an uploaded adjustment sheet.

    Rows that fail validation are reported individually; the rest are applied.
    """
    filename = file.filename or ""
    if not filename.lower().endswith(".csv"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported file type. Upload a CSV file.",
        )

    raw = await file.read()
    if len(raw) > settings.api.max_upload_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.api.max_upload_size} bytes",
        )
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file must be UTF-8 encoded",
        ) from None

    result = await use_case.execute(
        BulkAdjustmentRequest(actor_id=actor_id, content=content)
    )
    return use_case.to_response(result)


@router.get("/template", response_model=AdjustmentTemplateResponse)
async def get_template(
    prefill: bool = False,
    service: BulkAdjustmentService = Depends(get_bulk_service),
) -> AdjustmentTemplateResponse:
    """Adjustment sheet headers, sample rows and instructions."""
    template = await service.generate_adjustment_template(prefill=prefill)
    return AdjustmentTemplateResponse(
        headers=template.headers,
        sample_data=template.sample_data,
        instructions=template.instructions,
    )


@router.get("/template.csv")
async def download_template(
    prefill: bool = False,
    service: BulkAdjustmentService = Depends(get_bulk_service),
) -> Response:
    template = await service.generate_adjustment_template(prefill=prefill)
    return _csv_response(template.to_csv(), "inventory-adjustment-template.csv")


@router.get("/export/valuation")
async def export_valuation(
    service: BulkAdjustmentService = Depends(get_bulk_service),
) -> Response:
    """Current stock and cost basis for every active product."""
    content = await service.export_valuation_csv()
    stamp = datetime.now().strftime("%Y-%m-%d")
    return _csv_response(content, f"inventory-valuation-{stamp}.csv")


@router.get("/export/transactions")
async def export_transactions(
    start: datetime | None = None,
    end: datetime | None = None,
    type: TransactionType | None = None,
    service: BulkAdjustmentService = Depends(get_bulk_service),
) -> Response:
    content = await service.export_transactions_csv(
        start=start, end=end, transaction_type=type
    )
    stamp = datetime.now().strftime("%Y-%m-%d")
    return _csv_response(content, f"inventory-transactions-{stamp}.csv")
