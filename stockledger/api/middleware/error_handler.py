"""
Error rendering for the API.

Every error leaves as an ErrorResponse: a machine-readable error_code, the
message, a recovery hint, optional detail and the request path.
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from stockledger.application.dto.responses import ErrorResponse
from stockledger.config import get_logger
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    InsufficientStockError,
    NotFoundError,
    PartiallyPersistedError,
    ProductAlreadyExistsError,
    RepositoryError,
    StockLedgerError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; first match wins, so subclasses go first
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
    ProductAlreadyExistsError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    PartiallyPersistedError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    RepositoryError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code
HINT_MAP: dict[str, str] = {
    "PRODUCT_NOT_FOUND": "Check the product ID or register it with POST /api/inventory/products.",
    "ALERT_NOT_FOUND": "Check the alert ID and try GET /api/alerts/active to list open alerts.",
    "PRODUCT_EXISTS": "The product already has an inventory record. Use the stock endpoints to change it.",
    "INSUFFICIENT_STOCK": "Reduce the quantity or replenish the product first.",
    "INVALID_QUANTITY": "Quantities must be positive whole numbers and costs non-negative.",
    "INVALID_INPUT": "A parameter value is invalid. Check the request.",
    "EMPTY_INPUT": "Upload a CSV file with a header row and at least one data row.",
    "MISSING_HEADERS": "Download GET /api/bulk/template and keep its header row.",
    "TOO_MANY_ROWS": "Split the sheet into smaller files and upload them separately.",
    "CONCURRENCY_CONFLICT": "The product kept changing while this request ran. Retry the request.",
    "PARTIALLY_PERSISTED": "Stock was updated without a ledger row. Run the reconcile endpoint for the product.",
    "REPOSITORY_ERROR": "The database is unavailable or slow. Retry later.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with the current stock state.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    return next(
        (code for exc_type, code in EXCEPTION_STATUS_MAP.items() if isinstance(exc, exc_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _render(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    detail: str | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=_get_hint(error_code, status_code),
        detail=detail,
        path=request.url.path,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """
    Render a domain or unexpected exception as an ErrorResponse.

    ``StockLedgerError.details`` become the ``detail`` string as
    ``key=value`` pairs; 5xx outcomes are logged with the traceback.
    """
    status_code = _status_for(exc)
    if isinstance(exc, StockLedgerError):
        error_code = exc.code
        detail = "; ".join(f"{k}={v}" for k, v in exc.details.items()) or None
    else:
        error_code, detail = type(exc).__name__, None

    server_side = status_code >= 500
    (logger.error if server_side else logger.warning)(
        "request_error",
        request_id=getattr(request.state, "request_id", None),
        error_code=error_code,
        error=str(exc),
        traceback=traceback.format_exc() if server_side else None,
    )
    return _render(request, status_code, error_code, str(exc), detail)


async def handle_domain_error(request: Request, exc: StockLedgerError) -> JSONResponse:
    return error_response(request, exc)


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = [
        f"{' -> '.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return _render(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        "; ".join(problems),
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = str(exc.detail) if exc.detail else "An error occurred"
    return _render(
        request, exc.status_code, _infer_error_code(exc.status_code, message), message
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last line of defence: anything the handlers let through becomes JSON."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StockLedgerError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)


def _infer_error_code(status_code: int, detail: str) -> str:
    """Error code for an HTTPException raised directly by a route."""
    if status_code == 404:
        lowered = detail.lower()
        if "product" in lowered:
            return "PRODUCT_NOT_FOUND"
        if "alert" in lowered:
            return "ALERT_NOT_FOUND"
        return "NOT_FOUND"
    return {
        400: "BAD_REQUEST",
        413: "PAYLOAD_TOO_LARGE",
        422: "UNPROCESSABLE_ENTITY",
    }.get(status_code, "HTTP_ERROR")
