"""Request logging middleware."""

import time
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from stockledger.config.logging import get_logger, new_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each request and tag the response with its request id.

    A caller-supplied ``X-Request-ID`` is reused so stock movements can be
    traced across services; otherwise a short id is generated. The id is
    bound into the logging context, so events logged by the inventory
    services during the request carry it too.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        new_context(request_id=request_id, method=request.method, path=request.url.path)

        started = time.perf_counter()
        logger.info(
            "request_received",
            client=request.client.host if request.client else None,
            query=str(request.query_params) or None,
        )
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("request_crashed", error=str(e), elapsed_ms=_elapsed_ms(started))
            raise

        elapsed = _elapsed_ms(started)
        log = logger.warning if response.status_code >= 400 else logger.info
        log("request_finished", status=response.status_code, elapsed_ms=elapsed)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{elapsed:.2f}ms"
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
