"""
StockLedger HTTP application.

``app`` is built at import time by :func:`create_app`; the database schema
is migrated and the connection pool opened when the server starts.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockledger import __version__
from stockledger.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from stockledger.api.middleware.error_handler import setup_exception_handlers
from stockledger.api.routes import (
    alerts_router,
    bulk_router,
    health_router,
    inventory_router,
    reports_router,
)
from stockledger.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)

ROUTERS = (health_router, inventory_router, alerts_router, bulk_router, reports_router)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    from stockledger.infrastructure.storage.sqlite import close_pool, get_pool
    from stockledger.infrastructure.storage.sqlite.migrations import run_migrations

    settings = get_settings()
    logger.info(
        "stockledger_starting",
        version=__version__,
        environment=settings.environment,
        db_path=str(settings.storage.db_path),
    )
    try:
        results = await run_migrations()
        failed = [r.version for r in results if not r.success]
        if failed:
            raise RuntimeError(f"Schema migration failed: {', '.join(failed)}")
        await get_pool()
    except Exception as e:
        logger.error("stockledger_startup_failed", error=str(e))
        raise
    logger.info("stockledger_ready", migrations_applied=len(results))

    yield

    await close_pool()
    logger.info("stockledger_stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title="StockLedger Inventory API",
        description="Weighted average costing, stock movements, reorder alerts and valuation",
        version=__version__,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Last added is outermost
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", "X-Response-Time"],
        )

    setup_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)

    @app.get("/health", include_in_schema=False)
    async def liveness() -> dict[str, str]:
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    api = get_settings().api
    uvicorn.run("stockledger.api.main:app", host=api.host, port=api.port, reload=api.debug)
