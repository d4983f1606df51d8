"""Receipt Ledger FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from receiptledger.api import health_router, main_router
from receiptledger.core.config import Settings, get_settings
from receiptledger.core.dependencies import set_audit_logger
from receiptledger.core.logging_config import LoggingConfig
from receiptledger.services.audit_logger import AuditLogger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle."""
    settings: Settings = app.state.settings
    logger.info("Starting Receipt Ledger application...")
    logger.info("Ledger file: %s", settings.ledger_path.resolve())

    if settings.enable_audit_logging:
        audit_config = LoggingConfig(
            log_level=settings.log_level,
            audit_log_path=Path(settings.audit_log_dir),
        )
        set_audit_logger(AuditLogger(audit_config))
        logger.info("Audit trail: %s", audit_config.audit_log_file)

    if not settings.gemini_configured:
        logger.warning("GEMINI_API_KEY is not set - image recording will fail")

    yield

    logger.info("Shutting down Receipt Ledger application...")
    set_audit_logger(None)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Receipt Ledger",
        version=settings.app_version,
        description="Record receipt images into a CSV household ledger",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(main_router, prefix=settings.api_prefix)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "receiptledger.main:app",
        host="0.0.0.0",  # noqa: S104
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
