"""Receipt Ledger API package."""

from .health import router as health_router
from .routes import router as main_router

__all__ = ["health_router", "main_router"]
