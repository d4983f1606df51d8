"""Health check endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, status

from receiptledger.core.dependencies import LedgerWriterDep, SettingsDep

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> dict[str, str]:
    """Check if the service is healthy."""
    return {"status": "healthy", "service": "receiptledger"}


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(
    settings: SettingsDep, writer: LedgerWriterDep
) -> dict[str, Any]:
    """Check if the service is ready to accept requests."""
    return {
        "status": "ready",
        "service": "receiptledger",
        "ledger": {
            "path": str(writer.resolved_path()),
            "exists": writer.exists(),
        },
        "dependencies": {
            "gemini": "configured" if settings.gemini_configured else "missing",
        },
    }
