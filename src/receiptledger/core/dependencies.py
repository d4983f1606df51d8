"""Dependency injection for FastAPI."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from receiptledger.core.config import Settings, get_settings
from receiptledger.services.audit_logger import AuditLogger
from receiptledger.services.csv_ledger import LedgerWriter
from receiptledger.services.gemini import GeminiService
from receiptledger.services.receipt_recorder import ReceiptRecorder

# Global instance that will be initialized on startup
_audit_logger: AuditLogger | None = None


def set_audit_logger(audit_logger: AuditLogger | None) -> None:
    """Set the global audit logger instance."""
    global _audit_logger  # noqa: PLW0603
    _audit_logger = audit_logger


def get_audit_logger() -> AuditLogger | None:
    """Get the audit logger instance, if one was set up."""
    return _audit_logger


def get_ledger_writer(
    settings: Annotated[Settings, Depends(get_settings)],
) -> LedgerWriter:
    """Get a ledger writer for the configured ledger path."""
    return LedgerWriter(settings.ledger_path)


def get_gemini_service(
    settings: Annotated[Settings, Depends(get_settings)],
) -> GeminiService:
    """Get Gemini service instance."""
    return GeminiService(settings)


def get_receipt_recorder(
    writer: Annotated[LedgerWriter, Depends(get_ledger_writer)],
    audit_logger: Annotated[AuditLogger | None, Depends(get_audit_logger)],
) -> ReceiptRecorder:
    """Get a recorder for already structured receipts."""
    return ReceiptRecorder(None, writer, audit_logger)


def get_image_recorder(
    extractor: Annotated[GeminiService, Depends(get_gemini_service)],
    writer: Annotated[LedgerWriter, Depends(get_ledger_writer)],
    audit_logger: Annotated[AuditLogger | None, Depends(get_audit_logger)],
) -> ReceiptRecorder:
    """Get a recorder that extracts receipts with Gemini first."""
    return ReceiptRecorder(extractor, writer, audit_logger)


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
LedgerWriterDep = Annotated[LedgerWriter, Depends(get_ledger_writer)]
ReceiptRecorderDep = Annotated[ReceiptRecorder, Depends(get_receipt_recorder)]
ImageRecorderDep = Annotated[ReceiptRecorder, Depends(get_image_recorder)]
