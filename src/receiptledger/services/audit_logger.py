"""Audit logging service for receipt processing."""

import platform
import uuid
from datetime import UTC, datetime
from typing import Any

from receiptledger import __version__
from receiptledger.core.logging_config import LoggingConfig, setup_audit_logging
from receiptledger.models.ledger import WriteResult
from receiptledger.models.receipt import ReceiptRecord


class CorrelationIDGenerator:
    """Generate unique correlation IDs for tracking audit trails."""

    def generate(self) -> str:
        """Generate a unique correlation ID."""
        now = datetime.now(UTC)
        unique_id = uuid.uuid4().hex[:8]
        return f"req_{now:%Y%m%d}_{now:%H%M%S}{unique_id}"


class AuditLogger:
    """Structured audit trail of receipt extraction and ledger writes."""

    def __init__(self, config: LoggingConfig | None = None) -> None:
        """Initialize audit logger with configuration."""
        self.config = config or LoggingConfig()
        self.logger = setup_audit_logging(self.config)
        self.correlation_id_generator = CorrelationIDGenerator()

    def start_receipt_processing(
        self, source: str, context: dict[str, Any] | None = None
    ) -> str:
        """Start processing audit trail with correlation ID."""
        correlation_id = self.correlation_id_generator.generate()

        audit_record = {
            "event_type": "receipt_processing_start",
            "correlation_id": correlation_id,
            "source": source,
            "context": context or {},
            "system_info": {
                "version": __version__,
                "platform": platform.platform(),
                "python_version": platform.python_version(),
            },
        }

        self.logger.info("Receipt processing started", extra=audit_record)
        return correlation_id

    def log_receipt_extraction(
        self,
        correlation_id: str,
        processing_time: float,
        record: ReceiptRecord | None,
        error: str | None = None,
    ) -> None:
        """Log extraction service results and timing."""
        audit_record: dict[str, Any] = {
            "event_type": "receipt_extraction",
            "correlation_id": correlation_id,
            "processing_time_seconds": round(processing_time, 3),
            "success": error is None,
            "error": error,
        }
        if record is not None:
            audit_record["extraction_results"] = {
                "store_name": record.store_name,
                "date": record.date,
                "total": record.total,
                "line_item_count": record.item_count,
                "has_payment_method": record.payment_method is not None,
            }

        if error:
            self.logger.error("Receipt extraction failed", extra=audit_record)
        else:
            self.logger.info("Receipt extraction completed", extra=audit_record)

    def log_ledger_write(
        self,
        correlation_id: str,
        result: WriteResult,
        processing_time: float,
    ) -> None:
        """Log the outcome of a ledger append."""
        audit_record = {
            "event_type": "ledger_write",
            "correlation_id": correlation_id,
            "processing_time_seconds": round(processing_time, 3),
            "success": result.success,
            "ledger_file": result.file_path,
            "rows_written": result.recorded_count,
            "result_message": result.message,
        }

        if result.success:
            self.logger.info("Ledger write completed", extra=audit_record)
        else:
            self.logger.error("Ledger write failed", extra=audit_record)

    def complete_receipt_processing(
        self,
        correlation_id: str,
        total_processing_time: float,
        final_status: str,
    ) -> None:
        """Complete processing audit trail."""
        audit_record = {
            "event_type": "receipt_processing_complete",
            "correlation_id": correlation_id,
            "total_processing_time_seconds": round(total_processing_time, 3),
            "final_status": final_status,
        }

        if final_status == "success":
            self.logger.info("Receipt processing completed", extra=audit_record)
        else:
            self.logger.error("Receipt processing failed", extra=audit_record)

    def log_error(
        self,
        correlation_id: str,
        error_type: str,
        error_message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Log errors with context for troubleshooting."""
        error_record = {
            "event_type": "error_occurred",
            "correlation_id": correlation_id,
            "error_type": error_type,
            "error_message": error_message,
            "context": context or {},
        }

        self.logger.error("Error occurred during processing", extra=error_record)
