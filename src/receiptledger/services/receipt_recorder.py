"""Extract-then-record workflow for receipt images."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from receiptledger.models.ledger import WriteResult
    from receiptledger.models.receipt import ReceiptRecord
    from receiptledger.services.audit_logger import AuditLogger
    from receiptledger.services.csv_ledger import LedgerWriter

logger = logging.getLogger(__name__)


class ReceiptExtractor(Protocol):
    """Anything that turns a receipt image into a ``ReceiptRecord``."""

    async def extract_receipt_data(
        self, file_base64: str, additional_context: str | None = None
    ) -> ReceiptRecord:
        """Extract a structured receipt from a base64 encoded image."""
        ...


@dataclass
class RecordingOutcome:
    """Extracted receipt together with the ledger write result."""

    receipt: ReceiptRecord
    result: WriteResult
    processing_time: float


class ReceiptRecorder:
    """Runs extraction and ledger writes, keeping an audit trail."""

    def __init__(
        self,
        extractor: ReceiptExtractor | None,
        writer: LedgerWriter,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        """Initialize the recorder."""
        self.extractor = extractor
        self.writer = writer
        self.audit_logger = audit_logger

    async def record_image(
        self,
        file_base64: str,
        additional_context: str | None = None,
        source: str = "upload",
    ) -> RecordingOutcome:
        """Extract a receipt image and append it to the ledger.

        Extraction errors propagate to the caller. Write errors are
        reported through ``RecordingOutcome.result``.
        """
        if self.extractor is None:
            msg = "No receipt extractor configured"
            raise RuntimeError(msg)

        start_time = time.time()
        correlation_id = self._start(source)

        try:
            receipt = await self.extractor.extract_receipt_data(
                file_base64, additional_context
            )
        except Exception as e:
            if self.audit_logger and correlation_id:
                self.audit_logger.log_receipt_extraction(
                    correlation_id, time.time() - start_time, None, error=str(e)
                )
                self.audit_logger.log_error(
                    correlation_id,
                    type(e).__name__,
                    str(e),
                    {"source": source, "has_context": bool(additional_context)},
                )
                self.audit_logger.complete_receipt_processing(
                    correlation_id, time.time() - start_time, "failed"
                )
            raise

        if self.audit_logger and correlation_id:
            self.audit_logger.log_receipt_extraction(
                correlation_id, time.time() - start_time, receipt
            )

        result = await self._write(receipt, correlation_id)
        processing_time = time.time() - start_time
        self._complete(correlation_id, processing_time, result)

        return RecordingOutcome(
            receipt=receipt, result=result, processing_time=processing_time
        )

    async def record(
        self, receipt: ReceiptRecord, source: str = "manual"
    ) -> WriteResult:
        """Append an already structured receipt to the ledger."""
        start_time = time.time()
        correlation_id = self._start(source)
        result = await self._write(receipt, correlation_id)
        self._complete(correlation_id, time.time() - start_time, result)
        return result

    def _start(self, source: str) -> str | None:
        if self.audit_logger is None:
            return None
        return self.audit_logger.start_receipt_processing(
            source, {"ledger_path": str(self.writer.ledger_path)}
        )

    async def _write(
        self, receipt: ReceiptRecord, correlation_id: str | None
    ) -> WriteResult:
        write_start = time.time()
        result = await self.writer.append_receipt(receipt)
        if self.audit_logger and correlation_id:
            self.audit_logger.log_ledger_write(
                correlation_id, result, time.time() - write_start
            )
        if not result.success:
            logger.warning("Receipt from %r was not recorded", receipt.store_name)
        return result

    def _complete(
        self, correlation_id: str | None, processing_time: float, result: WriteResult
    ) -> None:
        if self.audit_logger and correlation_id:
            self.audit_logger.complete_receipt_processing(
                correlation_id,
                processing_time,
                "success" if result.success else "failed",
            )
