"""Receipt Ledger services."""

from .csv_ledger import LedgerWriter, append_receipt, escape_csv_field
from .gemini import GeminiService
from .receipt_recorder import ReceiptRecorder, RecordingOutcome

__all__ = [
    "GeminiService",
    "LedgerWriter",
    "ReceiptRecorder",
    "RecordingOutcome",
    "append_receipt",
    "escape_csv_field",
]
