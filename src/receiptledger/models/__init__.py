"""Receipt Ledger models package."""

from .ledger import RecordReceiptResponse, WriteResult
from .receipt import LineItem, ReceiptRecord, ReceiptRecordRequest

__all__ = [
    "LineItem",
    "ReceiptRecord",
    "ReceiptRecordRequest",
    "RecordReceiptResponse",
    "WriteResult",
]
