"""Models describing ledger write outcomes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .receipt import ReceiptRecord


class WriteResult(BaseModel):
    """Outcome of appending one receipt to the ledger."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = Field(..., description="True iff the append completed")
    message: str = Field(..., description="Human-readable status or error")
    file_path: str = Field(
        default="", description="Resolved absolute path written, empty on failure"
    )
    recorded_count: int = Field(
        default=0, ge=0, description="Number of item rows written, 0 on failure"
    )


class RecordReceiptResponse(BaseModel):
    """Response model for an extract-and-record request."""

    receipt: ReceiptRecord = Field(..., description="Extracted receipt data")
    result: WriteResult = Field(..., description="Ledger write outcome")
    processing_time: float = Field(..., description="Seconds spent processing")
