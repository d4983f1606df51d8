"""Main API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from receiptledger import __version__
from receiptledger.core.dependencies import ImageRecorderDep, ReceiptRecorderDep
from receiptledger.models import (
    ReceiptRecord,
    ReceiptRecordRequest,
    RecordReceiptResponse,
    WriteResult,
)
from receiptledger.services.file_processor import FileProcessingError

logger = logging.getLogger(__name__)
router = APIRouter(tags=["receipts"])


@router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "message": "Receipt Ledger API",
        "version": __version__,
        "docs": "/docs",
    }


@router.post(
    "/ledger/entries",
    response_model=WriteResult,
    status_code=status.HTTP_201_CREATED,
)
async def append_ledger_entry(
    record: ReceiptRecord,
    response: Response,
    recorder: ReceiptRecorderDep,
) -> WriteResult:
    """Append an already structured receipt to the ledger.

    A failed write still returns the ``WriteResult`` so the caller can
    show its message, with a 500 status code.
    """
    result = await recorder.record(record, source="api")
    if not result.success:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return result


@router.post("/receipts/record", response_model=RecordReceiptResponse)
async def record_receipt(
    request: ReceiptRecordRequest,
    response: Response,
    recorder: ImageRecorderDep,
) -> RecordReceiptResponse:
    """Extract a receipt image with Gemini and append it to the ledger.

    Args:
        request: Contains the base64 encoded image and optional context
        response: Outgoing response, used to flag failed ledger writes
        recorder: Extract-and-record workflow

    Returns:
        RecordReceiptResponse with the extracted receipt and write result
    """
    try:
        outcome = await recorder.record_image(
            request.image_base64, request.additional_context, source="api"
        )
    except FileProcessingError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported or corrupted receipt image: {e}",
        ) from e
    except (ValueError, TypeError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to extract receipt: {e}",
        ) from e

    if not outcome.result.success:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return RecordReceiptResponse(
        receipt=outcome.receipt,
        result=outcome.result,
        processing_time=outcome.processing_time,
    )
