"""Append-only CSV ledger for extracted receipts.

One receipt becomes one row per line item. Receipt-level amounts
(subtotal, tax, total, payment method) are written on the first item's
row only, so every receipt records them exactly once.

The ledger has a single writer at a time. Creating the file is atomic
(exclusive create), so two overlapping first writes cannot both emit the
header, but overlapping appends from separate processes may still
interleave rows of different receipts.
"""

from __future__ import annotations

import asyncio
import logging
import math
import os
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING

from receiptledger.models.ledger import WriteResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from receiptledger.models.receipt import ReceiptRecord

logger = logging.getLogger(__name__)

LEDGER_HEADER: tuple[str, ...] = (
    "店舗名",
    "購入日時",
    "商品名",
    "数量",
    "単価",
    "商品小計",
    "小計",
    "消費税",
    "合計金額",
    "支払い方法",
)

ROW_TERMINATOR = "\n"
LEDGER_ENCODING = "utf-8"

_CHARS_NEEDING_QUOTES = (",", "\n", '"')

# Exclusive create: only the call that creates the ledger writes the header
_CREATE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | os.O_APPEND

SUCCESS_MESSAGE = "レシートデータを正常に記録しました。{count}件の商品を記録しました。"
FAILURE_MESSAGE = "CSV書き込み中にエラーが発生しました: {error}"


class LedgerError(Exception):
    """Base exception for ledger write errors."""


class DirectoryCreationError(LedgerError):
    """Raised when the ledger directory cannot be created."""


class LedgerWriteError(LedgerError):
    """Raised when the ledger file cannot be created or appended to."""


def escape_csv_field(value: str | None) -> str:
    """Render a text value as a CSV-safe field."""
    if not value:
        return ""
    if any(char in value for char in _CHARS_NEEDING_QUOTES):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_number(value: float) -> str:
    """Render a number as plain decimal text (``200``, ``1.5``, ``0.0000001``).

    Raises:
        ValueError: If ``value`` is NaN or infinite
    """
    if not math.isfinite(value):
        msg = f"Cannot record non-finite amount: {value}"
        raise ValueError(msg)
    if value == int(value):
        return str(int(value))
    # Shortest round-trip digits, never in exponent notation
    return format(Decimal(repr(value)), "f")


def build_ledger_rows(record: ReceiptRecord) -> list[list[str]]:
    """Serialize a receipt into ledger rows, one per line item."""
    rows: list[list[str]] = []
    for index, item in enumerate(record.items):
        first = index == 0
        rows.append(
            [
                escape_csv_field(record.store_name),
                escape_csv_field(record.date),
                escape_csv_field(item.name),
                format_number(item.quantity),
                format_number(item.price),
                format_number(item.total),
                format_number(record.subtotal) if first else "",
                format_number(record.tax) if first else "",
                format_number(record.total) if first else "",
                escape_csv_field(record.payment_method or "") if first else "",
            ]
        )
    return rows


def format_row(fields: Sequence[str]) -> str:
    """Join already-rendered fields into one terminated CSV line."""
    return ",".join(fields) + ROW_TERMINATOR


class LedgerWriter:
    """Writes receipts to a CSV ledger file owned by the caller."""

    def __init__(self, ledger_path: Path | str) -> None:
        """Initialize the writer for the given ledger file."""
        self.ledger_path = Path(ledger_path)

    @property
    def header_line(self) -> str:
        """Header row as written to a fresh ledger."""
        return format_row(LEDGER_HEADER)

    def resolved_path(self) -> Path:
        """Absolute ledger path, relative paths taken from the working dir."""
        return self.ledger_path.resolve()

    def exists(self) -> bool:
        """Check whether the ledger file has been created."""
        return self.ledger_path.is_file()

    async def append_receipt(self, record: ReceiptRecord) -> WriteResult:
        """Append one receipt to the ledger, creating it on first use.

        I/O failures never escape this method; they are reported through
        a ``WriteResult`` with ``success=False``.

        Args:
            record: Structured receipt to record

        Returns:
            WriteResult: Outcome with the number of item rows written
        """
        try:
            file_path = self.resolved_path()
            body = self._encode_rows(record)
            await asyncio.to_thread(self._ensure_directory, file_path.parent)
            created = await asyncio.to_thread(self._write, file_path, body)
        except (LedgerError, OSError) as e:
            logger.error("Failed to record receipt in %s: %s", self.ledger_path, e)
            return WriteResult(
                success=False,
                message=FAILURE_MESSAGE.format(error=e),
                file_path="",
                recorded_count=0,
            )

        if created:
            logger.info("Created ledger %s", file_path)
        logger.info(
            "Recorded %d item(s) from %s in %s",
            record.item_count,
            record.store_name,
            file_path,
        )
        return WriteResult(
            success=True,
            message=SUCCESS_MESSAGE.format(count=record.item_count),
            file_path=str(file_path),
            recorded_count=record.item_count,
        )

    def _encode_rows(self, record: ReceiptRecord) -> bytes:
        """Render the receipt's rows as ledger bytes.

        Runs before the ledger is touched, so a receipt that cannot be
        rendered never leaves a header-less file behind.
        """
        try:
            body = "".join(format_row(row) for row in build_ledger_rows(record))
            return body.encode(LEDGER_ENCODING)
        except ValueError as e:
            msg = f"Cannot render receipt from {record.store_name!r}: {e}"
            raise LedgerWriteError(msg) from e

    def _ensure_directory(self, directory: Path) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Failed to create directory {directory}: {e}"
            raise DirectoryCreationError(msg) from e

    def _write(self, file_path: Path, body: bytes) -> bool:
        """Write ``body``, prefixed by the header if the file is new.

        Returns True when this call created the ledger.
        """
        header = self.header_line.encode(LEDGER_ENCODING)
        try:
            try:
                fd = os.open(file_path, _CREATE_FLAGS, 0o644)
            except FileExistsError:
                pass
            else:
                with os.fdopen(fd, "ab") as f:
                    f.write(header + body)
                return True

            if body:
                with file_path.open("ab") as f:
                    f.write(body)
            elif not file_path.is_file():
                msg = f"Not a regular file: {file_path}"
                raise LedgerWriteError(msg)
        except OSError as e:
            msg = f"Failed to write ledger {file_path}: {e}"
            raise LedgerWriteError(msg) from e
        return False


async def append_receipt(
    record: ReceiptRecord, ledger_path: Path | str
) -> WriteResult:
    """Append ``record`` to the ledger at ``ledger_path``."""
    return await LedgerWriter(ledger_path).append_receipt(record)
