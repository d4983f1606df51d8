"""Receipt Ledger CLI interface."""

from __future__ import annotations

import argparse
import asyncio
import base64
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from receiptledger import __version__
from receiptledger.core.config import Settings, get_settings
from receiptledger.core.logging_config import LoggingConfig
from receiptledger.models import ReceiptRecord, WriteResult
from receiptledger.services.audit_logger import AuditLogger
from receiptledger.services.csv_ledger import LedgerWriter, format_number
from receiptledger.services.file_processor import (
    FileProcessingError,
    FileProcessorService,
)
from receiptledger.services.gemini import GeminiService
from receiptledger.services.receipt_recorder import ReceiptRecorder

# Constants
MAX_DISPLAY_ITEMS = 5
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = FileProcessorService.SUPPORTED_EXTENSIONS


class CLIError(Exception):
    """Base exception for CLI errors."""


class FileValidationError(CLIError):
    """File validation error."""


class APIError(CLIError):
    """API communication error."""


class ReceiptLedgerCLI:
    """Main CLI application class."""

    def __init__(
        self, settings: Settings | None = None, ledger_path: Path | None = None
    ) -> None:
        """Initialize the CLI application."""
        self.settings = settings or get_settings()
        self.writer = LedgerWriter(ledger_path or self.settings.ledger_path)
        self.gemini_service: GeminiService | None = None
        self.audit_logger: AuditLogger | None = None

        if self.settings.enable_audit_logging:
            self.audit_logger = AuditLogger(
                LoggingConfig(
                    log_level=self.settings.log_level,
                    audit_log_path=Path(self.settings.audit_log_dir),
                )
            )

    def initialize_services(self) -> None:
        """Initialize the Gemini extraction service."""
        if not self.settings.gemini_configured:
            msg = (
                "GEMINI_API_KEY is not set. Export it or add it to .env "
                "before recording receipt images."
            )
            raise APIError(msg)
        self.gemini_service = GeminiService(self.settings)

    def validate_file(self, file_path: Path) -> None:
        """Validate the input receipt image."""
        if not file_path.exists():
            raise FileValidationError(f"File not found: {file_path}")

        if not file_path.is_file():
            raise FileValidationError(f"Not a file: {file_path}")

        suffix = file_path.suffix.lower()
        if suffix not in SUPPORTED_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_FORMATS))
            raise FileValidationError(
                f"Unsupported file format '{suffix}'. Supported: {supported}"
            )

        file_size = file_path.stat().st_size
        if file_size > MAX_FILE_SIZE:
            size_mb = file_size / (1024 * 1024)
            raise FileValidationError(f"File too large ({size_mb:.1f}MB). Max: 10MB")

    def load_record(self, json_path: Path) -> ReceiptRecord:
        """Load a structured receipt from a JSON document."""
        if not json_path.is_file():
            raise FileValidationError(f"File not found: {json_path}")
        try:
            data = json.loads(json_path.read_text(encoding="utf-8"))
            return ReceiptRecord.model_validate(data)
        except UnicodeDecodeError as e:
            raise FileValidationError(f"{json_path} is not UTF-8 text: {e}") from e
        except json.JSONDecodeError as e:
            raise FileValidationError(f"Invalid JSON in {json_path}: {e}") from e
        except ValidationError as e:
            raise FileValidationError(f"Invalid receipt data: {e}") from e

    async def record_receipt(
        self, file_path: Path, additional_context: str | None = None
    ) -> dict[str, Any]:
        """Extract a receipt image and append it to the ledger."""
        if not self.gemini_service:
            raise APIError("Gemini service not initialized")

        print(f"\nExtracting data from receipt: {file_path.name}")  # noqa: T201
        recorder = ReceiptRecorder(self.gemini_service, self.writer, self.audit_logger)
        image_base64 = base64.b64encode(file_path.read_bytes()).decode("utf-8")

        try:
            outcome = await recorder.record_image(
                image_base64, additional_context, source=str(file_path)
            )
        except FileProcessingError as e:
            raise FileValidationError(str(e)) from e
        except (ValueError, TypeError) as e:
            raise APIError(f"Failed to extract receipt: {e}") from e

        return {
            "file": str(file_path),
            "receipt": outcome.receipt,
            "result": outcome.result,
            "processing_time": round(outcome.processing_time, 3),
        }

    async def append_record(
        self, record: ReceiptRecord, source: str
    ) -> dict[str, Any]:
        """Append an already structured receipt to the ledger."""
        recorder = ReceiptRecorder(None, self.writer, self.audit_logger)
        result = await recorder.record(record, source=source)
        return {"file": source, "receipt": record, "result": result}

    def format_output(self, result: dict[str, Any], output_format: str) -> str:
        """Format the output based on the requested format."""
        receipt: ReceiptRecord = result["receipt"]
        write_result: WriteResult = result["result"]

        if output_format == "json":
            payload = {
                "file": result.get("file"),
                "receipt": receipt.model_dump(by_alias=True),
                "result": write_result.model_dump(by_alias=True),
            }
            if "processing_time" in result:
                payload["processing_time"] = result["processing_time"]
            return json.dumps(payload, indent=2, ensure_ascii=False, default=str)

        lines = [
            "\n=== Receipt Data ===",
            f"Store: {receipt.store_name}",
            f"Date: {receipt.date}",
            f"Subtotal: {format_number(receipt.subtotal)}",
            f"Tax: {format_number(receipt.tax)}",
            f"Total: {format_number(receipt.total)}",
            f"Payment: {receipt.payment_method or '-'}",
        ]

        if receipt.items:
            lines.append(f"\nItems: {receipt.item_count}")
            for idx, item in enumerate(receipt.items[:MAX_DISPLAY_ITEMS], 1):
                quantity = format_number(item.quantity)
                item_total = format_number(item.total)
                lines.append(
                    f"  {idx}. {item.name[:40]} x{quantity} = {item_total}"
                )
            remaining = receipt.item_count - MAX_DISPLAY_ITEMS
            if remaining > 0:
                lines.append(f"  ... and {remaining} more")

        lines.extend(["\n=== Result ===", write_result.message])
        if write_result.success:
            lines.append(f"Ledger: {write_result.file_path}")

        return "\n".join(lines)

    async def record_command(self, args: argparse.Namespace) -> None:
        """Handle the record command."""
        file_path = Path(args.receipt)

        try:
            self.validate_file(file_path)
            self.initialize_services()
            result = await self.record_receipt(file_path, args.context)
        except FileValidationError as e:
            print(f"\nError: {e}", file=sys.stderr)  # noqa: T201
            sys.exit(2)
        except APIError as e:
            print(f"\nError: {e}", file=sys.stderr)  # noqa: T201
            sys.exit(3)

        print(self.format_output(result, args.output))  # noqa: T201
        sys.exit(0 if result["result"].success else 1)

    async def append_command(self, args: argparse.Namespace) -> None:
        """Handle the append command."""
        json_path = Path(args.record)

        try:
            record = self.load_record(json_path)
        except FileValidationError as e:
            print(f"\nError: {e}", file=sys.stderr)  # noqa: T201
            sys.exit(2)

        result = await self.append_record(record, str(json_path))
        print(self.format_output(result, args.output))  # noqa: T201
        sys.exit(0 if result["result"].success else 1)

    def status_command(self, args: argparse.Namespace) -> None:  # noqa: ARG002
        """Handle the status command."""
        print("Receipt Ledger Status")  # noqa: T201
        print("=" * 40)  # noqa: T201
        print(f"Ledger: {self.writer.resolved_path()}")  # noqa: T201
        if self.writer.exists():
            size_kb = self.writer.ledger_path.stat().st_size / 1024
            print(f"  Exists ({size_kb:.1f} KB)")  # noqa: T201
        else:
            print("  Not created yet (created on first record)")  # noqa: T201

        if self.settings.gemini_configured:
            print(f"Gemini: configured ({self.settings.gemini_model})")  # noqa: T201
        else:
            print("Gemini: GEMINI_API_KEY not set")  # noqa: T201


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Receipt Ledger CLI - Record receipts into a CSV ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  receiptledger record receipt.jpg
  receiptledger record receipt.png --output json
  receiptledger append receipt.json
  receiptledger --ledger ~/kakeibo/receipts.csv status

Supported formats: JPEG, PNG, GIF, BMP, WebP
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"receiptledger {__version__}",
    )
    parser.add_argument(
        "--ledger",
        type=Path,
        default=None,
        help="Ledger CSV file (default: data/receipts.csv)",
    )

    subparsers = parser.add_subparsers(
        dest="command", required=True, help="Available commands"
    )

    record_parser = subparsers.add_parser(
        "record",
        help="Record a receipt image",
        description="Extract a receipt image with Gemini and append it to the ledger",
    )
    record_parser.add_argument(
        "receipt",
        type=str,
        help="Path to the receipt image file",
    )
    record_parser.add_argument(
        "--context",
        type=str,
        default=None,
        help="Additional context to help with extraction",
    )
    record_parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    append_parser = subparsers.add_parser(
        "append",
        help="Append a structured receipt",
        description="Append a receipt JSON document to the ledger without an LLM",
    )
    append_parser.add_argument(
        "record",
        type=str,
        help="Path to the receipt JSON file",
    )
    append_parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    subparsers.add_parser(
        "status",
        help="Check system status",
        description="Show the ledger location and Gemini configuration",
    )

    return parser


async def async_main(argv: list[str] | None = None) -> None:
    """Async main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    cli = ReceiptLedgerCLI(ledger_path=args.ledger)

    if args.command == "record":
        await cli.record_command(args)
    elif args.command == "append":
        await cli.append_command(args)
    elif args.command == "status":
        cli.status_command(args)
    else:
        parser.error(f"Unknown command: {args.command}")


def main() -> None:
    """Main entry point for the CLI."""
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user", file=sys.stderr)  # noqa: T201
        sys.exit(130)
    except Exception as e:
        logger.exception("Fatal error in main")
        print(f"\nFatal error: {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)


if __name__ == "__main__":
    main()
