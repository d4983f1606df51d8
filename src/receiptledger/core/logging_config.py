"""Logging configuration for the receipt audit trail."""

import json
import logging
import logging.handlers
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

AUDIT_LOG_FILENAME = "receiptledger_audit.log"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "stack_info",
        "exc_info",
        "exc_text",
        "message",
        "getMessage",
    }
)


class LoggingConfig(BaseModel):
    """Audit logging configuration."""

    log_level: str = Field(default="INFO", description="Log level for audit trail")
    max_file_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(default=30, description="Number of rotated files kept")
    audit_log_path: Path = Field(
        default=Path("logs/audit"), description="Audit log directory"
    )
    enable_console_output: bool = Field(
        default=False, description="Mirror audit records to the console"
    )
    sanitize_sensitive_data: bool = Field(
        default=True, description="Remove sensitive data from logs"
    )

    @property
    def audit_log_file(self) -> Path:
        """Full path of the audit log file."""
        return self.audit_log_path / AUDIT_LOG_FILENAME

    def setup_directories(self) -> None:
        """Create log directories if they don't exist."""
        self.audit_log_path.mkdir(parents=True, exist_ok=True)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured audit logging."""

    def __init__(self, *, sanitize_sensitive: bool = True) -> None:
        """Initialize formatter with sanitization option."""
        super().__init__()
        self.sanitize_sensitive = sanitize_sensitive
        self.sensitive_fields = {
            "api_key",
            "password",
            "secret_key",
            "private_key",
            "access_token",
            "image_base64",
            "file_base64",
        }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName if record.funcName else "<unknown>",
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_ATTRS
        }

        if extra_fields:
            if self.sanitize_sensitive:
                extra_fields = self._sanitize_data(extra_fields)
            log_entry.update(extra_fields)

        # Store names and item names are often Japanese; keep them readable
        return json.dumps(log_entry, default=self._json_serializer, ensure_ascii=False)

    def _sanitize_data(self, data: dict[str, Any]) -> dict[str, Any]:
        """Remove or mask sensitive data from log entries."""
        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            if self._is_sensitive_key(key):
                sanitized[key] = "***REDACTED***"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_data(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self._sanitize_data(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                sanitized[key] = value
        return sanitized

    def _is_sensitive_key(self, key: str) -> bool:
        """Check if a key should be considered sensitive."""
        key_lower = key.lower()
        return any(
            re.search(r"(^|_)" + re.escape(sensitive) + r"($|_)", key_lower)
            for sensitive in self.sensitive_fields
        )

    def _json_serializer(self, obj: Any) -> str:  # noqa: ANN401
        """JSON serializer for non-standard types."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        return str(obj)


def setup_audit_logging(config: LoggingConfig) -> logging.Logger:
    """Set up audit logging with file rotation."""
    config.setup_directories()

    audit_logger = logging.getLogger("receiptledger.audit")
    audit_logger.setLevel(getattr(logging, config.log_level.upper()))

    # Clear existing handlers to avoid duplicates
    for handler in list(audit_logger.handlers):
        audit_logger.removeHandler(handler)
        handler.close()

    file_handler = logging.handlers.RotatingFileHandler(
        filename=config.audit_log_file,
        maxBytes=config.max_file_size_mb * 1024 * 1024,  # Convert MB to bytes
        backupCount=config.backup_count,
        encoding="utf-8",
    )

    formatter = StructuredFormatter(sanitize_sensitive=config.sanitize_sensitive_data)
    file_handler.setFormatter(formatter)
    audit_logger.addHandler(file_handler)

    if config.enable_console_output:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        audit_logger.addHandler(console_handler)

    # Prevent propagation to root logger
    audit_logger.propagate = False

    return audit_logger
