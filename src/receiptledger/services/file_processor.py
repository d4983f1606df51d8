"""Receipt image detection and validation."""

from __future__ import annotations

import base64
import binascii
import logging
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class FileType(str, Enum):
    """Supported file types for receipt processing."""

    JPEG = "jpeg"
    JPG = "jpg"
    PNG = "png"
    GIF = "gif"
    BMP = "bmp"
    WEBP = "webp"
    UNKNOWN = "unknown"

    @classmethod
    def from_extension(cls, extension: str) -> FileType:
        """Convert file extension to FileType enum."""
        ext = extension.lower().lstrip(".")
        try:
            return cls(ext)
        except ValueError:
            return cls.UNKNOWN

    def matches(self, other: FileType) -> bool:
        """Check whether two types denote the same format (jpg == jpeg)."""
        jpeg_family = {FileType.JPEG, FileType.JPG}
        if self in jpeg_family and other in jpeg_family:
            return True
        return self == other


class ProcessedFile(BaseModel):
    """Image ready for AI extraction."""

    content: str = Field(..., min_length=1, description="Base64 encoded image")
    file_type: FileType
    processing_metadata: dict[str, Any] = Field(default_factory=dict)


class FileProcessingError(Exception):
    """Base exception for file processing errors."""


class UnsupportedFileTypeError(FileProcessingError):
    """Raised when file type is not supported."""


class CorruptedFileError(FileProcessingError):
    """Raised when file is corrupted or unreadable."""


class FileProcessorService:
    """Service for detecting and validating receipt images."""

    MIN_FILE_SIZE = 100  # Minimum file size in bytes
    MAX_FILE_SIZE = 10 * 1024 * 1024  # Maximum file size (10MB)

    MAGIC_BYTES: ClassVar[dict[bytes, FileType]] = {
        b"\xff\xd8\xff": FileType.JPEG,
        b"\x89PNG\r\n\x1a\n": FileType.PNG,
        b"GIF87a": FileType.GIF,
        b"GIF89a": FileType.GIF,
        b"BM": FileType.BMP,
        b"RIFF": FileType.WEBP,  # Needs additional check
    }

    SUPPORTED_EXTENSIONS: ClassVar[frozenset[str]] = frozenset(
        {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp"}
    )

    def detect_file_type(self, file_content: bytes | str) -> FileType:
        """Detect file type from content using magic bytes."""
        file_bytes = self._normalize_file_content(file_content)
        if file_bytes is None:
            return FileType.UNKNOWN

        for magic, file_type in self.MAGIC_BYTES.items():
            if file_bytes.startswith(magic):
                # RIFF is shared with other containers; WEBP sits at offset 8
                if magic == b"RIFF" and b"WEBP" not in file_bytes[:16]:
                    return FileType.UNKNOWN
                return file_type
        return FileType.UNKNOWN

    def _normalize_file_content(self, file_content: bytes | str) -> bytes | None:
        """Convert file content to bytes format."""
        if isinstance(file_content, bytes):
            return file_content
        try:
            return base64.b64decode(file_content, validate=True)
        except (binascii.Error, ValueError):
            logger.warning("Failed to decode base64 content")
            return None

    def validate_file(self, file_bytes: bytes, file_type: FileType) -> bool:
        """Validate file content matches expected type and size bounds."""
        if len(file_bytes) < self.MIN_FILE_SIZE:
            return False

        if len(file_bytes) > self.MAX_FILE_SIZE:
            return False

        detected_type = self.detect_file_type(file_bytes)
        return file_type == FileType.UNKNOWN or file_type.matches(detected_type)

    async def process_file(
        self, file_content: str | bytes, file_type: FileType | None = None
    ) -> ProcessedFile:
        """Process a receipt image into a form ready for AI extraction."""
        if isinstance(file_content, str):
            try:
                file_bytes = base64.b64decode(file_content, validate=True)
            except (binascii.Error, ValueError) as e:
                raise CorruptedFileError(f"Invalid base64 content: {e}") from e
            content = file_content
        else:
            file_bytes = file_content
            content = base64.b64encode(file_bytes).decode()

        if file_type is None:
            file_type = self.detect_file_type(file_bytes)

        if file_type == FileType.UNKNOWN:
            raise UnsupportedFileTypeError("Unable to detect file type")

        if not self.validate_file(file_bytes, file_type):
            raise CorruptedFileError(f"Invalid or corrupted {file_type.value} file")

        return ProcessedFile(
            content=content,
            file_type=file_type,
            processing_metadata={
                "original_format": file_type.value,
                "size_bytes": len(file_bytes),
            },
        )

    def is_supported_file(self, filename: str) -> bool:
        """Check if file extension is supported."""
        return Path(filename).suffix.lower() in self.SUPPORTED_EXTENSIONS
