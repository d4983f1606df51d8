"""Application configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application settings
    app_name: str = Field(default="receiptledger", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Ledger storage
    data_dir: str = Field(
        default="data",
        description="Directory holding the ledger (relative to the working dir)",
    )
    ledger_filename: str = Field(
        default="receipts.csv", description="File name of the CSV ledger"
    )

    # Audit trail
    enable_audit_logging: bool = Field(
        default=True, description="Write JSON audit records for each receipt"
    )
    audit_log_dir: str = Field(
        default="logs/audit", description="Directory for audit log files"
    )

    # Gemini AI configuration
    gemini_api_key: str = Field(default="", description="Google Gemini API key")
    gemini_model: str = Field(
        default="gemini-2.0-flash-exp",
        description="Gemini model to use",
    )
    gemini_timeout: int = Field(
        default=30,
        description="Timeout for Gemini API calls in seconds",
    )

    # API settings
    api_prefix: str = Field(default="/api/v1", description="API route prefix")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Allowed CORS origins",
    )

    model_config = SettingsConfigDict(
        env_file=[".env", ".env.local"],  # Local overrides
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def ledger_path(self) -> Path:
        """Path of the CSV ledger file."""
        return Path(self.data_dir) / self.ledger_filename

    @property
    def gemini_configured(self) -> bool:
        """Whether a Gemini API key is available."""
        return bool(self.gemini_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
