"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from receiptledger.core.config import Settings, get_settings
from receiptledger.core.dependencies import set_audit_logger
from receiptledger.main import create_app
from receiptledger.models.receipt import LineItem, ReceiptRecord

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path

    from fastapi import FastAPI


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings with the ledger under a temporary directory."""
    return Settings(
        data_dir=str(tmp_path / "data"),
        gemini_api_key="test_gemini_api_key",
        enable_audit_logging=False,
        audit_log_dir=str(tmp_path / "logs"),
        debug=True,
    )


@pytest.fixture
def ledger_path(tmp_path: Path) -> Path:
    """Ledger file location inside a not yet existing directory."""
    return tmp_path / "data" / "receipts.csv"


@pytest.fixture
def sample_record() -> ReceiptRecord:
    """Two-item receipt with every aggregate field set."""
    return ReceiptRecord(
        store_name="Sample Mart",
        date="2024-03-01T14:30:00",
        items=[
            LineItem(name="Milk", quantity=1, price=200, total=200),
            LineItem(name="Bread", quantity=2, price=150, total=300),
        ],
        subtotal=500,
        tax=50,
        total=550,
        payment_method="Cash",
    )


@pytest.fixture
def app(test_settings: Settings) -> Generator[FastAPI, None, None]:
    """Create test FastAPI app."""
    app = create_app(test_settings)
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield app
    app.dependency_overrides.clear()
    set_audit_logger(None)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create test client."""
    with TestClient(app) as test_client:
        yield test_client
