"""Tests for receipt ledger routes."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import status

from receiptledger.core.dependencies import get_gemini_service
from receiptledger.services.file_processor import UnsupportedFileTypeError

if TYPE_CHECKING:
    from pathlib import Path

    from fastapi import FastAPI
    from fastapi.testclient import TestClient

    from receiptledger.core.config import Settings
    from receiptledger.models.receipt import ReceiptRecord


@pytest.fixture
def mock_gemini_service(app: FastAPI) -> MagicMock:
    """Create a mock Gemini service and install it in the app."""
    service = MagicMock()
    service.extract_receipt_data = AsyncMock()
    app.dependency_overrides[get_gemini_service] = lambda: service
    return service


@pytest.fixture
def receipt_payload() -> dict:
    """Structured receipt in its camelCase wire form."""
    return {
        "storeName": "ローソン",
        "date": "2024-03-01T08:15:00",
        "items": [
            {"name": "コーヒー", "quantity": 1, "price": 150, "total": 150},
            {"name": "サンドイッチ", "quantity": 1, "price": 320, "total": 320},
        ],
        "subtotal": 470,
        "tax": 37,
        "total": 507,
        "paymentMethod": "現金",
    }


def block_data_dir(settings: Settings) -> None:
    """Put a regular file where the ledger directory should be."""
    blocker = settings.ledger_path.parent
    blocker.parent.mkdir(parents=True, exist_ok=True)
    blocker.write_text("not a directory", encoding="utf-8")


def test_root(client: TestClient) -> None:
    """Test the API root endpoint."""
    response = client.get("/api/v1/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Receipt Ledger API"


class TestLedgerEntries:
    """Tests for POST /ledger/entries."""

    def test_append_entry(
        self, client: TestClient, test_settings: Settings, receipt_payload: dict
    ) -> None:
        """Test appending a structured receipt."""
        response = client.post("/api/v1/ledger/entries", json=receipt_payload)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["success"] is True
        assert data["recordedCount"] == 2
        assert data["filePath"] == str(test_settings.ledger_path.resolve())
        assert "2件の商品を記録しました" in data["message"]

        lines = test_settings.ledger_path.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("店舗名,購入日時,商品名")
        assert lines[1] == "ローソン,2024-03-01T08:15:00,コーヒー,1,150,150,470,37,507,現金"
        assert lines[2] == "ローソン,2024-03-01T08:15:00,サンドイッチ,1,320,320,,,,"

    def test_append_entry_snake_case(
        self,
        client: TestClient,
        test_settings: Settings,
        sample_record: ReceiptRecord,
    ) -> None:
        """Test that snake_case field names are accepted too."""
        response = client.post(
            "/api/v1/ledger/entries", json=sample_record.model_dump()
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert test_settings.ledger_path.is_file()

    def test_append_entry_write_failure(
        self, client: TestClient, test_settings: Settings, receipt_payload: dict
    ) -> None:
        """Test that a failed write returns the result with a 500."""
        block_data_dir(test_settings)

        response = client.post("/api/v1/ledger/entries", json=receipt_payload)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        data = response.json()
        assert data["success"] is False
        assert data["filePath"] == ""
        assert data["recordedCount"] == 0
        assert data["message"].startswith("CSV書き込み中にエラーが発生しました: ")

    def test_append_entry_unencodable_text(
        self, client: TestClient, test_settings: Settings
    ) -> None:
        """Test that a lone surrogate in the body becomes a failed write."""
        body = (
            '{"storeName": "Shop\\ud800", "date": "2024-03-01T08:15:00",'
            ' "items": [{"name": "a", "quantity": 1, "price": 1, "total": 1}],'
            ' "subtotal": 1, "tax": 0, "total": 1}'
        )

        response = client.post(
            "/api/v1/ledger/entries",
            content=body,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["success"] is False
        assert not test_settings.ledger_path.exists()

    def test_append_entry_invalid_payload(self, client: TestClient) -> None:
        """Test that an incomplete receipt is rejected."""
        response = client.post(
            "/api/v1/ledger/entries", json={"storeName": "No amounts"}
        )

        assert response.status_code == 422


class TestRecordReceipt:
    """Tests for POST /receipts/record."""

    def test_record_receipt_success(
        self,
        client: TestClient,
        mock_gemini_service: MagicMock,
        sample_record: ReceiptRecord,
        ledger_path: Path,
    ) -> None:
        """Test extracting and recording a receipt image."""
        mock_gemini_service.extract_receipt_data.return_value = sample_record

        response = client.post(
            "/api/v1/receipts/record",
            json={"image_base64": "aW1hZ2U=", "additional_context": "groceries"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["receipt"]["storeName"] == "Sample Mart"
        assert data["result"]["success"] is True
        assert data["result"]["recordedCount"] == 2
        assert data["processing_time"] >= 0
        mock_gemini_service.extract_receipt_data.assert_awaited_once_with(
            "aW1hZ2U=", "groceries"
        )
        assert ledger_path.is_file()

    def test_record_receipt_extraction_failure(
        self,
        client: TestClient,
        mock_gemini_service: MagicMock,
        ledger_path: Path,
    ) -> None:
        """Test that extraction errors become a 400."""
        mock_gemini_service.extract_receipt_data.side_effect = ValueError(
            "Failed to parse Gemini response as JSON"
        )

        response = client.post(
            "/api/v1/receipts/record", json={"image_base64": "aW1hZ2U="}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Failed to extract receipt" in response.json()["detail"]
        assert not ledger_path.exists()

    def test_record_receipt_unsupported_image(
        self, client: TestClient, mock_gemini_service: MagicMock
    ) -> None:
        """Test that unsupported images become a 400."""
        mock_gemini_service.extract_receipt_data.side_effect = (
            UnsupportedFileTypeError("Unable to detect file type")
        )

        response = client.post(
            "/api/v1/receipts/record", json={"image_base64": "aW1hZ2U="}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Unsupported or corrupted" in response.json()["detail"]

    def test_record_receipt_write_failure(
        self,
        client: TestClient,
        mock_gemini_service: MagicMock,
        sample_record: ReceiptRecord,
        test_settings: Settings,
    ) -> None:
        """Test that a failed write after extraction returns a 500."""
        mock_gemini_service.extract_receipt_data.return_value = sample_record
        block_data_dir(test_settings)

        response = client.post(
            "/api/v1/receipts/record", json={"image_base64": "aW1hZ2U="}
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        data = response.json()
        assert data["receipt"]["storeName"] == "Sample Mart"
        assert data["result"]["success"] is False
