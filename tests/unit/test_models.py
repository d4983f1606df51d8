"""Unit tests for models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from receiptledger.models import LineItem, ReceiptRecord, WriteResult


class TestLineItem:
    """Test LineItem model."""

    def test_valid_line_item(self) -> None:
        """Test creating a valid line item."""
        item = LineItem(name="牛乳", quantity=1, price=200, total=200)
        assert item.name == "牛乳"
        assert item.quantity == 1.0
        assert item.price == 200.0
        assert item.total == 200.0

    def test_quantity_defaults_to_one(self) -> None:
        """Test quantity default when the receipt prints none."""
        item = LineItem(name="Bread", price=150, total=150)
        assert item.quantity == 1.0

    def test_numeric_strings_converted(self) -> None:
        """Test numeric strings with yen markers and separators."""
        item = LineItem(name="Rice", quantity="2", price="¥1,200", total="2,400円")
        assert item.quantity == 2.0
        assert item.price == 1200.0
        assert item.total == 2400.0

    def test_total_not_recomputed(self) -> None:
        """Test that inconsistent totals are kept as given."""
        item = LineItem(name="Odd", quantity=3, price=100, total=250)
        assert item.total == 250.0

    def test_invalid_number(self) -> None:
        """Test invalid numeric validation."""
        with pytest.raises(ValidationError):
            LineItem(name="Test", price="abc", total=1)

    def test_boolean_rejected(self) -> None:
        """Test that booleans are not treated as numbers."""
        with pytest.raises(ValidationError):
            LineItem(name="Test", price=True, total=1)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "-inf", "NaN"])
    def test_non_finite_rejected(self, value: float | str) -> None:
        """Test that NaN and infinities are not accepted as amounts."""
        with pytest.raises(ValidationError):
            LineItem(name="Test", price=value, total=1)


class TestReceiptRecord:
    """Test ReceiptRecord model."""

    def test_camel_case_input(self) -> None:
        """Test the extraction service wire format."""
        record = ReceiptRecord.model_validate(
            {
                "storeName": "Sample Mart",
                "date": "2024-03-01T14:30:00",
                "items": [{"name": "Milk", "quantity": 1, "price": 200, "total": 200}],
                "subtotal": 500,
                "tax": 50,
                "total": 550,
                "paymentMethod": "Cash",
            }
        )
        assert record.store_name == "Sample Mart"
        assert record.payment_method == "Cash"
        assert record.item_count == 1

    def test_snake_case_input(self) -> None:
        """Test populating by attribute name."""
        record = ReceiptRecord(
            store_name="Shop",
            date="2024-01-01T12:00:00",
            subtotal=0,
            tax=0,
            total=0,
        )
        assert record.items == []
        assert record.payment_method is None

    def test_date_passed_through_verbatim(self) -> None:
        """Test that the date is never parsed or normalized."""
        record = ReceiptRecord(
            store_name="Shop", date="令和6年3月1日", subtotal=1, tax=0, total=1
        )
        assert record.date == "令和6年3月1日"

    def test_no_amount_consistency_check(self) -> None:
        """Test that subtotal + tax != total is accepted."""
        record = ReceiptRecord(
            store_name="Shop", date="2024-01-01T12:00:00", subtotal=100, tax=10, total=1
        )
        assert record.total == 1.0

    def test_missing_required_fields(self) -> None:
        """Test that required fields are enforced."""
        with pytest.raises(ValidationError):
            ReceiptRecord.model_validate({"storeName": "Shop", "items": []})

    def test_dump_uses_wire_names(self) -> None:
        """Test serialization back to camelCase."""
        record = ReceiptRecord(
            store_name="Shop", date="2024-01-01T12:00:00", subtotal=1, tax=0, total=1
        )
        data = record.model_dump(by_alias=True)
        assert "storeName" in data
        assert "paymentMethod" in data


class TestWriteResult:
    """Test WriteResult model."""

    def test_wire_names(self) -> None:
        """Test camelCase output fields."""
        result = WriteResult(
            success=True, message="ok", file_path="/tmp/r.csv", recorded_count=2
        )
        assert result.model_dump(by_alias=True) == {
            "success": True,
            "message": "ok",
            "filePath": "/tmp/r.csv",
            "recordedCount": 2,
        }

    def test_failure_defaults(self) -> None:
        """Test empty path and zero count defaults."""
        result = WriteResult(success=False, message="boom")
        assert result.file_path == ""
        assert result.recorded_count == 0
