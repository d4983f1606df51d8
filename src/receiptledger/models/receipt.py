"""Models for receipt data extracted from images."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Markers the extraction model sometimes leaves in amounts
_AMOUNT_NOISE = ("¥", "￥", "円", ",")


def _to_number(v: Any) -> float:  # noqa: ANN401
    """Convert numeric values (or numeric strings) to float."""
    if isinstance(v, bool):
        msg = f"Invalid type for numeric conversion: {type(v)}"
        raise ValueError(msg)  # noqa: TRY004
    if isinstance(v, str):
        cleaned = v.strip()
        for noise in _AMOUNT_NOISE:
            cleaned = cleaned.replace(noise, "")
        number = float(cleaned)
    elif isinstance(v, int | float):
        try:
            number = float(v)
        except OverflowError as e:
            msg = f"Number out of range: {v}"
            raise ValueError(msg) from e
    else:
        msg = f"Invalid type for numeric conversion: {type(v)}"
        raise ValueError(msg)
    if not math.isfinite(number):
        msg = f"Amounts must be finite numbers, got {v!r}"
        raise ValueError(msg)
    return number


class LineItem(BaseModel):
    """Individual purchased product on a receipt."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., description="商品名 (item name)")
    quantity: float = Field(default=1.0, description="数量 (quantity)")
    price: float = Field(..., description="単価 (unit price)")
    total: float = Field(..., description="小計 (quantity x price, computed upstream)")

    @field_validator("quantity", "price", "total", mode="before")
    @classmethod
    def convert_to_number(cls, v: Any) -> float:  # noqa: ANN401
        """Accept ints, floats and numeric strings."""
        return _to_number(v)


class ReceiptRecord(BaseModel):
    """Structured receipt as returned by the extraction service.

    Field names travel in camelCase on the wire (``storeName``,
    ``paymentMethod``) and are snake_case in Python; both are accepted
    on input. The ``date`` is kept verbatim and never parsed.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    store_name: str = Field(..., description="店舗名 (store name)")
    date: str = Field(
        ..., description="購入日時 in YYYY-MM-DDTHH:mm:ss form (not validated)"
    )
    items: list[LineItem] = Field(
        default_factory=list, description="Purchased items in receipt order"
    )
    subtotal: float = Field(..., description="小計 (before tax)")
    tax: float = Field(..., description="消費税 (consumption tax)")
    total: float = Field(..., description="合計金額 (total paid)")
    payment_method: str | None = Field(
        default=None, description="支払い方法 (payment method) if legible"
    )

    @field_validator("subtotal", "tax", "total", mode="before")
    @classmethod
    def convert_amounts(cls, v: Any) -> float:  # noqa: ANN401
        """Accept ints, floats and numeric strings such as ``"¥1,200"``."""
        return _to_number(v)

    @property
    def item_count(self) -> int:
        """Number of line items on the receipt."""
        return len(self.items)


class ReceiptRecordRequest(BaseModel):
    """Request model for recording a receipt image."""

    image_base64: str = Field(..., description="Base64 encoded receipt image")
    additional_context: str | None = Field(
        None,
        description="Additional context to help with extraction",
    )
