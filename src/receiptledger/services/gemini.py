"""Gemini AI service for receipt extraction."""

from __future__ import annotations

import base64
import json
import logging
import time
from io import BytesIO
from typing import TYPE_CHECKING, Any

import google.generativeai as genai
from PIL import Image

from receiptledger.models.receipt import ReceiptRecord
from receiptledger.services.file_processor import (
    FileProcessingError,
    FileProcessorService,
    FileType,
)

if TYPE_CHECKING:
    from receiptledger.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_TIME = "12:00:00"


class GeminiService:
    """Service for turning receipt images into ``ReceiptRecord`` objects."""

    def __init__(self, settings: Settings) -> None:
        """Initialize the Gemini service."""
        self.settings = settings
        self.file_processor = FileProcessorService()
        genai.configure(api_key=settings.gemini_api_key)  # type: ignore[attr-defined]

        # Configure the model with JSON schema response
        self.model = genai.GenerativeModel(  # type: ignore[attr-defined]
            model_name=settings.gemini_model,
            generation_config={  # type: ignore[arg-type]
                "temperature": 0.1,
                "top_p": 0.95,
                "top_k": 40,
                "max_output_tokens": 4096,
                "response_mime_type": "application/json",
            },
        )

    async def extract_receipt_data(
        self,
        file_base64: str,
        additional_context: str | None = None,
        file_type: FileType | str | None = None,
    ) -> ReceiptRecord:
        """Extract receipt data from a base64 encoded image.

        Args:
            file_base64: Base64 encoded receipt image
            additional_context: Optional context to help with extraction
            file_type: Optional file type hint (auto-detected if not provided)

        Returns:
            ReceiptRecord: Extracted receipt data

        Raises:
            ValueError: If image decoding fails, the model response is not
                JSON, or the extracted data doesn't match the schema
            TypeError: If the model returns something other than an object
            FileProcessingError: If file type is unsupported or corrupted
        """
        start_time = time.time()

        try:
            if isinstance(file_type, str):
                file_type = FileType.from_extension(file_type)

            processed_file = await self.file_processor.process_file(
                file_base64, file_type
            )

            image_data = base64.b64decode(processed_file.content)
            image = Image.open(BytesIO(image_data))

            prompt = self._build_extraction_prompt(additional_context)

            response = self.model.generate_content(
                [prompt, image],
                request_options={"timeout": self.settings.gemini_timeout},
            )

            if not response.text:
                msg = "No response from Gemini model"
                raise ValueError(msg)

            try:
                extracted_data = json.loads(response.text)
                logger.debug("Gemini extracted data: %s", extracted_data)
            except json.JSONDecodeError as e:
                msg = f"Failed to parse Gemini response as JSON: {response.text}"
                raise ValueError(msg) from e

            extracted_data = self._unwrap_response(extracted_data)
            receipt = ReceiptRecord.model_validate(extracted_data)

            logger.info(
                "Extracted %d item(s) from %s receipt in %.2f seconds",
                receipt.item_count,
                processed_file.file_type.value,
                time.time() - start_time,
            )
            return receipt

        except FileProcessingError:
            raise
        except (OSError, ValueError) as e:
            msg = f"Failed to decode or process file: {e}"
            raise ValueError(msg) from e

    def _unwrap_response(self, extracted_data: Any) -> dict[str, Any]:  # noqa: ANN401
        """Normalize the decoded JSON payload to a single object."""
        # Gemini occasionally wraps the object in a list
        if isinstance(extracted_data, list):
            if extracted_data and isinstance(extracted_data[0], dict):
                logger.warning("Gemini returned list, using first item")
                return extracted_data[0]
            msg = f"Gemini returned invalid list format: {extracted_data}"
            raise ValueError(msg)
        if not isinstance(extracted_data, dict):
            msg = f"Gemini returned invalid data type: {type(extracted_data)}"
            raise TypeError(msg)
        return extracted_data

    def _build_extraction_prompt(self, additional_context: str | None) -> str:
        """Build the prompt for receipt extraction."""
        base_prompt = (
            "You read Japanese shop receipts for a household account book. "
            "Extract the receipt in this image and return it as a JSON object "
            "matching this schema:\n\n"
            "{\n"
            '    "storeName": "string (required, shop name printed at the top)",\n'
            '    "date": "YYYY-MM-DDTHH:mm:ss (required)",\n'
            '    "items": [\n'
            "        {\n"
            '            "name": "string",\n'
            '            "quantity": "number",\n'
            '            "price": "number (unit price)",\n'
            '            "total": "number (quantity x price)"\n'
            "        }\n"
            "    ],\n"
            '    "subtotal": "number (before tax, required)",\n'
            '    "tax": "number (consumption tax, required)",\n'
            '    "total": "number (tax included, required)",\n'
            '    "paymentMethod": "string or null (cash, credit card, '
            'e-money, ...)"\n'
            "}\n\n"
            "Important instructions:\n"
            "1. Always format the date as YYYY-MM-DDTHH:mm:ss\n"
            f"2. If the receipt shows no time, use {DEFAULT_TIME}\n"
            "3. Return every amount as a plain number without commas or yen signs\n"
            "4. Transcribe item names as accurately as possible\n"
            "5. If a quantity is not printed, use 1\n"
            "6. Keep tax-inclusive and tax-exclusive amounts apart\n"
            "7. Only set paymentMethod when it is legible, otherwise null\n"
            "8. List the items in the order they are printed"
        )

        if additional_context:
            base_prompt += f"\n\nAdditional context: {additional_context}"

        return base_prompt
