"""
AI Assistance for Smart Shop Tracker

DESIGN DECISION: The AI model is a capability behind a small interface
(ShoppingAssistant) with three operations:
1. parse_text  - free text -> suggested record fields
2. parse_image - screenshot / receipt photo -> suggested record fields
3. summarize   - record list -> short spending summary

The core only depends on the interface, so tests use a fake and the
Gemini implementation can be swapped.

CRITICAL BOUNDARIES:
- The AI only SUGGESTS form values. Nothing it returns is saved
  until the user submits the form.
- Every call is single-shot. No retries, no queueing. Any failure
  (network, empty response, malformed JSON, missing required fields)
  becomes None, and the caller shows a recoverable notice.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

import google.generativeai as genai
from pydantic import ValidationError

from smartshop.audit import get_logger
from smartshop.config import get_settings
from smartshop.config.settings import GeminiSettings
from smartshop.models.record import (
    Category,
    ParsedRecord,
    PurchaseStatus,
    ShoppingRecord,
    UnitCostType,
    UsageStatus,
)


logger = get_logger(__name__)


def _enum_values(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)


# Field schema shared by the text and image prompts
RECORD_FIELD_SCHEMA = f"""{{
  "name": string (product name, REQUIRED),
  "category": one of [{_enum_values(Category)}],
  "status": one of [{_enum_values(PurchaseStatus)}],
  "listPrice": number (original / marked price),
  "actualPrice": number (price paid or to pay, REQUIRED),
  "discountRate": number (0-100),
  "purchaseDate": string "YYYY-MM-DD" if mentioned, "" otherwise,
  "usageStatus": one of [{_enum_values(UsageStatus)}],
  "unitCostType": one of [{_enum_values(UnitCostType)}],
  "unitCost": number,
  "link": string,
  "notes": string (any other details mentioned)
}}"""


def build_advice_payload(records: Sequence[ShoppingRecord]) -> str:
    """
    Compact JSON summary of the records for the advice prompt.

    Only name, price, category and status are sent.
    """
    return json.dumps(
        [
            {
                "n": record.name,
                "p": record.actual_price,
                "c": record.category.value,
                "s": record.status.value,
            }
            for record in records
        ],
        ensure_ascii=False,
    )


def extract_json_object(text: str) -> Optional[dict[str, Any]]:
    """Find and parse the outermost JSON object in a model response."""
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return None
    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def parsed_record_from_text(text: str) -> Optional[ParsedRecord]:
    """
    Turn a model response into a usable ParsedRecord.

    Returns None unless the response holds at least a name and an
    actual price.
    """
    data = extract_json_object(text)
    if data is None:
        return None
    try:
        parsed = ParsedRecord.model_validate(data)
    except ValidationError:
        return None
    return parsed if parsed.is_usable else None


class ShoppingAssistant(ABC):
    """Capability interface for AI assistance."""

    @abstractmethod
    async def parse_text(self, text: str) -> Optional[ParsedRecord]:
        """Suggest record fields from a free-text description."""
        pass

    @abstractmethod
    async def parse_image(
        self,
        image_bytes: bytes,
        mime_type: str,
        text_context: str = "",
    ) -> Optional[ParsedRecord]:
        """Suggest record fields from a product page, cart or receipt image."""
        pass

    @abstractmethod
    async def summarize(self, records: Sequence[ShoppingRecord]) -> Optional[str]:
        """Short natural-language spending summary, or None on failure."""
        pass


class GeminiShoppingAssistant(ShoppingAssistant):
    """
    ShoppingAssistant backed by Google Gemini.

    Parsing calls ask for a JSON response; the JSON is validated into a
    ParsedRecord before anything reaches the form.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
    ):
        self._settings = settings or get_settings().gemini
        if model is None:
            self._configure_genai()
        else:
            self._model = model

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def _generate(self, contents: Any, json_mode: bool) -> str:
        kwargs = {}
        if json_mode:
            kwargs["generation_config"] = {
                "response_mime_type": "application/json",
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        response = await self._model.generate_content_async(contents, **kwargs)
        return (response.text or "").strip()

    async def parse_text(self, text: str) -> Optional[ParsedRecord]:
        if not text or not text.strip():
            return None

        prompt = f"""Extract shopping item details from the following text into a JSON object.

Analyze the text to determine the product name, price (list and actual), category, and status.
- If a price is mentioned as "original" or "market price", map it to listPrice.
- If "bought" or past tense implies a purchase, set status to "bought", otherwise "planned".
- Calculate discountRate if both prices are available ((list - actual) / list * 100).
- Infer the category from context; use "other" if unsure.

Respond with ONLY a JSON object in this format:
{RECORD_FIELD_SCHEMA}

Text to parse:
{text.strip()}"""

        try:
            response_text = await self._generate(prompt, json_mode=True)
        except Exception as e:
            logger.warning("gemini_parse_text_failed", error=str(e))
            return None

        parsed = parsed_record_from_text(response_text)
        if parsed is None:
            logger.warning("gemini_parse_text_unusable", response_length=len(response_text))
        return parsed

    async def parse_image(
        self,
        image_bytes: bytes,
        mime_type: str,
        text_context: str = "",
    ) -> Optional[ParsedRecord]:
        if not image_bytes:
            return None

        context_line = (
            f"Additional user context: {text_context.strip()}\n"
            if text_context and text_context.strip() else ""
        )
        prompt = f"""Analyze this image (screenshot of a product page, shopping cart, or receipt) and extract shopping item details into a JSON object.

Look for product name, prices (list and actual/paid), category, status, date, etc.
{context_line}- If a price is crossed out, it is the listPrice. The main price is actualPrice.
- If it looks like a completed order or receipt, set status to "bought".
- Infer the category; use "other" if unsure.

Respond with ONLY a JSON object in this format:
{RECORD_FIELD_SCHEMA}"""

        contents = [
            {"mime_type": mime_type, "data": image_bytes},
            prompt,
        ]

        try:
            response_text = await self._generate(contents, json_mode=True)
        except Exception as e:
            logger.warning("gemini_parse_image_failed", error=str(e), mime_type=mime_type)
            return None

        parsed = parsed_record_from_text(response_text)
        if parsed is None:
            logger.warning("gemini_parse_image_unusable", response_length=len(response_text))
        return parsed

    async def summarize(self, records: Sequence[ShoppingRecord]) -> Optional[str]:
        if not records:
            return None

        prompt = f"""Analyze these shopping items and provide a brief, helpful financial summary and advice.
Focus on spending habits, potential savings, and category distribution. Keep it under 100 words.

Each item has n (name), p (price), c (category), s (status: bought or planned).
Items: {build_advice_payload(records)}"""

        try:
            advice = await self._generate(prompt, json_mode=False)
        except Exception as e:
            logger.warning("gemini_summarize_failed", error=str(e))
            return None

        return advice or None
