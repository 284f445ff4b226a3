"""Shared fixtures: in-memory storage and a fake AI collaborator."""

from datetime import date, datetime, timezone
from io import BytesIO
from typing import Optional, Sequence

import pytest
from PIL import Image

from smartshop.agents import ShoppingAssistant
from smartshop.config.settings import AppSettings
from smartshop.models.record import (
    Category,
    ParsedRecord,
    PurchaseStatus,
    ShoppingRecord,
)
from smartshop.orchestrator import ShoppingTracker
from smartshop.services.image import ImageService
from smartshop.services.storage import InMemoryBlobStore, RecordStore
from smartshop.validation import RecordValidator


class FakeShoppingAssistant(ShoppingAssistant):
    """Returns canned results and records every call."""

    def __init__(
        self,
        parsed: Optional[ParsedRecord] = None,
        advice: Optional[str] = None,
        error: Optional[Exception] = None,
    ):
        self.parsed = parsed
        self.advice = advice
        self.error = error
        self.calls: list[tuple] = []

    async def parse_text(self, text: str) -> Optional[ParsedRecord]:
        self.calls.append(("parse_text", text))
        if self.error:
            raise self.error
        return self.parsed

    async def parse_image(
        self,
        image_bytes: bytes,
        mime_type: str,
        text_context: str = "",
    ) -> Optional[ParsedRecord]:
        self.calls.append(("parse_image", mime_type, text_context))
        if self.error:
            raise self.error
        return self.parsed

    async def summarize(self, records: Sequence[ShoppingRecord]) -> Optional[str]:
        self.calls.append(("summarize", len(records)))
        if self.error:
            raise self.error
        return self.advice


def make_record(
    record_id: str = "r1",
    name: str = "Item",
    actual_price: float = 10.0,
    list_price: float = 0.0,
    status: PurchaseStatus = PurchaseStatus.BOUGHT,
    category: Category = Category.OTHER,
    purchase_date: Optional[date] = date(2024, 1, 15),
) -> ShoppingRecord:
    return ShoppingRecord(
        id=record_id,
        name=name,
        actual_price=actual_price,
        list_price=list_price,
        status=status,
        category=category,
        purchase_date=purchase_date,
        created_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
    )


def png_bytes(width: int = 4, height: int = 4) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def store(blob_store) -> RecordStore:
    return RecordStore(blob_store)


@pytest.fixture
def assistant() -> FakeShoppingAssistant:
    return FakeShoppingAssistant()


@pytest.fixture
def tracker(store, assistant, app_settings) -> ShoppingTracker:
    return ShoppingTracker(
        store=store,
        assistant=assistant,
        validator=RecordValidator(app_settings),
        image_service=ImageService(app_settings),
    )
