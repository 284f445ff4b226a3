"""
Main Orchestrator for Smart Shop Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Save (form -> validate -> assign identity -> upsert)
2. Delete (id -> remove)
3. Smart add (text or image -> AI suggestion -> pre-filled form)
4. Advice (records -> AI summary)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing the AI suggests is stored until the user saves the form
- A failed AI call or a failed write never takes the app down; it
  becomes a Notice the UI can show
- Every step is logged

Each flow returns a Notice alongside its result. The UI turns notices
into toasts; the core never renders anything itself.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union

from smartshop.agents import GeminiShoppingAssistant, ShoppingAssistant
from smartshop.audit import ActivityLogger, get_logger
from smartshop.config import get_settings
from smartshop.config.settings import Settings
from smartshop.models.record import ParsedRecord, ShoppingRecord, ShoppingRecordData
from smartshop.models.stats import SpendingStats
from smartshop.services.image import ImageService, InvalidImageError
from smartshop.services.storage import (
    ConnectionError,
    InMemoryBlobStore,
    JsonFileBlobStore,
    RecordStore,
    StorageError,
)
from smartshop.state import Notice, NoticeKind
from smartshop.stats import compute_stats
from smartshop.validation import RecordValidationError, RecordValidator


logger = get_logger(__name__)

AI_DISABLED_MESSAGE = "AI features are disabled. Set GEMINI_API_KEY to enable them."
PARSE_FAILED_MESSAGE = "Could not recognize the content. Try adding more detail."


class ShoppingTracker:
    """
    Orchestrates every user action against the record store.

    The assistant is optional. Without one, the AI flows return an
    error notice and everything else keeps working.
    """

    def __init__(
        self,
        store: RecordStore,
        assistant: Optional[ShoppingAssistant] = None,
        validator: Optional[RecordValidator] = None,
        image_service: Optional[ImageService] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._store = store
        self._assistant = assistant
        self._validator = validator or RecordValidator()
        self._image_service = image_service or ImageService()
        self._activity_logger = activity_logger or ActivityLogger()

    @property
    def ai_enabled(self) -> bool:
        return self._assistant is not None

    @property
    def validator(self) -> RecordValidator:
        return self._validator

    def load(self) -> list[ShoppingRecord]:
        """Current collection, empty if storage cannot be read."""
        return self._store.list_all()

    def save(
        self,
        data: Union[ShoppingRecordData, dict[str, Any]],
        editing: Optional[ShoppingRecord] = None,
    ) -> tuple[list[ShoppingRecord], Notice]:
        """
        Save form input as a new record, or as an update of `editing`.

        New records get a fresh id and creation time. Updates keep the
        id and creation time of the record being edited.

        Returns:
            (records, notice) where records is the resulting collection

        Raises:
            RecordValidationError: If the input has blocking errors
        """
        try:
            record_data, _ = self._validator.build(data)
        except RecordValidationError as e:
            self._activity_logger.log_validation_failed(
                issues=[issue.model_dump() for issue in e.result.issues],
                record_id=editing.id if editing else None,
            )
            raise

        if editing is not None:
            record = ShoppingRecord.from_data(record_data, editing.id, editing.created_at)
        else:
            record = ShoppingRecord.from_data(
                record_data,
                self._store.new_id(),
                datetime.now(timezone.utc),
            )

        try:
            records = self._store.upsert(record)
        except StorageError as e:
            self._activity_logger.log_store_write_failed(self._store.key, str(e))
            return self._store.list_all(), Notice(
                message=f"Could not save the item: {e}",
                kind=NoticeKind.ERROR,
            )

        self._activity_logger.log_record_saved(
            record_id=record.id,
            name=record.name,
            created=editing is None,
            collection_size=len(records),
        )
        message = "Item updated" if editing is not None else "Item added"
        return records, Notice(message=message, kind=NoticeKind.SUCCESS)

    def delete(self, record_id: str) -> tuple[list[ShoppingRecord], Notice]:
        """Remove a record. Unknown ids leave the collection unchanged."""
        existed = self._store.get(record_id) is not None

        try:
            records = self._store.remove(record_id)
        except StorageError as e:
            self._activity_logger.log_store_write_failed(self._store.key, str(e))
            return self._store.list_all(), Notice(
                message=f"Could not delete the item: {e}",
                kind=NoticeKind.ERROR,
            )

        self._activity_logger.log_record_deleted(
            record_id=record_id,
            existed=existed,
            collection_size=len(records),
        )
        return records, Notice(message="Item deleted", kind=NoticeKind.INFO)

    async def smart_parse(
        self,
        text: str = "",
        image: Optional[tuple[bytes, str]] = None,
    ) -> tuple[Optional[ParsedRecord], Notice]:
        """
        Ask the AI to suggest record fields.

        Args:
            text: Free-text description; also sent as context with an image
            image: (bytes, mime_type) of a screenshot or receipt. When
                given, the image is parsed and the text is only context.

        Returns:
            (parsed, notice); parsed is None on any failure
        """
        if self._assistant is None:
            return None, Notice(message=AI_DISABLED_MESSAGE, kind=NoticeKind.ERROR)

        if image is not None:
            image_bytes, mime_type = image
            try:
                upload = self._image_service.validate(image_bytes, mime_type)
            except InvalidImageError as e:
                self._activity_logger.log_image_rejected(
                    mime_type=mime_type,
                    size=len(image_bytes or b""),
                    reason=str(e),
                )
                return None, Notice(message=str(e), kind=NoticeKind.ERROR)
            source = "image"
        elif text and text.strip():
            upload = None
            source = "text"
        else:
            return None, Notice(
                message="Describe the item or attach an image first",
                kind=NoticeKind.INFO,
            )

        try:
            if upload is not None:
                parsed = await self._assistant.parse_image(upload.data, upload.mime_type, text)
            else:
                parsed = await self._assistant.parse_text(text)
        except Exception as e:
            logger.warning("smart_parse_error", source=source, error=str(e))
            parsed = None

        if parsed is None or not parsed.is_usable:
            self._activity_logger.log_ai_parse_failed(source, "no usable result")
            return None, Notice(message=PARSE_FAILED_MESSAGE, kind=NoticeKind.ERROR)

        self._activity_logger.log_ai_parse_completed(
            source=source,
            fields=sorted(parsed.model_dump(exclude_none=True)),
        )
        return parsed, Notice(
            message="Details recognized. Please review before saving.",
            kind=NoticeKind.SUCCESS,
        )

    async def get_advice(
        self,
        records: list[ShoppingRecord],
    ) -> tuple[Optional[str], Notice]:
        """
        Ask the AI for a short spending summary of the given records.

        An empty collection never reaches the AI.
        """
        if not records:
            return None, Notice(message="Add some items first", kind=NoticeKind.INFO)

        if self._assistant is None:
            return None, Notice(message=AI_DISABLED_MESSAGE, kind=NoticeKind.ERROR)

        try:
            advice = await self._assistant.summarize(records)
        except Exception as e:
            logger.warning("advice_error", error=str(e))
            advice = None

        if not advice:
            self._activity_logger.log_advice_failed(len(records), "no advice returned")
            return None, Notice(
                message="Could not generate advice right now",
                kind=NoticeKind.ERROR,
            )

        self._activity_logger.log_advice_generated(len(records), len(advice))
        return advice, Notice(message="Advice updated", kind=NoticeKind.SUCCESS)

    def stats(self, records: list[ShoppingRecord]) -> SpendingStats:
        return compute_stats(records)


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[ShoppingTracker, bool]:
    """
    Factory function to create all application components.

    Returns:
        (tracker, persistent) where persistent is False when records
        only live in memory for this session

    Falls back to in-memory storage if the data directory is unusable,
    and runs without AI when no Gemini API key is configured.
    """
    settings = settings or get_settings()
    activity_logger = ActivityLogger()
    storage_settings = settings.storage

    try:
        blob_store = JsonFileBlobStore(storage_settings.data_path)
        persistent = True
    except ConnectionError as e:
        logger.warning("storage_unavailable", data_dir=str(storage_settings.data_path), error=str(e))
        blob_store = InMemoryBlobStore()
        persistent = False

    store = RecordStore(
        blob_store,
        key=storage_settings.records_key,
        activity_logger=activity_logger,
    )

    gemini_settings = settings.gemini_or_none
    assistant = GeminiShoppingAssistant(gemini_settings) if gemini_settings else None
    if assistant is None:
        logger.info("ai_disabled", reason="GEMINI_API_KEY not set")

    app_settings = settings.app
    tracker = ShoppingTracker(
        store=store,
        assistant=assistant,
        validator=RecordValidator(app_settings),
        image_service=ImageService(app_settings),
        activity_logger=activity_logger,
    )

    return tracker, persistent
