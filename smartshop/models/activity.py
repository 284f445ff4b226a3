"""
Activity Models for Smart Shop Tracker

Every significant action in the system produces one structured log event.
This provides:
1. Traceability of what happened to a record
2. Debugging information when an AI call or the store misbehaves

DESIGN DECISION: Events are only logged, never stored with the records.
The record blob stays a plain list of records.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Record store
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    RECORD_VALIDATION_FAILED = "record_validation_failed"
    STORE_LOAD_FAILED = "store_load_failed"
    STORE_WRITE_FAILED = "store_write_failed"

    # AI assistance
    AI_PARSE_COMPLETED = "ai_parse_completed"
    AI_PARSE_FAILED = "ai_parse_failed"
    ADVICE_GENERATED = "advice_generated"
    ADVICE_FAILED = "advice_failed"
    IMAGE_REJECTED = "image_rejected"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single logged event."""

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: ActivityEventType = Field(
        ...,
        description="Type of event"
    )
    severity: ActivitySeverity = Field(
        default=ActivitySeverity.INFO,
        description="Event severity"
    )
    record_id: Optional[str] = Field(
        default=None,
        description="ID of the record this event relates to"
    )
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "record_id": self.record_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.record_saved(record_id, name, created=True)
        event = ActivityEventBuilder.ai_parse_failed("text", "empty response")
    """

    @staticmethod
    def record_saved(
        record_id: str,
        name: str,
        created: bool,
        collection_size: int,
    ) -> ActivityEvent:
        event_type = (
            ActivityEventType.RECORD_CREATED if created
            else ActivityEventType.RECORD_UPDATED
        )
        return ActivityEvent(
            event_type=event_type,
            record_id=record_id,
            description=f"Record {'created' if created else 'updated'}: {name}",
            details={"collection_size": collection_size},
        )

    @staticmethod
    def record_deleted(
        record_id: str,
        existed: bool,
        collection_size: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RECORD_DELETED,
            record_id=record_id,
            description=(
                "Record deleted" if existed
                else "Delete requested for unknown record (no-op)"
            ),
            details={"existed": existed, "collection_size": collection_size},
        )

    @staticmethod
    def record_validation_failed(
        issues: list[dict],
        record_id: Optional[str] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RECORD_VALIDATION_FAILED,
            severity=ActivitySeverity.WARNING,
            record_id=record_id,
            description=f"Record rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def store_load_failed(key: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STORE_LOAD_FAILED,
            severity=ActivitySeverity.WARNING,
            description="Stored records unreadable, starting from an empty list",
            details={"key": key},
            error_message=error_message,
        )

    @staticmethod
    def store_write_failed(key: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STORE_WRITE_FAILED,
            severity=ActivitySeverity.ERROR,
            description="Could not write records",
            details={"key": key},
            error_message=error_message,
        )

    @staticmethod
    def ai_parse_completed(source: str, fields: list[str]) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.AI_PARSE_COMPLETED,
            description=f"AI extracted {len(fields)} fields from {source}",
            details={"source": source, "fields": fields},
        )

    @staticmethod
    def ai_parse_failed(source: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.AI_PARSE_FAILED,
            severity=ActivitySeverity.WARNING,
            description=f"AI could not extract a record from {source}",
            details={"source": source},
            error_message=error_message,
        )

    @staticmethod
    def advice_generated(record_count: int, length: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ADVICE_GENERATED,
            description=f"Spending advice generated for {record_count} records",
            details={"record_count": record_count, "length": length},
        )

    @staticmethod
    def advice_failed(record_count: int, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.ADVICE_FAILED,
            severity=ActivitySeverity.WARNING,
            description="Spending advice unavailable",
            details={"record_count": record_count},
            error_message=error_message,
        )

    @staticmethod
    def image_rejected(mime_type: str, size: int, reason: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.IMAGE_REJECTED,
            severity=ActivitySeverity.WARNING,
            description="Image rejected before AI parsing",
            details={"mime_type": mime_type, "size_bytes": size},
            error_message=reason,
        )

