"""
Activity Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of record changes
2. Debugging capability for AI and storage failures

The activity logger:
- Writes structured JSON lines through structlog
- Gracefully handles failures (logging never crashes the app)
"""

import logging
import sys
from typing import Optional

import structlog

from smartshop.models.activity import ActivityEvent, ActivityEventBuilder


_logging_configured = False


def configure_logging(level: str = "INFO") -> None:
    """
    Configure stdlib logging and structlog once.

    Later calls only change the level.
    """
    global _logging_configured

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger("smartshop")
    root_logger.setLevel(numeric_level)

    if _logging_configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.propagate = False

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _logging_configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger under the smartshop namespace."""
    configure_logging()
    if not name.startswith("smartshop"):
        name = f"smartshop.{name}"
    return structlog.get_logger(name)


class ActivityLogger:
    """
    Central activity logging service.

    One method per kind of event; each builds an ActivityEvent and
    writes it as a structured log line.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or get_logger("smartshop.activity")

    def log(self, event: ActivityEvent) -> bool:
        """
        Log an activity event.

        Returns False if the log write itself failed.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity.value == "error":
                self._logger.error("activity_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("activity_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("activity_event", **log_dict)
            else:
                self._logger.info("activity_event", **log_dict)
        except (OSError, ValueError, TypeError):
            # A broken log stream must not take the app down
            return False

        return True

    def log_record_saved(
        self,
        record_id: str,
        name: str,
        created: bool,
        collection_size: int,
    ) -> None:
        """Log record creation or update."""
        self.log(ActivityEventBuilder.record_saved(
            record_id=record_id,
            name=name,
            created=created,
            collection_size=collection_size,
        ))

    def log_record_deleted(
        self,
        record_id: str,
        existed: bool,
        collection_size: int,
    ) -> None:
        """Log record removal."""
        self.log(ActivityEventBuilder.record_deleted(
            record_id=record_id,
            existed=existed,
            collection_size=collection_size,
        ))

    def log_validation_failed(
        self,
        issues: list[dict],
        record_id: Optional[str] = None,
    ) -> None:
        """Log a save rejected by validation."""
        self.log(ActivityEventBuilder.record_validation_failed(
            issues=issues,
            record_id=record_id,
        ))

    def log_store_load_failed(self, key: str, error_message: str) -> None:
        """Log an unreadable record blob."""
        self.log(ActivityEventBuilder.store_load_failed(
            key=key,
            error_message=error_message,
        ))

    def log_store_write_failed(self, key: str, error_message: str) -> None:
        """Log a failed record blob write."""
        self.log(ActivityEventBuilder.store_write_failed(
            key=key,
            error_message=error_message,
        ))

    def log_ai_parse_completed(self, source: str, fields: list[str]) -> None:
        """Log a successful AI extraction."""
        self.log(ActivityEventBuilder.ai_parse_completed(
            source=source,
            fields=fields,
        ))

    def log_ai_parse_failed(self, source: str, error_message: str) -> None:
        """Log an AI extraction that produced nothing usable."""
        self.log(ActivityEventBuilder.ai_parse_failed(
            source=source,
            error_message=error_message,
        ))

    def log_advice_generated(self, record_count: int, length: int) -> None:
        """Log generated spending advice."""
        self.log(ActivityEventBuilder.advice_generated(
            record_count=record_count,
            length=length,
        ))

    def log_advice_failed(self, record_count: int, error_message: str) -> None:
        """Log an advice request that failed."""
        self.log(ActivityEventBuilder.advice_failed(
            record_count=record_count,
            error_message=error_message,
        ))

    def log_image_rejected(self, mime_type: str, size: int, reason: str) -> None:
        """Log an image refused before it reached the AI model."""
        self.log(ActivityEventBuilder.image_rejected(
            mime_type=mime_type,
            size=size,
            reason=reason,
        ))
