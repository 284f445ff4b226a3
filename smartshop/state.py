"""
Application State

DESIGN DECISION: All UI state lives in one immutable AppState object.
Every user event is a pure function (state, event data) -> new state.
The UI keeps exactly one AppState and swaps it after each event, so
there is no other mutable UI state to keep in sync.

The records held here are a view of the store, refreshed from the
collection each store operation returns.
"""

import html
import time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from smartshop.models.record import ParsedRecord, PurchaseStatus, ShoppingRecord


class NoticeKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Notice(BaseModel):
    """A transient user-facing message."""
    model_config = ConfigDict(frozen=True)

    message: str
    kind: NoticeKind = NoticeKind.SUCCESS


class Toast(BaseModel):
    """A notice queued for display."""
    model_config = ConfigDict(frozen=True)

    id: int
    notice: Notice
    created_at: float


class AppState(BaseModel):
    """Everything the UI shows, in one place."""
    model_config = ConfigDict(frozen=True)

    records: list[ShoppingRecord] = Field(default_factory=list)
    active_tab: PurchaseStatus = PurchaseStatus.BOUGHT
    show_stats: bool = True

    # Record form
    form_open: bool = False
    editing_id: Optional[str] = None
    form_defaults: Optional[dict[str, Any]] = None

    # Record awaiting delete confirmation
    pending_delete_id: Optional[str] = None

    # AI assistance; the loading flags guard against duplicate requests
    advice: str = ""
    advice_loading: bool = False
    parse_loading: bool = False

    toasts: list[Toast] = Field(default_factory=list)
    next_toast_id: int = 1


def _update(state: AppState, **changes: Any) -> AppState:
    return state.model_copy(update=changes)


# =============================================================================
# NOTIFICATIONS
# =============================================================================

def toast_pushed(
    state: AppState,
    notice: Notice,
    now: Optional[float] = None,
) -> AppState:
    toast = Toast(
        id=state.next_toast_id,
        notice=notice,
        created_at=time.time() if now is None else now,
    )
    return _update(
        state,
        toasts=[*state.toasts, toast],
        next_toast_id=state.next_toast_id + 1,
    )


def toasts_expired(
    state: AppState,
    ttl_seconds: float,
    now: Optional[float] = None,
) -> AppState:
    now = time.time() if now is None else now
    alive = [toast for toast in state.toasts if now - toast.created_at < ttl_seconds]
    if len(alive) == len(state.toasts):
        return state
    return _update(state, toasts=alive)


# =============================================================================
# RECORDS AND NAVIGATION
# =============================================================================

def records_loaded(state: AppState, records: list[ShoppingRecord]) -> AppState:
    return _update(state, records=list(records))


def tab_selected(state: AppState, tab: PurchaseStatus) -> AppState:
    return _update(state, active_tab=tab)


def stats_toggled(state: AppState) -> AppState:
    return _update(state, show_stats=not state.show_stats)


def new_form_opened(state: AppState) -> AppState:
    return _update(state, form_open=True, editing_id=None, form_defaults=None)


def edit_form_opened(state: AppState, record_id: str) -> AppState:
    """Open the form pre-filled with an existing record. Unknown ids are ignored."""
    for record in state.records:
        if record.id == record_id:
            return _update(
                state,
                form_open=True,
                editing_id=record.id,
                form_defaults=record.form_fields(),
            )
    return state


def form_closed(state: AppState) -> AppState:
    return _update(state, form_open=False, editing_id=None, form_defaults=None)


def record_saved(
    state: AppState,
    records: list[ShoppingRecord],
    notice: Notice,
    now: Optional[float] = None,
) -> AppState:
    state = _update(
        state,
        records=list(records),
        form_open=False,
        editing_id=None,
        form_defaults=None,
    )
    return toast_pushed(state, notice, now)


def record_deleted(
    state: AppState,
    records: list[ShoppingRecord],
    record_id: str,
    notice: Notice,
    now: Optional[float] = None,
) -> AppState:
    if state.editing_id == record_id:
        state = form_closed(state)
    state = _update(state, records=list(records), pending_delete_id=None)
    return toast_pushed(state, notice, now)


def delete_requested(state: AppState, record_id: str) -> AppState:
    """Ask for confirmation before deleting. Unknown ids are ignored."""
    if any(record.id == record_id for record in state.records):
        return _update(state, pending_delete_id=record_id)
    return state


def delete_cancelled(state: AppState) -> AppState:
    return _update(state, pending_delete_id=None)


def delete_confirmed(
    state: AppState,
    records: list[ShoppingRecord],
    notice: Notice,
    now: Optional[float] = None,
) -> AppState:
    """
    Apply the outcome of deleting the pending record.

    `records` and `notice` are what the store returned. On an error
    notice the collection is left as it was.
    """
    record_id = state.pending_delete_id
    if record_id is None:
        return state
    if notice.kind == NoticeKind.ERROR:
        return store_failed(_update(state, pending_delete_id=None), notice, now)
    return record_deleted(state, records, record_id, notice, now)


def store_failed(
    state: AppState,
    notice: Notice,
    now: Optional[float] = None,
) -> AppState:
    """A save or delete could not be written; the form stays as it was."""
    return toast_pushed(state, notice, now)


# =============================================================================
# AI ASSISTANCE
# =============================================================================

def smart_parse_started(state: AppState) -> AppState:
    return _update(state, parse_loading=True)


def smart_parsed(
    state: AppState,
    parsed: ParsedRecord,
    notice: Notice,
    now: Optional[float] = None,
) -> AppState:
    """Open a new-record form pre-filled with the AI suggestion."""
    state = _update(
        state,
        parse_loading=False,
        form_open=True,
        editing_id=None,
        form_defaults=parsed.to_form_defaults(),
    )
    return toast_pushed(state, notice, now)


def smart_parse_failed(
    state: AppState,
    notice: Notice,
    now: Optional[float] = None,
) -> AppState:
    return toast_pushed(_update(state, parse_loading=False), notice, now)


def advice_requested(state: AppState) -> AppState:
    return _update(state, advice_loading=True)


def advice_received(
    state: AppState,
    advice: str,
    notice: Notice,
    now: Optional[float] = None,
) -> AppState:
    return toast_pushed(_update(state, advice=advice, advice_loading=False), notice, now)


def advice_failed(
    state: AppState,
    notice: Notice,
    now: Optional[float] = None,
) -> AppState:
    return toast_pushed(_update(state, advice_loading=False), notice, now)


def advice_cleared(state: AppState) -> AppState:
    return _update(state, advice="")


# =============================================================================
# VIEWS
# =============================================================================

def visible_records(state: AppState) -> list[ShoppingRecord]:
    """Records for the active tab, newest first (store order)."""
    return [record for record in state.records if record.status == state.active_tab]


def tab_counts(state: AppState) -> dict[PurchaseStatus, int]:
    counts = {status: 0 for status in PurchaseStatus}
    for record in state.records:
        counts[record.status] += 1
    return counts


def can_request_advice(state: AppState) -> bool:
    return bool(state.records) and not state.advice_loading


def can_smart_parse(state: AppState) -> bool:
    return not state.parse_loading


def advice_html(state: AppState) -> str:
    """The advice box markup, with the AI text escaped. Empty without advice."""
    if not state.advice:
        return ""
    return (
        '<div class="advice-box">'
        "<h4>💡 Advice</h4>"
        f"<p>{html.escape(state.advice)}</p>"
        "</div>"
    )
