"""Tests for the application state transitions."""

from conftest import make_record
from smartshop import state as app_state
from smartshop.models.record import Category, ParsedRecord, PurchaseStatus
from smartshop.state import AppState, Notice, NoticeKind


def loaded_state():
    records = [
        make_record("b2", status=PurchaseStatus.BOUGHT),
        make_record("p1", status=PurchaseStatus.PLANNED),
        make_record("b1", status=PurchaseStatus.BOUGHT),
    ]
    return app_state.records_loaded(AppState(), records)


OK = Notice(message="ok")
FAILED = Notice(message="failed", kind=NoticeKind.ERROR)


class TestNavigation:
    """Tests for tabs, stats toggle and views."""

    def test_defaults(self):
        state = AppState()
        assert state.active_tab == PurchaseStatus.BOUGHT
        assert state.show_stats
        assert not state.form_open

    def test_updates_return_new_state(self):
        """Test that transitions never mutate the old state."""
        before = loaded_state()
        after = app_state.tab_selected(before, PurchaseStatus.PLANNED)
        assert before.active_tab == PurchaseStatus.BOUGHT
        assert after.active_tab == PurchaseStatus.PLANNED

    def test_visible_records_filtered_in_store_order(self):
        state = loaded_state()
        assert [r.id for r in app_state.visible_records(state)] == ["b2", "b1"]
        state = app_state.tab_selected(state, PurchaseStatus.PLANNED)
        assert [r.id for r in app_state.visible_records(state)] == ["p1"]

    def test_tab_counts(self):
        counts = app_state.tab_counts(loaded_state())
        assert counts == {PurchaseStatus.BOUGHT: 2, PurchaseStatus.PLANNED: 1}

    def test_stats_toggled(self):
        state = app_state.stats_toggled(AppState())
        assert not state.show_stats
        assert app_state.stats_toggled(state).show_stats


class TestForm:
    """Tests for opening and closing the record form."""

    def test_new_form(self):
        state = app_state.new_form_opened(loaded_state())
        assert state.form_open
        assert state.editing_id is None
        assert state.form_defaults is None

    def test_edit_form_prefilled(self):
        state = app_state.edit_form_opened(loaded_state(), "p1")
        assert state.form_open
        assert state.editing_id == "p1"
        assert state.form_defaults["status"] == PurchaseStatus.PLANNED
        assert "id" not in state.form_defaults

    def test_edit_unknown_id_ignored(self):
        before = loaded_state()
        assert app_state.edit_form_opened(before, "missing") == before

    def test_form_closed(self):
        state = app_state.edit_form_opened(loaded_state(), "p1")
        state = app_state.form_closed(state)
        assert not state.form_open
        assert state.editing_id is None

    def test_record_saved_closes_form_and_toasts(self):
        state = app_state.edit_form_opened(loaded_state(), "p1")
        records = [make_record("new")] + list(state.records)
        state = app_state.record_saved(state, records, OK, now=100.0)
        assert not state.form_open
        assert state.records[0].id == "new"
        assert [t.notice for t in state.toasts] == [OK]

    def test_deleting_edited_record_closes_form(self):
        state = app_state.edit_form_opened(loaded_state(), "p1")
        remaining = [r for r in state.records if r.id != "p1"]
        state = app_state.record_deleted(state, remaining, "p1", OK, now=100.0)
        assert not state.form_open
        assert all(r.id != "p1" for r in state.records)

    def test_store_failure_keeps_form(self):
        state = app_state.new_form_opened(loaded_state())
        state = app_state.store_failed(state, FAILED, now=100.0)
        assert state.form_open
        assert state.toasts[-1].notice.kind == NoticeKind.ERROR


class TestDeleteConfirmation:
    """Tests for the ask-then-delete flow."""

    def test_request_asks_for_confirmation(self):
        state = app_state.delete_requested(loaded_state(), "p1")
        assert state.pending_delete_id == "p1"
        assert len(state.records) == 3

    def test_request_unknown_id_ignored(self):
        before = loaded_state()
        assert app_state.delete_requested(before, "missing") == before

    def test_cancel_keeps_record(self):
        state = app_state.delete_requested(loaded_state(), "p1")
        state = app_state.delete_cancelled(state)
        assert state.pending_delete_id is None
        assert any(r.id == "p1" for r in state.records)
        assert state.toasts == []

    def test_confirm_applies_store_result(self):
        state = app_state.delete_requested(loaded_state(), "p1")
        remaining = [r for r in state.records if r.id != "p1"]
        state = app_state.delete_confirmed(state, remaining, OK, now=100.0)
        assert state.pending_delete_id is None
        assert [r.id for r in state.records] == ["b2", "b1"]
        assert [t.notice for t in state.toasts] == [OK]

    def test_confirm_closes_form_of_deleted_record(self):
        state = app_state.edit_form_opened(loaded_state(), "p1")
        state = app_state.delete_requested(state, "p1")
        remaining = [r for r in state.records if r.id != "p1"]
        state = app_state.delete_confirmed(state, remaining, OK, now=100.0)
        assert not state.form_open

    def test_confirm_failure_keeps_records(self):
        before = app_state.delete_requested(loaded_state(), "p1")
        state = app_state.delete_confirmed(before, [], FAILED, now=100.0)
        assert state.pending_delete_id is None
        assert state.records == before.records
        assert state.toasts[-1].notice.kind == NoticeKind.ERROR

    def test_confirm_without_request_is_noop(self):
        before = loaded_state()
        assert app_state.delete_confirmed(before, [], OK, now=100.0) == before

    def test_second_request_replaces_first(self):
        state = app_state.delete_requested(loaded_state(), "p1")
        state = app_state.delete_requested(state, "b1")
        assert state.pending_delete_id == "b1"


class TestSmartParse:
    """Tests for the AI parse flow state."""

    def test_started_blocks_second_request(self):
        state = app_state.smart_parse_started(AppState())
        assert state.parse_loading
        assert not app_state.can_smart_parse(state)

    def test_parsed_opens_prefilled_form(self):
        parsed = ParsedRecord(name="Lamp", actual_price=30, category=Category.HOME)
        state = app_state.smart_parse_started(loaded_state())
        state = app_state.smart_parsed(state, parsed, OK, now=100.0)
        assert not state.parse_loading
        assert state.form_open
        assert state.editing_id is None
        assert state.form_defaults["name"] == "Lamp"
        assert state.form_defaults["category"] == Category.HOME
        assert state.form_defaults["purchase_date"] is None

    def test_failure_keeps_form_closed(self):
        state = app_state.smart_parse_started(AppState())
        state = app_state.smart_parse_failed(state, FAILED, now=100.0)
        assert not state.parse_loading
        assert not state.form_open
        assert state.toasts[-1].notice == FAILED


class TestAdvice:
    """Tests for advice state."""

    def test_cannot_request_without_records(self):
        assert not app_state.can_request_advice(AppState())

    def test_cannot_request_while_loading(self):
        state = app_state.advice_requested(loaded_state())
        assert state.advice_loading
        assert not app_state.can_request_advice(state)

    def test_received_and_cleared(self):
        state = app_state.advice_requested(loaded_state())
        state = app_state.advice_received(state, "Spend less.", OK, now=100.0)
        assert state.advice == "Spend less."
        assert not state.advice_loading
        assert app_state.advice_cleared(state).advice == ""

    def test_failed_keeps_previous_advice(self):
        state = app_state.advice_received(loaded_state(), "Old advice", OK, now=100.0)
        state = app_state.advice_requested(state)
        state = app_state.advice_failed(state, FAILED, now=101.0)
        assert state.advice == "Old advice"
        assert not state.advice_loading

    def test_advice_markup_escapes_model_text(self):
        """Test that markup in the model's reply is shown as text."""
        advice = '<img src=x onerror="alert(1)"> Spend <b>less</b> & save'
        state = app_state.advice_received(loaded_state(), advice, OK, now=100.0)
        markup = app_state.advice_html(state)
        assert markup.startswith('<div class="advice-box">')
        assert "<img" not in markup
        assert "<b>" not in markup
        assert "&lt;img src=x onerror=&quot;alert(1)&quot;&gt;" in markup
        assert "&amp; save" in markup

    def test_no_markup_without_advice(self):
        assert app_state.advice_html(AppState()) == ""


class TestToasts:
    """Tests for the toast queue."""

    def test_ids_increase(self):
        state = app_state.toast_pushed(AppState(), OK, now=1.0)
        state = app_state.toast_pushed(state, FAILED, now=2.0)
        assert [t.id for t in state.toasts] == [1, 2]

    def test_expired_toasts_dropped(self):
        state = app_state.toast_pushed(AppState(), OK, now=1.0)
        state = app_state.toast_pushed(state, FAILED, now=3.0)
        state = app_state.toasts_expired(state, ttl_seconds=3.0, now=4.5)
        assert [t.notice for t in state.toasts] == [FAILED]

    def test_nothing_expired_returns_same_state(self):
        state = app_state.toast_pushed(AppState(), OK, now=1.0)
        assert app_state.toasts_expired(state, ttl_seconds=3.0, now=2.0) is state
