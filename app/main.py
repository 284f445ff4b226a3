"""
Streamlit Frontend for Smart Shop Tracker

The screen people use to log what they bought or plan to buy.

DESIGN PRINCIPLES:
1. One list, two tabs: bought and planned
2. AI fills in the form, the user always saves it
3. Statistics are visible at a glance and can be hidden
4. Every action ends with a short toast

All UI state lives in one AppState in st.session_state. Event handlers
compute the next state with the pure functions in smartshop.state and
store it back; nothing else in the session is mutated.
"""

import asyncio
from datetime import date
from typing import Any, Optional

import streamlit as st

from smartshop.audit import configure_logging
from smartshop.config import get_settings, validate_all_settings
from smartshop.models.record import (
    CATEGORY_LABELS,
    STATUS_LABELS,
    UNIT_COST_TYPE_LABELS,
    USAGE_STATUS_LABELS,
    Category,
    PurchaseStatus,
    ShoppingRecord,
    UnitCostType,
    UsageStatus,
    default_form_data,
)
from smartshop.orchestrator import ShoppingTracker, create_app_components
from smartshop import state as app_state
from smartshop.state import AppState, Notice, NoticeKind
from smartshop.stats import UNKNOWN_MONTH
from smartshop.validation import RecordValidationError


# Page configuration
st.set_page_config(
    page_title="Smart Shop Tracker",
    page_icon="🛒",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .advice-box {
        padding: 20px;
        background-color: #eef2ff;
        border-radius: 10px;
        border-left: 5px solid #4f46e5;
        margin: 10px 0;
    }
    .price {
        font-size: 1.4em;
        font-weight: bold;
        color: #2c3e50;
    }
    .list-price {
        text-decoration: line-through;
        color: #94a3b8;
    }
</style>
""", unsafe_allow_html=True)

TOAST_ICONS = {
    NoticeKind.SUCCESS: "✅",
    NoticeKind.ERROR: "❌",
    NoticeKind.INFO: "ℹ️",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> tuple[ShoppingTracker, bool]:
    """Get or create application components (cached)."""
    configure_logging(get_settings().app.effective_log_level)
    return create_app_components()


def get_state(tracker: ShoppingTracker) -> AppState:
    if "app_state" not in st.session_state:
        st.session_state.app_state = app_state.records_loaded(AppState(), tracker.load())
        st.session_state.shown_toasts = set()
    return st.session_state.app_state


def set_state(state: AppState) -> None:
    st.session_state.app_state = state


def main():
    """Main application entry point."""
    tracker, persistent = get_components()
    state = get_state(tracker)

    # Sidebar navigation
    st.sidebar.title("🛒 Smart Shop Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🛍️ My Items", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Describe an item or upload a screenshot
        2. Check the pre-filled form
        3. Save it as planned or bought

        **Try typing:**
        - "Bought running shoes yesterday, 89 instead of 120"
        - "Want a new kettle, around 35"
        """
    )

    if not persistent:
        st.sidebar.warning("Storage is unavailable. Items are kept for this session only.")

    if page == "🛍️ My Items":
        render_items_page(tracker, state)
    elif page == "⚙️ Settings":
        render_settings_page()

    render_toasts()


def render_toasts():
    """Show each queued notice once and drop expired ones."""
    ttl = get_settings().app.toast_ttl_seconds
    state = app_state.toasts_expired(st.session_state.app_state, ttl)
    set_state(state)

    shown = st.session_state.shown_toasts
    for toast in state.toasts:
        if toast.id not in shown:
            st.toast(toast.notice.message, icon=TOAST_ICONS[toast.notice.kind])
            shown.add(toast.id)


def render_items_page(tracker: ShoppingTracker, state: AppState):
    """Render the main page: smart add, statistics, list and form."""
    header, stats_toggle, add_button = st.columns([4, 1, 1])
    with header:
        st.title("🛍️ My Items")
    with stats_toggle:
        label = "Hide stats" if state.show_stats else "Show stats"
        if st.button(label):
            set_state(app_state.stats_toggled(state))
            st.rerun()
    with add_button:
        if st.button("➕ Add item", type="primary"):
            set_state(app_state.new_form_opened(state))
            st.rerun()

    render_smart_add(tracker, state)

    if state.show_stats:
        render_stats(tracker, state)

    if state.form_open:
        render_record_form(tracker, state)

    render_record_list(tracker, state)


def _upload_types() -> list[str]:
    formats = get_settings().app.supported_formats_list
    if "jpeg" in formats and "jpg" not in formats:
        formats = [*formats, "jpg"]
    return formats


def render_smart_add(tracker: ShoppingTracker, state: AppState):
    """Free text or a screenshot in, pre-filled form out."""
    with st.expander("✨ Smart add", expanded=not state.records):
        if not tracker.ai_enabled:
            st.info("AI features are disabled. Set GEMINI_API_KEY in your .env file to enable them.")
            return

        text = st.text_area(
            "Describe the item",
            placeholder="e.g. Bought wireless earbuds for 59.99, normally 79.99",
            help="The AI will fill in the form. You can edit everything before saving.",
        )
        uploaded_file = st.file_uploader(
            "...or upload a screenshot or receipt",
            type=_upload_types(),
        )

        if st.button(
            "🔍 Recognize",
            type="primary",
            disabled=not app_state.can_smart_parse(state),
        ):
            set_state(app_state.smart_parse_started(state))
            image = None
            if uploaded_file is not None:
                image = (uploaded_file.getvalue(), uploaded_file.type or "")

            with st.spinner("Reading the details..."):
                parsed, notice = run_async(tracker.smart_parse(text=text, image=image))

            current = st.session_state.app_state
            if parsed is not None:
                set_state(app_state.smart_parsed(current, parsed, notice))
            else:
                set_state(app_state.smart_parse_failed(current, notice))
            st.rerun()


def render_stats(tracker: ShoppingTracker, state: AppState):
    """Render totals and breakdowns for bought items."""
    stats = tracker.stats(state.records)

    col1, col2, col3 = st.columns(3)
    col1.metric("Total spent", f"{stats.total_spent:,.2f}")
    col2.metric("Total saved", f"{stats.total_saved:,.2f}")
    col3.metric("Items bought", stats.bought_count)

    if stats.is_empty:
        st.caption("Statistics appear once you mark items as bought.")
    else:
        by_category, by_month = st.columns(2)
        with by_category:
            st.markdown("**By category**")
            st.bar_chart(
                [
                    {"Category": CATEGORY_LABELS[item.category], "Spent": item.total}
                    for item in stats.category_totals
                ],
                x="Category",
                y="Spent",
            )
        with by_month:
            st.markdown("**By month**")
            st.bar_chart(
                [
                    {
                        "Month": "No date" if item.month == UNKNOWN_MONTH else item.month,
                        "Spent": item.total,
                    }
                    for item in stats.monthly_totals
                ],
                x="Month",
                y="Spent",
            )

    render_advice(tracker, state)
    st.markdown("---")


def render_advice(tracker: ShoppingTracker, state: AppState):
    """AI spending summary on request."""
    ask, clear = st.columns([3, 1])
    with ask:
        if st.button(
            "💡 Get spending advice",
            disabled=not tracker.ai_enabled or not app_state.can_request_advice(state),
        ):
            set_state(app_state.advice_requested(state))
            with st.spinner("Thinking about your spending..."):
                advice, notice = run_async(tracker.get_advice(state.records))

            current = st.session_state.app_state
            if advice:
                set_state(app_state.advice_received(current, advice, notice))
            else:
                set_state(app_state.advice_failed(current, notice))
            st.rerun()
    with clear:
        if state.advice and st.button("Clear advice"):
            set_state(app_state.advice_cleared(state))
            st.rerun()

    if state.advice:
        st.markdown(app_state.advice_html(state), unsafe_allow_html=True)


def _editing_record(state: AppState) -> Optional[ShoppingRecord]:
    for record in state.records:
        if record.id == state.editing_id:
            return record
    return None


def render_record_form(tracker: ShoppingTracker, state: AppState):
    """Render the add / edit form."""
    editing = _editing_record(state)
    defaults: dict[str, Any] = state.form_defaults or default_form_data()

    st.subheader("✏️ Edit item" if editing else "➕ New item")

    with st.form("record_form"):
        col1, col2 = st.columns(2)

        with col1:
            name = st.text_input("Name *", value=defaults["name"])
            category = st.selectbox(
                "Category",
                options=list(Category),
                index=list(Category).index(Category(defaults["category"])),
                format_func=lambda c: CATEGORY_LABELS[c],
            )
            status = st.radio(
                "Status",
                options=list(PurchaseStatus),
                index=list(PurchaseStatus).index(PurchaseStatus(defaults["status"])),
                format_func=lambda s: STATUS_LABELS[s],
                horizontal=True,
            )
            list_price = st.number_input(
                "List price",
                value=float(defaults["list_price"]),
                min_value=0.0,
                step=0.01,
                format="%.2f",
            )
            actual_price = st.number_input(
                "Actual price *",
                value=float(defaults["actual_price"]),
                min_value=0.0,
                step=0.01,
                format="%.2f",
            )

        with col2:
            purchase_date = st.date_input(
                "Purchase date",
                value=defaults["purchase_date"],
                help="Used for the monthly breakdown of bought items",
            )
            usage_status = st.selectbox(
                "Usage",
                options=list(UsageStatus),
                index=list(UsageStatus).index(UsageStatus(defaults["usage_status"])),
                format_func=lambda u: USAGE_STATUS_LABELS[u],
            )
            unit_cost_type = st.selectbox(
                "Unit cost type",
                options=list(UnitCostType),
                index=list(UnitCostType).index(UnitCostType(defaults["unit_cost_type"])),
                format_func=lambda u: UNIT_COST_TYPE_LABELS[u],
            )
            unit_cost = st.number_input(
                "Unit cost",
                value=float(defaults["unit_cost"]),
                min_value=0.0,
                step=0.01,
                format="%.4f",
            )
            link = st.text_input("Link", value=defaults["link"])

        notes = st.text_area("Notes", value=defaults["notes"])
        st.caption("The discount is calculated from the two prices when you save.")

        save_col, cancel_col = st.columns(2)
        with save_col:
            submitted = st.form_submit_button("💾 Save", type="primary")
        with cancel_col:
            cancelled = st.form_submit_button("Cancel")

    if cancelled:
        set_state(app_state.form_closed(state))
        st.rerun()

    if submitted:
        form = {
            "name": name,
            "category": category,
            "status": status,
            "list_price": list_price,
            "actual_price": actual_price,
            "discount_rate": defaults["discount_rate"],
            "purchase_date": purchase_date if isinstance(purchase_date, date) else None,
            "usage_status": usage_status,
            "unit_cost_type": unit_cost_type,
            "unit_cost": unit_cost,
            "link": link,
            "notes": notes,
        }
        try:
            records, notice = tracker.save(form, editing=editing)
        except RecordValidationError as e:
            st.error(tracker.validator.get_user_friendly_summary(e.result))
            return

        if notice.kind == NoticeKind.ERROR:
            set_state(app_state.store_failed(state, notice))
        else:
            warnings = tracker.validator.validate(form).warnings
            state = app_state.record_saved(state, records, notice)
            if warnings:
                state = app_state.toast_pushed(
                    state,
                    Notice(message="Please double-check: " + "; ".join(warnings), kind=NoticeKind.INFO),
                )
            set_state(state)
        st.rerun()


def render_record_list(tracker: ShoppingTracker, state: AppState):
    """Render the tabbed list of items."""
    counts = app_state.tab_counts(state)
    tabs = [PurchaseStatus.BOUGHT, PurchaseStatus.PLANNED]

    selected = st.radio(
        "Show",
        options=tabs,
        index=tabs.index(state.active_tab),
        format_func=lambda s: f"{STATUS_LABELS[s]} ({counts[s]})",
        horizontal=True,
        label_visibility="collapsed",
    )
    if selected != state.active_tab:
        set_state(app_state.tab_selected(state, selected))
        st.rerun()

    records = app_state.visible_records(state)
    if not records:
        st.info(
            "📋 Nothing here yet. "
            "Use 'Add item' or 'Smart add' to record your first item."
        )
        return

    for record in records:
        render_record_card(tracker, state, record)


def render_record_card(tracker: ShoppingTracker, state: AppState, record: ShoppingRecord):
    with st.container(border=True):
        info, price, actions = st.columns([4, 2, 1])

        with info:
            st.markdown(f"**{record.name}**")
            details = [CATEGORY_LABELS[record.category]]
            if record.is_bought:
                details.append(USAGE_STATUS_LABELS[record.usage_status])
                if record.purchase_date:
                    details.append(record.purchase_date.strftime("%d %b %Y"))
            if record.unit_cost:
                details.append(
                    f"{record.unit_cost:,.4g} {UNIT_COST_TYPE_LABELS[record.unit_cost_type].lower()}"
                )
            st.caption(" · ".join(details))
            if record.link:
                st.markdown(f"[Link]({record.link})")
            if record.notes:
                st.caption(record.notes)

        with price:
            st.markdown(
                f'<span class="price">{record.actual_price:,.2f}</span>',
                unsafe_allow_html=True,
            )
            if record.list_price and record.list_price > record.actual_price:
                st.markdown(
                    f'<span class="list-price">{record.list_price:,.2f}</span> '
                    f'-{record.discount_rate:g}%',
                    unsafe_allow_html=True,
                )

        with actions:
            if st.button("✏️", key=f"edit_{record.id}", help="Edit"):
                set_state(app_state.edit_form_opened(state, record.id))
                st.rerun()
            if st.button("🗑️", key=f"delete_{record.id}", help="Delete"):
                set_state(app_state.delete_requested(state, record.id))
                st.rerun()

        if state.pending_delete_id == record.id:
            st.warning(f"Delete **{record.name}**?")
            confirm, cancel = st.columns(2)
            with confirm:
                if st.button("Delete", key=f"confirm_delete_{record.id}", type="primary"):
                    records, notice = tracker.delete(record.id)
                    set_state(app_state.delete_confirmed(state, records, notice))
                    st.rerun()
            with cancel:
                if st.button("Cancel", key=f"cancel_delete_{record.id}"):
                    set_state(app_state.delete_cancelled(state))
                    st.rerun()


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Gemini (AI parsing and advice)", "gemini"),
        ("Storage", "storage"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    storage = get_settings().storage
    st.markdown(f"**Data file:** `{storage.data_path / (storage.records_key + '.json')}`")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
