"""
Streamlit Frontend for LedgerLight

The screens a user works with every day.

DESIGN PRINCIPLES:
1. Recording an expense takes as few taps as possible
2. The app opens on the add-record keypad
3. Every save failure is shown, never hidden
4. Charts show the same numbers the lists do

Screen state (AppState, RecordForm) lives in st.session_state; the
store and flows are created once per server process.
"""

import plotly.graph_objects as go
import streamlit as st

from ledgerlight.calculator.keypad import BACKSPACE_KEY, EVALUATE_KEY
from ledgerlight.config import get_settings, validate_all_settings
from ledgerlight.models.ledger import (
    COLOR_PALETTE,
    LEDGER_ICONS,
    ChartSnapshot,
    RecordType,
    TimeWindow,
)
from ledgerlight.orchestrator import (
    AppComponents,
    LedgerOperationError,
    create_app_components,
)
from ledgerlight.services.export import ExportError
from ledgerlight.services.storage import StorageError
from ledgerlight.state import AppState, RecordForm
from ledgerlight.validation import FormValidationError


# Page configuration
st.set_page_config(
    page_title="LedgerLight",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .amount-display {
        font-size: 2.5em;
        font-weight: bold;
        text-align: right;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

KEYPAD_ROWS = [
    ["7", "8", "9", BACKSPACE_KEY],
    ["4", "5", "6", "+"],
    ["1", "2", "3", "-"],
    [".", "0", EVALUATE_KEY],
]

PAGES = ["➕ Record", "🏠 Home", "📊 Analysis", "📚 Ledgers", "⚙️ Settings"]


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components(use_cloud_sync=True)


def get_screen_state() -> tuple[AppState, RecordForm]:
    settings = get_settings().app
    if "app_state" not in st.session_state:
        st.session_state.app_state = AppState(week_start=settings.week_start)
    if "record_form" not in st.session_state:
        st.session_state.record_form = RecordForm()
    return st.session_state.app_state, st.session_state.record_form


def show_persist_result(persisted: bool, message: str, success: str) -> None:
    """Queue the outcome of a mutation; it is shown after the next rerun."""
    st.session_state.setdefault("notices", []).append((persisted, success if persisted else message))


def show_notices() -> None:
    for persisted, text in st.session_state.pop("notices", []):
        if persisted:
            st.toast(text)
        else:
            st.warning(text)


def main():
    """Main application entry point."""
    components = get_components()
    app_state, record_form = get_screen_state()
    show_notices()

    st.sidebar.title("📒 LedgerLight")
    if not components.cloud_sync:
        st.sidebar.caption("Cloud sync is off. Data is kept for this session only.")
    if not components.seed_report.persisted:
        st.sidebar.warning(components.seed_report.error_message or "Default data was not saved.")
    st.sidebar.markdown("---")

    ledgers = components.ledger_flow.list_ledgers()
    current = components.ledger_flow.current_ledger()
    if app_state.selected_ledger_id is None and current is not None:
        app_state.select_ledger(current.id)
    ledger_ids = [ledger.id for ledger in ledgers]
    if ledger_ids:
        index = ledger_ids.index(app_state.selected_ledger_id) if app_state.selected_ledger_id in ledger_ids else 0
        selected = st.sidebar.selectbox(
            "Ledger",
            options=ledgers,
            index=index,
            format_func=lambda ledger: f"{ledger.name} ⭐" if ledger.is_default else ledger.name,
        )
        app_state.select_ledger(selected.id)

    # The app opens on the add-record screen
    if "page" not in st.session_state:
        st.session_state.page = PAGES[0] if app_state.show_add_record else PAGES[1]
    if "next_page" in st.session_state:
        st.session_state.page = st.session_state.pop("next_page")
    page = st.sidebar.radio("Navigate to:", PAGES, key="page")
    if page == PAGES[0]:
        app_state.present_add_record()
    else:
        app_state.dismiss_add_record()

    try:
        if page == "➕ Record":
            render_record_page(components, app_state, record_form)
        elif page == "🏠 Home":
            render_home_page(components, app_state)
        elif page == "📊 Analysis":
            render_analysis_page(components, app_state)
        elif page == "📚 Ledgers":
            render_ledgers_page(components)
        elif page == "⚙️ Settings":
            render_settings_page(components)
    except StorageError as e:
        # e.g. a record deleted twice from two open tabs
        components.audit_logger.log_error(type(e).__name__, str(e), {"page": page})
        st.error(f"Something went wrong: {e}")


def render_record_page(components: AppComponents, app_state: AppState, form: RecordForm):
    """Render the add-record keypad sheet."""
    st.title("➕ New Record")
    currency = get_settings().app.currency_symbol

    record_type = st.radio(
        "Type",
        options=list(RecordType),
        index=list(RecordType).index(form.record_type),
        format_func=lambda value: value.value.title(),
        horizontal=True,
    )
    form.set_record_type(record_type)

    st.markdown(
        f'<div class="amount-display">{currency}{form.calculator.display or "0"}</div>',
        unsafe_allow_html=True,
    )

    tags = components.tag_flow.tags_for_type(form.record_type)
    tag_names = {tag.id: tag.name for tag in tags}
    form.preselect_tag(list(tag_names))
    tag_options = list(tag_names) or [None]
    tag_id = st.selectbox(
        "Tag",
        options=tag_options,
        index=tag_options.index(form.tag_id),
        format_func=lambda value: "No tag" if value is None else tag_names[value],
    )
    form.select_tag(tag_id)

    col1, col2 = st.columns(2)
    with col1:
        form.set_note(st.text_input("Note", value=form.note))
    with col2:
        form.set_entry_date(st.date_input("Date", value=form.entry_date.date()))

    for row_number, row in enumerate(KEYPAD_ROWS):
        for col, key in zip(st.columns(len(row)), row):
            with col:
                if st.button(key, key=f"keypad_{row_number}_{key}"):
                    form.calculator.press(key)
                    st.rerun()

    if st.button("✅ Save", type="primary", disabled=not form.can_confirm):
        if app_state.selected_ledger_id is None:
            st.error("Create a ledger first.")
            return
        record, persisted, message = components.record_flow.confirm(form, app_state.selected_ledger_id)
        if record is not None:
            show_persist_result(persisted, message, f"Saved {record.formatted_amount(currency)}")
            st.session_state.next_page = PAGES[1]
            st.rerun()


def render_home_page(components: AppComponents, app_state: AppState):
    """Render the month summary and the day-grouped record list."""
    st.title("🏠 Home")
    currency = get_settings().app.currency_symbol
    if app_state.selected_ledger_id is None:
        st.info("No ledger yet. Create one on the Ledgers page.")
        return

    col_prev, col_label, col_next = st.columns([1, 3, 1])
    with col_prev:
        if st.button("◀ Previous"):
            app_state.show_previous_month()
            st.rerun()
    with col_label:
        st.subheader(app_state.month_label)
    with col_next:
        if st.button("Next ▶"):
            app_state.show_next_month()
            st.rerun()

    summary = components.ledger_flow.month_summary(app_state.selected_ledger_id, app_state.current_date)
    col1, col2, col3 = st.columns(3)
    col1.metric("Expense", f"{currency}{summary.expense:.2f}")
    col2.metric("Income", f"{currency}{summary.income:.2f}")
    col3.metric("Balance", f"{currency}{summary.balance:.2f}")

    if summary.is_empty:
        st.info("No records this month. Use the Record page to add one.")
        return

    tag_names = {tag.id: tag.name for tag in components.tag_flow.list_tags()}
    for group in summary.days:
        st.markdown(f"#### {group.day:%m/%d} {group.weekday_name}")
        for record in group.records:
            col_text, col_amount, col_delete = st.columns([4, 2, 1])
            with col_text:
                label = tag_names.get(record.tag_id, "Untagged")
                st.markdown(f"**{label}**  {record.note}")
            with col_amount:
                st.markdown(record.formatted_amount(currency))
            with col_delete:
                if st.button("🗑️", key=f"delete_{record.id}"):
                    persisted, message = components.record_flow.delete_record(record.id)
                    show_persist_result(persisted, message, "Record deleted")
                    st.rerun()


def category_donut(snapshot: ChartSnapshot) -> go.Figure:
    if not snapshot.categories:
        return go.Figure()
    fig = go.Figure(go.Pie(
        labels=[share.tag.name if share.tag else "Untagged" for share in snapshot.categories],
        values=[float(share.amount) for share in snapshot.categories],
        marker={"colors": [share.tag.color_hex if share.tag else "#8E8E93" for share in snapshot.categories]},
        hole=0.6,
        sort=False,
    ))
    fig.update_layout(title="Expense by tag", showlegend=True)
    return fig


def trend_bars(snapshot: ChartSnapshot) -> go.Figure:
    labels = [bucket.label for bucket in snapshot.trend]
    fig = go.Figure()
    fig.add_trace(go.Bar(name="Expense", x=labels, y=[float(b.expense) for b in snapshot.trend]))
    fig.add_trace(go.Bar(name="Income", x=labels, y=[float(b.income) for b in snapshot.trend]))
    fig.update_layout(title="Trend", barmode="group")
    return fig


def render_analysis_page(components: AppComponents, app_state: AppState):
    """Render the donut and trend charts for the chosen window."""
    st.title("📊 Analysis")
    currency = get_settings().app.currency_symbol
    if app_state.selected_ledger_id is None:
        st.info("No ledger yet. Create one on the Ledgers page.")
        return

    window = st.radio(
        "Window",
        options=list(TimeWindow),
        index=list(TimeWindow).index(app_state.time_window),
        format_func=lambda value: value.value.title(),
        horizontal=True,
    )
    app_state.set_time_window(window)
    app_state.set_current_date(st.date_input("Reference date", value=app_state.current_date))

    snapshot = components.ledger_flow.chart_snapshot(
        app_state.selected_ledger_id,
        app_state.time_window,
        app_state.current_date,
    )
    span = snapshot.date_range
    st.caption(f"{span.start:%Y-%m-%d} to {span.end:%Y-%m-%d}")
    st.metric("Total expense", f"{currency}{snapshot.total_expense:.2f}")

    if snapshot.is_empty:
        st.info("No records in this period.")
        return

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(category_donut(snapshot), use_container_width=True)
        for share in snapshot.categories:
            st.markdown(f"- {share.tag.name if share.tag else 'Untagged'}: "
                        f"{currency}{share.amount:.2f} ({share.percentage:.1f}%)")
    with col2:
        st.plotly_chart(trend_bars(snapshot), use_container_width=True)


def render_ledgers_page(components: AppComponents):
    """Render ledger management."""
    st.title("📚 Ledgers")
    flow = components.ledger_flow
    palette = [hex_value for _, hex_value in COLOR_PALETTE]

    for ledger in flow.list_ledgers():
        with st.expander(f"{ledger.name}{' ⭐ (default)' if ledger.is_default else ''}"):
            name = st.text_input("Name", value=ledger.name, key=f"ledger_name_{ledger.id}")
            color = st.selectbox(
                "Colour", options=palette,
                index=palette.index(ledger.color_hex) if ledger.color_hex in palette else 0,
                key=f"ledger_color_{ledger.id}",
            )
            icon = st.selectbox(
                "Icon", options=LEDGER_ICONS,
                index=LEDGER_ICONS.index(ledger.icon) if ledger.icon in LEDGER_ICONS else 0,
                key=f"ledger_icon_{ledger.id}",
            )
            col1, col2, col3 = st.columns(3)
            with col1:
                if st.button("💾 Save", key=f"ledger_save_{ledger.id}"):
                    try:
                        _, persisted, message = flow.edit_ledger(ledger.id, name, color, icon)
                        show_persist_result(persisted, message, "Ledger updated")
                        st.rerun()
                    except FormValidationError as e:
                        st.error(str(e))
            with col2:
                if not ledger.is_default and st.button("⭐ Make default", key=f"ledger_default_{ledger.id}"):
                    _, persisted, message = flow.set_default_ledger(ledger.id)
                    show_persist_result(persisted, message, "Default ledger changed")
                    st.rerun()
            with col3:
                if not ledger.is_default and st.button("🗑️ Delete", key=f"ledger_delete_{ledger.id}"):
                    try:
                        removed, persisted, message = flow.delete_ledger(ledger.id)
                        show_persist_result(persisted, message, f"Ledger deleted with {removed} records")
                        st.rerun()
                    except LedgerOperationError as e:
                        st.error(str(e))

    st.markdown("---")
    st.subheader("New ledger")
    with st.form("new_ledger", clear_on_submit=True):
        name = st.text_input("Name", max_chars=50)
        color = st.selectbox("Colour", options=palette)
        icon = st.selectbox("Icon", options=LEDGER_ICONS)
        if st.form_submit_button("Create"):
            try:
                ledger, persisted, message = flow.create_ledger(name, color, icon)
                show_persist_result(persisted, message, f"Created {ledger.name}")
                st.rerun()
            except FormValidationError as e:
                st.error(str(e))


def render_tags_section(components: AppComponents):
    flow = components.tag_flow
    st.markdown("### Tags")
    for tag in flow.list_tags():
        col_name, col_rename, col_delete = st.columns([3, 2, 1])
        with col_name:
            new_name = st.text_input(
                "Name", value=tag.name, key=f"tag_name_{tag.id}", label_visibility="collapsed",
            )
        with col_rename:
            if new_name != tag.name and st.button("Rename", key=f"tag_rename_{tag.id}"):
                try:
                    _, persisted, message = flow.edit_tag(tag.id, name=new_name)
                    show_persist_result(persisted, message, "Tag renamed")
                    st.rerun()
                except FormValidationError as e:
                    st.error(str(e))
        with col_delete:
            if not tag.is_default and st.button("🗑️", key=f"tag_delete_{tag.id}"):
                untagged, persisted, message = flow.delete_tag(tag.id)
                show_persist_result(persisted, message, f"Tag deleted, {untagged} records untagged")
                st.rerun()

    with st.form("new_tag", clear_on_submit=True):
        name = st.text_input("New tag", max_chars=30)
        if st.form_submit_button("Add tag"):
            try:
                tag, persisted, message = flow.create_tag(name)
                show_persist_result(persisted, message, f"Added {tag.name}")
                st.rerun()
            except FormValidationError as e:
                st.error(str(e))


def render_settings_page(components: AppComponents):
    """Render tags, export and status."""
    st.title("⚙️ Settings")

    render_tags_section(components)

    st.markdown("---")
    st.markdown("### Export")
    if st.button("📤 Export CSV"):
        try:
            path = components.export_flow.export_csv()
        except ExportError as e:
            st.error(f"Export failed: {e}")
        else:
            st.download_button(
                "Download",
                data=path.read_bytes(),
                file_name=path.name,
                mime="text/csv",
            )

    st.markdown("---")
    st.markdown("### Connection Status")
    status = validate_all_settings()
    if components.cloud_sync:
        st.success("✅ Google Sheets (Cloud sync) - Connected")
    else:
        error = status.get("google_sheets_error", "Not configured or unreachable")
        st.error(f"❌ Google Sheets (Cloud sync) - {error}")

    app_settings = get_settings().app
    mode = " (debug)" if app_settings.debug_mode else ""
    st.caption(f"Environment: {app_settings.app_environment}{mode}")

    with st.expander("🔍 Recent activity", expanded=app_settings.debug_mode):
        for event in components.audit_logger.recent_events(limit=20):
            st.markdown(f"`{event.timestamp:%H:%M:%S}` **{event.event_type.value}** {event.description}")


if __name__ == "__main__":
    main()
