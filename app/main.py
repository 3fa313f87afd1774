"""
Streamlit Frontend for Personal Finance

Sign in with an OAuth provider, then add, edit, filter and review
personal income and expense records.

DESIGN PRINCIPLES:
1. Changes appear in the list immediately
2. Failures roll back and are reported in plain language
3. Filters live in the URL so a filtered view can be bookmarked
4. Nothing is sent to the backend until the form validates

Every browser session gets its own components: the Supabase client
inside them carries the signed-in user's auth session.
"""

import asyncio
import datetime as dt
from typing import Optional

import streamlit as st

from personal_finance.categories import get_category_style
from personal_finance.config import get_settings, validate_all_settings
from personal_finance.models.record import (
    INCOME_CATEGORY,
    Record,
    RecordFilters,
    RecordFormValues,
    RecordKind,
    to_iso_date,
)
from personal_finance.orchestrator import (
    AppComponents,
    PersonalRecordsFlow,
    ProfileFlow,
    create_app_components,
)
from personal_finance.queries import (
    filters_from_query_params,
    filters_to_query_params,
    format_currency,
    format_date,
    format_signed_amount,
)
from personal_finance.services.auth import (
    AuthenticationError,
    FLOW_PARAM,
    CallbackDestination,
    ProfileValidationError,
    SessionStatus,
)
from personal_finance.validation import RecordValidationError


# Page configuration
st.set_page_config(
    page_title="Personal Finance",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

CALLBACK_PARAMS = ("code", "error", "error_description", FLOW_PARAM)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_components() -> Optional[AppComponents]:
    """Get or create this browser session's components."""
    if "components" not in st.session_state:
        try:
            st.session_state.components = create_app_components()
        except Exception as e:
            st.error(f"Failed to initialize: {e}")
            return None
    return st.session_state.components


def show_pending_notice():
    """Show the toast queued before the last rerun, if any."""
    notice = st.session_state.pop("notice", None)
    if notice:
        icon, message = notice
        st.toast(message, icon=icon)


def queue_notice(icon: str, message: str):
    st.session_state.notice = (icon, message)


def main():
    """Main application entry point."""
    components = get_components()
    if components is None:
        render_settings_page()
        return

    session = components.session
    if session.status == SessionStatus.LOADING:
        run_async(session.start())

    if any(key in st.query_params for key in CALLBACK_PARAMS):
        handle_auth_callback(components)

    show_pending_notice()

    if not session.is_authenticated:
        render_sign_in_page(components)
        return

    if st.session_state.get("needs_profile"):
        render_complete_profile_page(components)
        return

    # Sidebar navigation
    st.sidebar.title("💰 Personal Finance")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📒 Personal", "👤 Profile", "⚙️ Settings"],
        index=0,
    )

    currency = get_settings().app.currency

    # Route to appropriate page
    if page == "📒 Personal":
        render_personal_page(components.records_flow, currency)
    elif page == "👤 Profile":
        render_profile_page(components.profile_flow)
    elif page == "⚙️ Settings":
        render_settings_page()


# =============================================================================
# AUTH PAGES
# =============================================================================

def handle_auth_callback(components: AppComponents):
    """Finish the OAuth redirect, then strip its parameters from the URL."""
    params = {key: st.query_params[key] for key in CALLBACK_PARAMS if key in st.query_params}
    for key in CALLBACK_PARAMS:
        if key in st.query_params:
            del st.query_params[key]

    with st.spinner("Completing sign in..."):
        try:
            destination = run_async(components.auth_service.complete_callback(params))
        except AuthenticationError as e:
            st.session_state.auth_error = str(e)
            st.session_state.pop("sign_in_url", None)
            return

    st.session_state.pop("auth_error", None)
    st.session_state.needs_profile = destination == CallbackDestination.COMPLETE_PROFILE
    st.rerun()


def render_sign_in_page(components: AppComponents):
    """Render the sign-in page."""
    st.title("💰 Personal Finance")
    st.markdown("Track what comes in and what goes out.")

    error = st.session_state.get("auth_error")
    if error:
        st.error(f"Sign in failed: {error}")

    # One sign-in flow per browser session, not one per rerun
    url = st.session_state.get("sign_in_url")
    if url is None:
        try:
            url = run_async(components.auth_service.start_sign_in())
        except AuthenticationError as e:
            st.error(f"Sign in is unavailable: {e}")
            return
        st.session_state.sign_in_url = url

    provider = get_settings().auth.oauth_provider.title()
    st.link_button(f"Sign in with {provider}", url, type="primary")


def render_complete_profile_page(components: AppComponents):
    """Ask for the names the profile is missing."""
    st.title("👋 Complete your profile")
    st.markdown("Tell us your name to finish setting up your account.")

    with st.form("complete_profile"):
        first_name = st.text_input("First name")
        last_name = st.text_input("Last name")
        submitted = st.form_submit_button("Continue", type="primary")

    if not submitted:
        return

    try:
        run_async(components.auth_service.complete_profile(first_name, last_name))
    except ProfileValidationError as e:
        st.error(str(e))
        return
    except Exception as e:
        st.error(f"Could not save your profile: {e}")
        return

    st.session_state.needs_profile = False
    queue_notice("✅", "Profile saved")
    st.rerun()


# =============================================================================
# PERSONAL PAGE
# =============================================================================

def current_filters() -> RecordFilters:
    return filters_from_query_params({
        "from": st.query_params.get("from"),
        "to": st.query_params.get("to"),
        "category": st.query_params.get_all("category"),
    })


def render_personal_page(flow: PersonalRecordsFlow, currency: str):
    """Render the personal records page."""
    st.title("📒 Personal")

    filters = current_filters()
    if st.session_state.get("loaded_filters") != filters:
        with st.spinner("Loading expenses..."):
            run_async(flow.load(filters))
        st.session_state.loaded_filters = filters

    render_filters(flow)

    if flow.error:
        st.error(flow.error)
        if st.button("Retry"):
            st.session_state.pop("loaded_filters", None)
            st.rerun()
        return

    render_summary(flow, currency)

    with st.expander("➕ Add record"):
        values = render_record_form("add_record", flow.known_categories)
        if values is not None and submit_record(flow.create(values), "Record added"):
            st.rerun()

    st.markdown("---")
    render_record_list(flow, currency)


def render_filters(flow: PersonalRecordsFlow):
    filters = flow.filters
    label = "🔍 Filters"
    if filters.active_count:
        label += f" ({filters.active_count})"

    with st.expander(label):
        with st.form("filters"):
            col1, col2 = st.columns(2)
            with col1:
                date_from = st.date_input(
                    "From",
                    value=dt.date.fromisoformat(filters.date_from) if filters.date_from else None,
                )
            with col2:
                date_to = st.date_input(
                    "To",
                    value=dt.date.fromisoformat(filters.date_to) if filters.date_to else None,
                )
            categories = st.multiselect(
                "Categories",
                options=flow.known_categories,
                default=list(filters.categories),
            )
            col1, col2 = st.columns(2)
            with col1:
                apply = st.form_submit_button("Apply", type="primary")
            with col2:
                clear = st.form_submit_button("Clear")

    if apply:
        updated = RecordFilters(
            date_from=to_iso_date(date_from),
            date_to=to_iso_date(date_to),
            categories=tuple(categories),
        )
        st.query_params.from_dict(filters_to_query_params(updated))
        st.rerun()
    if clear:
        st.query_params.clear()
        st.rerun()


def render_summary(flow: PersonalRecordsFlow, currency: str):
    summary = flow.summary()
    st.caption(f"This month ({dt.date.today():%B %Y})")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Income", format_currency(summary.income, currency))
    with col2:
        st.metric("Expenses", format_currency(summary.expenses, currency))
    with col3:
        st.metric("Net", format_currency(summary.net, currency))


def category_choices(
    known_categories: list[str],
    record: Optional[Record] = None,
) -> tuple[list[str], Optional[int]]:
    """
    Suggestions for the category box and the preselected index.

    The box also accepts names that are not suggested, and an edited
    record keeps its own category even when it is not a known one.
    """
    options = [c for c in known_categories if c != INCOME_CATEGORY]
    if record is None or record.is_income:
        return options, None
    if record.category not in options:
        options.append(record.category)
    return options, options.index(record.category)


def render_record_form(
    key: str,
    known_categories: list[str],
    record: Optional[Record] = None,
) -> Optional[RecordFormValues]:
    """Render the add/edit form; returns the values once submitted."""
    expense_categories, category_index = category_choices(known_categories, record)

    with st.form(key, clear_on_submit=record is None):
        kind = st.radio(
            "Type",
            options=list(RecordKind),
            format_func=lambda k: k.value.title(),
            index=1 if record is not None and record.is_income else 0,
            horizontal=True,
        )
        amount = st.text_input(
            "Amount",
            value=str(record.amount) if record is not None else "",
            placeholder="0.00",
        )
        date = st.date_input(
            "Date",
            value=dt.date.fromisoformat(record.date) if record is not None else dt.date.today(),
        )
        category = st.selectbox(
            "Category",
            options=expense_categories,
            index=category_index,
            placeholder="Choose or type a category",
            accept_new_options=True,
            help="Income records always use the Income category",
        )
        note = st.text_input("Note", value=(record.note or "") if record is not None else "")
        submitted = st.form_submit_button("Save" if record is not None else "Add", type="primary")

    if not submitted:
        return None
    return RecordFormValues(
        kind=kind,
        amount=amount,
        date=date,
        category=category or "",
        note=note,
    )


def submit_record(action, success_message: str) -> bool:
    """Run a create/edit; show inline validation errors or queue a toast."""
    try:
        run_async(action)
    except RecordValidationError as e:
        for issue in e.result.issues:
            st.error(issue.message)
        return False
    except Exception as e:
        st.error(str(e))
        return False
    queue_notice("✅", success_message)
    return True


def render_record_list(flow: PersonalRecordsFlow, currency: str):
    groups = flow.groups()
    if not groups:
        st.info("📋 No records yet. Use 'Add record' above to add your first one.")
        return

    for group in groups:
        st.markdown(f"#### {format_date(group.date)}")
        st.caption(group.label)
        for record in group.records:
            render_record_row(flow, record, currency)


def render_record_row(flow: PersonalRecordsFlow, record: Record, currency: str):
    style = get_category_style(record.category, record.kind)
    color = "green" if record.is_income else "red"

    col1, col2, col3, col4 = st.columns([6, 2, 1, 1])
    with col1:
        st.markdown(f"{style.icon} **{record.title}**  \n{record.category}")
    with col2:
        st.markdown(f":{color}[{format_signed_amount(record, currency)}]")
    with col3:
        with st.popover("✏️"):
            values = render_record_form(f"edit_{record.id}", flow.known_categories, record)
            if values is not None and submit_record(flow.edit(record.id, values), "Record updated"):
                st.rerun()
    with col4:
        if st.button("🗑️", key=f"delete_{record.id}", help="Delete"):
            notice = run_async(flow.delete(record.id))
            queue_notice("❌" if notice.is_error else "✅", notice.message)
            st.rerun()


# =============================================================================
# PROFILE & SETTINGS
# =============================================================================

def render_profile_page(flow: ProfileFlow):
    """Render the profile page."""
    st.title("👤 Profile")

    profile = run_async(flow.load())
    if flow.error:
        st.error(flow.error)
        return

    if profile is not None:
        col1, col2 = st.columns([1, 5])
        with col1:
            if profile.avatar_url:
                st.image(profile.avatar_url, width=80)
            else:
                st.markdown(f"### {profile.initials}")
        with col2:
            st.markdown(f"### {profile.display_name}")
            if profile.email:
                st.caption(profile.email)

    st.markdown("---")
    st.subheader("Edit name")
    with st.form("edit_names"):
        first_name = st.text_input("First name", value=(profile.first_name or "") if profile else "")
        last_name = st.text_input("Last name", value=(profile.last_name or "") if profile else "")
        submitted = st.form_submit_button("Save", type="primary")

    if submitted:
        try:
            run_async(flow.save_names(first_name, last_name))
        except ProfileValidationError as e:
            st.error(str(e))
        except Exception as e:
            st.error(f"Could not save your profile: {e}")
        else:
            queue_notice("✅", "Profile saved")
            st.rerun()

    st.markdown("---")
    if st.button("Sign out"):
        run_async(flow.sign_out())
        for key in ("loaded_filters", "needs_profile", "sign_in_url"):
            st.session_state.pop(key, None)
        st.rerun()


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    sections = [
        ("Supabase (Data & Auth)", "supabase"),
        ("Sign-in Provider", "auth"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your Supabase "
        "project details. See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
