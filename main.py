"""
South African Property Cost Calculator

A Streamlit app that estimates what buying a property really costs:
the monthly bond repayment and running costs, and the once-off transfer
and bond registration costs.

Features:
- Transfer duty, conveyancing and deeds office fees
- Bond registration costs and monthly repayments
- A standalone calculator plus one calculator per property listing
- Inputs are kept per calculator for the browser session

Run with: streamlit run main.py
"""

import logging

import pandas as pd
import streamlit as st

from calculations import (
    CostBreakdown,
    format_currency,
    slider_rate,
)
from charts import (
    create_once_off_breakdown_chart,
    create_monthly_breakdown_chart,
    create_rate_sensitivity_chart,
    create_monthly_table_data,
    create_once_off_table_data,
)
from constants import (
    INTEREST_RATE_MIN,
    INTEREST_RATE_MAX,
    INTEREST_RATE_STEP,
    INTEREST_RATE_INPUT_MAX,
    LOAN_TERM_OPTIONS,
    SAMPLE_LISTINGS,
)
from snapshot import STANDALONE_KEY, SnapshotStore, snapshot_key
from state import StateManager, UpdateResult

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# PAGE CONFIG
# =============================================================================

st.set_page_config(
    page_title="Property Cost Calculator",
    page_icon="🏠",
    layout="wide",
)


# =============================================================================
# SESSION HELPERS
# =============================================================================

def get_store() -> SnapshotStore:
    """Snapshot store backed by this browser session."""
    if "snapshots" not in st.session_state:
        st.session_state.snapshots = {}
    return SnapshotStore(st.session_state.snapshots)


def get_manager(key: str, listed_price=None) -> StateManager:
    """One StateManager per calculator surface, created on first use."""
    if "managers" not in st.session_state:
        st.session_state.managers = {}
    managers = st.session_state.managers
    if key not in managers:
        managers[key] = StateManager.open(get_store(), key, listed_price)
        logger.info("Opened calculator %s", key)
    return managers[key]


def format_amount_input(amount: float) -> str:
    """Digits grouped with spaces for the free-text amount fields."""
    if amount <= 0:
        return ""
    return format_currency(amount).removeprefix("R ")


def widget_key(prefix: str, name: str) -> str:
    return f"{prefix}_{name}"


# =============================================================================
# WIDGET SYNC
# =============================================================================

# Widgets drawn by each collapsible section
SECTION_WIDGETS = {
    "property": ("price",),
    "bond": ("bonded", "loan", "term", "rate_slider", "rate_input"),
    "monthly": ("rates", "utilities", "levies"),
}


def widget_values(manager: StateManager) -> dict:
    """Value each input widget should show for the current state."""
    state = manager.state
    return {
        "price": format_amount_input(state.asking_price),
        "loan": format_amount_input(state.loan_amount),
        "bonded": "Yes" if state.is_bonded else "No",
        "term": (
            state.loan_term_years if state.loan_term_years in LOAN_TERM_OPTIONS else LOAN_TERM_OPTIONS[2]
        ),
        "rate_slider": slider_rate(state.interest_rate_percent),
        "rate_input": min(max(state.interest_rate_percent, INTEREST_RATE_MIN), INTEREST_RATE_INPUT_MAX),
        "rates": format_amount_input(state.monthly_rates_and_taxes),
        "utilities": format_amount_input(state.monthly_utilities),
        "levies": format_amount_input(state.monthly_levies),
    }


def sync_amount_fields(manager: StateManager, prefix: str):
    """Rewrite the price and loan fields from state (cheap partial update)."""
    values = widget_values(manager)
    for name in ("price", "loan"):
        st.session_state[widget_key(prefix, name)] = values[name]


def sync_all_widgets(manager: StateManager, prefix: str):
    """Rewrite every widget from state (after a structural change or load)."""
    for name, value in widget_values(manager).items():
        st.session_state[widget_key(prefix, name)] = value


def restore_section_widgets(manager: StateManager, prefix: str, section: str):
    """
    Refill widget values Streamlit dropped while a section was hidden.

    Streamlit forgets a widget's value on any run where it is not drawn, so
    a collapsed section (or the loan fields of a cash purchase) would come
    back at widget defaults instead of the stored inputs.
    """
    values = widget_values(manager)
    for name in SECTION_WIDGETS[section]:
        key = widget_key(prefix, name)
        if key not in st.session_state:
            st.session_state[key] = values[name]


def handle_update(manager: StateManager, prefix: str, result: UpdateResult):
    if not result.changed:
        return
    if result.needs_rebuild:
        sync_all_widgets(manager, prefix)
    else:
        sync_amount_fields(manager, prefix)


def make_callback(manager: StateManager, prefix: str, name: str, action):
    """on_change callback that feeds a widget's value into the manager."""
    def callback():
        result = action(st.session_state[widget_key(prefix, name)])
        handle_update(manager, prefix, result)
    return callback


# =============================================================================
# INPUT SECTIONS
# =============================================================================

def section_header(manager: StateManager, prefix: str, name: str, title: str) -> bool:
    """Collapsible section header; returns whether the section is open."""
    expanded = manager.state.sections_expanded.get(name, True)
    st.button(
        f"{'▾' if expanded else '▸'} {title}",
        key=widget_key(prefix, f"section_{name}"),
        on_click=manager.toggle_section,
        args=(name,),
        type="tertiary",
    )
    return expanded


def render_property_section(manager: StateManager, prefix: str):
    if not section_header(manager, prefix, "property", "🏠 Property Details"):
        return
    restore_section_widgets(manager, prefix, "property")
    st.text_input(
        "Purchase Price (R)",
        key=widget_key(prefix, "price"),
        placeholder="e.g. 1 500 000",
        help="Total property purchase price",
        on_change=make_callback(manager, prefix, "price", manager.set_asking_price),
    )


def render_bond_section(manager: StateManager, prefix: str):
    if not section_header(manager, prefix, "bond", "🏦 Home Loan"):
        return
    restore_section_widgets(manager, prefix, "bond")

    st.radio(
        "Financing with Bond?",
        options=["Yes", "No"],
        horizontal=True,
        key=widget_key(prefix, "bonded"),
        on_change=make_callback(
            manager, prefix, "bonded", lambda choice: manager.toggle_bonded(choice == "Yes")
        ),
    )

    if not manager.state.is_bonded:
        return

    col1, col2 = st.columns(2)
    with col1:
        st.text_input(
            "Loan Amount (R)",
            key=widget_key(prefix, "loan"),
            placeholder="e.g. 1 350 000",
            help="Follows the purchase price until you change it",
            on_change=make_callback(manager, prefix, "loan", manager.set_loan_amount),
        )
    with col2:
        st.selectbox(
            "Loan Term",
            options=LOAN_TERM_OPTIONS,
            format_func=lambda years: f"{years} years",
            key=widget_key(prefix, "term"),
            on_change=make_callback(manager, prefix, "term", manager.set_loan_term),
        )

    # Slider and exact input share one rate; each change rewrites the other
    def rate_from_slider():
        result = manager.set_interest_rate(st.session_state[widget_key(prefix, "rate_slider")])
        st.session_state[widget_key(prefix, "rate_input")] = manager.state.interest_rate_percent
        handle_update(manager, prefix, result)

    def rate_from_input():
        result = manager.set_interest_rate(
            st.session_state[widget_key(prefix, "rate_input")], source="input"
        )
        st.session_state[widget_key(prefix, "rate_slider")] = slider_rate(
            manager.state.interest_rate_percent
        )
        handle_update(manager, prefix, result)

    col1, col2 = st.columns([3, 1])
    with col1:
        st.slider(
            "Interest Rate (%)",
            min_value=INTEREST_RATE_MIN,
            max_value=INTEREST_RATE_MAX,
            step=INTEREST_RATE_STEP,
            format="%.2f%%",
            key=widget_key(prefix, "rate_slider"),
            on_change=rate_from_slider,
        )
    with col2:
        st.number_input(
            "Exact Rate",
            min_value=INTEREST_RATE_MIN,
            max_value=INTEREST_RATE_INPUT_MAX,
            step=INTEREST_RATE_STEP,
            format="%.2f",
            key=widget_key(prefix, "rate_input"),
            label_visibility="collapsed",
            on_change=rate_from_input,
        )


def render_monthly_section(manager: StateManager, prefix: str):
    if not section_header(manager, prefix, "monthly", "📅 Monthly Costs"):
        return
    restore_section_widgets(manager, prefix, "monthly")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.text_input(
            "Rates & Taxes (R)",
            key=widget_key(prefix, "rates"),
            placeholder="e.g. 2 500",
            help="Monthly municipal charges",
            on_change=make_callback(manager, prefix, "rates", manager.set_monthly_rates_and_taxes),
        )
    with col2:
        st.text_input(
            "Water & Electricity (R)",
            key=widget_key(prefix, "utilities"),
            placeholder="e.g. 1 800",
            help="Estimated monthly utilities",
            on_change=make_callback(manager, prefix, "utilities", manager.set_monthly_utilities),
        )
    with col3:
        st.text_input(
            "Levies (R)",
            key=widget_key(prefix, "levies"),
            placeholder="e.g. 1 200",
            help="Body corporate or HOA levies",
            on_change=make_callback(manager, prefix, "levies", manager.set_monthly_levies),
        )


# =============================================================================
# RESULTS
# =============================================================================

def render_results(manager: StateManager, prefix: str, breakdown: CostBreakdown):
    """Results cards, breakdown tables and charts for a calculation."""
    st.subheader("📈 Your Property Costs")

    if breakdown.is_empty:
        st.info("Enter a purchase price to see your monthly and once-off costs.")
        return

    state = manager.state

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Monthly", format_currency(breakdown.monthly.total), help="per month")
    with col2:
        st.metric("Once-off Costs", format_currency(breakdown.once_off.total), help="at purchase")
    if state.is_bonded:
        with col3:
            st.metric(
                "Bond Repayment",
                format_currency(breakdown.monthly.bond_repayment),
                help=f"{state.loan_term_years} years at {state.interest_rate_percent:.2f}%",
            )

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**📋 Cost Breakdown**")
        df = pd.DataFrame(create_monthly_table_data(breakdown, state.is_bonded))
        st.dataframe(df, hide_index=True, use_container_width=True)
    with col2:
        st.markdown("**🧾 Once-off Costs**")
        df = pd.DataFrame(create_once_off_table_data(breakdown, state.is_bonded))
        st.dataframe(df, hide_index=True, use_container_width=True)

    if not section_header(manager, prefix, "breakdown", "📊 Charts"):
        return

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(create_once_off_breakdown_chart(breakdown), use_container_width=True)
    with col2:
        if breakdown.monthly.total > 0:
            st.plotly_chart(create_monthly_breakdown_chart(breakdown), use_container_width=True)
    if state.is_bonded and state.loan_amount > 0:
        fig = create_rate_sensitivity_chart(
            state.loan_amount, state.loan_term_years, state.interest_rate_percent
        )
        st.plotly_chart(fig, use_container_width=True)


def render_calculator(manager: StateManager, prefix: str):
    """Full calculator: inputs on the left, results on the right."""
    inputs, results = st.columns([2, 3])
    with inputs:
        render_property_section(manager, prefix)
        render_bond_section(manager, prefix)
        render_monthly_section(manager, prefix)
    with results:
        render_results(manager, prefix, manager.breakdown)


# =============================================================================
# MAIN CONTENT - TABS
# =============================================================================

def render_standalone_tab():
    st.header("🧮 Cost Calculator")
    manager = get_manager(STANDALONE_KEY)
    render_calculator(manager, prefix="standalone")


def render_listings_tab():
    st.header("🏘️ Listings")
    st.caption("Each listing keeps its own calculator, starting from the listed price.")

    property_id = st.selectbox(
        "Property",
        options=list(SAMPLE_LISTINGS),
        key="listing",
        format_func=lambda pid: f"{SAMPLE_LISTINGS[pid][0]} ({format_currency(SAMPLE_LISTINGS[pid][1])})",
    )
    title, listed_price = SAMPLE_LISTINGS[property_id]
    st.markdown(f"**{title}**, listed at {format_currency(listed_price)}")

    manager = get_manager(snapshot_key(property_id), listed_price)
    render_calculator(manager, prefix=property_id)


# =============================================================================
# MAIN APP
# =============================================================================

def main():
    """Main application entry point."""
    st.title("🏠 South African Property Cost Calculator")
    st.caption(
        "See what a property really costs: bond repayments, running costs, "
        "transfer duty and the fees paid on registration."
    )

    tabs = st.tabs([
        "🧮 Cost Calculator",
        "🏘️ Listings",
    ])

    with tabs[0]:
        render_standalone_tab()

    with tabs[1]:
        render_listings_tab()

    # Footer
    st.markdown("---")
    st.caption(
        "⚠️ **Disclaimer:** Results are estimates based on current SA regulations. "
        "Consult with financial advisors and attorneys for accurate quotes."
    )


if __name__ == "__main__":
    main()
