"""
South African Property Cost Calculator - Charts

Plotly chart generators and table builders for the cost breakdown.
"""

import plotly.graph_objects as go

from calculations import (
    CostBreakdown,
    calculate_monthly_bond_repayment,
    format_currency,
)
from constants import INTEREST_RATE_MIN, INTEREST_RATE_MAX, INTEREST_RATE_STEP


# =============================================================================
# COLOR SCHEME
# =============================================================================

COLORS = {
    "secondary": "#ff7f0e",    # Orange
    "success": "#2ca02c",      # Green
    "danger": "#d62728",       # Red
    "info": "#17becf",         # Cyan
    "bond": "#1f77b4",         # Blue (for bond)
    "duty": "#d62728",         # Red (for transfer duty)
    "attorney": "#9467bd",     # Purple (for attorney fees)
    "deeds": "#8c564b",        # Brown (for deeds office)
}


# =============================================================================
# ONCE-OFF COSTS CHART
# =============================================================================

def create_once_off_breakdown_chart(breakdown: CostBreakdown) -> go.Figure:
    """
    Create a donut chart of the once-off costs at transfer.

    Zero lines (e.g. bond registration on a cash purchase) are left out.
    """
    once_off = breakdown.once_off
    items = [
        ("Transfer Duty", once_off.transfer_duty, COLORS["duty"]),
        ("Transfer Attorney Fees", once_off.transfer_attorney_fees, COLORS["attorney"]),
        ("Deeds Office Fees", once_off.deeds_office_fees, COLORS["deeds"]),
        ("Bond Registration", once_off.bond_registration_cost, COLORS["bond"]),
    ]
    items = [item for item in items if item[1] > 0]

    fig = go.Figure(data=[go.Pie(
        labels=[label for label, _, _ in items],
        values=[value for _, value, _ in items],
        marker_colors=[color for _, _, color in items],
        hole=0.45,
        textinfo="label+percent",
        hovertemplate="%{label}: R %{value:,.0f}<extra></extra>",
    )])

    fig.update_layout(
        title="Once-off Costs",
        height=350,
        showlegend=False,
        annotations=[dict(
            text=format_currency(once_off.total),
            x=0.5,
            y=0.5,
            font_size=16,
            showarrow=False,
        )],
    )

    return fig


# =============================================================================
# MONTHLY COSTS CHART
# =============================================================================

def create_monthly_breakdown_chart(breakdown: CostBreakdown) -> go.Figure:
    """Create a stacked horizontal bar of the monthly costs."""
    monthly = breakdown.monthly
    items = [
        ("Bond Repayment", monthly.bond_repayment, COLORS["bond"]),
        ("Rates & Taxes", monthly.rates_and_taxes, COLORS["secondary"]),
        ("Water & Electricity", monthly.utilities, COLORS["info"]),
        ("Levies", monthly.levies, COLORS["success"]),
    ]

    fig = go.Figure()
    for label, value, color in items:
        if value <= 0:
            continue
        fig.add_trace(go.Bar(
            y=["Per Month"],
            x=[value],
            name=f"{label}: {format_currency(value)}",
            orientation="h",
            marker_color=color,
            text=[format_currency(value)],
            textposition="inside",
        ))

    fig.update_layout(
        title=f"Monthly Costs: {format_currency(monthly.total)}",
        barmode="stack",
        xaxis_title="Amount (R)",
        height=250,
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        showlegend=True,
    )

    fig.update_xaxes(tickprefix="R ", tickformat=",.0f")

    return fig


# =============================================================================
# INTEREST RATE SENSITIVITY CHART
# =============================================================================

def create_rate_sensitivity_chart(
    loan_amount: float,
    term_years: int,
    current_rate: float
) -> go.Figure:
    """
    Create a line chart of the monthly repayment across the slider's rate range.

    Marks the currently selected rate so the user can see how exposed the
    repayment is to rate changes.
    """
    steps = int(round((INTEREST_RATE_MAX - INTEREST_RATE_MIN) / INTEREST_RATE_STEP))
    rates = [INTEREST_RATE_MIN + i * INTEREST_RATE_STEP for i in range(steps + 1)]
    payments = [
        calculate_monthly_bond_repayment(loan_amount, rate, term_years)
        for rate in rates
    ]

    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=rates,
        y=payments,
        mode="lines",
        name="Monthly Repayment",
        line=dict(color=COLORS["bond"], width=3),
        hovertemplate="%{x:.2f}%: R %{y:,.0f}<extra></extra>",
    ))

    if current_rate > 0:
        current_payment = calculate_monthly_bond_repayment(loan_amount, current_rate, term_years)
        fig.add_trace(go.Scatter(
            x=[current_rate],
            y=[current_payment],
            mode="markers",
            name=f"Selected: {current_rate:.2f}%",
            marker=dict(color=COLORS["danger"], size=12),
        ))

    fig.update_layout(
        title=f"Repayment vs Interest Rate ({term_years} years)",
        xaxis_title="Interest Rate (%)",
        yaxis_title="Monthly Repayment (R)",
        height=350,
        showlegend=False,
    )

    fig.update_yaxes(tickprefix="R ", tickformat=",.0f")

    return fig


# =============================================================================
# BREAKDOWN TABLES
# =============================================================================

def create_monthly_table_data(breakdown: CostBreakdown, is_bonded: bool) -> list[dict]:
    """Rows for the monthly cost table; the bond row only when bonded."""
    monthly = breakdown.monthly
    rows = []
    if is_bonded:
        rows.append({"Item": "Monthly Bond Payment", "Amount": format_currency(monthly.bond_repayment)})
    rows.extend([
        {"Item": "Rates & Taxes", "Amount": format_currency(monthly.rates_and_taxes)},
        {"Item": "Water & Electricity", "Amount": format_currency(monthly.utilities)},
        {"Item": "Levies", "Amount": format_currency(monthly.levies)},
        {"Item": "Total Monthly Cost", "Amount": format_currency(monthly.total)},
    ])
    return rows


def create_once_off_table_data(breakdown: CostBreakdown, is_bonded: bool) -> list[dict]:
    """Rows for the once-off cost table; bond registration only when bonded."""
    once_off = breakdown.once_off
    rows = [
        {"Item": "Transfer Duty", "Amount": format_currency(once_off.transfer_duty)},
        {"Item": "Transfer Attorney Fees", "Amount": format_currency(once_off.transfer_attorney_fees)},
        {"Item": "Deeds Office Fees", "Amount": format_currency(once_off.deeds_office_fees)},
    ]
    if is_bonded:
        rows.append({
            "Item": "Bond Registration Costs",
            "Amount": format_currency(once_off.bond_registration_cost),
        })
    rows.append({"Item": "Total Once-off", "Amount": format_currency(once_off.total)})
    return rows
