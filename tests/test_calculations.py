import dataclasses
import logging
import math

import pytest

from calculations import (
    CalculatorState,
    CostBreakdown,
    calculate_bond_registration_cost,
    calculate_deeds_office_fees,
    calculate_monthly_bond_repayment,
    calculate_transfer_attorney_fees,
    calculate_transfer_duty,
    clamp_interest_rate,
    compute_breakdown,
    format_currency,
    normalize_loan_term,
    parse_currency_input,
    slider_rate,
)
from constants import TRANSFER_DUTY_BRACKETS


def _pmt(loan, rate_percent, years):
    r = rate_percent / 100 / 12
    n = years * 12
    return loan * r * (1 + r) ** n / ((1 + r) ** n - 1)


# =============================================================================
# TARIFF TABLES
# =============================================================================

def test_duty_brackets_partition_from_zero():
    assert TRANSFER_DUTY_BRACKETS[0].min == 0
    assert math.isinf(TRANSFER_DUTY_BRACKETS[-1].max)
    for prev, nxt in zip(TRANSFER_DUTY_BRACKETS, TRANSFER_DUTY_BRACKETS[1:]):
        assert nxt.min == prev.max + 1
        assert nxt.rate >= prev.rate


# =============================================================================
# TRANSFER DUTY
# =============================================================================

@pytest.mark.parametrize("price, expected", [
    (0, 0),
    (-250_000, 0),
    (800_000, 0),
    (1_100_000, 0),
    (1_100_001, 0),
    (1_500_000, 12_000),
    (2_000_000, 33_825),
    (3_000_000, 110_225),
])
def test_transfer_duty(price, expected):
    assert calculate_transfer_duty(price) == expected


def test_transfer_duty_non_decreasing():
    prices = range(0, 3_500_000, 7_919)
    duties = [calculate_transfer_duty(p) for p in prices]
    assert duties == sorted(duties)


@pytest.mark.parametrize("boundary", [1_100_000, 1_512_500, 2_100_000])
def test_transfer_duty_continuous_at_bracket_edges(boundary):
    below = calculate_transfer_duty(boundary)
    above = calculate_transfer_duty(boundary + 1)
    assert 0 <= above - below <= 1


# =============================================================================
# FEES
# =============================================================================

@pytest.mark.parametrize("price, expected", [
    (0, 0),
    (300_000, 13_640),
    (1_000_000, 33_995),
])
def test_transfer_attorney_fees(price, expected):
    assert calculate_transfer_attorney_fees(price) == expected


def test_transfer_attorney_fees_include_disbursements_on_small_price():
    assert calculate_transfer_attorney_fees(1) == 2_600


@pytest.mark.parametrize("price, expected", [
    (0, 0),
    (100_000, 45),
    (100_001, 114),
    (1_500_000, 3_313),
    (25_000_000, 20_342),
])
def test_deeds_office_fees(price, expected):
    assert calculate_deeds_office_fees(price) == expected


def test_bond_registration_cost():
    # 3 750 deeds + 25 300 attorney incl. VAT + 6 000 initiation + 1 700 disbursements
    assert calculate_bond_registration_cost(1_000_000) == 40_545


@pytest.mark.parametrize("loan", [0, -1, float("nan")])
def test_bond_registration_cost_without_loan(loan):
    assert calculate_bond_registration_cost(loan) == 0


def test_bond_registration_grows_with_loan():
    assert calculate_bond_registration_cost(2_500_000) > calculate_bond_registration_cost(1_000_000)


# =============================================================================
# BOND REPAYMENT
# =============================================================================

@pytest.mark.parametrize("rate, years", [(0, 20), (11.75, 20), (20, 30), (5, 10)])
def test_repayment_zero_without_loan(rate, years):
    assert calculate_monthly_bond_repayment(0, rate, years) == 0


@pytest.mark.parametrize("loan, years", [(1_200_000, 20), (1_000_000, 30), (750_000, 15)])
def test_repayment_at_zero_rate_is_straight_line(loan, years):
    assert calculate_monthly_bond_repayment(loan, 0, years) == round(loan / (years * 12))


def test_repayment_scenario():
    payment = calculate_monthly_bond_repayment(1_350_000, 11.75, 20)
    assert payment == round(_pmt(1_350_000, 11.75, 20))
    assert 14_400 < payment < 14_700


def test_repayment_shorter_term_costs_more_per_month():
    assert calculate_monthly_bond_repayment(1_000_000, 11.75, 10) > \
        calculate_monthly_bond_repayment(1_000_000, 11.75, 30)


@pytest.mark.parametrize("years", [0, -5])
def test_repayment_with_invalid_term_is_zero_and_warns(years, caplog):
    with caplog.at_level(logging.WARNING, logger="calculations"):
        assert calculate_monthly_bond_repayment(1_000_000, 11.75, years) == 0
    assert "cannot be amortised" in caplog.text


def test_repayment_with_non_finite_rate_is_zero(caplog):
    with caplog.at_level(logging.WARNING, logger="calculations"):
        assert calculate_monthly_bond_repayment(1_000_000, float("nan"), 20) == 0
    assert "Non-finite" in caplog.text


# =============================================================================
# COST BREAKDOWN
# =============================================================================

def test_breakdown_scenario(bonded_state):
    breakdown = compute_breakdown(bonded_state)

    assert breakdown.once_off.transfer_duty == 12_000
    assert breakdown.monthly.bond_repayment == calculate_monthly_bond_repayment(1_350_000, 11.75, 20)
    assert breakdown.monthly.rates_and_taxes == 2_500
    assert breakdown.monthly.utilities == 1_800
    assert breakdown.monthly.levies == 1_200
    assert breakdown.once_off.bond_registration_cost == calculate_bond_registration_cost(1_350_000)


def test_breakdown_totals_sum_line_items(bonded_state):
    breakdown = compute_breakdown(bonded_state)
    monthly, once_off = breakdown.monthly, breakdown.once_off

    assert monthly.total == (
        monthly.bond_repayment + monthly.rates_and_taxes + monthly.utilities + monthly.levies
    )
    assert once_off.total == (
        once_off.transfer_duty
        + once_off.transfer_attorney_fees
        + once_off.deeds_office_fees
        + once_off.bond_registration_cost
    )


def test_breakdown_is_idempotent(bonded_state):
    assert compute_breakdown(bonded_state) == compute_breakdown(bonded_state)


def test_breakdown_does_not_modify_state(bonded_state):
    before = dataclasses.replace(bonded_state)
    compute_breakdown(bonded_state)
    assert bonded_state == before


def test_empty_state_gives_zero_breakdown(bonded_state):
    bonded_state.asking_price = 0
    breakdown = compute_breakdown(bonded_state)

    assert breakdown == CostBreakdown.empty()
    assert breakdown.is_empty
    assert breakdown.monthly.total == 0
    assert breakdown.once_off.total == 0


def test_cash_purchase_zeroes_bond_lines(bonded_state):
    bonded_state.is_bonded = False
    breakdown = compute_breakdown(bonded_state)

    assert breakdown.monthly.bond_repayment == 0
    assert breakdown.once_off.bond_registration_cost == 0
    assert breakdown.once_off.transfer_duty == 12_000
    assert breakdown.monthly.total == 2_500 + 1_800 + 1_200


def test_default_state_is_empty():
    assert CalculatorState().is_empty
    assert compute_breakdown(CalculatorState()).is_empty


# =============================================================================
# INPUT NORMALISATION
# =============================================================================

@pytest.mark.parametrize("raw, expected", [
    ("1 500 000", 1_500_000),
    ("1\u00a0500\u202f000", 1_500_000),
    ("R 2 500", 2_500),
    ("2500.50", 2_500.5),
    (1_800, 1_800),
    ("", 0),
    ("-", 0),
    ("abc", 0),
    ("1.2.3", 0),
    ("-500", 0),
    ("nan", 0),
    ("inf", 0),
    (None, 0),
])
def test_parse_currency_input(raw, expected):
    assert parse_currency_input(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    (20, 20),
    ("25", 25),
    (22, 20),
    (100, 30),
    (0, 0),
    ("", 0),
    ("abc", 0),
])
def test_normalize_loan_term(raw, expected):
    assert normalize_loan_term(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    (11.75, 11.75),
    ("11.8", 11.75),
    (3, 5.0),
    (22, 20.0),
    ("", 0.0),
    (0, 0.0),
])
def test_clamp_interest_rate_for_slider(raw, expected):
    assert clamp_interest_rate(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    ("22.5", 22.5),
    (30, 25.0),
    (4, 5.0),
    ("13.33", 13.33),
])
def test_clamp_interest_rate_for_exact_input(raw, expected):
    assert clamp_interest_rate(raw, maximum=25, step=None) == expected


@pytest.mark.parametrize("rate, expected", [(22.5, 20.0), (11.75, 11.75), (0, 5.0)])
def test_slider_rate_stays_in_slider_range(rate, expected):
    assert slider_rate(rate) == expected


@pytest.mark.parametrize("amount, expected", [
    (1_500_000, "R 1 500 000"),
    (2_500.4, "R 2 500"),
    (0, "R 0"),
    (-2_500, "-R 2 500"),
    (-0.4, "R 0"),
])
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected
