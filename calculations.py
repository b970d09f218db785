"""
South African Property Cost Calculator - Calculations

Transfer duty, conveyancing and deeds office fees, bond registration costs
and monthly bond repayments, plus the aggregation of these into a single
cost breakdown for a calculator state.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Optional

from constants import (
    TRANSFER_DUTY_BRACKETS,
    TRANSFER_ATTORNEY_TIERS,
    TRANSFER_DISBURSEMENTS,
    TRANSFER_DEEDS_OFFICE_TIERS,
    BOND_DEEDS_OFFICE_TIERS,
    BOND_ATTORNEY_TIERS,
    BANK_INITIATION_FEE,
    BOND_DISBURSEMENTS,
    VAT_RATE,
    DEFAULTS,
    SECTIONS,
    LOAN_TERM_OPTIONS,
    INTEREST_RATE_MIN,
    INTEREST_RATE_MAX,
    INTEREST_RATE_STEP,
    FlatFeeTier,
    MarginalFeeTier,
    TariffBracket,
)

logger = logging.getLogger(__name__)


@dataclass
class CalculatorState:
    """Everything the user has entered into one calculator."""
    asking_price: float = DEFAULTS["asking_price"]
    is_bonded: bool = DEFAULTS["is_bonded"]
    loan_amount: float = 0  # only meaningful when is_bonded
    loan_term_years: int = DEFAULTS["loan_term_years"]
    interest_rate_percent: float = DEFAULTS["interest_rate_percent"]
    monthly_rates_and_taxes: float = DEFAULTS["monthly_rates_and_taxes"]
    monthly_utilities: float = DEFAULTS["monthly_utilities"]
    monthly_levies: float = DEFAULTS["monthly_levies"]
    sections_expanded: dict = field(default_factory=lambda: dict(SECTIONS))

    @property
    def is_empty(self) -> bool:
        return not self.asking_price > 0


@dataclass(frozen=True)
class MonthlyCosts:
    """Recurring costs of owning the property."""
    bond_repayment: int = 0
    rates_and_taxes: int = 0
    utilities: int = 0
    levies: int = 0
    total: int = 0


@dataclass(frozen=True)
class OnceOffCosts:
    """Costs paid when the transfer is registered."""
    transfer_duty: int = 0
    transfer_attorney_fees: int = 0
    deeds_office_fees: int = 0  # on the purchase price
    bond_registration_cost: int = 0
    total: int = 0


@dataclass(frozen=True)
class CostBreakdown:
    """Result of a calculation. Always fully populated; zeros when empty."""
    monthly: MonthlyCosts = field(default_factory=MonthlyCosts)
    once_off: OnceOffCosts = field(default_factory=OnceOffCosts)

    @classmethod
    def empty(cls) -> "CostBreakdown":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self == CostBreakdown.empty()


# =============================================================================
# ROUNDING
# =============================================================================

def round_rand(amount: float) -> int:
    """Round half-up to the nearest whole rand."""
    return int(math.floor(amount + 0.5))


def _to_rand(amount: float, item: str) -> int:
    """Round a formula result, resolving non-finite values to zero."""
    if not math.isfinite(amount):
        logger.warning("Non-finite %s (%r); reporting 0", item, amount)
        return 0
    return round_rand(amount)


# =============================================================================
# TARIFF LOOKUPS
# =============================================================================

def _progressive_tax(amount: float, brackets: tuple[TariffBracket, ...]) -> float:
    """Sum the tax due in every bracket the amount reaches into."""
    total = 0.0
    for bracket in brackets:
        if amount > bracket.min:
            total += (min(amount, bracket.max) - bracket.min + 1) * bracket.rate
    return total


def _flat_fee(amount: float, tiers: tuple[FlatFeeTier, ...]) -> float:
    for tier in tiers:
        if amount <= tier.upper_bound:
            return tier.fee
    return tiers[-1].fee


def _marginal_fee(amount: float, tiers: tuple[MarginalFeeTier, ...]) -> float:
    lower = 0.0
    for tier in tiers:
        if amount <= tier.upper_bound:
            return tier.base + (amount - lower) * tier.marginal_rate
        lower = tier.upper_bound
    last = tiers[-1]
    return last.base + (amount - lower) * last.marginal_rate


# =============================================================================
# ONCE-OFF COSTS
# =============================================================================

def calculate_transfer_duty(price: float) -> int:
    """
    Calculate transfer duty payable to SARS on the purchase price.

    Each bracket the price reaches into is taxed at its own rate; the total
    is rounded once at the end so bands do not accumulate rounding drift.
    """
    if not price > 0:
        return 0
    return _to_rand(_progressive_tax(price, TRANSFER_DUTY_BRACKETS), "transfer duty")


def calculate_transfer_attorney_fees(price: float) -> int:
    """
    Calculate conveyancing fees for the transfer, including VAT and
    disbursements (postage, FICA, searches).
    """
    if not price > 0:
        return 0
    fee = _marginal_fee(price, TRANSFER_ATTORNEY_TIERS)
    return _to_rand(fee * (1 + VAT_RATE) + TRANSFER_DISBURSEMENTS, "transfer attorney fees")


def calculate_deeds_office_fees(price: float) -> int:
    """Deeds office registration fee for the transfer."""
    if not price > 0:
        return 0
    return _to_rand(_flat_fee(price, TRANSFER_DEEDS_OFFICE_TIERS), "deeds office fees")


def calculate_bond_registration_cost(loan_amount: float) -> int:
    """
    Calculate the cost of registering a bond over the property.

    Includes:
    - Deeds office fee on the loan amount
    - Bond attorney fee (VAT inclusive)
    - Bank initiation fee
    - Attorney disbursements
    """
    if not loan_amount > 0:
        return 0
    deeds = _flat_fee(loan_amount, BOND_DEEDS_OFFICE_TIERS)
    attorney = _marginal_fee(loan_amount, BOND_ATTORNEY_TIERS) * (1 + VAT_RATE)
    total = deeds + attorney + BANK_INITIATION_FEE + BOND_DISBURSEMENTS
    return _to_rand(total, "bond registration cost")


# =============================================================================
# MONTHLY COSTS
# =============================================================================

def calculate_monthly_bond_repayment(
    loan_amount: float,
    rate_percent: float,
    term_years: int
) -> int:
    """
    Calculate the monthly repayment on a fully amortising home loan.

    PMT = P * [r(1+r)^n] / [(1+r)^n - 1]
    where:
        P = Principal (loan amount)
        r = Monthly interest rate (annual percentage / 100 / 12)
        n = Number of months

    A zero rate falls back to P / n. A non-positive term cannot be
    amortised and is reported as 0.
    """
    if not loan_amount > 0:
        return 0

    n = term_years * 12
    if not n > 0:
        logger.warning("Loan term of %r years cannot be amortised; repayment is 0", term_years)
        return 0

    r = rate_percent / 100 / 12
    if r == 0:
        return _to_rand(loan_amount / n, "bond repayment")

    try:
        growth = (1 + r) ** n
        payment = loan_amount * r * growth / (growth - 1)
    except (OverflowError, ZeroDivisionError):
        logger.warning(
            "Bond repayment undefined for rate=%r%% term=%r; reporting 0",
            rate_percent,
            term_years,
        )
        return 0
    return _to_rand(payment, "bond repayment")


# =============================================================================
# COST BREAKDOWN
# =============================================================================

def compute_breakdown(state: CalculatorState) -> CostBreakdown:
    """
    Compute every monthly and once-off cost for a calculator state.

    Pure: safe to call on every keystroke. A state without an asking price
    yields the empty breakdown so callers can render a placeholder instead
    of results. Bond lines are zero when the purchase is not bonded.
    """
    if state.is_empty:
        return CostBreakdown.empty()

    price = state.asking_price
    loan = state.loan_amount if state.is_bonded else 0

    bond_repayment = 0
    bond_registration = 0
    if state.is_bonded:
        bond_repayment = calculate_monthly_bond_repayment(
            loan, state.interest_rate_percent, state.loan_term_years
        )
        bond_registration = calculate_bond_registration_cost(loan)

    rates_and_taxes = _to_rand(state.monthly_rates_and_taxes, "rates and taxes")
    utilities = _to_rand(state.monthly_utilities, "utilities")
    levies = _to_rand(state.monthly_levies, "levies")

    monthly = MonthlyCosts(
        bond_repayment=bond_repayment,
        rates_and_taxes=rates_and_taxes,
        utilities=utilities,
        levies=levies,
        total=bond_repayment + rates_and_taxes + utilities + levies,
    )

    transfer_duty = calculate_transfer_duty(price)
    attorney_fees = calculate_transfer_attorney_fees(price)
    deeds_fees = calculate_deeds_office_fees(price)

    once_off = OnceOffCosts(
        transfer_duty=transfer_duty,
        transfer_attorney_fees=attorney_fees,
        deeds_office_fees=deeds_fees,
        bond_registration_cost=bond_registration,
        total=transfer_duty + attorney_fees + deeds_fees + bond_registration,
    )

    return CostBreakdown(monthly=monthly, once_off=once_off)


# =============================================================================
# INPUT NORMALISATION
# =============================================================================

_WHITESPACE = re.compile(r"\s+")


def parse_currency_input(value) -> float:
    """
    Turn free-typed input into a non-negative amount.

    Accepts numbers or digit strings with space thousand separators
    ("1 500 000") and an optional leading "R". Anything else, including
    partial input such as "", "-" or "1.2.3", becomes 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        text = _WHITESPACE.sub("", str(value)).removeprefix("R")
        try:
            amount = float(text)
        except ValueError:
            return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def normalize_loan_term(value) -> int:
    """Snap a loan term to the nearest offered term; 0 when not entered."""
    years = parse_currency_input(value)
    if years == 0:
        return 0
    return min(LOAN_TERM_OPTIONS, key=lambda option: abs(option - years))


def clamp_interest_rate(
    value,
    maximum: float = INTEREST_RATE_MAX,
    step: Optional[float] = INTEREST_RATE_STEP
) -> float:
    """
    Clamp an interest rate to [INTEREST_RATE_MIN, maximum].

    The slider snaps to `step`; the exact-rate field passes step=None and a
    higher maximum. An empty or zero entry stays 0.
    """
    rate = parse_currency_input(value)
    if rate == 0:
        return 0.0
    rate = min(max(rate, INTEREST_RATE_MIN), maximum)
    if step:
        rate = round(rate / step) * step
    return round(rate, 2)


def slider_rate(rate: float) -> float:
    """Slider position that represents a stored rate."""
    return clamp_interest_rate(max(rate, INTEREST_RATE_MIN))


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_currency(amount: float) -> str:
    """Format amount as South African rand, e.g. "R 1 500 000"."""
    rounded = round_rand(amount)
    grouped = f"{abs(rounded):,}".replace(",", " ")
    if rounded >= 0:
        return f"R {grouped}"
    else:
        return f"-R {grouped}"
