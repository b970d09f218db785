"""
South African Property Cost Calculator - Constants

Transfer duty brackets, deeds office and conveyancing tariffs, and the
default values used by the calculator UI.
Last updated: October 2026
"""

import math
from dataclasses import dataclass


# =============================================================================
# TARIFF DATA TYPES
# =============================================================================

@dataclass(frozen=True)
class TariffBracket:
    """One band of a progressive tax, inclusive on both ends."""
    min: float
    max: float  # math.inf for the top bracket
    rate: float


@dataclass(frozen=True)
class FlatFeeTier:
    """Step schedule entry: any amount up to upper_bound pays a fixed fee."""
    upper_bound: float
    fee: float


@dataclass(frozen=True)
class MarginalFeeTier:
    """
    Base-plus-marginal schedule entry.

    Amounts up to upper_bound pay `base` plus `marginal_rate` on the part
    above the previous tier's upper bound.
    """
    upper_bound: float
    base: float
    marginal_rate: float


# =============================================================================
# TRANSFER DUTY (SARS)
# =============================================================================

# Rates are applied per band; the top band is unbounded.
# TODO: confirm the 4.4% band against the current SARS table before release.
TRANSFER_DUTY_BRACKETS = (
    TariffBracket(min=0, max=1_100_000, rate=0.0),
    TariffBracket(min=1_100_001, max=1_512_500, rate=0.03),
    TariffBracket(min=1_512_501, max=2_100_000, rate=0.044),
    TariffBracket(min=2_100_001, max=math.inf, rate=0.08),
)


# =============================================================================
# CONVEYANCING & REGISTRATION
# =============================================================================

VAT_RATE = 0.15  # SARS standard rate

# Transfer attorney fees on purchase price (excl. VAT)
TRANSFER_ATTORNEY_TIERS = (
    MarginalFeeTier(upper_bound=300_000, base=0, marginal_rate=0.032),
    MarginalFeeTier(upper_bound=600_000, base=9_600, marginal_rate=0.027),
    MarginalFeeTier(upper_bound=1_000_000, base=17_700, marginal_rate=0.024),
    MarginalFeeTier(upper_bound=2_000_000, base=27_300, marginal_rate=0.021),
    MarginalFeeTier(upper_bound=math.inf, base=48_300, marginal_rate=0.018),
)

# Postage, FICA, searches and rates clearance charged on top of the transfer fee
TRANSFER_DISBURSEMENTS = 2_600

# Deeds office fee for registering transfer, by purchase price
TRANSFER_DEEDS_OFFICE_TIERS = (
    FlatFeeTier(upper_bound=100_000, fee=45),
    FlatFeeTier(upper_bound=200_000, fee=114),
    FlatFeeTier(upper_bound=300_000, fee=1_300),
    FlatFeeTier(upper_bound=600_000, fee=1_671),
    FlatFeeTier(upper_bound=800_000, fee=2_346),
    FlatFeeTier(upper_bound=1_000_000, fee=2_713),
    FlatFeeTier(upper_bound=2_000_000, fee=3_313),
    FlatFeeTier(upper_bound=4_000_000, fee=4_124),
    FlatFeeTier(upper_bound=6_000_000, fee=5_424),
    FlatFeeTier(upper_bound=8_000_000, fee=6_510),
    FlatFeeTier(upper_bound=10_000_000, fee=8_114),
    FlatFeeTier(upper_bound=15_000_000, fee=10_120),
    FlatFeeTier(upper_bound=20_000_000, fee=13_558),
    FlatFeeTier(upper_bound=math.inf, fee=20_342),
)

# Deeds office fee for registering the bond, by loan amount
BOND_DEEDS_OFFICE_TIERS = (
    FlatFeeTier(upper_bound=100_000, fee=750),
    FlatFeeTier(upper_bound=300_000, fee=1_500),
    FlatFeeTier(upper_bound=600_000, fee=2_250),
    FlatFeeTier(upper_bound=1_000_000, fee=3_750),
    FlatFeeTier(upper_bound=2_000_000, fee=6_000),
    FlatFeeTier(upper_bound=math.inf, fee=9_000),
)

# Bond attorney fees on loan amount (excl. VAT)
BOND_ATTORNEY_TIERS = (
    MarginalFeeTier(upper_bound=100_000, base=5_750, marginal_rate=0.0),
    MarginalFeeTier(upper_bound=500_000, base=5_750, marginal_rate=0.0345),
    MarginalFeeTier(upper_bound=1_000_000, base=19_550, marginal_rate=0.0115),
    MarginalFeeTier(upper_bound=2_000_000, base=25_300, marginal_rate=0.0055),
    MarginalFeeTier(upper_bound=math.inf, base=30_800, marginal_rate=0.0044),
)

BANK_INITIATION_FEE = 6_000
BOND_DISBURSEMENTS = 1_700


# =============================================================================
# HOME LOAN PARAMETERS
# =============================================================================

LOAN_TERM_OPTIONS = (10, 15, 20, 25, 30)

# Slider range for the interest rate
INTEREST_RATE_MIN = 5.0
INTEREST_RATE_MAX = 20.0
INTEREST_RATE_STEP = 0.25

# The exact-rate text field allows a little more headroom than the slider
INTEREST_RATE_INPUT_MAX = 25.0


# =============================================================================
# DEFAULT VALUES FOR UI
# =============================================================================

# Collapsible calculator sections and whether they start open
SECTIONS = {
    "property": True,
    "bond": True,
    "monthly": True,
    "breakdown": False,
}

DEFAULTS = {
    "asking_price": 0,
    "is_bonded": True,
    "loan_term_years": 20,
    "interest_rate_percent": 11.75,  # prime lending rate
    "monthly_rates_and_taxes": 0,
    "monthly_utilities": 0,
    "monthly_levies": 0,
}

# Listings shown on the per-property tab: property id -> (title, listed price)
SAMPLE_LISTINGS = {
    "CPT-1042": ("2 Bed Apartment, Sea Point", 2_450_000),
    "JHB-0871": ("3 Bed Townhouse, Fourways", 1_495_000),
    "DBN-0333": ("Family Home, Westville", 3_100_000),
    "PTA-2210": ("Studio, Hatfield", 785_000),
}

# Step for the currency number inputs
PRICE_INPUT_STEP = 10_000
