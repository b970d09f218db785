import pytest

from calculations import CalculatorState
from snapshot import SnapshotStore


class OfflineBackend(dict):
    """Key-value backend that accepts reads but refuses every write."""

    def __setitem__(self, key, value):
        raise OSError("store offline")


@pytest.fixture
def store():
    return SnapshotStore({})


@pytest.fixture
def offline_store():
    return SnapshotStore(OfflineBackend())


@pytest.fixture
def bonded_state():
    return CalculatorState(
        asking_price=1_500_000,
        is_bonded=True,
        loan_amount=1_350_000,
        loan_term_years=20,
        interest_rate_percent=11.75,
        monthly_rates_and_taxes=2_500,
        monthly_utilities=1_800,
        monthly_levies=1_200,
    )
