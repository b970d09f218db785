"""
South African Property Cost Calculator - State Manager

Owns the inputs of one calculator session, applies the derivation rules
between fields (e.g. the loan amount following the asking price) and keeps
the cost breakdown and saved snapshot up to date after every edit.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Optional

from calculations import (
    CalculatorState,
    CostBreakdown,
    compute_breakdown,
    parse_currency_input,
    normalize_loan_term,
    clamp_interest_rate,
)
from constants import INTEREST_RATE_INPUT_MAX, SECTIONS
from snapshot import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of applying one user edit."""
    state: CalculatorState
    breakdown: CostBreakdown
    changed: bool  # False when the edit was a no-op
    needs_rebuild: bool = False  # optional sections appeared or disappeared


def new_state(listed_price=None) -> CalculatorState:
    """Default state, optionally seeded from a property's listed price."""
    price = parse_currency_input(listed_price)
    state = CalculatorState(asking_price=price)
    if state.is_bonded:
        state.loan_amount = price
    return state


class StateManager:
    """
    Controller for a single calculator session.

    Each UI surface (standalone page, inline per-property calculator) gets
    its own manager and snapshot key; the state passed in is copied so two
    managers never share inputs.
    """

    def __init__(
        self,
        state: Optional[CalculatorState] = None,
        store: Optional[SnapshotStore] = None,
        key: Optional[str] = None
    ):
        self.state = copy.deepcopy(state) if state is not None else new_state()
        self.store = store
        self.key = key
        # Set once the user types a loan amount; price edits stop overwriting it
        self.loan_amount_dirty = False
        self.breakdown = compute_breakdown(self.state)

    @classmethod
    def open(cls, store: SnapshotStore, key: str, listed_price=None) -> "StateManager":
        """Resume the session saved under `key`, or start a fresh one."""
        state = store.load(key)
        if state is None:
            logger.debug("No snapshot for %s, starting from defaults", key)
            state = new_state(listed_price)
        return cls(state, store, key)

    # =========================================================================
    # Field updates
    # =========================================================================

    def set_asking_price(self, value) -> UpdateResult:
        price = parse_currency_input(value)
        changes = {"asking_price": price}
        if self.state.is_bonded and not self.loan_amount_dirty:
            changes["loan_amount"] = price
        return self._apply(changes)

    def set_loan_amount(self, value) -> UpdateResult:
        self.loan_amount_dirty = True
        return self._apply({"loan_amount": parse_currency_input(value)})

    def toggle_bonded(self, flag: bool) -> UpdateResult:
        flag = bool(flag)
        if flag == self.state.is_bonded:
            return self._apply({})
        if flag:
            self.loan_amount_dirty = False
            return self._apply({"is_bonded": True, "loan_amount": self.state.asking_price})
        return self._apply({"is_bonded": False, "loan_amount": 0.0})

    def set_loan_term(self, years) -> UpdateResult:
        return self._apply({"loan_term_years": normalize_loan_term(years)})

    def set_interest_rate(self, value, source: str = "slider") -> UpdateResult:
        """
        Update the interest rate from either rate widget.

        The slider is limited to its own range and step; the exact-rate
        field ("input") allows rates up to INTEREST_RATE_INPUT_MAX.
        """
        if source == "input":
            rate = clamp_interest_rate(value, maximum=INTEREST_RATE_INPUT_MAX, step=None)
        else:
            rate = clamp_interest_rate(value)
        return self._apply({"interest_rate_percent": rate})

    def set_monthly_rates_and_taxes(self, value) -> UpdateResult:
        return self._apply({"monthly_rates_and_taxes": parse_currency_input(value)})

    def set_monthly_utilities(self, value) -> UpdateResult:
        return self._apply({"monthly_utilities": parse_currency_input(value)})

    def set_monthly_levies(self, value) -> UpdateResult:
        return self._apply({"monthly_levies": parse_currency_input(value)})

    def toggle_section(self, name: str) -> UpdateResult:
        """Expand or collapse a section. Costs are not recalculated."""
        expanded = self.state.sections_expanded.get(name, SECTIONS.get(name, False))
        self.state.sections_expanded[name] = not expanded
        self._save()
        return UpdateResult(self.state, self.breakdown, changed=True)

    # =========================================================================
    # Recalculation
    # =========================================================================

    def recompute(self) -> CostBreakdown:
        """Recalculate costs from the current state without saving."""
        self.breakdown = compute_breakdown(self.state)
        return self.breakdown

    def _apply(self, changes: dict) -> UpdateResult:
        changed = any(getattr(self.state, name) != value for name, value in changes.items())
        if not changed:
            return UpdateResult(self.state, self.breakdown, changed=False)

        was_empty = self.state.is_empty
        was_bonded = self.state.is_bonded
        for name, value in changes.items():
            setattr(self.state, name, value)

        self.recompute()
        needs_rebuild = was_empty != self.state.is_empty or was_bonded != self.state.is_bonded
        self._save()
        return UpdateResult(self.state, self.breakdown, changed=True, needs_rebuild=needs_rebuild)

    def _save(self) -> None:
        if self.store is None or self.key is None:
            return
        if not self.store.save(self.key, self.state):
            logger.warning("Calculator %s is running unsaved", self.key)
