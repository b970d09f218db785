"""
South African Property Cost Calculator - Snapshots

Saves and restores a calculator state in a key-value store so a user's
inputs survive a page reload. Any MutableMapping of str -> str can back
the store (a plain dict, or Streamlit's session state).
"""

import dataclasses
import json
import logging
import math
from collections.abc import MutableMapping
from typing import Optional

from calculations import CalculatorState, clamp_interest_rate, normalize_loan_term
from constants import INTEREST_RATE_INPUT_MAX, SECTIONS

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
STANDALONE_KEY = "calculator_standalone"


def snapshot_key(property_id: str) -> str:
    """Store key for the calculator attached to a property listing."""
    return f"calculator_{property_id}"


# =============================================================================
# ENCODING
# =============================================================================

def encode_state(state: CalculatorState) -> str:
    """Serialise a state to a versioned JSON document."""
    return json.dumps(
        {"version": SNAPSHOT_VERSION, "state": dataclasses.asdict(state)},
        sort_keys=True,
        allow_nan=False,
    )


def _number(raw, default: float) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return default
    if not math.isfinite(raw) or raw < 0:
        return default
    return raw


def decode_state(payload: str) -> CalculatorState:
    """
    Rebuild a state from a JSON document written by encode_state.

    Unknown fields are ignored; missing or malformed fields fall back to
    their defaults. Raises ValueError if the document itself is unusable.
    """
    document = json.loads(payload)
    if not isinstance(document, dict) or not isinstance(document.get("state"), dict):
        raise ValueError("snapshot has no state object")

    version = document.get("version")
    if version != SNAPSHOT_VERSION:
        logger.warning("Reading snapshot version %r as version %d", version, SNAPSHOT_VERSION)

    raw = document["state"]
    defaults = CalculatorState()

    is_bonded = raw.get("is_bonded", defaults.is_bonded)
    if not isinstance(is_bonded, bool):
        is_bonded = defaults.is_bonded

    loan_term = raw.get("loan_term_years")
    if isinstance(loan_term, bool) or not isinstance(loan_term, int):
        loan_term = defaults.loan_term_years

    raw_sections = raw.get("sections_expanded")
    if isinstance(raw_sections, dict):
        sections = {name: flag for name, flag in raw_sections.items() if isinstance(flag, bool)}
    else:
        sections = dict(SECTIONS)

    return CalculatorState(
        asking_price=_number(raw.get("asking_price"), defaults.asking_price),
        is_bonded=is_bonded,
        loan_amount=_number(raw.get("loan_amount"), defaults.loan_amount),
        loan_term_years=normalize_loan_term(loan_term),
        interest_rate_percent=clamp_interest_rate(
            _number(raw.get("interest_rate_percent"), defaults.interest_rate_percent),
            maximum=INTEREST_RATE_INPUT_MAX,
            step=None,
        ),
        monthly_rates_and_taxes=_number(
            raw.get("monthly_rates_and_taxes"), defaults.monthly_rates_and_taxes
        ),
        monthly_utilities=_number(raw.get("monthly_utilities"), defaults.monthly_utilities),
        monthly_levies=_number(raw.get("monthly_levies"), defaults.monthly_levies),
        sections_expanded=sections,
    )


# =============================================================================
# STORE ADAPTER
# =============================================================================

class SnapshotStore:
    """
    Key-value persistence for calculator states.

    Failures never propagate: load() returns None and save() returns False,
    and the calculation carries on in memory.
    """

    def __init__(self, backend: Optional[MutableMapping] = None):
        self.backend = backend if backend is not None else {}

    def load(self, key: str) -> Optional[CalculatorState]:
        try:
            payload = self.backend.get(key)
        except Exception:
            logger.exception("Snapshot store unavailable while loading %s", key)
            return None

        if payload is None:
            return None

        try:
            return decode_state(payload)
        except (TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable snapshot %s: %s", key, exc)
            return None

    def save(self, key: str, state: CalculatorState) -> bool:
        try:
            payload = encode_state(state)
        except (TypeError, ValueError):
            logger.exception("Could not serialise calculator state for %s", key)
            return False

        try:
            self.backend[key] = payload
        except Exception:
            logger.exception("Snapshot store unavailable while saving %s", key)
            return False

        logger.debug("Saved snapshot %s", key)
        return True
