"""Heuristic matching of unlinked legacy transactions to payment schedule entries.

Ledger rows recorded before transactions carried a schedule link can only be
tied to a payment by name, amount and date proximity. Everything here is a
last-resort signal and stays separate from the deterministic link rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from ..domain.period import Period
from ..models.transaction import Transaction


@dataclass(slots=True, frozen=True)
class MatchSettings:
    """Tolerances applied when matching by name, amount and date."""

    amount_tolerance: float = 1.0
    min_name_length: int = 3
    grace_days: int = 7

    @classmethod
    def from_config(cls, config) -> "MatchSettings":
        return cls(
            amount_tolerance=config.AMOUNT_TOLERANCE,
            min_name_length=config.MIN_NAME_LENGTH,
            grace_days=config.GRACE_DAYS,
        )


def names_match(item_name: str, transaction_name: str, *, min_length: int = 3) -> bool:
    """Case-insensitive containment in either direction.

    The contained string must be at least ``min_length`` characters so short
    names like "TV" do not match every transaction.
    """

    item = item_name.strip().lower()
    txn = transaction_name.strip().lower()
    if not item or not txn:
        return False
    return (len(item) >= min_length and item in txn) or (len(txn) >= min_length and txn in item)


def amounts_match(expected: float, actual: float, *, tolerance: float = 1.0) -> bool:
    return abs(float(actual) - float(expected)) <= tolerance


def date_in_window(period: Period, when: date, *, grace_days: int = 7) -> bool:
    """Return True when ``when`` counts as a payment for ``period``.

    Accepted: any day of the period itself; December of the prior year for
    January periods; up to ``grace_days`` days after the period ends.
    """

    if period.contains(when):
        return True
    if period.month == 1 and period.previous().contains(when):
        return True
    return period.last_day < when <= period.grace_end(grace_days)


def find_match(
    *,
    source_name: str,
    expected_amount: float,
    period: Period,
    transactions: Iterable[Transaction],
    settings: MatchSettings | None = None,
) -> Optional[Transaction]:
    """Return the earliest unlinked transaction that looks like this period's payment."""

    rules = settings or MatchSettings()
    if expected_amount is None or expected_amount <= 0:
        return None

    candidates = sorted(
        (t for t in transactions if t.obligation_id is None),
        key=lambda t: (t.occurred_on, t.id or 0),
    )
    for txn in candidates:
        if not names_match(source_name, txn.name, min_length=rules.min_name_length):
            continue
        if not amounts_match(expected_amount, txn.amount, tolerance=rules.amount_tolerance):
            continue
        if date_in_window(period, txn.occurred_on, grace_days=rules.grace_days):
            return txn
    return None


__all__ = ["MatchSettings", "amounts_match", "date_in_window", "find_match", "names_match"]
