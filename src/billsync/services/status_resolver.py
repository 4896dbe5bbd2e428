"""Reconcile a payment schedule entry with the ledger into a display status.

Evidence is considered from most to least trustworthy:

1. transactions linked to the entry (summed when several are linked),
2. an ``amount_paid`` stored without any linked transaction, flagged as a
   manual override so callers can warn about it,
3. a fuzzy name/amount/date match against unlinked legacy transactions,
4. nothing, which leaves the entry pending at its expected amount.

The resolver never produces ``overdue``; that status comes only from the
explicit overdue sweep.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ..models.obligation import Obligation, ObligationStatus
from ..models.transaction import Transaction
from .fuzzy_match import MatchSettings, find_match

EVIDENCE_DIRECT_LINK = "direct_link"
EVIDENCE_MANUAL_OVERRIDE = "manual_override"
EVIDENCE_FUZZY_MATCH = "fuzzy_match"
EVIDENCE_NONE = "none"


@dataclass(slots=True)
class Resolution:
    """Resolved status and the amount a caller should display."""

    status: str
    display_amount: float
    is_manual_override: bool = False
    evidence: str = EVIDENCE_NONE
    transaction_ids: tuple[int, ...] = field(default_factory=tuple)

    @property
    def is_paid(self) -> bool:
        return self.status == ObligationStatus.PAID.value


def status_for_amount(amount: float | None, expected_amount: float) -> str:
    """Map a paid amount onto pending/partial/paid."""

    paid = round(float(amount or 0.0), 2)
    if paid <= 0:
        return ObligationStatus.PENDING.value
    if paid >= round(float(expected_amount), 2):
        return ObligationStatus.PAID.value
    return ObligationStatus.PARTIAL.value


def carry_overdue(stored_status: str, resolved_status: str) -> str:
    """Keep a swept ``overdue`` status until the entry is fully paid."""

    if (
        stored_status == ObligationStatus.OVERDUE.value
        and resolved_status != ObligationStatus.PAID.value
    ):
        return ObligationStatus.OVERDUE.value
    return resolved_status


def linked_total(obligation_id: int, transactions: Iterable[Transaction]) -> float:
    return round(sum(t.amount for t in transactions if t.obligation_id == obligation_id), 2)


class StatusResolver:
    """Evaluates ``try_direct_link``, ``try_manual_override`` and ``try_fuzzy_match`` in order."""

    def __init__(
        self, *, settings: MatchSettings | None = None, fuzzy_matching: bool = True
    ) -> None:
        self.settings = settings or MatchSettings()
        self.fuzzy_matching = fuzzy_matching

    def try_direct_link(
        self, obligation: Obligation, transactions: Sequence[Transaction]
    ) -> Optional[Resolution]:
        if obligation.id is None:
            return None
        linked = [t for t in transactions if t.obligation_id == obligation.id]
        if not linked:
            return None
        total = round(sum(t.amount for t in linked), 2)
        return Resolution(
            status=status_for_amount(total, obligation.expected_amount),
            display_amount=total,
            evidence=EVIDENCE_DIRECT_LINK,
            transaction_ids=tuple(t.id for t in linked if t.id is not None),
        )

    def try_manual_override(self, obligation: Obligation) -> Optional[Resolution]:
        stored = round(float(obligation.amount_paid or 0.0), 2)
        if stored <= 0:
            return None
        return Resolution(
            status=status_for_amount(stored, obligation.expected_amount),
            display_amount=stored,
            is_manual_override=True,
            evidence=EVIDENCE_MANUAL_OVERRIDE,
        )

    def try_fuzzy_match(
        self,
        obligation: Obligation,
        transactions: Sequence[Transaction],
        source_name: Optional[str],
    ) -> Optional[Resolution]:
        if not self.fuzzy_matching or not source_name:
            return None
        match = find_match(
            source_name=source_name,
            expected_amount=obligation.expected_amount,
            period=obligation.period,
            transactions=transactions,
            settings=self.settings,
        )
        if match is None:
            return None
        return Resolution(
            status=ObligationStatus.PAID.value,
            display_amount=round(match.amount, 2),
            evidence=EVIDENCE_FUZZY_MATCH,
            transaction_ids=(match.id,) if match.id is not None else (),
        )

    def resolve(
        self,
        obligation: Obligation,
        candidate_transactions: Iterable[Transaction],
        source_name: Optional[str] = None,
    ) -> Resolution:
        transactions = list(candidate_transactions)
        return (
            self.try_direct_link(obligation, transactions)
            or self.try_manual_override(obligation)
            or self.try_fuzzy_match(obligation, transactions, source_name)
            or Resolution(
                status=ObligationStatus.PENDING.value,
                display_amount=round(float(obligation.expected_amount), 2),
            )
        )


def resolve(
    obligation: Obligation,
    candidate_transactions: Iterable[Transaction],
    source_name: Optional[str] = None,
    *,
    resolver: StatusResolver | None = None,
) -> Resolution:
    """Resolve with a default resolver (fuzzy matching on, default tolerances)."""

    return (resolver or StatusResolver()).resolve(obligation, candidate_transactions, source_name)


__all__ = [
    "EVIDENCE_DIRECT_LINK",
    "EVIDENCE_FUZZY_MATCH",
    "EVIDENCE_MANUAL_OVERRIDE",
    "EVIDENCE_NONE",
    "Resolution",
    "StatusResolver",
    "carry_overdue",
    "linked_total",
    "resolve",
    "status_for_amount",
]
