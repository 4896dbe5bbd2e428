"""High-level entry point tying schedule generation, payments and reconciliation together."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional, Union

from ..config import BaseConfig
from ..domain.period import Period
from ..errors import ScheduleNotFoundError, ScheduleValidationError, SourceNotFoundError
from ..infra.database import SessionFactory, shared_session_factory
from ..infra.repositories import Repositories
from ..logging_config import get_logger
from ..models.obligation import Obligation, ObligationStatus
from ..models.source import Source, SourceKind
from ..models.transaction import Transaction
from . import schedule_generator
from .fuzzy_match import MatchSettings
from .linkage import LedgerEntry, LinkageManager, PaymentDetails
from .reversal import ReversalHandler, SourceDeletion
from .status_resolver import (
    EVIDENCE_DIRECT_LINK,
    Resolution,
    StatusResolver,
    carry_overdue,
    linked_total,
)

logger = get_logger(__name__)

TIMING_MARKERS = ("1/2", "2/2")


@dataclass(slots=True)
class SourceCreation:
    """Outcome of creating a bill or installment.

    ``warnings`` is non-empty when the source was saved but its schedule
    could not be generated; callers must show these to the user.
    """

    source: Source
    obligations: list[Obligation] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SourceUpdate:
    source: Source
    schedule_stale: bool


@dataclass(slots=True)
class Regeneration:
    source_id: int
    removed: int
    inserted: int


@dataclass(slots=True)
class ObligationView:
    """One schedule row as shown to the user."""

    obligation_id: int
    source_id: int
    period: Period
    payment_number: Optional[int]
    expected_amount: float
    status: str
    display_amount: float
    amount_paid: float
    is_manual_override: bool
    evidence: str
    date_paid: Optional[date] = None
    receipt: Optional[str] = None
    transaction_ids: tuple[int, ...] = ()

    @classmethod
    def build(cls, obligation: Obligation, resolution: Resolution) -> "ObligationView":
        return cls(
            obligation_id=obligation.id,
            source_id=obligation.source_id,
            period=obligation.period,
            payment_number=obligation.payment_number,
            expected_amount=obligation.expected_amount,
            status=carry_overdue(obligation.status, resolution.status),
            display_amount=resolution.display_amount,
            amount_paid=round(float(obligation.amount_paid or 0.0), 2),
            is_manual_override=resolution.is_manual_override,
            evidence=resolution.evidence,
            date_paid=obligation.date_paid,
            receipt=obligation.receipt,
            transaction_ids=resolution.transaction_ids,
        )


@dataclass(slots=True)
class TransactionFilter:
    """Criteria for ``list_transactions``; unset fields do not filter."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    account_id: Optional[int] = None
    obligation_id: Optional[int] = None
    source_id: Optional[int] = None
    text: Optional[str] = None
    linked: Optional[bool] = None


def _as_period(value: Union[Period, str]) -> Period:
    if isinstance(value, Period):
        return value
    return Period.parse(value)


class PaymentScheduleEngine:
    """Bills, installments, their payment schedules and the ledger rows that settle them."""

    def __init__(self, session_factory: SessionFactory, config: BaseConfig | None = None):
        self.config = config or BaseConfig()
        self.session_factory = session_factory
        self.repos = Repositories.from_session_factory(session_factory)
        self.linkage = LinkageManager(session_factory, atomic=self.config.ATOMIC_PAYMENTS)
        self.reversal = ReversalHandler(session_factory)
        self.resolver = StatusResolver(
            settings=MatchSettings.from_config(self.config),
            fuzzy_matching=self.config.FUZZY_MATCHING,
        )

    # Sources -----------------------------------------------------------------

    def create_source(
        self,
        name: str,
        kind: Union[SourceKind, str],
        expected_amount: float,
        *,
        start: Union[Period, str, None] = None,
        end_month: Optional[int] = None,
        term_length: Optional[int] = None,
        timing: Optional[str] = None,
        account_id: Optional[int] = None,
    ) -> SourceCreation:
        """Save a bill or installment and generate its payment schedule.

        Invalid input raises ``ScheduleValidationError`` and saves nothing. A
        source without a start period (or an installment without a term) is
        saved anyway; its schedule stays empty and the result carries a warning.
        """

        clean_name = (name or "").strip()
        if not clean_name:
            raise ScheduleValidationError("Name is required")
        try:
            kind_value = SourceKind(kind).value
        except ValueError as exc:
            raise ScheduleValidationError(f"Unknown source kind: {kind!r}") from exc
        try:
            amount = round(float(expected_amount), 2)
        except (TypeError, ValueError) as exc:
            raise ScheduleValidationError(f"Invalid amount: {expected_amount!r}") from exc
        if amount <= 0:
            raise ScheduleValidationError("Amount must be greater than zero")
        if end_month is not None and not 1 <= end_month <= 12:
            raise ScheduleValidationError("End month must be between 1 and 12")
        if term_length is not None and term_length < 1:
            raise ScheduleValidationError("Term length must be at least 1")
        if timing is not None and timing not in TIMING_MARKERS:
            raise ScheduleValidationError(f"Timing must be one of {', '.join(TIMING_MARKERS)}")
        try:
            start_period = _as_period(start) if start is not None else None
        except ValueError as exc:
            raise ScheduleValidationError(str(exc)) from exc

        is_bill = kind_value == SourceKind.BILL.value
        source = self.repos.sources.create(
            Source(
                name=clean_name,
                kind=kind_value,
                start_year=start_period.year if start_period else None,
                start_month=start_period.month if start_period else None,
                end_month=end_month if is_bill else None,
                term_length=None if is_bill else term_length,
                expected_amount=amount,
                timing=None if is_bill else timing,
                account_id=account_id,
            )
        )
        logger.info(
            "Source created",
            extra={"source_id": source.id, "kind": source.kind, "expected_amount": amount},
        )

        try:
            stubs = schedule_generator.generate(source)
        except ScheduleValidationError as exc:
            logger.warning(
                "Payment schedule not generated",
                extra={"source_id": source.id, "reason": str(exc)},
            )
            return SourceCreation(source=source, warnings=[str(exc)])

        inserted = self.repos.obligations.insert_many(stubs)
        logger.info(
            "Payment schedule generated",
            extra={"source_id": source.id, "obligations": inserted},
        )
        return SourceCreation(
            source=source, obligations=self.repos.obligations.list_by_source(source.id)
        )

    def update_source(
        self,
        source_id: int,
        *,
        name: Optional[str] = None,
        expected_amount: Optional[float] = None,
        term_length: Optional[int] = None,
        end_month: Optional[int] = None,
        account_id: Optional[int] = None,
    ) -> SourceUpdate:
        """Edit a source. The schedule is left alone; ``schedule_stale`` says whether to regenerate."""

        current = self._require_source(source_id)
        before = Source(**current.model_dump())
        if name is not None:
            if not name.strip():
                raise ScheduleValidationError("Name is required")
            current.name = name.strip()
        if expected_amount is not None:
            if expected_amount <= 0:
                raise ScheduleValidationError("Amount must be greater than zero")
            current.expected_amount = round(float(expected_amount), 2)
        if term_length is not None:
            if current.is_bill:
                raise ScheduleValidationError("Bills have no term length")
            if term_length < 1:
                raise ScheduleValidationError("Term length must be at least 1")
            current.term_length = term_length
        if end_month is not None:
            if current.is_installment:
                raise ScheduleValidationError("Installments have no end month")
            if not 1 <= end_month <= 12:
                raise ScheduleValidationError("End month must be between 1 and 12")
            if current.start_month is not None and end_month < current.start_month:
                raise ScheduleValidationError(
                    f"End month {end_month} is before the start month {current.start_month}"
                )
            current.end_month = end_month
        if account_id is not None:
            current.account_id = account_id

        updated = self.repos.sources.update(current)
        stale = schedule_generator.needs_regeneration(before, updated)
        if stale:
            logger.info(
                "Source schedule inputs changed; schedule not regenerated",
                extra={"source_id": source_id},
            )
        return SourceUpdate(source=updated, schedule_stale=stale)

    def delete_source(self, source_id: int) -> SourceDeletion:
        return self.reversal.on_source_deleted(source_id)

    def regenerate_obligations(self, source_id: int) -> Regeneration:
        """Rebuild a source's unsettled schedule rows from its current definition.

        Rows with a linked transaction or a stored payment are kept as they are.
        """

        with self.session_factory() as session:
            repos = Repositories.from_session_factory(shared_session_factory(session))
            source = repos.sources.get_by_id(source_id)
            if source is None:
                raise SourceNotFoundError(f"Source {source_id} not found")

            existing = repos.obligations.list_by_source(source_id)
            linked = repos.transactions.list_by_obligations(
                o.id for o in existing if o.id is not None
            )
            settled = {t.obligation_id for t in linked}
            removable = [
                o.id
                for o in existing
                if o.id not in settled and not (o.amount_paid or 0) > 0
            ]
            stubs = schedule_generator.generate(source)
            removed = repos.obligations.delete_many(removable)
            inserted = repos.obligations.insert_many(stubs)

        logger.info(
            "Payment schedule regenerated",
            extra={"source_id": source_id, "removed": removed, "inserted": inserted},
        )
        return Regeneration(source_id=source_id, removed=removed, inserted=inserted)

    # Payments ----------------------------------------------------------------

    def pay_obligation(
        self, source_id: int, period: Union[Period, str], payment: PaymentDetails
    ) -> Transaction:
        """Pay one period of a bill or installment.

        Raises ``ScheduleNotFoundError`` when the source owes nothing for that
        period; no transaction is written in that case.
        """

        target = _as_period(period)
        source = self.repos.sources.get_by_id(source_id)
        obligation = (
            self.repos.obligations.get_for_period(source_id, target) if source else None
        )
        if source is None or obligation is None:
            logger.warning(
                "Payment rejected: no schedule entry",
                extra={"source_id": source_id, "period": str(target)},
            )
            raise ScheduleNotFoundError()

        if not payment.name:
            payment = replace(payment, name=f"{source.name} - {target.label}")
        return self.linkage.pay_obligation(obligation.id, payment)

    def create_unlinked_transaction(self, entry: LedgerEntry) -> Transaction:
        return self.linkage.create_unlinked_transaction(entry)

    def update_transaction(self, transaction_id: int, **changes) -> Transaction:
        return self.linkage.update_transaction(transaction_id, **changes)

    def delete_transaction(self, transaction_id: int) -> None:
        self.reversal.on_transaction_deleted(transaction_id)

    def record_manual_override(self, obligation_id: int, amount: float, **details) -> Obligation:
        return self.linkage.record_manual_override(obligation_id, amount, **details)

    def mark_overdue(self, today: Optional[date] = None, due_day: Optional[int] = None) -> int:
        """Store ``overdue`` on every unpaid schedule row whose due date has passed.

        Rows whose linked transactions already cover the expected amount are
        skipped even when their stored status lags behind.
        """

        today = today or date.today()
        day = due_day or self.config.DUE_DAY
        if not 1 <= day <= 28:
            raise ValueError("Due day must be between 1 and 28")

        marked = 0
        with self.session_factory() as session:
            repos = Repositories.from_session_factory(shared_session_factory(session))
            candidates = [
                o
                for o in repos.obligations.list_by_status(
                    ObligationStatus.PENDING.value, ObligationStatus.PARTIAL.value
                )
                if o.period.due_date(day) < today
            ]
            linked = repos.transactions.list_by_obligations(o.id for o in candidates)
            for obligation in candidates:
                if linked_total(obligation.id, linked) >= obligation.expected_amount:
                    continue
                obligation.status = ObligationStatus.OVERDUE.value
                repos.obligations.update(obligation)
                marked += 1

        logger.info("Overdue sweep finished", extra={"marked": marked, "as_of": today})
        return marked

    # Reads -------------------------------------------------------------------

    def list_obligations(self, source_id: int) -> list[ObligationView]:
        """Return a source's schedule in period order with each row's resolved status."""

        source = self._require_source(source_id)
        obligations = self.repos.obligations.list_by_source(source_id)
        if not obligations:
            return []

        linked = self.repos.transactions.list_by_obligations(
            o.id for o in obligations if o.id is not None
        )
        legacy: list[Transaction] = []
        if self.resolver.fuzzy_matching:
            legacy = self.repos.transactions.list_unlinked(
                start_date=obligations[0].period.previous().first_day,
                end_date=obligations[-1].period.grace_end(self.config.GRACE_DAYS),
            )

        views = []
        for obligation in obligations:
            candidates = [t for t in linked if t.obligation_id == obligation.id] + legacy
            resolution = self.resolver.resolve(obligation, candidates, source.name)
            if self.config.RECONCILE_ON_READ and resolution.evidence == EVIDENCE_DIRECT_LINK:
                obligation = self._reconcile(obligation, resolution)
            views.append(ObligationView.build(obligation, resolution))
        return views

    def list_transactions(self, criteria: TransactionFilter | None = None) -> list[Transaction]:
        """Ledger rows newest first, narrowed by ``criteria``."""

        criteria = criteria or TransactionFilter()
        obligation_ids: Optional[list[int]] = None
        if criteria.obligation_id is not None:
            obligation_ids = [criteria.obligation_id]
        if criteria.source_id is not None:
            owned = [
                o.id for o in self.repos.obligations.list_by_source(criteria.source_id)
            ]
            if obligation_ids is not None:
                owned = [i for i in owned if i in obligation_ids]
            obligation_ids = owned

        return self.repos.transactions.search(
            start_date=criteria.start_date,
            end_date=criteria.end_date,
            account_id=criteria.account_id,
            obligation_ids=obligation_ids,
            text=criteria.text,
            linked=criteria.linked,
        )

    def list_sources(self, kind: Union[SourceKind, str, None] = None) -> list[Source]:
        return self.repos.sources.list_all(SourceKind(kind).value if kind else None)

    # Helpers -----------------------------------------------------------------

    def _require_source(self, source_id: int) -> Source:
        source = self.repos.sources.get_by_id(source_id)
        if source is None:
            raise SourceNotFoundError(f"Source {source_id} not found")
        return source

    def _reconcile(self, obligation: Obligation, resolution: Resolution) -> Obligation:
        """Write linked-transaction totals back when the stored values lag behind."""

        status = carry_overdue(obligation.status, resolution.status)
        stored = round(float(obligation.amount_paid or 0.0), 2)
        if stored == resolution.display_amount and obligation.status == status:
            return obligation

        logger.warning(
            "Schedule entry out of sync with its linked transactions; reconciling",
            extra={
                "obligation_id": obligation.id,
                "stored_amount": stored,
                "stored_status": obligation.status,
                "linked_amount": resolution.display_amount,
                "resolved_status": status,
            },
        )
        obligation.amount_paid = resolution.display_amount
        obligation.status = status
        return self.repos.obligations.update(obligation)


__all__ = [
    "ObligationView",
    "PaymentScheduleEngine",
    "Regeneration",
    "SourceCreation",
    "SourceUpdate",
    "TransactionFilter",
]
