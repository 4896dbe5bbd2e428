"""Record ledger transactions and keep their payment schedule entries in sync."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..errors import (
    InvalidPaymentError,
    PaymentRecordError,
    ScheduleNotFoundError,
    TransactionNotFoundError,
)
from ..infra.database import SessionFactory, shared_session_factory
from ..infra.repositories import Repositories
from ..logging_config import get_logger
from ..models.obligation import Obligation
from ..models.transaction import Transaction
from .status_resolver import carry_overdue, status_for_amount

logger = get_logger(__name__)


@dataclass(slots=True)
class PaymentDetails:
    """What the user entered when paying a schedule entry."""

    amount: float
    paid_on: date
    account_id: Optional[int] = None
    receipt: Optional[str] = None
    name: Optional[str] = None


@dataclass(slots=True)
class LedgerEntry:
    """A manual ledger entry with no schedule entry attached."""

    name: str
    amount: float
    occurred_on: date
    account_id: Optional[int] = None


def _validate_amount(amount: float) -> float:
    try:
        value = round(float(amount), 2)
    except (TypeError, ValueError) as exc:
        raise InvalidPaymentError(f"Invalid payment amount: {amount!r}") from exc
    if value <= 0:
        raise InvalidPaymentError("Payment amount must be greater than zero")
    return value


def sync_obligation(
    repos: Repositories,
    obligation: Obligation,
    *,
    excluding_transaction_id: Optional[int] = None,
    payment: Optional[PaymentDetails] = None,
) -> Obligation:
    """Recompute ``amount_paid`` and ``status`` from the transactions linked to ``obligation``.

    ``excluding_transaction_id`` leaves one linked row out of the sum (used
    right before that row is deleted). ``payment`` stamps the payment date,
    account and receipt of a new payment. When nothing remains paid the
    payment details are cleared.
    """

    linked = repos.transactions.list_by_obligation(obligation.id)
    total = round(
        sum(t.amount for t in linked if t.id != excluding_transaction_id),
        2,
    )
    obligation.amount_paid = total
    obligation.status = carry_overdue(
        obligation.status, status_for_amount(total, obligation.expected_amount)
    )
    if payment is not None:
        obligation.date_paid = payment.paid_on
        obligation.account_id = payment.account_id
        obligation.receipt = payment.receipt
    elif total <= 0:
        obligation.date_paid = None
        obligation.account_id = None
        obligation.receipt = None
    return repos.obligations.update(obligation)


class LinkageManager:
    """Creates ledger transactions, optionally linked to the schedule entry they settle.

    With ``atomic=True`` the ledger insert and the schedule update share one
    database transaction. With ``atomic=False`` the ledger row is committed
    first and a failed schedule update is only logged; the direct-link rule
    reports the entry as paid on the next read regardless.
    """

    def __init__(self, session_factory: SessionFactory, *, atomic: bool = True) -> None:
        self.session_factory = session_factory
        self.atomic = atomic
        self.repos = Repositories.from_session_factory(session_factory)

    def pay_obligation(self, obligation_id: int, payment: PaymentDetails) -> Transaction:
        """Write the payment to the ledger, then mark the schedule entry paid/partial.

        Raises:
            ScheduleNotFoundError: no schedule entry with that id; nothing is written.
            InvalidPaymentError: the amount is not positive.
            PaymentRecordError: the ledger write failed (or, in atomic mode,
                the schedule update failed and the ledger write was rolled back).
        """
        amount = _validate_amount(payment.amount)
        if self.atomic:
            return self._pay_atomic(obligation_id, payment, amount)
        return self._pay_tolerant(obligation_id, payment, amount)

    def _build_transaction(
        self,
        repos: Repositories,
        obligation: Obligation,
        payment: PaymentDetails,
        amount: float,
    ) -> Transaction:
        """Ledger row for ``payment``, settled from the source's default account if none was given."""

        account_id = payment.account_id
        if account_id is None:
            source = repos.sources.get_by_id(obligation.source_id)
            account_id = source.account_id if source is not None else None
        return Transaction(
            name=payment.name or f"Payment for {obligation.period.label}",
            occurred_on=payment.paid_on,
            amount=amount,
            account_id=account_id,
            obligation_id=obligation.id,
        )

    def _pay_atomic(
        self, obligation_id: int, payment: PaymentDetails, amount: float
    ) -> Transaction:
        try:
            with self.session_factory() as session:
                repos = Repositories.from_session_factory(shared_session_factory(session))
                obligation = repos.obligations.get_by_id(obligation_id)
                if obligation is None:
                    raise ScheduleNotFoundError()
                transaction = repos.transactions.create(
                    self._build_transaction(repos, obligation, payment, amount)
                )
                obligation = sync_obligation(
                    repos,
                    obligation,
                    payment=replace(payment, account_id=transaction.account_id),
                )
        except SQLAlchemyError as exc:
            logger.error(
                "Failed to record payment",
                extra={"obligation_id": obligation_id, "amount": amount},
                exc_info=True,
            )
            raise PaymentRecordError() from exc

        logger.info(
            "Payment recorded",
            extra={
                "obligation_id": obligation_id,
                "transaction_id": transaction.id,
                "amount": amount,
                "status": obligation.status,
            },
        )
        return transaction

    def _pay_tolerant(
        self, obligation_id: int, payment: PaymentDetails, amount: float
    ) -> Transaction:
        obligation = self.repos.obligations.get_by_id(obligation_id)
        if obligation is None:
            raise ScheduleNotFoundError()

        try:
            transaction = self.repos.transactions.create(
                self._build_transaction(self.repos, obligation, payment, amount)
            )
        except SQLAlchemyError as exc:
            logger.error(
                "Failed to record payment",
                extra={"obligation_id": obligation_id, "amount": amount},
                exc_info=True,
            )
            raise PaymentRecordError() from exc

        try:
            obligation = sync_obligation(
                self.repos,
                obligation,
                payment=replace(payment, account_id=transaction.account_id),
            )
        except SQLAlchemyError:
            logger.warning(
                "Payment recorded but schedule status not updated; it will be reconciled on next read",
                extra={"obligation_id": obligation_id, "transaction_id": transaction.id},
                exc_info=True,
            )
            return transaction

        logger.info(
            "Payment recorded",
            extra={
                "obligation_id": obligation_id,
                "transaction_id": transaction.id,
                "amount": amount,
                "status": obligation.status,
            },
        )
        return transaction

    def create_unlinked_transaction(self, entry: LedgerEntry) -> Transaction:
        """Record a manual ledger entry; no schedule entry is touched."""

        if not entry.name or not entry.name.strip():
            raise InvalidPaymentError("Transaction name is required")
        transaction = self.repos.transactions.create(
            Transaction(
                name=entry.name.strip(),
                occurred_on=entry.occurred_on,
                amount=round(float(entry.amount), 2),
                account_id=entry.account_id,
                obligation_id=None,
            )
        )
        logger.info(
            "Ledger entry recorded",
            extra={"transaction_id": transaction.id, "amount": transaction.amount},
        )
        return transaction

    def update_transaction(
        self,
        transaction_id: int,
        *,
        name: Optional[str] = None,
        amount: Optional[float] = None,
        occurred_on: Optional[date] = None,
        account_id: Optional[int] = None,
    ) -> Transaction:
        """Edit a ledger entry; a linked entry's schedule status follows the new amount."""

        with self.session_factory() as session:
            repos = Repositories.from_session_factory(shared_session_factory(session))
            transaction = repos.transactions.get_by_id(transaction_id)
            if transaction is None:
                raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
            if name is not None:
                transaction.name = name
            if amount is not None:
                transaction.amount = round(float(amount), 2)
            if occurred_on is not None:
                transaction.occurred_on = occurred_on
            if account_id is not None:
                transaction.account_id = account_id
            transaction = repos.transactions.update(transaction)

            if transaction.obligation_id is not None:
                obligation = repos.obligations.get_by_id(transaction.obligation_id)
                if obligation is not None:
                    sync_obligation(repos, obligation)
        return transaction

    def record_manual_override(
        self,
        obligation_id: int,
        amount: float,
        *,
        paid_on: Optional[date] = None,
        account_id: Optional[int] = None,
        receipt: Optional[str] = None,
    ) -> Obligation:
        """Store a paid amount on a schedule entry without a ledger transaction.

        This is an administrative escape hatch. Reads flag the result as a
        manual override until a real transaction is linked.
        """

        obligation = self.repos.obligations.get_by_id(obligation_id)
        if obligation is None:
            raise ScheduleNotFoundError()
        value = round(float(amount), 2)
        if value < 0:
            raise InvalidPaymentError("Override amount cannot be negative")
        obligation.amount_paid = value
        obligation.status = carry_overdue(
            obligation.status, status_for_amount(value, obligation.expected_amount)
        )
        obligation.date_paid = paid_on if value > 0 else None
        obligation.account_id = account_id if value > 0 else None
        obligation.receipt = receipt if value > 0 else None
        obligation = self.repos.obligations.update(obligation)
        logger.warning(
            "Manual payment override stored without a ledger transaction",
            extra={"obligation_id": obligation_id, "amount": value},
        )
        return obligation


__all__ = ["LedgerEntry", "LinkageManager", "PaymentDetails", "sync_obligation"]
