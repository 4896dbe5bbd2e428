"""SQLModel implementation of Transaction repository."""

from __future__ import annotations

from datetime import date
from typing import Callable, ContextManager, Iterable, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from ...models.transaction import Transaction


class SQLModelTransactionRepository:
    """SQLModel-based transaction repository implementation."""

    def __init__(self, session_factory: Callable[[], ContextManager[Session]]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        with self.session_factory() as session:
            return session.get(Transaction, transaction_id)

    def list_by_obligation(self, obligation_id: int) -> list[Transaction]:
        """Get all transactions linked to an obligation."""
        return self.list_by_obligations([obligation_id])

    def list_by_obligations(self, obligation_ids: Iterable[int]) -> list[Transaction]:
        """Get all transactions linked to any of the given obligations."""
        ids = list(obligation_ids)
        if not ids:
            return []
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.obligation_id.in_(ids))  # type: ignore
                .order_by(Transaction.occurred_on.desc(), Transaction.id.desc())  # type: ignore
            )
            return list(session.exec(statement).all())

    def list_unlinked(
        self, *, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[Transaction]:
        """Get transactions with no obligation link."""
        return self.search(start_date=start_date, end_date=end_date, linked=False)

    def search(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        obligation_ids: Optional[Iterable[int]] = None,
        text: Optional[str] = None,
        linked: Optional[bool] = None,
    ) -> list[Transaction]:
        """Advanced search with multiple filters."""
        with self.session_factory() as session:
            statement = select(Transaction)

            if start_date:
                statement = statement.where(Transaction.occurred_on >= start_date)
            if end_date:
                statement = statement.where(Transaction.occurred_on <= end_date)
            if account_id:
                statement = statement.where(Transaction.account_id == account_id)
            if obligation_ids is not None:
                statement = statement.where(
                    Transaction.obligation_id.in_(list(obligation_ids))  # type: ignore
                )
            if text:
                statement = statement.where(
                    Transaction.name.ilike(f"%{text}%")  # type: ignore
                )
            if linked is True:
                statement = statement.where(Transaction.obligation_id.is_not(None))  # type: ignore
            elif linked is False:
                statement = statement.where(Transaction.obligation_id.is_(None))  # type: ignore

            statement = statement.order_by(
                Transaction.occurred_on.desc(), Transaction.id.desc()  # type: ignore
            )
            return list(session.exec(statement).all())

    def create(self, transaction: Transaction) -> Transaction:
        """Create a new transaction."""
        with self.session_factory() as session:
            session.add(transaction)
            session.flush()
            session.refresh(transaction)
            return transaction

    def update(self, transaction: Transaction) -> Transaction:
        """Update an existing transaction."""
        with self.session_factory() as session:
            merged = session.merge(transaction)
            session.flush()
            session.refresh(merged)
            return merged

    def delete(self, transaction_id: int) -> None:
        """Delete a transaction by ID."""
        with self.session_factory() as session:
            transaction = session.get(Transaction, transaction_id)
            if transaction:
                session.delete(transaction)
                session.flush()

    def clear_links(self, obligation_ids: Iterable[int]) -> int:
        """Set the obligation link to null on every transaction pointing at the given ids."""
        ids = list(obligation_ids)
        if not ids:
            return 0
        with self.session_factory() as session:
            result = session.exec(
                update(Transaction)
                .where(Transaction.obligation_id.in_(ids))  # type: ignore
                .values(obligation_id=None)
            )
            return result.rowcount or 0
