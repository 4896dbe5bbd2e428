"""SQLModel implementation of Obligation repository."""

from __future__ import annotations

from typing import Callable, ContextManager, Iterable, Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ...domain.period import Period
from ...logging_config import get_logger
from ...models.obligation import Obligation

logger = get_logger(__name__)

# Columns copied when a stub has to be re-inserted after a rolled back batch.
_STUB_FIELDS = (
    "source_id",
    "source_kind",
    "period_year",
    "period_month",
    "payment_number",
    "expected_amount",
    "amount_paid",
    "date_paid",
    "account_id",
    "receipt",
    "status",
)


def _clone_stub(obligation: Obligation) -> Obligation:
    return Obligation(**{name: getattr(obligation, name) for name in _STUB_FIELDS})


def _period_taken(session: Session, row: Obligation) -> bool:
    statement = (
        select(Obligation.id)
        .where(Obligation.source_id == row.source_id)
        .where(Obligation.period_year == row.period_year)
        .where(Obligation.period_month == row.period_month)
    )
    return session.exec(statement).first() is not None


def _chronological(statement):
    return statement.order_by(
        Obligation.period_year, Obligation.period_month, Obligation.id  # type: ignore
    )


class SQLModelObligationRepository:
    """SQLModel-based payment schedule repository implementation."""

    def __init__(self, session_factory: Callable[[], ContextManager[Session]]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, obligation_id: int) -> Optional[Obligation]:
        """Retrieve an obligation by ID."""
        with self.session_factory() as session:
            return session.get(Obligation, obligation_id)

    def get_for_period(self, source_id: int, period: Period) -> Optional[Obligation]:
        """Retrieve the obligation a source owes for one period."""
        with self.session_factory() as session:
            statement = (
                select(Obligation)
                .where(Obligation.source_id == source_id)
                .where(Obligation.period_year == period.year)
                .where(Obligation.period_month == period.month)
            )
            return session.exec(statement).first()

    def list_by_source(self, source_id: int) -> list[Obligation]:
        """List a source's obligations ordered by year then numeric month."""
        with self.session_factory() as session:
            statement = _chronological(
                select(Obligation).where(Obligation.source_id == source_id)
            )
            return list(session.exec(statement).all())

    def list_by_status(self, *statuses: str) -> list[Obligation]:
        """List obligations in any of the given statuses, chronologically."""
        with self.session_factory() as session:
            statement = select(Obligation)
            if statuses:
                statement = statement.where(Obligation.status.in_(statuses))  # type: ignore
            return list(session.exec(_chronological(statement)).all())

    def insert_many(self, obligations: Iterable[Obligation]) -> int:
        """Insert obligations, treating (source, period) duplicates as already done.

        Rows whose period already exists are filtered out up front. The
        remainder goes in as one batch; if the unique constraint still fires
        (a duplicate inside the batch or a concurrent writer), the batch is
        rolled back to its savepoint and retried row by row, skipping every
        row the constraint rejects.
        """
        rows = list(obligations)
        if not rows:
            return 0

        with self.session_factory() as session:
            source_ids = {row.source_id for row in rows}
            existing = {
                (source_id, year, month)
                for source_id, year, month in session.exec(
                    select(
                        Obligation.source_id, Obligation.period_year, Obligation.period_month
                    ).where(Obligation.source_id.in_(list(source_ids)))  # type: ignore
                ).all()
            }
            fresh = [
                row
                for row in rows
                if (row.source_id, row.period_year, row.period_month) not in existing
            ]
            if not fresh:
                logger.info("Payment schedule already present", extra={"rows": len(rows)})
                return 0

            try:
                with session.begin_nested():
                    session.add_all(fresh)
                    session.flush()
                return len(fresh)
            except IntegrityError:
                logger.info(
                    "Batch insert hit the schedule uniqueness constraint; retrying row by row",
                    extra={"rows": len(fresh)},
                )

            inserted = 0
            for row in fresh:
                candidate = _clone_stub(row)
                try:
                    with session.begin_nested():
                        session.add(candidate)
                        session.flush()
                    inserted += 1
                except IntegrityError:
                    # Only a row already holding this period counts as done.
                    if not _period_taken(session, row):
                        raise
                    logger.debug(
                        "Skipped duplicate schedule entry",
                        extra={
                            "source_id": row.source_id,
                            "period": f"{row.period_year:04d}-{row.period_month:02d}",
                        },
                    )
            return inserted

    def update(self, obligation: Obligation) -> Obligation:
        """Update an existing obligation."""
        with self.session_factory() as session:
            obligation.touch()
            merged = session.merge(obligation)
            session.flush()
            session.refresh(merged)
            return merged

    def delete_many(self, obligation_ids: Iterable[int]) -> int:
        """Delete obligations by ID."""
        ids = list(obligation_ids)
        if not ids:
            return 0
        with self.session_factory() as session:
            result = session.exec(
                delete(Obligation).where(Obligation.id.in_(ids))  # type: ignore
            )
            return result.rowcount or 0

    def delete_by_source(self, source_id: int) -> int:
        """Delete every obligation a source owns."""
        with self.session_factory() as session:
            result = session.exec(
                delete(Obligation).where(Obligation.source_id == source_id)  # type: ignore
            )
            return result.rowcount or 0
