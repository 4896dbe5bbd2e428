"""Undo payment effects when ledger rows or whole bills/installments are deleted."""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import SourceNotFoundError, TransactionNotFoundError
from ..infra.database import SessionFactory, shared_session_factory
from ..infra.repositories import Repositories
from ..logging_config import get_logger
from .linkage import sync_obligation

logger = get_logger(__name__)


@dataclass(slots=True)
class SourceDeletion:
    """Counts reported after a bill/installment is removed."""

    source_id: int
    obligations_deleted: int
    transactions_unlinked: int


class ReversalHandler:
    """Restores schedule entries when the evidence behind them disappears.

    Each operation runs in a single database transaction.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory

    def on_transaction_deleted(self, transaction_id: int) -> None:
        """Delete a ledger row and roll its schedule entry back.

        The row is read before it is deleted because the link is lost with it.
        The schedule entry keeps whatever the remaining linked rows add up to.
        """

        with self.session_factory() as session:
            repos = Repositories.from_session_factory(shared_session_factory(session))
            transaction = repos.transactions.get_by_id(transaction_id)
            if transaction is None:
                raise TransactionNotFoundError(f"Transaction {transaction_id} not found")

            obligation_id = transaction.obligation_id
            if obligation_id is not None:
                obligation = repos.obligations.get_by_id(obligation_id)
                if obligation is not None:
                    obligation = sync_obligation(
                        repos, obligation, excluding_transaction_id=transaction_id
                    )
                    logger.info(
                        "Payment reverted",
                        extra={
                            "transaction_id": transaction_id,
                            "obligation_id": obligation_id,
                            "amount_paid": obligation.amount_paid,
                            "status": obligation.status,
                        },
                    )

            repos.transactions.delete(transaction_id)

        logger.info(
            "Transaction deleted",
            extra={"transaction_id": transaction_id, "obligation_id": obligation_id},
        )

    def on_source_deleted(self, source_id: int) -> SourceDeletion:
        """Delete a bill/installment with its schedule; linked ledger rows survive unlinked."""

        with self.session_factory() as session:
            repos = Repositories.from_session_factory(shared_session_factory(session))
            source = repos.sources.get_by_id(source_id)
            if source is None:
                raise SourceNotFoundError(f"Source {source_id} not found")

            obligation_ids = [
                o.id for o in repos.obligations.list_by_source(source_id) if o.id is not None
            ]
            unlinked = repos.transactions.clear_links(obligation_ids)
            deleted = repos.obligations.delete_by_source(source_id)
            repos.sources.delete(source_id)

        logger.info(
            "Source deleted",
            extra={
                "source_id": source_id,
                "obligations_deleted": deleted,
                "transactions_unlinked": unlinked,
            },
        )
        return SourceDeletion(
            source_id=source_id, obligations_deleted=deleted, transactions_unlinked=unlinked
        )


__all__ = ["ReversalHandler", "SourceDeletion"]
