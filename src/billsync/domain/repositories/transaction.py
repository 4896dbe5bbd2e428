"""Transaction repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol

from ...models.transaction import Transaction


class TransactionRepository(Protocol):
    """Repository for managing ledger transactions."""

    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        ...

    def list_by_obligation(self, obligation_id: int) -> list[Transaction]:
        """Get all transactions linked to an obligation."""
        ...

    def list_by_obligations(self, obligation_ids: Iterable[int]) -> list[Transaction]:
        """Get all transactions linked to any of the given obligations."""
        ...

    def list_unlinked(
        self, *, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[Transaction]:
        """Get transactions with no obligation link."""
        ...

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
        ...

    def create(self, transaction: Transaction) -> Transaction:
        """Create a new transaction."""
        ...

    def update(self, transaction: Transaction) -> Transaction:
        """Update an existing transaction."""
        ...

    def delete(self, transaction_id: int) -> None:
        """Delete a transaction by ID."""
        ...

    def clear_links(self, obligation_ids: Iterable[int]) -> int:
        """Set the obligation link to null on every transaction pointing at the given ids."""
        ...
