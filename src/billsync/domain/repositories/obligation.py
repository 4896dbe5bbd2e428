"""Obligation repository protocol."""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from ...domain.period import Period
from ...models.obligation import Obligation


class ObligationRepository(Protocol):
    """Repository for payment schedule entries."""

    def get_by_id(self, obligation_id: int) -> Optional[Obligation]:
        """Retrieve an obligation by ID."""
        ...

    def get_for_period(self, source_id: int, period: Period) -> Optional[Obligation]:
        """Retrieve the obligation a source owes for one period."""
        ...

    def list_by_source(self, source_id: int) -> list[Obligation]:
        """List a source's obligations in chronological order."""
        ...

    def list_by_status(self, *statuses: str) -> list[Obligation]:
        """List obligations in any of the given statuses, chronologically."""
        ...

    def insert_many(self, obligations: Iterable[Obligation]) -> int:
        """Insert obligations, skipping (source, period) pairs that already exist."""
        ...

    def update(self, obligation: Obligation) -> Obligation:
        """Update an existing obligation."""
        ...

    def delete_many(self, obligation_ids: Iterable[int]) -> int:
        """Delete obligations by ID."""
        ...

    def delete_by_source(self, source_id: int) -> int:
        """Delete every obligation a source owns."""
        ...
