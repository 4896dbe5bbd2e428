"""Source repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.source import Source


class SourceRepository(Protocol):
    """Repository for bills and installments."""

    def get_by_id(self, source_id: int) -> Optional[Source]:
        """Retrieve a source by ID."""
        ...

    def list_all(self, kind: Optional[str] = None) -> list[Source]:
        """List sources, optionally restricted to one kind."""
        ...

    def create(self, source: Source) -> Source:
        """Create a new source."""
        ...

    def update(self, source: Source) -> Source:
        """Update an existing source."""
        ...

    def delete(self, source_id: int) -> None:
        """Delete a source by ID."""
        ...
