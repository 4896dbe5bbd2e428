"""SQLModel implementation of Source repository."""

from __future__ import annotations

from typing import Callable, ContextManager, Optional

from sqlmodel import Session, select

from ...models.source import Source


class SQLModelSourceRepository:
    """SQLModel-based bill/installment repository implementation."""

    def __init__(self, session_factory: Callable[[], ContextManager[Session]]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, source_id: int) -> Optional[Source]:
        """Retrieve a source by ID."""
        with self.session_factory() as session:
            return session.get(Source, source_id)

    def list_all(self, kind: Optional[str] = None) -> list[Source]:
        """List sources ordered by name, optionally restricted to one kind."""
        with self.session_factory() as session:
            statement = select(Source)
            if kind:
                statement = statement.where(Source.kind == kind)
            statement = statement.order_by(Source.name)  # type: ignore
            return list(session.exec(statement).all())

    def create(self, source: Source) -> Source:
        """Create a new source."""
        with self.session_factory() as session:
            session.add(source)
            session.flush()
            session.refresh(source)
            return source

    def update(self, source: Source) -> Source:
        """Update an existing source."""
        with self.session_factory() as session:
            merged = session.merge(source)
            session.flush()
            session.refresh(merged)
            return merged

    def delete(self, source_id: int) -> None:
        """Delete a source by ID."""
        with self.session_factory() as session:
            source = session.get(Source, source_id)
            if source:
                session.delete(source)
                session.flush()
