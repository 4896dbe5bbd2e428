"""SQLModel implementation of Account repository."""

from __future__ import annotations

from typing import Callable, ContextManager, Optional

from sqlmodel import Session, select

from ...models.account import Account


class SQLModelAccountRepository:
    """SQLModel-based account repository implementation."""

    def __init__(self, session_factory: Callable[[], ContextManager[Session]]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, account_id: int) -> Optional[Account]:
        """Retrieve an account by ID."""
        with self.session_factory() as session:
            return session.get(Account, account_id)

    def get_by_name(self, name: str) -> Optional[Account]:
        """Retrieve an account by name."""
        with self.session_factory() as session:
            return session.exec(select(Account).where(Account.name == name)).first()

    def list_all(self) -> list[Account]:
        """List all accounts."""
        with self.session_factory() as session:
            statement = select(Account).order_by(Account.name)  # type: ignore
            return list(session.exec(statement).all())

    def create(self, account: Account) -> Account:
        """Create a new account."""
        with self.session_factory() as session:
            session.add(account)
            session.flush()
            session.refresh(account)
            return account
