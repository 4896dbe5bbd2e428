"""Concrete repository implementations using SQLModel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, ContextManager

from sqlmodel import Session

from ...domain.repositories import (
    AccountRepository,
    ObligationRepository,
    SourceRepository,
    TransactionRepository,
)
from .account import SQLModelAccountRepository
from .obligation import SQLModelObligationRepository
from .source import SQLModelSourceRepository
from .transaction import SQLModelTransactionRepository


@dataclass(slots=True)
class Repositories:
    """The repositories the schedule engine needs, sharing one session factory."""

    accounts: AccountRepository
    sources: SourceRepository
    obligations: ObligationRepository
    transactions: TransactionRepository

    @classmethod
    def from_session_factory(
        cls, session_factory: Callable[[], ContextManager[Session]]
    ) -> "Repositories":
        return cls(
            accounts=SQLModelAccountRepository(session_factory),
            sources=SQLModelSourceRepository(session_factory),
            obligations=SQLModelObligationRepository(session_factory),
            transactions=SQLModelTransactionRepository(session_factory),
        )


__all__ = [
    "Repositories",
    "SQLModelAccountRepository",
    "SQLModelObligationRepository",
    "SQLModelSourceRepository",
    "SQLModelTransactionRepository",
]
