"""Repository protocol definitions for domain layer."""

from .account import AccountRepository
from .obligation import ObligationRepository
from .source import SourceRepository
from .transaction import TransactionRepository

__all__ = [
    "AccountRepository",
    "ObligationRepository",
    "SourceRepository",
    "TransactionRepository",
]
