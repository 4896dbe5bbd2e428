"""SQLModel table exports."""

from .account import Account
from .obligation import Obligation, ObligationStatus
from .source import Source, SourceKind
from .transaction import Transaction

__all__ = [
    "Account",
    "Obligation",
    "ObligationStatus",
    "Source",
    "SourceKind",
    "Transaction",
]
