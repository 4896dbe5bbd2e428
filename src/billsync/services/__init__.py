"""Service module exports."""

from . import engine, fuzzy_match, linkage, reversal, schedule_generator, status_resolver
from .engine import (
    ObligationView,
    PaymentScheduleEngine,
    Regeneration,
    SourceCreation,
    SourceUpdate,
    TransactionFilter,
)
from .linkage import LedgerEntry, PaymentDetails

__all__ = [
    "LedgerEntry",
    "ObligationView",
    "PaymentDetails",
    "PaymentScheduleEngine",
    "Regeneration",
    "SourceCreation",
    "SourceUpdate",
    "TransactionFilter",
    "engine",
    "fuzzy_match",
    "linkage",
    "reversal",
    "schedule_generator",
    "status_resolver",
]
