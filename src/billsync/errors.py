"""Exception types raised by the payment schedule engine."""

from __future__ import annotations


class BillsyncError(Exception):
    """Base class for engine errors surfaced to callers."""


class ScheduleValidationError(BillsyncError, ValueError):
    """Raised when a source cannot produce a payment schedule (missing start period or term)."""


class ScheduleNotFoundError(BillsyncError, LookupError):
    """Raised when no payment schedule entry exists for the requested source and period."""

    def __init__(self, message: str = "Payment schedule not found") -> None:
        super().__init__(message)


class SourceNotFoundError(BillsyncError, LookupError):
    """Raised when a bill or installment id does not exist."""


class TransactionNotFoundError(BillsyncError, LookupError):
    """Raised when a ledger transaction id does not exist."""


class PaymentRecordError(BillsyncError, RuntimeError):
    """Raised when a payment could not be written to the ledger. Safe to retry."""

    retryable = True

    def __init__(self, message: str = "Failed to record payment") -> None:
        super().__init__(message)


class InvalidPaymentError(BillsyncError, ValueError):
    """Raised when payment details are unusable (e.g. a non-positive amount)."""
