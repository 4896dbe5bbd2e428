"""Payment schedule generation for bills and installments."""

from __future__ import annotations

from ..domain.period import Period, period_range
from ..errors import ScheduleValidationError
from ..models.obligation import Obligation, ObligationStatus
from ..models.source import Source

DECEMBER = 12


def _require_start_period(source: Source) -> Period:
    start = source.start_period
    if start is None:
        raise ScheduleValidationError(
            f"{source.kind.capitalize()} '{source.name}' has no start period; cannot generate schedule"
        )
    return start


def bill_periods(source: Source) -> list[Period]:
    """Return one period per month from activation through the end of the activation year.

    A bill with ``end_month`` stops at that month instead of December. Periods
    are built from the numeric month index, so the result is chronological
    and never reaches into the following year.
    """

    start = _require_start_period(source)
    last_month = source.end_month or DECEMBER
    if last_month < start.month:
        raise ScheduleValidationError(
            f"Bill '{source.name}' ends in month {last_month}, before it starts in month {start.month}"
        )
    return [Period(start.year, month) for month in range(start.month, last_month + 1)]


def installment_periods(source: Source) -> list[Period]:
    """Return ``term_length`` consecutive periods starting at the installment's start period."""

    start = _require_start_period(source)
    if not source.term_length or source.term_length < 1:
        raise ScheduleValidationError(
            f"Installment '{source.name}' has no term length; cannot generate schedule"
        )
    return period_range(start, source.term_length)


def generate(source: Source) -> list[Obligation]:
    """Build the ordered run of unsaved obligations owed by ``source``.

    Raises:
        ScheduleValidationError: when the source lacks a start period, a term
            length (installments), or has an unknown kind.
    """

    if source.id is None:
        raise ScheduleValidationError("Source must be saved before its schedule is generated")

    if source.is_bill:
        periods = bill_periods(source)
        numbered = False
    elif source.is_installment:
        periods = installment_periods(source)
        numbered = True
    else:
        raise ScheduleValidationError(f"Unknown source kind: {source.kind!r}")

    return [
        Obligation(
            source_id=source.id,
            source_kind=source.kind,
            period_year=period.year,
            period_month=period.month,
            payment_number=index if numbered else None,
            expected_amount=round(float(source.expected_amount), 2),
            amount_paid=0.0,
            status=ObligationStatus.PENDING.value,
        )
        for index, period in enumerate(periods, start=1)
    ]


def needs_regeneration(before: Source, after: Source) -> bool:
    """Return True when an edit changed anything the generated schedule depends on."""

    return (
        before.expected_amount != after.expected_amount
        or before.start_year != after.start_year
        or before.start_month != after.start_month
        or before.end_month != after.end_month
        or before.term_length != after.term_length
    )


__all__ = [
    "bill_periods",
    "generate",
    "installment_periods",
    "needs_regeneration",
]
