"""Month-granular billing periods."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


@dataclass(frozen=True, order=True, slots=True)
class Period:
    """A (year, month) pair ordered chronologically.

    Ordering compares the year first and the numeric month second, so
    January always sorts before December of the same year.
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {self.month}")
        if self.year < 1:
            raise ValueError(f"Year must be positive, got {self.year}")

    @classmethod
    def parse(cls, value: str) -> "Period":
        """Parse ``YYYY-MM`` or ``<Month name> YYYY`` (e.g. ``March 2026``)."""

        text = value.strip()
        if "-" in text:
            year_part, _, month_part = text.partition("-")
            try:
                return cls(int(year_part), int(month_part))
            except ValueError as exc:
                raise ValueError(f"Invalid period {value!r}; expected YYYY-MM") from exc

        parts = text.split()
        if len(parts) == 2:
            month_name, year_part = parts
            try:
                return cls.from_month_name(month_name, int(year_part))
            except ValueError as exc:
                raise ValueError(f"Invalid period {value!r}") from exc
        raise ValueError(f"Invalid period {value!r}; expected YYYY-MM or 'Month YYYY'")

    @classmethod
    def from_month_name(cls, name: str, year: int) -> "Period":
        lookup = {month.lower(): index for index, month in enumerate(MONTH_NAMES, start=1)}
        month = lookup.get(name.strip().lower())
        if month is None:
            raise ValueError(f"Unknown month name: {name!r}")
        return cls(year, month)

    @classmethod
    def from_date(cls, value: date) -> "Period":
        return cls(value.year, value.month)

    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month - 1]

    @property
    def label(self) -> str:
        return f"{self.month_name} {self.year}"

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def shift(self, months: int) -> "Period":
        """Return the period ``months`` away, rolling the year over as needed."""

        index = self.year * 12 + (self.month - 1) + months
        return Period(index // 12, index % 12 + 1)

    def next(self) -> "Period":
        return self.shift(1)

    def previous(self) -> "Period":
        return self.shift(-1)

    def contains(self, value: date) -> bool:
        return value.year == self.year and value.month == self.month

    def due_date(self, due_day: int) -> date:
        return date(self.year, self.month, min(due_day, self.last_day.day))

    def grace_end(self, days: int) -> date:
        return self.last_day + timedelta(days=days)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def period_range(start: Period, count: int) -> list[Period]:
    """Return ``count`` consecutive periods beginning at ``start``."""

    return [start.shift(offset) for offset in range(max(count, 0))]
