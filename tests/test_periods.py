"""Tests for month-granular billing periods."""

from __future__ import annotations

from datetime import date

import pytest

from billsync.domain.period import Period, period_range


def test_parse_iso_and_month_name_forms():
    assert Period.parse("2026-03") == Period(2026, 3)
    assert Period.parse("March 2026") == Period(2026, 3)
    assert Period.parse("  december 2025 ") == Period(2025, 12)


@pytest.mark.parametrize("value", ["2026-13", "2026-xx", "Smarch 2026", "2026"])
def test_parse_rejects_garbage(value):
    with pytest.raises(ValueError):
        Period.parse(value)


def test_ordering_is_numeric_not_lexical():
    periods = [Period(2026, 10), Period(2026, 2), Period(2025, 12), Period(2026, 1)]
    assert sorted(periods) == [
        Period(2025, 12),
        Period(2026, 1),
        Period(2026, 2),
        Period(2026, 10),
    ]


def test_shift_rolls_year_both_ways():
    assert Period(2026, 11).shift(3) == Period(2027, 2)
    assert Period(2026, 1).previous() == Period(2025, 12)
    assert Period(2026, 12).next() == Period(2027, 1)


def test_period_range_spans_year_end():
    assert period_range(Period(2026, 11), 4) == [
        Period(2026, 11),
        Period(2026, 12),
        Period(2027, 1),
        Period(2027, 2),
    ]
    assert period_range(Period(2026, 1), 0) == []


def test_day_helpers():
    feb = Period(2028, 2)
    assert feb.first_day == date(2028, 2, 1)
    assert feb.last_day == date(2028, 2, 29)
    assert feb.contains(date(2028, 2, 14))
    assert not feb.contains(date(2028, 3, 1))
    assert feb.due_date(15) == date(2028, 2, 15)
    assert feb.grace_end(7) == date(2028, 3, 7)


def test_labels():
    period = Period(2026, 3)
    assert str(period) == "2026-03"
    assert period.label == "March 2026"
    assert Period.from_date(date(2026, 7, 31)) == Period(2026, 7)
