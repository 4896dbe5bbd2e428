"""Tests for the legacy name/amount/date matching heuristics."""

from __future__ import annotations

from datetime import date

import pytest

from billsync.domain.period import Period
from billsync.models import Transaction
from billsync.services.fuzzy_match import (
    MatchSettings,
    amounts_match,
    date_in_window,
    find_match,
    names_match,
)


@pytest.mark.parametrize(
    ("item", "transaction", "expected"),
    [
        ("Electric", "ELECTRIC COMPANY 03/26", True),
        ("Netflix Premium Plan", "netflix", True),
        ("TV", "TV license", False),
        ("Water", "Electric", False),
        ("", "Electric", False),
    ],
)
def test_names_match(item, transaction, expected):
    assert names_match(item, transaction) is expected


def test_amounts_match_within_tolerance():
    assert amounts_match(100.0, 101.0)
    assert amounts_match(100.0, 99.0)
    assert not amounts_match(100.0, 101.01)


@pytest.mark.parametrize(
    ("when", "expected"),
    [
        (date(2026, 3, 1), True),
        (date(2026, 3, 31), True),
        (date(2026, 4, 7), True),
        (date(2026, 4, 8), False),
        (date(2026, 2, 28), False),
    ],
)
def test_date_window_for_regular_month(when, expected):
    assert date_in_window(Period(2026, 3), when) is expected


def test_january_accepts_december_of_prior_year():
    assert date_in_window(Period(2027, 1), date(2026, 12, 5))
    assert not date_in_window(Period(2027, 3), date(2027, 2, 5))


def test_find_match_returns_earliest_unlinked_candidate():
    transactions = [
        Transaction(id=3, name="Rent", amount=900.0, occurred_on=date(2026, 3, 20)),
        Transaction(id=2, name="Rent", amount=900.0, occurred_on=date(2026, 3, 2), obligation_id=5),
        Transaction(id=1, name="Rent March", amount=900.0, occurred_on=date(2026, 3, 5)),
    ]

    match = find_match(
        source_name="Rent",
        expected_amount=900.0,
        period=Period(2026, 3),
        transactions=transactions,
    )

    assert match is not None
    assert match.id == 1


def test_find_match_honours_custom_settings():
    transactions = [Transaction(id=1, name="Gym", amount=30.0, occurred_on=date(2026, 4, 10))]
    strict = MatchSettings(min_name_length=4, grace_days=7)
    loose = MatchSettings(min_name_length=3, grace_days=10)

    kwargs = dict(
        source_name="Gym", expected_amount=30.0, period=Period(2026, 3), transactions=transactions
    )
    assert find_match(settings=strict, **kwargs) is None
    assert find_match(settings=loose, **kwargs) is transactions[0]
