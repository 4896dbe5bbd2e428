"""Unit tests for repository implementations."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from billsync.domain.period import Period
from billsync.infra.database import shared_session_factory
from billsync.infra.repositories import Repositories
from billsync.models import Account, Obligation, Source, Transaction


def _source(repos, **overrides) -> Source:
    values = dict(name="Rent", kind="bill", start_year=2026, start_month=1, expected_amount=900.0)
    values.update(overrides)
    return repos.sources.create(Source(**values))


def _stub(source: Source, year: int, month: int) -> Obligation:
    return Obligation(
        source_id=source.id,
        source_kind=source.kind,
        period_year=year,
        period_month=month,
        expected_amount=source.expected_amount,
        amount_paid=0.0,
    )


def test_account_repository_crud(repos):
    """Test account repository create and lookups."""
    created = repos.accounts.create(Account(name="Checking"))

    assert created.id is not None
    assert created.account_type == "debit"
    assert repos.accounts.get_by_name("Checking").id == created.id
    assert [a.name for a in repos.accounts.list_all()] == ["Checking"]


def test_source_repository_crud(repos):
    """Test source repository CRUD operations."""
    source = _source(repos)
    _source(repos, name="Phone plan", kind="installment", term_length=12)

    assert [s.name for s in repos.sources.list_all()] == ["Phone plan", "Rent"]
    assert [s.name for s in repos.sources.list_all(kind="bill")] == ["Rent"]

    source.expected_amount = 950.0
    updated = repos.sources.update(source)
    assert updated.expected_amount == 950.0

    repos.sources.delete(source.id)
    assert repos.sources.get_by_id(source.id) is None


def test_insert_many_orders_chronologically(repos):
    source = _source(repos)
    stubs = [_stub(source, 2026, m) for m in (11, 2, 10, 1)]

    assert repos.obligations.insert_many(stubs) == 4

    periods = [o.period for o in repos.obligations.list_by_source(source.id)]
    assert periods == [Period(2026, 1), Period(2026, 2), Period(2026, 10), Period(2026, 11)]


def test_insert_many_is_idempotent(repos):
    source = _source(repos)

    assert repos.obligations.insert_many([_stub(source, 2026, m) for m in range(1, 4)]) == 3
    assert repos.obligations.insert_many([_stub(source, 2026, m) for m in range(1, 5)]) == 1
    assert len(repos.obligations.list_by_source(source.id)) == 4


def test_insert_many_skips_duplicates_within_one_batch(repos):
    source = _source(repos)
    stubs = [_stub(source, 2026, 5), _stub(source, 2026, 5), _stub(source, 2026, 6)]

    assert repos.obligations.insert_many(stubs) == 2
    assert [o.period_month for o in repos.obligations.list_by_source(source.id)] == [5, 6]


def test_insert_many_raises_for_rows_of_a_missing_source(repos):
    source = _source(repos)
    orphan = _stub(source, 2026, 2)
    orphan.source_id = 999

    with pytest.raises(IntegrityError):
        repos.obligations.insert_many([_stub(source, 2026, 1), orphan])

    assert repos.obligations.list_by_source(source.id) == []


def test_unique_constraint_is_enforced_by_the_database(session_factory, repos):
    source = _source(repos)
    repos.obligations.insert_many([_stub(source, 2026, 1)])

    with pytest.raises(IntegrityError):
        with session_factory() as session:
            session.add(_stub(source, 2026, 1))
            session.flush()


def test_get_for_period_and_list_by_status(repos):
    source = _source(repos)
    repos.obligations.insert_many([_stub(source, 2026, 1), _stub(source, 2026, 2)])
    february = repos.obligations.get_for_period(source.id, Period(2026, 2))
    february.status = "overdue"
    repos.obligations.update(february)

    assert repos.obligations.get_for_period(source.id, Period(2026, 3)) is None
    assert [o.id for o in repos.obligations.list_by_status("overdue")] == [february.id]
    assert len(repos.obligations.list_by_status("pending", "overdue")) == 2


def test_transaction_search_filters(repos):
    source = _source(repos)
    repos.obligations.insert_many([_stub(source, 2026, 1)])
    january = repos.obligations.get_for_period(source.id, Period(2026, 1))
    account = repos.accounts.create(Account(name="Card", account_type="credit"))

    linked = repos.transactions.create(
        Transaction(name="Rent January", amount=900.0, occurred_on=date(2026, 1, 3),
                    obligation_id=january.id, account_id=account.id)
    )
    loose = repos.transactions.create(
        Transaction(name="Groceries", amount=54.2, occurred_on=date(2026, 1, 9))
    )
    later = repos.transactions.create(
        Transaction(name="Rent deposit", amount=100.0, occurred_on=date(2026, 2, 1))
    )

    assert [t.id for t in repos.transactions.search()] == [later.id, loose.id, linked.id]
    assert [t.id for t in repos.transactions.search(linked=True)] == [linked.id]
    assert [t.id for t in repos.transactions.list_unlinked()] == [later.id, loose.id]
    assert [t.id for t in repos.transactions.search(text="rent")] == [later.id, linked.id]
    assert [t.id for t in repos.transactions.search(account_id=account.id)] == [linked.id]
    assert [
        t.id
        for t in repos.transactions.search(
            start_date=date(2026, 1, 5), end_date=date(2026, 1, 31)
        )
    ] == [loose.id]
    assert repos.transactions.list_by_obligation(january.id)[0].id == linked.id


def test_clear_links_keeps_transactions(repos):
    source = _source(repos)
    repos.obligations.insert_many([_stub(source, 2026, 1)])
    january = repos.obligations.get_for_period(source.id, Period(2026, 1))
    txn = repos.transactions.create(
        Transaction(name="Rent", amount=900.0, occurred_on=date(2026, 1, 2), obligation_id=january.id)
    )

    assert repos.transactions.clear_links([january.id]) == 1
    assert repos.transactions.get_by_id(txn.id).obligation_id is None


def test_shared_session_factory_joins_one_transaction(session_factory):
    """Work done through a shared session is undone when the owner rolls back."""

    with pytest.raises(RuntimeError):
        with session_factory() as session:
            repos = Repositories.from_session_factory(shared_session_factory(session))
            repos.sources.create(
                Source(name="Gym", kind="bill", start_year=2026, start_month=1, expected_amount=30.0)
            )
            raise RuntimeError("abort")

    assert Repositories.from_session_factory(session_factory).sources.list_all() == []
