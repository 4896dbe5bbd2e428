"""Tests for recording payments against schedule entries."""

from __future__ import annotations

import logging
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from billsync.domain.period import Period
from billsync.errors import PaymentRecordError, ScheduleNotFoundError, TransactionNotFoundError
from billsync.infra.repositories import SQLModelTransactionRepository
from billsync.services import linkage
from billsync.services.linkage import LedgerEntry, LinkageManager, PaymentDetails


def _fail_schedule_update(*args, **kwargs):
    raise OperationalError("UPDATE obligation", {}, Exception("database is locked"))


def _fail_ledger_write(*args, **kwargs):
    raise OperationalError("INSERT INTO ledger_transaction", {}, Exception("disk I/O error"))


def test_payment_links_transaction_and_marks_entry_paid(session_factory, repos, bill_factory):
    source_id = bill_factory(amount=80.0).source.id
    march = repos.obligations.get_for_period(source_id, Period(2026, 3))
    manager = LinkageManager(session_factory)

    transaction = manager.pay_obligation(
        march.id, PaymentDetails(amount=80.0, paid_on=date(2026, 3, 9), receipt="R-1")
    )

    assert transaction.obligation_id == march.id
    assert transaction.name == "Payment for March 2026"
    stored = repos.obligations.get_by_id(march.id)
    assert stored.status == "paid"
    assert stored.amount_paid == 80.0
    assert stored.date_paid == date(2026, 3, 9)
    assert stored.receipt == "R-1"


def test_missing_schedule_entry_writes_nothing(session_factory, repos):
    manager = LinkageManager(session_factory)

    with pytest.raises(ScheduleNotFoundError):
        manager.pay_obligation(123, PaymentDetails(amount=10.0, paid_on=date(2026, 1, 1)))

    assert repos.transactions.search() == []


@pytest.mark.parametrize("atomic", [True, False])
def test_ledger_write_failure_is_retryable(session_factory, repos, bill_factory, monkeypatch, atomic):
    source_id = bill_factory().source.id
    march = repos.obligations.get_for_period(source_id, Period(2026, 3))
    manager = LinkageManager(session_factory, atomic=atomic)
    monkeypatch.setattr(SQLModelTransactionRepository, "create", _fail_ledger_write)

    with pytest.raises(PaymentRecordError) as excinfo:
        manager.pay_obligation(march.id, PaymentDetails(amount=1500.0, paid_on=date(2026, 3, 9)))

    assert excinfo.value.retryable
    assert repos.obligations.get_by_id(march.id).status == "pending"


def test_atomic_mode_rolls_back_ledger_row(session_factory, repos, bill_factory, monkeypatch):
    source_id = bill_factory().source.id
    march = repos.obligations.get_for_period(source_id, Period(2026, 3))
    monkeypatch.setattr(linkage, "sync_obligation", _fail_schedule_update)

    with pytest.raises(PaymentRecordError, match="Failed to record payment"):
        LinkageManager(session_factory, atomic=True).pay_obligation(
            march.id, PaymentDetails(amount=1500.0, paid_on=date(2026, 3, 9))
        )

    assert repos.transactions.search() == []
    assert repos.obligations.get_by_id(march.id).status == "pending"


@pytest.mark.integration
def test_tolerant_mode_keeps_ledger_row_and_heals_on_read(
    tolerant_schedule, repos, bill_factory, monkeypatch, caplog
):
    source_id = bill_factory(amount=1500.0).source.id
    monkeypatch.setattr(linkage, "sync_obligation", _fail_schedule_update)

    with caplog.at_level(logging.WARNING, logger="billsync"):
        transaction = tolerant_schedule.pay_obligation(
            source_id, "2026-03", PaymentDetails(amount=1500.0, paid_on=date(2026, 3, 9))
        )

    assert transaction.id is not None
    assert "reconciled on next read" in caplog.text
    stale = repos.obligations.get_for_period(source_id, Period(2026, 3))
    assert stale.status == "pending"
    assert stale.amount_paid == 0.0

    march = tolerant_schedule.list_obligations(source_id)[0]

    assert march.status == "paid"
    assert march.display_amount == 1500.0
    healed = repos.obligations.get_for_period(source_id, Period(2026, 3))
    assert healed.status == "paid"
    assert healed.amount_paid == 1500.0


def test_unlinked_entry_has_no_schedule_side_effects(session_factory, repos, bill_factory):
    source_id = bill_factory(name="Rent", amount=900.0).source.id
    manager = LinkageManager(session_factory)

    entry = manager.create_unlinked_transaction(
        LedgerEntry(name="  Rent  ", amount=900.0, occurred_on=date(2026, 3, 1))
    )

    assert entry.obligation_id is None
    assert entry.name == "Rent"
    assert all(o.status == "pending" for o in repos.obligations.list_by_source(source_id))


def test_update_unknown_transaction(session_factory):
    with pytest.raises(TransactionNotFoundError):
        LinkageManager(session_factory).update_transaction(55, amount=1.0)


def test_manual_override_clears_details_at_zero(session_factory, repos, bill_factory):
    source_id = bill_factory(amount=100.0).source.id
    march = repos.obligations.get_for_period(source_id, Period(2026, 3))
    manager = LinkageManager(session_factory)

    paid = manager.record_manual_override(march.id, 100.0, paid_on=date(2026, 3, 2), receipt="cash")
    assert paid.status == "paid"
    assert paid.receipt == "cash"

    cleared = manager.record_manual_override(march.id, 0)
    assert cleared.status == "pending"
    assert cleared.date_paid is None
    assert cleared.receipt is None
