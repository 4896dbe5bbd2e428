"""Pytest configuration and shared fixtures for Billsync tests.

This module provides database fixtures, test data factories, and helper utilities
for testing the schedule engine, repositories, and services against a throwaway
SQLite file instead of the real application database.
"""

from __future__ import annotations

from datetime import date

import pytest

from billsync.config import BaseConfig
from billsync.infra.database import create_db_engine, create_session_factory, init_database
from billsync.infra.repositories import Repositories
from billsync.models import Account, Transaction
from billsync.services.engine import PaymentScheduleEngine, SourceCreation

# =============================================================================
# Configuration & Database Fixtures
# =============================================================================


@pytest.fixture
def config(tmp_path, monkeypatch) -> BaseConfig:
    """Configuration pointing every path at the test's temporary directory."""

    monkeypatch.setenv("BILLSYNC_DATA_DIR", str(tmp_path))
    for name in (
        "BILLSYNC_DATABASE_URL",
        "BILLSYNC_ATOMIC_PAYMENTS",
        "BILLSYNC_RECONCILE_ON_READ",
        "BILLSYNC_FUZZY_MATCHING",
        "BILLSYNC_DUE_DAY",
    ):
        monkeypatch.delenv(name, raising=False)
    return BaseConfig()


@pytest.fixture(scope="function")
def db_engine(config):
    """Create an isolated SQLite database file for each test.

    Foreign keys are enforced the same way the application enforces them.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    engine = create_db_engine(config)
    init_database(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory that commits on success and rolls back on error."""

    return create_session_factory(db_engine)


@pytest.fixture
def repos(session_factory) -> Repositories:
    return Repositories.from_session_factory(session_factory)


@pytest.fixture
def schedule(session_factory, config) -> PaymentScheduleEngine:
    """Schedule engine with default (atomic) payment recording."""

    return PaymentScheduleEngine(session_factory, config)


@pytest.fixture
def tolerant_schedule(session_factory, config) -> PaymentScheduleEngine:
    """Schedule engine whose payments commit the ledger row and the schedule update separately."""

    config.ATOMIC_PAYMENTS = False
    return PaymentScheduleEngine(session_factory, config)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def account_factory(repos):
    """Factory for creating test accounts.

    Returns:
        Callable: Function that creates and persists Account instances
    """

    def _create_account(name: str = "Checking", account_type: str = "debit") -> Account:
        return repos.accounts.create(Account(name=name, account_type=account_type))

    return _create_account


@pytest.fixture
def bill_factory(schedule):
    """Factory for bills created through the engine, schedule included."""

    def _create_bill(
        name: str = "Electric",
        amount: float = 1500.0,
        start: str | None = "2026-03",
        end_month: int | None = None,
        account_id: int | None = None,
    ) -> SourceCreation:
        return schedule.create_source(
            name, "bill", amount, start=start, end_month=end_month, account_id=account_id
        )

    return _create_bill


@pytest.fixture
def installment_factory(schedule):
    """Factory for installments created through the engine, schedule included."""

    def _create_installment(
        name: str = "Laptop",
        amount: float = 250.0,
        start: str | None = "2026-11",
        term_length: int | None = 6,
        timing: str | None = None,
        account_id: int | None = None,
    ) -> SourceCreation:
        return schedule.create_source(
            name,
            "installment",
            amount,
            start=start,
            term_length=term_length,
            timing=timing,
            account_id=account_id,
        )

    return _create_installment


@pytest.fixture
def transaction_factory(repos):
    """Factory for ledger rows written straight through the repository.

    Useful for legacy rows (no link) and for seeding links without the
    payment workflow.
    """

    def _create_transaction(
        name: str = "Test transaction",
        amount: float = 100.0,
        occurred_on: date | None = None,
        obligation_id: int | None = None,
        account_id: int | None = None,
    ) -> Transaction:
        return repos.transactions.create(
            Transaction(
                name=name,
                amount=amount,
                occurred_on=occurred_on or date(2026, 3, 10),
                obligation_id=obligation_id,
                account_id=account_id,
            )
        )

    return _create_transaction
