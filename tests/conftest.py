"""Shared pytest fixtures for ledgerkit tests."""

import os
import tempfile
from decimal import Decimal

import pytest

from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.balances import BalanceService
from ledgerkit.domain.currency import CurrencyService
from ledgerkit.domain.rule_store import RuleService
from ledgerkit.domain.transaction import TransactionService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path, lock_timeout=1.0)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def reopen_db(temp_db):
    """Open a second handle on the temporary database file.

    CLI commands write through their own connection; tests read the result
    back through a handle that has no cached rows.
    """
    handles = []

    def _open():
        db = create_sqlite_database(database_path=temp_db.database_path)
        handles.append(db)
        return db

    yield _open

    for db in handles:
        db.disconnect()


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def rule_service(temp_db):
    """Create a RuleService with a temporary database."""
    return RuleService(temp_db)


@pytest.fixture
def currency_service(temp_db):
    """Create a CurrencyService with a temporary database."""
    return CurrencyService(temp_db)


@pytest.fixture
def balance_service(temp_db):
    """Create a BalanceService without a market rate source."""
    return BalanceService(temp_db)


@pytest.fixture
def checking(account_service):
    """Account "Checking" opened with 100."""
    return account_service.create_account("Checking", balance=Decimal("100"))


@pytest.fixture
def savings(account_service):
    """Empty account "Savings"."""
    return account_service.create_account("Savings")


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
