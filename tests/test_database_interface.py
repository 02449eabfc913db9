"""Tests for the Database interface and its SQLAlchemy implementation."""

from decimal import Decimal

import pytest

from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain import entities
from ledgerkit.domain.errors import ConflictError, ConstraintError, NotFoundError


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_account_returns_domain_model(self, temp_db):
        account_id = temp_db.create_account(name="Test Account", balance=Decimal("10.5"), currency="EUR")

        account = temp_db.get_account(account_id)

        assert isinstance(account, entities.Account)
        assert account.id == account_id
        assert account.name == "Test Account"
        assert account.balance == Decimal("10.5")
        assert account.currency == "EUR"

    def test_get_missing_returns_none(self, temp_db):
        assert temp_db.get_account(1) is None
        assert temp_db.get_transaction(1) is None
        assert temp_db.get_rule(1) is None

    def test_transaction_round_trip_keeps_instrument_fields(self, temp_db):
        account_id = temp_db.create_account(name="Broker", balance=Decimal("0"))
        txn_id = temp_db.create_transaction(
            account_id=account_id,
            date="2024-01-15",
            payee="Buy",
            amount=Decimal("-100.25"),
            ticker="ACME",
            shares=Decimal("-2.5"),
            price_per_share=Decimal("40.1"),
            fee=Decimal("0.25"),
        )

        txn = temp_db.get_transaction(txn_id)

        assert isinstance(txn, entities.Transaction)
        assert txn.date == "2024-01-15"
        assert txn.amount == Decimal("-100.25")
        assert txn.shares == Decimal("-2.5")
        assert txn.price_per_share == Decimal("40.1")
        assert txn.fee == Decimal("0.25")
        assert txn.linked_tx_id is None

    def test_find_account_by_name(self, temp_db):
        first = temp_db.create_account(name="Savings", balance=Decimal("0"))

        assert temp_db.find_account_by_name("Savings").id == first
        assert temp_db.find_account_by_name("savings") is None
        assert temp_db.find_account_by_name("savings", case_sensitive=False).id == first
        assert temp_db.find_account_by_name("Savings", exclude_id=first) is None

    def test_currency_sums_group_by_currency(self, temp_db):
        account_id = temp_db.create_account(name="Mixed", balance=Decimal("0"))
        for amount, currency in [("10", "EUR"), ("5", "EUR"), ("7", None), ("1", "GBP")]:
            temp_db.create_transaction(
                account_id=account_id, date="2024-01-01", payee="x", amount=Decimal(amount), currency=currency
            )

        sums = {row.currency: row.total for row in temp_db.get_currency_sums(default_currency="USD")}

        assert sums == {"EUR": Decimal("15"), "GBP": Decimal("1"), "USD": Decimal("7")}
        assert temp_db.get_transaction_totals() == {account_id: Decimal("23")}


class TestUnitOfWork:
    def test_nested_transactions_commit_once(self, temp_db):
        with temp_db.transaction():
            account_id = temp_db.create_account(name="A", balance=Decimal("0"))
            with temp_db.transaction():
                temp_db.adjust_account_balance(account_id, Decimal("3"))

        assert temp_db.get_account(account_id).balance == Decimal("3")

    def test_exception_rolls_back_all_writes(self, temp_db):
        with pytest.raises(RuntimeError):
            with temp_db.transaction():
                temp_db.create_account(name="Ghost", balance=Decimal("0"))
                raise RuntimeError("boom")

        assert temp_db.list_accounts() == []

    def test_foreign_key_violation_is_constraint_error(self, temp_db):
        with pytest.raises(ConstraintError):
            temp_db.create_transaction(account_id=999, date="2024-01-01", payee="x", amount=Decimal("1"))

        assert temp_db.list_transactions() == []

    def test_missing_rows_raise_not_found(self, temp_db):
        with pytest.raises(NotFoundError):
            temp_db.adjust_account_balance(5, Decimal("1"))
        with pytest.raises(NotFoundError):
            temp_db.update_account(5, name="x", currency=None)
        with pytest.raises(NotFoundError):
            temp_db.delete_transaction(5)

    def test_locked_database_raises_conflict(self, temp_db):
        writer = create_sqlite_database(database_path=temp_db.database_path, lock_timeout=0.1)
        blocked = create_sqlite_database(database_path=temp_db.database_path, lock_timeout=0.1)
        try:
            with pytest.raises(RuntimeError):
                with writer.transaction():
                    writer.create_account(name="Holder", balance=Decimal("0"))
                    with pytest.raises(ConflictError):
                        blocked.create_account(name="Waiter", balance=Decimal("0"))
                    raise RuntimeError("release lock")
        finally:
            writer.disconnect()
            blocked.disconnect()

        assert temp_db.list_accounts() == []


def test_default_path_from_environment(tmp_path, monkeypatch):
    db_file = tmp_path / "env.db"
    monkeypatch.setenv("LEDGERKIT_DB_PATH", str(db_file))

    db = create_sqlite_database()
    try:
        db.create_account(name="Env", balance=Decimal("0"))
    finally:
        db.disconnect()

    assert db_file.exists()
