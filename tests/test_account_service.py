"""Tests for AccountService."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerkit.domain.account import (
    OPENING_BALANCE_CATEGORY,
    OPENING_BALANCE_NOTES,
    OPENING_BALANCE_PAYEE,
)
from ledgerkit.domain.errors import DuplicateNameError, NotFoundError, ValidationError


class TestCreateAccount:
    def test_create_without_balance_has_no_transactions(self, account_service, temp_db):
        acc = account_service.create_account("Wallet")

        assert acc.name == "Wallet"
        assert acc.balance == Decimal("0")
        assert temp_db.list_transactions(account_id=acc.id) == []

    def test_opening_balance_creates_transaction(self, account_service, temp_db):
        """A non-zero starting balance is backed by an opening transaction."""
        acc = account_service.create_account("Checking", balance=Decimal("250.50"), currency="EUR")

        txns = temp_db.list_transactions(account_id=acc.id)
        assert len(txns) == 1
        opening = txns[0]
        assert opening.payee == OPENING_BALANCE_PAYEE
        assert opening.notes == OPENING_BALANCE_NOTES
        assert opening.category == OPENING_BALANCE_CATEGORY
        assert opening.amount == Decimal("250.50")
        assert opening.currency == "EUR"
        assert opening.date == date.today().isoformat()
        assert temp_db.get_account(acc.id).balance == Decimal("250.50")

    def test_name_is_trimmed(self, account_service):
        acc = account_service.create_account("  Savings  ")
        assert acc.name == "Savings"

    def test_blank_name_rejected(self, account_service):
        with pytest.raises(ValidationError):
            account_service.create_account("   ")

    def test_duplicate_name_is_case_insensitive(self, account_service, temp_db):
        account_service.create_account("Savings")

        with pytest.raises(DuplicateNameError, match="already exists"):
            account_service.create_account("SAVINGS")

        assert len(temp_db.list_accounts()) == 1

    def test_accepts_float_and_string_balances(self, account_service):
        assert account_service.create_account("A", balance=0.1).balance == Decimal("0.1")
        assert account_service.create_account("B", balance="$1,000.00").balance == Decimal("1000.00")


class TestRenameAndUpdate:
    def test_rename_keeps_currency(self, account_service):
        acc = account_service.create_account("Euro", currency="EUR")

        renamed = account_service.rename_account(acc.id, "Euro Cash")

        assert renamed.name == "Euro Cash"
        assert renamed.currency == "EUR"

    def test_rename_to_own_name_with_different_case(self, account_service):
        acc = account_service.create_account("savings")
        assert account_service.rename_account(acc.id, "Savings").name == "Savings"

    def test_rename_to_other_accounts_name_rejected(self, account_service):
        account_service.create_account("Checking")
        other = account_service.create_account("Savings")

        with pytest.raises(DuplicateNameError):
            account_service.rename_account(other.id, "checking")

    def test_rename_unknown_account(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.rename_account(999, "Anything")

    def test_update_sets_currency(self, account_service):
        acc = account_service.create_account("Travel")

        updated = account_service.update_account(acc.id, "Travel", currency="GBP")

        assert updated.currency == "GBP"
        assert account_service.get_account(acc.id).currency == "GBP"

    def test_update_normalizes_currency(self, account_service):
        acc = account_service.create_account("Travel", currency="usd")
        assert acc.currency == "USD"

        updated = account_service.update_account(acc.id, "Travel", currency=" gbp")
        assert updated.currency == "GBP"

        cleared = account_service.update_account(acc.id, "Travel", currency="  ")
        assert cleared.currency is None

    def test_update_blank_name_rejected(self, account_service):
        acc = account_service.create_account("Travel")
        with pytest.raises(ValidationError):
            account_service.update_account(acc.id, "")


class TestDeleteAccount:
    def test_delete_removes_transactions(self, account_service, transaction_service, temp_db):
        acc = account_service.create_account("Checking", balance=Decimal("100"))
        transaction_service.create_transaction(acc.id, "2024-01-02", "Shop", Decimal("-10"))

        account_service.delete_account(acc.id)

        assert account_service.get_account(acc.id) is None
        assert temp_db.list_transactions(account_id=acc.id) == []

    def test_delete_unknown_account_is_noop(self, account_service):
        account_service.delete_account(12345)

    def test_list_accounts(self, account_service):
        account_service.create_account("One")
        account_service.create_account("Two")
        assert [a.name for a in account_service.list_accounts()] == ["One", "Two"]
