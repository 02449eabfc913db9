"""Tests for domain entities."""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from ledgerkit.domain.entities import Account, Rule, Transaction, TransactionDraft


class TestAccount:
    def test_defaults(self):
        account = Account(id=1, name="Checking", balance=Decimal("10"))
        assert account.currency is None
        assert account.exchange_rate == 1.0

    def test_account_immutability(self):
        account = Account(id=1, name="Checking", balance=Decimal("10"))
        with pytest.raises(FrozenInstanceError):
            account.balance = Decimal("20")


class TestTransaction:
    def test_is_transfer(self):
        txn = Transaction(id=1, account_id=1, date="2024-01-01", payee="Savings",
                          amount=Decimal("-5"), category="Transfer")
        assert txn.is_transfer
        assert not Transaction(id=2, account_id=1, date="2024-01-01", payee="Shop",
                               amount=Decimal("-5"), category="transfer").is_transfer

    def test_transaction_immutability(self):
        txn = Transaction(id=1, account_id=1, date="2024-01-01", payee="Shop", amount=Decimal("-5"))
        with pytest.raises(FrozenInstanceError):
            txn.amount = Decimal("0")


def test_draft_is_mutable():
    draft = TransactionDraft(account_id=1, date="2024-01-01", payee="Shop", amount=Decimal("1"))
    draft.category = "Food"
    assert draft.category == "Food"


def test_rule_defaults():
    rule = Rule(id=1, priority=0)
    assert rule.logic == "and"
    assert rule.conditions == ()
    assert rule.actions == ()
