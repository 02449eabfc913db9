"""Tests for database mappers."""

from decimal import Decimal

from ledgerkit.database.mappers import (
    account_to_domain,
    actions_to_json,
    conditions_to_json,
    rule_to_domain,
    transaction_to_domain,
)
from ledgerkit.database.models import (
    Account as ORMAccount,
    Rule as ORMRule,
    Transaction as ORMTransaction,
)
from ledgerkit.domain.entities import Account, RuleAction, RuleCondition, Transaction


class TestAccountMapper:
    def test_account_to_domain(self):
        orm_account = ORMAccount(id=1, name="Checking", balance=Decimal("12.5"), currency="EUR")

        domain_account = account_to_domain(orm_account)

        assert isinstance(domain_account, Account)
        assert domain_account == Account(id=1, name="Checking", balance=Decimal("12.5"), currency="EUR")


class TestTransactionMapper:
    def test_transaction_to_domain(self):
        orm_transaction = ORMTransaction(
            id=3,
            account_id=1,
            date="2024-01-15",
            payee="Savings",
            amount=Decimal("-5"),
            notes="move",
            category="Transfer",
            linked_tx_id=4,
        )

        txn = transaction_to_domain(orm_transaction)

        assert isinstance(txn, Transaction)
        assert txn.linked_tx_id == 4
        assert txn.is_transfer
        assert txn.shares is None


class TestRuleMapper:
    def test_json_round_trip(self):
        conditions = (RuleCondition("payee", "contains", "cafe", negated=True),)
        actions = (RuleAction("category", "Coffee"),)
        orm_rule = ORMRule(
            id=2,
            priority=4,
            match_field="",
            match_pattern="",
            action_field="",
            action_value="",
            logic="or",
            conditions=conditions_to_json(conditions),
            actions=actions_to_json(actions),
        )

        rule = rule_to_domain(orm_rule)

        assert rule.conditions == conditions
        assert rule.actions == actions
        assert rule.logic == "or"

    def test_incomplete_rows_load_with_defaults(self):
        orm_rule = ORMRule(
            id=1,
            priority=0,
            match_field=None,
            match_pattern=None,
            action_field=None,
            action_value=None,
            logic=None,
            conditions=[{"field": "payee", "value": "x"}],
            actions=None,
        )

        rule = rule_to_domain(orm_rule)

        assert rule.match_field == ""
        assert rule.logic == "and"
        assert rule.conditions == (RuleCondition("payee", "", "x"),)
        assert rule.actions == ()
