"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes.
"""

from ledgerkit.domain import entities as domain
from ledgerkit.database.models import (
    Account as ORMAccount,
    Rule as ORMRule,
    Transaction as ORMTransaction,
)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        balance=orm_account.balance,
        currency=orm_account.currency,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        payee=orm_transaction.payee,
        amount=orm_transaction.amount,
        notes=orm_transaction.notes,
        category=orm_transaction.category,
        currency=orm_transaction.currency,
        ticker=orm_transaction.ticker,
        shares=orm_transaction.shares,
        price_per_share=orm_transaction.price_per_share,
        fee=orm_transaction.fee,
        linked_tx_id=orm_transaction.linked_tx_id,
    )


def rule_to_domain(orm_rule: ORMRule) -> domain.Rule:
    """Convert SQLAlchemy Rule model to domain Rule entity.

    Conditions and actions are stored as JSON lists of objects; missing keys
    fall back to empty strings so hand-edited rows still load.
    """
    conditions = tuple(
        domain.RuleCondition(
            field=str(item.get("field", "")),
            operator=str(item.get("operator", "")),
            value=str(item.get("value", "")),
            negated=bool(item.get("negated", False)),
        )
        for item in (orm_rule.conditions or [])
    )
    actions = tuple(
        domain.RuleAction(field=str(item.get("field", "")), value=str(item.get("value", "")))
        for item in (orm_rule.actions or [])
    )
    return domain.Rule(
        id=orm_rule.id,
        priority=orm_rule.priority,
        match_field=orm_rule.match_field or "",
        match_pattern=orm_rule.match_pattern or "",
        action_field=orm_rule.action_field or "",
        action_value=orm_rule.action_value or "",
        logic=orm_rule.logic or "and",
        conditions=conditions,
        actions=actions,
    )


def conditions_to_json(conditions) -> list[dict]:
    """Convert RuleCondition entities to the JSON column payload."""
    return [
        {"field": c.field, "operator": c.operator, "value": c.value, "negated": c.negated}
        for c in conditions
    ]


def actions_to_json(actions) -> list[dict]:
    """Convert RuleAction entities to the JSON column payload."""
    return [{"field": a.field, "value": a.value} for a in actions]
