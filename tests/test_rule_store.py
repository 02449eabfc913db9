"""Tests for RuleService."""

import pytest

from ledgerkit.domain.entities import RuleAction, RuleCondition
from ledgerkit.domain.errors import NotFoundError, ValidationError


def test_create_and_get_compound_rule(rule_service):
    rule_id = rule_service.create_rule(
        priority=3,
        logic="OR",
        conditions=[RuleCondition("payee", "contains", "uber"), RuleCondition("notes", "equals", "taxi", negated=True)],
        actions=[RuleAction("category", "Transport")],
    )

    rule = rule_service.get_rule(rule_id)
    assert rule.priority == 3
    assert rule.logic == "or"
    assert rule.conditions == (
        RuleCondition("payee", "contains", "uber"),
        RuleCondition("notes", "equals", "taxi", negated=True),
    )
    assert rule.actions == (RuleAction("category", "Transport"),)


def test_create_legacy_rule(rule_service):
    rule_id = rule_service.create_rule(
        match_field="payee", match_pattern="netflix", action_field="category", action_value="Subscriptions"
    )

    rule = rule_service.get_rule(rule_id)
    assert rule.match_pattern == "netflix"
    assert rule.conditions == ()
    assert rule.actions == ()


def test_invalid_logic(rule_service):
    with pytest.raises(ValidationError, match="logic"):
        rule_service.create_rule(logic="xor")


def test_invalid_operator(rule_service):
    with pytest.raises(ValidationError, match="operator"):
        rule_service.create_rule(conditions=[RuleCondition("payee", "like", "x")])


def test_list_orders_by_priority_then_id(rule_service):
    a = rule_service.create_rule(priority=1)
    b = rule_service.create_rule(priority=5)
    c = rule_service.create_rule(priority=1)

    assert [r.id for r in rule_service.list_rules()] == [b, a, c]


def test_update_rule(rule_service):
    rule_id = rule_service.create_rule(match_field="payee", match_pattern="a")

    updated = rule_service.update_rule(rule_id, priority=9, conditions=[RuleCondition("amount", "less_than", "0")])

    assert updated.priority == 9
    assert updated.match_field == ""
    assert updated.conditions[0].operator == "less_than"


def test_update_and_delete_unknown_rule(rule_service):
    with pytest.raises(NotFoundError):
        rule_service.update_rule(99)
    with pytest.raises(NotFoundError):
        rule_service.delete_rule(99)


def test_delete_rule(rule_service):
    rule_id = rule_service.create_rule()
    rule_service.delete_rule(rule_id)
    assert rule_service.get_rule(rule_id) is None


def test_reorder_rules(rule_service):
    a = rule_service.create_rule()
    b = rule_service.create_rule()
    c = rule_service.create_rule()

    rule_service.reorder_rules([c, a, b])

    assert [(r.id, r.priority) for r in rule_service.list_rules()] == [(c, 3), (a, 2), (b, 1)]


def test_reorder_with_unknown_id_changes_nothing(rule_service):
    a = rule_service.create_rule(priority=7)

    with pytest.raises(NotFoundError):
        rule_service.reorder_rules([a, 404])

    assert rule_service.get_rule(a).priority == 7


def test_reorder_rejects_duplicates(rule_service):
    a = rule_service.create_rule()
    with pytest.raises(ValidationError):
        rule_service.reorder_rules([a, a])
