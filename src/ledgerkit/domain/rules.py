"""Rule engine for categorizing new transactions.

Pure functions over a ``TransactionDraft``; nothing here touches the database.
Rules arrive ordered by priority descending (then id ascending) and are
evaluated in reverse, so the highest priority rule is applied last and its
actions win on any field that several matching rules write.
"""

from enum import Enum
from typing import Iterable, Sequence

import structlog

from ledgerkit.domain.entities import Rule, RuleAction, RuleCondition, TransactionDraft

logger = structlog.get_logger(__name__)

LOGIC_AND = "and"
LOGIC_OR = "or"
LOGICS = (LOGIC_AND, LOGIC_OR)

OPERATORS = ("equals", "contains", "starts_with", "ends_with", "greater_than", "less_than")


class RuleField(str, Enum):
    """Transaction fields rules can read or write."""

    PAYEE = "payee"
    NOTES = "notes"
    CATEGORY = "category"
    AMOUNT = "amount"
    DATE = "date"
    CURRENCY = "currency"
    TICKER = "ticker"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, name: str) -> "RuleField":
        """Map a stored field name onto a known field, or UNSUPPORTED."""
        try:
            field = cls(name.strip().lower())
        except ValueError:
            return cls.UNSUPPORTED
        return field

    @property
    def writable(self) -> bool:
        return self in (RuleField.PAYEE, RuleField.NOTES, RuleField.CATEGORY)


def lookup(draft: TransactionDraft, field: RuleField) -> str:
    """Return the string value of ``field`` on ``draft`` ("" when unset)."""
    if field is RuleField.PAYEE:
        return draft.payee or ""
    if field is RuleField.NOTES:
        return draft.notes or ""
    if field is RuleField.CATEGORY:
        return draft.category or ""
    if field is RuleField.AMOUNT:
        return str(draft.amount)
    if field is RuleField.DATE:
        return draft.date or ""
    if field is RuleField.CURRENCY:
        return draft.currency or ""
    if field is RuleField.TICKER:
        return draft.ticker or ""
    return ""


def _to_number(value: str) -> float:
    try:
        return float(value.strip())
    except ValueError:
        return 0.0


def evaluate_condition(draft: TransactionDraft, condition: RuleCondition) -> bool:
    """Evaluate one condition, honouring its ``negated`` flag."""
    field = RuleField.parse(condition.field)
    if field is RuleField.UNSUPPORTED:
        logger.warning("rule_condition_field_unsupported", field=condition.field)

    actual = lookup(draft, field)
    expected = condition.value
    operator = condition.operator.strip().lower()

    if operator == "equals":
        result = actual.lower() == expected.lower()
    elif operator == "contains":
        result = expected.lower() in actual.lower()
    elif operator == "starts_with":
        result = actual.lower().startswith(expected.lower())
    elif operator == "ends_with":
        result = actual.lower().endswith(expected.lower())
    elif operator == "greater_than":
        result = _to_number(actual) > _to_number(expected)
    elif operator == "less_than":
        result = _to_number(actual) < _to_number(expected)
    else:
        result = False

    return not result if condition.negated else result


def rule_matches(draft: TransactionDraft, rule: Rule) -> bool:
    """Check whether ``rule`` matches ``draft``.

    Compound conditions are combined with the rule's logic. A rule without
    conditions falls back to the legacy substring test of ``match_field``
    against ``match_pattern``; a rule with neither never matches.
    """
    if rule.conditions:
        results = (evaluate_condition(draft, c) for c in rule.conditions)
        if rule.logic.strip().lower() == LOGIC_OR:
            return any(results)
        return all(results)

    if rule.match_field and rule.match_pattern:
        actual = lookup(draft, RuleField.parse(rule.match_field))
        return rule.match_pattern.lower() in actual.lower()

    return False


def _apply_action(draft: TransactionDraft, action: RuleAction, rule_id: int) -> None:
    field = RuleField.parse(action.field)
    if field is RuleField.PAYEE:
        draft.payee = action.value
    elif field is RuleField.NOTES:
        draft.notes = action.value
    elif field is RuleField.CATEGORY:
        draft.category = action.value
    else:
        logger.warning("rule_action_field_unsupported", rule_id=rule_id, field=action.field)


def rule_actions(rule: Rule) -> Iterable[RuleAction]:
    """Actions a matching rule executes, in order."""
    if rule.actions:
        return rule.actions
    if rule.action_field:
        return (RuleAction(field=rule.action_field, value=rule.action_value),)
    return ()


def apply_rules(draft: TransactionDraft, rules: Sequence[Rule]) -> TransactionDraft:
    """Apply ``rules`` to ``draft`` in place and return it.

    Args:
        draft: Transaction fields to categorize
        rules: Rules ordered by priority descending, then id ascending

    Returns:
        The same draft, after every matching rule's actions ran
    """
    for rule in reversed(rules):
        if rule_matches(draft, rule):
            for action in rule_actions(rule):
                _apply_action(draft, action, rule.id)
    return draft


def sort_rules(rules: Iterable[Rule]) -> list[Rule]:
    """Order rules the way ``apply_rules`` expects them."""
    return sorted(rules, key=lambda r: (-r.priority, r.id))
