"""Rule store service: CRUD and ordering of categorization rules."""

from typing import Optional, Sequence

import structlog

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Rule, RuleAction, RuleCondition
from ledgerkit.domain.errors import NotFoundError, ValidationError, rule_not_found
from ledgerkit.domain.rules import LOGICS, OPERATORS

logger = structlog.get_logger(__name__)


def _validate(logic: str, conditions: Sequence[RuleCondition], actions: Sequence[RuleAction]) -> str:
    normalized = logic.strip().lower()
    if normalized not in LOGICS:
        raise ValidationError(f"Invalid rule logic '{logic}'. Must be one of: {', '.join(LOGICS)}")
    for condition in conditions:
        if condition.operator.strip().lower() not in OPERATORS:
            raise ValidationError(
                f"Invalid operator '{condition.operator}'. Must be one of: {', '.join(OPERATORS)}"
            )
        if not condition.field.strip():
            raise ValidationError("Condition field cannot be empty")
    for action in actions:
        if not action.field.strip():
            raise ValidationError("Action field cannot be empty")
    return normalized


class RuleService:
    """Service for managing categorization rules."""

    def __init__(self, db: Database):
        """Initialize rule service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_rule(
        self,
        priority: int = 0,
        match_field: str = "",
        match_pattern: str = "",
        action_field: str = "",
        action_value: str = "",
        logic: str = "and",
        conditions: Sequence[RuleCondition] = (),
        actions: Sequence[RuleAction] = (),
    ) -> int:
        """Create a rule.

        Either the legacy single ``match_*``/``action_*`` pair or compound
        ``conditions``/``actions`` may be given.

        Returns:
            ID of the created rule

        Raises:
            ValidationError: If the logic or a condition operator is unknown
        """
        normalized = _validate(logic, conditions, actions)
        rule_id = self.db.create_rule(
            priority=priority,
            match_field=match_field,
            match_pattern=match_pattern,
            action_field=action_field,
            action_value=action_value,
            logic=normalized,
            conditions=conditions,
            actions=actions,
        )
        logger.info("rule_created", rule_id=rule_id, priority=priority)
        return rule_id

    def get_rule(self, rule_id: int) -> Optional[Rule]:
        return self.db.get_rule(rule_id)

    def list_rules(self) -> list[Rule]:
        """List rules by priority descending, then ID ascending."""
        return self.db.list_rules()

    def update_rule(
        self,
        rule_id: int,
        priority: int = 0,
        match_field: str = "",
        match_pattern: str = "",
        action_field: str = "",
        action_value: str = "",
        logic: str = "and",
        conditions: Sequence[RuleCondition] = (),
        actions: Sequence[RuleAction] = (),
    ) -> Rule:
        """Replace all fields of a rule.

        Raises:
            NotFoundError: If the rule doesn't exist
            ValidationError: If the logic or a condition operator is unknown
        """
        normalized = _validate(logic, conditions, actions)
        with self.db.transaction():
            self._require(rule_id)
            self.db.update_rule(
                rule_id,
                priority=priority,
                match_field=match_field,
                match_pattern=match_pattern,
                action_field=action_field,
                action_value=action_value,
                logic=normalized,
                conditions=conditions,
                actions=actions,
            )
        return self._require(rule_id)

    def delete_rule(self, rule_id: int) -> None:
        """Delete a rule.

        Raises:
            NotFoundError: If the rule doesn't exist
        """
        with self.db.transaction():
            self._require(rule_id)
            self.db.delete_rule(rule_id)
        logger.info("rule_deleted", rule_id=rule_id)

    def reorder_rules(self, rule_ids: Sequence[int]) -> None:
        """Assign priorities from a list ordered most important first.

        The first ID gets priority ``len(rule_ids)`` and the last gets 1.
        Rules not listed keep their priority.

        Raises:
            NotFoundError: If any ID is unknown (no priority is changed)
            ValidationError: If an ID is listed twice
        """
        if len(set(rule_ids)) != len(rule_ids):
            raise ValidationError("Rule IDs must be unique")

        with self.db.transaction():
            for position, rule_id in enumerate(rule_ids):
                self._require(rule_id)
                self.db.set_rule_priority(rule_id, len(rule_ids) - position)

    def _require(self, rule_id: int) -> Rule:
        rule = self.db.get_rule(rule_id)
        if rule is None:
            raise NotFoundError(rule_not_found(rule_id))
        return rule
