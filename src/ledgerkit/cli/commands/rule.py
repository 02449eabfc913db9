"""Categorization rule commands."""

import click

from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.entities import RuleAction, RuleCondition
from ledgerkit.domain.rule_store import RuleService
from ledgerkit.domain.rules import LOGICS


@click.group()
def rule_group():
    """Manage categorization rules."""
    pass


@rule_group.command("create")
@click.option("--priority", type=int, default=0, show_default=True, help="Higher priority wins")
@click.option("--match-field", default="", help="Field for a simple substring rule (e.g., payee)")
@click.option("--match-pattern", default="", help="Substring the match field must contain")
@click.option(
    "--condition",
    "conditions",
    nargs=3,
    multiple=True,
    metavar="FIELD OPERATOR VALUE",
    help="Condition, e.g. --condition amount less_than -100",
)
@click.option(
    "--exclude",
    "excludes",
    nargs=3,
    multiple=True,
    metavar="FIELD OPERATOR VALUE",
    help="Negated condition",
)
@click.option("--logic", type=click.Choice(LOGICS), default="and", show_default=True)
@click.option(
    "--set",
    "actions",
    nargs=2,
    multiple=True,
    metavar="FIELD VALUE",
    help="Action, e.g. --set category Groceries",
)
@click.pass_context
def create_rule(ctx, priority, match_field, match_pattern, conditions, excludes, logic, actions):
    """Create a rule.

    Examples:
        ledgerkit rule create --match-field payee --match-pattern STARBUCKS --set category Coffee
        ledgerkit rule create --condition payee contains amazon --exclude notes contains refund \\
            --set category Shopping --priority 5
    """
    service = RuleService(ctx.obj["db"])
    parsed_conditions = [RuleCondition(field=f, operator=o, value=v) for f, o, v in conditions]
    parsed_conditions += [RuleCondition(field=f, operator=o, value=v, negated=True) for f, o, v in excludes]
    parsed_actions = [RuleAction(field=f, value=v) for f, v in actions]

    try:
        rule_id = service.create_rule(
            priority=priority,
            match_field=match_field,
            match_pattern=match_pattern,
            logic=logic,
            conditions=parsed_conditions,
            actions=parsed_actions,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created rule {rule_id}")


@rule_group.command("list")
@click.pass_context
def list_rules(ctx):
    """List rules, highest priority first."""
    rules = RuleService(ctx.obj["db"]).list_rules()
    if not rules:
        click.echo("No rules found.")
        return

    for rule in rules:
        if rule.conditions:
            joiner = f" {rule.logic.upper()} "
            match = joiner.join(
                f"{'NOT ' if c.negated else ''}{c.field} {c.operator} '{c.value}'" for c in rule.conditions
            )
        else:
            match = f"{rule.match_field} contains '{rule.match_pattern}'"
        if rule.actions:
            action = ", ".join(f"{a.field}='{a.value}'" for a in rule.actions)
        else:
            action = f"{rule.action_field}='{rule.action_value}'" if rule.action_field else "-"
        click.echo(f"ID: {rule.id:3d} | priority {rule.priority:3d} | {match} -> {action}")


@rule_group.command("delete")
@click.argument("rule_id", type=int)
@click.pass_context
def delete_rule(ctx, rule_id: int):
    """Delete a rule."""
    try:
        RuleService(ctx.obj["db"]).delete_rule(rule_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted rule {rule_id}")


@rule_group.command("reorder")
@click.argument("rule_ids", type=int, nargs=-1, required=True)
@click.pass_context
def reorder_rules(ctx, rule_ids: tuple[int, ...]):
    """Set rule priorities, most important first.

    Examples:
        ledgerkit rule reorder 3 1 2
    """
    try:
        RuleService(ctx.obj["db"]).reorder_rules(list(rule_ids))
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reordered {len(rule_ids)} rule(s)")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
