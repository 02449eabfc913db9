"""Account management commands."""

import click

from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.balances import BalanceService, net_worth
from ledgerkit.domain.errors import DomainError
from ledgerkit.utils.amount_parser import parse_amount


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--balance", default="0", help="Opening balance (e.g., 1000 or $1,000.00)")
@click.option("--currency", help="Account currency code (e.g., EUR)")
@click.pass_context
def create_account(ctx, name: str, balance: str, currency: str | None):
    """Create a new account.

    A non-zero --balance is recorded as an "Opening Balance" transaction.

    Examples:
        ledgerkit account create "Checking"
        ledgerkit account create "Savings" --balance 1000
        ledgerkit account create "Euro Cash" --currency EUR
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        opening = parse_amount(balance)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        acc = service.create_account(
            name=name, balance=opening, currency=currency
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{acc.name}' (ID: {acc.id})")


@account_group.command("list")
@click.option("--currency", help="Reporting currency (defaults to the global --currency)")
@click.pass_context
def list_accounts(ctx, currency: str | None):
    """List all accounts with converted balances."""
    db = ctx.obj["db"]
    reporting = currency.strip().upper() if currency else ctx.obj["currency"]
    service = BalanceService(db)

    accounts = service.get_account_balances(reporting)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        code = acc.currency or reporting
        click.echo(f"ID: {acc.id:3d} | {acc.name:20s} | {acc.balance:>14,.2f} {code}")
    click.echo("-" * 60)
    click.echo(f"Net worth: {net_worth(accounts):,.2f} {reporting}")


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def rename_account(ctx, account: str, new_name: str) -> None:
    """Rename an account.

    ACCOUNT can be an account name or ID.

    Examples:
        ledgerkit account rename "Checking" "Main Checking"
        ledgerkit account rename 1 "Main Checking"
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        acc = service.rename_account(account_id, new_name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Renamed account to '{acc.name}'")


@account_group.command("update")
@click.argument("account", metavar="ACCOUNT")
@click.argument("name", metavar="NAME")
@click.option("--currency", help="Account currency code; omit to clear")
@click.pass_context
def update_account(ctx, account: str, name: str, currency: str | None) -> None:
    """Update an account's name and currency.

    Examples:
        ledgerkit account update "Euro Cash" "Euro Cash" --currency EUR
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        acc = service.update_account(
            account_id, name=name, currency=currency
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated account '{acc.name}' (currency: {acc.currency or 'none'})")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account and all of its transactions.

    ACCOUNT can be an account name or ID.

    Examples:
        ledgerkit account delete "Checking"
        ledgerkit account delete 1 --yes
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.get_account(account_id)

    if not yes and not click.confirm(
        f"Delete account '{account_obj.name}' (ID: {account_id}) and all of its transactions?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account '{account_obj.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
