"""Add transaction command."""

import click

from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.transaction import TransactionService
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import parse_date


@click.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option(
    "--date",
    required=True,
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option("--payee", required=True, help="Payee, or another account's name for a transfer")
@click.option(
    "--amount", required=True, help="Transaction amount (e.g., 123.45 or -123.45)"
)
@click.option("--notes", help="Notes")
@click.option("--category", help="Category")
@click.option("--currency", help="Currency code of the amount")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    date: str,
    payee: str,
    amount: str,
    notes: str | None,
    category: str | None,
    currency: str | None,
):
    """Add a transaction manually.

    Categorization rules run before the transaction is stored. A payee that
    names another account turns the entry into a transfer between the two.

    Examples:
        ledgerkit add --account Checking --date today --payee "Grocery store" --amount -50.00
        ledgerkit add --account Checking --date 2024-01-15 --payee Savings --amount -200
    """
    db = ctx.obj["db"]
    transaction_service = TransactionService(db)
    account_service = AccountService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account)

    try:
        txn_date = parse_date(date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        txn = transaction_service.create_transaction(
            account_id=account_id,
            date=txn_date,
            payee=payee,
            amount=txn_amount,
            notes=notes,
            category=category,
            currency=currency,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    account_obj = account_service.get_account(account_id)
    click.echo(f"Created transaction {txn.id}")
    click.echo(f"  Account: {account_obj.name}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Payee: {txn.payee}")
    click.echo(f"  Amount: {txn.amount:,.2f}")
    if txn.category:
        click.echo(f"  Category: {txn.category}")
    if txn.linked_tx_id is not None:
        click.echo(f"  Linked transfer: {txn.linked_tx_id}")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
