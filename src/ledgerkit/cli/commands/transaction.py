"""Transaction management commands."""

import click

from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import INVESTMENT_CATEGORY
from ledgerkit.domain.transaction import TransactionService
from ledgerkit.utils.amount_parser import parse_amount
from ledgerkit.utils.date_parser import parse_date


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("list")
@click.option("--account", help="Account name or ID")
@click.pass_context
def list_transactions(ctx, account: str | None):
    """List transactions, newest first."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    account_service = AccountService(db)

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, account_service, account)

    transactions = service.list_transactions(account_id=account_id)
    if not transactions:
        click.echo("No transactions found.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts()}

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 100)
    click.echo(
        f"{'ID':<6} {'Date':<12} {'Amount':>12} {'Account':<20} {'Payee':<24} {'Category':<20}"
    )
    click.echo("-" * 100)
    for txn in transactions:
        account_name = accounts.get(txn.account_id, "Unknown")
        amount_str = f"{txn.amount:,.2f}"
        click.echo(
            f"{txn.id:<6} {txn.date:<12} {amount_str:>12} {account_name[:20]:<20} "
            f"{(txn.payee or '')[:24]:<24} {(txn.category or '')[:20]:<20}"
        )


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--account", help="Account name or ID")
@click.option("--date", help="Transaction date (YYYY-MM-DD or relative like 'today')")
@click.option("--payee", help="Payee")
@click.option("--amount", help="Transaction amount (e.g., 123.45 or -123.45)")
@click.option("--notes", help="Notes")
@click.option("--category", help="Category, or empty string to clear")
@click.option("--currency", help="Currency code, or empty string to clear")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    account: str | None,
    date: str | None,
    payee: str | None,
    amount: str | None,
    notes: str | None,
    category: str | None,
    currency: str | None,
) -> None:
    """Update a transaction.

    Updates only the fields that are provided. Moving a transaction to another
    account with --account moves its amount between the account balances. A
    linked transfer counterpart is kept in sync.

    Examples:
        ledgerkit transaction update 1 --amount -75.00
        ledgerkit transaction update 1 --account "Savings"
    """
    db = ctx.obj["db"]
    service = TransactionService(db)
    account_service = AccountService(db)

    txn = service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    if amount is not None and txn.category == INVESTMENT_CATEGORY:
        click.echo(
            f"Error: Transaction {transaction_id} is a buy/sell entry; "
            "change its amount with 'transaction update-trade'",
            err=True,
        )
        ctx.exit(1)

    account_id = txn.account_id
    if account is not None:
        account_id = resolve_account_or_exit(ctx, account_service, account)

    txn_date = txn.date
    if date is not None:
        try:
            txn_date = parse_date(date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    txn_amount = txn.amount
    if amount is not None:
        try:
            txn_amount = parse_amount(amount)
        except ValueError as e:
            click.echo(f"Error: Invalid amount format: {e}", err=True)
            ctx.exit(1)

    if category is None:
        category = txn.category
    if currency is None:
        currency = txn.currency

    try:
        service.update_transaction(
            transaction_id,
            account_id=account_id,
            date=txn_date,
            payee=payee if payee is not None else txn.payee,
            amount=txn_amount,
            notes=notes if notes is not None else txn.notes,
            category=category or None,
            currency=currency,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated transaction {transaction_id}")


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a transaction (and its transfer counterpart).

    Examples:
        ledgerkit transaction delete 1
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    txn = service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


@transaction_group.command("update-trade")
@click.argument("transaction_id", type=int)
@click.option("--account", help="Account name or ID")
@click.option("--date", help="Trade date (YYYY-MM-DD or relative like 'today')")
@click.option("--ticker", help="Instrument ticker")
@click.option("--shares", help="Number of shares")
@click.option("--price", help="Price per share")
@click.option("--fee", help="Trade fee")
@click.option("--side", type=click.Choice(["buy", "sell"]), help="Turn the entry into a buy or a sell")
@click.option("--notes", help="Notes (default: regenerated from the trade)")
@click.pass_context
def update_trade(ctx, transaction_id, account, date, ticker, shares, price, fee, side, notes) -> None:
    """Update a buy/sell entry and recompute its amount.

    Fields that are not provided keep their stored values.

    Examples:
        ledgerkit transaction update-trade 7 --price 101.50
        ledgerkit transaction update-trade 7 --side sell
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    txn = service.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)
    if txn.category != INVESTMENT_CATEGORY:
        click.echo(f"Error: Transaction {transaction_id} is not a buy/sell entry", err=True)
        ctx.exit(1)

    account_id = txn.account_id
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    stored_shares = txn.shares or 0
    is_buy = side == "buy" if side else stored_shares >= 0

    try:
        updated = service.update_investment_transaction(
            transaction_id,
            account_id=account_id,
            date=parse_date(date) if date is not None else txn.date,
            ticker=ticker.strip().upper() if ticker is not None else (txn.ticker or ""),
            shares=parse_amount(shares) if shares is not None else abs(stored_shares),
            price_per_share=parse_amount(price) if price is not None else (txn.price_per_share or 0),
            fee=parse_amount(fee) if fee is not None else (txn.fee or 0),
            is_buy=is_buy,
            notes=notes,
            currency=txn.currency,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated transaction {transaction_id}: {updated.notes} ({updated.amount:,.2f})")


def _trade_command(is_buy: bool):
    verb = "buy" if is_buy else "sell"

    @click.option("--account", required=True, help="Account name or ID")
    @click.option("--date", required=True, help="Trade date (YYYY-MM-DD or relative like 'today')")
    @click.option("--ticker", required=True, help="Instrument ticker")
    @click.option("--shares", required=True, help="Number of shares")
    @click.option("--price", required=True, help="Price per share")
    @click.option("--fee", default="0", help="Trade fee")
    @click.option("--currency", help="Currency code of the trade")
    @click.pass_context
    def trade(ctx, account, date, ticker, shares, price, fee, currency):
        db = ctx.obj["db"]
        service = TransactionService(db)
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

        try:
            txn = service.create_investment_transaction(
                account_id=account_id,
                date=parse_date(date),
                ticker=ticker.strip().upper(),
                shares=parse_amount(shares),
                price_per_share=parse_amount(price),
                fee=parse_amount(fee),
                is_buy=is_buy,
                currency=currency,
            )
        except ValueError as e:
            handle_domain_error(ctx, e)
        click.echo(f"Created transaction {txn.id}: {txn.notes} ({txn.amount:,.2f})")

    trade.__doc__ = f"Record a {verb} of an instrument."
    return transaction_group.command(verb)(trade)


buy = _trade_command(is_buy=True)
sell = _trade_command(is_buy=False)


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
