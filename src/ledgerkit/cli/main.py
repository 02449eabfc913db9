"""Main CLI entry point."""

import click

from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.logging_config import LOG_LEVELS, configure_logging

# Import and register all commands at module level
from ledgerkit.cli.commands import (
    account,
    add,
    rate,
    rule,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERKIT_DB_PATH environment variable)",
    envvar="LEDGERKIT_DB_PATH",
)
@click.option(
    "--currency",
    default="USD",
    show_default=True,
    help="Reporting currency for converted balances",
    envvar="LEDGERKIT_CURRENCY",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    help="Minimum log level written to stderr",
    envvar="LEDGERKIT_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, currency: str, log_level: str):
    """Ledgerkit - Personal finance ledger.

    Keep account balances consistent with their transactions, link
    transfers between accounts, categorize with rules and report balances
    across currencies.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)
    ctx.obj["currency"] = currency.strip().upper()

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
rule.register_commands(cli)
rate.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
