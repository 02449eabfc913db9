"""Custom exchange rate commands."""

import click

from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.currency import CurrencyService


@click.group()
def rate_group():
    """Manage custom exchange rates (value of one unit in USD)."""
    pass


@rate_group.command("set")
@click.argument("currency")
@click.argument("rate", type=float)
@click.pass_context
def set_rate(ctx, currency: str, rate: float):
    """Set a custom rate-to-USD for CURRENCY.

    Examples:
        ledgerkit rate set EUR 1.08
    """
    try:
        CurrencyService(ctx.obj["db"]).set_custom_rate(currency, rate)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Set {currency.strip().upper()} = {rate} USD")


@rate_group.command("list")
@click.pass_context
def list_rates(ctx):
    """List custom rates."""
    rates = CurrencyService(ctx.obj["db"]).get_custom_rates()
    if not rates:
        click.echo("No custom rates.")
        return
    for currency, rate in sorted(rates.items()):
        click.echo(f"{currency}: {rate}")


@rate_group.command("delete")
@click.argument("currency")
@click.pass_context
def delete_rate(ctx, currency: str):
    """Remove the custom rate for CURRENCY."""
    CurrencyService(ctx.obj["db"]).delete_custom_rate(currency)
    click.echo(f"Deleted custom rate for {currency.strip().upper()}")


def register_commands(cli):
    """Register rate commands with main CLI."""
    cli.add_command(rate_group, name="rate")
