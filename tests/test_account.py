"""Tests for account commands."""

from decimal import Decimal

from ledgerkit.cli.main import cli
from ledgerkit.domain.balances import BalanceService


def invoke(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)


def test_account_create(cli_runner, temp_db):
    result = invoke(cli_runner, temp_db, "account", "create", "Checking", "--balance", "$1,000.00")

    assert result.exit_code == 0
    assert "Created account 'Checking'" in result.output
    assert "ID:" in result.output


def test_account_create_duplicate(cli_runner, temp_db):
    assert invoke(cli_runner, temp_db, "account", "create", "Checking").exit_code == 0

    result = invoke(cli_runner, temp_db, "account", "create", "checking")

    assert result.exit_code == 1
    assert "already exists" in result.output.lower()


def test_account_create_invalid_balance(cli_runner, temp_db):
    result = invoke(cli_runner, temp_db, "account", "create", "Checking", "--balance", "lots")

    assert result.exit_code == 1
    assert "Invalid amount format" in result.output


def test_account_list_empty(cli_runner, temp_db):
    result = invoke(cli_runner, temp_db, "account", "list")

    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_account_list_shows_balances_and_net_worth(cli_runner, temp_db, checking, savings):
    result = invoke(cli_runner, temp_db, "account", "list")

    assert result.exit_code == 0
    assert "Checking" in result.output
    assert "Savings" in result.output
    assert "100.00 USD" in result.output
    assert "Net worth: 100.00 USD" in result.output


def test_account_list_uses_custom_rates(cli_runner, temp_db, account_service, currency_service):
    account_service.create_account("Euro", balance=Decimal("10"), currency="EUR")
    currency_service.set_custom_rate("EUR", 2.0)

    result = invoke(cli_runner, temp_db, "--currency", "USD", "account", "list")

    assert result.exit_code == 0
    assert "Net worth: 20.00 USD" in result.output


def test_account_list_loads_balances_once(cli_runner, temp_db, checking, monkeypatch):
    original = BalanceService.get_account_balances
    calls = []

    def counting(self, reporting_currency="USD"):
        calls.append(reporting_currency)
        return original(self, reporting_currency)

    monkeypatch.setattr(BalanceService, "get_account_balances", counting)

    result = invoke(cli_runner, temp_db, "account", "list")

    assert result.exit_code == 0
    assert "Net worth: 100.00 USD" in result.output
    assert calls == ["USD"]


def test_account_rename_by_name(cli_runner, temp_db, checking, reopen_db):
    result = invoke(cli_runner, temp_db, "account", "rename", "checking", "Main")

    assert result.exit_code == 0
    assert "Renamed account to 'Main'" in result.output
    assert reopen_db().get_account(checking.id).name == "Main"


def test_account_update_currency(cli_runner, temp_db, savings, reopen_db):
    result = invoke(cli_runner, temp_db, "account", "update", str(savings.id), "Savings", "--currency", "eur")

    assert result.exit_code == 0
    assert reopen_db().get_account(savings.id).currency == "EUR"


def test_account_unknown(cli_runner, temp_db):
    result = invoke(cli_runner, temp_db, "account", "rename", "Nope", "Other")

    assert result.exit_code == 1
    assert "Account 'Nope' not found" in result.output


def test_account_delete_confirmation(cli_runner, temp_db, checking, reopen_db):
    cancelled = invoke(cli_runner, temp_db, "account", "delete", "Checking", input="n\n")
    assert "Deletion cancelled" in cancelled.output
    assert reopen_db().get_account(checking.id) is not None

    result = invoke(cli_runner, temp_db, "account", "delete", "Checking", "--yes")

    assert result.exit_code == 0
    assert "Deleted account 'Checking'" in result.output
    db = reopen_db()
    assert db.get_account(checking.id) is None
    assert db.list_transactions() == []
