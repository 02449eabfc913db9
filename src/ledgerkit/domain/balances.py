"""Multi-currency balance aggregation."""

from collections import defaultdict
from dataclasses import replace
from decimal import Decimal
from typing import Mapping, Optional, Sequence

import structlog

from ledgerkit.database.base import Database
from ledgerkit.domain.currency import RateSource, required_tickers, resolve_rate
from ledgerkit.domain.entities import Account, CurrencySum

logger = structlog.get_logger(__name__)


def compute_balances(
    accounts: Sequence[Account],
    currency_sums: Sequence[CurrencySum],
    reporting_currency: str,
    fetched_rates: Mapping[str, float],
    custom_rates: Mapping[str, float],
) -> list[Account]:
    """Derive display balances from per-currency transaction sums.

    Each sum is converted into its account's currency (or the reporting
    currency for accounts without one) and accumulated. Accounts without any
    sums keep their stored balance. The returned entities are new copies;
    nothing is written back.

    Args:
        accounts: Stored accounts
        currency_sums: Transaction totals grouped by account and currency
        reporting_currency: Currency the caller reports in
        fetched_rates: Market prices keyed by ticker
        custom_rates: User rate-to-USD overrides

    Returns:
        Accounts with converted ``balance`` and ``exchange_rate`` into the
        reporting currency
    """
    converted: dict[int, Decimal] = defaultdict(Decimal)
    account_currency = {acc.id: acc.currency or reporting_currency for acc in accounts}

    for row in currency_sums:
        target = account_currency.get(row.account_id, reporting_currency)
        rate = resolve_rate(row.currency, target, fetched_rates, custom_rates)
        converted[row.account_id] += row.total * Decimal(str(rate))

    result = []
    for acc in accounts:
        if acc.currency:
            exchange_rate = resolve_rate(acc.currency, reporting_currency, fetched_rates, custom_rates)
        else:
            exchange_rate = 1.0
        balance = converted[acc.id] if acc.id in converted else acc.balance
        result.append(replace(acc, balance=balance, exchange_rate=exchange_rate))
    return result


def net_worth(accounts: Sequence[Account]) -> Decimal:
    """Sum ``balance * exchange_rate`` over already converted accounts."""
    total = Decimal("0")
    for acc in accounts:
        total += acc.balance * Decimal(str(acc.exchange_rate))
    return total


class BalanceService:
    """Service producing converted account balances."""

    def __init__(self, db: Database, rate_source: Optional[RateSource] = None):
        """Initialize balance service.

        Args:
            db: Database instance
            rate_source: Optional market rate provider
        """
        self.db = db
        self.rate_source = rate_source

    def get_account_balances(self, reporting_currency: str = "USD") -> list[Account]:
        """Load accounts with balances converted for display.

        Rates are fetched after all reads complete, so no unit of work is held
        open during the fetch. A missing or failing rate source falls back to
        custom and identity rates.
        """
        accounts = self.db.list_accounts()
        currency_sums = self.db.get_currency_sums(default_currency=reporting_currency)
        custom_rates = self.db.list_custom_rates()

        fetched_rates = self._fetch_rates(
            required_tickers(accounts, currency_sums, reporting_currency, custom_rates)
        )
        return compute_balances(accounts, currency_sums, reporting_currency, fetched_rates, custom_rates)

    def get_net_worth(self, reporting_currency: str = "USD") -> Decimal:
        """Sum of all account balances in the reporting currency."""
        return net_worth(self.get_account_balances(reporting_currency))

    def _fetch_rates(self, tickers: list[str]) -> Mapping[str, float]:
        if self.rate_source is None or not tickers:
            return {}
        try:
            return dict(self.rate_source.fetch_rates(tickers))
        except Exception as e:
            logger.warning("rate_source_failed", tickers=tickers, error=str(e))
            return {}
