"""Currency resolution and custom exchange rates.

``resolve_rate`` never raises: market data is best effort, so missing or
broken rates degrade to custom overrides and finally to an identity rate.
"""

from typing import Mapping, Optional, Protocol, Sequence

import structlog

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Account, CurrencySum
from ledgerkit.domain.errors import ValidationError

logger = structlog.get_logger(__name__)

PIVOT_CURRENCY = "USD"


def pair_ticker(src: str, dst: str) -> str:
    """Compound FX ticker for converting ``src`` into ``dst`` (e.g. EURGBP=X)."""
    return f"{src}{dst}=X"


def normalize_currency(currency: str) -> str:
    return currency.strip().upper()


def optional_currency(currency: Optional[str]) -> Optional[str]:
    """Normalize a stored currency code; blank means none."""
    if currency is None or not currency.strip():
        return None
    return normalize_currency(currency)


def rate_to_usd(currency: str, fetched_rates: Mapping[str, float], custom_rates: Mapping[str, float]) -> float:
    """Value of one unit of ``currency`` in USD."""
    if currency == PIVOT_CURRENCY:
        return 1.0
    if currency in custom_rates:
        return custom_rates[currency]
    return fetched_rates.get(pair_ticker(currency, PIVOT_CURRENCY), 1.0)


def resolve_rate(
    src: str,
    dst: str,
    fetched_rates: Mapping[str, float],
    custom_rates: Mapping[str, float],
) -> float:
    """Multiplier converting an amount in ``src`` into ``dst``.

    Args:
        src: Source currency code
        dst: Destination currency code
        fetched_rates: Market prices keyed by ticker (e.g. "EURUSD=X")
        custom_rates: User rate-to-USD overrides keyed by currency code

    Returns:
        The direct pair rate when fetched and positive, otherwise the ratio
        of both currencies' USD rates; 1.0 when the USD rate of ``dst`` is zero
    """
    if src == dst:
        return 1.0

    direct = fetched_rates.get(pair_ticker(src, dst))
    if direct is not None and direct > 0:
        return direct

    src_usd = rate_to_usd(src, fetched_rates, custom_rates)
    dst_usd = rate_to_usd(dst, fetched_rates, custom_rates)
    if dst_usd == 0:
        return 1.0
    return src_usd / dst_usd


def required_tickers(
    accounts: Sequence[Account],
    currency_sums: Sequence[CurrencySum],
    reporting_currency: str,
    custom_rates: Mapping[str, float],
) -> list[str]:
    """Tickers worth fetching before computing balances.

    Every currency in play that is neither USD nor custom-rated gets its USD
    pivot ticker. Direct pairs are added for transaction-to-account and
    account-to-reporting conversions when both sides are fetchable.
    """
    account_currency = {acc.id: acc.currency for acc in accounts if acc.currency}

    currencies = {reporting_currency}
    currencies.update(account_currency.values())
    currencies.update(row.currency for row in currency_sums)
    fetchable = {c for c in currencies if c != PIVOT_CURRENCY and c not in custom_rates}

    def is_fetchable(currency: str) -> bool:
        return currency == PIVOT_CURRENCY or currency in fetchable

    tickers = {pair_ticker(c, PIVOT_CURRENCY) for c in fetchable}

    for row in currency_sums:
        target = account_currency.get(row.account_id, reporting_currency)
        if row.currency != target and is_fetchable(row.currency) and is_fetchable(target):
            tickers.add(pair_ticker(row.currency, target))

    for currency in account_currency.values():
        if currency != reporting_currency and is_fetchable(currency) and is_fetchable(reporting_currency):
            tickers.add(pair_ticker(currency, reporting_currency))

    return sorted(tickers)


class RateSource(Protocol):
    """Best-effort market rate provider; may omit any requested ticker."""

    def fetch_rates(self, tickers: Sequence[str]) -> Mapping[str, float]:
        ...


class StaticRateSource:
    """In-memory rate source, for tests and offline use."""

    def __init__(self, rates: Optional[Mapping[str, float]] = None):
        self.rates = dict(rates or {})

    def fetch_rates(self, tickers: Sequence[str]) -> Mapping[str, float]:
        return {t: self.rates[t] for t in tickers if t in self.rates}


class CurrencyService:
    """Service for managing custom exchange rates."""

    def __init__(self, db: Database):
        """Initialize currency service.

        Args:
            db: Database instance
        """
        self.db = db

    def set_custom_rate(self, currency: str, rate: float) -> None:
        """Set the user's rate-to-USD for a currency.

        Raises:
            ValidationError: If the currency is blank or the rate is not positive
        """
        code = normalize_currency(currency)
        if not code:
            raise ValidationError("Currency code cannot be empty")
        if rate <= 0:
            raise ValidationError(f"Exchange rate for {code} must be positive")
        self.db.set_custom_rate(code, float(rate))
        logger.info("custom_rate_set", currency=code, rate=rate)

    def get_custom_rate(self, currency: str) -> Optional[float]:
        return self.db.get_custom_rate(normalize_currency(currency))

    def get_custom_rates(self) -> dict[str, float]:
        return self.db.list_custom_rates()

    def delete_custom_rate(self, currency: str) -> None:
        self.db.delete_custom_rate(normalize_currency(currency))
