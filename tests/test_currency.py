"""Tests for currency resolution and custom rates."""

import pytest

from ledgerkit.domain.currency import (
    StaticRateSource,
    pair_ticker,
    rate_to_usd,
    required_tickers,
    resolve_rate,
)
from ledgerkit.domain.entities import Account, CurrencySum
from ledgerkit.domain.errors import ValidationError


class TestResolveRate:
    def test_same_currency(self):
        assert resolve_rate("EUR", "EUR", {"EUREUR=X": 3.0}, {}) == 1.0

    def test_direct_ticker(self):
        assert resolve_rate("EUR", "GBP", {"EURGBP=X": 0.85}, {}) == 0.85

    def test_non_positive_direct_ticker_is_ignored(self):
        rates = {"EURGBP=X": 0.0, "EURUSD=X": 1.1, "GBPUSD=X": 1.25}
        assert resolve_rate("EUR", "GBP", rates, {}) == pytest.approx(1.1 / 1.25)

    def test_pivot_through_usd(self):
        rates = {"EURUSD=X": 1.1, "JPYUSD=X": 0.0067}
        assert resolve_rate("EUR", "JPY", rates, {}) == pytest.approx(1.1 / 0.0067)

    def test_custom_rate_used_for_pivot(self):
        assert resolve_rate("XAU", "USD", {}, {"XAU": 2300.0}) == 2300.0

    def test_custom_rate_preferred_over_fetched_pivot(self):
        assert rate_to_usd("EUR", {"EURUSD=X": 1.1}, {"EUR": 1.2}) == 1.2

    def test_missing_data_falls_back_to_one(self):
        assert resolve_rate("EUR", "USD", {}, {}) == 1.0

    def test_zero_divisor_falls_back_to_one(self):
        assert resolve_rate("EUR", "ABC", {"EURUSD=X": 1.1}, {"ABC": 0.0}) == 1.0

    def test_pair_ticker(self):
        assert pair_ticker("EUR", "USD") == "EURUSD=X"


class TestRequiredTickers:
    def test_plans_pivot_and_direct_pairs(self):
        accounts = [Account(id=1, name="Euro", balance=0, currency="EUR"), Account(id=2, name="Main", balance=0)]
        sums = [
            CurrencySum(account_id=1, currency="GBP", total=10),
            CurrencySum(account_id=2, currency="USD", total=5),
        ]

        tickers = required_tickers(accounts, sums, "USD", {})

        assert tickers == ["EURUSD=X", "GBPEUR=X", "GBPUSD=X"]

    def test_custom_currencies_are_not_fetched(self):
        accounts = [Account(id=1, name="Gold", balance=0, currency="XAU")]

        assert required_tickers(accounts, [], "USD", {"XAU": 2300.0}) == []

    def test_non_usd_reporting_currency(self):
        accounts = [Account(id=1, name="Euro", balance=0, currency="EUR")]

        assert required_tickers(accounts, [], "CHF", {}) == ["CHFUSD=X", "EURCHF=X", "EURUSD=X"]


def test_static_rate_source_returns_only_known_requested_tickers():
    source = StaticRateSource({"EURUSD=X": 1.1, "GBPUSD=X": 1.3})
    assert source.fetch_rates(["EURUSD=X", "JPYUSD=X"]) == {"EURUSD=X": 1.1}


class TestCurrencyService:
    def test_set_and_get(self, currency_service):
        currency_service.set_custom_rate(" eur ", 1.08)

        assert currency_service.get_custom_rate("EUR") == 1.08
        assert currency_service.get_custom_rates() == {"EUR": 1.08}

    def test_upsert(self, currency_service):
        currency_service.set_custom_rate("EUR", 1.08)
        currency_service.set_custom_rate("EUR", 1.10)
        assert currency_service.get_custom_rates() == {"EUR": 1.10}

    def test_delete(self, currency_service):
        currency_service.set_custom_rate("EUR", 1.08)
        currency_service.delete_custom_rate("eur")
        assert currency_service.get_custom_rate("EUR") is None

    @pytest.mark.parametrize("currency, rate", [("", 1.0), ("EUR", 0), ("EUR", -2.0)])
    def test_invalid(self, currency_service, currency, rate):
        with pytest.raises(ValidationError):
            currency_service.set_custom_rate(currency, rate)
