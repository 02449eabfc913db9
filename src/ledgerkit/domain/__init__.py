"""Domain layer for ledgerkit application.

Services are imported lazily so that the database layer can import
``ledgerkit.domain.entities`` without pulling the services in.
"""

_SERVICES = {
    "AccountService": "ledgerkit.domain.account",
    "TransactionService": "ledgerkit.domain.transaction",
    "RuleService": "ledgerkit.domain.rule_store",
    "CurrencyService": "ledgerkit.domain.currency",
    "BalanceService": "ledgerkit.domain.balances",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
