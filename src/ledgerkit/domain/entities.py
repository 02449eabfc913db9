"""Domain model entities for ledgerkit.

These are pure data classes representing business concepts, independent of
database schema. The persistence layer converts its rows into these through
``ledgerkit.database.mappers``.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

TRANSFER_CATEGORY = "Transfer"
INVESTMENT_CATEGORY = "Investment"


@dataclass(frozen=True)
class Account:
    """Account domain entity.

    ``balance`` is the stored cache of the account's transaction sum, expressed
    in the account currency (or the reporting currency when unset).
    ``exchange_rate`` is derived at read time and never persisted.
    """

    id: int
    name: str
    balance: Decimal
    currency: Optional[str] = None
    exchange_rate: float = 1.0


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity."""

    id: int
    account_id: int
    date: str
    payee: str
    amount: Decimal
    notes: Optional[str] = None
    category: Optional[str] = None
    currency: Optional[str] = None
    ticker: Optional[str] = None
    shares: Optional[Decimal] = None
    price_per_share: Optional[Decimal] = None
    fee: Optional[Decimal] = None
    linked_tx_id: Optional[int] = None

    @property
    def is_transfer(self) -> bool:
        return self.category == TRANSFER_CATEGORY


@dataclass
class TransactionDraft:
    """Mutable transaction fields handed to the rule engine before insert."""

    account_id: int
    date: str
    payee: str
    amount: Decimal
    notes: Optional[str] = None
    category: Optional[str] = None
    currency: Optional[str] = None
    ticker: Optional[str] = None


@dataclass(frozen=True)
class RuleCondition:
    """Single condition of a compound rule."""

    field: str
    operator: str
    value: str
    negated: bool = False


@dataclass(frozen=True)
class RuleAction:
    """Single action of a compound rule."""

    field: str
    value: str


@dataclass(frozen=True)
class Rule:
    """Categorization rule.

    The ``match_*``/``action_*`` fields are the legacy single
    condition/action form, used only when ``conditions``/``actions`` are empty.
    """

    id: int
    priority: int
    match_field: str = ""
    match_pattern: str = ""
    action_field: str = ""
    action_value: str = ""
    logic: str = "and"
    conditions: tuple[RuleCondition, ...] = field(default_factory=tuple)
    actions: tuple[RuleAction, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CurrencySum:
    """Sum of one account's transaction amounts in one currency."""

    account_id: int
    currency: str
    total: Decimal
