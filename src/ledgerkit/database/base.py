"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from decimal import Decimal
from typing import Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerkit.domain.entities import (
    Account,
    CurrencySum,
    Rule,
    RuleAction,
    RuleCondition,
    Transaction,
)


class Database(ABC):
    """Abstract database interface for ledgerkit.

    Write methods join the unit of work opened by ``transaction()`` when one is
    active, and commit on their own otherwise. Implementations must be safe to
    share between threads: a thread never joins a unit of work opened by
    another thread, and reads never see another thread's uncommitted writes.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Open an atomic unit of work.

        Everything written inside the block commits together when the outermost
        block exits normally and is rolled back if it raises. Nested blocks
        join the outer one.
        """
        pass

    # Account operations
    @abstractmethod
    def create_account(self, name: str, balance: Decimal, currency: Optional[str] = None) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts ordered by ID."""
        pass

    @abstractmethod
    def find_account_by_name(
        self, name: str, exclude_id: Optional[int] = None, case_sensitive: bool = True
    ) -> Optional[Account]:
        """Find an account by name, optionally ignoring one account ID."""
        pass

    @abstractmethod
    def update_account(self, account_id: int, name: str, currency: Optional[str]) -> None:
        """Update account name and currency."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account together with all of its transactions."""
        pass

    @abstractmethod
    def adjust_account_balance(self, account_id: int, delta: Decimal) -> None:
        """Add ``delta`` to the stored account balance."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        account_id: int,
        date: str,
        payee: str,
        amount: Decimal,
        notes: Optional[str] = None,
        category: Optional[str] = None,
        currency: Optional[str] = None,
        ticker: Optional[str] = None,
        shares: Optional[Decimal] = None,
        price_per_share: Optional[Decimal] = None,
        fee: Optional[Decimal] = None,
        linked_tx_id: Optional[int] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        account_id: int,
        date: str,
        payee: str,
        amount: Decimal,
        notes: Optional[str],
        category: Optional[str],
        currency: Optional[str],
    ) -> None:
        """Replace the editable fields of a transaction."""
        pass

    @abstractmethod
    def update_instrument_fields(
        self,
        transaction_id: int,
        ticker: Optional[str],
        shares: Optional[Decimal],
        price_per_share: Optional[Decimal],
        fee: Optional[Decimal],
    ) -> None:
        """Replace the investment fields of a transaction."""
        pass

    @abstractmethod
    def set_linked_transaction(self, transaction_id: int, linked_tx_id: Optional[int]) -> None:
        """Set (or clear) the transfer back-pointer of a transaction."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    @abstractmethod
    def list_transactions(self, account_id: Optional[int] = None) -> list[Transaction]:
        """List transactions, newest first, optionally for one account."""
        pass

    @abstractmethod
    def find_unlinked_transfers(
        self, notes: str, exclude_id: int, exclude_account_id: Optional[int] = None
    ) -> list[Transaction]:
        """Find unlinked transfer rows with exactly these notes, newest first."""
        pass

    @abstractmethod
    def list_payees(self) -> list[str]:
        """List distinct payees."""
        pass

    @abstractmethod
    def list_categories(self, exclude: Sequence[str] = ()) -> list[str]:
        """List distinct non-empty categories, minus ``exclude``."""
        pass

    @abstractmethod
    def get_currency_sums(self, default_currency: str) -> list[CurrencySum]:
        """Sum transaction amounts grouped by account and currency.

        Transactions without a currency are reported under ``default_currency``.
        """
        pass

    @abstractmethod
    def get_transaction_totals(self) -> dict[int, Decimal]:
        """Sum of transaction amounts per account ID."""
        pass

    # Rule operations
    @abstractmethod
    def create_rule(
        self,
        priority: int,
        match_field: str,
        match_pattern: str,
        action_field: str,
        action_value: str,
        logic: str,
        conditions: Sequence[RuleCondition],
        actions: Sequence[RuleAction],
    ) -> int:
        """Create a rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_rule(self, rule_id: int) -> Optional[Rule]:
        """Get rule by ID."""
        pass

    @abstractmethod
    def list_rules(self) -> list[Rule]:
        """List rules by priority descending, then ID ascending."""
        pass

    @abstractmethod
    def update_rule(
        self,
        rule_id: int,
        priority: int,
        match_field: str,
        match_pattern: str,
        action_field: str,
        action_value: str,
        logic: str,
        conditions: Sequence[RuleCondition],
        actions: Sequence[RuleAction],
    ) -> None:
        """Replace all fields of a rule."""
        pass

    @abstractmethod
    def set_rule_priority(self, rule_id: int, priority: int) -> None:
        """Set the priority of a rule."""
        pass

    @abstractmethod
    def delete_rule(self, rule_id: int) -> None:
        """Delete a rule."""
        pass

    # Custom exchange rate operations
    @abstractmethod
    def set_custom_rate(self, currency: str, rate: float) -> None:
        """Insert or replace the custom rate-to-USD of a currency."""
        pass

    @abstractmethod
    def get_custom_rate(self, currency: str) -> Optional[float]:
        """Get the custom rate-to-USD of a currency."""
        pass

    @abstractmethod
    def list_custom_rates(self) -> dict[str, float]:
        """Map every currency with a custom rate to that rate."""
        pass

    @abstractmethod
    def delete_custom_rate(self, currency: str) -> None:
        """Remove a custom rate."""
        pass
