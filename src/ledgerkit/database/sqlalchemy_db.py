"""Generic SQLAlchemy database implementation."""

import threading
from collections import defaultdict
from contextlib import contextmanager
from decimal import Decimal
from functools import wraps
from typing import Iterator, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ledgerkit.database.base import Database
from ledgerkit.database.models import (
    Account,
    CustomExchangeRate,
    Rule,
    Transaction,
    create_session_factory,
)
from ledgerkit.database.mappers import (
    account_to_domain,
    actions_to_json,
    conditions_to_json,
    rule_to_domain,
    transaction_to_domain,
)
from ledgerkit.domain.entities import (
    TRANSFER_CATEGORY,
    Account as DomainAccount,
    CurrencySum,
    Rule as DomainRule,
    RuleAction,
    RuleCondition,
    Transaction as DomainTransaction,
)
from ledgerkit.domain.errors import (
    ConflictError,
    ConstraintError,
    DomainError,
    NotFoundError,
    StorageError,
    account_not_found,
    rule_not_found,
    transaction_not_found,
)

_LOCK_MARKERS = ("database is locked", "database table is locked", "database is busy")


def _translate_error(error: SQLAlchemyError) -> DomainError:
    """Map a SQLAlchemy exception onto the domain error taxonomy."""
    message = str(getattr(error, "orig", None) or error)
    if isinstance(error, IntegrityError):
        return ConstraintError(f"Constraint violation: {message}")
    if isinstance(error, OperationalError) and any(m in message.lower() for m in _LOCK_MARKERS):
        return ConflictError(f"Database is locked by another writer: {message}")
    return StorageError(f"Storage failure: {message}")


def _translated(method):
    """Translate SQLAlchemy errors raised by a read method."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            try:
                return method(self, *args, **kwargs)
            except SQLAlchemyError as e:
                raise _translate_error(e) from e

    return wrapper


class SQLAlchemyDatabase(Database):
    """SQLAlchemy-based implementation of Database interface.

    A handle may be shared between threads. It owns one session, and a
    reentrant lock held for the whole of each outermost unit of work and each
    read serializes them, so no caller sees another's half-applied writes.
    """

    def __init__(self, database_url: str, lock_timeout: float = 5.0):
        """Initialize SQLAlchemy database.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
            lock_timeout: Seconds to wait for a locked SQLite file before failing
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url, lock_timeout=lock_timeout)
        self._session: Optional[Session] = None
        self._depth = 0
        self._lock = threading.RLock()

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def connect(self) -> None:
        """Connect to the database."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Open an atomic unit of work; nested calls join the outer one.

        Other threads block until the outermost unit of work ends.
        """
        with self._lock:
            session = self._get_session()
            if self._depth > 0:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            self._depth = 1
            try:
                yield
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise _translate_error(e) from e
            except BaseException:
                session.rollback()
                raise
            finally:
                self._depth = 0

    def _get_orm_account(self, account_id: int) -> Account:
        account = self._get_session().get(Account, account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def _get_orm_transaction(self, transaction_id: int) -> Transaction:
        transaction = self._get_session().get(Transaction, transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def _get_orm_rule(self, rule_id: int) -> Rule:
        rule = self._get_session().get(Rule, rule_id)
        if rule is None:
            raise NotFoundError(rule_not_found(rule_id))
        return rule

    # Account operations
    def create_account(self, name: str, balance: Decimal, currency: Optional[str] = None) -> int:
        """Create a new account. Returns account ID."""
        with self.transaction():
            session = self._get_session()
            account = Account(name=name, balance=balance, currency=currency)
            session.add(account)
            session.flush()
            return account.id

    @_translated
    def get_account(self, account_id: int) -> Optional[DomainAccount]:
        """Get account by ID."""
        session = self._get_session()
        account = session.query(Account).filter(Account.id == account_id).first()
        if account is None:
            return None
        return account_to_domain(account)

    @_translated
    def list_accounts(self) -> list[DomainAccount]:
        """List all accounts."""
        session = self._get_session()
        accounts = session.query(Account).order_by(Account.id).all()
        return [account_to_domain(acc) for acc in accounts]

    @_translated
    def find_account_by_name(
        self, name: str, exclude_id: Optional[int] = None, case_sensitive: bool = True
    ) -> Optional[DomainAccount]:
        """Find an account by name, optionally ignoring one account ID."""
        session = self._get_session()
        if case_sensitive:
            query = session.query(Account).filter(Account.name == name)
        else:
            query = session.query(Account).filter(func.lower(Account.name) == name.lower())
        if exclude_id is not None:
            query = query.filter(Account.id != exclude_id)
        account = query.order_by(Account.id).first()
        if account is None:
            return None
        return account_to_domain(account)

    def update_account(self, account_id: int, name: str, currency: Optional[str]) -> None:
        """Update account name and currency."""
        with self.transaction():
            account = self._get_orm_account(account_id)
            account.name = name
            account.currency = currency

    def delete_account(self, account_id: int) -> None:
        """Delete an account together with all of its transactions."""
        with self.transaction():
            session = self._get_session()
            session.query(Transaction).filter(Transaction.account_id == account_id).delete(
                synchronize_session="fetch"
            )
            session.query(Account).filter(Account.id == account_id).delete(synchronize_session="fetch")

    def adjust_account_balance(self, account_id: int, delta: Decimal) -> None:
        """Add ``delta`` to the stored account balance."""
        with self.transaction():
            account = self._get_orm_account(account_id)
            account.balance = Decimal(account.balance) + delta

    # Transaction operations
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
        with self.transaction():
            session = self._get_session()
            transaction = Transaction(
                account_id=account_id,
                date=date,
                payee=payee,
                amount=amount,
                notes=notes,
                category=category,
                currency=currency,
                ticker=ticker,
                shares=shares,
                price_per_share=price_per_share,
                fee=fee,
                linked_tx_id=linked_tx_id,
            )
            session.add(transaction)
            session.flush()
            return transaction.id

    @_translated
    def get_transaction(self, transaction_id: int) -> Optional[DomainTransaction]:
        """Get transaction by ID."""
        session = self._get_session()
        txn = session.query(Transaction).filter(Transaction.id == transaction_id).first()
        if txn is None:
            return None
        return transaction_to_domain(txn)

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
        with self.transaction():
            transaction = self._get_orm_transaction(transaction_id)
            transaction.account_id = account_id
            transaction.date = date
            transaction.payee = payee
            transaction.amount = amount
            transaction.notes = notes
            transaction.category = category
            transaction.currency = currency

    def update_instrument_fields(
        self,
        transaction_id: int,
        ticker: Optional[str],
        shares: Optional[Decimal],
        price_per_share: Optional[Decimal],
        fee: Optional[Decimal],
    ) -> None:
        """Replace the investment fields of a transaction."""
        with self.transaction():
            transaction = self._get_orm_transaction(transaction_id)
            transaction.ticker = ticker
            transaction.shares = shares
            transaction.price_per_share = price_per_share
            transaction.fee = fee

    def set_linked_transaction(self, transaction_id: int, linked_tx_id: Optional[int]) -> None:
        """Set (or clear) the transfer back-pointer of a transaction."""
        with self.transaction():
            transaction = self._get_orm_transaction(transaction_id)
            transaction.linked_tx_id = linked_tx_id

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction."""
        with self.transaction():
            session = self._get_session()
            transaction = self._get_orm_transaction(transaction_id)
            session.delete(transaction)
            session.flush()

    @_translated
    def list_transactions(self, account_id: Optional[int] = None) -> list[DomainTransaction]:
        """List transactions, newest first, optionally for one account."""
        session = self._get_session()
        query = session.query(Transaction)
        if account_id is not None:
            query = query.filter(Transaction.account_id == account_id)
        transactions = query.order_by(Transaction.date.desc(), Transaction.id.desc()).all()
        return [transaction_to_domain(txn) for txn in transactions]

    @_translated
    def find_unlinked_transfers(
        self, notes: str, exclude_id: int, exclude_account_id: Optional[int] = None
    ) -> list[DomainTransaction]:
        """Find unlinked transfer rows with exactly these notes, newest first."""
        session = self._get_session()
        query = session.query(Transaction).filter(
            Transaction.notes == notes,
            Transaction.category == TRANSFER_CATEGORY,
            Transaction.linked_tx_id.is_(None),
            Transaction.id != exclude_id,
        )
        if exclude_account_id is not None:
            query = query.filter(Transaction.account_id != exclude_account_id)
        transactions = query.order_by(Transaction.date.desc(), Transaction.id.desc()).all()
        return [transaction_to_domain(txn) for txn in transactions]

    @_translated
    def list_payees(self) -> list[str]:
        """List distinct payees."""
        session = self._get_session()
        rows = session.query(Transaction.payee).distinct().order_by(Transaction.payee).all()
        return [row[0] for row in rows]

    @_translated
    def list_categories(self, exclude: Sequence[str] = ()) -> list[str]:
        """List distinct non-empty categories, minus ``exclude``."""
        session = self._get_session()
        query = session.query(Transaction.category).filter(Transaction.category.isnot(None))
        if exclude:
            query = query.filter(Transaction.category.notin_(list(exclude)))
        rows = query.distinct().order_by(Transaction.category).all()
        return [row[0] for row in rows]

    @_translated
    def get_currency_sums(self, default_currency: str) -> list[CurrencySum]:
        """Sum transaction amounts grouped by account and currency."""
        session = self._get_session()
        rows = (
            session.query(Transaction.account_id, Transaction.currency, func.sum(Transaction.amount))
            .group_by(Transaction.account_id, Transaction.currency)
            .order_by(Transaction.account_id)
            .all()
        )
        return [
            CurrencySum(
                account_id=account_id,
                currency=currency or default_currency,
                total=Decimal(total) if total is not None else Decimal("0"),
            )
            for account_id, currency, total in rows
        ]

    @_translated
    def get_transaction_totals(self) -> dict[int, Decimal]:
        """Sum of transaction amounts per account ID."""
        session = self._get_session()
        totals: dict[int, Decimal] = defaultdict(Decimal)
        for account_id, amount in session.query(Transaction.account_id, Transaction.amount):
            totals[account_id] += Decimal(amount)
        return dict(totals)

    # Rule operations
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
        with self.transaction():
            session = self._get_session()
            rule = Rule(
                priority=priority,
                match_field=match_field,
                match_pattern=match_pattern,
                action_field=action_field,
                action_value=action_value,
                logic=logic,
                conditions=conditions_to_json(conditions),
                actions=actions_to_json(actions),
            )
            session.add(rule)
            session.flush()
            return rule.id

    @_translated
    def get_rule(self, rule_id: int) -> Optional[DomainRule]:
        """Get rule by ID."""
        rule = self._get_session().get(Rule, rule_id)
        if rule is None:
            return None
        return rule_to_domain(rule)

    @_translated
    def list_rules(self) -> list[DomainRule]:
        """List rules by priority descending, then ID ascending."""
        session = self._get_session()
        rules = session.query(Rule).order_by(Rule.priority.desc(), Rule.id.asc()).all()
        return [rule_to_domain(rule) for rule in rules]

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
        with self.transaction():
            rule = self._get_orm_rule(rule_id)
            rule.priority = priority
            rule.match_field = match_field
            rule.match_pattern = match_pattern
            rule.action_field = action_field
            rule.action_value = action_value
            rule.logic = logic
            rule.conditions = conditions_to_json(conditions)
            rule.actions = actions_to_json(actions)

    def set_rule_priority(self, rule_id: int, priority: int) -> None:
        """Set the priority of a rule."""
        with self.transaction():
            rule = self._get_orm_rule(rule_id)
            rule.priority = priority

    def delete_rule(self, rule_id: int) -> None:
        """Delete a rule."""
        with self.transaction():
            session = self._get_session()
            session.delete(self._get_orm_rule(rule_id))

    # Custom exchange rate operations
    def set_custom_rate(self, currency: str, rate: float) -> None:
        """Insert or replace the custom rate-to-USD of a currency."""
        with self.transaction():
            session = self._get_session()
            existing = session.get(CustomExchangeRate, currency)
            if existing is None:
                session.add(CustomExchangeRate(currency=currency, rate=rate))
            else:
                existing.rate = rate

    @_translated
    def get_custom_rate(self, currency: str) -> Optional[float]:
        """Get the custom rate-to-USD of a currency."""
        row = self._get_session().get(CustomExchangeRate, currency)
        if row is None:
            return None
        return row.rate

    @_translated
    def list_custom_rates(self) -> dict[str, float]:
        """Map every currency with a custom rate to that rate."""
        session = self._get_session()
        rows = session.query(CustomExchangeRate).order_by(CustomExchangeRate.currency).all()
        return {row.currency: row.rate for row in rows}

    def delete_custom_rate(self, currency: str) -> None:
        """Remove a custom rate."""
        with self.transaction():
            session = self._get_session()
            session.query(CustomExchangeRate).filter(CustomExchangeRate.currency == currency).delete()
