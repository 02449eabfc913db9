"""Account domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional

import structlog

from ledgerkit.database.base import Database
from ledgerkit.domain.currency import optional_currency
from ledgerkit.domain.entities import Account as AccountEntity
from ledgerkit.domain.errors import (
    DuplicateNameError,
    NotFoundError,
    ValidationError,
    account_not_found,
    duplicate_account_name,
    empty_account_name,
)
from ledgerkit.utils.amount_parser import to_decimal

logger = structlog.get_logger(__name__)

OPENING_BALANCE_PAYEE = "Opening Balance"
OPENING_BALANCE_NOTES = "Initial Balance"
OPENING_BALANCE_CATEGORY = "Income"


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def _validated_name(self, name: str, account_id: Optional[int] = None) -> str:
        """Trim ``name`` and check it is non-empty and not taken by another account."""
        trimmed = name.strip()
        if not trimmed:
            raise ValidationError(empty_account_name())

        existing = self.db.find_account_by_name(trimmed, exclude_id=account_id, case_sensitive=False)
        if existing is not None:
            raise DuplicateNameError(duplicate_account_name(trimmed))
        return trimmed

    def create_account(
        self,
        name: str,
        balance: Decimal = Decimal("0"),
        currency: Optional[str] = None,
    ) -> AccountEntity:
        """Create a new account.

        A non-zero starting balance is recorded as an "Opening Balance"
        transaction in the same unit of work, so the balance stays equal to
        the sum of the account's transactions.

        Args:
            name: Account name (surrounding whitespace is removed)
            balance: Starting balance
            currency: Optional account currency code

        Returns:
            The created account

        Raises:
            ValidationError: If the name is blank
            DuplicateNameError: If an account with the same name exists
        """
        balance = to_decimal(balance)
        currency = optional_currency(currency)
        with self.db.transaction():
            trimmed = self._validated_name(name)
            account_id = self.db.create_account(name=trimmed, balance=balance, currency=currency)
            if balance != 0:
                self.db.create_transaction(
                    account_id=account_id,
                    date=date.today().isoformat(),
                    payee=OPENING_BALANCE_PAYEE,
                    amount=balance,
                    notes=OPENING_BALANCE_NOTES,
                    category=OPENING_BALANCE_CATEGORY,
                    currency=currency,
                )

        logger.info("account_created", account_id=account_id, name=trimmed, balance=str(balance))
        return AccountEntity(id=account_id, name=trimmed, balance=balance, currency=currency)

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def list_accounts(self) -> list[AccountEntity]:
        """List all accounts."""
        return self.db.list_accounts()

    def rename_account(self, account_id: int, new_name: str) -> AccountEntity:
        """Rename an account, keeping its currency.

        Raises:
            ValidationError: If the new name is blank
            DuplicateNameError: If another account already uses the name
            NotFoundError: If the account does not exist
        """
        with self.db.transaction():
            account = self._require(account_id)
            trimmed = self._validated_name(new_name, account_id=account_id)
            self.db.update_account(account_id, name=trimmed, currency=account.currency)

        logger.info("account_renamed", account_id=account_id, old_name=account.name, new_name=trimmed)
        return self._require(account_id)

    def update_account(self, account_id: int, name: str, currency: Optional[str] = None) -> AccountEntity:
        """Update an account's name and currency.

        Raises:
            ValidationError: If the name is blank
            DuplicateNameError: If another account already uses the name
            NotFoundError: If the account does not exist
        """
        with self.db.transaction():
            self._require(account_id)
            trimmed = self._validated_name(name, account_id=account_id)
            self.db.update_account(account_id, name=trimmed, currency=optional_currency(currency))

        return self._require(account_id)

    def delete_account(self, account_id: int) -> None:
        """Delete an account and all of its transactions.

        Deleting an account that does not exist is a no-op.
        """
        with self.db.transaction():
            self.db.delete_account(account_id)
        logger.info("account_deleted", account_id=account_id)

    def _require(self, account_id: int) -> AccountEntity:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account
