"""Transaction domain service.

Owns every write to transaction rows and the matching account balance
updates. Each public mutation runs inside one ``Database.transaction()`` so a
transaction, its transfer counterpart and both balances change together or
not at all.
"""

from datetime import date as date_type
from decimal import Decimal
from typing import Optional

import structlog

from ledgerkit.database.base import Database
from ledgerkit.domain.currency import optional_currency
from ledgerkit.domain.entities import (
    INVESTMENT_CATEGORY,
    TRANSFER_CATEGORY,
    Transaction as TransactionEntity,
    TransactionDraft,
)
from ledgerkit.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    transaction_not_found,
)
from ledgerkit.domain.rules import apply_rules
from ledgerkit.utils.amount_parser import to_decimal
from ledgerkit.utils.date_parser import to_iso_date

logger = structlog.get_logger(__name__)

BUY_PAYEE = "Buy"
SELL_PAYEE = "Sell"

Number = Decimal | int | float | str


def investment_amount(shares: Decimal, price_per_share: Decimal, fee: Decimal, is_buy: bool) -> Decimal:
    """Cash effect of a trade: a buy costs price plus fee, a sell yields price minus fee."""
    total_price = shares * price_per_share
    if is_buy:
        return -(total_price + fee)
    return total_price - fee


def investment_notes(shares: Decimal, ticker: str, is_buy: bool) -> str:
    return f"{'Bought' if is_buy else 'Sold'} {shares.normalize():f} shares of {ticker}"


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_transaction(
        self,
        account_id: int,
        date: date_type | str,
        payee: str,
        amount: Number,
        notes: Optional[str] = None,
        category: Optional[str] = None,
        currency: Optional[str] = None,
        ticker: Optional[str] = None,
        shares: Optional[Number] = None,
        price_per_share: Optional[Number] = None,
        fee: Optional[Number] = None,
    ) -> TransactionEntity:
        """Create a transaction.

        Categorization rules run first and may rewrite payee, notes and
        category. If the resulting payee is exactly the name of another
        account, the transaction becomes a transfer: its category is forced to
        "Transfer" and a linked mirror row with the negated amount is created
        in that account.

        Args:
            account_id: Account ID
            date: Transaction date (date or ISO string)
            payee: Payee, or the name of another account for a transfer
            amount: Signed amount
            notes: Optional notes
            category: Optional category
            currency: Optional currency code of the amount
            ticker: Optional instrument ticker
            shares: Optional share count
            price_per_share: Optional share price
            fee: Optional fee

        Returns:
            The created transaction

        Raises:
            NotFoundError: If the account doesn't exist
        """
        amount = to_decimal(amount)
        iso_date = to_iso_date(date)
        currency = optional_currency(currency)

        with self.db.transaction():
            source = self.db.get_account(account_id)
            if source is None:
                raise NotFoundError(account_not_found(account_id))

            draft = TransactionDraft(
                account_id=account_id,
                date=iso_date,
                payee=payee,
                amount=amount,
                notes=notes,
                category=category,
                currency=currency,
                ticker=ticker,
            )
            apply_rules(draft, self.db.list_rules())

            target = self.db.find_account_by_name(draft.payee, exclude_id=account_id)
            final_category = TRANSFER_CATEGORY if target is not None else draft.category

            transaction_id = self.db.create_transaction(
                account_id=account_id,
                date=iso_date,
                payee=draft.payee,
                amount=amount,
                notes=draft.notes,
                category=final_category,
                currency=currency,
                ticker=ticker,
                shares=None if shares is None else to_decimal(shares),
                price_per_share=None if price_per_share is None else to_decimal(price_per_share),
                fee=None if fee is None else to_decimal(fee),
            )
            self.db.adjust_account_balance(account_id, amount)

            if target is not None:
                mirror_id = self.db.create_transaction(
                    account_id=target.id,
                    date=iso_date,
                    payee=source.name,
                    amount=-amount,
                    notes=draft.notes,
                    category=TRANSFER_CATEGORY,
                    currency=currency,
                    linked_tx_id=transaction_id,
                )
                self.db.set_linked_transaction(transaction_id, mirror_id)
                self.db.adjust_account_balance(target.id, -amount)
                logger.info(
                    "transfer_created",
                    transaction_id=transaction_id,
                    counterpart_id=mirror_id,
                    source_account_id=account_id,
                    target_account_id=target.id,
                )

        return self._require_transaction(transaction_id)

    def create_investment_transaction(
        self,
        account_id: int,
        date: date_type | str,
        ticker: str,
        shares: Number,
        price_per_share: Number,
        fee: Number,
        is_buy: bool,
        currency: Optional[str] = None,
    ) -> TransactionEntity:
        """Record a buy or sell of an instrument.

        The amount is derived from the trade: ``-(shares * price + fee)`` for a
        buy and ``shares * price - fee`` for a sell. Stored shares are negative
        for sells. Payee is "Buy"/"Sell" and category "Investment"; rules may
        only rewrite the notes. Investment entries never become transfers.

        Raises:
            NotFoundError: If the account doesn't exist
            ValidationError: If the ticker is blank or a quantity is invalid
        """
        ticker, shares, price_per_share, fee = self._validated_trade(ticker, shares, price_per_share, fee)
        amount = investment_amount(shares, price_per_share, fee, is_buy)
        payee = BUY_PAYEE if is_buy else SELL_PAYEE
        iso_date = to_iso_date(date)
        currency = optional_currency(currency)

        with self.db.transaction():
            if self.db.get_account(account_id) is None:
                raise NotFoundError(account_not_found(account_id))

            draft = TransactionDraft(
                account_id=account_id,
                date=iso_date,
                payee=payee,
                amount=amount,
                notes=investment_notes(shares, ticker, is_buy),
                category=INVESTMENT_CATEGORY,
                currency=currency,
                ticker=ticker,
            )
            apply_rules(draft, self.db.list_rules())

            transaction_id = self.db.create_transaction(
                account_id=account_id,
                date=iso_date,
                payee=payee,
                amount=amount,
                notes=draft.notes,
                category=INVESTMENT_CATEGORY,
                currency=currency,
                ticker=ticker,
                shares=shares if is_buy else -shares,
                price_per_share=price_per_share,
                fee=fee,
            )
            self.db.adjust_account_balance(account_id, amount)

        return self._require_transaction(transaction_id)

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def update_transaction(
        self,
        transaction_id: int,
        account_id: int,
        date: date_type | str,
        payee: str,
        amount: Number,
        notes: Optional[str] = None,
        category: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> TransactionEntity:
        """Replace a transaction's fields, possibly moving it to another account.

        Balances follow the change: the difference is applied when the account
        is unchanged; otherwise the old amount leaves the old account and the
        new amount enters the new one. A transfer counterpart (found by link,
        or for legacy rows by matching notes) is rewritten to mirror the new
        amount, date, notes and currency, and its account balance follows.

        Raises:
            NotFoundError: If the transaction or the target account doesn't exist
        """
        amount = to_decimal(amount)
        iso_date = to_iso_date(date)
        currency = optional_currency(currency)

        with self.db.transaction():
            existing = self._require_transaction(transaction_id)
            source = self.db.get_account(account_id)
            if source is None:
                raise NotFoundError(account_not_found(account_id))

            self.db.update_transaction(
                transaction_id,
                account_id=account_id,
                date=iso_date,
                payee=payee,
                amount=amount,
                notes=notes,
                category=category,
                currency=currency,
            )
            self._move_balance(existing.account_id, existing.amount, account_id, amount)

            counterpart = self._resolve_counterpart(existing, backfill=True)
            if counterpart is not None:
                mirrored = -amount
                self.db.update_transaction(
                    counterpart.id,
                    account_id=counterpart.account_id,
                    date=iso_date,
                    payee=source.name,
                    amount=mirrored,
                    notes=notes,
                    category=TRANSFER_CATEGORY,
                    currency=currency,
                )
                diff = mirrored - counterpart.amount
                if diff != 0:
                    self.db.adjust_account_balance(counterpart.account_id, diff)
                logger.info("transfer_counterpart_synced", transaction_id=transaction_id, counterpart_id=counterpart.id)

        return self._require_transaction(transaction_id)

    def update_investment_transaction(
        self,
        transaction_id: int,
        account_id: int,
        date: date_type | str,
        ticker: str,
        shares: Number,
        price_per_share: Number,
        fee: Number,
        is_buy: bool,
        notes: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> TransactionEntity:
        """Rewrite a buy/sell entry, recomputing its amount.

        Custom ``notes`` replace the generated "Bought/Sold ..." text. Balance
        handling matches ``update_transaction``; no counterpart is touched.

        Raises:
            NotFoundError: If the transaction or the target account doesn't exist
            ValidationError: If the ticker is blank or a quantity is invalid
        """
        ticker, shares, price_per_share, fee = self._validated_trade(ticker, shares, price_per_share, fee)
        amount = investment_amount(shares, price_per_share, fee, is_buy)
        iso_date = to_iso_date(date)
        currency = optional_currency(currency)

        with self.db.transaction():
            existing = self._require_transaction(transaction_id)
            if self.db.get_account(account_id) is None:
                raise NotFoundError(account_not_found(account_id))

            self.db.update_transaction(
                transaction_id,
                account_id=account_id,
                date=iso_date,
                payee=BUY_PAYEE if is_buy else SELL_PAYEE,
                amount=amount,
                notes=notes if notes is not None else investment_notes(shares, ticker, is_buy),
                category=INVESTMENT_CATEGORY,
                currency=currency,
            )
            self.db.update_instrument_fields(
                transaction_id,
                ticker=ticker,
                shares=shares if is_buy else -shares,
                price_per_share=price_per_share,
                fee=fee,
            )
            self._move_balance(existing.account_id, existing.amount, account_id, amount)

        return self._require_transaction(transaction_id)

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction and, for transfers, its counterpart.

        Both amounts are reversed out of their accounts' balances.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        with self.db.transaction():
            existing = self._require_transaction(transaction_id)
            counterpart = self._resolve_counterpart(existing, backfill=False)

            self.db.delete_transaction(transaction_id)
            self.db.adjust_account_balance(existing.account_id, -existing.amount)

            if counterpart is not None:
                self.db.delete_transaction(counterpart.id)
                self.db.adjust_account_balance(counterpart.account_id, -counterpart.amount)
                logger.info("transfer_counterpart_deleted", transaction_id=transaction_id, counterpart_id=counterpart.id)

    def list_transactions(self, account_id: Optional[int] = None) -> list[TransactionEntity]:
        """List transactions newest first, optionally for a single account."""
        return self.db.list_transactions(account_id=account_id)

    def list_payees(self) -> list[str]:
        """Distinct payees, for autocompletion."""
        return self.db.list_payees()

    def list_categories(self) -> list[str]:
        """Distinct user categories; the internal "Transfer" category is left out."""
        return self.db.list_categories(exclude=(TRANSFER_CATEGORY,))

    def check_balance_invariant(self) -> dict[int, Decimal]:
        """Find accounts whose stored balance disagrees with their transactions.

        Returns:
            Mapping of account ID to ``balance - sum(amounts)``, only for
            accounts where that difference is non-zero
        """
        totals = self.db.get_transaction_totals()
        mismatches = {}
        for account in self.db.list_accounts():
            diff = account.balance - totals.get(account.id, Decimal("0"))
            if diff != 0:
                mismatches[account.id] = diff
        return mismatches

    def _require_transaction(self, transaction_id: int) -> TransactionEntity:
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def _move_balance(
        self, old_account_id: int, old_amount: Decimal, new_account_id: int, new_amount: Decimal
    ) -> None:
        if old_account_id == new_account_id:
            diff = new_amount - old_amount
            if diff != 0:
                self.db.adjust_account_balance(new_account_id, diff)
        else:
            self.db.adjust_account_balance(old_account_id, -old_amount)
            self.db.adjust_account_balance(new_account_id, new_amount)

    def _resolve_counterpart(self, txn: TransactionEntity, backfill: bool) -> Optional[TransactionEntity]:
        """Find the other side of a transfer.

        Linked rows are followed by ID. Legacy transfer rows without a link
        are paired with an unlinked "Transfer" row in another account carrying
        identical notes; when several qualify the most recent one is used.
        With ``backfill`` the discovered pair is linked in both directions.
        """
        if txn.linked_tx_id is not None:
            return self.db.get_transaction(txn.linked_tx_id)

        if not txn.is_transfer or txn.notes is None:
            return None

        candidates = self.db.find_unlinked_transfers(
            txn.notes, exclude_id=txn.id, exclude_account_id=txn.account_id
        )
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.warning(
                "transfer_counterpart_ambiguous",
                transaction_id=txn.id,
                candidate_ids=[c.id for c in candidates],
                chosen_id=candidates[0].id,
            )

        counterpart = candidates[0]
        if backfill:
            self.db.set_linked_transaction(txn.id, counterpart.id)
            self.db.set_linked_transaction(counterpart.id, txn.id)
            logger.info("transfer_link_backfilled", transaction_id=txn.id, counterpart_id=counterpart.id)
        return counterpart

    @staticmethod
    def _validated_trade(
        ticker: str, shares: Number, price_per_share: Number, fee: Number
    ) -> tuple[str, Decimal, Decimal, Decimal]:
        ticker = ticker.strip()
        if not ticker:
            raise ValidationError("Ticker cannot be empty")
        shares = to_decimal(shares)
        price_per_share = to_decimal(price_per_share)
        fee = to_decimal(fee)
        if shares <= 0:
            raise ValidationError("Shares must be positive")
        if price_per_share < 0 or fee < 0:
            raise ValidationError("Price and fee cannot be negative")
        return ticker, shares, price_per_share, fee
