"""Utility for resolving account names to IDs."""

from ledgerkit.domain.account import AccountService
from ledgerkit.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    Args:
        account_service: AccountService instance
        account: Account name (matched case-insensitively) or ID (int or
            string representation of int)

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    if isinstance(account, int):
        account_id = account
    else:
        try:
            account_id = int(account)
        except ValueError:
            account_id = None

    if account_id is not None:
        if account_service.get_account(account_id) is None:
            raise NotFoundError(f"Account ID {account_id} not found")
        return account_id

    wanted = account.strip().lower()
    for acc in account_service.list_accounts():
        if acc.name.lower() == wanted:
            return acc.id

    raise NotFoundError(f"Account '{account}' not found")
