"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class DuplicateNameError(DomainError):
    """An account with the same (case-insensitive) name already exists."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConstraintError(DomainError):
    """The store rejected a write because of an integrity constraint."""


class StorageError(DomainError):
    """Underlying storage failure (I/O, corrupt file, driver error)."""


class ConflictError(StorageError):
    """The store is held by another writer. Safe to retry."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def rule_not_found(rule_id: int) -> str:
    """Return message for missing rule."""
    return f"Rule {rule_id} not found"


def duplicate_account_name(name: str) -> str:
    """Return message for an account name collision."""
    return f"Account with name '{name}' already exists"


def empty_account_name() -> str:
    """Return message for a blank account name."""
    return "Account name cannot be empty or whitespace-only"
