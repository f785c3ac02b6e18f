"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity or path does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as matching an already reconciled transaction."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class StructuralError(DomainError):
    """Malformed category graph; aborts the whole report build."""


class ParseError(DomainError):
    """Unparsable statement entry; the containing file is rejected."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_path_not_found(path: str) -> str:
    """Return message for missing category by path."""
    return f"Category '{path}' not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def sale_leg_not_found(leg_id: int) -> str:
    """Return message for missing sale leg."""
    return f"Sale leg {leg_id} not found"


def category_cycle(path: str) -> str:
    """Return message for a category that is its own ancestor."""
    return f"Category '{path}' is its own ancestor"


def missing_parent(path: str, parent_path: str) -> str:
    """Return message for a category referencing an unknown parent."""
    return f"Category '{path}' references unknown parent '{parent_path}'"


def transaction_already_reconciled(transaction_id) -> str:
    """Return message for a transaction matched twice."""
    return f"Transaction {transaction_id} is already reconciled"


def parcel_already_settled(parcel_n: int) -> str:
    """Return message for a parcel matched twice."""
    return f"Parcel {parcel_n} is already settled"


def statement_already_imported(file_hash: str) -> str:
    """Return message for a statement file imported before."""
    return f"Statement file {file_hash[:12]} was already imported for this client"


def entry_parse_failed(index: int, reason: str) -> str:
    """Return message for an unparsable statement entry."""
    return f"Entry {index}: {reason}"
