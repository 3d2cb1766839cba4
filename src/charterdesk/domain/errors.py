"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


def bank_account_not_found(account_id: int) -> str:
    """Return message for missing bank account."""
    return f"Bank account {account_id} not found"


def boat_not_found(boat_id: int) -> str:
    """Return message for missing boat."""
    return f"Boat {boat_id} not found"


def booking_not_found(booking_id: int) -> str:
    """Return message for missing booking."""
    return f"Booking {booking_id} not found"


def bank_line_not_found(line_id: int) -> str:
    """Return message for missing bank feed line."""
    return f"Bank line {line_id} not found"


def bank_match_not_found(match_id: int) -> str:
    """Return message for missing bank match."""
    return f"Match {match_id} not found"


def document_not_found(document_id: int) -> str:
    """Return message for missing ledger document."""
    return f"Ledger document {document_id} not found"


def recognition_not_found(record_id: int) -> str:
    """Return message for missing revenue recognition record."""
    return f"Revenue recognition record {record_id} not found"


def invalid_date_range(date_from, date_to) -> str:
    """Return message for an inverted date range."""
    return f"End date {date_to} is before start date {date_from}"


def over_match(requested: Decimal, remaining: Decimal) -> str:
    """Return message when a match would exceed the line's unmatched amount."""
    return (
        f"Cannot match {requested:,.2f}: only {remaining:,.2f} remains unmatched "
        "on this bank line"
    )


def bank_account_delete_blocked(account_id: int, line_count: int) -> str:
    """Return message when a bank account still has imported lines."""
    return (
        f"Cannot delete bank account {account_id}: it has "
        f"{line_count} bank line{'s' if line_count != 1 else ''}. "
        "Bank lines are kept as an audit trail."
    )


def matching_rule_not_found(rule_id: int) -> str:
    """Return message for missing matching rule."""
    return f"Matching rule {rule_id} not found"
