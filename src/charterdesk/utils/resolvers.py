"""Utilities for resolving names to IDs."""

from charterdesk.domain.account import BankAccountService
from charterdesk.domain.booking import BookingService
from charterdesk.domain.entities import EXTERNAL_RESOURCE
from charterdesk.domain.errors import NotFoundError


def resolve_account(account_service: BankAccountService, account: str | int) -> int:
    """Resolve bank account name or ID to account ID.

    Args:
        account_service: BankAccountService instance
        account: Account name, or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None

    if account_id is not None:
        if account_service.get_account(account_id) is None:
            raise NotFoundError(f"Bank account ID {account_id} not found")
        return account_id

    for acc in account_service.list_accounts():
        if acc.name == account:
            return acc.id

    raise NotFoundError(f"Bank account '{account}' not found")


def resolve_resource(booking_service: BookingService, resource: str | int) -> str:
    """Resolve a boat name, boat ID or "external" to a calendar resource id.

    Raises:
        NotFoundError: If no boat matches
    """
    if str(resource).strip().lower() == EXTERNAL_RESOURCE:
        return EXTERNAL_RESOURCE

    try:
        boat_id = int(resource)
    except (ValueError, TypeError):
        boat_id = None

    if boat_id is not None:
        if booking_service.get_boat(boat_id) is None:
            raise NotFoundError(f"Boat ID {boat_id} not found")
        return str(boat_id)

    for boat in booking_service.list_boats():
        if boat.name == resource:
            return str(boat.id)

    raise NotFoundError(f"Boat '{resource}' not found")
