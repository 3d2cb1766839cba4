"""CLI helpers for resolving accounts and boats, exiting on failure."""

from __future__ import annotations

import click
from charterdesk.cli.error_handling import handle_domain_error
from charterdesk.domain.account import BankAccountService
from charterdesk.domain.booking import BookingService
from charterdesk.utils.resolvers import resolve_account, resolve_resource


def resolve_account_or_exit(
    ctx: click.Context, account_service: BankAccountService, account: str | int
) -> int:
    """Resolve bank account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def resolve_resource_or_exit(
    ctx: click.Context, booking_service: BookingService, resource: str | int
) -> str:
    """Resolve a boat name, boat ID or "external", or exit with a CLI error."""
    try:
        return resolve_resource(booking_service, resource)
    except ValueError as exc:
        handle_domain_error(ctx, exc)
