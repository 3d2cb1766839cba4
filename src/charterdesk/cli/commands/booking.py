"""Booking commands."""

import click
from charterdesk.cli.error_handling import handle_domain_error
from charterdesk.cli.resolution import resolve_resource_or_exit
from charterdesk.domain.booking import BookingService
from charterdesk.domain.entities import BookingStatus, EXTERNAL_RESOURCE
from charterdesk.utils.date_parser import parse_date, parse_month

STATUS_CHOICES = [s.value for s in BookingStatus]


@click.group()
def booking_group():
    """Manage bookings."""
    pass


@booking_group.command("add")
@click.argument("title")
@click.option("--from", "date_from", required=True, help="First charter day")
@click.option("--to", "date_to", help="Last charter day (defaults to the first day)")
@click.option("--boat", help="Boat name or ID; use 'external' for an outside boat")
@click.option("--external-name", help="Name of the external boat")
@click.option("--customer", help="Customer name")
@click.option(
    "--status",
    type=click.Choice(STATUS_CHOICES),
    default=BookingStatus.ENQUIRY.value,
    show_default=True,
)
@click.pass_context
def add_booking(
    ctx,
    title: str,
    date_from: str,
    date_to: str | None,
    boat: str | None,
    external_name: str | None,
    customer: str | None,
    status: str,
):
    """Add a booking.

    Examples:
        charterdesk booking add "Smith family" --from 2025-05-30 --to 2025-06-02 --boat "Sea Breeze"
        charterdesk booking add "Partner charter" --from 2025-05-10 --boat external --external-name "Ocean Star"
    """
    service = BookingService(ctx.obj["db"])

    try:
        start = parse_date(date_from)
        end = parse_date(date_to) if date_to else start
    except ValueError as e:
        handle_domain_error(ctx, e)

    boat_id = None
    if boat is not None:
        resource = resolve_resource_or_exit(ctx, service, boat)
        if resource != EXTERNAL_RESOURCE:
            boat_id = int(resource)

    try:
        booking_id = service.create_booking(
            title=title,
            date_from=start,
            date_to=end,
            boat_id=boat_id,
            status=BookingStatus(status),
            external_boat_name=external_name,
            customer_name=customer,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created booking '{title}' (ID: {booking_id}) {start} to {end}")


@booking_group.command("list")
@click.option("--month", help="Month to list (YYYY-MM); defaults to all bookings")
@click.option("--boat", help="Boat name or ID, or 'external'")
@click.option("--hide-cancelled", is_flag=True, help="Leave out cancelled bookings")
@click.pass_context
def list_bookings(ctx, month: str | None, boat: str | None, hide_cancelled: bool):
    """List bookings."""
    service = BookingService(ctx.obj["db"])

    if month:
        try:
            year, month_num = parse_month(month)
        except ValueError as e:
            handle_domain_error(ctx, e)
        bookings = service.list_bookings_for_month(
            year, month_num, include_cancelled=not hide_cancelled
        )
    else:
        bookings = service.list_bookings(include_cancelled=not hide_cancelled)

    if boat is not None:
        resource = resolve_resource_or_exit(ctx, service, boat)
        bookings = [b for b in bookings if b.resource_id == resource]

    if not bookings:
        click.echo("No bookings found.")
        return

    boats = {str(b.id): b.name for b in service.list_boats()}
    click.echo(f"\nFound {len(bookings)} booking(s):")
    click.echo("-" * 90)
    for booking in bookings:
        owner = boats.get(booking.resource_id) or booking.external_boat_name or "External"
        click.echo(
            f"ID: {booking.id:4d} | {booking.date_from} - {booking.date_to} | "
            f"{booking.status.value:9s} | {owner:18s} | {booking.title}"
        )


@booking_group.command("status")
@click.argument("booking_id", type=int)
@click.argument("status", type=click.Choice(STATUS_CHOICES))
@click.pass_context
def set_status(ctx, booking_id: int, status: str):
    """Change the status of a booking."""
    service = BookingService(ctx.obj["db"])
    try:
        service.update_status(booking_id, BookingStatus(status))
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Booking {booking_id} is now {status}")


@booking_group.command("delete")
@click.argument("booking_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_booking(ctx, booking_id: int, yes: bool):
    """Delete a booking."""
    service = BookingService(ctx.obj["db"])
    try:
        booking = service.get_booking(booking_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Delete booking '{booking.title}' (ID: {booking_id})?"):
        click.echo("Deletion cancelled.")
        return

    service.delete_booking(booking_id)
    click.echo(f"Deleted booking {booking_id}")


def register_commands(cli):
    """Register booking commands with main CLI."""
    cli.add_command(booking_group, name="booking")
