"""Calendar settings commands."""

import click
from charterdesk.cli.error_handling import handle_domain_error
from charterdesk.cli.resolution import resolve_resource_or_exit
from charterdesk.database.settings_store import DatabaseSettingsStore
from charterdesk.domain.booking import BookingService
from charterdesk.domain.entities import EXTERNAL_RESOURCE
from charterdesk.domain.settings import CalendarSettingsService


def _service(ctx) -> CalendarSettingsService:
    return CalendarSettingsService(DatabaseSettingsStore(ctx.obj["db"]))


@click.group()
def settings_group():
    """Manage calendar settings."""
    pass


@settings_group.command("show")
@click.pass_context
def show_settings(ctx):
    """Show boat colors and the calendar banner."""
    db = ctx.obj["db"]
    service = _service(ctx)
    settings = service.get_settings()

    click.echo("Boat colors:")
    for boat in BookingService(db).list_boats():
        click.echo(f"  {boat.name:25s} {service.get_color(boat.id)}")
    click.echo(f"  {'External':25s} {service.get_color(EXTERNAL_RESOURCE)}")
    click.echo(f"Banner image: {settings.banner_image_url or '(none)'}")


@settings_group.command("color")
@click.argument("boat")
@click.argument("color")
@click.pass_context
def set_color(ctx, boat: str, color: str):
    """Set the calendar color of a boat (or 'external').

    Examples:
        charterdesk settings color "Sea Breeze" "#10B981"
        charterdesk settings color external 64748B
    """
    booking_service = BookingService(ctx.obj["db"])
    resource = resolve_resource_or_exit(ctx, booking_service, boat)
    if resource == EXTERNAL_RESOURCE:
        name = "External"
    else:
        name = booking_service.get_boat(int(resource)).name

    try:
        _service(ctx).set_boat_color(resource, name, color)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Color of {name} set to {_service(ctx).get_color(resource)}")


@settings_group.command("reset-colors")
@click.pass_context
def reset_colors(ctx):
    """Go back to the default palette."""
    _service(ctx).reset_colors()
    click.echo("Boat colors reset to defaults")


@settings_group.command("banner")
@click.argument("url", required=False)
@click.pass_context
def set_banner(ctx, url: str | None):
    """Set the calendar banner image URL; omit it to clear."""
    _service(ctx).set_banner_image_url(url)
    click.echo(f"Banner image {'set to ' + url if url else 'cleared'}")


def register_commands(cli):
    """Register settings commands with main CLI."""
    cli.add_command(settings_group, name="settings")
