"""Boat management commands."""

import click
from charterdesk.cli.error_handling import handle_domain_error
from charterdesk.database.settings_store import DatabaseSettingsStore
from charterdesk.domain.booking import BookingService
from charterdesk.domain.settings import get_boat_color


@click.group()
def boat_group():
    """Manage boats."""
    pass


@boat_group.command("create")
@click.argument("name", metavar="BOAT_NAME")
@click.pass_context
def create_boat(ctx, name: str):
    """Create a boat."""
    service = BookingService(ctx.obj["db"])
    try:
        boat_id = service.create_boat(name)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created boat '{name}' (ID: {boat_id})")


@boat_group.command("list")
@click.pass_context
def list_boats(ctx):
    """List boats with their calendar colors."""
    db = ctx.obj["db"]
    boats = BookingService(db).list_boats()
    if not boats:
        click.echo("No boats found.")
        return

    settings = DatabaseSettingsStore(db).get_settings()
    click.echo("\nBoats:")
    click.echo("-" * 50)
    for boat in boats:
        click.echo(f"ID: {boat.id:3d} | {boat.name:25s} | {get_boat_color(settings, boat.id)}")


def register_commands(cli):
    """Register boat commands with main CLI."""
    cli.add_command(boat_group, name="boat")
