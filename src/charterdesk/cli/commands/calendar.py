"""Month calendar command."""

import calendar as _calendar
from datetime import date

import click
from charterdesk.cli.error_handling import handle_domain_error
from charterdesk.cli.resolution import resolve_resource_or_exit
from charterdesk.database.settings_store import DatabaseSettingsStore
from charterdesk.domain.booking import BookingService
from charterdesk.domain.calendar import BookingSegment, CalendarWeek, MonthLayout
from charterdesk.domain.entities import EXTERNAL_RESOURCE
from charterdesk.domain.settings import get_boat_color
from charterdesk.utils.date_parser import parse_month

CELL_WIDTH = 12
WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _rgb(color: str) -> tuple[int, int, int]:
    value = color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def segment_bar(segment: BookingSegment) -> str:
    """Text bar for a segment; "<" and ">" mark a booking that continues."""
    width = segment.span * CELL_WIDTH - 1
    left = "[" if segment.is_start else "<"
    right = "]" if segment.is_end else ">"
    inner = width - 2
    label = segment.booking.title[:inner]
    return f"{left}{label:<{inner}}{right}"


def render_lane(week: CalendarWeek, lane: int, colors: dict[str, str]) -> str:
    parts = []
    position = 0
    for segment in sorted(
        (s for s in week.segments if s.row == lane), key=lambda s: s.start_col
    ):
        offset = segment.start_col * CELL_WIDTH
        parts.append(" " * (offset - position))
        bar = segment_bar(segment)
        color = colors.get(segment.booking.resource_id)
        parts.append(click.style(bar, fg=_rgb(color)) if color else bar)
        position = offset + len(bar)
    return "".join(parts).rstrip()


def render_month(layout: MonthLayout, colors: dict[str, str]) -> list[str]:
    """Render a month layout as text lines, one block per week."""
    title = f"{_calendar.month_name[layout.month]} {layout.year}"
    lines = [title.center(CELL_WIDTH * 7).rstrip(), ""]
    lines.append("".join(name.ljust(CELL_WIDTH) for name in WEEKDAY_NAMES).rstrip())
    lines.append("-" * (CELL_WIDTH * 7))
    for week in layout.weeks:
        lines.append(
            "".join(
                (f"{day.day_of_month:>2}" if day else "").ljust(CELL_WIDTH)
                for day in week.days
            ).rstrip()
        )
        for lane in range(week.row_count):
            lines.append(render_lane(week, lane, colors))
        lines.append("-" * (CELL_WIDTH * 7))
    return lines


@click.command("calendar")
@click.option("--month", help="Month to show (YYYY-MM, or any date in it); defaults to this month")
@click.option("--boat", help="Only show one boat (name or ID), or 'external'")
@click.option("--include-cancelled", is_flag=True, help="Also draw cancelled bookings")
@click.pass_context
def show_calendar(ctx, month: str | None, boat: str | None, include_cancelled: bool):
    """Show bookings on a month grid.

    Bookings that cross a week boundary are split into one bar per week.
    Overlapping bookings are stacked on separate lanes.

    Examples:
        charterdesk calendar
        charterdesk calendar --month 2025-05 --boat "Sea Breeze"
    """
    db = ctx.obj["db"]
    service = BookingService(db)

    if month:
        try:
            year, month_num = parse_month(month)
        except ValueError as e:
            handle_domain_error(ctx, e)
    else:
        today = date.today()
        year, month_num = today.year, today.month

    resource = resolve_resource_or_exit(ctx, service, boat) if boat is not None else None

    try:
        layout = service.month_layout(
            year, month_num, resource_filter=resource, include_cancelled=include_cancelled
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    settings = DatabaseSettingsStore(db).get_settings()
    boat_names = {str(b.id): b.name for b in service.list_boats()}
    resources = sorted(
        {seg.booking.resource_id for week in layout.weeks for seg in week.segments}
    )
    colors = {r: get_boat_color(settings, r) for r in resources}

    for line in render_month(layout, colors):
        click.echo(line)

    if not resources:
        click.echo("No bookings this month.")
        return

    click.echo("\nLegend:")
    for resource_id in resources:
        if resource_id == EXTERNAL_RESOURCE:
            name = "External"
        else:
            name = boat_names.get(resource_id, f"Boat {resource_id}")
        swatch = click.style("##", fg=_rgb(colors[resource_id]))
        click.echo(f"  {swatch} {name:20s} {colors[resource_id]}")


def register_commands(cli):
    """Register calendar command with main CLI."""
    cli.add_command(show_calendar)
