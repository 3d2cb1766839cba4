"""Month calendar layout for bookings.

Splits a month into Monday-first week rows and, for each week, positions every
overlapping booking as a segment with a column span (0 = Monday .. 6 = Sunday)
and a lane (row) so that concurrent bookings stack instead of colliding.

Everything here is pure: the same bookings and month always produce the same
layout.
"""

import calendar as _calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from charterdesk.domain.entities import Booking, EXTERNAL_RESOURCE

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class CalendarDay:
    """A visible day cell in the month grid."""

    date: date
    day_of_month: int
    is_current_month: bool = True


@dataclass(frozen=True)
class BookingSegment:
    """The part of a booking drawn in a single week row."""

    booking: Booking
    start_col: int
    end_col: int
    start_date: date
    end_date: date
    is_start: bool
    is_end: bool
    row: int

    @property
    def span(self) -> int:
        return self.end_col - self.start_col + 1

    def overlaps(self, start_col: int, end_col: int) -> bool:
        return not (self.end_col < start_col or self.start_col > end_col)

    def dates(self) -> list[date]:
        return [
            self.start_date + timedelta(days=offset)
            for offset in range((self.end_date - self.start_date).days + 1)
        ]


@dataclass(frozen=True)
class CalendarWeek:
    """One week row: seven day cells (None for adjacent months) and segments."""

    week_start: date
    days: tuple[Optional[CalendarDay], ...]
    segments: tuple[BookingSegment, ...]

    @property
    def week_end(self) -> date:
        return self.week_start + timedelta(days=DAYS_PER_WEEK - 1)

    @property
    def row_count(self) -> int:
        """Number of lanes needed to draw this week."""
        return max((seg.row + 1 for seg in self.segments), default=0)

    @property
    def visible_columns(self) -> Optional[tuple[int, int]]:
        """First and last column holding a current-month day."""
        cols = [i for i, day in enumerate(self.days) if day is not None]
        if not cols:
            return None
        return cols[0], cols[-1]


@dataclass(frozen=True)
class MonthLayout:
    """Full layout for a displayed month."""

    year: int
    month: int
    weeks: tuple[CalendarWeek, ...]

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, _calendar.monthrange(self.year, self.month)[1])

    def max_rows(self, minimum: int = 0) -> int:
        """Tallest week in lanes, for giving every week the same height."""
        return max([minimum] + [week.row_count for week in self.weeks])

    def segments_for(self, booking_id: int) -> list[BookingSegment]:
        return [
            seg
            for week in self.weeks
            for seg in week.segments
            if seg.booking.id == booking_id
        ]


def filter_bookings(
    bookings: Iterable[Booking], resource_filter: Optional[str | int] = None
) -> list[Booking]:
    """Keep bookings owned by the given resource.

    Args:
        bookings: Bookings to filter
        resource_filter: Boat id, the "external" sentinel for bookings without
            a boat, or None to keep everything

    Returns:
        Bookings in their original order
    """
    if resource_filter is None:
        return list(bookings)

    wanted = str(resource_filter)
    return [b for b in bookings if b.resource_id == wanted]


def month_week_starts(year: int, month: int) -> list[date]:
    """Monday of every week row needed to show the month."""
    first_day = date(year, month, 1)
    last_day = date(year, month, _calendar.monthrange(year, month)[1])

    week_start = first_day - timedelta(days=first_day.weekday())
    starts = []
    while week_start <= last_day:
        starts.append(week_start)
        week_start += timedelta(days=DAYS_PER_WEEK)
    return starts


def sort_for_layout(bookings: Sequence[Booking]) -> list[Booking]:
    """Order bookings so long ones claim lanes before short ones.

    Start date ascending, then longer duration first. Python's sort is
    stable, so exact ties keep their input order.
    """
    return sorted(bookings, key=lambda b: (b.date_from, -(b.date_to - b.date_from).days))


def build_week_days(week_start: date, month: int) -> tuple[Optional[CalendarDay], ...]:
    days: list[Optional[CalendarDay]] = []
    for offset in range(DAYS_PER_WEEK):
        current = week_start + timedelta(days=offset)
        if current.month == month:
            days.append(CalendarDay(date=current, day_of_month=current.day))
        else:
            days.append(None)
    return tuple(days)


def layout_week(
    week_start: date,
    days: tuple[Optional[CalendarDay], ...],
    ordered_bookings: Sequence[Booking],
) -> tuple[BookingSegment, ...]:
    """Position bookings inside one week.

    Args:
        week_start: Monday of the week
        days: Day cells for the week; None marks a blank (other month) cell
        ordered_bookings: Valid bookings, already in layout order

    Returns:
        Segments in placement order
    """
    visible = [i for i, day in enumerate(days) if day is not None]
    if not visible:
        return ()
    first_visible, last_visible = visible[0], visible[-1]
    week_end = week_start + timedelta(days=DAYS_PER_WEEK - 1)

    segments: list[BookingSegment] = []
    for booking in ordered_bookings:
        if booking.date_to < week_start or booking.date_from > week_end:
            continue

        start_col = max((booking.date_from - week_start).days, 0)
        end_col = min((booking.date_to - week_start).days, DAYS_PER_WEEK - 1)

        # Clamp to the current month's cells
        start_col = max(start_col, first_visible)
        end_col = min(end_col, last_visible)
        if start_col > end_col:
            continue

        start_date = week_start + timedelta(days=start_col)
        end_date = week_start + timedelta(days=end_col)

        occupied = {seg.row for seg in segments if seg.overlaps(start_col, end_col)}
        row = 0
        while row in occupied:
            row += 1

        segments.append(
            BookingSegment(
                booking=booking,
                start_col=start_col,
                end_col=end_col,
                start_date=start_date,
                end_date=end_date,
                is_start=start_date == booking.date_from,
                is_end=end_date == booking.date_to,
                row=row,
            )
        )

    return tuple(segments)


def build_month_layout(
    year: int,
    month: int,
    bookings: Iterable[Booking],
    resource_filter: Optional[str | int] = None,
) -> MonthLayout:
    """Lay out bookings for a month view.

    Args:
        year: Displayed year
        month: Displayed month (1-12)
        bookings: Bookings to place; those outside the month are ignored
        resource_filter: Optional boat id or "external"

    Returns:
        MonthLayout with one CalendarWeek per row

    Raises:
        ValueError: If month is not between 1 and 12
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")

    candidates = []
    for booking in filter_bookings(bookings, resource_filter):
        if not booking.has_valid_range:
            logger.debug(
                "Skipping booking %s: date_to %s is before date_from %s",
                booking.id,
                booking.date_to,
                booking.date_from,
            )
            continue
        candidates.append(booking)

    ordered = sort_for_layout(candidates)

    weeks = []
    for week_start in month_week_starts(year, month):
        days = build_week_days(week_start, month)
        weeks.append(
            CalendarWeek(
                week_start=week_start,
                days=days,
                segments=layout_week(week_start, days, ordered),
            )
        )

    return MonthLayout(year=year, month=month, weeks=tuple(weeks))


def visible_range(year: int, month: int) -> tuple[date, date]:
    """First and last date shown in the month grid, blanks included."""
    starts = month_week_starts(year, month)
    return starts[0], starts[-1] + timedelta(days=DAYS_PER_WEEK - 1)


__all__ = [
    "EXTERNAL_RESOURCE",
    "BookingSegment",
    "CalendarDay",
    "CalendarWeek",
    "MonthLayout",
    "build_month_layout",
    "filter_bookings",
    "layout_week",
    "month_week_starts",
    "sort_for_layout",
    "visible_range",
]
