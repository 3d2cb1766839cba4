"""Tests for the month calendar layout."""

from datetime import date, timedelta

import pytest

from charterdesk.domain.calendar import (
    build_month_layout,
    filter_bookings,
    month_week_starts,
    sort_for_layout,
    visible_range,
)
from charterdesk.domain.entities import Booking, BookingStatus, EXTERNAL_RESOURCE


def _booking(booking_id, date_from, date_to, boat_id=1, title=None):
    return Booking(
        id=booking_id,
        title=title or f"Booking {booking_id}",
        date_from=date_from,
        date_to=date_to,
        boat_id=boat_id,
        status=BookingStatus.BOOKED,
    )


def test_month_week_starts_begin_on_monday():
    starts = month_week_starts(2025, 5)

    assert starts == [
        date(2025, 4, 28),
        date(2025, 5, 5),
        date(2025, 5, 12),
        date(2025, 5, 19),
        date(2025, 5, 26),
    ]
    assert all(s.weekday() == 0 for s in starts)


def test_visible_range_covers_blank_cells():
    assert visible_range(2025, 5) == (date(2025, 4, 28), date(2025, 6, 1))


def test_days_outside_month_are_blank():
    layout = build_month_layout(2025, 5, [])
    first_week = layout.weeks[0]

    assert first_week.days[:3] == (None, None, None)
    assert first_week.days[3].date == date(2025, 5, 1)
    assert layout.weeks[-1].days[6] is None
    assert layout.weeks[-1].visible_columns == (0, 5)


def test_booking_into_next_month_is_clipped():
    layout = build_month_layout(2025, 5, [_booking(1, date(2025, 5, 30), date(2025, 6, 2))])

    segments = layout.segments_for(1)
    assert len(segments) == 1
    segment = segments[0]
    assert segment.booking.id == 1
    assert (segment.start_col, segment.end_col) == (4, 5)
    assert segment.is_start is True
    assert segment.is_end is False
    assert segment.end_date == date(2025, 5, 31)
    assert layout.weeks[-1].segments == (segment,)


def test_booking_from_previous_month_is_clipped():
    layout = build_month_layout(2025, 5, [_booking(1, date(2025, 4, 28), date(2025, 5, 2))])

    segment = layout.segments_for(1)[0]
    assert (segment.start_col, segment.end_col) == (3, 4)
    assert segment.is_start is False
    assert segment.is_end is True


def test_booking_spanning_weeks_splits_into_segments():
    booking = _booking(1, date(2025, 5, 10), date(2025, 5, 20))
    layout = build_month_layout(2025, 5, [booking])

    segments = layout.segments_for(1)
    assert [(s.start_col, s.end_col) for s in segments] == [(5, 6), (0, 6), (0, 1)]
    assert [s.is_start for s in segments] == [True, False, False]
    assert [s.is_end for s in segments] == [False, False, True]

    covered = [d for s in segments for d in s.dates()]
    expected = [booking.date_from + timedelta(days=i) for i in range(booking.duration_days)]
    assert covered == expected


def test_overlapping_bookings_get_separate_rows():
    bookings = [
        _booking(1, date(2025, 5, 5), date(2025, 5, 7)),
        _booking(2, date(2025, 5, 6), date(2025, 5, 8)),
        _booking(3, date(2025, 5, 8), date(2025, 5, 9)),
    ]
    layout = build_month_layout(2025, 5, bookings)
    week = layout.weeks[1]

    rows = {s.booking.id: s.row for s in week.segments}
    assert rows == {1: 0, 2: 1, 3: 0}
    assert week.row_count == 2

    for segment in week.segments:
        for other in week.segments:
            if other is not segment and other.row == segment.row:
                assert not segment.overlaps(other.start_col, other.end_col)


def test_longer_booking_wins_on_same_start():
    short = _booking(1, date(2025, 5, 12), date(2025, 5, 13))
    long = _booking(2, date(2025, 5, 12), date(2025, 5, 16))

    assert sort_for_layout([short, long]) == [long, short]

    layout = build_month_layout(2025, 5, [short, long])
    rows = {s.booking.id: s.row for s in layout.weeks[2].segments}
    assert rows == {2: 0, 1: 1}


def test_exact_tie_keeps_input_order():
    later_id = _booking(9, date(2025, 5, 12), date(2025, 5, 14))
    earlier_id = _booking(2, date(2025, 5, 12), date(2025, 5, 14))

    assert sort_for_layout([later_id, earlier_id]) == [later_id, earlier_id]

    layout = build_month_layout(2025, 5, [later_id, earlier_id])
    rows = {s.booking.id: s.row for s in layout.weeks[2].segments}
    assert rows == {9: 0, 2: 1}


def test_layout_is_deterministic():
    bookings = [
        _booking(1, date(2025, 5, 1), date(2025, 5, 9)),
        _booking(2, date(2025, 5, 3), date(2025, 5, 4)),
        _booking(3, date(2025, 5, 3), date(2025, 5, 4)),
        _booking(4, date(2025, 5, 20), date(2025, 6, 5)),
    ]

    assert build_month_layout(2025, 5, bookings) == build_month_layout(2025, 5, bookings)


def test_invalid_range_is_skipped():
    layout = build_month_layout(2025, 5, [_booking(1, date(2025, 5, 10), date(2025, 5, 8))])

    assert layout.segments_for(1) == []
    assert layout.max_rows() == 0


def test_bookings_outside_month_are_ignored():
    layout = build_month_layout(2025, 5, [_booking(1, date(2025, 7, 1), date(2025, 7, 3))])

    assert layout.segments_for(1) == []


def test_filter_by_boat_and_external():
    own = _booking(1, date(2025, 5, 5), date(2025, 5, 6), boat_id=7)
    other = _booking(2, date(2025, 5, 5), date(2025, 5, 6), boat_id=8)
    external = _booking(3, date(2025, 5, 5), date(2025, 5, 6), boat_id=None)

    assert filter_bookings([own, other, external], 7) == [own]
    assert filter_bookings([own, other, external], "7") == [own]
    assert filter_bookings([own, other, external], EXTERNAL_RESOURCE) == [external]
    assert filter_bookings([own, other, external]) == [own, other, external]

    layout = build_month_layout(2025, 5, [own, other, external], resource_filter=EXTERNAL_RESOURCE)
    assert [s.booking.id for w in layout.weeks for s in w.segments] == [3]


def test_max_rows_respects_minimum():
    layout = build_month_layout(2025, 5, [_booking(1, date(2025, 5, 5), date(2025, 5, 5))])

    assert layout.max_rows() == 1
    assert layout.max_rows(minimum=3) == 3


def test_invalid_month_raises():
    with pytest.raises(ValueError, match="between 1 and 12"):
        build_month_layout(2025, 13, [])
