"""Boat and booking domain service."""

import logging
from datetime import date
from typing import Optional

from charterdesk.database.base import Database
from charterdesk.domain.calendar import MonthLayout, build_month_layout, visible_range
from charterdesk.domain.entities import Boat, Booking, BookingStatus
from charterdesk.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    boat_not_found,
    booking_not_found,
    invalid_date_range,
)

logger = logging.getLogger(__name__)


class BookingService:
    """Service for boats, bookings and the month calendar."""

    def __init__(self, db: Database):
        """Initialize booking service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_boat(self, name: str) -> int:
        """Create a boat.

        Raises:
            ValidationError: If the name is blank
            ConflictError: If a boat with that name exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Boat name is required")
        for boat in self.db.list_boats():
            if boat.name == name:
                raise ConflictError(f"Boat with name '{name}' already exists")
        return self.db.create_boat(name)

    def get_boat(self, boat_id: int) -> Optional[Boat]:
        return self.db.get_boat(boat_id)

    def list_boats(self) -> list[Boat]:
        return self.db.list_boats()

    def create_booking(
        self,
        title: str,
        date_from: date,
        date_to: date,
        boat_id: Optional[int] = None,
        status: BookingStatus = BookingStatus.ENQUIRY,
        external_boat_name: Optional[str] = None,
        customer_name: Optional[str] = None,
    ) -> int:
        """Create a booking.

        Args:
            title: Short label shown on the calendar
            date_from: First charter day
            date_to: Last charter day (inclusive)
            boat_id: Owning boat, or None for an external boat
            status: Initial status
            external_boat_name: Name of the external boat when boat_id is None
            customer_name: Optional customer name

        Returns:
            Booking ID

        Raises:
            ValidationError: If the range is inverted or the title is blank
            NotFoundError: If the boat does not exist
        """
        if not title.strip():
            raise ValidationError("Booking title is required")
        if date_from > date_to:
            raise ValidationError(invalid_date_range(date_from, date_to))
        if boat_id is not None and self.db.get_boat(boat_id) is None:
            raise NotFoundError(boat_not_found(boat_id))
        if boat_id is not None and external_boat_name:
            raise ValidationError("A booking cannot have both a boat and an external boat name")

        booking_id = self.db.create_booking(
            title=title.strip(),
            date_from=date_from,
            date_to=date_to,
            boat_id=boat_id,
            status=BookingStatus(status),
            external_boat_name=external_boat_name,
            customer_name=customer_name,
        )
        logger.info("Created booking %s (%s to %s)", booking_id, date_from, date_to)
        return booking_id

    def get_booking(self, booking_id: int) -> Booking:
        """Get a booking.

        Raises:
            NotFoundError: If the booking does not exist
        """
        booking = self.db.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(booking_not_found(booking_id))
        return booking

    def list_bookings(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        boat_id: Optional[int] = None,
        include_cancelled: bool = True,
    ) -> list[Booking]:
        bookings = self.db.list_bookings(start_date=start_date, end_date=end_date, boat_id=boat_id)
        if not include_cancelled:
            bookings = [b for b in bookings if b.status != BookingStatus.CANCELLED]
        return bookings

    def list_bookings_for_month(
        self, year: int, month: int, include_cancelled: bool = True
    ) -> list[Booking]:
        """Bookings overlapping any day shown in the month grid."""
        start, end = visible_range(year, month)
        return self.list_bookings(start, end, include_cancelled=include_cancelled)

    def month_layout(
        self,
        year: int,
        month: int,
        resource_filter: Optional[str | int] = None,
        include_cancelled: bool = False,
    ) -> MonthLayout:
        bookings = self.list_bookings_for_month(year, month, include_cancelled=include_cancelled)
        return build_month_layout(year, month, bookings, resource_filter=resource_filter)

    def update_status(self, booking_id: int, status: BookingStatus) -> None:
        """Change a booking's status.

        Raises:
            NotFoundError: If the booking does not exist
            ValidationError: If the status is unknown
        """
        try:
            status = BookingStatus(status)
        except ValueError:
            valid = ", ".join(s.value for s in BookingStatus)
            raise ValidationError(f"Invalid booking status '{status}'. Must be one of: {valid}")
        self.get_booking(booking_id)
        self.db.update_booking_status(booking_id, status)
        logger.info("Booking %s status set to %s", booking_id, status.value)

    def delete_booking(self, booking_id: int) -> None:
        self.get_booking(booking_id)
        self.db.delete_booking(booking_id)
        logger.info("Deleted booking %s", booking_id)
