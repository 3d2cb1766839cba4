"""Revenue recognition for charter income.

Charter receipts are deferred until the charter ends. Records without an end
date wait for review; records whose charter has ended are recognized, either
automatically on the end date or by hand.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from charterdesk.database.base import Database
from charterdesk.domain.entities import (
    RecognitionStatus,
    RecognitionTrigger,
    RevenueRecognition,
)
from charterdesk.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    boat_not_found,
    invalid_date_range,
    recognition_not_found,
)

logger = logging.getLogger(__name__)

DEFERRED_REVENUE_ACCOUNT = "2300"
DEFAULT_REVENUE_ACCOUNT = "4490"

REVENUE_ACCOUNTS = {
    "day_charter": "4010",
    "overnight_charter": "4020",
    "cabin_charter": "4030",
    "other_charter": "4040",
    "bareboat_charter": "4050",
    "crewed_charter": "4060",
    "outsource_commission": "4070",
}

STATUS_LABELS = {
    RecognitionStatus.PENDING: "Pending",
    RecognitionStatus.RECOGNIZED: "Recognized",
    RecognitionStatus.NEEDS_REVIEW: "Needs Review",
    RecognitionStatus.MANUAL_RECOGNIZED: "Manually Recognized",
}

RECOGNIZED_STATUSES = (RecognitionStatus.RECOGNIZED, RecognitionStatus.MANUAL_RECOGNIZED)


def revenue_account_for(charter_type: Optional[str]) -> str:
    """Revenue account code for a charter type."""
    if not charter_type:
        return DEFAULT_REVENUE_ACCOUNT
    return REVENUE_ACCOUNTS.get(charter_type, DEFAULT_REVENUE_ACCOUNT)


def determine_initial_status(
    charter_date_to: Optional[date], today: Optional[date] = None
) -> RecognitionStatus:
    today = today or date.today()
    if charter_date_to is None:
        return RecognitionStatus.NEEDS_REVIEW
    if charter_date_to <= today:
        return RecognitionStatus.RECOGNIZED
    return RecognitionStatus.PENDING


def is_ready_for_recognition(record: RevenueRecognition, today: Optional[date] = None) -> bool:
    """Pending records whose charter has ended."""
    today = today or date.today()
    return (
        record.status == RecognitionStatus.PENDING
        and record.charter_date_to is not None
        and record.charter_date_to <= today
    )


def status_after_recognition(trigger: RecognitionTrigger) -> RecognitionStatus:
    if trigger == RecognitionTrigger.IMMEDIATE:
        return RecognitionStatus.MANUAL_RECOGNIZED
    return RecognitionStatus.RECOGNIZED


@dataclass(frozen=True)
class RecognitionNotice:
    """Status message shown next to a receipt."""

    status: RecognitionStatus
    message: str
    days_until: Optional[int] = None


def receipt_recognition_notice(
    receipt_status: str,
    charter_date_to: Optional[date],
    today: Optional[date] = None,
) -> Optional[RecognitionNotice]:
    """Explain when a receipt's revenue is (or was) recognized.

    Returns None for draft and void receipts, which carry no revenue yet.
    """
    if receipt_status in ("draft", "void"):
        return None

    today = today or date.today()
    status = determine_initial_status(charter_date_to, today)
    if status == RecognitionStatus.NEEDS_REVIEW:
        return RecognitionNotice(
            status=status,
            message="Missing charter dates - Revenue is deferred until review",
        )
    if status == RecognitionStatus.RECOGNIZED:
        return RecognitionNotice(
            status=status,
            message=f"Revenue recognized (Charter completed: {charter_date_to:%d %b %Y})",
        )

    days = (charter_date_to - today).days
    return RecognitionNotice(
        status=status,
        message=(
            f"Revenue will be recognized on {charter_date_to:%d %b %Y} "
            f"({days} day{'' if days == 1 else 's'})"
        ),
        days_until=days,
    )


@dataclass(frozen=True)
class DeferredRevenueSummary:
    total_deferred: Decimal
    pending_count: int
    needs_review_count: int


def summarize_deferred(records: list[RevenueRecognition]) -> DeferredRevenueSummary:
    """Totals over records that are not yet recognized."""
    deferred = [r for r in records if r.status not in RECOGNIZED_STATUSES]
    return DeferredRevenueSummary(
        total_deferred=sum((r.amount for r in deferred), Decimal("0")),
        pending_count=sum(1 for r in deferred if r.status == RecognitionStatus.PENDING),
        needs_review_count=sum(
            1 for r in deferred if r.status == RecognitionStatus.NEEDS_REVIEW
        ),
    )


class RevenueRecognitionService:
    """Service for deferred charter revenue."""

    def __init__(self, db: Database, user: str = "user"):
        self.db = db
        self.user = user

    def _get(self, record_id: int) -> RevenueRecognition:
        record = self.db.get_revenue_recognition(record_id)
        if record is None:
            raise NotFoundError(recognition_not_found(record_id))
        return record

    def create_record(
        self,
        amount: Decimal,
        currency: str = "THB",
        boat_id: Optional[int] = None,
        charter_date_from: Optional[date] = None,
        charter_date_to: Optional[date] = None,
        charter_type: Optional[str] = None,
        receipt_id: Optional[int] = None,
        booking_id: Optional[int] = None,
        client_name: Optional[str] = None,
        description: Optional[str] = None,
        today: Optional[date] = None,
    ) -> int:
        """Record charter revenue, recognizing it at once if the charter ended.

        Raises:
            ValidationError: On a non-positive amount or inverted charter dates
            NotFoundError: If the boat does not exist
        """
        if amount <= 0:
            raise ValidationError(f"Amount must be positive, got {amount}")
        if charter_date_from and charter_date_to and charter_date_from > charter_date_to:
            raise ValidationError(invalid_date_range(charter_date_from, charter_date_to))
        if boat_id is not None and self.db.get_boat(boat_id) is None:
            raise NotFoundError(boat_not_found(boat_id))

        today = today or date.today()
        status = determine_initial_status(charter_date_to, today)
        recognized = status == RecognitionStatus.RECOGNIZED

        record_id = self.db.create_revenue_recognition(
            amount=amount,
            currency=currency.upper(),
            status=status,
            revenue_account=revenue_account_for(charter_type),
            boat_id=boat_id,
            charter_date_from=charter_date_from,
            charter_date_to=charter_date_to,
            receipt_id=receipt_id,
            booking_id=booking_id,
            charter_type=charter_type,
            client_name=client_name,
            description=description,
            recognition_date=today if recognized else None,
            trigger=RecognitionTrigger.AUTOMATIC if recognized else None,
            recognized_by=self.user if recognized else None,
        )
        logger.info("Created revenue record %s with status %s", record_id, status.value)
        return record_id

    def get_record(self, record_id: int) -> RevenueRecognition:
        return self._get(record_id)

    def list_records(self, status: Optional[RecognitionStatus] = None) -> list[RevenueRecognition]:
        return self.db.list_revenue_recognitions(status=status)

    def recognize(
        self,
        record_id: int,
        trigger: RecognitionTrigger = RecognitionTrigger.MANUAL,
        recognition_date: Optional[date] = None,
    ) -> RevenueRecognition:
        """Recognize a deferred record.

        Raises:
            NotFoundError: If the record does not exist
            ConflictError: If it is already recognized
        """
        record = self._get(record_id)
        if record.status in RECOGNIZED_STATUSES:
            raise ConflictError(f"Revenue record {record_id} is already recognized")

        trigger = RecognitionTrigger(trigger)
        status = status_after_recognition(trigger)
        self.db.update_revenue_recognition(
            record_id,
            status=status,
            recognition_date=recognition_date or date.today(),
            trigger=trigger,
            recognized_by=self.user,
            charter_date_from=record.charter_date_from,
            charter_date_to=record.charter_date_to,
        )
        logger.info("Recognized revenue record %s (%s)", record_id, trigger.value)
        return self._get(record_id)

    def process_automatic(self, today: Optional[date] = None) -> list[int]:
        """Recognize every pending record whose charter has ended.

        Each record is recognized on its charter end date.

        Returns:
            IDs of recognized records
        """
        today = today or date.today()
        recognized = []
        for record in self.db.list_revenue_recognitions(status=RecognitionStatus.PENDING):
            if not is_ready_for_recognition(record, today):
                continue
            self.db.update_revenue_recognition(
                record.id,
                status=RecognitionStatus.RECOGNIZED,
                recognition_date=record.charter_date_to,
                trigger=RecognitionTrigger.AUTOMATIC,
                recognized_by="system",
                charter_date_from=record.charter_date_from,
                charter_date_to=record.charter_date_to,
            )
            recognized.append(record.id)

        logger.info("Automatic recognition processed %d record(s)", len(recognized))
        return recognized

    def update_charter_dates(
        self,
        record_id: int,
        charter_date_from: Optional[date],
        charter_date_to: Optional[date],
        today: Optional[date] = None,
    ) -> RevenueRecognition:
        """Change charter dates of a deferred record and re-derive its status.

        Raises:
            NotFoundError: If the record does not exist
            ConflictError: If the record is already recognized
            ValidationError: If the dates are inverted
        """
        record = self._get(record_id)
        if record.status in RECOGNIZED_STATUSES:
            raise ConflictError(
                f"Revenue record {record_id} is already recognized; its dates are locked"
            )
        if charter_date_from and charter_date_to and charter_date_from > charter_date_to:
            raise ValidationError(invalid_date_range(charter_date_from, charter_date_to))

        today = today or date.today()
        status = determine_initial_status(charter_date_to, today)
        recognized = status == RecognitionStatus.RECOGNIZED
        self.db.update_revenue_recognition(
            record_id,
            status=status,
            recognition_date=today if recognized else None,
            trigger=RecognitionTrigger.AUTOMATIC if recognized else None,
            recognized_by=self.user if recognized else None,
            charter_date_from=charter_date_from,
            charter_date_to=charter_date_to,
        )
        logger.info("Updated charter dates of revenue record %s; status %s", record_id, status.value)
        return self._get(record_id)

    def summary(self) -> DeferredRevenueSummary:
        return summarize_deferred(self.db.list_revenue_recognitions())
