"""Domain model entities for charterdesk.

These are pure data classes representing business concepts, independent of
database schema. Layout and matching logic work only with these types, so
they can be exercised without a database.
"""

from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

# Resource id for bookings not owned by one of our boats.
EXTERNAL_RESOURCE = "external"


class BookingStatus(str, Enum):
    """Booking workflow status."""

    ENQUIRY = "enquiry"
    HOLD = "hold"
    BOOKED = "booked"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class TransactionType(str, Enum):
    """Kind of system record a bank line can be matched to."""

    RECEIPT = "receipt"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    OWNER_CONTRIBUTION = "owner_contribution"
    BANK_FEE = "bank_fee"
    INTEREST = "interest"
    REFUND = "refund"


class MatchMethod(str, Enum):
    """How a bank match was created."""

    MANUAL = "manual"
    SUGGESTED = "suggested"
    RULE = "rule"


class BankFeedStatus(str, Enum):
    """Reconciliation status of a bank line, derived from its matches."""

    UNMATCHED = "unmatched"
    PARTIALLY_MATCHED = "partially_matched"
    MATCHED = "matched"
    IGNORED = "ignored"


class AmountSign(str, Enum):
    """Direction filter for matching rules."""

    DEBIT = "debit"
    CREDIT = "credit"


class DocumentKind(str, Enum):
    """Discriminator for ledger documents."""

    INCOME = "income"
    EXPENSE = "expense"


class RecognitionStatus(str, Enum):
    """Revenue recognition status."""

    PENDING = "pending"
    RECOGNIZED = "recognized"
    NEEDS_REVIEW = "needs_review"
    MANUAL_RECOGNIZED = "manual_recognized"


class RecognitionTrigger(str, Enum):
    """What caused revenue to be recognized."""

    AUTOMATIC = "automatic"
    MANUAL = "manual"
    IMMEDIATE = "immediate"


@dataclass(frozen=True)
class BankAccount:
    """Bank account domain entity."""

    id: int
    name: str
    bank_name: str
    currency: str
    created_at: datetime


@dataclass(frozen=True)
class Boat:
    """Boat (charter project) that owns bookings."""

    id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Booking:
    """Charter booking with an inclusive date range."""

    id: int
    title: str
    date_from: date
    date_to: date
    boat_id: Optional[int]
    status: BookingStatus
    external_boat_name: Optional[str] = None
    customer_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def resource_id(self) -> str:
        """Owning resource id, or the external sentinel."""
        if self.boat_id is None:
            return EXTERNAL_RESOURCE
        return str(self.boat_id)

    @property
    def duration_days(self) -> int:
        """Number of days covered, counting both ends."""
        return (self.date_to - self.date_from).days + 1

    @property
    def has_valid_range(self) -> bool:
        return self.date_from <= self.date_to


@dataclass(frozen=True)
class BankMatch:
    """Link between a bank line (or part of it) and a system record."""

    id: int
    bank_feed_line_id: int
    system_record_type: TransactionType
    system_record_id: int
    matched_amount: Decimal
    amount_difference: Decimal
    matched_by: str
    matched_at: datetime
    match_score: int
    match_method: MatchMethod
    project_id: Optional[int] = None
    rule_id: Optional[int] = None

    @property
    def adjustment_required(self) -> bool:
        return abs(self.amount_difference) > Decimal("0.01")


@dataclass(frozen=True)
class BankFeedLine:
    """Imported bank statement line with the matches allocated against it."""

    id: int
    bank_account_id: int
    currency: str
    transaction_date: date
    value_date: date
    description: str
    amount: Decimal
    reference: Optional[str] = None
    running_balance: Optional[Decimal] = None
    import_source: str = "csv"
    imported_by: Optional[str] = None
    imported_at: Optional[datetime] = None
    matches: tuple[BankMatch, ...] = ()
    ignored_at: Optional[datetime] = None
    ignored_by: Optional[str] = None
    ignored_reason: Optional[str] = None
    notes: Optional[str] = None

    @property
    def matched_amount(self) -> Decimal:
        """Sum of all accepted matches."""
        return sum((m.matched_amount for m in self.matches), Decimal("0"))

    @property
    def remaining_amount(self) -> Decimal:
        """Amount still to be allocated."""
        return abs(self.amount) - self.matched_amount

    @property
    def is_credit(self) -> bool:
        return self.amount > 0

    @property
    def is_fully_matched(self) -> bool:
        return bool(self.matches) and self.remaining_amount <= 0

    @property
    def match_progress(self) -> float:
        """Matched share of the line amount, between 0 and 1."""
        total = abs(self.amount)
        if total == 0:
            return 1.0 if self.matches else 0.0
        return min(1.0, float(self.matched_amount / total))

    @property
    def status(self) -> BankFeedStatus:
        if self.ignored_at is not None:
            return BankFeedStatus.IGNORED
        if not self.matches:
            return BankFeedStatus.UNMATCHED
        if self.remaining_amount <= 0:
            return BankFeedStatus.MATCHED
        return BankFeedStatus.PARTIALLY_MATCHED


@dataclass(frozen=True)
class SystemRecord:
    """Ledger record that a bank line can be matched to.

    Amount is signed: positive for money in, negative for money out.
    """

    id: int
    record_type: TransactionType
    reference: str
    date: date
    amount: Decimal
    counterparty: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[int] = None
    is_reconciled: bool = False


@dataclass(frozen=True)
class SuggestedMatch:
    """Candidate record ranked for a bank line. Never persisted."""

    system_record_type: TransactionType
    system_record_id: int
    amount: Decimal
    date: date
    match_score: int
    match_reasons: tuple[str, ...] = ()
    counterparty: Optional[str] = None
    reference: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[int] = None


@dataclass(frozen=True)
class MatchRequest:
    """A match ready to be written, before it has an id."""

    bank_feed_line_id: int
    system_record_type: TransactionType
    system_record_id: int
    matched_amount: Decimal
    amount_difference: Decimal
    matched_by: str
    match_score: int
    match_method: MatchMethod
    project_id: Optional[int] = None
    rule_id: Optional[int] = None


@dataclass(frozen=True)
class MatchingRule:
    """User-defined rule that boosts or auto-accepts suggestions."""

    id: int
    name: str
    priority: int = 0
    enabled: bool = True
    description_contains: tuple[str, ...] = ()
    amount_min: Optional[Decimal] = None
    amount_max: Optional[Decimal] = None
    amount_sign: Optional[AmountSign] = None
    bank_account_ids: tuple[int, ...] = ()
    suggest_type: Optional[TransactionType] = None
    auto_match_if_confidence: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LedgerDocument:
    """Income or expense document, discriminated by ``kind``.

    ``net_payable`` and ``supplier_invoice_number`` only carry meaning for
    expense documents.
    """

    id: int
    kind: DocumentKind
    number: str
    document_date: date
    total_amount: Decimal
    status: str = "paid"
    counterparty: Optional[str] = None
    reference: Optional[str] = None
    net_payable: Optional[Decimal] = None
    supplier_invoice_number: Optional[str] = None
    notes: Optional[str] = None
    project_ids: tuple[int, ...] = ()
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class RevenueRecognition:
    """Deferred charter revenue awaiting (or past) recognition."""

    id: int
    boat_id: Optional[int]
    amount: Decimal
    currency: str
    status: RecognitionStatus
    revenue_account: str
    charter_date_from: Optional[date] = None
    charter_date_to: Optional[date] = None
    receipt_id: Optional[int] = None
    booking_id: Optional[int] = None
    charter_type: Optional[str] = None
    client_name: Optional[str] = None
    description: Optional[str] = None
    recognition_date: Optional[date] = None
    trigger: Optional[RecognitionTrigger] = None
    recognized_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class BoatColor:
    """Calendar color configured for a resource."""

    resource_id: str
    name: str
    color: str


@dataclass(frozen=True)
class CalendarSettings:
    """Display settings for the booking calendar."""

    boat_colors: tuple[BoatColor, ...] = ()
    banner_image_url: Optional[str] = None
