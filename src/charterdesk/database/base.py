"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

# Import entities directly; domain services must never be imported here.
from charterdesk.domain.entities import (
    BankAccount,
    BankFeedLine,
    BankMatch,
    Boat,
    Booking,
    BookingStatus,
    DocumentKind,
    LedgerDocument,
    MatchRequest,
    MatchingRule,
    RevenueRecognition,
    RecognitionStatus,
    RecognitionTrigger,
    TransactionType,
)


class Database(ABC):
    """Abstract database interface for charterdesk."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Bank account operations
    @abstractmethod
    def create_bank_account(self, name: str, bank_name: str, currency: str) -> int:
        """Create a new bank account. Returns account ID."""
        pass

    @abstractmethod
    def get_bank_account(self, account_id: int) -> Optional[BankAccount]:
        """Get bank account by ID."""
        pass

    @abstractmethod
    def list_bank_accounts(self) -> list[BankAccount]:
        """List all bank accounts."""
        pass

    @abstractmethod
    def update_bank_account(
        self, account_id: int, name: str, bank_name: Optional[str] = None
    ) -> None:
        """Rename a bank account and optionally change its bank name."""
        pass

    @abstractmethod
    def delete_bank_account(self, account_id: int) -> None:
        """Delete a bank account that has no bank lines."""
        pass

    @abstractmethod
    def count_bank_lines(self, account_id: int) -> int:
        """Number of bank lines imported into an account."""
        pass

    # Boat operations
    @abstractmethod
    def create_boat(self, name: str) -> int:
        """Create a boat. Returns boat ID."""
        pass

    @abstractmethod
    def get_boat(self, boat_id: int) -> Optional[Boat]:
        """Get boat by ID."""
        pass

    @abstractmethod
    def list_boats(self) -> list[Boat]:
        """List all boats."""
        pass

    # Booking operations
    @abstractmethod
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
        """Create a booking. Returns booking ID."""
        pass

    @abstractmethod
    def get_booking(self, booking_id: int) -> Optional[Booking]:
        """Get booking by ID."""
        pass

    @abstractmethod
    def list_bookings(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        boat_id: Optional[int] = None,
    ) -> list[Booking]:
        """List bookings overlapping an optional date range.

        Args:
            start_date: Keep bookings ending on or after this date
            end_date: Keep bookings starting on or before this date
            boat_id: Optional boat filter
        """
        pass

    @abstractmethod
    def update_booking_status(self, booking_id: int, status: BookingStatus) -> None:
        """Change a booking's status."""
        pass

    @abstractmethod
    def delete_booking(self, booking_id: int) -> None:
        """Delete a booking."""
        pass

    # Bank line operations
    @abstractmethod
    def create_bank_line(
        self,
        bank_account_id: int,
        currency: str,
        transaction_date: date,
        amount: Decimal,
        description: str,
        value_date: Optional[date] = None,
        reference: Optional[str] = None,
        running_balance: Optional[Decimal] = None,
        import_source: str = "csv",
        imported_by: Optional[str] = None,
    ) -> int:
        """Create a bank feed line. Returns line ID."""
        pass

    @abstractmethod
    def get_bank_line(self, line_id: int) -> Optional[BankFeedLine]:
        """Get a bank line with its matches."""
        pass

    @abstractmethod
    def list_bank_lines(
        self,
        bank_account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[BankFeedLine]:
        """List bank lines with their matches, oldest first."""
        pass

    @abstractmethod
    def bank_line_exists(
        self,
        bank_account_id: int,
        transaction_date: date,
        amount: Decimal,
        description: str,
    ) -> bool:
        """Check for a line with the same date, amount and description prefix.

        Only the first 50 characters of the description are compared.
        """
        pass

    @abstractmethod
    def set_bank_line_ignored(
        self,
        line_id: int,
        ignored_at: Optional[datetime],
        ignored_by: Optional[str] = None,
        ignored_reason: Optional[str] = None,
    ) -> None:
        """Mark a line ignored, or clear the flag when ignored_at is None."""
        pass

    @abstractmethod
    def update_bank_line_notes(self, line_id: int, notes: Optional[str]) -> None:
        """Update bank line notes."""
        pass

    # Bank match operations
    @abstractmethod
    def create_bank_match(self, request: MatchRequest) -> BankMatch:
        """Store a match. Returns the stored match."""
        pass

    @abstractmethod
    def get_bank_match(self, match_id: int) -> Optional[BankMatch]:
        """Get match by ID."""
        pass

    @abstractmethod
    def delete_bank_match(self, match_id: int) -> None:
        """Delete a match. The matched record is not touched."""
        pass

    @abstractmethod
    def list_matched_records(self) -> set[tuple[TransactionType, int]]:
        """(record type, record id) of every record already matched to a line."""
        pass

    # Matching rule operations
    @abstractmethod
    def create_matching_rule(
        self,
        name: str,
        priority: int = 0,
        description_contains: tuple[str, ...] = (),
        amount_min: Optional[Decimal] = None,
        amount_max: Optional[Decimal] = None,
        amount_sign: Optional[str] = None,
        bank_account_ids: tuple[int, ...] = (),
        suggest_type: Optional[TransactionType] = None,
        auto_match_if_confidence: Optional[int] = None,
    ) -> int:
        """Create a matching rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_matching_rule(self, rule_id: int) -> Optional[MatchingRule]:
        """Get matching rule by ID."""
        pass

    @abstractmethod
    def list_matching_rules(self, enabled_only: bool = False) -> list[MatchingRule]:
        """List matching rules, highest priority first."""
        pass

    @abstractmethod
    def set_matching_rule_enabled(self, rule_id: int, enabled: bool) -> None:
        """Enable or disable a matching rule."""
        pass

    @abstractmethod
    def delete_matching_rule(self, rule_id: int) -> None:
        """Delete a matching rule."""
        pass

    # Ledger document operations
    @abstractmethod
    def create_ledger_document(
        self,
        kind: DocumentKind,
        number: str,
        document_date: date,
        total_amount: Decimal,
        status: str = "paid",
        counterparty: Optional[str] = None,
        reference: Optional[str] = None,
        net_payable: Optional[Decimal] = None,
        supplier_invoice_number: Optional[str] = None,
        notes: Optional[str] = None,
        project_ids: tuple[int, ...] = (),
    ) -> int:
        """Create a ledger document. Returns document ID."""
        pass

    @abstractmethod
    def get_ledger_document(self, document_id: int) -> Optional[LedgerDocument]:
        """Get ledger document by ID."""
        pass

    @abstractmethod
    def list_ledger_documents(
        self, kind: Optional[DocumentKind] = None, status: Optional[str] = None
    ) -> list[LedgerDocument]:
        """List ledger documents, optionally filtered by kind and status."""
        pass

    # Revenue recognition operations
    @abstractmethod
    def create_revenue_recognition(
        self,
        amount: Decimal,
        currency: str,
        status: RecognitionStatus,
        revenue_account: str,
        boat_id: Optional[int] = None,
        charter_date_from: Optional[date] = None,
        charter_date_to: Optional[date] = None,
        receipt_id: Optional[int] = None,
        booking_id: Optional[int] = None,
        charter_type: Optional[str] = None,
        client_name: Optional[str] = None,
        description: Optional[str] = None,
        recognition_date: Optional[date] = None,
        trigger: Optional[RecognitionTrigger] = None,
        recognized_by: Optional[str] = None,
    ) -> int:
        """Create a revenue recognition record. Returns record ID."""
        pass

    @abstractmethod
    def get_revenue_recognition(self, record_id: int) -> Optional[RevenueRecognition]:
        """Get revenue recognition record by ID."""
        pass

    @abstractmethod
    def list_revenue_recognitions(
        self, status: Optional[RecognitionStatus] = None
    ) -> list[RevenueRecognition]:
        """List revenue recognition records, optionally by status."""
        pass

    @abstractmethod
    def update_revenue_recognition(
        self,
        record_id: int,
        status: RecognitionStatus,
        recognition_date: Optional[date] = None,
        trigger: Optional[RecognitionTrigger] = None,
        recognized_by: Optional[str] = None,
        charter_date_from: Optional[date] = None,
        charter_date_to: Optional[date] = None,
    ) -> None:
        """Write status, recognition fields and charter dates of a record."""
        pass

    # Settings operations
    @abstractmethod
    def get_setting(self, key: str) -> Optional[dict]:
        """Get a stored settings document by key."""
        pass

    @abstractmethod
    def set_setting(self, key: str, value: dict) -> None:
        """Store a settings document under a key, replacing any previous one."""
        pass
