"""SQLAlchemy models for charterdesk database."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class BankAccount(Base):
    """Bank account model."""

    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    bank_name = Column(String, nullable=False)
    currency = Column(String(3), nullable=False, default="THB")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    bank_lines = relationship("BankFeedLine", back_populates="bank_account")


class Boat(Base):
    """Boat model. Boats own bookings and revenue."""

    __tablename__ = "boats"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    bookings = relationship("Booking", back_populates="boat")


class Booking(Base):
    """Booking model with an inclusive date range."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    date_from = Column(Date, nullable=False)
    date_to = Column(Date, nullable=False)
    boat_id = Column(Integer, ForeignKey("boats.id"), nullable=True)
    status = Column(String, nullable=False, default="enquiry")
    external_boat_name = Column(String, nullable=True)
    customer_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (Index("ix_bookings_dates", "date_from", "date_to"),)

    # Relationships
    boat = relationship("Boat", back_populates="bookings")


class BankFeedLine(Base):
    """Imported bank statement line."""

    __tablename__ = "bank_feed_lines"

    id = Column(Integer, primary_key=True)
    bank_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=False)
    currency = Column(String(3), nullable=False)
    transaction_date = Column(Date, nullable=False)
    value_date = Column(Date, nullable=False)
    description = Column(String, nullable=False, default="")
    amount = Column(Numeric(14, 2), nullable=False)
    reference = Column(String, nullable=True)
    running_balance = Column(Numeric(14, 2), nullable=True)
    import_source = Column(String, nullable=False, default="csv")
    imported_by = Column(String, nullable=True)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    ignored_at = Column(DateTime, nullable=True)
    ignored_by = Column(String, nullable=True)
    ignored_reason = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    __table_args__ = (
        Index("ix_bank_feed_lines_account_date", "bank_account_id", "transaction_date"),
    )

    # Relationships
    bank_account = relationship("BankAccount", back_populates="bank_lines")
    matches = relationship(
        "BankMatch",
        back_populates="bank_feed_line",
        cascade="all, delete-orphan",
        order_by="BankMatch.id",
    )


class BankMatch(Base):
    """Allocation of (part of) a bank line to a system record."""

    __tablename__ = "bank_matches"

    id = Column(Integer, primary_key=True)
    bank_feed_line_id = Column(Integer, ForeignKey("bank_feed_lines.id"), nullable=False)
    system_record_type = Column(String, nullable=False)
    system_record_id = Column(Integer, nullable=False)
    matched_amount = Column(Numeric(14, 2), nullable=False)
    amount_difference = Column(Numeric(14, 2), nullable=False, default=0)
    matched_by = Column(String, nullable=False)
    matched_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    match_score = Column(Integer, nullable=False, default=0)
    match_method = Column(String, nullable=False)
    project_id = Column(Integer, nullable=True)
    rule_id = Column(Integer, ForeignKey("matching_rules.id"), nullable=True)

    # Relationships
    bank_feed_line = relationship("BankFeedLine", back_populates="matches")


class MatchingRule(Base):
    """User-defined matching rule."""

    __tablename__ = "matching_rules"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    priority = Column(Integer, nullable=False, default=0)
    enabled = Column(Boolean, nullable=False, default=True)
    description_contains = Column(JSON, nullable=False, default=list)
    amount_min = Column(Numeric(14, 2), nullable=True)
    amount_max = Column(Numeric(14, 2), nullable=True)
    amount_sign = Column(String, nullable=True)
    bank_account_ids = Column(JSON, nullable=False, default=list)
    suggest_type = Column(String, nullable=True)
    auto_match_if_confidence = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class LedgerDocument(Base):
    """Receipt or expense document, discriminated by kind."""

    __tablename__ = "ledger_documents"

    id = Column(Integer, primary_key=True)
    kind = Column(String, nullable=False)
    number = Column(String, nullable=False)
    document_date = Column(Date, nullable=False)
    total_amount = Column(Numeric(14, 2), nullable=False)
    status = Column(String, nullable=False, default="paid")
    counterparty = Column(String, nullable=True)
    reference = Column(String, nullable=True)
    net_payable = Column(Numeric(14, 2), nullable=True)
    supplier_invoice_number = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    project_ids = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class RevenueRecognition(Base):
    """Deferred charter revenue record."""

    __tablename__ = "revenue_recognitions"

    id = Column(Integer, primary_key=True)
    boat_id = Column(Integer, ForeignKey("boats.id"), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    status = Column(String, nullable=False)
    revenue_account = Column(String, nullable=False)
    charter_date_from = Column(Date, nullable=True)
    charter_date_to = Column(Date, nullable=True)
    receipt_id = Column(Integer, nullable=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    charter_type = Column(String, nullable=True)
    client_name = Column(String, nullable=True)
    description = Column(String, nullable=True)
    recognition_date = Column(Date, nullable=True)
    trigger = Column(String, nullable=True)
    recognized_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Setting(Base):
    """Key/value settings document."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
