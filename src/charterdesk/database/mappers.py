"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so enum coercion and JSON list
columns are handled in one place.
"""

from decimal import Decimal
from typing import Optional

from charterdesk.domain import entities as domain
from charterdesk.database.models import (
    BankAccount as ORMBankAccount,
    BankFeedLine as ORMBankFeedLine,
    BankMatch as ORMBankMatch,
    Boat as ORMBoat,
    Booking as ORMBooking,
    LedgerDocument as ORMLedgerDocument,
    MatchingRule as ORMMatchingRule,
    RevenueRecognition as ORMRevenueRecognition,
)


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def bank_account_to_domain(orm_account: ORMBankAccount) -> domain.BankAccount:
    """Convert SQLAlchemy BankAccount model to domain BankAccount entity."""
    return domain.BankAccount(
        id=orm_account.id,
        name=orm_account.name,
        bank_name=orm_account.bank_name,
        currency=orm_account.currency,
        created_at=orm_account.created_at,
    )


def boat_to_domain(orm_boat: ORMBoat) -> domain.Boat:
    """Convert SQLAlchemy Boat model to domain Boat entity."""
    return domain.Boat(id=orm_boat.id, name=orm_boat.name, created_at=orm_boat.created_at)


def booking_to_domain(orm_booking: ORMBooking) -> domain.Booking:
    """Convert SQLAlchemy Booking model to domain Booking entity."""
    return domain.Booking(
        id=orm_booking.id,
        title=orm_booking.title,
        date_from=orm_booking.date_from,
        date_to=orm_booking.date_to,
        boat_id=orm_booking.boat_id,
        status=domain.BookingStatus(orm_booking.status),
        external_boat_name=orm_booking.external_boat_name,
        customer_name=orm_booking.customer_name,
        created_at=orm_booking.created_at,
    )


def bank_match_to_domain(orm_match: ORMBankMatch) -> domain.BankMatch:
    """Convert SQLAlchemy BankMatch model to domain BankMatch entity."""
    return domain.BankMatch(
        id=orm_match.id,
        bank_feed_line_id=orm_match.bank_feed_line_id,
        system_record_type=domain.TransactionType(orm_match.system_record_type),
        system_record_id=orm_match.system_record_id,
        matched_amount=_decimal(orm_match.matched_amount),
        amount_difference=_decimal(orm_match.amount_difference) or Decimal("0"),
        matched_by=orm_match.matched_by,
        matched_at=orm_match.matched_at,
        match_score=orm_match.match_score,
        match_method=domain.MatchMethod(orm_match.match_method),
        project_id=orm_match.project_id,
        rule_id=orm_match.rule_id,
    )


def bank_line_to_domain(orm_line: ORMBankFeedLine) -> domain.BankFeedLine:
    """Convert SQLAlchemy BankFeedLine model (with matches) to domain entity."""
    return domain.BankFeedLine(
        id=orm_line.id,
        bank_account_id=orm_line.bank_account_id,
        currency=orm_line.currency,
        transaction_date=orm_line.transaction_date,
        value_date=orm_line.value_date,
        description=orm_line.description,
        amount=_decimal(orm_line.amount),
        reference=orm_line.reference,
        running_balance=_decimal(orm_line.running_balance),
        import_source=orm_line.import_source,
        imported_by=orm_line.imported_by,
        imported_at=orm_line.imported_at,
        matches=tuple(bank_match_to_domain(m) for m in orm_line.matches),
        ignored_at=orm_line.ignored_at,
        ignored_by=orm_line.ignored_by,
        ignored_reason=orm_line.ignored_reason,
        notes=orm_line.notes,
    )


def matching_rule_to_domain(orm_rule: ORMMatchingRule) -> domain.MatchingRule:
    """Convert SQLAlchemy MatchingRule model to domain MatchingRule entity."""
    return domain.MatchingRule(
        id=orm_rule.id,
        name=orm_rule.name,
        priority=orm_rule.priority,
        enabled=orm_rule.enabled,
        description_contains=tuple(orm_rule.description_contains or ()),
        amount_min=_decimal(orm_rule.amount_min),
        amount_max=_decimal(orm_rule.amount_max),
        amount_sign=domain.AmountSign(orm_rule.amount_sign) if orm_rule.amount_sign else None,
        bank_account_ids=tuple(orm_rule.bank_account_ids or ()),
        suggest_type=(
            domain.TransactionType(orm_rule.suggest_type) if orm_rule.suggest_type else None
        ),
        auto_match_if_confidence=orm_rule.auto_match_if_confidence,
        created_at=orm_rule.created_at,
    )


def ledger_document_to_domain(orm_document: ORMLedgerDocument) -> domain.LedgerDocument:
    """Convert SQLAlchemy LedgerDocument model to domain LedgerDocument entity."""
    return domain.LedgerDocument(
        id=orm_document.id,
        kind=domain.DocumentKind(orm_document.kind),
        number=orm_document.number,
        document_date=orm_document.document_date,
        total_amount=_decimal(orm_document.total_amount),
        status=orm_document.status,
        counterparty=orm_document.counterparty,
        reference=orm_document.reference,
        net_payable=_decimal(orm_document.net_payable),
        supplier_invoice_number=orm_document.supplier_invoice_number,
        notes=orm_document.notes,
        project_ids=tuple(orm_document.project_ids or ()),
        created_at=orm_document.created_at,
    )


def revenue_recognition_to_domain(
    orm_record: ORMRevenueRecognition,
) -> domain.RevenueRecognition:
    """Convert SQLAlchemy RevenueRecognition model to domain entity."""
    return domain.RevenueRecognition(
        id=orm_record.id,
        boat_id=orm_record.boat_id,
        amount=_decimal(orm_record.amount),
        currency=orm_record.currency,
        status=domain.RecognitionStatus(orm_record.status),
        revenue_account=orm_record.revenue_account,
        charter_date_from=orm_record.charter_date_from,
        charter_date_to=orm_record.charter_date_to,
        receipt_id=orm_record.receipt_id,
        booking_id=orm_record.booking_id,
        charter_type=orm_record.charter_type,
        client_name=orm_record.client_name,
        description=orm_record.description,
        recognition_date=orm_record.recognition_date,
        trigger=domain.RecognitionTrigger(orm_record.trigger) if orm_record.trigger else None,
        recognized_by=orm_record.recognized_by,
        created_at=orm_record.created_at,
    )
