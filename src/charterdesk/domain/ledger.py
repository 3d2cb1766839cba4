"""Ledger documents and their conversion to matchable system records.

A ``LedgerDocument`` is either an income receipt or an expense, told apart by
``kind``. Code that consumes documents handles both kinds explicitly and
fails loudly on anything else.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from charterdesk.database.base import Database
from charterdesk.domain.entities import (
    DocumentKind,
    LedgerDocument,
    SystemRecord,
    TransactionType,
)
from charterdesk.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    document_not_found,
)

logger = logging.getLogger(__name__)

PAID = "paid"
DOCUMENT_STATUSES = ("draft", "approved", PAID, "void")


def _single_project(document: LedgerDocument) -> Optional[int]:
    unique = list(dict.fromkeys(document.project_ids))
    return unique[0] if len(unique) == 1 else None


def document_record_type(kind: DocumentKind) -> TransactionType:
    if kind == DocumentKind.INCOME:
        return TransactionType.RECEIPT
    if kind == DocumentKind.EXPENSE:
        return TransactionType.EXPENSE
    raise ValueError(f"Unhandled document kind: {kind!r}")


def document_to_system_record(
    document: LedgerDocument, is_reconciled: bool = False
) -> SystemRecord:
    """Express a ledger document as a candidate for bank matching.

    Income becomes a positive receipt described by its reference. Expenses
    become a negative amount using net payable (what actually left the bank)
    when known, described by the supplier invoice number or notes.
    """
    if document.kind == DocumentKind.INCOME:
        return SystemRecord(
            id=document.id,
            record_type=TransactionType.RECEIPT,
            reference=document.number,
            date=document.document_date,
            amount=abs(document.total_amount),
            counterparty=document.counterparty,
            description=f"Payment for {document.reference}" if document.reference else None,
            project_id=_single_project(document),
            is_reconciled=is_reconciled,
        )

    if document.kind == DocumentKind.EXPENSE:
        amount = document.net_payable if document.net_payable is not None else document.total_amount
        if document.supplier_invoice_number:
            description = f"Invoice {document.supplier_invoice_number}"
        else:
            description = document.notes
        return SystemRecord(
            id=document.id,
            record_type=TransactionType.EXPENSE,
            reference=document.number,
            date=document.document_date,
            amount=-abs(amount),
            counterparty=document.counterparty,
            description=description,
            project_id=_single_project(document),
            is_reconciled=is_reconciled,
        )

    raise ValueError(f"Unhandled document kind: {document.kind!r}")


def unreconciled_records(
    documents: Iterable[LedgerDocument],
    matched: set[tuple[TransactionType, int]],
    project_id: Optional[int] = None,
) -> list[SystemRecord]:
    """Paid documents not yet matched to any bank line, as system records."""
    records = []
    for document in documents:
        if document.status != PAID:
            continue
        if (document_record_type(document.kind), document.id) in matched:
            continue
        if project_id is not None and project_id not in document.project_ids:
            continue
        records.append(document_to_system_record(document))
    return records


class LedgerService:
    """Service for income and expense documents."""

    def __init__(self, db: Database):
        self.db = db

    def create_document(
        self,
        kind: DocumentKind,
        number: str,
        document_date: date,
        total_amount: Decimal,
        status: str = PAID,
        counterparty: Optional[str] = None,
        reference: Optional[str] = None,
        net_payable: Optional[Decimal] = None,
        supplier_invoice_number: Optional[str] = None,
        notes: Optional[str] = None,
        project_ids: tuple[int, ...] = (),
    ) -> int:
        """Create a receipt or expense document.

        Raises:
            ValidationError: On a blank number, non-positive total, unknown
                status or expense-only fields on income
            ConflictError: If a document of the same kind has the same number
        """
        kind = DocumentKind(kind)
        number = number.strip()
        if not number:
            raise ValidationError("Document number is required")
        if total_amount <= 0:
            raise ValidationError(f"Document total must be positive, got {total_amount}")
        if status not in DOCUMENT_STATUSES:
            raise ValidationError(
                f"Invalid document status '{status}'. Must be one of: {', '.join(DOCUMENT_STATUSES)}"
            )
        if kind == DocumentKind.INCOME and (
            net_payable is not None or supplier_invoice_number is not None
        ):
            raise ValidationError("Net payable and supplier invoice apply to expenses only")
        if net_payable is not None and net_payable < 0:
            raise ValidationError(f"Net payable must not be negative, got {net_payable}")

        for existing in self.db.list_ledger_documents(kind=kind):
            if existing.number == number:
                raise ConflictError(f"{kind.value.capitalize()} document '{number}' already exists")

        document_id = self.db.create_ledger_document(
            kind=kind,
            number=number,
            document_date=document_date,
            total_amount=total_amount,
            status=status,
            counterparty=counterparty,
            reference=reference,
            net_payable=net_payable,
            supplier_invoice_number=supplier_invoice_number,
            notes=notes,
            project_ids=project_ids,
        )
        logger.info("Created %s document %s (%s)", kind.value, number, document_id)
        return document_id

    def get_document(self, document_id: int) -> LedgerDocument:
        document = self.db.get_ledger_document(document_id)
        if document is None:
            raise NotFoundError(document_not_found(document_id))
        return document

    def list_documents(
        self, kind: Optional[DocumentKind] = None, status: Optional[str] = None
    ) -> list[LedgerDocument]:
        return self.db.list_ledger_documents(kind=kind, status=status)

    def candidate_records(self, project_id: Optional[int] = None) -> list[SystemRecord]:
        """Paid, unmatched documents ready to be suggested for bank lines."""
        return unreconciled_records(
            self.db.list_ledger_documents(status=PAID),
            self.db.list_matched_records(),
            project_id=project_id,
        )
