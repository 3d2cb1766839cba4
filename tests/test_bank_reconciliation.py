"""Tests for the bank reconciliation service."""

from datetime import date
from decimal import Decimal

import pytest

from charterdesk.domain.bank_reconciliation import BankReconciliationService
from charterdesk.domain.entities import (
    BankFeedStatus,
    DocumentKind,
    MatchMethod,
    TransactionType,
)
from charterdesk.domain.errors import ConflictError, NotFoundError, ValidationError
from charterdesk.domain.matching import ReconciliationConfig


@pytest.fixture
def marina_expense(ledger_service):
    return ledger_service.create_document(
        kind=DocumentKind.EXPENSE,
        number="EXP-1",
        document_date=date(2025, 5, 10),
        total_amount=Decimal("1000"),
        counterparty="Marina Supply",
    )


@pytest.fixture
def agency_receipt(ledger_service):
    return ledger_service.create_document(
        kind=DocumentKind.INCOME,
        number="REC-2025-0001",
        document_date=date(2025, 5, 12),
        total_amount=Decimal("5000"),
        counterparty="ABC Travel",
    )


def test_get_missing_line_raises(reconciliation_service):
    with pytest.raises(NotFoundError):
        reconciliation_service.get_line(999)


def test_suggest_ranks_paid_documents(reconciliation_service, ledger_service, make_line, marina_expense):
    ledger_service.create_document(
        kind=DocumentKind.EXPENSE,
        number="EXP-2",
        document_date=date(2025, 5, 10),
        total_amount=Decimal("1000"),
        status="draft",
    )
    line = make_line(-1000, description="MARINA SUPPLY PAYMENT")

    suggestions = reconciliation_service.suggest(line.id)

    assert [(s.system_record_type, s.system_record_id) for s in suggestions] == [
        (TransactionType.EXPENSE, marina_expense)
    ]
    assert suggestions[0].match_score == 75


def test_accept_suggestion_matches_line(reconciliation_service, ledger_service, make_line, marina_expense):
    line = make_line(-1000, description="MARINA SUPPLY PAYMENT")

    match = reconciliation_service.accept_suggestion(line.id, TransactionType.EXPENSE, marina_expense)

    assert match.id > 0
    assert match.matched_amount == Decimal("1000")
    assert match.match_method == MatchMethod.SUGGESTED
    assert reconciliation_service.get_line(line.id).status == BankFeedStatus.MATCHED
    assert ledger_service.candidate_records() == []
    assert reconciliation_service.suggest(line.id) == []


def test_accept_unsuggested_record_fails(reconciliation_service, make_line, marina_expense):
    line = make_line(-1000, description="FUEL")

    with pytest.raises(NotFoundError):
        reconciliation_service.accept_suggestion(line.id, TransactionType.RECEIPT, marina_expense)


def test_split_match_and_remove(reconciliation_service, make_line):
    line = make_line(-1000)

    first = reconciliation_service.create_match(line.id, TransactionType.EXPENSE, 1, Decimal("400"))
    second = reconciliation_service.create_match(line.id, TransactionType.EXPENSE, 2)

    assert second.matched_amount == Decimal("600")
    assert reconciliation_service.get_line(line.id).status == BankFeedStatus.MATCHED

    updated = reconciliation_service.remove_match(first.id)
    assert updated.status == BankFeedStatus.PARTIALLY_MATCHED
    assert updated.remaining_amount == Decimal("400")
    assert reconciliation_service.get_line(line.id).remaining_amount == Decimal("400")


def test_over_match_is_rejected(reconciliation_service, make_line):
    line = make_line(-1000)
    reconciliation_service.create_match(line.id, TransactionType.EXPENSE, 1, Decimal("900"))

    with pytest.raises(ValidationError):
        reconciliation_service.create_match(line.id, TransactionType.EXPENSE, 2, Decimal("200"))

    reconciliation_service.create_match(line.id, TransactionType.EXPENSE, 2, Decimal("100"))
    with pytest.raises(ValidationError, match="fully matched"):
        reconciliation_service.create_match(line.id, TransactionType.EXPENSE, 3, Decimal("1"))


def test_remove_missing_match_raises(reconciliation_service):
    with pytest.raises(NotFoundError):
        reconciliation_service.remove_match(42)


def test_create_new_uses_remaining_amount(reconciliation_service, make_line):
    line = make_line(-1000, description="HARDWARE STORE")
    reconciliation_service.create_match(line.id, TransactionType.EXPENSE, 1, Decimal("250"))

    request = reconciliation_service.create_new(line.id, TransactionType.EXPENSE)

    assert request.amount == Decimal("750")
    assert request.description == "HARDWARE STORE"


def test_ignore_and_unignore(reconciliation_service, make_line):
    line = make_line(-35, description="BANK FEE")

    reconciliation_service.ignore_line(line.id, "bank charge")
    ignored = reconciliation_service.get_line(line.id)
    assert ignored.status == BankFeedStatus.IGNORED
    assert ignored.ignored_reason == "bank charge"
    assert ignored.ignored_by == "user"

    with pytest.raises(ConflictError):
        reconciliation_service.ignore_line(line.id)
    with pytest.raises(ConflictError):
        reconciliation_service.create_match(line.id, TransactionType.EXPENSE, 1, Decimal("35"))

    reconciliation_service.unignore_line(line.id)
    restored = reconciliation_service.get_line(line.id)
    assert restored.status == BankFeedStatus.UNMATCHED
    assert restored.ignored_reason is None

    with pytest.raises(ConflictError):
        reconciliation_service.unignore_line(line.id)


def test_ignore_line_with_matches_fails(reconciliation_service, make_line):
    line = make_line(-1000)
    reconciliation_service.create_match(line.id, TransactionType.EXPENSE, 1, Decimal("400"))

    with pytest.raises(ConflictError):
        reconciliation_service.ignore_line(line.id, "duplicate")


def test_set_notes(reconciliation_service, make_line):
    line = make_line(-10)

    reconciliation_service.set_notes(line.id, "check with skipper")
    assert reconciliation_service.get_line(line.id).notes == "check with skipper"

    reconciliation_service.set_notes(line.id, "")
    assert reconciliation_service.get_line(line.id).notes is None


def test_list_lines_filters_by_status(reconciliation_service, make_line):
    matched = make_line(-100)
    open_line = make_line(-200)
    reconciliation_service.create_match(matched.id, TransactionType.EXPENSE, 1)

    unmatched = reconciliation_service.list_lines(status=BankFeedStatus.UNMATCHED)

    assert [line.id for line in unmatched] == [open_line.id]


def test_auto_match_dry_run_then_write(reconciliation_service, make_line, agency_receipt):
    line = make_line(5000, transaction_date=date(2025, 5, 12), description="REC-2025-0001 ABC TRAVEL")

    preview = reconciliation_service.auto_match(dry_run=True)
    assert len(preview) == 1
    assert preview[0].id == 0
    assert reconciliation_service.get_line(line.id).status == BankFeedStatus.UNMATCHED

    written = reconciliation_service.auto_match()
    assert len(written) == 1
    assert written[0].id > 0
    assert written[0].matched_by == "system"
    assert written[0].system_record_id == agency_receipt
    assert reconciliation_service.get_line(line.id).status == BankFeedStatus.MATCHED

    assert reconciliation_service.auto_match() == []


def test_auto_match_respects_configured_threshold(temp_db, make_line, marina_expense):
    line = make_line(-1000, description="MARINA SUPPLY PAYMENT")

    strict = BankReconciliationService(temp_db)
    assert strict.auto_match() == []

    lenient = BankReconciliationService(temp_db, config=ReconciliationConfig(auto_match_threshold=70))
    matches = lenient.auto_match()
    assert [m.bank_feed_line_id for m in matches] == [line.id]


def test_auto_match_skips_partially_matched_lines(reconciliation_service, make_line, agency_receipt):
    line = make_line(5000, transaction_date=date(2025, 5, 12), description="REC-2025-0001 ABC TRAVEL")
    reconciliation_service.create_match(line.id, TransactionType.RECEIPT, 77, Decimal("100"))

    assert reconciliation_service.auto_match() == []


def test_stats(reconciliation_service, make_line):
    full = make_line(-1000)
    partial = make_line(-1000)
    make_line(500)
    fee = make_line(-20)
    reconciliation_service.create_match(full.id, TransactionType.EXPENSE, 1)
    reconciliation_service.create_match(partial.id, TransactionType.EXPENSE, 2, Decimal("250"))
    reconciliation_service.ignore_line(fee.id)

    stats = reconciliation_service.stats()

    assert stats.total_lines == 4
    assert stats.matched == 1
    assert stats.partially_matched == 1
    assert stats.unmatched == 1
    assert stats.ignored == 1
    assert stats.reconciled_percent == 33.3
    assert stats.unallocated_amount == Decimal("1250")
