"""Tests for the match workbench."""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from charterdesk.domain.entities import (
    BankFeedLine,
    BankFeedStatus,
    BankMatch,
    MatchMethod,
    SuggestedMatch,
    TransactionType,
)
from charterdesk.domain.errors import NotFoundError, ValidationError
from charterdesk.domain.workbench import MatchWorkbench


def _line(amount="-1000"):
    return BankFeedLine(
        id=1,
        bank_account_id=1,
        currency="THB",
        transaction_date=date(2025, 5, 10),
        value_date=date(2025, 5, 10),
        description="MARINA SUPPLY",
        amount=Decimal(amount),
        reference="BANKREF-1",
    )


def _suggestion(record_id, amount, score=95):
    return SuggestedMatch(
        system_record_type=TransactionType.EXPENSE,
        system_record_id=record_id,
        amount=Decimal(amount),
        date=date(2025, 5, 10),
        match_score=score,
    )


def test_split_allocation_across_two_records():
    workbench = MatchWorkbench(_line())

    first = workbench.create_match(TransactionType.EXPENSE, 11, Decimal("400"))
    assert workbench.line.status == BankFeedStatus.PARTIALLY_MATCHED
    assert workbench.remaining_amount == Decimal("600")
    assert workbench.progress == pytest.approx(0.4)
    assert not workbench.is_reconcilable

    workbench.create_match(TransactionType.EXPENSE, 12, Decimal("600"))
    assert workbench.line.status == BankFeedStatus.MATCHED
    assert workbench.remaining_amount == Decimal("0")
    assert workbench.is_reconcilable

    workbench.remove_match(first.id)
    assert workbench.line.status == BankFeedStatus.PARTIALLY_MATCHED
    assert workbench.remaining_amount == Decimal("400")
    assert [m.system_record_id for m in workbench.matches] == [12]


def test_manual_matches_are_recorded_as_manual():
    workbench = MatchWorkbench(_line(), matched_by="alice")

    match = workbench.create_match(TransactionType.EXPENSE, 11, Decimal("250"), project_id=3)

    assert match.match_method == MatchMethod.MANUAL
    assert match.match_score == 0
    assert match.matched_by == "alice"
    assert match.project_id == 3


def test_local_match_timestamp_is_utc():
    before = datetime.now(UTC)

    match = MatchWorkbench(_line()).create_match(TransactionType.EXPENSE, 11, Decimal("250"))

    assert match.matched_at.tzinfo is not None
    assert match.matched_at.utcoffset() == timedelta(0)
    assert match.matched_at >= before


def test_accept_full_suggestion():
    suggestion = _suggestion(11, "1000")
    workbench = MatchWorkbench(_line(), suggestions=[suggestion])

    match = workbench.accept_suggestion(suggestion)

    assert match.matched_amount == Decimal("1000")
    assert match.match_score == 95
    assert match.match_method == MatchMethod.SUGGESTED
    assert workbench.line.status == BankFeedStatus.MATCHED
    assert workbench.suggestions == []


def test_accept_suggestion_is_capped_at_remaining():
    workbench = MatchWorkbench(_line())
    workbench.create_match(TransactionType.EXPENSE, 11, Decimal("700"))

    match = workbench.accept_suggestion(_suggestion(12, "1000"))

    assert match.matched_amount == Decimal("300")
    assert match.amount_difference == Decimal("0")
    assert workbench.remaining_amount == Decimal("0")


def test_accept_on_fully_matched_line_fails():
    workbench = MatchWorkbench(_line())
    workbench.create_match(TransactionType.EXPENSE, 11, Decimal("1000"))

    with pytest.raises(ValidationError):
        workbench.accept_suggestion(_suggestion(12, "50"))


@pytest.mark.parametrize("amount", ["0", "-5", "1000.01"])
def test_create_match_rejects_bad_amounts(amount):
    workbench = MatchWorkbench(_line())

    with pytest.raises(ValidationError):
        workbench.create_match(TransactionType.EXPENSE, 11, Decimal(amount))
    assert workbench.matches == ()


def test_remove_unknown_match_fails():
    with pytest.raises(NotFoundError):
        MatchWorkbench(_line()).remove_match(42)


def test_callbacks_receive_writes():
    created, removed, opened = [], [], []

    def on_create(request):
        created.append(request)
        return BankMatch(
            id=100 + len(created),
            bank_feed_line_id=request.bank_feed_line_id,
            system_record_type=request.system_record_type,
            system_record_id=request.system_record_id,
            matched_amount=request.matched_amount,
            amount_difference=request.amount_difference,
            matched_by=request.matched_by,
            matched_at=datetime.now(UTC),
            match_score=request.match_score,
            match_method=request.match_method,
        )

    workbench = MatchWorkbench(
        _line(),
        on_create_match=on_create,
        on_remove_match=removed.append,
        on_create_new=opened.append,
    )

    match = workbench.create_match(TransactionType.EXPENSE, 11, Decimal("400"))
    assert match.id == 101
    assert created[0].matched_amount == Decimal("400")

    workbench.remove_match(101)
    assert removed == [101]

    request = workbench.create_new(TransactionType.EXPENSE)
    assert opened == [request]


def test_create_new_prefills_remaining_amount():
    workbench = MatchWorkbench(_line())
    workbench.create_match(TransactionType.EXPENSE, 11, Decimal("400"))

    request = workbench.create_new(TransactionType.EXPENSE)

    assert request.amount == Decimal("600")
    assert request.date == date(2025, 5, 10)
    assert request.description == "MARINA SUPPLY"
    assert request.reference == "BANKREF-1"
    assert request.bank_feed_line_id == 1
