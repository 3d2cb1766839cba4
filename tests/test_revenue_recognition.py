"""Tests for deferred charter revenue."""

from datetime import date
from decimal import Decimal

import pytest

from charterdesk.domain.entities import RecognitionStatus, RecognitionTrigger
from charterdesk.domain.errors import ConflictError, NotFoundError, ValidationError
from charterdesk.domain.revenue_recognition import (
    DEFAULT_REVENUE_ACCOUNT,
    determine_initial_status,
    receipt_recognition_notice,
    revenue_account_for,
)

TODAY = date(2025, 5, 15)


class TestRules:
    def test_initial_status(self):
        assert determine_initial_status(None, TODAY) == RecognitionStatus.NEEDS_REVIEW
        assert determine_initial_status(date(2025, 5, 15), TODAY) == RecognitionStatus.RECOGNIZED
        assert determine_initial_status(date(2025, 5, 1), TODAY) == RecognitionStatus.RECOGNIZED
        assert determine_initial_status(date(2025, 5, 16), TODAY) == RecognitionStatus.PENDING

    def test_revenue_accounts(self):
        assert revenue_account_for("day_charter") == "4010"
        assert revenue_account_for("crewed_charter") == "4060"
        assert revenue_account_for("outsource_commission") == "4070"
        assert revenue_account_for("fishing_trip") == DEFAULT_REVENUE_ACCOUNT
        assert revenue_account_for(None) == DEFAULT_REVENUE_ACCOUNT

    def test_notice_for_future_charter(self):
        notice = receipt_recognition_notice("paid", date(2025, 5, 16), TODAY)

        assert notice.status == RecognitionStatus.PENDING
        assert notice.days_until == 1
        assert notice.message == "Revenue will be recognized on 16 May 2025 (1 day)"

        notice = receipt_recognition_notice("approved", date(2025, 5, 25), TODAY)
        assert notice.message.endswith("(10 days)")

    def test_notice_for_completed_charter(self):
        notice = receipt_recognition_notice("paid", date(2025, 5, 3), TODAY)

        assert notice.status == RecognitionStatus.RECOGNIZED
        assert notice.message == "Revenue recognized (Charter completed: 03 May 2025)"

    def test_notice_without_dates(self):
        notice = receipt_recognition_notice("paid", None, TODAY)

        assert notice.status == RecognitionStatus.NEEDS_REVIEW
        assert "deferred until review" in notice.message

    @pytest.mark.parametrize("status", ["draft", "void"])
    def test_no_notice_for_draft_or_void(self, status):
        assert receipt_recognition_notice(status, date(2025, 5, 16), TODAY) is None


class TestRevenueRecognitionService:
    def test_future_charter_is_pending(self, revenue_service, sample_boat):
        record_id = revenue_service.create_record(
            Decimal("30000"),
            boat_id=sample_boat.id,
            charter_date_from=date(2025, 5, 20),
            charter_date_to=date(2025, 5, 22),
            charter_type="overnight_charter",
            client_name="ABC Travel",
            today=TODAY,
        )

        record = revenue_service.get_record(record_id)
        assert record.status == RecognitionStatus.PENDING
        assert record.revenue_account == "4020"
        assert record.recognition_date is None
        assert record.trigger is None

    def test_past_charter_is_recognized_at_once(self, revenue_service):
        record_id = revenue_service.create_record(
            Decimal("8000"), charter_date_to=date(2025, 5, 10), today=TODAY
        )

        record = revenue_service.get_record(record_id)
        assert record.status == RecognitionStatus.RECOGNIZED
        assert record.recognition_date == TODAY
        assert record.trigger == RecognitionTrigger.AUTOMATIC

    def test_missing_dates_need_review(self, revenue_service):
        record_id = revenue_service.create_record(Decimal("500"), today=TODAY)

        assert revenue_service.get_record(record_id).status == RecognitionStatus.NEEDS_REVIEW

    def test_create_validation(self, revenue_service):
        with pytest.raises(ValidationError):
            revenue_service.create_record(Decimal("0"))
        with pytest.raises(ValidationError):
            revenue_service.create_record(
                Decimal("10"), charter_date_from=date(2025, 5, 5), charter_date_to=date(2025, 5, 1)
            )
        with pytest.raises(NotFoundError):
            revenue_service.create_record(Decimal("10"), boat_id=999)

    def test_manual_and_immediate_recognition(self, revenue_service):
        manual = revenue_service.create_record(Decimal("100"), charter_date_to=date(2025, 6, 1), today=TODAY)
        immediate = revenue_service.create_record(Decimal("100"), charter_date_to=date(2025, 6, 1), today=TODAY)

        record = revenue_service.recognize(manual, recognition_date=TODAY)
        assert record.status == RecognitionStatus.RECOGNIZED
        assert record.trigger == RecognitionTrigger.MANUAL
        assert record.recognition_date == TODAY

        record = revenue_service.recognize(immediate, trigger=RecognitionTrigger.IMMEDIATE)
        assert record.status == RecognitionStatus.MANUAL_RECOGNIZED

        with pytest.raises(ConflictError):
            revenue_service.recognize(manual)

    def test_process_automatic(self, revenue_service):
        due = revenue_service.create_record(Decimal("100"), charter_date_to=date(2025, 5, 20), today=TODAY)
        later = revenue_service.create_record(Decimal("100"), charter_date_to=date(2025, 6, 20), today=TODAY)
        revenue_service.create_record(Decimal("100"), today=TODAY)

        recognized = revenue_service.process_automatic(today=date(2025, 5, 21))

        assert recognized == [due]
        record = revenue_service.get_record(due)
        assert record.status == RecognitionStatus.RECOGNIZED
        assert record.recognition_date == date(2025, 5, 20)
        assert record.recognized_by == "system"
        assert revenue_service.get_record(later).status == RecognitionStatus.PENDING

    def test_update_charter_dates(self, revenue_service):
        record_id = revenue_service.create_record(Decimal("100"), today=TODAY)

        record = revenue_service.update_charter_dates(
            record_id, date(2025, 6, 1), date(2025, 6, 3), today=TODAY
        )
        assert record.status == RecognitionStatus.PENDING
        assert record.charter_date_to == date(2025, 6, 3)

        record = revenue_service.update_charter_dates(
            record_id, date(2025, 5, 1), date(2025, 5, 3), today=TODAY
        )
        assert record.status == RecognitionStatus.RECOGNIZED

        with pytest.raises(ConflictError):
            revenue_service.update_charter_dates(record_id, None, None, today=TODAY)

    def test_summary(self, revenue_service):
        revenue_service.create_record(Decimal("100"), charter_date_to=date(2025, 6, 1), today=TODAY)
        revenue_service.create_record(Decimal("250.50"), today=TODAY)
        revenue_service.create_record(Decimal("999"), charter_date_to=date(2025, 5, 1), today=TODAY)

        summary = revenue_service.summary()

        assert summary.total_deferred == Decimal("350.50")
        assert summary.pending_count == 1
        assert summary.needs_review_count == 1

    def test_list_by_status(self, revenue_service):
        pending = revenue_service.create_record(Decimal("100"), charter_date_to=date(2025, 6, 1), today=TODAY)
        revenue_service.create_record(Decimal("100"), today=TODAY)

        records = revenue_service.list_records(RecognitionStatus.PENDING)

        assert [r.id for r in records] == [pending]
