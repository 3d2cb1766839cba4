"""Tests for the matching engine."""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from charterdesk.domain.entities import (
    AmountSign,
    BankFeedLine,
    BankFeedStatus,
    BankMatch,
    MatchMethod,
    MatchingRule,
    SystemRecord,
    TransactionType,
)
from charterdesk.domain.errors import ValidationError
from charterdesk.domain.matching import (
    AMOUNT_CLOSE,
    AMOUNT_EXACT,
    COUNTERPARTY_MATCH,
    DATE_CLOSE,
    DATE_EXACT,
    DEFAULT_CONFIG,
    REFERENCE_MATCH,
    RULE_MATCH,
    ConfidenceBand,
    amounts_match,
    auto_match_lines,
    calculate_match_score,
    compute_reconciliation_stats,
    confidence_band,
    evaluate_rule,
    extract_references,
    find_matching_rule,
    generate_suggested_matches,
    load_reconciliation_config,
)


def _line(amount, line_id=1, transaction_date=date(2025, 5, 10), description="TRANSFER", **kwargs):
    return BankFeedLine(
        id=line_id,
        bank_account_id=1,
        currency="THB",
        transaction_date=transaction_date,
        value_date=transaction_date,
        description=description,
        amount=Decimal(str(amount)),
        **kwargs,
    )


def _record(amount, record_id=1, record_type=TransactionType.EXPENSE, record_date=date(2025, 5, 10), **kwargs):
    kwargs.setdefault("reference", f"DOC-{record_id}")
    return SystemRecord(
        id=record_id,
        record_type=record_type,
        date=record_date,
        amount=Decimal(str(amount)),
        **kwargs,
    )


def _match(line_id, amount, match_id=1):
    return BankMatch(
        id=match_id,
        bank_feed_line_id=line_id,
        system_record_type=TransactionType.EXPENSE,
        system_record_id=99,
        matched_amount=Decimal(str(amount)),
        amount_difference=Decimal("0"),
        matched_by="user",
        matched_at=datetime.now(UTC),
        match_score=0,
        match_method=MatchMethod.MANUAL,
    )


class TestScoring:
    def test_full_match_is_capped_at_100(self):
        line = _line(-1000, description="PAYMENT INV-2025-001 MARINA SUPPLY")
        record = _record(-1000, reference="INV-2025-001", counterparty="Marina Supply Co")

        result = calculate_match_score(line, record)

        assert result.score == 100
        assert result.reasons == (AMOUNT_EXACT, DATE_EXACT, REFERENCE_MATCH, COUNTERPARTY_MATCH)

    def test_close_amount_and_date(self):
        line = _line(-1000, transaction_date=date(2025, 5, 12))
        record = _record(-995)

        result = calculate_match_score(line, record)

        assert result.score == 30
        assert result.reasons == (AMOUNT_CLOSE, DATE_CLOSE)

    def test_wrong_direction_is_penalised(self):
        line = _line(-500)
        receipt = _record(500, record_type=TransactionType.RECEIPT)

        result = calculate_match_score(line, receipt)

        assert result.score == 40
        assert AMOUNT_EXACT in result.reasons

    def test_date_outside_window_scores_nothing(self):
        result = calculate_match_score(
            _line(-1000, transaction_date=date(2025, 5, 20)), _record(-250)
        )

        assert result.score == 0
        assert result.reasons == ()

    def test_amounts_match_tolerance(self):
        assert amounts_match(Decimal("1000"), Decimal("990"), Decimal("0.01"))
        assert not amounts_match(Decimal("1000"), Decimal("980"), Decimal("0.01"))

    def test_extract_references(self):
        refs = extract_references("PMT REC-2025-0012 and inv2025-001")
        assert "REC20250012" in refs
        assert "INV2025001" in refs

    def test_confidence_band(self):
        assert confidence_band(95) == ConfidenceBand.HIGH
        assert confidence_band(80) == ConfidenceBand.HIGH
        assert confidence_band(60) == ConfidenceBand.MEDIUM
        assert confidence_band(31) == ConfidenceBand.LOW


class TestRules:
    def test_evaluate_rule_conditions(self):
        rule = MatchingRule(
            id=1,
            name="Marina",
            description_contains=("marina",),
            amount_min=Decimal("100"),
            amount_max=Decimal("2000"),
            amount_sign=AmountSign.DEBIT,
            bank_account_ids=(1,),
        )

        assert evaluate_rule(rule, _line(-500, description="MARINA FEES"))
        assert not evaluate_rule(rule, _line(500, description="MARINA FEES"))
        assert not evaluate_rule(rule, _line(-50, description="MARINA FEES"))
        assert not evaluate_rule(rule, _line(-5000, description="MARINA FEES"))
        assert not evaluate_rule(rule, _line(-500, description="FUEL"))

    def test_highest_priority_enabled_rule_wins(self):
        low = MatchingRule(id=1, name="low", priority=1)
        high = MatchingRule(id=2, name="high", priority=10)
        disabled = MatchingRule(id=3, name="off", priority=50, enabled=False)

        assert find_matching_rule([low, high, disabled], _line(-10)).id == 2
        assert find_matching_rule([disabled], _line(-10)) is None

    def test_rule_boosts_suggested_type(self):
        rule = MatchingRule(
            id=1,
            name="Marina",
            description_contains=("MARINA",),
            suggest_type=TransactionType.EXPENSE,
        )
        line = _line(-1000, description="MARINA FEES")

        suggestions = generate_suggested_matches(line, [_record(-1000)], [rule])

        assert suggestions[0].match_score == 80
        assert RULE_MATCH in suggestions[0].match_reasons


class TestSuggestions:
    def test_floor_excludes_weak_candidates(self):
        line = _line(-1000)
        weak = _record(-400, record_id=1)
        strong = _record(-1000, record_id=2)

        suggestions = generate_suggested_matches(line, [weak, strong])

        assert [s.system_record_id for s in suggestions] == [2]
        assert all(s.match_score > DEFAULT_CONFIG.suggestion_floor for s in suggestions)

    def test_suggestions_are_ranked_and_capped(self):
        line = _line(-1000)
        records = [
            _record(-1000, record_id=i, record_date=date(2025, 5, 10 + (i % 3)))
            for i in range(1, 8)
        ]

        suggestions = generate_suggested_matches(line, records)

        assert len(suggestions) == 5
        scores = [s.match_score for s in suggestions]
        assert scores == sorted(scores, reverse=True)
        assert all(s.amount == Decimal("1000") for s in suggestions)

    def test_reconciled_records_are_skipped(self):
        record = _record(-1000, is_reconciled=True)

        assert generate_suggested_matches(_line(-1000), [record]) == []


class TestAutoMatch:
    def test_high_confidence_match_is_accepted_once(self):
        lines = [
            _line(5000, line_id=1, description="REC-2025-0001 ABC TRAVEL"),
            _line(5000, line_id=2, description="REC-2025-0001 ABC TRAVEL"),
        ]
        receipt = _record(
            5000,
            record_type=TransactionType.RECEIPT,
            reference="REC-2025-0001",
            counterparty="ABC Travel",
        )

        result = auto_match_lines(lines, [receipt])

        assert len(result.matches) == 1
        request = result.matches[0]
        assert request.bank_feed_line_id == 1
        assert request.match_method == MatchMethod.SUGGESTED
        assert request.matched_by == "system"
        assert request.matched_amount == Decimal("5000")
        assert result.suggestions[2] == []

    def test_below_threshold_is_left_as_suggestion(self):
        result = auto_match_lines([_line(-1000)], [_record(-1000)])

        assert result.matches == []
        assert result.suggestions[1][0].match_score == 60

    def test_rule_threshold_replaces_default(self):
        rule = MatchingRule(id=4, name="Fuel", description_contains=("FUEL",), auto_match_if_confidence=50)

        result = auto_match_lines([_line(-1000, description="FUEL")], [_record(-1000)], [rule])

        assert len(result.matches) == 1
        assert result.matches[0].match_method == MatchMethod.RULE
        assert result.matches[0].rule_id == 4

    def test_matched_and_ignored_lines_are_skipped(self):
        matched = _line(-1000, line_id=1, matches=(_match(1, 1000),))
        ignored = _line(-1000, line_id=2, ignored_at=datetime.now(UTC))
        rule = MatchingRule(id=1, name="all", auto_match_if_confidence=0)

        result = auto_match_lines([matched, ignored], [_record(-1000)], [rule])

        assert result.matches == []
        assert result.suggestions == {}


class TestStats:
    def test_compute_reconciliation_stats(self):
        lines = [
            _line(-1000, line_id=1, matches=(_match(1, 1000),)),
            _line(-1000, line_id=2, matches=(_match(2, 400),)),
            _line(500, line_id=3),
            _line(-200, line_id=4, ignored_at=datetime.now(UTC)),
        ]

        stats = compute_reconciliation_stats(lines)

        assert stats.total_lines == 4
        assert stats.matched == 1
        assert stats.partially_matched == 1
        assert stats.unmatched == 1
        assert stats.ignored == 1
        assert stats.total_amount == Decimal("2700")
        assert stats.matched_amount == Decimal("1400")
        assert stats.unallocated_amount == Decimal("1100")
        assert stats.reconciled_percent == 33.3

    def test_line_status_is_derived(self):
        assert _line(-10).status == BankFeedStatus.UNMATCHED
        assert _line(-10, matches=(_match(1, 4),)).status == BankFeedStatus.PARTIALLY_MATCHED
        assert _line(-10, matches=(_match(1, 10),)).status == BankFeedStatus.MATCHED


class TestConfig:
    def test_defaults_without_environment(self, monkeypatch):
        monkeypatch.delenv("CHARTERDESK_AUTO_MATCH_THRESHOLD", raising=False)
        monkeypatch.delenv("CHARTERDESK_DATE_WINDOW_DAYS", raising=False)
        monkeypatch.delenv("CHARTERDESK_AMOUNT_TOLERANCE", raising=False)

        assert load_reconciliation_config() == DEFAULT_CONFIG

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CHARTERDESK_AUTO_MATCH_THRESHOLD", "70")
        monkeypatch.setenv("CHARTERDESK_DATE_WINDOW_DAYS", "5")
        monkeypatch.setenv("CHARTERDESK_AMOUNT_TOLERANCE", "0.02")

        config = load_reconciliation_config()

        assert config.auto_match_threshold == 70
        assert config.date_window_days == 5
        assert config.amount_tolerance == Decimal("0.02")
        assert config.weight_amount_exact == DEFAULT_CONFIG.weight_amount_exact

    @pytest.mark.parametrize(
        "name,value",
        [
            ("CHARTERDESK_AUTO_MATCH_THRESHOLD", "abc"),
            ("CHARTERDESK_AUTO_MATCH_THRESHOLD", "150"),
            ("CHARTERDESK_DATE_WINDOW_DAYS", "-1"),
            ("CHARTERDESK_AMOUNT_TOLERANCE", "1.5"),
        ],
    )
    def test_invalid_overrides_raise(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValidationError):
            load_reconciliation_config()
