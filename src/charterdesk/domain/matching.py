"""Bank reconciliation matching engine.

Scores candidate system records against a bank line, applies user matching
rules, ranks suggestions and runs batch auto-matching. All functions here are
pure; persistence lives in ``bank_reconciliation``.
"""

import logging
import os
import re
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, Optional, Sequence

from charterdesk.domain.entities import (
    AmountSign,
    BankFeedLine,
    BankFeedStatus,
    MatchMethod,
    MatchRequest,
    MatchingRule,
    SuggestedMatch,
    SystemRecord,
    TransactionType,
)
from charterdesk.domain.errors import ValidationError

logger = logging.getLogger(__name__)

AMOUNT_EXACT = "amount_exact"
AMOUNT_CLOSE = "amount_close"
DATE_EXACT = "date_exact"
DATE_CLOSE = "date_close"
REFERENCE_MATCH = "reference_match"
DESCRIPTION_MATCH = "description_match"
COUNTERPARTY_MATCH = "counterparty_match"
RULE_MATCH = "rule_match"

SYSTEM_USER = "system"


@dataclass(frozen=True)
class ReconciliationConfig:
    """Scoring weights, tolerances and thresholds for matching."""

    weight_amount_exact: int = 40
    weight_amount_close: int = 20
    weight_date_exact: int = 20
    weight_date_close: int = 10
    weight_reference: int = 30
    weight_description: int = 15
    weight_counterparty: int = 15
    weight_rule: int = 20
    wrong_direction_penalty: int = 20
    amount_tolerance: Decimal = Decimal("0.01")
    date_window_days: int = 3
    auto_match_threshold: int = 85
    suggestion_floor: int = 30
    max_suggestions: int = 5
    high_confidence: int = 80
    medium_confidence: int = 50


DEFAULT_CONFIG = ReconciliationConfig()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer, got '{raw}'")
    if value < 0:
        raise ValidationError(f"{name} must not be negative, got {value}")
    return value


def _env_decimal(name: str, default: Decimal) -> Decimal:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise ValidationError(f"{name} must be a number, got '{raw}'")
    if value < 0 or value >= 1:
        raise ValidationError(f"{name} must be a fraction between 0 and 1, got {value}")
    return value


def load_reconciliation_config(
    base: ReconciliationConfig = DEFAULT_CONFIG,
) -> ReconciliationConfig:
    """Apply environment overrides to a reconciliation config.

    Reads CHARTERDESK_AUTO_MATCH_THRESHOLD, CHARTERDESK_DATE_WINDOW_DAYS and
    CHARTERDESK_AMOUNT_TOLERANCE (a fraction, e.g. 0.01 for 1%).

    Raises:
        ValidationError: If an override is not a valid value
    """
    config = replace(
        base,
        auto_match_threshold=_env_int(
            "CHARTERDESK_AUTO_MATCH_THRESHOLD", base.auto_match_threshold
        ),
        date_window_days=_env_int("CHARTERDESK_DATE_WINDOW_DAYS", base.date_window_days),
        amount_tolerance=_env_decimal("CHARTERDESK_AMOUNT_TOLERANCE", base.amount_tolerance),
    )
    if config.auto_match_threshold > 100:
        raise ValidationError(
            f"Auto-match threshold must be at most 100, got {config.auto_match_threshold}"
        )
    if config != base:
        logger.debug("Reconciliation config overridden from environment: %s", config)
    return config


class ConfidenceBand(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def confidence_band(score: int, config: ReconciliationConfig = DEFAULT_CONFIG) -> ConfidenceBand:
    """Display band for a match score: >= 80 high, 50-79 medium, else low."""
    if score >= config.high_confidence:
        return ConfidenceBand.HIGH
    if score >= config.medium_confidence:
        return ConfidenceBand.MEDIUM
    return ConfidenceBand.LOW


@dataclass(frozen=True)
class MatchScore:
    score: int
    reasons: tuple[str, ...]


def days_between(first: date, second: date) -> int:
    return abs((second - first).days)


def amounts_match(first: Decimal, second: Decimal, tolerance: Decimal) -> bool:
    """Whether two amounts differ by at most ``tolerance`` of the larger one."""
    first, second = abs(first), abs(second)
    if first == 0 and second == 0:
        return True
    larger = max(first, second)
    return abs(first - second) / larger <= tolerance


_REFERENCE_PATTERNS = [
    re.compile(r"INV-?\d{4}-?\d{3,4}", re.IGNORECASE),
    re.compile(r"REC-?\d{4}-?\d{3,4}", re.IGNORECASE),
    re.compile(r"QT-?\d{4}-?\d{3,4}", re.IGNORECASE),
    re.compile(r"CN-?\d{4}-?\d{4}", re.IGNORECASE),
    re.compile(r"DN-?\d{4}-?\d{4}", re.IGNORECASE),
    re.compile(r"\b[A-Z]{2,4}-\d{4,}", re.IGNORECASE),
]


def extract_references(description: str) -> list[str]:
    """Document numbers found in a bank description, uppercased without hyphens."""
    refs = []
    for pattern in _REFERENCE_PATTERNS:
        refs.extend(m.upper().replace("-", "") for m in pattern.findall(description))
    return refs


def normalize_reference(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


def contains_keywords(target: str, keywords: Iterable[str]) -> bool:
    lowered = target.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def _reference_matches(line: BankFeedLine, record: SystemRecord) -> bool:
    if not record.reference:
        return False
    record_ref = normalize_reference(record.reference)
    for ref in extract_references(line.description):
        norm = normalize_reference(ref)
        if norm == record_ref or (norm and norm in record_ref):
            return True
    return record.reference.upper() in line.description.upper()


def calculate_match_score(
    line: BankFeedLine,
    record: SystemRecord,
    config: ReconciliationConfig = DEFAULT_CONFIG,
) -> MatchScore:
    """Score how well a system record explains a bank line.

    Args:
        line: Bank statement line
        record: Candidate system record (signed amount)
        config: Weights and tolerances

    Returns:
        MatchScore with a score in [0, 100] and the reasons that contributed
    """
    score = 0
    reasons: list[str] = []

    line_amount = abs(line.amount)
    record_amount = abs(record.amount)
    if line_amount == record_amount:
        score += config.weight_amount_exact
        reasons.append(AMOUNT_EXACT)
    elif amounts_match(line_amount, record_amount, config.amount_tolerance):
        score += config.weight_amount_close
        reasons.append(AMOUNT_CLOSE)

    # Receipts arrive as credits, expenses leave as debits
    if record.record_type == TransactionType.RECEIPT and not line.is_credit:
        score = max(0, score - config.wrong_direction_penalty)
    if record.record_type == TransactionType.EXPENSE and line.is_credit:
        score = max(0, score - config.wrong_direction_penalty)

    days = days_between(line.transaction_date, record.date)
    if days == 0:
        score += config.weight_date_exact
        reasons.append(DATE_EXACT)
    elif days <= config.date_window_days:
        score += config.weight_date_close
        reasons.append(DATE_CLOSE)

    if _reference_matches(line, record):
        score += config.weight_reference
        reasons.append(REFERENCE_MATCH)

    if record.counterparty:
        words = [w for w in record.counterparty.split() if len(w) > 2]
        if contains_keywords(line.description, words):
            score += config.weight_counterparty
            reasons.append(COUNTERPARTY_MATCH)

    if record.description:
        words = [w for w in record.description.split() if len(w) > 3]
        if contains_keywords(line.description, words):
            score += config.weight_description
            reasons.append(DESCRIPTION_MATCH)

    return MatchScore(score=max(0, min(100, score)), reasons=tuple(reasons))


def evaluate_rule(rule: MatchingRule, line: BankFeedLine) -> bool:
    """Whether every condition of a rule holds for a bank line."""
    if rule.description_contains:
        description = line.description.upper()
        if not any(keyword.upper() in description for keyword in rule.description_contains):
            return False

    amount = abs(line.amount)
    if rule.amount_min is not None and amount < rule.amount_min:
        return False
    if rule.amount_max is not None and amount > rule.amount_max:
        return False

    if rule.amount_sign is not None:
        is_debit = line.amount < 0
        if rule.amount_sign == AmountSign.DEBIT and not is_debit:
            return False
        if rule.amount_sign == AmountSign.CREDIT and is_debit:
            return False

    if rule.bank_account_ids and line.bank_account_id not in rule.bank_account_ids:
        return False

    return True


def find_matching_rule(
    rules: Iterable[MatchingRule], line: BankFeedLine
) -> Optional[MatchingRule]:
    """Highest-priority enabled rule that applies to the line."""
    ordered = sorted((r for r in rules if r.enabled), key=lambda r: -r.priority)
    for rule in ordered:
        if evaluate_rule(rule, line):
            return rule
    return None


def generate_suggested_matches(
    line: BankFeedLine,
    records: Iterable[SystemRecord],
    rules: Iterable[MatchingRule] = (),
    config: ReconciliationConfig = DEFAULT_CONFIG,
) -> list[SuggestedMatch]:
    """Rank candidate records for a bank line.

    Reconciled records are skipped. Records of the type suggested by the
    applicable rule get the rule bonus. Only scores above the suggestion floor
    are kept, best first, capped at ``config.max_suggestions``.
    """
    rule = find_matching_rule(rules, line)

    suggestions = []
    for record in records:
        if record.is_reconciled:
            continue

        result = calculate_match_score(line, record, config)
        score = result.score
        reasons = list(result.reasons)
        if rule is not None and rule.suggest_type == record.record_type:
            score = min(100, score + config.weight_rule)
            reasons.append(RULE_MATCH)

        if score > config.suggestion_floor:
            suggestions.append(
                SuggestedMatch(
                    system_record_type=record.record_type,
                    system_record_id=record.id,
                    amount=abs(record.amount),
                    date=record.date,
                    match_score=score,
                    match_reasons=tuple(reasons),
                    counterparty=record.counterparty,
                    reference=record.reference,
                    description=record.description,
                    project_id=record.project_id,
                )
            )

    suggestions.sort(key=lambda s: -s.match_score)
    return suggestions[: config.max_suggestions]


def match_request_from_suggestion(
    line: BankFeedLine,
    suggestion: SuggestedMatch,
    matched_by: str,
    method: MatchMethod = MatchMethod.SUGGESTED,
    rule_id: Optional[int] = None,
    amount: Optional[Decimal] = None,
) -> MatchRequest:
    """Build the match to write when a suggestion is accepted."""
    matched_amount = suggestion.amount if amount is None else amount
    return MatchRequest(
        bank_feed_line_id=line.id,
        system_record_type=suggestion.system_record_type,
        system_record_id=suggestion.system_record_id,
        matched_amount=matched_amount,
        amount_difference=abs(line.amount) - suggestion.amount,
        matched_by=matched_by,
        match_score=suggestion.match_score,
        match_method=method,
        project_id=suggestion.project_id,
        rule_id=rule_id,
    )


@dataclass
class AutoMatchResult:
    """Outcome of an auto-match run.

    ``suggestions`` maps line id to the remaining suggestions after any
    auto-accepted one was removed.
    """

    matches: list[MatchRequest] = field(default_factory=list)
    suggestions: dict[int, list[SuggestedMatch]] = field(default_factory=dict)


def auto_match_lines(
    lines: Iterable[BankFeedLine],
    records: Sequence[SystemRecord],
    rules: Sequence[MatchingRule] = (),
    config: ReconciliationConfig = DEFAULT_CONFIG,
    matched_by: str = SYSTEM_USER,
) -> AutoMatchResult:
    """Accept top suggestions that clear the auto-match threshold.

    Matched and ignored lines are skipped. Each record is used at most once
    per run. The applicable rule's own threshold, when set, replaces the
    configured one.
    """
    result = AutoMatchResult()
    used: set[tuple[TransactionType, int]] = set()

    for line in lines:
        if line.status in (BankFeedStatus.MATCHED, BankFeedStatus.IGNORED):
            continue

        available = [r for r in records if (r.record_type, r.id) not in used]
        suggestions = generate_suggested_matches(line, available, rules, config)
        result.suggestions[line.id] = suggestions
        if not suggestions:
            continue

        top = suggestions[0]
        rule = find_matching_rule(rules, line)
        threshold = config.auto_match_threshold
        if rule is not None and rule.auto_match_if_confidence is not None:
            threshold = rule.auto_match_if_confidence

        if top.match_score >= threshold:
            result.matches.append(
                match_request_from_suggestion(
                    line,
                    top,
                    matched_by=matched_by,
                    amount=min(top.amount, line.remaining_amount),
                    method=MatchMethod.RULE if rule is not None else MatchMethod.SUGGESTED,
                    rule_id=rule.id if rule is not None else None,
                )
            )
            used.add((top.system_record_type, top.system_record_id))
            result.suggestions[line.id] = suggestions[1:]
            logger.debug(
                "Auto-matched line %s to %s %s (score %s)",
                line.id,
                top.system_record_type.value,
                top.system_record_id,
                top.match_score,
            )

    return result


@dataclass(frozen=True)
class ReconciliationStats:
    """Summary of reconciliation progress over a set of lines."""

    total_lines: int
    matched: int
    partially_matched: int
    unmatched: int
    ignored: int
    total_amount: Decimal
    matched_amount: Decimal
    unallocated_amount: Decimal

    @property
    def reconciled_percent(self) -> float:
        """Share of non-ignored lines that are fully matched."""
        considered = self.total_lines - self.ignored
        if considered == 0:
            return 0.0
        return round(self.matched / considered * 100, 1)


def compute_reconciliation_stats(lines: Iterable[BankFeedLine]) -> ReconciliationStats:
    counts = {status: 0 for status in BankFeedStatus}
    total = Decimal("0")
    matched_amount = Decimal("0")
    unallocated = Decimal("0")

    for line in lines:
        status = line.status
        counts[status] += 1
        total += abs(line.amount)
        matched_amount += line.matched_amount
        if status != BankFeedStatus.IGNORED:
            unallocated += max(line.remaining_amount, Decimal("0"))

    return ReconciliationStats(
        total_lines=sum(counts.values()),
        matched=counts[BankFeedStatus.MATCHED],
        partially_matched=counts[BankFeedStatus.PARTIALLY_MATCHED],
        unmatched=counts[BankFeedStatus.UNMATCHED],
        ignored=counts[BankFeedStatus.IGNORED],
        total_amount=total,
        matched_amount=matched_amount,
        unallocated_amount=unallocated,
    )