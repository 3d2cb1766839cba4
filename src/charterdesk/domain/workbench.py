"""Match workbench for a single bank line.

The workbench holds one bank line with its matches and lets the user accept
suggestions, add manual matches, remove matches and ask for a new record,
until the line's amount is fully allocated. Writes go through callbacks
supplied by the caller; without callbacks matches are kept in memory only.
"""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Callable, Optional

from charterdesk.domain.entities import (
    BankFeedLine,
    BankMatch,
    MatchMethod,
    MatchRequest,
    SuggestedMatch,
    TransactionType,
)
from charterdesk.domain.errors import (
    NotFoundError,
    ValidationError,
    bank_match_not_found,
    over_match,
)
from charterdesk.domain.matching import match_request_from_suggestion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewRecordRequest:
    """Pre-filled values for a record the user wants to create from a line."""

    transaction_type: TransactionType
    bank_feed_line_id: int
    amount: Decimal
    date: date
    description: str
    reference: Optional[str] = None


CreateMatchCallback = Callable[[MatchRequest], BankMatch]
RemoveMatchCallback = Callable[[int], None]
CreateNewCallback = Callable[[NewRecordRequest], None]


class MatchWorkbench:
    """Allocate one bank line's amount across system records."""

    def __init__(
        self,
        line: BankFeedLine,
        suggestions: Optional[list[SuggestedMatch]] = None,
        matched_by: str = "user",
        on_create_match: Optional[CreateMatchCallback] = None,
        on_remove_match: Optional[RemoveMatchCallback] = None,
        on_create_new: Optional[CreateNewCallback] = None,
    ):
        self._line = line
        self.suggestions = list(suggestions or [])
        self.matched_by = matched_by
        self._on_create_match = on_create_match
        self._on_remove_match = on_remove_match
        self._on_create_new = on_create_new

    @property
    def line(self) -> BankFeedLine:
        return self._line

    @property
    def matches(self) -> tuple[BankMatch, ...]:
        return self._line.matches

    @property
    def matched_amount(self) -> Decimal:
        return self._line.matched_amount

    @property
    def remaining_amount(self) -> Decimal:
        return self._line.remaining_amount

    @property
    def progress(self) -> float:
        return self._line.match_progress

    @property
    def is_reconcilable(self) -> bool:
        """True once nothing remains to allocate."""
        return bool(self._line.matches) and self.remaining_amount == 0

    def accept_suggestion(self, suggestion: SuggestedMatch) -> BankMatch:
        """Match a suggested record, capped at the remaining amount.

        Raises:
            ValidationError: If the line is already fully allocated
        """
        remaining = self.remaining_amount
        if remaining <= 0:
            raise ValidationError(over_match(suggestion.amount, Decimal("0")))

        amount = min(suggestion.amount, remaining)
        request = match_request_from_suggestion(
            self._line, suggestion, matched_by=self.matched_by, amount=amount
        )
        match = self._write(request)
        self.suggestions = [
            s
            for s in self.suggestions
            if (s.system_record_type, s.system_record_id)
            != (suggestion.system_record_type, suggestion.system_record_id)
        ]
        return match

    def create_match(
        self,
        record_type: TransactionType,
        record_id: int,
        amount: Decimal,
        project_id: Optional[int] = None,
    ) -> BankMatch:
        """Manually match any system record for a chosen amount.

        Raises:
            ValidationError: If the amount is not positive or exceeds the
                remaining amount
        """
        if amount <= 0:
            raise ValidationError(f"Match amount must be positive, got {amount}")
        remaining = self.remaining_amount
        if amount > remaining:
            raise ValidationError(over_match(amount, remaining))

        request = MatchRequest(
            bank_feed_line_id=self._line.id,
            system_record_type=record_type,
            system_record_id=record_id,
            matched_amount=amount,
            amount_difference=Decimal("0"),
            matched_by=self.matched_by,
            match_score=0,
            match_method=MatchMethod.MANUAL,
            project_id=project_id,
        )
        return self._write(request)

    def remove_match(self, match_id: int) -> None:
        """Detach a match from the line. The system record is left as is.

        Raises:
            NotFoundError: If the match is not on this line
        """
        if not any(m.id == match_id for m in self._line.matches):
            raise NotFoundError(bank_match_not_found(match_id))

        if self._on_remove_match is not None:
            self._on_remove_match(match_id)
        self._line = replace(
            self._line,
            matches=tuple(m for m in self._line.matches if m.id != match_id),
        )
        logger.debug("Removed match %s from line %s", match_id, self._line.id)

    def create_new(self, transaction_type: TransactionType) -> NewRecordRequest:
        """Ask the caller to open a new record pre-filled from this line."""
        request = NewRecordRequest(
            transaction_type=transaction_type,
            bank_feed_line_id=self._line.id,
            amount=self.remaining_amount,
            date=self._line.transaction_date,
            description=self._line.description,
            reference=self._line.reference,
        )
        if self._on_create_new is not None:
            self._on_create_new(request)
        return request

    def _write(self, request: MatchRequest) -> BankMatch:
        if self._on_create_match is not None:
            match = self._on_create_match(request)
        else:
            match = BankMatch(
                id=max((m.id for m in self._line.matches), default=0) + 1,
                bank_feed_line_id=request.bank_feed_line_id,
                system_record_type=request.system_record_type,
                system_record_id=request.system_record_id,
                matched_amount=request.matched_amount,
                amount_difference=request.amount_difference,
                matched_by=request.matched_by,
                matched_at=datetime.now(UTC),
                match_score=request.match_score,
                match_method=request.match_method,
                project_id=request.project_id,
                rule_id=request.rule_id,
            )

        self._line = replace(self._line, matches=self._line.matches + (match,))
        logger.debug(
            "Matched %s of line %s to %s %s",
            match.matched_amount,
            self._line.id,
            match.system_record_type.value,
            match.system_record_id,
        )
        return match
