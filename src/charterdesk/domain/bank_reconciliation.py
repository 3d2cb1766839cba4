"""Bank reconciliation domain service.

Loads bank lines, candidate records and rules from the database, feeds them to
the pure matching engine and workbench, and writes the resulting matches.
"""

import logging
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Optional

from charterdesk.database.base import Database
from charterdesk.domain.entities import (
    BankFeedLine,
    BankFeedStatus,
    BankMatch,
    SuggestedMatch,
    TransactionType,
)
from charterdesk.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    bank_line_not_found,
    bank_match_not_found,
)
from charterdesk.domain.ledger import LedgerService
from charterdesk.domain.matching import (
    DEFAULT_CONFIG,
    SYSTEM_USER,
    ReconciliationConfig,
    ReconciliationStats,
    auto_match_lines,
    compute_reconciliation_stats,
    generate_suggested_matches,
)
from charterdesk.domain.workbench import MatchWorkbench, NewRecordRequest, CreateNewCallback

logger = logging.getLogger(__name__)


class BankReconciliationService:
    """Service for matching bank lines to ledger records."""

    def __init__(
        self,
        db: Database,
        config: ReconciliationConfig = DEFAULT_CONFIG,
        user: str = "user",
    ):
        """Initialize bank reconciliation service.

        Args:
            db: Database instance
            config: Scoring weights and thresholds
            user: Name recorded on matches and ignore actions
        """
        self.db = db
        self.config = config
        self.user = user
        self.ledger_service = LedgerService(db)

    def get_line(self, line_id: int) -> BankFeedLine:
        """Get a bank line with its matches.

        Raises:
            NotFoundError: If the line does not exist
        """
        line = self.db.get_bank_line(line_id)
        if line is None:
            raise NotFoundError(bank_line_not_found(line_id))
        return line

    def list_lines(
        self,
        bank_account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[BankFeedStatus] = None,
    ) -> list[BankFeedLine]:
        """List bank lines, optionally filtered by derived status."""
        lines = self.db.list_bank_lines(
            bank_account_id=bank_account_id, start_date=start_date, end_date=end_date
        )
        if status is not None:
            status = BankFeedStatus(status)
            lines = [line for line in lines if line.status == status]
        return lines

    def suggest(self, line_id: int) -> list[SuggestedMatch]:
        """Ranked suggestions for a line from paid, unmatched documents."""
        line = self.get_line(line_id)
        return generate_suggested_matches(
            line,
            self.ledger_service.candidate_records(),
            self.db.list_matching_rules(enabled_only=True),
            self.config,
        )

    def open_workbench(
        self, line_id: int, on_create_new: Optional[CreateNewCallback] = None
    ) -> MatchWorkbench:
        """Workbench for one line whose writes go to the database."""
        line = self.get_line(line_id)
        return MatchWorkbench(
            line,
            suggestions=self.suggest(line_id),
            matched_by=self.user,
            on_create_match=self.db.create_bank_match,
            on_remove_match=self.db.delete_bank_match,
            on_create_new=on_create_new,
        )

    def _suggestion_for(
        self, line_id: int, record_type: TransactionType, record_id: int
    ) -> SuggestedMatch:
        for suggestion in self.suggest(line_id):
            if (
                suggestion.system_record_type == record_type
                and suggestion.system_record_id == record_id
            ):
                return suggestion
        raise NotFoundError(
            f"No suggestion for {TransactionType(record_type).value} {record_id} on bank line {line_id}"
        )

    def accept_suggestion(
        self, line_id: int, record_type: TransactionType, record_id: int
    ) -> BankMatch:
        """Accept the current suggestion for a record on a line.

        Raises:
            NotFoundError: If the line is missing or the record is not suggested
            ValidationError: If the line is already fully matched
        """
        self._ensure_matchable(line_id)
        suggestion = self._suggestion_for(line_id, TransactionType(record_type), record_id)
        match = self.open_workbench(line_id).accept_suggestion(suggestion)
        logger.info(
            "Accepted suggestion %s %s for line %s (score %s, amount %s)",
            match.system_record_type.value,
            match.system_record_id,
            line_id,
            match.match_score,
            match.matched_amount,
        )
        return match

    def create_match(
        self,
        line_id: int,
        record_type: TransactionType,
        record_id: int,
        amount: Optional[Decimal] = None,
        project_id: Optional[int] = None,
    ) -> BankMatch:
        """Manually match a record; amount defaults to what remains on the line.

        Raises:
            NotFoundError: If the line does not exist
            ValidationError: If the amount is not positive or over-matches
            ConflictError: If the line is ignored
        """
        self._ensure_matchable(line_id)
        workbench = self.open_workbench(line_id)
        if amount is None:
            amount = workbench.remaining_amount
        match = workbench.create_match(TransactionType(record_type), record_id, amount, project_id)
        logger.info(
            "Created manual match %s on line %s: %s %s for %s",
            match.id,
            line_id,
            match.system_record_type.value,
            match.system_record_id,
            match.matched_amount,
        )
        return match

    def remove_match(self, match_id: int) -> BankFeedLine:
        """Remove a match and return the updated line.

        Raises:
            NotFoundError: If the match does not exist
        """
        match = self.db.get_bank_match(match_id)
        if match is None:
            raise NotFoundError(bank_match_not_found(match_id))
        workbench = self.open_workbench(match.bank_feed_line_id)
        workbench.remove_match(match_id)
        logger.info("Removed match %s from line %s", match_id, match.bank_feed_line_id)
        return workbench.line

    def create_new(self, line_id: int, transaction_type: TransactionType) -> NewRecordRequest:
        """Pre-filled values for a new record covering what remains on a line."""
        return self.open_workbench(line_id).create_new(TransactionType(transaction_type))

    def ignore_line(self, line_id: int, reason: Optional[str] = None) -> None:
        """Exclude a line from reconciliation.

        Raises:
            NotFoundError: If the line does not exist
            ConflictError: If the line has matches or is already ignored
        """
        line = self.get_line(line_id)
        if line.matches:
            raise ConflictError(
                f"Bank line {line_id} has {len(line.matches)} match(es); remove them before ignoring"
            )
        if line.ignored_at is not None:
            raise ConflictError(f"Bank line {line_id} is already ignored")
        self.db.set_bank_line_ignored(
            line_id, ignored_at=datetime.now(UTC), ignored_by=self.user, ignored_reason=reason
        )
        logger.info("Ignored bank line %s: %s", line_id, reason or "no reason given")

    def unignore_line(self, line_id: int) -> None:
        """Bring an ignored line back into reconciliation.

        Raises:
            NotFoundError: If the line does not exist
            ConflictError: If the line is not ignored
        """
        line = self.get_line(line_id)
        if line.ignored_at is None:
            raise ConflictError(f"Bank line {line_id} is not ignored")
        self.db.set_bank_line_ignored(line_id, ignored_at=None)
        logger.info("Unignored bank line %s", line_id)

    def set_notes(self, line_id: int, notes: Optional[str]) -> None:
        self.get_line(line_id)
        self.db.update_bank_line_notes(line_id, notes or None)

    def auto_match(
        self,
        bank_account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        dry_run: bool = False,
    ) -> list[BankMatch]:
        """Auto-accept high-confidence suggestions for unmatched lines.

        Lines that already carry matches are left to the user, so the engine
        never allocates past a line's remaining amount.

        Returns:
            Matches written (or, with dry_run, the would-be matches with id 0)
        """
        lines = [
            line
            for line in self.db.list_bank_lines(
                bank_account_id=bank_account_id, start_date=start_date, end_date=end_date
            )
            if line.status == BankFeedStatus.UNMATCHED
        ]
        result = auto_match_lines(
            lines,
            self.ledger_service.candidate_records(),
            self.db.list_matching_rules(enabled_only=True),
            self.config,
            matched_by=SYSTEM_USER,
        )

        written = []
        for request in result.matches:
            if dry_run:
                written.append(
                    BankMatch(
                        id=0,
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
                )
            else:
                written.append(self.db.create_bank_match(request))

        logger.info(
            "Auto-match %s %d of %d unmatched line(s)",
            "would match" if dry_run else "matched",
            len(written),
            len(lines),
        )
        return written

    def stats(
        self,
        bank_account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ReconciliationStats:
        return compute_reconciliation_stats(
            self.db.list_bank_lines(
                bank_account_id=bank_account_id, start_date=start_date, end_date=end_date
            )
        )

    def _ensure_matchable(self, line_id: int) -> None:
        line = self.get_line(line_id)
        if line.ignored_at is not None:
            raise ConflictError(f"Bank line {line_id} is ignored; unignore it before matching")
        if line.is_fully_matched:
            raise ValidationError(f"Bank line {line_id} is already fully matched")
