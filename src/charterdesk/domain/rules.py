"""Matching rule domain service."""

import logging
from decimal import Decimal
from typing import Optional

from charterdesk.database.base import Database
from charterdesk.domain.entities import AmountSign, MatchingRule, TransactionType
from charterdesk.domain.errors import (
    NotFoundError,
    ValidationError,
    bank_account_not_found,
    matching_rule_not_found,
)

logger = logging.getLogger(__name__)


class MatchingRuleService:
    """Service for user-defined matching rules."""

    def __init__(self, db: Database):
        self.db = db

    def create_rule(
        self,
        name: str,
        priority: int = 0,
        description_contains: tuple[str, ...] = (),
        amount_min: Optional[Decimal] = None,
        amount_max: Optional[Decimal] = None,
        amount_sign: Optional[AmountSign] = None,
        bank_account_ids: tuple[int, ...] = (),
        suggest_type: Optional[TransactionType] = None,
        auto_match_if_confidence: Optional[int] = None,
    ) -> int:
        """Create a matching rule.

        Raises:
            ValidationError: On a blank name, an inverted amount range or a
                confidence outside 0-100
            NotFoundError: If a filtered bank account does not exist
        """
        name = name.strip()
        if not name:
            raise ValidationError("Rule name is required")
        if amount_min is not None and amount_max is not None and amount_min > amount_max:
            raise ValidationError(
                f"Minimum amount {amount_min} is greater than maximum amount {amount_max}"
            )
        if auto_match_if_confidence is not None and not 0 <= auto_match_if_confidence <= 100:
            raise ValidationError(
                f"Auto-match confidence must be between 0 and 100, got {auto_match_if_confidence}"
            )
        for account_id in bank_account_ids:
            if self.db.get_bank_account(account_id) is None:
                raise NotFoundError(bank_account_not_found(account_id))

        keywords = tuple(k.strip() for k in description_contains if k.strip())
        rule_id = self.db.create_matching_rule(
            name=name,
            priority=priority,
            description_contains=keywords,
            amount_min=amount_min,
            amount_max=amount_max,
            amount_sign=AmountSign(amount_sign).value if amount_sign else None,
            bank_account_ids=tuple(bank_account_ids),
            suggest_type=TransactionType(suggest_type) if suggest_type else None,
            auto_match_if_confidence=auto_match_if_confidence,
        )
        logger.info("Created matching rule %s '%s' (priority %s)", rule_id, name, priority)
        return rule_id

    def list_rules(self, enabled_only: bool = False) -> list[MatchingRule]:
        return self.db.list_matching_rules(enabled_only=enabled_only)

    def set_enabled(self, rule_id: int, enabled: bool) -> None:
        if self.db.get_matching_rule(rule_id) is None:
            raise NotFoundError(matching_rule_not_found(rule_id))
        self.db.set_matching_rule_enabled(rule_id, enabled)

    def delete_rule(self, rule_id: int) -> None:
        if self.db.get_matching_rule(rule_id) is None:
            raise NotFoundError(matching_rule_not_found(rule_id))
        self.db.delete_matching_rule(rule_id)
        logger.info("Deleted matching rule %s", rule_id)
