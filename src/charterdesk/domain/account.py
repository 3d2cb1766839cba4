"""Bank account domain service."""

from typing import Optional
from charterdesk.database.base import Database
from charterdesk.domain.entities import BankAccount
from charterdesk.domain.errors import (
    ConflictError,
    ValidationError,
    NotFoundError,
    DependencyError,
    bank_account_not_found,
    bank_account_delete_blocked,
)


class BankAccountService:
    """Service for managing bank accounts."""

    def __init__(self, db: Database):
        """Initialize bank account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(self, name: str, bank_name: str, currency: str = "THB") -> int:
        """Create a new bank account.

        Args:
            name: Account name
            bank_name: Bank name
            currency: ISO 4217 currency code of the account

        Returns:
            Account ID

        Raises:
            ValidationError: If the currency code is malformed
            ConflictError: If account name already exists
        """
        currency = currency.strip().upper()
        if len(currency) != 3 or not currency.isalpha():
            raise ValidationError(f"Invalid currency code '{currency}'")

        for acc in self.db.list_bank_accounts():
            if acc.name == name:
                raise ConflictError(f"Bank account with name '{name}' already exists")

        return self.db.create_bank_account(name=name, bank_name=bank_name, currency=currency)

    def get_account(self, account_id: int) -> Optional[BankAccount]:
        """Get bank account by ID, or None if not found."""
        return self.db.get_bank_account(account_id)

    def list_accounts(self) -> list[BankAccount]:
        return self.db.list_bank_accounts()

    def rename_account(self, account_id: int, name: str, bank_name: Optional[str] = None) -> None:
        """Rename a bank account.

        Args:
            account_id: Account ID to rename
            name: New account name
            bank_name: Optional new bank name (if None, bank_name is not updated)

        Raises:
            NotFoundError: If account not found
            ConflictError: If name already exists
        """
        if self.db.get_bank_account(account_id) is None:
            raise NotFoundError(bank_account_not_found(account_id))

        for acc in self.db.list_bank_accounts():
            if acc.id != account_id and acc.name == name:
                raise ConflictError(f"Bank account with name '{name}' already exists")

        self.db.update_bank_account(account_id=account_id, name=name, bank_name=bank_name)

    def delete_account(self, account_id: int) -> None:
        """Delete a bank account that has no imported lines.

        Raises:
            NotFoundError: If account not found
            DependencyError: If the account has bank lines
        """
        if self.db.get_bank_account(account_id) is None:
            raise NotFoundError(bank_account_not_found(account_id))

        line_count = self.db.count_bank_lines(account_id)
        if line_count > 0:
            raise DependencyError(bank_account_delete_blocked(account_id, line_count))

        self.db.delete_bank_account(account_id)
