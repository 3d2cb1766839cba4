"""Shared pytest fixtures for charterdesk tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from charterdesk.database.factories import create_sqlite_database
from charterdesk.domain.account import BankAccountService
from charterdesk.domain.bank_reconciliation import BankReconciliationService
from charterdesk.domain.booking import BookingService
from charterdesk.domain.ledger import LedgerService
from charterdesk.domain.revenue_recognition import RevenueRecognitionService
from charterdesk.domain.rules import MatchingRuleService
from charterdesk.domain.statement_import import StatementImportService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for CLI tests
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    return BankAccountService(temp_db)


@pytest.fixture
def booking_service(temp_db):
    return BookingService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    return LedgerService(temp_db)


@pytest.fixture
def rule_service(temp_db):
    return MatchingRuleService(temp_db)


@pytest.fixture
def reconciliation_service(temp_db):
    return BankReconciliationService(temp_db)


@pytest.fixture
def import_service(temp_db):
    return StatementImportService(temp_db)


@pytest.fixture
def revenue_service(temp_db):
    return RevenueRecognitionService(temp_db)


@pytest.fixture
def sample_account(account_service):
    """Create a sample bank account for testing."""
    account_id = account_service.create_account(name="Operating", bank_name="Kasikorn")
    return account_service.get_account(account_id)


@pytest.fixture
def sample_boat(booking_service):
    boat_id = booking_service.create_boat("Sea Breeze")
    return booking_service.get_boat(boat_id)


@pytest.fixture
def make_line(temp_db, sample_account):
    """Factory for bank lines on the sample account."""

    def _make_line(amount, transaction_date=date(2025, 5, 10), description="Transfer", reference=None):
        line_id = temp_db.create_bank_line(
            bank_account_id=sample_account.id,
            currency=sample_account.currency,
            transaction_date=transaction_date,
            amount=Decimal(str(amount)),
            description=description,
            reference=reference,
        )
        return temp_db.get_bank_line(line_id)

    return _make_line


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
