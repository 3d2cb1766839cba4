"""Bank statement CSV import domain service."""

import csv
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from charterdesk.database.base import Database
from charterdesk.domain.errors import NotFoundError, ValidationError, bank_account_not_found
from charterdesk.utils.amount_parser import parse_amount

logger = logging.getLogger(__name__)

DATE_KEYWORDS = ("date", "transaction date", "value date", "posting date")
DESCRIPTION_KEYWORDS = ("description", "details", "narrative", "memo", "particulars")

_ISO_DATE = re.compile(r"^(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})$")
_DAY_MONTH_DATE = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$")

CENT = Decimal("0.01")


class DateFormat(str, Enum):
    ISO = "ISO"
    DMY = "DMY"
    MDY = "MDY"


@dataclass(frozen=True)
class ColumnMapping:
    """Which CSV columns hold which bank line fields."""

    date_column: str
    description_column: str
    amount_column: Optional[str] = None
    debit_column: Optional[str] = None
    credit_column: Optional[str] = None
    reference_column: Optional[str] = None
    balance_column: Optional[str] = None

    @property
    def uses_debit_credit(self) -> bool:
        return self.amount_column is None and bool(self.debit_column and self.credit_column)


@dataclass
class ImportResult:
    """Import statistics."""

    imported: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    date_format: Optional[DateFormat] = None


def _find_column(headers: Sequence[str], predicate) -> Optional[str]:
    for header in headers:
        if predicate(header.strip().lower()):
            return header
    return None


def detect_column_mapping(headers: Sequence[str]) -> ColumnMapping:
    """Guess the column mapping from header names.

    Falls back to the first column for the date and the second for the
    description. An "amount"/"value" column wins over a debit/credit pair.
    """
    if not headers:
        raise ValidationError("CSV file has no columns")

    date_column = _find_column(headers, lambda h: any(kw in h for kw in DATE_KEYWORDS))
    description_column = _find_column(
        headers, lambda h: any(kw in h for kw in DESCRIPTION_KEYWORDS)
    )
    amount_column = _find_column(headers, lambda h: h in ("amount", "value"))
    debit_column = _find_column(headers, lambda h: "debit" in h or h == "dr")
    credit_column = _find_column(headers, lambda h: "credit" in h or h == "cr")
    reference_column = _find_column(
        headers,
        lambda h: "reference" in h or "ref" in h or h in ("cheque no", "transaction id"),
    )
    balance_column = _find_column(headers, lambda h: "balance" in h)

    if amount_column is None and not (debit_column and credit_column):
        debit_column = credit_column = None

    return ColumnMapping(
        date_column=date_column or headers[0],
        description_column=description_column or (headers[1] if len(headers) > 1 else headers[0]),
        amount_column=amount_column,
        debit_column=debit_column if amount_column is None else None,
        credit_column=credit_column if amount_column is None else None,
        reference_column=reference_column,
        balance_column=balance_column,
    )


def validate_mapping(mapping: ColumnMapping, headers: Sequence[str]) -> list[str]:
    errors = []
    if mapping.date_column not in headers:
        errors.append("Date column not found or not mapped")
    if mapping.description_column not in headers:
        errors.append("Description column not found or not mapped")
    has_amount = mapping.amount_column is not None and mapping.amount_column in headers
    has_pair = (
        mapping.debit_column in headers and mapping.credit_column in headers
        if mapping.debit_column and mapping.credit_column
        else False
    )
    if not has_amount and not has_pair:
        errors.append("Amount column(s) not found. Need either Amount column or Debit/Credit columns")
    return errors


def extract_date_part(value: str) -> str:
    """Strip a time portion: "31/12/2025 16:19:53" -> "31/12/2025"."""
    return re.split(r"[\sT]", value.strip(), maxsplit=1)[0]


def detect_date_format(values: Sequence[str]) -> DateFormat:
    """Decide the date layout from every date in the file.

    Year first means ISO. Otherwise a first field above 12 proves
    day-month-year and a second field above 12 proves month-day-year.
    Ambiguous files default to day-month-year.
    """
    first_over_12 = False
    second_over_12 = False
    for value in values:
        if not value:
            continue
        part = extract_date_part(value)
        if _ISO_DATE.match(part):
            return DateFormat.ISO
        match = _DAY_MONTH_DATE.match(part)
        if match:
            if int(match.group(1)) > 12:
                first_over_12 = True
            if int(match.group(2)) > 12:
                second_over_12 = True

    if first_over_12:
        return DateFormat.DMY
    if second_over_12:
        return DateFormat.MDY
    return DateFormat.DMY


def parse_statement_date(value: str, date_format: DateFormat = DateFormat.DMY) -> date:
    """Parse a statement date using a detected layout.

    Raises:
        ValueError: If the value is not a recognised date
    """
    part = extract_date_part(value)
    iso = _ISO_DATE.match(part)
    if iso:
        return date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))

    match = _DAY_MONTH_DATE.match(part)
    if match:
        first, second, year = int(match.group(1)), int(match.group(2)), int(match.group(3))
        if date_format == DateFormat.MDY:
            return date(year, first, second)
        return date(year, second, first)

    raise ValueError(f"Could not parse date '{value}'")


def _cell(row: dict, column: Optional[str]) -> Optional[str]:
    if column is None:
        return None
    value = row.get(column)
    if value is None:
        return None
    value = value.strip()
    return value or None


def to_cents(value: Decimal) -> Decimal:
    """Round to the two decimal places bank lines are stored with."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _row_amount(row: dict, mapping: ColumnMapping) -> Decimal:
    if mapping.amount_column is not None:
        raw = _cell(row, mapping.amount_column)
        if raw is None:
            raise ValueError("Missing amount")
        return parse_amount(raw)

    debit = _cell(row, mapping.debit_column)
    credit = _cell(row, mapping.credit_column)
    if debit is None and credit is None:
        raise ValueError("Missing debit and credit")
    debit_amount = abs(parse_amount(debit)) if debit else Decimal("0")
    credit_amount = abs(parse_amount(credit)) if credit else Decimal("0")
    return credit_amount - debit_amount


class StatementImportService:
    """Service for importing bank statement CSV files."""

    def __init__(self, db: Database, user: str = "user"):
        """Initialize statement import service.

        Args:
            db: Database instance
            user: Name recorded as the importer
        """
        self.db = db
        self.user = user

    def import_csv(
        self,
        csv_file_path: str,
        bank_account_id: int,
        mapping: Optional[ColumnMapping] = None,
        date_format: Optional[DateFormat] = None,
    ) -> ImportResult:
        """Import bank lines from a CSV file.

        Args:
            csv_file_path: Path to CSV file
            bank_account_id: Account the statement belongs to
            mapping: Column mapping; detected from the headers when omitted
            date_format: Date layout; detected from all dates when omitted

        Returns:
            ImportResult with imported/skipped counts and per-row errors

        Raises:
            NotFoundError: If the bank account doesn't exist
            ValidationError: If the file has no usable columns
            FileNotFoundError: If CSV file doesn't exist
        """
        account = self.db.get_bank_account(bank_account_id)
        if account is None:
            raise NotFoundError(bank_account_not_found(bank_account_id))

        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            sample = f.read(2048)
            f.seek(0)
            try:
                delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
            except csv.Error:
                delimiter = ","
            reader = csv.DictReader(f, delimiter=delimiter)
            headers = reader.fieldnames
            if not headers:
                raise ValidationError("CSV file has no columns")
            rows = list(reader)

        mapping = mapping or detect_column_mapping(headers)
        problems = validate_mapping(mapping, headers)
        if problems:
            raise ValidationError("; ".join(problems))

        if date_format is None:
            date_format = detect_date_format(
                [row.get(mapping.date_column) or "" for row in rows]
            )

        result = ImportResult(date_format=date_format)
        seen: set[tuple[date, Decimal, str]] = set()

        # Row 1 is the header
        for row_num, row in enumerate(rows, start=2):
            try:
                date_str = _cell(row, mapping.date_column)
                if date_str is None:
                    result.errors.append(f"Row {row_num}: Missing date")
                    continue
                description = _cell(row, mapping.description_column)
                if description is None:
                    result.errors.append(f"Row {row_num}: Missing description")
                    continue

                transaction_date = parse_statement_date(date_str, date_format)
                amount = to_cents(_row_amount(row, mapping))
                balance_str = _cell(row, mapping.balance_column)
                running_balance = to_cents(parse_amount(balance_str)) if balance_str else None
            except ValueError as e:
                result.errors.append(f"Row {row_num}: {e}")
                continue

            key = (transaction_date, amount, description[:50])
            if key in seen or self.db.bank_line_exists(
                bank_account_id, transaction_date, amount, description
            ):
                result.skipped += 1
                continue
            seen.add(key)

            self.db.create_bank_line(
                bank_account_id=bank_account_id,
                currency=account.currency,
                transaction_date=transaction_date,
                value_date=transaction_date,
                amount=amount,
                description=description,
                reference=_cell(row, mapping.reference_column),
                running_balance=running_balance,
                import_source="csv",
                imported_by=self.user,
            )
            result.imported += 1

        logger.info(
            "Imported %d line(s) into account %s from %s (%d skipped, %d errors, %s dates)",
            result.imported,
            bank_account_id,
            csv_path.name,
            result.skipped,
            len(result.errors),
            date_format.value,
        )
        return result
