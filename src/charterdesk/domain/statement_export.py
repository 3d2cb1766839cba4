"""Bank line CSV export."""

import csv
from enum import Enum
from typing import Iterable, TextIO

from charterdesk.domain.entities import BankFeedLine, BankFeedStatus

EXPORT_HEADERS = [
    "Date",
    "Value Date",
    "Description",
    "Reference",
    "Amount",
    "Currency",
    "Status",
    "Matched Amount",
    "Difference",
    "Running Balance",
    "Imported At",
    "Imported By",
    "Import Source",
    "Notes",
]


class ExportScope(str, Enum):
    ALL = "all"
    UNMATCHED = "unmatched"
    NEEDS_REVIEW = "needs-review"


def select_lines(lines: Iterable[BankFeedLine], scope: ExportScope) -> list[BankFeedLine]:
    """Lines included in an export of the given scope."""
    scope = ExportScope(scope)
    if scope == ExportScope.UNMATCHED:
        return [line for line in lines if line.status == BankFeedStatus.UNMATCHED]
    if scope == ExportScope.NEEDS_REVIEW:
        return [line for line in lines if line.status == BankFeedStatus.PARTIALLY_MATCHED]
    return list(lines)


def line_to_row(line: BankFeedLine) -> list[str]:
    return [
        line.transaction_date.isoformat(),
        line.value_date.isoformat(),
        line.description,
        line.reference or "",
        f"{line.amount:.2f}",
        line.currency,
        line.status.value,
        f"{line.matched_amount:.2f}",
        f"{line.remaining_amount:.2f}",
        f"{line.running_balance:.2f}" if line.running_balance is not None else "",
        line.imported_at.isoformat(timespec="seconds") if line.imported_at else "",
        line.imported_by or "",
        line.import_source,
        line.notes or "",
    ]


def export_lines_csv(
    lines: Iterable[BankFeedLine], out: TextIO, scope: ExportScope = ExportScope.ALL
) -> int:
    """Write lines as CSV with every cell quoted.

    Returns:
        Number of lines written
    """
    selected = select_lines(lines, scope)
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for line in selected:
        writer.writerow(line_to_row(line))
    return len(selected)
