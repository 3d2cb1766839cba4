"""Bank statement import and reconciliation commands."""

from decimal import Decimal
from pathlib import Path

import click
from charterdesk.cli.date_filters import (
    collect_period_flags,
    period_options,
    resolve_cli_date_range,
)
from charterdesk.cli.error_handling import handle_domain_error
from charterdesk.cli.resolution import resolve_account_or_exit
from charterdesk.domain.account import BankAccountService
from charterdesk.domain.bank_reconciliation import BankReconciliationService
from charterdesk.domain.entities import BankFeedLine, BankFeedStatus, TransactionType
from charterdesk.domain.matching import confidence_band, load_reconciliation_config
from charterdesk.domain.statement_export import ExportScope, export_lines_csv
from charterdesk.domain.statement_import import DateFormat, StatementImportService
from charterdesk.utils.amount_parser import parse_amount

STATUS_CHOICES = [s.value for s in BankFeedStatus]
RECORD_CHOICES = [t.value for t in TransactionType]


def _reconciliation_service(ctx) -> BankReconciliationService:
    try:
        config = load_reconciliation_config()
    except ValueError as e:
        handle_domain_error(ctx, e)
    return BankReconciliationService(ctx.obj["db"], config=config)


def _account_filter(ctx, account: str | None) -> int | None:
    if account is None:
        return None
    return resolve_account_or_exit(ctx, BankAccountService(ctx.obj["db"]), account)


def _format_line(line: BankFeedLine) -> str:
    return (
        f"ID: {line.id:4d} | {line.transaction_date} | {line.amount:>12,.2f} {line.currency} | "
        f"{line.status.value:17s} | {line.description[:40]}"
    )


@click.group()
def bank_group():
    """Import bank statements and reconcile bank lines."""
    pass


@bank_group.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option("--account", required=True, help="Bank account name or ID")
@click.option(
    "--date-format",
    type=click.Choice([f.value for f in DateFormat], case_sensitive=False),
    help="Date layout of the file; detected from the dates when omitted",
)
@click.pass_context
def import_statement(ctx, csv_file: str, account: str, date_format: str | None):
    """Import bank lines from a statement CSV file.

    Columns are detected from the header row. Lines already imported for the
    account (same date, amount and description) are skipped.
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, BankAccountService(db), account)
    service = StatementImportService(db)

    try:
        result = service.import_csv(
            csv_file_path=csv_file,
            bank_account_id=account_id,
            date_format=DateFormat(date_format.upper()) if date_format else None,
        )
    except (ValueError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result.imported} lines")
    click.echo(f"  Skipped: {result.skipped} duplicates")
    click.echo(f"  Date format: {result.date_format.value}")
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        for error in result.errors:
            click.echo(f"    {error}", err=True)


@bank_group.command("lines")
@click.option("--account", help="Bank account name or ID")
@click.option("--status", type=click.Choice(STATUS_CHOICES), help="Only lines with this status")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@period_options
@click.pass_context
def list_lines(ctx, account, status, start_date, end_date, **period_kwargs):
    """List bank lines."""
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=collect_period_flags(**period_kwargs),
    )
    account_id = _account_filter(ctx, account)
    service = _reconciliation_service(ctx)
    lines = service.list_lines(
        bank_account_id=account_id,
        start_date=start,
        end_date=end,
        status=BankFeedStatus(status) if status else None,
    )
    if not lines:
        click.echo("No bank lines found.")
        return

    click.echo(f"\nFound {len(lines)} line(s):")
    click.echo("-" * 100)
    for line in lines:
        click.echo(_format_line(line))


@bank_group.command("show")
@click.argument("line_id", type=int)
@click.pass_context
def show_line(ctx, line_id: int):
    """Show a bank line with its matches."""
    service = _reconciliation_service(ctx)
    try:
        line = service.get_line(line_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Bank line {line.id}")
    click.echo(f"  Date:        {line.transaction_date}")
    click.echo(f"  Description: {line.description}")
    if line.reference:
        click.echo(f"  Reference:   {line.reference}")
    click.echo(f"  Amount:      {line.amount:,.2f} {line.currency}")
    click.echo(f"  Status:      {line.status.value}")
    click.echo(
        f"  Matched:     {line.matched_amount:,.2f} ({line.match_progress:.0%}), "
        f"remaining {line.remaining_amount:,.2f}"
    )
    if line.ignored_at:
        click.echo(f"  Ignored:     {line.ignored_reason or 'no reason given'}")
    if line.notes:
        click.echo(f"  Notes:       {line.notes}")
    if line.matches:
        click.echo("  Matches:")
        for match in line.matches:
            click.echo(
                f"    #{match.id}: {match.system_record_type.value} {match.system_record_id} "
                f"for {match.matched_amount:,.2f} ({match.match_method.value}, score {match.match_score})"
            )
            if match.adjustment_required:
                click.echo(f"      amount difference {match.amount_difference:,.2f}")


@bank_group.command("suggest")
@click.argument("line_id", type=int)
@click.pass_context
def suggest(ctx, line_id: int):
    """Show ranked match suggestions for a bank line."""
    service = _reconciliation_service(ctx)
    try:
        suggestions = service.suggest(line_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not suggestions:
        click.echo("No suggestions found.")
        return

    for suggestion in suggestions:
        band = confidence_band(suggestion.match_score, service.config)
        click.echo(
            f"{suggestion.system_record_type.value:7s} {suggestion.system_record_id:4d} | "
            f"{suggestion.date} | {suggestion.amount:>12,.2f} | "
            f"score {suggestion.match_score:3d} ({band.value}) | "
            f"{', '.join(suggestion.match_reasons)}"
        )


@bank_group.command("accept")
@click.argument("line_id", type=int)
@click.argument("record_type", type=click.Choice(RECORD_CHOICES))
@click.argument("record_id", type=int)
@click.pass_context
def accept(ctx, line_id: int, record_type: str, record_id: int):
    """Accept a suggested record for a bank line."""
    service = _reconciliation_service(ctx)
    try:
        match = service.accept_suggestion(line_id, TransactionType(record_type), record_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Matched {record_type} {record_id} to line {line_id} "
        f"for {match.matched_amount:,.2f} (match ID: {match.id})"
    )


@bank_group.command("match")
@click.argument("line_id", type=int)
@click.argument("record_type", type=click.Choice(RECORD_CHOICES))
@click.argument("record_id", type=int)
@click.option("--amount", help="Amount to allocate; defaults to what remains on the line")
@click.option("--project", "project_id", type=int, help="Project ID to record on the match")
@click.pass_context
def match(ctx, line_id: int, record_type: str, record_id: int, amount: str | None, project_id):
    """Manually match a record to a bank line."""
    allocated: Decimal | None = None
    if amount is not None:
        try:
            allocated = parse_amount(amount)
        except ValueError as e:
            click.echo(f"Error: Invalid amount format: {e}", err=True)
            ctx.exit(1)

    service = _reconciliation_service(ctx)
    try:
        created = service.create_match(
            line_id, TransactionType(record_type), record_id, amount=allocated, project_id=project_id
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Matched {record_type} {record_id} to line {line_id} "
        f"for {created.matched_amount:,.2f} (match ID: {created.id})"
    )


@bank_group.command("unmatch")
@click.argument("match_id", type=int)
@click.pass_context
def unmatch(ctx, match_id: int):
    """Remove a match."""
    service = _reconciliation_service(ctx)
    try:
        line = service.remove_match(match_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Removed match {match_id}; line {line.id} is {line.status.value} "
        f"with {line.remaining_amount:,.2f} remaining"
    )


@bank_group.command("new")
@click.argument("line_id", type=int)
@click.argument("record_type", type=click.Choice(RECORD_CHOICES))
@click.pass_context
def new_record(ctx, line_id: int, record_type: str):
    """Show pre-filled values for a new record covering a bank line."""
    service = _reconciliation_service(ctx)
    try:
        request = service.create_new(line_id, TransactionType(record_type))
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"New {request.transaction_type.value} for bank line {request.bank_feed_line_id}:")
    click.echo(f"  Date:        {request.date}")
    click.echo(f"  Amount:      {request.amount:,.2f}")
    click.echo(f"  Description: {request.description}")
    if request.reference:
        click.echo(f"  Reference:   {request.reference}")


@bank_group.command("ignore")
@click.argument("line_id", type=int)
@click.option("--reason", help="Why the line is excluded")
@click.pass_context
def ignore(ctx, line_id: int, reason: str | None):
    """Exclude a bank line from reconciliation."""
    service = _reconciliation_service(ctx)
    try:
        service.ignore_line(line_id, reason)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Ignored bank line {line_id}")


@bank_group.command("unignore")
@click.argument("line_id", type=int)
@click.pass_context
def unignore(ctx, line_id: int):
    """Bring an ignored bank line back into reconciliation."""
    service = _reconciliation_service(ctx)
    try:
        service.unignore_line(line_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Bank line {line_id} is back in reconciliation")


@bank_group.command("notes")
@click.argument("line_id", type=int)
@click.argument("notes", required=False)
@click.pass_context
def notes(ctx, line_id: int, notes: str | None):
    """Set or clear the notes of a bank line."""
    service = _reconciliation_service(ctx)
    try:
        service.set_notes(line_id, notes)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated notes of bank line {line_id}")


@bank_group.command("auto-match")
@click.option("--account", help="Bank account name or ID")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--dry-run", is_flag=True, help="Show what would be matched without saving")
@period_options
@click.pass_context
def auto_match(ctx, account, start_date, end_date, dry_run: bool, **period_kwargs):
    """Accept high-confidence suggestions for unmatched lines."""
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=collect_period_flags(**period_kwargs),
    )
    account_id = _account_filter(ctx, account)
    service = _reconciliation_service(ctx)
    matches = service.auto_match(
        bank_account_id=account_id, start_date=start, end_date=end, dry_run=dry_run
    )

    verb = "Would match" if dry_run else "Matched"
    for m in matches:
        click.echo(
            f"{verb} line {m.bank_feed_line_id} to {m.system_record_type.value} "
            f"{m.system_record_id} for {m.matched_amount:,.2f} (score {m.match_score})"
        )
    click.echo(f"\n{verb} {len(matches)} line(s)")


@bank_group.command("export")
@click.option("--account", help="Bank account name or ID")
@click.option(
    "--scope",
    type=click.Choice([s.value for s in ExportScope]),
    default=ExportScope.ALL.value,
    show_default=True,
    help="Which lines to export; needs-review means partially matched",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to a file instead of stdout")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@period_options
@click.pass_context
def export(ctx, account, scope: str, output: str | None, start_date, end_date, **period_kwargs):
    """Export bank lines as CSV."""
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=collect_period_flags(**period_kwargs),
    )
    account_id = _account_filter(ctx, account)
    service = _reconciliation_service(ctx)
    lines = service.list_lines(bank_account_id=account_id, start_date=start, end_date=end)

    if output is None:
        export_lines_csv(lines, click.get_text_stream("stdout"), ExportScope(scope))
        return

    with open(Path(output), "w", encoding="utf-8", newline="") as f:
        count = export_lines_csv(lines, f, ExportScope(scope))
    click.echo(f"Exported {count} line(s) to {output}")


@bank_group.command("stats")
@click.option("--account", help="Bank account name or ID")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@period_options
@click.pass_context
def stats(ctx, account, start_date, end_date, **period_kwargs):
    """Show reconciliation progress."""
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=collect_period_flags(**period_kwargs),
    )
    account_id = _account_filter(ctx, account)
    result = _reconciliation_service(ctx).stats(
        bank_account_id=account_id, start_date=start, end_date=end
    )

    click.echo("\nReconciliation:")
    click.echo(f"  Lines:             {result.total_lines}")
    click.echo(f"  Matched:           {result.matched}")
    click.echo(f"  Partially matched: {result.partially_matched}")
    click.echo(f"  Unmatched:         {result.unmatched}")
    click.echo(f"  Ignored:           {result.ignored}")
    click.echo(f"  Reconciled:        {result.reconciled_percent:.1f}%")
    click.echo(f"  Total amount:      {result.total_amount:,.2f}")
    click.echo(f"  Matched amount:    {result.matched_amount:,.2f}")
    click.echo(f"  Unallocated:       {result.unallocated_amount:,.2f}")


def register_commands(cli):
    """Register bank commands with main CLI."""
    cli.add_command(bank_group, name="bank")
