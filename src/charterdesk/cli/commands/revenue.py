"""Revenue recognition commands."""

import click
from charterdesk.cli.error_handling import handle_domain_error
from charterdesk.cli.resolution import resolve_resource_or_exit
from charterdesk.domain.booking import BookingService
from charterdesk.domain.entities import EXTERNAL_RESOURCE, RecognitionStatus, RecognitionTrigger
from charterdesk.domain.ledger import DOCUMENT_STATUSES
from charterdesk.domain.revenue_recognition import (
    REVENUE_ACCOUNTS,
    STATUS_LABELS,
    RevenueRecognitionService,
    receipt_recognition_notice,
)
from charterdesk.utils.amount_parser import parse_amount
from charterdesk.utils.date_parser import parse_date


def _optional_date(ctx, value: str | None, label: str):
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@click.group()
def revenue_group():
    """Track deferred charter revenue."""
    pass


@revenue_group.command("add")
@click.option("--amount", required=True, help="Revenue amount (positive)")
@click.option("--currency", default="THB", show_default=True)
@click.option("--boat", help="Boat name or ID")
@click.option("--from", "charter_from", help="First charter day")
@click.option("--to", "charter_to", help="Last charter day; revenue is recognized on this day")
@click.option("--type", "charter_type", type=click.Choice(sorted(REVENUE_ACCOUNTS)), help="Charter type")
@click.option("--receipt", "receipt_id", type=int, help="Receipt document ID")
@click.option("--booking", "booking_id", type=int, help="Booking ID")
@click.option("--client", help="Client name")
@click.option("--description", help="Description")
@click.pass_context
def add_record(
    ctx,
    amount: str,
    currency: str,
    boat: str | None,
    charter_from: str | None,
    charter_to: str | None,
    charter_type: str | None,
    receipt_id: int | None,
    booking_id: int | None,
    client: str | None,
    description: str | None,
):
    """Record charter revenue.

    Revenue for a charter that has already ended is recognized immediately;
    without an end date the record waits for review.
    """
    db = ctx.obj["db"]
    try:
        value = parse_amount(amount)
    except ValueError as e:
        handle_domain_error(ctx, e)
    date_from = _optional_date(ctx, charter_from, "charter start date")
    date_to = _optional_date(ctx, charter_to, "charter end date")

    boat_id = None
    if boat is not None:
        resource = resolve_resource_or_exit(ctx, BookingService(db), boat)
        if resource == EXTERNAL_RESOURCE:
            click.echo("Error: Revenue must belong to one of your boats", err=True)
            ctx.exit(1)
        boat_id = int(resource)

    service = RevenueRecognitionService(db)
    try:
        record_id = service.create_record(
            amount=value,
            currency=currency,
            boat_id=boat_id,
            charter_date_from=date_from,
            charter_date_to=date_to,
            charter_type=charter_type,
            receipt_id=receipt_id,
            booking_id=booking_id,
            client_name=client,
            description=description,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    record = service.get_record(record_id)
    click.echo(
        f"Created revenue record {record_id}: {STATUS_LABELS[record.status]} "
        f"(account {record.revenue_account})"
    )


@revenue_group.command("list")
@click.option(
    "--status", type=click.Choice([s.value for s in RecognitionStatus]), help="Only this status"
)
@click.pass_context
def list_records(ctx, status: str | None):
    """List revenue records."""
    service = RevenueRecognitionService(ctx.obj["db"])
    records = service.list_records(RecognitionStatus(status) if status else None)
    if not records:
        click.echo("No revenue records found.")
        return

    for record in records:
        charter = (
            f"{record.charter_date_from or '?'} - {record.charter_date_to}"
            if record.charter_date_to
            else "no charter dates"
        )
        click.echo(
            f"ID: {record.id:4d} | {record.amount:>12,.2f} {record.currency} | "
            f"{STATUS_LABELS[record.status]:19s} | {charter:25s} | {record.client_name or ''}"
        )


@revenue_group.command("recognize")
@click.argument("record_id", type=int)
@click.option("--immediate", is_flag=True, help="Recognize before the charter ends")
@click.option("--date", "recognition_date", help="Recognition date (defaults to today)")
@click.pass_context
def recognize(ctx, record_id: int, immediate: bool, recognition_date: str | None):
    """Recognize a deferred revenue record by hand."""
    when = _optional_date(ctx, recognition_date, "recognition date")
    trigger = RecognitionTrigger.IMMEDIATE if immediate else RecognitionTrigger.MANUAL
    try:
        record = RevenueRecognitionService(ctx.obj["db"]).recognize(
            record_id, trigger=trigger, recognition_date=when
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Revenue record {record_id}: {STATUS_LABELS[record.status]} on {record.recognition_date}")


@revenue_group.command("process")
@click.option("--as-of", help="Treat this date as today")
@click.pass_context
def process(ctx, as_of: str | None):
    """Recognize every pending record whose charter has ended."""
    today = _optional_date(ctx, as_of, "date")
    recognized = RevenueRecognitionService(ctx.obj["db"]).process_automatic(today=today)
    click.echo(f"Recognized {len(recognized)} record(s)")


@revenue_group.command("dates")
@click.argument("record_id", type=int)
@click.option("--from", "charter_from", help="First charter day")
@click.option("--to", "charter_to", help="Last charter day")
@click.pass_context
def update_dates(ctx, record_id: int, charter_from: str | None, charter_to: str | None):
    """Set the charter dates of a deferred record."""
    date_from = _optional_date(ctx, charter_from, "charter start date")
    date_to = _optional_date(ctx, charter_to, "charter end date")
    try:
        record = RevenueRecognitionService(ctx.obj["db"]).update_charter_dates(
            record_id, date_from, date_to
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Revenue record {record_id}: {STATUS_LABELS[record.status]}")


@revenue_group.command("summary")
@click.pass_context
def summary(ctx):
    """Show deferred revenue totals."""
    result = RevenueRecognitionService(ctx.obj["db"]).summary()
    click.echo(f"Deferred revenue: {result.total_deferred:,.2f}")
    click.echo(f"  Pending:      {result.pending_count}")
    click.echo(f"  Needs review: {result.needs_review_count}")


@revenue_group.command("notice")
@click.option(
    "--receipt-status", type=click.Choice(DOCUMENT_STATUSES), default="paid", show_default=True
)
@click.option("--charter-end", help="Last charter day of the receipt")
@click.pass_context
def notice(ctx, receipt_status: str, charter_end: str | None):
    """Explain when a receipt's revenue is recognized."""
    end = _optional_date(ctx, charter_end, "charter end date")
    result = receipt_recognition_notice(receipt_status, end)
    if result is None:
        click.echo("No revenue is recognized for draft or void receipts.")
        return
    click.echo(result.message)


def register_commands(cli):
    """Register revenue commands with main CLI."""
    cli.add_command(revenue_group, name="revenue")
