"""Ledger document commands."""

import click
from charterdesk.cli.error_handling import handle_domain_error
from charterdesk.domain.entities import DocumentKind
from charterdesk.domain.ledger import (
    DOCUMENT_STATUSES,
    PAID,
    LedgerService,
    document_record_type,
)
from charterdesk.utils.amount_parser import parse_amount
from charterdesk.utils.date_parser import parse_date

KIND_CHOICES = [k.value for k in DocumentKind]


@click.group()
def ledger_group():
    """Manage receipts and expense documents."""
    pass


@ledger_group.command("add")
@click.argument("kind", type=click.Choice(KIND_CHOICES))
@click.argument("number")
@click.option("--date", "document_date", default="today", show_default=True, help="Document date")
@click.option("--amount", required=True, help="Document total (positive)")
@click.option("--status", type=click.Choice(DOCUMENT_STATUSES), default=PAID, show_default=True)
@click.option("--counterparty", help="Client or supplier name")
@click.option("--reference", help="Payment reference")
@click.option("--net-payable", help="Amount payable after withholding (expenses only)")
@click.option("--supplier-invoice", help="Supplier invoice number (expenses only)")
@click.option("--notes", help="Notes")
@click.option("--project", "project_ids", type=int, multiple=True, help="Project ID (repeatable)")
@click.pass_context
def add_document(
    ctx,
    kind: str,
    number: str,
    document_date: str,
    amount: str,
    status: str,
    counterparty: str | None,
    reference: str | None,
    net_payable: str | None,
    supplier_invoice: str | None,
    notes: str | None,
    project_ids: tuple[int, ...],
):
    """Add an income receipt or an expense document.

    Examples:
        charterdesk ledger add income RC-2025-001 --amount 5000 --counterparty "ABC Travel"
        charterdesk ledger add expense EXP-7 --amount 1070 --net-payable 1040 --supplier-invoice INV-88
    """
    try:
        doc_date = parse_date(document_date)
        total = parse_amount(amount)
        net = parse_amount(net_payable) if net_payable is not None else None
    except ValueError as e:
        handle_domain_error(ctx, e)

    service = LedgerService(ctx.obj["db"])
    try:
        document_id = service.create_document(
            kind=DocumentKind(kind),
            number=number,
            document_date=doc_date,
            total_amount=total,
            status=status,
            counterparty=counterparty,
            reference=reference,
            net_payable=net,
            supplier_invoice_number=supplier_invoice,
            notes=notes,
            project_ids=project_ids,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created {kind} document '{number}' (ID: {document_id})")


@ledger_group.command("list")
@click.option("--kind", type=click.Choice(KIND_CHOICES), help="Only income or expense documents")
@click.option("--status", type=click.Choice(DOCUMENT_STATUSES), help="Only documents with this status")
@click.option("--unreconciled", is_flag=True, help="Only paid documents not yet matched to the bank")
@click.pass_context
def list_documents(ctx, kind: str | None, status: str | None, unreconciled: bool):
    """List ledger documents."""
    service = LedgerService(ctx.obj["db"])

    if unreconciled:
        records = service.candidate_records()
        if kind:
            record_type = document_record_type(DocumentKind(kind))
            records = [r for r in records if r.record_type == record_type]
        if not records:
            click.echo("No unreconciled documents.")
            return
        for record in records:
            click.echo(
                f"{record.record_type.value:7s} {record.id:4d} | {record.date} | "
                f"{record.amount:>12,.2f} | {record.description}"
            )
        return

    documents = service.list_documents(kind=DocumentKind(kind) if kind else None, status=status)
    if not documents:
        click.echo("No documents found.")
        return

    click.echo(f"\nFound {len(documents)} document(s):")
    click.echo("-" * 90)
    for doc in documents:
        click.echo(
            f"ID: {doc.id:4d} | {doc.kind.value:7s} | {doc.number:15s} | {doc.document_date} | "
            f"{doc.total_amount:>12,.2f} | {doc.status:8s} | {doc.counterparty or ''}"
        )


def register_commands(cli):
    """Register ledger commands with main CLI."""
    cli.add_command(ledger_group, name="ledger")
