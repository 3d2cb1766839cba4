"""Bank account management commands."""

import click
from charterdesk.cli.error_handling import handle_domain_error
from charterdesk.cli.resolution import resolve_account_or_exit
from charterdesk.domain.account import BankAccountService


@click.group()
def account_group():
    """Manage bank accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--bank", help="Bank name (defaults to account name if not provided)")
@click.option("--currency", default="THB", show_default=True, help="Account currency code")
@click.pass_context
def create_account(ctx, name: str, bank: str | None, currency: str):
    """Create a new bank account.

    Examples:
        charterdesk account create "Operating"
        charterdesk account create "USD Account" --bank "Kasikorn" --currency USD
    """
    service = BankAccountService(ctx.obj["db"])
    bank_name = bank if bank is not None else name

    try:
        account_id = service.create_account(name=name, bank_name=bank_name, currency=currency)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created bank account '{name}' (ID: {account_id})")
    if bank is None:
        click.echo(f"Bank name set to '{bank_name}'")


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all bank accounts."""
    service = BankAccountService(ctx.obj["db"])

    accounts = service.list_accounts()
    if not accounts:
        click.echo("No bank accounts found.")
        return

    click.echo("\nBank accounts:")
    click.echo("-" * 60)
    for acc in accounts:
        click.echo(f"ID: {acc.id:3d} | {acc.name:20s} | {acc.currency} | Bank: {acc.bank_name}")


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.option("--bank", help="New bank name (optional)")
@click.pass_context
def rename_account(ctx, account: str, new_name: str, bank: str | None) -> None:
    """Rename a bank account.

    ACCOUNT can be an account name or ID.
    """
    service = BankAccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.rename_account(account_id=account_id, name=new_name, bank_name=bank)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Renamed bank account to '{new_name}'")
    if bank is not None:
        click.echo(f"Bank name updated to '{bank}'")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete a bank account.

    Accounts with imported bank lines cannot be deleted.
    """
    service = BankAccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.get_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete bank account '{account_obj.name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted bank account '{account_obj.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
