"""Main CLI entry point."""

import logging

import click
from charterdesk.database.factories import create_sqlite_database

# Import and register all commands at module level
from charterdesk.cli.commands import (
    account,
    bank,
    boat,
    booking,
    calendar,
    ledger,
    revenue,
    rule,
    settings,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides CHARTERDESK_DB_PATH environment variable)",
    envvar="CHARTERDESK_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="CHARTERDESK_LOG_LEVEL",
    help="Logging verbosity",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Charterdesk - Charter operations and bank reconciliation.

    Keep a booking calendar for your boats, import bank statements and
    reconcile them against receipts and expenses, and track deferred
    charter revenue.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
bank.register_commands(cli)
boat.register_commands(cli)
booking.register_commands(cli)
calendar.register_commands(cli)
ledger.register_commands(cli)
revenue.register_commands(cli)
rule.register_commands(cli)
settings.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
