"""Matching rule commands."""

import click
from charterdesk.cli.error_handling import handle_domain_error
from charterdesk.cli.resolution import resolve_account_or_exit
from charterdesk.domain.account import BankAccountService
from charterdesk.domain.entities import AmountSign, TransactionType
from charterdesk.domain.rules import MatchingRuleService
from charterdesk.utils.amount_parser import parse_amount


@click.group()
def rule_group():
    """Manage bank matching rules."""
    pass


@rule_group.command("create")
@click.argument("name")
@click.option("--priority", type=int, default=0, show_default=True, help="Higher runs first")
@click.option("--contains", multiple=True, help="Keyword the description must contain (repeatable)")
@click.option("--min-amount", help="Minimum absolute amount")
@click.option("--max-amount", help="Maximum absolute amount")
@click.option("--sign", type=click.Choice([s.value for s in AmountSign]), help="Money in or out")
@click.option("--account", "accounts", multiple=True, help="Bank account name or ID (repeatable)")
@click.option(
    "--suggest-type",
    type=click.Choice([t.value for t in TransactionType]),
    help="Record type to suggest for matching lines",
)
@click.option(
    "--auto-match-at",
    type=click.IntRange(0, 100),
    help="Auto-accept suggestions at or above this score",
)
@click.pass_context
def create_rule(
    ctx,
    name: str,
    priority: int,
    contains: tuple[str, ...],
    min_amount: str | None,
    max_amount: str | None,
    sign: str | None,
    accounts: tuple[str, ...],
    suggest_type: str | None,
    auto_match_at: int | None,
):
    """Create a matching rule.

    Examples:
        charterdesk rule create "Marina fees" --contains marina --sign debit --suggest-type expense
        charterdesk rule create "Agency payouts" --contains "ABC TRAVEL" --auto-match-at 70
    """
    db = ctx.obj["db"]
    try:
        amount_min = abs(parse_amount(min_amount)) if min_amount else None
        amount_max = abs(parse_amount(max_amount)) if max_amount else None
    except ValueError as e:
        handle_domain_error(ctx, e)

    account_service = BankAccountService(db)
    account_ids = tuple(resolve_account_or_exit(ctx, account_service, a) for a in accounts)

    try:
        rule_id = MatchingRuleService(db).create_rule(
            name=name,
            priority=priority,
            description_contains=contains,
            amount_min=amount_min,
            amount_max=amount_max,
            amount_sign=AmountSign(sign) if sign else None,
            bank_account_ids=account_ids,
            suggest_type=TransactionType(suggest_type) if suggest_type else None,
            auto_match_if_confidence=auto_match_at,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created rule '{name}' (ID: {rule_id})")


@rule_group.command("list")
@click.option("--enabled-only", is_flag=True, help="Hide disabled rules")
@click.pass_context
def list_rules(ctx, enabled_only: bool):
    """List matching rules by priority."""
    rules = MatchingRuleService(ctx.obj["db"]).list_rules(enabled_only=enabled_only)
    if not rules:
        click.echo("No rules found.")
        return

    for rule in rules:
        conditions = []
        if rule.description_contains:
            conditions.append("contains " + "/".join(rule.description_contains))
        if rule.amount_min is not None:
            conditions.append(f">= {rule.amount_min}")
        if rule.amount_max is not None:
            conditions.append(f"<= {rule.amount_max}")
        if rule.amount_sign:
            conditions.append(rule.amount_sign.value)
        if rule.bank_account_ids:
            conditions.append("accounts " + ",".join(str(a) for a in rule.bank_account_ids))
        state = "on " if rule.enabled else "off"
        click.echo(
            f"ID: {rule.id:3d} | {state} | priority {rule.priority:3d} | {rule.name:25s} | "
            f"{'; '.join(conditions) or 'any line'}"
        )


def _set_enabled(ctx, rule_id: int, enabled: bool):
    try:
        MatchingRuleService(ctx.obj["db"]).set_enabled(rule_id, enabled)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Rule {rule_id} {'enabled' if enabled else 'disabled'}")


@rule_group.command("enable")
@click.argument("rule_id", type=int)
@click.pass_context
def enable_rule(ctx, rule_id: int):
    """Enable a rule."""
    _set_enabled(ctx, rule_id, True)


@rule_group.command("disable")
@click.argument("rule_id", type=int)
@click.pass_context
def disable_rule(ctx, rule_id: int):
    """Disable a rule."""
    _set_enabled(ctx, rule_id, False)


@rule_group.command("delete")
@click.argument("rule_id", type=int)
@click.pass_context
def delete_rule(ctx, rule_id: int):
    """Delete a rule that no match refers to."""
    try:
        MatchingRuleService(ctx.obj["db"]).delete_rule(rule_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted rule {rule_id}")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
