"""Categorization rule commands."""

import click
from pjledger.cli.commands.category import GROUP_CHOICES
from pjledger.cli.error_handling import handle_domain_error, resolve_accounts_or_exit
from pjledger.domain.entities import LedgerGroup, MatchType
from pjledger.domain.errors import DomainError
from pjledger.domain.rules import RuleService


@click.group()
def rule_group():
    """Manage categorization rules."""
    pass


@rule_group.command("add")
@click.argument("pattern")
@click.option("--group", "group", required=True,
              type=click.Choice(GROUP_CHOICES, case_sensitive=False), help="Ledger group")
@click.option("--match", "match_type", type=click.Choice([m.value for m in MatchType]),
              default=MatchType.CONTAINS.value, show_default=True)
@click.option("--category", "category_path", help="Category path")
@click.option("--subcategory", help="Label used in flat breakdowns")
@click.pass_context
def add_rule(ctx, pattern: str, group: str, match_type: str,
             category_path: str | None, subcategory: str | None):
    """Add a rule; rules are evaluated in creation order."""
    service = RuleService(ctx.obj["db"])
    try:
        rule_id = service.add_rule(
            client_id=ctx.obj["client_id"],
            pattern=pattern,
            match_type=MatchType(match_type),
            ledger_group=LedgerGroup(group.upper()),
            category_path=category_path,
            subcategory=subcategory,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created rule {rule_id}")


@rule_group.command("list")
@click.pass_context
def list_rules(ctx):
    """List rules in evaluation order."""
    rules = RuleService(ctx.obj["db"]).list_rules(ctx.obj["client_id"])
    if not rules:
        click.echo("No rules found.")
        return

    click.echo("\nRules:")
    click.echo("-" * 70)
    for rule in rules:
        status = "" if rule.enabled else " (disabled)"
        target = rule.category_path or rule.ledger_group.value
        click.echo(
            f"ID: {rule.id:3d} | {rule.match_type.value:11s} | {rule.pattern:20s} | {target}{status}"
        )


@rule_group.command("apply")
@click.option("--account", "accounts", multiple=True, help="Account name or ID (repeatable)")
@click.pass_context
def apply_rules(ctx, accounts: tuple[str, ...]):
    """Apply rules to existing transactions; manual choices are kept."""
    account_ids = resolve_accounts_or_exit(ctx, accounts)
    service = RuleService(ctx.obj["db"])
    try:
        count = service.apply_rules(ctx.obj["client_id"], account_ids=account_ids)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Reclassified {count} transactions")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
