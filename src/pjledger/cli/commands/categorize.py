"""Manual categorization command."""

import click
from pjledger.cli.commands.category import GROUP_CHOICES
from pjledger.cli.error_handling import handle_domain_error
from pjledger.domain.entities import LedgerGroup, MatchType
from pjledger.domain.errors import DomainError
from pjledger.domain.rules import RuleService
from pjledger.domain.transaction import TransactionService


@click.command("categorize")
@click.argument("transaction_id", type=int)
@click.option("--group", "group", type=click.Choice(GROUP_CHOICES, case_sensitive=False),
              help="Ledger group (defaults to the category's group)")
@click.option("--category", "category_path", help="Category path")
@click.option("--subcategory", help="Label used in flat breakdowns")
@click.option("--learn", is_flag=True, help="Also create a rule from the description")
@click.option("--match", "match_type", type=click.Choice([m.value for m in MatchType]),
              default=MatchType.CONTAINS.value, show_default=True,
              help="Match type of the learned rule")
@click.pass_context
def categorize_transaction(ctx, transaction_id: int, group: str | None,
                           category_path: str | None, subcategory: str | None,
                           learn: bool, match_type: str):
    """Classify a transaction by hand.

    Examples:
        pjledger categorize 12 --group GENERAL_ADMIN
        pjledger categorize 12 --category GENERAL_ADMIN.OCCUPANCY.RENT --learn
    """
    db = ctx.obj["db"]
    client_id = ctx.obj["client_id"]
    service = TransactionService(db)

    try:
        txn = service.categorize(
            transaction_id=transaction_id,
            client_id=client_id,
            ledger_group=LedgerGroup(group.upper()) if group else None,
            category_path=category_path,
            subcategory=subcategory,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    target = category_path or txn.classification.ledger_group.value
    click.echo(f"Transaction {transaction_id} categorized as '{target}'")

    if learn:
        try:
            rule_id = RuleService(db).learn_from_transaction(
                client_id, transaction_id, MatchType(match_type)
            )
        except DomainError as e:
            handle_domain_error(ctx, e)
            return
        rule = db.get_rule(rule_id)
        click.echo(f"Learned rule {rule_id}: {rule.match_type.value} '{rule.pattern}'")


def register_commands(cli):
    """Register categorize command with main CLI."""
    cli.add_command(categorize_transaction)
