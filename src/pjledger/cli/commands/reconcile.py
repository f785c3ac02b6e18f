"""Reconciliation commands."""

import click
from pjledger.cli.error_handling import handle_domain_error
from pjledger.domain.errors import DomainError
from pjledger.domain.reconciliation import ReconciliationService


def _service(ctx) -> ReconciliationService:
    settings = ctx.obj["settings"]
    return ReconciliationService(ctx.obj["db"], window_days=settings.match_window_days)


@click.group()
def reconcile_group():
    """Match sale settlement parcels with bank deposits."""
    pass


@reconcile_group.command("suggest")
@click.argument("leg_id", type=int)
@click.pass_context
def suggest(ctx, leg_id: int):
    """Suggest deposits for a sale leg's open parcels."""
    try:
        suggestions = _service(ctx).suggest(leg_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not suggestions:
        click.echo("No matching deposits found.")
        return

    click.echo(f"\nSuggestions for leg {leg_id}:")
    click.echo("-" * 70)
    for s in suggestions:
        click.echo(
            f"Parcel {s.parcel_n} | Txn {s.transaction_id} | {s.date.isoformat()} | "
            f"{s.amount:>10.2f} | Score {s.score} | {s.description}"
        )
        click.echo(f"    {s.reason}")


@reconcile_group.command("confirm")
@click.argument("leg_id", type=int)
@click.argument("parcel_n", type=int)
@click.argument("transaction_id", type=int)
@click.option("--note", help="Reconciliation note stored on the leg")
@click.pass_context
def confirm(ctx, leg_id: int, parcel_n: int, transaction_id: int, note: str | None):
    """Confirm that a transaction settles a parcel."""
    try:
        confirmation = _service(ctx).confirm(leg_id, parcel_n, transaction_id, note=note)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    leg = confirmation.leg
    click.echo(f"Parcel {parcel_n} of leg {leg_id} matched with transaction {transaction_id}")
    click.echo(
        f"Leg state: {leg.reconciliation_state.value} "
        f"({leg.matched_parcels}/{len(leg.settlement_plan)} parcels)"
    )


def register_commands(cli):
    """Register reconciliation commands with main CLI."""
    cli.add_command(reconcile_group, name="reconcile")
