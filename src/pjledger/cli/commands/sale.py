"""Sale recording commands."""

import click
from pjledger.cli.error_handling import handle_domain_error
from pjledger.domain.errors import DomainError
from pjledger.domain.sale import LegInput, SaleService
from pjledger.utils.amount_parser import parse_amount
from pjledger.utils.date_parser import parse_date


def parse_leg(leg_text: str) -> LegInput:
    """Parse ``METHOD:GROSS[:FEES[:RULE[:INSTALLMENTS]]]`` into a leg.

    Raises:
        ValueError: If the leg text is malformed
    """
    parts = [part.strip() for part in leg_text.split(":")]
    if len(parts) < 2 or not parts[0]:
        raise ValueError(f"Invalid leg '{leg_text}': expected METHOD:GROSS[:FEES[:RULE[:INSTALLMENTS]]]")
    fees = parse_amount(parts[2]) if len(parts) > 2 and parts[2] else parse_amount("0")
    rule = parts[3] if len(parts) > 3 and parts[3] else None
    try:
        installments = int(parts[4]) if len(parts) > 4 and parts[4] else 1
    except ValueError:
        raise ValueError(f"Invalid leg '{leg_text}': installments must be a number")
    return LegInput(
        method=parts[0],
        gross_amount=parse_amount(parts[1]),
        fees=fees,
        settlement_rule=rule,
        installments=installments,
    )


@click.group()
def sale_group():
    """Record sales and their settlement plans."""
    pass


@sale_group.command("add")
@click.option("--date", "sale_date", required=True, help="Sale date")
@click.option("--leg", "legs", multiple=True, required=True,
              help="Payment leg METHOD:GROSS[:FEES[:RULE[:INSTALLMENTS]]] (repeatable)")
@click.option("--invoice", help="Invoice number")
@click.option("--customer", help="Customer name")
@click.option("--channel", help="Sales channel")
@click.pass_context
def add_sale(ctx, sale_date: str, legs: tuple[str, ...], invoice: str | None,
             customer: str | None, channel: str | None):
    """Record a sale.

    Examples:
        pjledger sale add --date 2024-03-01 --leg pix:250.00
        pjledger sale add --date 2024-03-01 --invoice NF-17 --leg "card:1000:30:D+30/por_parcela:3"
    """
    try:
        parsed_date = parse_date(sale_date)
        leg_inputs = [parse_leg(leg_text) for leg_text in legs]
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    service = SaleService(ctx.obj["db"])
    try:
        sale = service.create_sale(
            client_id=ctx.obj["client_id"],
            sale_date=parsed_date,
            legs=leg_inputs,
            invoice_number=invoice,
            customer=customer,
            channel=channel,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Recorded sale {sale.id}: gross {sale.gross_amount:.2f}, net {sale.net_amount:.2f}")
    for leg in sale.legs:
        click.echo(f"  Leg {leg.id} ({leg.method}, {leg.settlement_rule}): net {leg.net_amount:.2f}")
        for parcel in leg.settlement_plan:
            click.echo(f"    #{parcel.n} due {parcel.due_date.isoformat()}: {parcel.expected_amount:.2f}")


@sale_group.command("list")
@click.pass_context
def list_sales(ctx):
    """List sales with their legs' reconciliation state."""
    sales = SaleService(ctx.obj["db"]).list_sales(ctx.obj["client_id"])
    if not sales:
        click.echo("No sales found.")
        return

    for sale in sales:
        invoice = f" | Invoice: {sale.invoice_number}" if sale.invoice_number else ""
        click.echo(f"Sale {sale.id} | {sale.date.isoformat()} | {sale.gross_amount:>12.2f}{invoice}")
        for leg in sale.legs:
            click.echo(
                f"  Leg {leg.id} | {leg.method:12s} | {leg.net_amount:>12.2f} | "
                f"{leg.matched_parcels}/{len(leg.settlement_plan)} | {leg.reconciliation_state.value}"
            )


def register_commands(cli):
    """Register sale commands with main CLI."""
    cli.add_command(sale_group, name="sale")
