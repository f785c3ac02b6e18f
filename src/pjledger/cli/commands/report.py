"""Report commands."""

from decimal import Decimal

import click
from pjledger.cli.date_filters import date_range_options, resolve_cli_date_range
from pjledger.cli.error_handling import handle_domain_error, resolve_accounts_or_exit
from pjledger.domain.entities import CategoryHierarchyNode
from pjledger.domain.errors import DomainError
from pjledger.domain.report import ReportService

INDENT_SIZE = 4

account_option = click.option(
    "--account", "accounts", multiple=True,
    help="Account name or ID (repeatable; default: all accounts merged)",
)


def _service(ctx) -> ReportService:
    settings = ctx.obj["settings"]
    return ReportService(ctx.obj["db"], max_workers=settings.report_workers)


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"


def _display_tree(nodes: list[CategoryHierarchyNode], indent: int = 0) -> None:
    """Recursively display hierarchy nodes with their rolled-up totals."""
    for node in nodes:
        if indent == 0:
            click.echo()
        indent_str = " " * (INDENT_SIZE * indent)
        label_width = 44 - (INDENT_SIZE * indent)
        click.echo(
            f"{indent_str}{node.label:<{label_width}} "
            f"{_money(node.inflows):>14} {_money(node.outflows):>14} {_money(node.net):>14}"
        )
        _display_tree(node.children, indent + 1)


@click.group()
def report_group():
    """Build reports for one or more accounts."""
    pass


@report_group.command("tree")
@account_option
@date_range_options
@click.pass_context
def tree(ctx, accounts: tuple[str, ...], start_date: str | None, end_date: str | None,
         period: str | None):
    """Show the category hierarchy with rolled-up totals."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period
    )
    account_ids = resolve_accounts_or_exit(ctx, accounts)
    try:
        hierarchy = _service(ctx).build_tree(
            ctx.obj["client_id"], account_ids=account_ids, start_date=start, end_date=end
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not hierarchy.roots:
        click.echo("No transactions found.")
        return

    click.echo(f"{'Category':<44} {'Inflows':>14} {'Outflows':>14} {'Net':>14}")
    click.echo("-" * 88)
    _display_tree(hierarchy.roots)
    totals = hierarchy.totals
    click.echo("-" * 88)
    click.echo(
        f"{'Total':<44} {_money(totals.inflows):>14} {_money(totals.outflows):>14} "
        f"{_money(totals.net):>14}"
    )


@report_group.command("cashflow")
@account_option
@date_range_options
@click.pass_context
def cashflow(ctx, accounts: tuple[str, ...], start_date: str | None, end_date: str | None,
             period: str | None):
    """Show cash-flow totals and KPIs."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period
    )
    account_ids = resolve_accounts_or_exit(ctx, accounts)
    summary = _service(ctx).cash_flow(
        ctx.obj["client_id"], account_ids=account_ids, start_date=start, end_date=end
    )

    if summary.transaction_count == 0:
        click.echo("No transactions found.")
        return

    click.echo(f"\nCash flow {summary.start_date.isoformat()} to {summary.end_date.isoformat()}"
               f" ({summary.coverage_days} days)")
    click.echo("-" * 50)
    click.echo(f"{'Money in':<30} {_money(summary.total_in):>18}")
    click.echo(f"{'Money out':<30} {_money(summary.total_out):>18}")
    click.echo(f"{'Balance':<30} {_money(summary.balance):>18}")
    click.echo(f"{'Inflows / outflows':<30} {summary.inflow_count:>8} / {summary.outflow_count:<8}")
    click.echo(f"{'Largest inflow':<30} {_money(summary.largest_in):>18}")
    click.echo(f"{'Largest outflow':<30} {_money(summary.largest_out):>18}")
    click.echo(f"{'Average inflow':<30} {_money(summary.average_ticket_in):>18}")
    click.echo(f"{'Average outflow':<30} {_money(summary.average_ticket_out):>18}")


@report_group.command("breakdown")
@account_option
@click.option("--month", help="Month as YYYY-MM (default: latest with activity)")
@click.pass_context
def breakdown(ctx, accounts: tuple[str, ...], month: str | None):
    """Show one month's costs by ledger group and subcategory."""
    account_ids = resolve_accounts_or_exit(ctx, accounts)
    result = _service(ctx).cost_breakdown(ctx.obj["client_id"], account_ids=account_ids, month=month)
    if result["month"] is None:
        click.echo("No transactions found.")
        return

    click.echo(f"\nBreakdown for {result['month']}")
    for group in result["groups"]:
        click.echo()
        click.echo(f"{group['label']:<48} {_money(group['net']):>14}")
        for item in group["items"]:
            click.echo(f"    {item['label']:<44} {_money(item['net']):>14}")
    uncategorized = result["uncategorized"]
    if uncategorized["count"]:
        click.echo(
            f"\nUncategorized expenses: {uncategorized['count']} "
            f"({_money(uncategorized['total'])})"
        )


@report_group.command("insights")
@account_option
@click.option("--month", help="Month as YYYY-MM (default: latest with activity)")
@click.pass_context
def insights(ctx, accounts: tuple[str, ...], month: str | None):
    """Show the monthly summary, history and highlights."""
    settings = ctx.obj["settings"]
    account_ids = resolve_accounts_or_exit(ctx, accounts)
    result = _service(ctx).insights(
        ctx.obj["client_id"],
        account_ids=account_ids,
        month=month,
        history_months=settings.insights_history_months,
    )
    if result["month"] is None:
        click.echo("No activity found.")
        return

    summary = result["summary"]
    click.echo(f"\nInsights for {result['month']}")
    click.echo("-" * 50)
    for key, label in (
        ("billing", "Billing"),
        ("revenue", "Revenue"),
        ("revenue_deductions", "Deductions"),
        ("gross_profit", "Gross profit"),
        ("expenses", "Expenses"),
        ("net_profit", "Net profit"),
    ):
        click.echo(f"{label:<30} {_money(summary[key]):>18}")
    click.echo(f"{'Net margin':<30} {summary['net_margin']:>17}%")
    click.echo(f"{'Sales':<30} {summary['sales_count']:>18}")

    click.echo("\nHistory:")
    for row in result["history"]:
        click.echo(f"  {row['month']}  revenue {_money(row['revenue']):>14}  "
                   f"net {_money(row['net_profit']):>14}")

    highlights = result["highlights"]
    if highlights["top_costs"]:
        click.echo("\nTop costs:")
        for cost in highlights["top_costs"]:
            click.echo(f"  {cost['date'].isoformat()}  {cost['description'][:30]:<30} "
                       f"{_money(cost['amount']):>14}")
    if highlights["revenue_channels"]:
        click.echo("\nRevenue channels:")
        for channel in highlights["revenue_channels"]:
            click.echo(f"  {channel['channel']:<30} {_money(channel['total']):>14} "
                       f"({channel['percentage']}%)")


@report_group.command("receivables")
@date_range_options
@click.pass_context
def receivables(ctx, start_date: str | None, end_date: str | None, period: str | None):
    """Show unsettled sale parcels."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period
    )
    result = _service(ctx).receivables(ctx.obj["client_id"], start_date=start, end_date=end)
    click.echo(f"Open parcels: {result.count} ({_money(result.amount)})")
    click.echo(f"Overdue: {result.overdue_count} ({_money(result.overdue_amount)})")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
