"""Statement import command."""

import click
from pjledger.cli.error_handling import handle_domain_error, resolve_accounts_or_exit
from pjledger.domain.errors import DomainError
from pjledger.domain.statement_import import StatementImportService
from pjledger.utils.amount_parser import parse_amount


def _optional_amount(ctx, value: str | None):
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        handle_domain_error(ctx, e)


@click.command("import")
@click.argument("statement_file", type=click.Path(exists=True))
@click.option("--account", required=True, help="Account name or ID")
@click.option("--opening-balance", help="Balance before the first statement entry")
@click.option("--closing-balance", help="Closing balance reported by the bank")
@click.option("--dayfirst", is_flag=True, help="Read dates like 10/01/2024 as day/month")
@click.pass_context
def import_statement(ctx, statement_file: str, account: str, opening_balance: str | None,
                     closing_balance: str | None, dayfirst: bool):
    """Import transactions from a bank statement file."""
    account_id = resolve_accounts_or_exit(ctx, (account,))[0]
    service = StatementImportService(ctx.obj["db"])

    try:
        result = service.import_statement(
            client_id=ctx.obj["client_id"],
            file_path=statement_file,
            account_id=account_id,
            opening_balance=_optional_amount(ctx, opening_balance),
            closing_balance=_optional_amount(ctx, closing_balance),
            dayfirst=dayfirst,
        )
    except (DomainError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
        return

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result['imported']} transactions")
    click.echo(f"  Skipped: {result['skipped']} duplicates")
    click.echo(f"  Categorized: {result['categorized']} by rules")
    if result["warnings"]:
        click.echo(f"  Warnings: {len(result['warnings'])}")
        for warning in result["warnings"]:
            click.echo(f"    [{warning.code}] {warning.message}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_statement)
