"""Account management commands."""

import click
from pjledger.cli.error_handling import handle_domain_error
from pjledger.domain.account import AccountService
from pjledger.domain.errors import DomainError


@click.group()
def account_group():
    """Manage bank accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--bank", help="Bank name (defaults to account name if not provided)")
@click.pass_context
def create_account(ctx, name: str, bank: str | None):
    """Create a new account for the current client.

    Examples:
        pjledger account create "Operating"
        pjledger --client acme account create "Payroll" --bank "Itau"
    """
    service = AccountService(ctx.obj["db"])
    bank_name = bank if bank is not None else name

    try:
        account_id = service.create_account(
            client_id=ctx.obj["client_id"], name=name, bank_name=bank_name
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created account '{name}' (ID: {account_id})")
    if bank is None:
        click.echo(f"Bank name set to '{bank_name}'")


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List the current client's accounts."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(client_id=ctx.obj["client_id"])
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        click.echo(f"ID: {acc.id:3d} | {acc.name:20s} | Bank: {acc.bank_name}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
