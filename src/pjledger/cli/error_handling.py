"""CLI error handling helpers."""

import click

from pjledger.domain.account import AccountService
from pjledger.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def resolve_accounts_or_exit(
    ctx: click.Context, accounts: tuple[str, ...] = ()
) -> list[int]:
    """Resolve account names or IDs of the current client, or exit with a CLI error.

    No accounts selects every account of the client.
    """
    service = AccountService(ctx.obj["db"])
    try:
        return service.resolve_accounts(ctx.obj["client_id"], accounts)
    except DomainError as exc:
        handle_domain_error(ctx, exc)
