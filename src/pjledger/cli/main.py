"""Main CLI entry point."""

import logging

import click
from pjledger.config import Settings
from pjledger.database.factories import create_sqlite_database
from pjledger.domain.errors import DomainError

# Import and register all commands at module level
from pjledger.cli.commands import (
    account,
    category,
    import_cmd,
    categorize,
    rule,
    sale,
    reconcile,
    report,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides PJLEDGER_DB_PATH environment variable)",
    envvar="PJLEDGER_DB_PATH",
)
@click.option(
    "--client",
    help="Client whose books to use (overrides PJLEDGER_CLIENT environment variable)",
    envvar="PJLEDGER_CLIENT",
)
@click.option("--verbose", "-v", is_flag=True, help="Log engine activity to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, client: str | None, verbose: bool):
    """PJ Ledger - Small-business bookkeeping.

    Import bank statements, classify transactions into ledger groups,
    record sales with their settlement plans and reconcile payouts.
    """
    ctx.ensure_object(dict)

    try:
        settings = Settings.from_env()
    except DomainError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format=LOG_FORMAT,
    )
    ctx.obj["settings"] = settings
    ctx.obj["client_id"] = client or settings.client_id

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path or settings.database_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
category.register_commands(cli)
import_cmd.register_commands(cli)
categorize.register_commands(cli)
rule.register_commands(cli)
sale.register_commands(cli)
reconcile.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
