"""Category plan commands."""

import click
from pjledger.cli.error_handling import handle_domain_error
from pjledger.domain.category import CategoryService
from pjledger.domain.category_index import CategoryIndex
from pjledger.domain.entities import LedgerGroup
from pjledger.domain.errors import DomainError

GROUP_CHOICES = [group.value for group in LedgerGroup]

# Default plan: (label, parent path, accepts postings). Parents come first.
DEFAULT_CATEGORIES = [
    ("Product Sales", "REVENUE", True),
    ("Service Revenue", "REVENUE", True),
    ("Taxes on Sales", "REVENUE_DEDUCTIONS", True),
    ("Card Fees", "REVENUE_DEDUCTIONS", True),
    ("Returns", "REVENUE_DEDUCTIONS", True),
    ("Occupancy", "GENERAL_ADMIN", False),
    ("Rent", "GENERAL_ADMIN.OCCUPANCY", True),
    ("Utilities", "GENERAL_ADMIN.OCCUPANCY", True),
    ("Payroll", "GENERAL_ADMIN", True),
    ("Accounting", "GENERAL_ADMIN", True),
    ("Software", "GENERAL_ADMIN", True),
    ("Advertising", "COMMERCIAL_MARKETING", True),
    ("Commissions", "COMMERCIAL_MARKETING", True),
    ("Bank Fees", "FINANCIAL", True),
    ("Interest", "FINANCIAL", True),
    ("Investment Income", "FINANCIAL", True),
    ("Other Income", "OTHER", True),
    ("Other Expenses", "OTHER", True),
]


def print_category_tree(index: CategoryIndex, parent_path: str, indent: int = 1) -> None:
    """Recursively print the categories under a path."""
    children = sorted(
        (d for d in index.by_path.values() if d.parent_path == parent_path),
        key=lambda d: (d.sort_order, d.label),
    )
    for cat in children:
        prefix = "  " * indent
        marker = "" if cat.accepts_postings else " [group]"
        click.echo(f"{prefix}{cat.label}{marker} ({cat.path})")
        print_category_tree(index, cat.path, indent + 1)


@click.group()
def category_group():
    """Manage the chart of accounts."""
    pass


@category_group.command("init")
@click.option("--global", "is_global", is_flag=True, help="Create the plan shared by all clients")
@click.pass_context
def init_categories(ctx, is_global: bool):
    """Create the default category plan."""
    service = CategoryService(ctx.obj["db"])
    client_id = None if is_global else ctx.obj["client_id"]

    click.echo("Creating default category plan...")
    created = 0
    errors = 0
    for position, (label, parent_path, accepts_postings) in enumerate(DEFAULT_CATEGORIES):
        try:
            service.create_category(
                label=label,
                client_id=client_id,
                parent_path=parent_path,
                sort_order=position,
                accepts_postings=accepts_postings,
            )
            created += 1
        except DomainError as e:
            click.echo(f"Warning: Could not create category '{label}': {e}", err=True)
            errors += 1

    if errors == 0:
        click.echo(f"Successfully created {created} categories.")
    else:
        click.echo(f"Created {created} categories with {errors} errors.")


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List the plan as a tree under each ledger group."""
    service = CategoryService(ctx.obj["db"])
    try:
        index = service.get_category_index(ctx.obj["client_id"])
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if len(index) == len(LedgerGroup):
        click.echo("No categories found. Run 'category init' to create the default plan.")
        return

    click.echo("\nCategories:")
    for group in LedgerGroup:
        root = index.root_for(group)
        click.echo(f"{root.label} ({root.path})")
        print_category_tree(index, root.path)


@category_group.command("create")
@click.argument("label")
@click.option("--group", "group", type=click.Choice(GROUP_CHOICES, case_sensitive=False),
              help="Ledger group (required without --parent)")
@click.option("--parent", help="Parent category path (e.g., 'GENERAL_ADMIN.OCCUPANCY')")
@click.option("--sort-order", type=int, default=0, help="Position among siblings")
@click.option("--no-postings", is_flag=True, help="Only aggregate children; reject direct postings")
@click.pass_context
def create_category(ctx, label: str, group: str | None, parent: str | None,
                    sort_order: int, no_postings: bool):
    """Create a new category."""
    service = CategoryService(ctx.obj["db"])

    try:
        path = service.create_category(
            label=label,
            client_id=ctx.obj["client_id"],
            ledger_group=LedgerGroup(group.upper()) if group else None,
            parent_path=parent,
            sort_order=sort_order,
            accepts_postings=not no_postings,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created category '{label}' ({path})")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
