"""Obligation management commands."""

import click

from branchledger.cli.error_handling import handle_domain_error, run_or_exit
from branchledger.cli.formatting import DIRECTION_CHOICES, echo_obligation, echo_obligation_table
from branchledger.domain.entities import ObligationFilters, ObligationInput, ObligationStatus
from branchledger.utils.amount_parser import parse_amount
from branchledger.utils.date_parser import parse_date

STATUSES = {s.value.lower(): s for s in ObligationStatus}


def _parse_date_option(ctx, value: str | None, label: str):
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@click.group()
def obligation_group():
    """Manage debts and receivables."""
    pass


@obligation_group.command("create")
@click.argument("counterparty", metavar="COUNTERPARTY")
@click.argument("amount", metavar="AMOUNT")
@click.option(
    "--type", "kind", type=click.Choice(sorted(DIRECTION_CHOICES)), required=True,
    help="'debt' (we owe a creditor) or 'receivable' (a customer owes us)",
)
@click.option("--due", "due_date", required=True, help="Due date (YYYY-MM-DD, 'tomorrow', '+30d', ...)")
@click.option("--issued", "issue_date", default="today", show_default=True, help="Issue date")
@click.option("--currency", default="USD", show_default=True, help="Three-letter currency code")
@click.option("--for-branch", "for_branch", help="Owning branch (unrestricted actors only)")
@click.option("--description", help="Description")
@click.option("--invoice", help="Invoice number")
@click.option("--notes", help="Free-text notes")
@click.pass_context
def create_obligation(
    ctx, counterparty, amount, kind, due_date, issue_date, currency, for_branch, description, invoice, notes
):
    """Create a debt or receivable.

    Examples:
        branchledger obligation create "Acme Supplies" 1000 --type debt --due +30d
        branchledger obligation create "J. Smith" 250.50 --type receivable --due 2024-03-01
    """
    try:
        value = parse_amount(amount)
    except ValueError as e:
        handle_domain_error(ctx, e)

    data = ObligationInput(
        direction=DIRECTION_CHOICES[kind],
        counterparty_name=counterparty,
        amount=value,
        issue_date=_parse_date_option(ctx, issue_date, "issue date"),
        due_date=_parse_date_option(ctx, due_date, "due date"),
        currency=currency,
        branch_id=for_branch,
        description=description,
        invoice_number=invoice,
        notes=notes,
    )
    created = run_or_exit(ctx, ctx.obj["settlement"].create_obligation, ctx.obj["actor"], data)
    click.echo(
        f"Created {kind} for '{created.counterparty_name}' "
        f"of {created.original_amount:,.2f} {created.currency} (ID: {created.id})"
    )


@obligation_group.command("show")
@click.argument("obligation_id", type=int, metavar="ID")
@click.pass_context
def show_obligation(ctx, obligation_id: int):
    """Show one obligation."""
    found = run_or_exit(ctx, ctx.obj["settlement"].get_obligation, ctx.obj["actor"], obligation_id)
    echo_obligation(found)


@obligation_group.command("list")
@click.option("--type", "kind", type=click.Choice(sorted(DIRECTION_CHOICES)), help="Only debts or receivables")
@click.option("--status", type=click.Choice(sorted(STATUSES)), help="Only this status")
@click.option("--search", help="Match counterparty, description or invoice number")
@click.option("--start-date", help="Issued on or after (YYYY-MM-DD)")
@click.option("--end-date", help="Issued on or before (YYYY-MM-DD)")
@click.option("--for-branch", "for_branch", help="Only this branch (unrestricted actors only)")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=50, show_default=True)
@click.pass_context
def list_obligations(ctx, kind, status, search, start_date, end_date, for_branch, page, limit):
    """List obligations, soonest due first."""
    filters = ObligationFilters(
        direction=DIRECTION_CHOICES[kind] if kind else None,
        status=STATUSES[status] if status else None,
        search=search,
        start_date=_parse_date_option(ctx, start_date, "start date"),
        end_date=_parse_date_option(ctx, end_date, "end date"),
        branch_id=for_branch,
    )
    result = run_or_exit(
        ctx, ctx.obj["queries"].list_obligations, ctx.obj["actor"], filters, page=page, limit=limit
    )
    if not result.items:
        click.echo("No obligations found.")
        return

    click.echo(f"\nPage {result.page} of {result.total_pages} ({result.total} obligation(s)):")
    echo_obligation_table(result.items)


@obligation_group.command("update")
@click.argument("obligation_id", type=int, metavar="ID")
@click.option("--due", "due_date", help="New due date")
@click.option("--description", help="New description")
@click.option("--invoice", help="New invoice number")
@click.option("--notes", help="New notes")
@click.pass_context
def update_obligation(ctx, obligation_id: int, due_date, description, invoice, notes):
    """Update the non-financial details of an obligation."""
    changes = {}
    if due_date is not None:
        changes["due_date"] = _parse_date_option(ctx, due_date, "due date")
    if description is not None:
        changes["description"] = description
    if invoice is not None:
        changes["invoice_number"] = invoice
    if notes is not None:
        changes["notes"] = notes

    if not changes:
        click.echo("Nothing to update.")
        return

    run_or_exit(ctx, ctx.obj["settlement"].update_details, ctx.obj["actor"], obligation_id, **changes)
    click.echo(f"Updated obligation {obligation_id}")


@obligation_group.command("delete")
@click.argument("obligation_id", type=int, metavar="ID")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_obligation(ctx, obligation_id: int, yes: bool):
    """Delete an obligation that has no payments.

    The record is kept but hidden from listings.
    """
    found = run_or_exit(ctx, ctx.obj["settlement"].get_obligation, ctx.obj["actor"], obligation_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete obligation {found.id} ('{found.counterparty_name}')?"
    ):
        click.echo("Deletion cancelled.")
        return

    run_or_exit(ctx, ctx.obj["settlement"].soft_delete, ctx.obj["actor"], obligation_id)
    click.echo(f"Deleted obligation {obligation_id}")


def register_commands(cli):
    """Register obligation commands with main CLI."""
    cli.add_command(obligation_group, name="obligation")
