"""Summary and overdue commands."""

import click

from branchledger.cli.error_handling import run_or_exit
from branchledger.cli.formatting import DIRECTION_CHOICES, echo_obligation_table
from branchledger.utils.date_parser import parse_date


@click.command("summary")
@click.option("--type", "kind", type=click.Choice(sorted(DIRECTION_CHOICES)), help="Only debts or receivables")
@click.option("--for-branch", "for_branch", help="Only this branch (unrestricted actors only)")
@click.pass_context
def summary(ctx, kind: str | None, for_branch: str | None):
    """Show counts and totals by status."""
    result = run_or_exit(
        ctx,
        ctx.obj["queries"].summary,
        ctx.obj["actor"],
        branch_filter=for_branch,
        direction=DIRECTION_CHOICES[kind] if kind else None,
    )
    click.echo(f"\nObligations: {result.total}")
    click.echo(f"  Active:  {result.by_status.active}")
    click.echo(f"  Partial: {result.by_status.partial}")
    click.echo(f"  Paid:    {result.by_status.paid}")
    click.echo("-" * 40)
    click.echo(f"  Total:     {result.amounts.total:>14,.2f}")
    click.echo(f"  Remaining: {result.amounts.remaining:>14,.2f}")
    click.echo(f"  Collected: {result.amounts.collected:>14,.2f}")


@click.command("overdue")
@click.option("--type", "kind", type=click.Choice(sorted(DIRECTION_CHOICES)), help="Only debts or receivables")
@click.option("--as-of", "as_of", default="today", show_default=True, help="Reference date")
@click.option("--for-branch", "for_branch", help="Only this branch (unrestricted actors only)")
@click.pass_context
def overdue(ctx, kind: str | None, as_of: str, for_branch: str | None):
    """List unsettled obligations past their due date."""
    try:
        reference = parse_date(as_of)
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)

    items = run_or_exit(
        ctx,
        ctx.obj["queries"].list_overdue,
        ctx.obj["actor"],
        as_of=reference,
        direction=DIRECTION_CHOICES[kind] if kind else None,
        branch_filter=for_branch,
    )
    if not items:
        click.echo("No overdue obligations.")
        return

    click.echo(f"\n{len(items)} overdue obligation(s) as of {reference}:")
    echo_obligation_table(items)


def register_commands(cli):
    """Register summary commands with main CLI."""
    cli.add_command(summary)
    cli.add_command(overdue)
