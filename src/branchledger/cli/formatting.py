"""Text rendering of obligations and payments for the CLI."""

import click

from branchledger.domain.entities import Direction, Obligation, Payment

DIRECTION_CHOICES = {"debt": Direction.OWED_BY_US, "receivable": Direction.OWED_TO_US}
DIRECTION_LABELS = {value: key for key, value in DIRECTION_CHOICES.items()}


def echo_obligation(obligation: Obligation) -> None:
    """Print one obligation in detail."""
    click.echo(f"\nObligation ID: {obligation.id}")
    click.echo(f"  Type: {DIRECTION_LABELS[obligation.direction]}")
    click.echo(f"  Counterparty: {obligation.counterparty_name}")
    click.echo(f"  Original: {obligation.original_amount:,.2f} {obligation.currency}")
    click.echo(f"  Remaining: {obligation.remaining_amount:,.2f} {obligation.currency}")
    click.echo(f"  Status: {obligation.status.value}")
    click.echo(f"  Issued: {obligation.issue_date}  Due: {obligation.due_date}")
    click.echo(f"  Branch: {obligation.branch_id or '-'}")
    if obligation.description:
        click.echo(f"  Description: {obligation.description}")
    if obligation.invoice_number:
        click.echo(f"  Invoice: {obligation.invoice_number}")
    if obligation.notes:
        click.echo(f"  Notes: {obligation.notes}")
    click.echo(f"  Created: {obligation.created_at} by {obligation.created_by}")


def echo_obligation_table(obligations) -> None:
    """Print obligations as a compact table."""
    click.echo("-" * 100)
    click.echo(
        f"{'ID':<6} {'Type':<11} {'Counterparty':<24} {'Remaining':>14} {'Original':>14} "
        f"{'Status':<8} {'Due':<12} {'Branch':<8}"
    )
    click.echo("-" * 100)
    for o in obligations:
        click.echo(
            f"{o.id:<6} {DIRECTION_LABELS[o.direction]:<11} {o.counterparty_name[:24]:<24} "
            f"{o.remaining_amount:>14,.2f} {o.original_amount:>14,.2f} "
            f"{o.status.value:<8} {str(o.due_date):<12} {(o.branch_id or '-'):<8}"
        )


def echo_payment_table(payments: list[Payment]) -> None:
    """Print a payment history, newest first."""
    click.echo("-" * 80)
    click.echo(f"{'ID':<6} {'Date':<12} {'Amount':>14} {'Method':<6} {'By':<12} {'Notes':<26}")
    click.echo("-" * 80)
    for p in payments:
        click.echo(
            f"{p.id:<6} {str(p.payment_date):<12} {p.amount:>14,.2f} {p.method.value:<6} "
            f"{p.recorded_by[:12]:<12} {(p.notes or '')[:26]:<26}"
        )
