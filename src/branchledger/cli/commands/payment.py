"""Payment commands."""

import click

from branchledger.cli.error_handling import handle_domain_error, run_or_exit
from branchledger.cli.formatting import echo_payment_table
from branchledger.domain.entities import PaymentMethod
from branchledger.utils.amount_parser import parse_amount
from branchledger.utils.date_parser import parse_date

METHODS = {m.value.lower(): m for m in PaymentMethod}


@click.command("pay")
@click.argument("obligation_id", type=int, metavar="ID")
@click.argument("amount", metavar="AMOUNT")
@click.option("--date", "payment_date", default="today", show_default=True, help="Payment date")
@click.option("--method", type=click.Choice(sorted(METHODS)), default="cash", show_default=True)
@click.option("--notes", help="Free-text notes")
@click.pass_context
def pay(ctx, obligation_id: int, amount: str, payment_date: str, method: str, notes: str | None):
    """Apply a payment against an obligation.

    The amount may not exceed the remaining balance.

    Examples:
        branchledger pay 12 400
        branchledger pay 12 600 --date yesterday --method card
    """
    try:
        value = parse_amount(amount)
        paid_on = parse_date(payment_date)
    except ValueError as e:
        handle_domain_error(ctx, e)

    result = run_or_exit(
        ctx,
        ctx.obj["settlement"].apply_payment,
        ctx.obj["actor"],
        obligation_id,
        value,
        paid_on,
        notes=notes,
        method=METHODS[method],
    )
    updated = result.obligation
    click.echo(
        f"Recorded payment {result.payment.id} of {result.payment.amount:,.2f} {updated.currency} "
        f"on obligation {updated.id}"
    )
    click.echo(f"Remaining: {updated.remaining_amount:,.2f} {updated.currency} ({updated.status.value})")


@click.command("payments")
@click.argument("obligation_id", type=int, metavar="ID")
@click.pass_context
def list_payments(ctx, obligation_id: int):
    """Show the payment history of an obligation, newest first."""
    payments = run_or_exit(ctx, ctx.obj["settlement"].list_payments, ctx.obj["actor"], obligation_id)
    if not payments:
        click.echo("No payments recorded.")
        return

    click.echo(f"\n{len(payments)} payment(s) for obligation {obligation_id}:")
    echo_payment_table(payments)


@click.command("verify")
@click.argument("obligation_id", type=int, metavar="ID")
@click.pass_context
def verify(ctx, obligation_id: int):
    """Check an obligation's balance against its payment history."""
    consistent = run_or_exit(ctx, ctx.obj["settlement"].verify_balance, ctx.obj["actor"], obligation_id)
    if consistent:
        click.echo(f"Obligation {obligation_id} is in balance.")
    else:
        click.echo(f"Error: Obligation {obligation_id} is out of balance.", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register payment commands with main CLI."""
    cli.add_command(pay)
    cli.add_command(list_payments)
    cli.add_command(verify)
