"""Main CLI entry point."""

import click

from branchledger.database.factories import DB_PATH_ENV, create_sqlite_database
from branchledger.domain.entities import Actor, Role
from branchledger.domain.events import EventDispatcher, log_event
from branchledger.domain.query import ObligationQueryService
from branchledger.domain.settlement import SettlementService
from branchledger.logging_config import setup_logging

# Import and register all commands at module level
from branchledger.cli.commands import obligation, payment, summary

ROLE_CHOICES = {"unrestricted": Role.UNRESTRICTED, "branch_scoped": Role.BRANCH_SCOPED}


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides BRANCHLEDGER_DB_PATH environment variable)",
    envvar=DB_PATH_ENV,
)
@click.option("--actor", "actor_id", default="cli", envvar="BRANCHLEDGER_ACTOR", help="Acting user ID")
@click.option(
    "--role",
    type=click.Choice(sorted(ROLE_CHOICES)),
    default="unrestricted",
    envvar="BRANCHLEDGER_ROLE",
    help="Acting user's role",
)
@click.option("--branch", "branch_id", envvar="BRANCHLEDGER_BRANCH", help="Acting user's branch")
@click.option(
    "--log-level",
    default="WARNING",
    envvar="BRANCHLEDGER_LOG_LEVEL",
    help="Logging level (DEBUG, INFO, WARNING, ERROR)",
)
@click.pass_context
def cli(ctx, db_path: str | None, actor_id: str, role: str, branch_id: str | None, log_level: str):
    """Branchledger - debts and receivables across branches.

    Record what the business owes and is owed, apply partial payments, and
    keep every branch's staff inside their own books.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            setup_logging(log_level)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--log-level")

        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()

        dispatcher = EventDispatcher()
        dispatcher.subscribe(log_event)

        ctx.obj["db"] = db
        ctx.obj["actor"] = Actor(id=actor_id, role=ROLE_CHOICES[role], branch_id=branch_id)
        ctx.obj["settlement"] = SettlementService(db, dispatcher=dispatcher)
        ctx.obj["queries"] = ObligationQueryService(db)

        ctx.call_on_close(db.disconnect)
        ctx.call_on_close(dispatcher.close)


# Register all commands
obligation.register_commands(cli)
payment.register_commands(cli)
summary.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
