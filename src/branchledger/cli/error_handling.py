"""CLI error handling helpers."""

import click

from branchledger.domain.errors import DomainError, StorageError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def handle_storage_error(ctx: click.Context, error: StorageError) -> None:
    """Render a storage failure and exit with a distinct code."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(2)


def run_or_exit(ctx: click.Context, operation, *args, **kwargs):
    """Call ``operation`` and turn engine failures into CLI exits."""
    try:
        return operation(*args, **kwargs)
    except StorageError as e:
        handle_storage_error(ctx, e)
    except DomainError as e:
        handle_domain_error(ctx, e)
