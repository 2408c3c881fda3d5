"""Turn ledger errors into CLI messages and exit codes."""

import logging

import click

from taxiledger.domain.errors import ComputationError, ConflictError, DomainError, NotFoundError

logger = logging.getLogger(__name__)

# Checked in order; the first matching class supplies the hint.
_HINTS = (
    (NotFoundError, "Check the driver, owner or cab number and try again."),
    (ConflictError, "A record already exists for that period or target; change or close it instead."),
    (ComputationError, "Check that an active lease plan has a rate for the shift date."),
)


def hint_for(error: Exception) -> str | None:
    for error_class, hint in _HINTS:
        if isinstance(error, error_class):
            return hint
    return None


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Report a failed command on stderr and exit with status 1.

    Validation errors carry their own explanation; the other domain errors
    are followed by a hint on what to check.
    """
    logger.debug("%s failed", ctx.command_path, exc_info=error)
    click.echo(f"Error: {error}", err=True)
    hint = hint_for(error)
    if hint:
        click.echo(f"Hint: {hint}", err=True)
    ctx.exit(1)
