"""Main CLI entry point."""

import click
from taxiledger.database.factories import create_sqlite_database
from taxiledger.utils.logging_setup import configure_logging

# Import and register all commands at module level
from taxiledger.cli.commands import expense, lease, statement


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides TAXILEDGER_DB_PATH environment variable)",
    envvar="TAXILEDGER_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides TAXILEDGER_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Taxiledger - Taxi fleet expense and lease accounting.

    Prorate recurring charges, compute lease revenue and lease expense for
    driven shifts, and build statements for drivers and owners.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
expense.register_commands(cli)
lease.register_commands(cli)
statement.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
