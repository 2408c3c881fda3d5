"""CLI helpers for billing period resolution."""

from datetime import date

import click

from taxiledger.utils.date_parser import get_date_range, parse_date, parse_month

PERIOD_FLAGS = ("this-month", "last-month", "this-week", "last-week", "this-year", "last-year")


def period_options(command):
    """Attach --start-date/--end-date, --month and the period flags to a command."""
    options = [
        click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')"),
        click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')"),
        click.option("--month", help="Whole calendar month (YYYY-MM)"),
    ]
    for flag in PERIOD_FLAGS:
        label = flag.replace("-", " ")
        options.append(click.option(f"--{flag}", is_flag=True, help=f"Use {label}"))
    for option in reversed(options):
        command = option(command)
    return command


def period_flags_from(kwargs: dict) -> dict[str, bool]:
    """Pop the period flag values out of a command's keyword arguments."""
    return {flag: kwargs.pop(flag.replace("-", "_"), False) for flag in PERIOD_FLAGS}


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    month: str | None = None,
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags, --month or explicit dates."""
    period_count = sum(1 for is_set in period_flags.values() if is_set)
    if month:
        period_count += 1

    if period_count > 1:
        click.echo(
            "Error: Only one period option (--month, --this-month, --last-month, --this-week, --last-week, --this-year, --last-year) can be specified at a time.",
            err=True,
        )
        ctx.exit(1)

    if period_count > 0 and (start_date or end_date):
        click.echo(
            "Error: Period options (--month, --this-month, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    start = None
    end = None

    if month:
        try:
            start, end = parse_month(month)
        except ValueError as e:
            click.echo(f"Error: Invalid month: {e}", err=True)
            ctx.exit(1)
    elif period_count == 1:
        for period, is_set in period_flags.items():
            if is_set:
                start, end = get_date_range(period)
                break
    else:
        if start_date:
            try:
                start = parse_date(start_date)
            except ValueError as e:
                click.echo(f"Error: Invalid start date: {e}", err=True)
                ctx.exit(1)

        if end_date:
            try:
                end = parse_date(end_date)
            except ValueError as e:
                click.echo(f"Error: Invalid end date: {e}", err=True)
                ctx.exit(1)

        if start is None and end is None and default_range is not None:
            start, end = default_range

    return start, end


def require_cli_date_range(ctx, **kwargs) -> tuple[date, date]:
    """Resolve a range that must be bounded on both ends.

    Defaults to the previous calendar month, the usual billing period.
    """
    kwargs.setdefault("default_range", get_date_range("last-month"))
    start, end = resolve_cli_date_range(ctx, **kwargs)
    if start is None or end is None:
        click.echo("Error: Both --start-date and --end-date are required.", err=True)
        ctx.exit(1)
    if end < start:
        click.echo(f"Error: End date {end} is before start date {start}.", err=True)
        ctx.exit(1)
    return start, end
