"""Lease report commands."""

import click
from taxiledger.cli.date_filters import period_flags_from, period_options, require_cli_date_range
from taxiledger.cli.error_handling import handle_domain_error
from taxiledger.domain.errors import DomainError
from taxiledger.domain.lease_reports import LeaseReportService
from taxiledger.domain.reports import LeaseReport, ReconciliationStatus


def _display_lease_report(report: LeaseReport, counterparty_label: str, counterparty_of) -> None:
    click.echo(f"{report.person_name} ({report.person_number}): {report.start_date} to {report.end_date}")
    click.echo()
    if not report.items:
        click.echo("No leased shifts in this period.")
    else:
        click.echo(
            f"{'Date':<12} {'Cab':<8} {'Shift':<6} {counterparty_label:<10} {'Miles':>8} "
            f"{'Base':>10} {'Mileage':>10} {'Total':>10}  Source"
        )
        click.echo("-" * 90)
        for item in report.items:
            click.echo(
                f"{item.shift_date.isoformat():<12} {item.cab_number:<8} {item.shift_type:<6} "
                f"{counterparty_of(item):<10} {item.miles:>8} {item.base_rate:>10,.2f} "
                f"{item.mileage_lease:>10,.2f} {item.total_lease:>10,.2f}  {item.rate_source.value}"
            )
        click.echo("-" * 90)
    click.echo(f"{'Base lease:':<20} ${report.total_base_lease:>12,.2f}")
    click.echo(f"{'Mileage lease:':<20} ${report.total_mileage_lease:>12,.2f}")
    click.echo(f"{'Total lease:':<20} ${report.grand_total_lease:>12,.2f}")
    if report.error_count:
        click.echo(f"Skipped {report.error_count} shift(s) with errors; see the log for details.", err=True)


@click.group()
def lease_group():
    """Lease revenue, lease expense and reconciliation reports."""
    pass


@lease_group.command("revenue")
@click.argument("owner_number")
@period_options
@click.pass_context
def revenue(ctx, owner_number: str, start_date: str | None, end_date: str | None, month: str | None, **flags):
    """Show lease an owner collected from other drivers.

    Examples:
        taxiledger lease revenue O100 --month 2024-01
        taxiledger lease revenue O100 --last-month
    """
    db = ctx.obj["db"]
    start, end = require_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, month=month, period_flags=period_flags_from(flags)
    )
    try:
        report = LeaseReportService(db).calculate_lease_revenue(owner_number, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    _display_lease_report(report, "Driver", lambda item: item.driver_number)


@lease_group.command("expense")
@click.argument("driver_number")
@period_options
@click.pass_context
def expense(ctx, driver_number: str, start_date: str | None, end_date: str | None, month: str | None, **flags):
    """Show lease a driver owes for shifts driven on other owners' shifts.

    Examples:
        taxiledger lease expense D200 --month 2024-01
    """
    db = ctx.obj["db"]
    start, end = require_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, month=month, period_flags=period_flags_from(flags)
    )
    try:
        report = LeaseReportService(db).calculate_lease_expense(driver_number, start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    _display_lease_report(report, "Owner", lambda item: item.owner_number)


@lease_group.command("debug")
@period_options
@click.option("--mismatches-only", is_flag=True, help="Only show shifts whose two views differ")
@click.pass_context
def debug(
    ctx,
    start_date: str | None,
    end_date: str | None,
    month: str | None,
    mismatches_only: bool,
    **flags,
):
    """Reconcile lease expense against lease revenue shift by shift.

    Exits with status 1 when the two views do not agree.
    """
    db = ctx.obj["db"]
    start, end = require_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, month=month, period_flags=period_flags_from(flags)
    )
    try:
        report = LeaseReportService(db).generate_debug_report(start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Lease reconciliation: {start} to {end}")
    click.echo()
    click.echo(
        f"{'Shift':<7} {'Date':<12} {'Cab':<8} {'Type':<6} {'Driver':<10} {'Owner':<10} "
        f"{'Expense':>10} {'Revenue':>10} {'Diff':>9}  Status"
    )
    click.echo("-" * 100)
    for row in report.rows:
        if mismatches_only and row.status == ReconciliationStatus.MATCH:
            continue
        click.echo(
            f"{row.driver_shift_id:<7} {row.shift_date.isoformat():<12} {row.cab_number:<8} "
            f"{row.shift_type:<6} {row.driver_number:<10} {row.owner_number:<10} "
            f"{row.lease_from_expense:>10,.2f} {row.lease_from_revenue:>10,.2f} "
            f"{row.difference:>9,.2f}  {row.status.value}"
        )
    click.echo("-" * 100)
    click.echo(f"{'Expense view total:':<22} ${report.total_expense_view:>12,.2f}")
    click.echo(f"{'Revenue view total:':<22} ${report.total_revenue_view:>12,.2f}")
    click.echo(f"{'Difference:':<22} ${report.total_difference:>12,.2f}")
    click.echo(f"Matched: {report.match_count}  Mismatched: {report.mismatch_count}")

    if not report.is_reconciled:
        ctx.exit(1)


def register_commands(cli):
    """Register lease commands with CLI."""
    cli.add_command(lease_group, name="lease")
