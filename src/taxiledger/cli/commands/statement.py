"""Statement commands."""

import click
from taxiledger.cli.date_filters import period_flags_from, period_options, require_cli_date_range
from taxiledger.cli.error_handling import handle_domain_error
from taxiledger.domain.errors import DomainError, NotFoundError, driver_number_not_found
from taxiledger.domain.reports import StatementReport
from taxiledger.domain.statement import LINE_SECTIONS, StatementService
from taxiledger.utils.amount_parser import parse_amount

SECTION_TITLES = {
    "revenues": "Lease revenue",
    "recurring_charges": "Recurring charges",
    "one_time_charges": "One-time charges",
    "lease_charges": "Lease charges",
}


def _display_statement(report: StatementReport) -> None:
    click.echo(
        f"Statement for {report.person_name} ({report.person_number}, {report.person_type.value}): "
        f"{report.period_from} to {report.period_to} [{report.status.value}]"
    )
    for section in LINE_SECTIONS:
        lines = getattr(report, section)
        if not lines:
            continue
        click.echo()
        click.echo(SECTION_TITLES[section])
        click.echo("-" * 80)
        for line in lines:
            when = line.line_date.isoformat() if line.line_date else ""
            click.echo(
                f"  {when:<12} {line.category_code:<12} {line.entity_description[:40]:<40} "
                f"{line.amount:>12,.2f}"
            )

    click.echo()
    click.echo(f"{'Previous balance:':<24} ${report.previous_balance:>12,.2f}")
    click.echo(f"{'Total revenues:':<24} ${report.total_revenues:>12,.2f}")
    click.echo(f"{'Recurring charges:':<24} ${report.total_recurring_expenses:>12,.2f}")
    click.echo(f"{'One-time charges:':<24} ${report.total_one_time_expenses:>12,.2f}")
    click.echo(f"{'Lease charges:':<24} ${report.total_lease_expenses:>12,.2f}")
    click.echo(f"{'Total expenses:':<24} ${report.total_expenses:>12,.2f}")
    click.echo(f"{'Paid:':<24} ${report.paid_amount:>12,.2f}")
    click.echo(f"{'Net due:':<24} ${report.net_due:>12,.2f}")
    if report.skipped_items:
        click.echo(f"Skipped {report.skipped_items} item(s) with errors; see the log for details.", err=True)


def _build_statement(ctx, person_number, start_date, end_date, month, previous_balance, paid, flags):
    db = ctx.obj["db"]
    service = StatementService(db)
    start, end = require_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, month=month, period_flags=period_flags_from(flags)
    )
    person = db.get_driver_by_number(person_number)
    if person is None:
        handle_domain_error(ctx, NotFoundError(driver_number_not_found(person_number)))

    try:
        paid_amount = parse_amount(paid)
        if previous_balance is None:
            balance = service.previous_balance_for(person.id, start)
        else:
            balance = parse_amount(previous_balance, allow_negative=True)
        return service, service.generate_statement(person.id, start, end, balance, paid_amount)
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)


def _statement_options(command):
    command = click.option("--paid", default="0", help="Amount paid during the period")(command)
    command = click.option(
        "--previous-balance",
        help="Balance carried in (defaults to the net due of the last finalized statement)",
    )(command)
    return command


@click.group()
def statement_group():
    """Build and finalize statements."""
    pass


@statement_group.command("show")
@click.argument("person_number")
@period_options
@_statement_options
@click.pass_context
def show(
    ctx,
    person_number: str,
    start_date: str | None,
    end_date: str | None,
    month: str | None,
    previous_balance: str | None,
    paid: str,
    **flags,
):
    """Show a draft statement for a driver or owner.

    Examples:
        taxiledger statement show D200 --month 2024-01
        taxiledger statement show O100 --last-month --paid 150.00
    """
    _, report = _build_statement(ctx, person_number, start_date, end_date, month, previous_balance, paid, flags)
    _display_statement(report)


@statement_group.command("finalize")
@click.argument("person_number")
@period_options
@_statement_options
@click.pass_context
def finalize(
    ctx,
    person_number: str,
    start_date: str | None,
    end_date: str | None,
    month: str | None,
    previous_balance: str | None,
    paid: str,
    **flags,
):
    """Finalize a statement for a driver or owner.

    A person can have only one finalized statement per period.

    Examples:
        taxiledger statement finalize D200 --month 2024-01 --paid 420.00
    """
    service, report = _build_statement(
        ctx, person_number, start_date, end_date, month, previous_balance, paid, flags
    )
    try:
        statement_id = service.finalize_statement(report)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    _display_statement(report)
    click.echo()
    click.echo(f"Finalized statement (ID: {statement_id})")


@statement_group.command("lines")
@click.argument("statement_id", type=int)
@click.pass_context
def lines(ctx, statement_id: int):
    """Show the stored line items of a finalized statement."""
    service = StatementService(ctx.obj["db"])
    try:
        sections = service.load_line_items(statement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    for section in LINE_SECTIONS:
        items = sections.get(section, [])
        click.echo(f"{SECTION_TITLES[section]} ({len(items)})")
        for item in items:
            click.echo(f"  {item['category_code']:<12} {item['entity_description'][:40]:<40} {item['amount']:>12}")


@statement_group.command("summary")
@period_options
@click.option("--owners-only", is_flag=True, help="Only include owners")
@click.option("--drivers-only", is_flag=True, help="Only include non-owner drivers")
@click.pass_context
def summary(
    ctx,
    start_date: str | None,
    end_date: str | None,
    month: str | None,
    owners_only: bool,
    drivers_only: bool,
    **flags,
):
    """Show statement totals for every driver and owner.

    A person whose statement fails is listed with zero totals and the error.
    """
    db = ctx.obj["db"]
    if owners_only and drivers_only:
        click.echo("Error: --owners-only and --drivers-only cannot be combined.", err=True)
        ctx.exit(1)
    start, end = require_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, month=month, period_flags=period_flags_from(flags)
    )

    people = None
    if owners_only:
        people = db.list_drivers(is_owner=True)
    elif drivers_only:
        people = db.list_drivers(is_owner=False)

    try:
        report = StatementService(db).generate_driver_summary(start, end, people)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Driver summary: {start} to {end}")
    click.echo()
    click.echo(f"{'Number':<10} {'Name':<28} {'Role':<7} {'Revenues':>12} {'Expenses':>12} {'Net due':>12}")
    click.echo("-" * 86)
    for row in report.summaries:
        role = "owner" if row.is_owner else "driver"
        click.echo(
            f"{row.person_number:<10} {row.person_name[:28]:<28} {role:<7} "
            f"{row.total_revenues:>12,.2f} {row.total_expenses:>12,.2f} {row.net_due:>12,.2f}"
        )
        if row.error:
            click.echo(f"{'':<10} error: {row.error}")
    click.echo("-" * 86)
    click.echo(
        f"{'Total':<47} {report.total_revenues:>12,.2f} {report.total_expenses:>12,.2f} "
        f"{report.total_net_due:>12,.2f}"
    )
    if report.error_count:
        click.echo(f"{report.error_count} statement(s) failed; see the log for details.", err=True)


def register_commands(cli):
    """Register statement commands with CLI."""
    cli.add_command(statement_group, name="statement")
