"""Recurring expense commands."""

import click
from taxiledger.cli.date_filters import period_flags_from, period_options, require_cli_date_range
from taxiledger.cli.error_handling import handle_domain_error
from taxiledger.domain.application_type import describe_target, target_of
from taxiledger.domain.errors import DomainError
from taxiledger.domain.proration import calculate_amount_for_date_range
from taxiledger.domain.recurring_expense import RecurringExpenseService
from taxiledger.utils.amount_parser import parse_amount
from taxiledger.utils.date_parser import parse_date


def _parse_date_option(ctx, value: str, option_name: str):
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {option_name}: {e}", err=True)
        ctx.exit(1)


def _format_range(expense) -> str:
    end = expense.effective_to.isoformat() if expense.effective_to else "open"
    return f"{expense.effective_from.isoformat()} .. {end}"


@click.group()
def expense_group():
    """Manage recurring expenses."""
    pass


@expense_group.command("prorate")
@click.argument("expense_id", type=int)
@period_options
@click.pass_context
def prorate(ctx, expense_id: int, start_date: str | None, end_date: str | None, month: str | None, **flags):
    """Show the prorated charge of a recurring expense over a period.

    Every version of the expense is prorated separately and summed.
    Defaults to last month.

    Examples:
        taxiledger expense prorate 3 --month 2024-01
        taxiledger expense prorate 3 --start-date 2024-01-01 --end-date 2024-03-31
    """
    db = ctx.obj["db"]
    service = RecurringExpenseService(db)
    start, end = require_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        month=month,
        period_flags=period_flags_from(flags),
    )

    try:
        versions = service.get_history(expense_id)
        click.echo(f"Recurring expense {expense_id}: {start} to {end}")
        click.echo()
        click.echo(f"{'ID':<6} {'Effective':<26} {'Method':<10} {'Amount':>12} {'Charged':>12}")
        click.echo("-" * 70)
        for version in versions:
            charged = calculate_amount_for_date_range(version, start, end)
            click.echo(
                f"{version.id:<6} {_format_range(version):<26} {version.billing_method.value:<10} "
                f"{version.amount:>12,.2f} {charged:>12,.2f}"
            )
        click.echo("-" * 70)
        click.echo(f"{'Total':<56} {service.calculate_total_for_range(expense_id, start, end):>12,.2f}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@expense_group.command("change-rate")
@click.argument("expense_id", type=int)
@click.argument("amount")
@click.option("--effective-date", required=True, help="First day the new rate applies")
@click.option("--notes", help="Notes for the new version")
@click.pass_context
def change_rate(ctx, expense_id: int, amount: str, effective_date: str, notes: str | None):
    """Change the rate of a recurring expense from a date.

    The current version ends the day before the effective date and a new
    version starts on it.

    Examples:
        taxiledger expense change-rate 3 325.00 --effective-date 2024-02-01
    """
    db = ctx.obj["db"]
    service = RecurringExpenseService(db)
    effective = _parse_date_option(ctx, effective_date, "effective date")
    try:
        new_amount = parse_amount(amount)
        new_id = service.change_rate(expense_id, new_amount, effective, notes)
        click.echo(f"Changed rate to {new_amount:,.2f} from {effective} (new version ID: {new_id})")
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)


@expense_group.command("deactivate")
@click.argument("expense_id", type=int)
@click.option("--end-date", required=True, help="First day no longer charged")
@click.pass_context
def deactivate(ctx, expense_id: int, end_date: str):
    """Stop charging a recurring expense from a date.

    Examples:
        taxiledger expense deactivate 3 --end-date 2024-04-01
    """
    db = ctx.obj["db"]
    service = RecurringExpenseService(db)
    end = _parse_date_option(ctx, end_date, "end date")
    try:
        service.deactivate_with_end_date(expense_id, end)
        click.echo(f"Deactivated recurring expense {expense_id}; last charged day is the day before {end}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@expense_group.command("reactivate")
@click.argument("expense_id", type=int)
@click.option("--effective-date", required=True, help="First day charged again")
@click.pass_context
def reactivate(ctx, expense_id: int, effective_date: str):
    """Resume a deactivated recurring expense as a new version.

    Examples:
        taxiledger expense reactivate 3 --effective-date 2024-06-01
    """
    db = ctx.obj["db"]
    service = RecurringExpenseService(db)
    effective = _parse_date_option(ctx, effective_date, "effective date")
    try:
        new_id = service.reactivate_with_date(expense_id, effective)
        click.echo(f"Reactivated recurring expense {expense_id} from {effective} (new version ID: {new_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@expense_group.command("history")
@click.argument("expense_id", type=int)
@click.pass_context
def history(ctx, expense_id: int):
    """Show every version of a recurring expense."""
    db = ctx.obj["db"]
    service = RecurringExpenseService(db)
    try:
        versions = service.get_history(expense_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"History for recurring expense {expense_id} ({describe_target(target_of(versions[0]))}):")
    click.echo()
    click.echo(f"{'ID':<6} {'Effective':<26} {'Method':<10} {'Amount':>12}  {'Status':<8} Notes")
    click.echo("-" * 80)
    for version in versions:
        status = "active" if version.is_active else "closed"
        click.echo(
            f"{version.id:<6} {_format_range(version):<26} {version.billing_method.value:<10} "
            f"{version.amount:>12,.2f}  {status:<8} {version.notes or ''}"
        )


def register_commands(cli):
    """Register expense commands with CLI."""
    cli.add_command(expense_group, name="expense")
