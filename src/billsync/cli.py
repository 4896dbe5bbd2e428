"""Command line interface for Billsync."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .errors import BillsyncError
from .logging_config import setup_logging
from .models.account import Account
from .services.engine import SourceCreation, TransactionFilter
from .services.linkage import LedgerEntry, PaymentDetails

DATE = click.DateTime(formats=["%Y-%m-%d"])


def _day(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


def _echo_creation(result: SourceCreation) -> None:
    source = result.source
    click.echo(f"Created {source.kind} #{source.id} '{source.name}' ({len(result.obligations)} payments)")
    for warning in result.warnings:
        click.secho(f"Warning: {warning}", fg="yellow", err=True)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Track bills and installments and the payments that settle them."""

    config = BaseConfig()
    setup_logging(config)
    ctx.obj = create_app_context(config)


def _run(action):
    """Turn engine errors into a clean CLI failure."""
    try:
        return action()
    except BillsyncError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command("add-account")
@click.argument("name")
@click.option("--type", "account_type", type=click.Choice(["debit", "credit"]), default="debit")
@click.pass_obj
def add_account(app: AppContext, name: str, account_type: str) -> None:
    """Add a settling account."""

    account = app.repos.accounts.create(Account(name=name, account_type=account_type))
    click.echo(f"Created account #{account.id} '{account.name}'")


@cli.command("add-bill")
@click.argument("name")
@click.argument("amount", type=float)
@click.option("--start", help="Activation period, YYYY-MM or 'March 2026'.")
@click.option("--end-month", type=click.IntRange(1, 12), help="Last active month of the year.")
@click.option("--account", "account_id", type=int)
@click.pass_obj
def add_bill(
    app: AppContext,
    name: str,
    amount: float,
    start: Optional[str],
    end_month: Optional[int],
    account_id: Optional[int],
) -> None:
    """Add a recurring monthly bill."""

    result = _run(
        lambda: app.schedule.create_source(
            name, "bill", amount, start=start, end_month=end_month, account_id=account_id
        )
    )
    _echo_creation(result)


@cli.command("add-installment")
@click.argument("name")
@click.argument("amount", type=float)
@click.option("--start", help="First payment period, YYYY-MM or 'March 2026'.")
@click.option("--term", "term_length", type=click.IntRange(min=1), help="Number of payments.")
@click.option("--timing", type=click.Choice(["1/2", "2/2"]))
@click.option("--account", "account_id", type=int)
@click.pass_obj
def add_installment(
    app: AppContext,
    name: str,
    amount: float,
    start: Optional[str],
    term_length: Optional[int],
    timing: Optional[str],
    account_id: Optional[int],
) -> None:
    """Add a fixed-term installment."""

    result = _run(
        lambda: app.schedule.create_source(
            name,
            "installment",
            amount,
            start=start,
            term_length=term_length,
            timing=timing,
            account_id=account_id,
        )
    )
    _echo_creation(result)


@cli.command("schedule")
@click.argument("source_id", type=int)
@click.pass_obj
def schedule(app: AppContext, source_id: int) -> None:
    """Show a bill or installment's payment schedule."""

    views = _run(lambda: app.schedule.list_obligations(source_id))
    if not views:
        click.echo("No payments scheduled.")
        return
    for view in views:
        number = f"#{view.payment_number} " if view.payment_number else ""
        flag = " (manual)" if view.is_manual_override else ""
        click.echo(
            f"{number}{view.period.label:<15} {view.status:<8} "
            f"{view.display_amount:>10.2f} / {view.expected_amount:.2f}{flag}"
        )


@cli.command("pay")
@click.argument("source_id", type=int)
@click.argument("period")
@click.argument("amount", type=float)
@click.option("--date", "paid_on", type=DATE, help="Payment date (default: today).")
@click.option("--account", "account_id", type=int)
@click.option("--receipt")
@click.option("--name", help="Ledger entry name.")
@click.pass_obj
def pay(
    app: AppContext,
    source_id: int,
    period: str,
    amount: float,
    paid_on: Optional[datetime],
    account_id: Optional[int],
    receipt: Optional[str],
    name: Optional[str],
) -> None:
    """Pay one period of a bill or installment."""

    payment = PaymentDetails(
        amount=amount,
        paid_on=_day(paid_on) or date.today(),
        account_id=account_id,
        receipt=receipt,
        name=name,
    )
    try:
        transaction = _run(lambda: app.schedule.pay_obligation(source_id, period, payment))
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="PERIOD") from exc
    click.echo(f"Recorded transaction #{transaction.id} '{transaction.name}' {transaction.amount:.2f}")


@cli.command("record")
@click.argument("name")
@click.argument("amount", type=float)
@click.option("--date", "occurred_on", type=DATE, help="Entry date (default: today).")
@click.option("--account", "account_id", type=int)
@click.pass_obj
def record(
    app: AppContext,
    name: str,
    amount: float,
    occurred_on: Optional[datetime],
    account_id: Optional[int],
) -> None:
    """Record a ledger entry that is not tied to a scheduled payment."""

    entry = LedgerEntry(
        name=name,
        amount=amount,
        occurred_on=_day(occurred_on) or date.today(),
        account_id=account_id,
    )
    transaction = _run(lambda: app.schedule.create_unlinked_transaction(entry))
    click.echo(f"Recorded transaction #{transaction.id} '{transaction.name}' {transaction.amount:.2f}")


@cli.command("transactions")
@click.option("--from", "start_date", type=DATE)
@click.option("--to", "end_date", type=DATE)
@click.option("--account", "account_id", type=int)
@click.option("--source", "source_id", type=int)
@click.option("--search", "text")
@click.option("--linked/--unlinked", default=None)
@click.pass_obj
def transactions(
    app: AppContext,
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    account_id: Optional[int],
    source_id: Optional[int],
    text: Optional[str],
    linked: Optional[bool],
) -> None:
    """List ledger entries, newest first."""

    rows = app.schedule.list_transactions(
        TransactionFilter(
            start_date=_day(start_date),
            end_date=_day(end_date),
            account_id=account_id,
            source_id=source_id,
            text=text,
            linked=linked,
        )
    )
    for row in rows:
        link = f"-> obligation #{row.obligation_id}" if row.obligation_id else ""
        click.echo(f"#{row.id:<5} {row.occurred_on.isoformat()} {row.amount:>10.2f}  {row.name} {link}".rstrip())
    if not rows:
        click.echo("No transactions found.")


@cli.command("delete-transaction")
@click.argument("transaction_id", type=int)
@click.pass_obj
def delete_transaction(app: AppContext, transaction_id: int) -> None:
    """Delete a ledger entry and roll back the payment it recorded."""

    _run(lambda: app.schedule.delete_transaction(transaction_id))
    click.echo(f"Deleted transaction #{transaction_id}")


@cli.command("delete-source")
@click.argument("source_id", type=int)
@click.confirmation_option(prompt="Delete this bill/installment and its schedule?")
@click.pass_obj
def delete_source(app: AppContext, source_id: int) -> None:
    """Delete a bill or installment. Its ledger entries are kept, unlinked."""

    result = _run(lambda: app.schedule.delete_source(source_id))
    click.echo(
        f"Deleted source #{source_id}: {result.obligations_deleted} scheduled payments removed, "
        f"{result.transactions_unlinked} transactions unlinked"
    )


@cli.command("regenerate")
@click.argument("source_id", type=int)
@click.pass_obj
def regenerate(app: AppContext, source_id: int) -> None:
    """Rebuild the unpaid part of a schedule after editing its source."""

    result = _run(lambda: app.schedule.regenerate_obligations(source_id))
    click.echo(f"Removed {result.removed}, inserted {result.inserted} scheduled payments")


@cli.command("mark-overdue")
@click.option("--as-of", "as_of", type=DATE, help="Reference date (default: today).")
@click.option("--due-day", type=click.IntRange(1, 28))
@click.pass_obj
def mark_overdue(app: AppContext, as_of: Optional[datetime], due_day: Optional[int]) -> None:
    """Mark unpaid scheduled payments past their due day as overdue."""

    count = app.schedule.mark_overdue(today=_day(as_of), due_day=due_day)
    click.echo(f"Marked {count} payments overdue")


def main() -> None:
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
