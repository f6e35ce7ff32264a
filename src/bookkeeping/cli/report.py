#!/usr/bin/env python3
"""
Report CLI - Financial Reports

Balance sheet, profit and loss, cash flow and category spending reports over
the stored book. Reports are printed as text or, with --json, as the report's
dictionary form.
"""

from collections.abc import Callable
from datetime import date
from typing import Any

import click

from ..analysis.models import LineItemGroup
from ..core.config import Config
from ..core.currency import symbol_for
from ..core.dates import DateRange, parse_iso_date
from ..core.decimal_value import format_currency
from ..core.json_utils import format_json
from .main import get_repository


def resolve_period(start: str | None, end: str | None, year: int | None) -> DateRange:
    """
    Report period from CLI options.

    --year wins; otherwise --start and --end must be given together; with
    neither, the current calendar year is used.
    """
    if year is not None:
        return DateRange.for_year(year)
    if start or end:
        if not (start and end):
            raise click.ClickException("--start and --end must be used together")
        try:
            period = DateRange.from_strings(start, end)
        except ValueError:
            raise click.ClickException(f"Invalid date range: {start}..{end}. Use YYYY-MM-DD")
        if period.start > period.end:
            raise click.ClickException(f"--start {start} is after --end {end}")
        return period
    return DateRange.for_year(date.today().year)


def period_options(command: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by period-based reports."""
    command = click.option("--year", type=int, help="Report on a whole (fiscal) year")(command)
    command = click.option("--end", help="Period end (YYYY-MM-DD)")(command)
    command = click.option("--start", help="Period start (YYYY-MM-DD)")(command)
    return command


def common_options(command: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every report."""
    command = click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")(command)
    command = click.option("--currency", help="Report currency (default: configured base currency)")(command)
    command = click.option("--context", "context_id", help="Only include this context")(command)
    return command


def _settings(ctx: click.Context, currency: str | None) -> tuple[str, int, bool]:
    config: Config = ctx.obj["config"]
    report_currency = (currency or config.reporting.base_currency).upper()
    return report_currency, config.reporting.display_decimals, config.reporting.use_fiscal_year


def _echo_group(title: str, group: LineItemGroup, symbol: str) -> None:
    click.echo(title)
    for item in group.items:
        click.echo(f"  {item.subcategory or '(none)':<30} {format_currency(item.amount, symbol):>16}")
    click.echo(f"  {'Total':<30} {format_currency(group.total, symbol):>16}")


@click.group()
def report() -> None:
    """Financial report commands."""
    pass


@report.command("balance-sheet")
@click.option("--as-of", "as_of_str", help="Report date (YYYY-MM-DD, default: today)")
@common_options
@click.pass_context
def balance_sheet(
    ctx: click.Context, as_of_str: str | None, context_id: str | None, currency: str | None, as_json: bool
) -> None:
    """Assets, liabilities and net worth."""
    report_currency, decimals, _ = _settings(ctx, currency)
    try:
        as_of = parse_iso_date(as_of_str) if as_of_str else date.today()
    except ValueError:
        raise click.ClickException(f"Invalid --as-of date: {as_of_str}. Use YYYY-MM-DD")

    book = get_repository(ctx).load()
    result = book.balance_sheet(as_of, context_id=context_id, report_currency=report_currency, decimals=decimals)

    if as_json:
        click.echo(format_json(result.to_dict()))
        return

    symbol = symbol_for(report_currency, book.currencies)
    click.echo(f"Balance Sheet as of {as_of.isoformat()} ({report_currency})")
    click.echo("=" * 60)
    for title, section in (("Assets", result.assets), ("Liabilities", result.liabilities)):
        click.echo(title)
        for item in section.accounts:
            amount = item.converted_balance if item.converted_balance is not None else item.balance
            click.echo(f"  {item.account_name:<30} {format_currency(amount, symbol):>16}")
        click.echo(f"  {'Total':<30} {format_currency(section.total, symbol):>16}")
    click.echo("-" * 60)
    click.echo(f"Net Worth: {format_currency(result.net_worth, symbol)}")


@report.command("profit-loss")
@period_options
@common_options
@click.pass_context
def profit_loss(
    ctx: click.Context,
    start: str | None,
    end: str | None,
    year: int | None,
    context_id: str | None,
    currency: str | None,
    as_json: bool,
) -> None:
    """Revenue, expenses, tax and net profit for a period."""
    report_currency, decimals, use_fiscal_year = _settings(ctx, currency)
    period = resolve_period(start, end, year)

    book = get_repository(ctx).load()
    result = book.profit_loss(
        period,
        context_id=context_id,
        report_currency=report_currency,
        use_fiscal_year=use_fiscal_year,
        decimals=decimals,
    )

    if as_json:
        click.echo(format_json(result.to_dict()))
        return

    symbol = symbol_for(report_currency, book.currencies)
    click.echo(f"Profit & Loss {period} ({report_currency})")
    click.echo("=" * 60)
    _echo_group("Local Income", result.revenue.local, symbol)
    _echo_group("Foreign Income", result.revenue.foreign, symbol)
    click.echo(f"Total Revenue: {format_currency(result.revenue.total, symbol)}")
    _echo_group("Expenses", result.expenses, symbol)
    click.echo("-" * 60)
    click.echo(f"Gross Profit: {format_currency(result.gross_profit, symbol)}")
    click.echo(f"Tax ({result.tax.rate}): {format_currency(result.tax.amount, symbol)}")
    click.echo(f"Net Profit: {format_currency(result.net_profit, symbol)}")


@report.command("cash-flow")
@period_options
@common_options
@click.pass_context
def cash_flow(
    ctx: click.Context,
    start: str | None,
    end: str | None,
    year: int | None,
    context_id: str | None,
    currency: str | None,
    as_json: bool,
) -> None:
    """Inflows, outflows and net cash flow for a period."""
    report_currency, decimals, use_fiscal_year = _settings(ctx, currency)
    period = resolve_period(start, end, year)

    book = get_repository(ctx).load()
    result = book.cash_flow(
        period,
        context_id=context_id,
        report_currency=report_currency,
        use_fiscal_year=use_fiscal_year,
        decimals=decimals,
    )

    if as_json:
        click.echo(format_json(result.to_dict()))
        return

    symbol = symbol_for(report_currency, book.currencies)
    click.echo(f"Cash Flow {period} ({report_currency})")
    click.echo("=" * 60)
    click.echo(f"Opening Balance: {format_currency(result.opening_balance, symbol)}")
    _echo_group("Inflows", result.inflows, symbol)
    _echo_group("Outflows", result.outflows, symbol)
    click.echo(f"Transfers: {format_currency(result.transfers_total, symbol)}")
    click.echo("-" * 60)
    click.echo(f"Net Cash Flow: {format_currency(result.net_cash_flow, symbol)}")
    click.echo(f"Closing Balance: {format_currency(result.closing_balance, symbol)}")


@report.command("spending")
@period_options
@common_options
@click.pass_context
def spending(
    ctx: click.Context,
    start: str | None,
    end: str | None,
    year: int | None,
    context_id: str | None,
    currency: str | None,
    as_json: bool,
) -> None:
    """Expense and income breakdown by subcategory."""
    report_currency, decimals, use_fiscal_year = _settings(ctx, currency)
    period = resolve_period(start, end, year)

    book = get_repository(ctx).load()
    result = book.category_spending(
        period,
        context_id=context_id,
        report_currency=report_currency,
        use_fiscal_year=use_fiscal_year,
        decimals=decimals,
    )

    if as_json:
        click.echo(format_json(result.to_dict()))
        return

    symbol = symbol_for(report_currency, book.currencies)
    click.echo(f"Category Spending {period} ({report_currency})")
    click.echo("=" * 60)
    for title, items, total in (
        ("Expenses", result.expenses, result.total_expenses),
        ("Income", result.income, result.total_income),
    ):
        click.echo(title)
        for item in items:
            click.echo(
                f"  {item.subcategory or '(none)':<30} {format_currency(item.amount, symbol):>16}"
                f" {item.percentage:>7}% ({item.transaction_count})"
            )
        click.echo(f"  {'Total':<30} {format_currency(total, symbol):>16}")
