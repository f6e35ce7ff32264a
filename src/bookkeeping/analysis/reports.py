#!/usr/bin/env python3
"""
Financial Report Generation

Pure aggregation functions behind the four core reports:
- Balance Sheet: Assets - Liabilities = Net Worth
- Profit & Loss: Revenue - Expenses - Tax = Net Profit
- Cash Flow: Inflows - Outflows = Net Cash Flow
- Category Spending: breakdown by subcategory

Arithmetic runs at full decimal precision up to the displayed figures. Each
subcategory subtotal (and each account balance) is rounded once to the report
precision, and every total and derived figure is built from those rounded
values, so the printed items always add up to the printed totals.

Period filtering uses fiscal-year semantics by default, so a transaction with
a fiscal year override is reported in the year it was assigned to.

Multi-currency: pass report_currency together with accounts (and the user
currency list) to convert every amount from its account's currency before
aggregation. Without report_currency, amounts are summed as-is.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import date

from ..core.currency import CurrencyConverter
from ..core.dates import DateRange
from ..core.decimal_value import (
    DecimalValue,
    abs_value,
    group_and_sum,
    multiply,
    percent_of,
    subtract,
    sum_values,
)
from ..core.models import AccountType, BankAccount, Category, Currency, IncomeType, Transaction
from .fiscal_year import filter_by_fiscal_date_range
from .models import (
    AccountBalanceItem,
    AccountSection,
    BalanceSheetReport,
    CashFlowReport,
    CategorySpendingItem,
    CategorySpendingReport,
    LineItem,
    LineItemGroup,
    ProfitLossReport,
    RevenueSection,
    SummaryMetrics,
    TaxLine,
)

logger = logging.getLogger(__name__)

# Tax on local income
TAX_RATE = "0.15"

Amounts = list[tuple[Transaction, DecimalValue]]


# Filters


def filter_by_date_range(transactions: Iterable[Transaction], period: DateRange) -> list[Transaction]:
    """Transactions whose bank-posted date lies in the period (inclusive)."""
    return [tx for tx in transactions if period.contains(tx.date)]


def filter_by_category(transactions: Iterable[Transaction], category: Category) -> list[Transaction]:
    return [tx for tx in transactions if tx.category == category]


def filter_by_accounts(transactions: Iterable[Transaction], account_ids: Iterable[str]) -> list[Transaction]:
    wanted = set(account_ids)
    return [tx for tx in transactions if tx.account_id in wanted]


def filter_period(
    transactions: Iterable[Transaction], period: DateRange, use_fiscal_year: bool = True
) -> list[Transaction]:
    """Apply the report period, with fiscal-year semantics unless disabled."""
    if use_fiscal_year:
        return filter_by_fiscal_date_range(transactions, period)
    return filter_by_date_range(transactions, period)


# Currency handling


def _amount_converter(
    accounts: Sequence[BankAccount] | None,
    currencies: Sequence[Currency] | None,
    report_currency: str | None,
) -> Callable[[Transaction], DecimalValue]:
    """Build a function giving each transaction's amount in the report currency."""
    if report_currency is None or not accounts:
        if report_currency is not None:
            logger.debug("Report currency requested without accounts; amounts left unconverted")
        return lambda tx: tx.amount

    converter = CurrencyConverter(currencies)
    account_currency = {account.id: account.currency for account in accounts}

    def in_report_currency(tx: Transaction) -> DecimalValue:
        source = account_currency.get(tx.account_id)
        if source is None:
            return tx.amount
        return converter.convert(tx.amount, source, report_currency)

    return in_report_currency


def _balance_in(
    account: BankAccount, converter: CurrencyConverter, report_currency: str | None, decimals: int
) -> DecimalValue:
    """Account balance in the report currency, rounded to the report precision."""
    if report_currency is None:
        return account.balance.rounded(decimals)
    return converter.convert(account.balance, account.currency, report_currency).rounded(decimals)


def _priced(
    transactions: Iterable[Transaction],
    accounts: Sequence[BankAccount] | None,
    currencies: Sequence[Currency] | None,
    report_currency: str | None,
) -> Amounts:
    amount_of = _amount_converter(accounts, currencies, report_currency)
    return [(tx, amount_of(tx)) for tx in transactions]


def _income(priced: Amounts) -> Amounts:
    return [(tx, amount) for tx, amount in priced if tx.category == Category.INCOME and amount.is_positive()]


def _expenses(priced: Amounts) -> Amounts:
    return [(tx, amount) for tx, amount in priced if tx.category == Category.EXPENSE and amount.is_negative()]


def _by_subcategory(priced: Amounts, decimals: int, absolute: bool = False) -> dict[str, DecimalValue]:
    """Subtotals per subcategory, each rounded once to the report precision."""
    grouped = group_and_sum(
        priced,
        lambda pair: pair[0].subcategory,
        (lambda pair: abs_value(pair[1])) if absolute else (lambda pair: pair[1]),
    )
    return {subcategory: amount.rounded(decimals) for subcategory, amount in grouped.items()}


def _section_total(priced: Amounts, decimals: int, absolute: bool = False) -> DecimalValue:
    return sum_values(_by_subcategory(priced, decimals, absolute).values())


def _line_group(priced: Amounts, decimals: int, absolute: bool = False) -> tuple[LineItemGroup, DecimalValue]:
    """Line items by subcategory and their total, the sum of the rounded items."""
    grouped = _by_subcategory(priced, decimals, absolute)
    items = tuple(
        LineItem(subcategory=subcategory, amount=amount.to_fixed(decimals)) for subcategory, amount in grouped.items()
    )
    total = sum_values(grouped.values())
    return LineItemGroup(items=items, total=total.to_fixed(decimals)), total


# Reports


def generate_balance_sheet(
    accounts: Iterable[BankAccount],
    as_of: date,
    *,
    currencies: Sequence[Currency] | None = None,
    report_currency: str | None = None,
    decimals: int = 2,
) -> BalanceSheetReport:
    """
    Generate a balance sheet from account snapshot balances.

    Checking accounts are assets. Credit cards are liabilities, counted at the
    absolute value of their balance (a negative card balance is money owed).

    Args:
        accounts: Accounts to include
        as_of: Report date
        currencies: User-defined currencies for conversion
        report_currency: Convert balances into this currency when set
        decimals: Display precision

    Returns:
        BalanceSheetReport with net_worth = total assets - total liabilities
    """
    converter = CurrencyConverter(currencies)
    assets: list[AccountBalanceItem] = []
    liabilities: list[AccountBalanceItem] = []
    total_assets = DecimalValue.zero()
    total_liabilities = DecimalValue.zero()

    for account in accounts:
        balance = _balance_in(account, converter, report_currency, decimals)
        item = AccountBalanceItem(
            account_id=account.id,
            account_name=account.name,
            account_type=account.type.value,
            currency=account.currency,
            balance=account.balance.to_fixed(decimals),
            converted_balance=balance.to_fixed(decimals) if report_currency else None,
        )
        if account.type == AccountType.CREDIT_CARD:
            liabilities.append(item)
            total_liabilities = total_liabilities + abs_value(balance)
        else:
            assets.append(item)
            total_assets = total_assets + balance

    return BalanceSheetReport(
        as_of=as_of,
        currency=report_currency,
        assets=AccountSection(accounts=tuple(assets), total=total_assets.to_fixed(decimals)),
        liabilities=AccountSection(accounts=tuple(liabilities), total=total_liabilities.to_fixed(decimals)),
        net_worth=subtract(total_assets, total_liabilities).to_fixed(decimals),
    )


def generate_profit_loss(
    transactions: Iterable[Transaction],
    period: DateRange,
    *,
    accounts: Sequence[BankAccount] | None = None,
    currencies: Sequence[Currency] | None = None,
    report_currency: str | None = None,
    use_fiscal_year: bool = True,
    decimals: int = 2,
) -> ProfitLossReport:
    """
    Generate a profit and loss statement.

    Revenue is positive income split into local and foreign income, each
    grouped by subcategory. Expenses are negative expense transactions shown
    as positive amounts. Tax applies to local income only:

        gross_profit = (local + foreign) - expenses
        tax          = local * TAX_RATE
        net_profit   = gross_profit - tax
    """
    priced = _priced(filter_period(transactions, period, use_fiscal_year), accounts, currencies, report_currency)

    income = _income(priced)
    local = [(tx, amount) for tx, amount in income if tx.income_type == IncomeType.LOCAL]
    foreign = [(tx, amount) for tx, amount in income if tx.income_type == IncomeType.FOREIGN]
    unclassified = sum_values(amount for tx, amount in income if tx.income_type is None)
    if unclassified.is_positive():
        logger.warning(f"{unclassified.to_fixed(decimals)} of income in {period} has no income type")

    local_group, local_total = _line_group(local, decimals)
    foreign_group, foreign_total = _line_group(foreign, decimals)
    revenue_total = local_total + foreign_total

    expense_group, expense_total = _line_group(_expenses(priced), decimals, absolute=True)

    gross_profit = subtract(revenue_total, expense_total)
    tax_amount = multiply(local_total, TAX_RATE).rounded(decimals)
    net_profit = subtract(gross_profit, tax_amount)

    return ProfitLossReport(
        period=period,
        currency=report_currency,
        revenue=RevenueSection(
            local=local_group,
            foreign=foreign_group,
            total=revenue_total.to_fixed(decimals),
        ),
        expenses=expense_group,
        gross_profit=gross_profit.to_fixed(decimals),
        tax=TaxLine(rate=TAX_RATE, amount=tax_amount.to_fixed(decimals)),
        net_profit=net_profit.to_fixed(decimals),
        unclassified_income=unclassified.to_fixed(decimals),
    )


def generate_cash_flow(
    transactions: Iterable[Transaction],
    accounts: Sequence[BankAccount],
    period: DateRange,
    *,
    currencies: Sequence[Currency] | None = None,
    report_currency: str | None = None,
    use_fiscal_year: bool = True,
    decimals: int = 2,
) -> CashFlowReport:
    """
    Generate a cash flow statement.

    The closing balance is the sum of the accounts' snapshot balances and the
    opening balance is derived from it (closing - net cash flow). Transfers
    between own accounts are summed separately and should net to zero.
    """
    priced = _priced(filter_period(transactions, period, use_fiscal_year), accounts, currencies, report_currency)

    inflow_group, inflow_total = _line_group(_income(priced), decimals)
    outflow_group, outflow_total = _line_group(_expenses(priced), decimals, absolute=True)
    transfers_total = sum_values(amount for tx, amount in priced if tx.category == Category.TRANSFER)
    net_cash_flow = subtract(inflow_total, outflow_total)

    converter = CurrencyConverter(currencies)
    closing_balance = sum_values(_balance_in(account, converter, report_currency, decimals) for account in accounts)
    opening_balance = subtract(closing_balance, net_cash_flow)

    return CashFlowReport(
        period=period,
        currency=report_currency,
        inflows=inflow_group,
        outflows=outflow_group,
        transfers_total=transfers_total.to_fixed(decimals),
        net_cash_flow=net_cash_flow.to_fixed(decimals),
        opening_balance=opening_balance.to_fixed(decimals),
        closing_balance=closing_balance.to_fixed(decimals),
    )


def _spending_items(priced: Amounts, decimals: int) -> tuple[tuple[CategorySpendingItem, ...], DecimalValue]:
    grouped = _by_subcategory(priced, decimals, absolute=True)
    counts: dict[str, int] = {}
    for tx, _ in priced:
        counts[tx.subcategory] = counts.get(tx.subcategory, 0) + 1

    total = sum_values(grouped.values())
    ranked = sorted(grouped.items(), key=lambda entry: entry[1].to_decimal(), reverse=True)
    items = tuple(
        CategorySpendingItem(
            subcategory=subcategory,
            amount=amount.to_fixed(decimals),
            percentage=percent_of(amount, total).to_fixed(decimals),
            transaction_count=counts[subcategory],
        )
        for subcategory, amount in ranked
    )
    return items, total


def generate_category_spending(
    transactions: Iterable[Transaction],
    period: DateRange,
    *,
    accounts: Sequence[BankAccount] | None = None,
    currencies: Sequence[Currency] | None = None,
    report_currency: str | None = None,
    use_fiscal_year: bool = True,
    decimals: int = 2,
) -> CategorySpendingReport:
    """
    Break expenses and income down by subcategory.

    Each item carries its amount, its percentage of the section total (zero
    when the total is zero) and the number of transactions. Items are sorted
    by amount, largest first.
    """
    priced = _priced(filter_period(transactions, period, use_fiscal_year), accounts, currencies, report_currency)

    expense_items, expense_total = _spending_items(_expenses(priced), decimals)
    income_items, income_total = _spending_items(_income(priced), decimals)

    return CategorySpendingReport(
        period=period,
        currency=report_currency,
        expenses=expense_items,
        total_expenses=expense_total.to_fixed(decimals),
        income=income_items,
        total_income=income_total.to_fixed(decimals),
    )


def calculate_summary_metrics(
    transactions: Iterable[Transaction],
    accounts: Sequence[BankAccount],
    period: DateRange,
    *,
    currencies: Sequence[Currency] | None = None,
    report_currency: str | None = None,
    use_fiscal_year: bool = True,
    decimals: int = 2,
) -> SummaryMetrics:
    """
    Headline numbers for a period.

    Unlike the P&L, total income includes income without an income type.
    Net worth is the signed sum of all balances (card balances are already
    negative when money is owed).
    """
    period_transactions = filter_period(transactions, period, use_fiscal_year)
    priced = _priced(period_transactions, accounts, currencies, report_currency)

    income = _income(priced)
    total_income = _section_total(income, decimals)
    local = [(tx, amount) for tx, amount in income if tx.income_type == IncomeType.LOCAL]
    local_income = _section_total(local, decimals)
    total_expenses = _section_total(_expenses(priced), decimals, absolute=True)

    tax_owed = multiply(local_income, TAX_RATE).rounded(decimals)
    net_profit = subtract(subtract(total_income, total_expenses), tax_owed)

    converter = CurrencyConverter(currencies)
    net_worth = sum_values(_balance_in(account, converter, report_currency, decimals) for account in accounts)

    return SummaryMetrics(
        period=period,
        total_income=total_income.to_fixed(decimals),
        total_expenses=total_expenses.to_fixed(decimals),
        net_profit=net_profit.to_fixed(decimals),
        tax_owed=tax_owed.to_fixed(decimals),
        net_worth=net_worth.to_fixed(decimals),
        transaction_count=len(period_transactions),
        uncategorized_count=sum(1 for tx in period_transactions if tx.is_uncategorized),
    )
