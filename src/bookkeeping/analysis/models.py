#!/usr/bin/env python3
"""
Report Data Models

Immutable report structures returned by the report generators. Every monetary
field is a fixed-point decimal string already rounded for display, so reports
can be serialized or printed without further arithmetic.
"""

import dataclasses
from dataclasses import dataclass
from datetime import date
from typing import Any

from ..core.dates import DateRange


def _report_dict(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    result = {}
    for key, value in pairs:
        if isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, tuple):
            value = list(value)
        result[key] = value
    return result


class _ReportDict:
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return dataclasses.asdict(self, dict_factory=_report_dict)  # type: ignore[call-overload]


@dataclass(frozen=True)
class LineItem(_ReportDict):
    subcategory: str
    amount: str


@dataclass(frozen=True)
class LineItemGroup(_ReportDict):
    items: tuple[LineItem, ...]
    total: str


@dataclass(frozen=True)
class AccountBalanceItem(_ReportDict):
    """
    One account on the balance sheet.

    balance is in the account's own currency; converted_balance is set only
    when the report was generated in a report currency.
    """

    account_id: str
    account_name: str
    account_type: str
    currency: str
    balance: str
    converted_balance: str | None = None


@dataclass(frozen=True)
class AccountSection(_ReportDict):
    accounts: tuple[AccountBalanceItem, ...]
    total: str


@dataclass(frozen=True)
class BalanceSheetReport(_ReportDict):
    """Assets - Liabilities = Net Worth."""

    as_of: date
    currency: str | None
    assets: AccountSection
    liabilities: AccountSection
    net_worth: str


@dataclass(frozen=True)
class RevenueSection(_ReportDict):
    local: LineItemGroup
    foreign: LineItemGroup
    total: str


@dataclass(frozen=True)
class TaxLine(_ReportDict):
    rate: str
    amount: str


@dataclass(frozen=True)
class ProfitLossReport(_ReportDict):
    """
    Revenue - Expenses - Tax = Net Profit.

    unclassified_income is positive income with no income type. It is reported
    for visibility but is not part of revenue, since it cannot be taxed
    correctly until classified.
    """

    period: DateRange
    currency: str | None
    revenue: RevenueSection
    expenses: LineItemGroup
    gross_profit: str
    tax: TaxLine
    net_profit: str
    unclassified_income: str = "0.00"


@dataclass(frozen=True)
class CashFlowReport(_ReportDict):
    """Inflows - Outflows = Net Cash Flow. Transfers are reported separately."""

    period: DateRange
    currency: str | None
    inflows: LineItemGroup
    outflows: LineItemGroup
    transfers_total: str
    net_cash_flow: str
    opening_balance: str
    closing_balance: str


@dataclass(frozen=True)
class CategorySpendingItem(_ReportDict):
    subcategory: str
    amount: str
    percentage: str
    transaction_count: int


@dataclass(frozen=True)
class CategorySpendingReport(_ReportDict):
    period: DateRange
    currency: str | None
    expenses: tuple[CategorySpendingItem, ...]
    total_expenses: str
    income: tuple[CategorySpendingItem, ...]
    total_income: str


@dataclass(frozen=True)
class SummaryMetrics(_ReportDict):
    """Dashboard headline numbers for a period."""

    period: DateRange
    total_income: str
    total_expenses: str
    net_profit: str
    tax_owed: str
    net_worth: str
    transaction_count: int
    uncategorized_count: int
