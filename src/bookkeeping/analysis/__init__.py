"""
Financial Analysis Package

Fiscal-year resolution and report generation (balance sheet, profit and loss,
cash flow, category spending, summary metrics).
"""

from .fiscal_year import (
    date_year,
    filter_by_fiscal_date_range,
    filter_by_fiscal_year,
    fiscal_year,
    group_by_fiscal_year,
    has_override,
    is_override_effective,
    unique_fiscal_years,
)
from .models import (
    BalanceSheetReport,
    CashFlowReport,
    CategorySpendingReport,
    ProfitLossReport,
    SummaryMetrics,
)
from .reports import (
    TAX_RATE,
    calculate_summary_metrics,
    filter_by_accounts,
    filter_by_category,
    filter_by_date_range,
    filter_period,
    generate_balance_sheet,
    generate_cash_flow,
    generate_category_spending,
    generate_profit_loss,
)

__all__ = [
    "TAX_RATE",
    "BalanceSheetReport",
    "CashFlowReport",
    "CategorySpendingReport",
    "ProfitLossReport",
    "SummaryMetrics",
    "calculate_summary_metrics",
    "date_year",
    "filter_by_accounts",
    "filter_by_category",
    "filter_by_date_range",
    "filter_by_fiscal_date_range",
    "filter_by_fiscal_year",
    "filter_period",
    "fiscal_year",
    "generate_balance_sheet",
    "generate_cash_flow",
    "generate_category_spending",
    "generate_profit_loss",
    "group_by_fiscal_year",
    "has_override",
    "is_override_effective",
    "unique_fiscal_years",
]
