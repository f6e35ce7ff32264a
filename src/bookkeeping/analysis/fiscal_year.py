#!/usr/bin/env python3
"""
Fiscal Year Resolution

Decides which reporting year a transaction belongs to. A transaction's
fiscal_year override wins over the calendar year of its bank-posted date, so a
January payment for December work can be reported in the prior year without
changing the date the bank recorded.

Date-range filtering is a hybrid of the two:
- The resolved fiscal year must fall within the range's years
- And either an override is present or the raw date lies inside the range
"""

from collections.abc import Iterable

from ..core.dates import DateRange
from ..core.models import Transaction


def fiscal_year(transaction: Transaction) -> int:
    """Reporting year: the override if set, else the calendar year of the date."""
    if transaction.fiscal_year is not None:
        return transaction.fiscal_year
    return transaction.date.year


def date_year(transaction: Transaction) -> int:
    return transaction.date.year


def has_override(transaction: Transaction) -> bool:
    return transaction.fiscal_year is not None


def is_override_effective(transaction: Transaction) -> bool:
    """True when the override moves the transaction to a different year."""
    return has_override(transaction) and transaction.fiscal_year != date_year(transaction)


def filter_by_fiscal_year(transactions: Iterable[Transaction], year: int) -> list[Transaction]:
    """Transactions whose resolved fiscal year equals year."""
    return [tx for tx in transactions if fiscal_year(tx) == year]


def filter_by_fiscal_date_range(transactions: Iterable[Transaction], date_range: DateRange) -> list[Transaction]:
    """
    Filter transactions by a report period using fiscal-year semantics.

    An overridden transaction is included based on its fiscal year alone, so a
    2026-01-15 payment with fiscal_year=2025 lands in the 2025 report and is
    excluded from the 2026 report. Transactions without an override must also
    have their date inside the range.

    Args:
        transactions: Transactions to filter
        date_range: Inclusive report period

    Returns:
        Matching transactions in input order
    """
    start_year = date_range.start_year
    end_year = date_range.end_year

    result = []
    for tx in transactions:
        year = fiscal_year(tx)
        if date_range.spans_single_year:
            year_matches = year == start_year
        else:
            year_matches = start_year <= year <= end_year
        if not year_matches:
            continue
        if has_override(tx) or date_range.contains(tx.date):
            result.append(tx)
    return result


def unique_fiscal_years(transactions: Iterable[Transaction]) -> list[int]:
    """Distinct fiscal years, newest first."""
    return sorted({fiscal_year(tx) for tx in transactions}, reverse=True)


def group_by_fiscal_year(transactions: Iterable[Transaction]) -> dict[int, list[Transaction]]:
    groups: dict[int, list[Transaction]] = {}
    for tx in transactions:
        groups.setdefault(fiscal_year(tx), []).append(tx)
    return groups
