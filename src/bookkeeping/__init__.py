"""
Bookkeeping Engine - Statement Categorization and Financial Reports

Single-entry, cash-basis bookkeeping for personal and small-business use.

Key Features:
- Exact decimal arithmetic for every monetary value
- Rule-based auto-categorization of imported bank transactions
- Fiscal-year overrides for reporting
- Balance reconciliation with adjustment transactions
- Multi-currency reports through a USD pivot with user-supplied rates

Domain Packages:
- core: Decimal values, currencies, data models, configuration, persistence
- categorization: Mapping rule engine
- reconciliation: Expected balances and reconciliation
- analysis: Fiscal year resolution and report generation
- importing: Parsed statement ingest
- cli: Command-line interface

Example Usage:
    from bookkeeping import Book
    from bookkeeping.core.dates import DateRange

    report = book.profit_loss(DateRange.for_year(2025))
"""

__version__ = "0.1.0"

from .book import Book
from .core.config import Environment, get_config
from .core.decimal_value import DecimalValue
from .core.models import BankAccount, Category, Currency, MappingRule, Reconciliation, Transaction

__all__ = [
    "BankAccount",
    "Book",
    "Category",
    "Currency",
    "DecimalValue",
    "Environment",
    "MappingRule",
    "Reconciliation",
    "Transaction",
    "get_config",
]
