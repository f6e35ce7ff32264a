"""
Core Utilities Package

Shared primitives and data models used by every bookkeeping component.

This package provides:
- Exact decimal arithmetic for all monetary values
- Currency lookup and USD-pivot conversion
- Entity models for accounts, transactions, rules and reconciliations
- Configuration management for environment-specific settings
"""

from .config import (
    Config,
    Environment,
    get_config,
    get_data_dir,
    get_store_dir,
    is_development,
    is_production,
    is_test,
    reload_config,
)
from .currency import (
    SUPPORTED_CURRENCIES,
    CurrencyConverter,
    CurrencyInfo,
    convert,
    currency_info,
    exchange_rate_for,
    name_for,
    symbol_for,
    to_usd,
)
from .dates import DateRange, parse_iso_date
from .decimal_value import DecimalParseResult, DecimalValue, parse_with_diagnostic
from .models import (
    AccountType,
    BankAccount,
    Category,
    Currency,
    IncomeType,
    MappingRule,
    MatchField,
    PatternType,
    Reconciliation,
    Transaction,
)

__all__ = [
    "SUPPORTED_CURRENCIES",
    "AccountType",
    "BankAccount",
    "Category",
    # Configuration
    "Config",
    "Currency",
    "CurrencyConverter",
    "CurrencyInfo",
    "DateRange",
    "DecimalParseResult",
    # Decimal arithmetic
    "DecimalValue",
    "Environment",
    "IncomeType",
    "MappingRule",
    "MatchField",
    "PatternType",
    "Reconciliation",
    # Data models
    "Transaction",
    "convert",
    "currency_info",
    "exchange_rate_for",
    "get_config",
    "get_data_dir",
    "get_store_dir",
    "is_development",
    "is_production",
    "is_test",
    "name_for",
    "parse_iso_date",
    "parse_with_diagnostic",
    "reload_config",
    "symbol_for",
    "to_usd",
]
