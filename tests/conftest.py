"""
Shared pytest fixtures for the bookkeeping test suite.

Every test runs in the test environment against a fresh temporary data
directory, with reporting settings reset to their defaults.
"""

import tempfile
from datetime import date
from pathlib import Path

import pytest

from bookkeeping.core.config import reload_config
from bookkeeping.core.decimal_value import DecimalValue
from bookkeeping.core.models import (
    AccountType,
    BankAccount,
    Category,
    Currency,
    IncomeType,
    MappingRule,
    MatchField,
    PatternType,
    Transaction,
)


@pytest.fixture
def temp_dir():
    """Scratch directory for statement and rule files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Point configuration at a per-test data directory."""
    monkeypatch.setenv("BOOKKEEPING_ENV", "test")
    monkeypatch.setenv("BOOKKEEPING_DATA_DIR", str(tmp_path / "bookkeeping_data"))
    monkeypatch.delenv("BOOKKEEPING_BASE_CURRENCY", raising=False)
    monkeypatch.delenv("BOOKKEEPING_DISPLAY_DECIMALS", raising=False)
    monkeypatch.delenv("BOOKKEEPING_USE_FISCAL_YEAR", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)
    reload_config()


@pytest.fixture
def checking_account() -> BankAccount:
    """Checking account with a 1000.00 snapshot on 2025-01-01."""
    return BankAccount(
        id="acct-checking",
        context_id="personal",
        name="Checking ****1234",
        type=AccountType.CHECKING,
        currency="USD",
        balance=DecimalValue.parse("1000.00"),
        balance_date=date(2025, 1, 1),
    )


@pytest.fixture
def credit_card_account() -> BankAccount:
    """Credit card owing 250.00."""
    return BankAccount(
        id="acct-card",
        context_id="personal",
        name="Credit Card ****9876",
        type=AccountType.CREDIT_CARD,
        currency="USD",
        balance=DecimalValue.parse("-250.00"),
        balance_date=date(2025, 1, 1),
    )


@pytest.fixture
def make_transaction():
    """Factory for transactions with sensible defaults."""
    counter = {"n": 0}

    def _make(
        amount: str,
        on: date = date(2025, 3, 15),
        category: Category = Category.UNCATEGORIZED,
        subcategory: str = "",
        income_type: IncomeType | None = None,
        account_id: str = "acct-checking",
        name: str = "Synthetic Payee",
        memo: str = "",
        fiscal_year: int | None = None,
    ) -> Transaction:
        counter["n"] += 1
        return Transaction(
            id=f"tx-{counter['n']:04d}",
            account_id=account_id,
            date=on,
            amount=DecimalValue.parse(amount),
            name=name,
            memo=memo,
            category=category,
            subcategory=subcategory,
            income_type=income_type,
            fiscal_year=fiscal_year,
            fit_id=f"FIT{counter['n']:04d}",
        )

    return _make


@pytest.fixture
def make_rule():
    """Factory for mapping rules."""
    counter = {"n": 0}

    def _make(
        pattern: str,
        category: Category = Category.EXPENSE,
        subcategory: str = "Groceries",
        pattern_type: PatternType = PatternType.CONTAINS,
        match_field: MatchField = MatchField.NAME,
        priority: int = 0,
        is_active: bool = True,
        income_type: IncomeType | None = None,
        context_id: str = "personal",
        created_at: str | None = None,
    ) -> MappingRule:
        counter["n"] += 1
        return MappingRule(
            id=f"rule-{counter['n']:03d}",
            context_id=context_id,
            pattern=pattern,
            pattern_type=pattern_type,
            match_field=match_field,
            category=category,
            subcategory=subcategory,
            priority=priority,
            is_active=is_active,
            income_type=income_type,
            created_at=created_at or f"2025-01-01T00:00:{counter['n']:02d}+00:00",
        )

    return _make


@pytest.fixture
def euro() -> Currency:
    """User-defined EUR with a USD-pivot rate of 1.10."""
    return Currency(code="EUR", symbol="€", name="Euro", exchange_rate=DecimalValue.parse("1.10"))


def pytest_configure(config):
    """Register the suite's markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for configuration, storage and CLI")
    config.addinivalue_line("markers", "currency: Tests for decimal precision and currency conversion")
    config.addinivalue_line("markers", "reports: Tests for report generation")
    config.addinivalue_line("markers", "rules: Tests for the mapping rule engine")
    config.addinivalue_line("markers", "reconciliation: Tests for balance reconciliation")
    config.addinivalue_line("markers", "cli: Tests for the command-line interface")
