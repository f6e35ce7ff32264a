#!/usr/bin/env python3
"""
Core Data Models for the Bookkeeping Engine

Entity types shared by categorization, reconciliation, reporting and
persistence. Entities are immutable snapshots: edits produce new instances and
the caller persists them.

Serialization contract (to_dict/from_dict):
- Monetary values are decimal strings, never floats
- Dates are ISO strings (YYYY-MM-DD)
- Enum fields are their string values
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from .dates import parse_iso_date
from .decimal_value import DecimalValue


class Category(Enum):
    """Transaction categories."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    UNCATEGORIZED = "uncategorized"
    ADJUSTMENT = "adjustment"


class IncomeType(Enum):
    """Income classification used for tax calculation."""

    LOCAL = "local"
    FOREIGN = "foreign"


class AccountType(Enum):
    """Bank account types."""

    CHECKING = "checking"
    CREDIT_CARD = "credit_card"


class PatternType(Enum):
    """How a mapping rule pattern is compared to transaction text."""

    EXACT = "exact"
    CONTAINS = "contains"
    REGEX = "regex"


class MatchField(Enum):
    """Which transaction text a mapping rule is matched against."""

    NAME = "name"
    MEMO = "memo"
    BOTH = "both"


def utc_now_iso() -> str:
    """Current UTC timestamp as ISO string."""
    return datetime.now(timezone.utc).isoformat()


def _optional_enum(enum_type: type[Enum], value: Any) -> Any:
    return enum_type(value) if value else None


@dataclass(frozen=True)
class Transaction:
    """
    Bank transaction.

    Amount sign convention: positive = inflow, negative = outflow, regardless
    of account type or currency.

    The fiscal_year override, when set, decides which year the transaction is
    reported under. The bank-posted date is never changed.
    """

    id: str
    account_id: str
    date: date
    amount: DecimalValue
    name: str

    # Optional fields
    memo: str = ""
    category: Category = Category.UNCATEGORIZED
    subcategory: str = ""
    income_type: IncomeType | None = None
    fiscal_year: int | None = None

    # Import metadata
    fit_id: str = ""
    type: str = "OTHER"
    check_number: str | None = None
    import_batch_id: str = ""
    created_at: str = field(default_factory=utc_now_iso)

    @property
    def is_uncategorized(self) -> bool:
        return self.category == Category.UNCATEGORIZED

    def with_categorization(
        self, category: Category, subcategory: str, income_type: IncomeType | None = None
    ) -> "Transaction":
        """Return a copy with a new category, subcategory and income type."""
        return dataclasses.replace(self, category=category, subcategory=subcategory, income_type=income_type)

    def with_fiscal_year(self, fiscal_year: int | None) -> "Transaction":
        """Return a copy with the fiscal year override set (or cleared with None)."""
        return dataclasses.replace(self, fiscal_year=fiscal_year)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "account_id": self.account_id,
            "date": self.date.isoformat(),
            "amount": self.amount.to_plain_string(),
            "name": self.name,
            "memo": self.memo,
            "category": self.category.value,
            "subcategory": self.subcategory,
            "income_type": self.income_type.value if self.income_type else None,
            "fiscal_year": self.fiscal_year,
            "fit_id": self.fit_id,
            "type": self.type,
            "check_number": self.check_number,
            "import_batch_id": self.import_batch_id,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """Create Transaction from dictionary."""
        fiscal_year = data.get("fiscal_year")
        return cls(
            id=data["id"],
            account_id=data["account_id"],
            date=parse_iso_date(data["date"]),
            amount=DecimalValue.parse(data.get("amount")),
            name=data.get("name", ""),
            memo=data.get("memo") or "",
            category=Category(data.get("category", Category.UNCATEGORIZED.value)),
            subcategory=data.get("subcategory") or "",
            income_type=_optional_enum(IncomeType, data.get("income_type")),
            fiscal_year=int(fiscal_year) if fiscal_year is not None else None,
            fit_id=data.get("fit_id", ""),
            type=data.get("type", "OTHER"),
            check_number=data.get("check_number"),
            import_batch_id=data.get("import_batch_id", ""),
            created_at=data.get("created_at") or utc_now_iso(),
        )


@dataclass(frozen=True)
class BankAccount:
    """
    Bank account with a point-in-time balance snapshot.

    The balance is the anchor for forward projections; balances at later dates
    are derived from transactions, never stored per day.
    """

    id: str
    context_id: str
    name: str
    type: AccountType
    currency: str
    balance: DecimalValue
    balance_date: date

    # Identity from the statement
    account_id_hash: str = ""
    bank_id: str = ""
    account_number: str = ""
    created_at: str = field(default_factory=utc_now_iso)

    @property
    def is_liability(self) -> bool:
        return self.type == AccountType.CREDIT_CARD

    def with_snapshot(self, balance: DecimalValue, balance_date: date) -> "BankAccount":
        """Return a copy with a new balance snapshot."""
        return dataclasses.replace(self, balance=balance, balance_date=balance_date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "context_id": self.context_id,
            "name": self.name,
            "type": self.type.value,
            "currency": self.currency,
            "balance": self.balance.to_plain_string(),
            "balance_date": self.balance_date.isoformat(),
            "account_id_hash": self.account_id_hash,
            "bank_id": self.bank_id,
            "account_number": self.account_number,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BankAccount":
        return cls(
            id=data["id"],
            context_id=data.get("context_id", ""),
            name=data["name"],
            type=AccountType(data.get("type", AccountType.CHECKING.value)),
            currency=data.get("currency", "USD"),
            balance=DecimalValue.parse(data.get("balance")),
            balance_date=parse_iso_date(data["balance_date"]),
            account_id_hash=data.get("account_id_hash", ""),
            bank_id=data.get("bank_id", ""),
            account_number=data.get("account_number", ""),
            created_at=data.get("created_at") or utc_now_iso(),
        )


@dataclass(frozen=True)
class MappingRule:
    """Pattern-based auto-categorization rule. Higher priority is evaluated first."""

    id: str
    context_id: str
    pattern: str
    pattern_type: PatternType
    match_field: MatchField
    category: Category
    subcategory: str
    priority: int = 0
    is_active: bool = True
    income_type: IncomeType | None = None
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "context_id": self.context_id,
            "pattern": self.pattern,
            "pattern_type": self.pattern_type.value,
            "match_field": self.match_field.value,
            "category": self.category.value,
            "subcategory": self.subcategory,
            "priority": self.priority,
            "is_active": self.is_active,
            "income_type": self.income_type.value if self.income_type else None,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MappingRule":
        return cls(
            id=data["id"],
            context_id=data.get("context_id", ""),
            pattern=data["pattern"],
            pattern_type=PatternType(data.get("pattern_type", PatternType.CONTAINS.value)),
            match_field=MatchField(data.get("match_field", MatchField.NAME.value)),
            category=Category(data["category"]),
            subcategory=data.get("subcategory") or "",
            priority=int(data.get("priority", 0)),
            is_active=bool(data.get("is_active", True)),
            income_type=_optional_enum(IncomeType, data.get("income_type")),
            created_at=data.get("created_at") or utc_now_iso(),
        )


@dataclass(frozen=True)
class Reconciliation:
    """
    Append-only reconciliation audit record.

    adjustment_amount = actual_balance - expected_balance.
    """

    id: str
    account_id: str
    reconciled_date: date
    expected_balance: DecimalValue
    actual_balance: DecimalValue
    adjustment_amount: DecimalValue
    adjustment_transaction_id: str | None = None
    notes: str = ""
    created_at: str = field(default_factory=utc_now_iso)
    superseded_transaction_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "reconciled_date": self.reconciled_date.isoformat(),
            "expected_balance": self.expected_balance.to_plain_string(),
            "actual_balance": self.actual_balance.to_plain_string(),
            "adjustment_amount": self.adjustment_amount.to_plain_string(),
            "adjustment_transaction_id": self.adjustment_transaction_id,
            "notes": self.notes,
            "created_at": self.created_at,
            "superseded_transaction_ids": list(self.superseded_transaction_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Reconciliation":
        return cls(
            id=data["id"],
            account_id=data["account_id"],
            reconciled_date=parse_iso_date(data["reconciled_date"]),
            expected_balance=DecimalValue.parse(data.get("expected_balance")),
            actual_balance=DecimalValue.parse(data.get("actual_balance")),
            adjustment_amount=DecimalValue.parse(data.get("adjustment_amount")),
            adjustment_transaction_id=data.get("adjustment_transaction_id"),
            notes=data.get("notes") or "",
            created_at=data.get("created_at") or utc_now_iso(),
            superseded_transaction_ids=tuple(data.get("superseded_transaction_ids") or ()),
        )


@dataclass(frozen=True)
class Currency:
    """
    User-defined currency.

    exchange_rate is expressed against the USD pivot and defaults to 1.
    """

    code: str
    symbol: str
    name: str
    exchange_rate: DecimalValue = field(default_factory=lambda: DecimalValue.parse("1"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "symbol": self.symbol,
            "name": self.name,
            "exchange_rate": self.exchange_rate.to_plain_string(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Currency":
        rate = data.get("exchange_rate")
        return cls(
            code=data["code"],
            symbol=data.get("symbol") or data["code"],
            name=data.get("name") or data["code"],
            exchange_rate=DecimalValue.parse(rate if rate not in (None, "") else "1"),
        )
