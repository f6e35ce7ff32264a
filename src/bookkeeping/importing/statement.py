#!/usr/bin/env python3
"""
Bank Statement Ingest

Turns an already-parsed bank statement (OFX or similar, parsed elsewhere) into
accounts and transactions.

Import rules:
- Accounts are identified by sha256(bank_id + account_id); a known account is
  reused and its balance snapshot refreshed when the statement carries one
- New accounts get a masked number ("****1234") and a generated name
- A currency the user has not defined is auto-created with rate 1
- Transactions arrive uncategorized and share one import batch id
- Duplicates by (account, fit_id) are skipped, both against existing data and
  within the statement itself
"""

import hashlib
import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..core.currency import DEFAULT_CURRENCY, suggested_currency_info
from ..core.dates import DateRange, parse_iso_date
from ..core.decimal_value import DecimalValue, parse_with_diagnostic
from ..core.models import AccountType, BankAccount, Category, Currency, Transaction

logger = logging.getLogger(__name__)

CREDIT_CARD_STATEMENT_TYPE = "CREDITCARD"


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class ParsedTransaction:
    """One transaction as delivered by the statement parser."""

    fit_id: str
    date_posted: date
    amount: Any
    name: str
    memo: str = ""
    type: str = "OTHER"
    check_number: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParsedTransaction":
        """Accepts snake_case keys or the parser's camelCase keys."""
        check_number = _pick(data, "check_number", "checkNum", "checkNumber")
        return cls(
            fit_id=str(_pick(data, "fit_id", "fitId", default="")),
            date_posted=parse_iso_date(_pick(data, "date_posted", "datePosted", "date")),
            amount=_pick(data, "amount"),
            name=str(_pick(data, "name", default="")),
            memo=str(_pick(data, "memo", default="")),
            type=str(_pick(data, "type", default="OTHER")),
            check_number=str(check_number) if check_number is not None else None,
        )


@dataclass(frozen=True)
class ParsedStatement:
    """A parsed statement for a single bank account."""

    bank_id: str
    account_id: str
    account_type: str
    currency: str = DEFAULT_CURRENCY
    balance: Any = None
    balance_as_of: date | None = None
    transactions: tuple[ParsedTransaction, ...] = ()
    date_range: DateRange | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParsedStatement":
        """
        Build from a flat dict or the parser's nested layout.

        Nested layout:
            {"account": {"bankId", "accountId", "accountType"}, "currency",
             "balance": {"amount", "asOf"}, "dateRange": {"start", "end"},
             "transactions": [...]}
        """
        account = data.get("account") or {}
        balance = data.get("balance")
        if isinstance(balance, dict):
            balance_amount = balance.get("amount")
            balance_as_of = balance.get("asOf") or balance.get("as_of")
        else:
            balance_amount = balance
            balance_as_of = _pick(data, "balance_as_of", "balanceAsOf")

        raw_range = _pick(data, "date_range", "dateRange")
        date_range = DateRange.from_strings(raw_range["start"], raw_range["end"]) if raw_range else None

        return cls(
            bank_id=str(_pick(data, "bank_id", "bankId", default=_pick(account, "bank_id", "bankId", default=""))),
            account_id=str(
                _pick(data, "account_id", "accountId", default=_pick(account, "account_id", "accountId", default=""))
            ),
            account_type=str(
                _pick(
                    data,
                    "account_type",
                    "accountType",
                    default=_pick(account, "account_type", "accountType", default="CHECKING"),
                )
            ),
            currency=str(_pick(data, "currency", default=DEFAULT_CURRENCY) or DEFAULT_CURRENCY),
            balance=balance_amount,
            balance_as_of=parse_iso_date(balance_as_of) if balance_as_of else None,
            transactions=tuple(ParsedTransaction.from_dict(t) for t in data.get("transactions") or ()),
            date_range=date_range,
        )


@dataclass(frozen=True)
class ImportResult:
    """Next state of the collections touched by an import, plus a summary."""

    account: BankAccount
    is_new_account: bool
    accounts: list[BankAccount]
    transactions: list[Transaction]
    currencies: list[Currency]
    new_transactions: list[Transaction]
    duplicates_skipped: int
    import_batch_id: str
    date_range: DateRange | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def total_transactions(self) -> int:
        return len(self.new_transactions) + self.duplicates_skipped


def account_id_hash(bank_id: str, account_id: str) -> str:
    """Stable identity of a bank account: sha256 of bank id + account id."""
    return hashlib.sha256(f"{bank_id}{account_id}".encode()).hexdigest()


def mask_account_number(account_number: str) -> str:
    """Keep only the last four digits: "123456789" -> "****6789"."""
    if len(account_number) > 4:
        return "****" + account_number[-4:]
    return account_number


def account_type_for(statement_type: str) -> AccountType:
    if statement_type.upper() == CREDIT_CARD_STATEMENT_TYPE:
        return AccountType.CREDIT_CARD
    return AccountType.CHECKING


def default_account_name(account_type: AccountType, masked_number: str) -> str:
    label = "Credit Card" if account_type == AccountType.CREDIT_CARD else "Checking"
    return f"{label} {masked_number}"


def import_statement(
    statement: ParsedStatement,
    context_id: str,
    accounts: Sequence[BankAccount],
    transactions: Sequence[Transaction],
    currencies: Sequence[Currency],
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    today: date | None = None,
) -> ImportResult:
    """
    Import a parsed statement.

    Args:
        statement: Parsed statement
        context_id: Context that owns a newly created account
        accounts: Existing accounts
        transactions: Existing transactions
        currencies: Existing user-defined currencies
        id_factory: Source of unique ids
        today: Balance date for a new account when the statement has none

    Returns:
        ImportResult holding the updated collections

    Raises:
        ValueError: If the statement has no account id
    """
    if not statement.account_id:
        raise ValueError("Statement has no account id")

    errors: list[str] = []
    batch_id = id_factory()
    snapshot_date = statement.balance_as_of or today or date.today()

    # Currency
    currency_code = (statement.currency or DEFAULT_CURRENCY).upper()
    next_currencies = list(currencies)
    if not any(c.code.upper() == currency_code for c in currencies):
        suggested = suggested_currency_info(currency_code)
        next_currencies.append(
            Currency(
                code=suggested.code,
                symbol=suggested.symbol,
                name=suggested.name,
                exchange_rate=DecimalValue.parse("1"),
            )
        )
        logger.info(f"Auto-created currency {suggested.code}")

    balance = None
    if statement.balance is not None:
        parsed_balance = parse_with_diagnostic(statement.balance)
        if parsed_balance.error:
            errors.append(f"Statement balance: {parsed_balance.error}")
        balance = parsed_balance.value

    # Account
    identity = account_id_hash(statement.bank_id, statement.account_id)
    existing = next((a for a in accounts if a.account_id_hash == identity), None)
    next_accounts = list(accounts)
    if existing is None:
        account_type = account_type_for(statement.account_type)
        masked = mask_account_number(statement.account_id)
        account = BankAccount(
            id=id_factory(),
            context_id=context_id,
            name=default_account_name(account_type, masked),
            type=account_type,
            currency=currency_code,
            balance=balance if balance is not None else DecimalValue.zero(),
            balance_date=snapshot_date,
            account_id_hash=identity,
            bank_id=statement.bank_id,
            account_number=masked,
        )
        next_accounts.append(account)
        logger.info(f"Created account {account.name}")
    else:
        account = existing
        if balance is not None:
            account = existing.with_snapshot(balance, snapshot_date)
            next_accounts = [account if a.id == existing.id else a for a in accounts]

    # Transactions
    seen_fit_ids = {tx.fit_id for tx in transactions if tx.account_id == account.id and tx.fit_id}
    new_transactions: list[Transaction] = []
    duplicates = 0
    for parsed in statement.transactions:
        if parsed.fit_id and parsed.fit_id in seen_fit_ids:
            duplicates += 1
            continue

        amount = parse_with_diagnostic(parsed.amount)
        if amount.error:
            errors.append(f"Transaction {parsed.fit_id or parsed.name}: {amount.error}")

        new_transactions.append(
            Transaction(
                id=id_factory(),
                account_id=account.id,
                date=parsed.date_posted,
                amount=amount.value,
                name=parsed.name,
                memo=parsed.memo,
                category=Category.UNCATEGORIZED,
                fit_id=parsed.fit_id,
                type=parsed.type,
                check_number=parsed.check_number,
                import_batch_id=batch_id,
            )
        )
        if parsed.fit_id:
            seen_fit_ids.add(parsed.fit_id)

    logger.info(
        f"Imported {len(new_transactions)} transactions into {account.name} ({duplicates} duplicates skipped)"
    )

    return ImportResult(
        account=account,
        is_new_account=existing is None,
        accounts=next_accounts,
        transactions=list(transactions) + new_transactions,
        currencies=next_currencies,
        new_transactions=new_transactions,
        duplicates_skipped=duplicates,
        import_batch_id=batch_id,
        date_range=statement.date_range,
        errors=errors,
    )
