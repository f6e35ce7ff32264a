#!/usr/bin/env python3
"""
Book State Container

A Book is an immutable snapshot of everything the engine knows: accounts,
transactions, mapping rules, reconciliations and user currencies. Each
operation returns the next Book together with the operation's result; nothing
is written anywhere until the caller saves the returned state (see
core.datastore.BookRepository).

Example:
    >>> book = Book()
    >>> book, imported = book.import_statement(statement, context_id="personal")
    >>> book, applied = book.apply_mapping_rules("personal")
    >>> repository.save(book)
"""

import dataclasses
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

from .analysis.models import (
    BalanceSheetReport,
    CashFlowReport,
    CategorySpendingReport,
    ProfitLossReport,
    SummaryMetrics,
)
from .analysis.reports import (
    calculate_summary_metrics,
    generate_balance_sheet,
    generate_cash_flow,
    generate_category_spending,
    generate_profit_loss,
)
from .categorization.rules import MappingRuleEngine, RuleApplicationResult
from .core.dates import DateRange
from .core.decimal_value import DecimalInput, DecimalValue, sum_values
from .core.models import BankAccount, Currency, MappingRule, Reconciliation, Transaction
from .importing.statement import ImportResult, ParsedStatement
from .importing.statement import import_statement as ingest_statement
from .reconciliation import engine as reconciliation

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Book:
    """Immutable bookkeeping state."""

    accounts: tuple[BankAccount, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    mapping_rules: tuple[MappingRule, ...] = ()
    reconciliations: tuple[Reconciliation, ...] = ()
    currencies: tuple[Currency, ...] = ()

    # Lookups

    def find_account(self, account_id: str) -> BankAccount | None:
        return next((a for a in self.accounts if a.id == account_id), None)

    def find_transaction(self, transaction_id: str) -> Transaction | None:
        return next((t for t in self.transactions if t.id == transaction_id), None)

    def accounts_for_context(self, context_id: str | None) -> tuple[BankAccount, ...]:
        """Accounts owned by a context (all accounts when context_id is None)."""
        if context_id is None:
            return self.accounts
        return tuple(a for a in self.accounts if a.context_id == context_id)

    def transactions_for_context(self, context_id: str | None) -> tuple[Transaction, ...]:
        """Transactions whose account belongs to the context."""
        if context_id is None:
            return self.transactions
        account_ids = {a.id for a in self.accounts_for_context(context_id)}
        return tuple(t for t in self.transactions if t.account_id in account_ids)

    # Import and categorization

    def import_statement(
        self,
        statement: ParsedStatement,
        context_id: str,
        id_factory: IdFactory = _new_id,
        today: date | None = None,
    ) -> tuple["Book", ImportResult]:
        """Import a parsed statement into the book."""
        result = ingest_statement(
            statement,
            context_id,
            self.accounts,
            self.transactions,
            self.currencies,
            id_factory=id_factory,
            today=today,
        )
        book = dataclasses.replace(
            self,
            accounts=tuple(result.accounts),
            transactions=tuple(result.transactions),
            currencies=tuple(result.currencies),
        )
        return book, result

    def apply_mapping_rules(self, context_id: str | None = None) -> tuple["Book", RuleApplicationResult]:
        """
        Run one categorization pass.

        With a context_id only that context's rules are used, and only on that
        context's transactions.
        """
        engine = MappingRuleEngine(self.mapping_rules, context_id=context_id)
        result = engine.apply(self.transactions, self.accounts)
        return dataclasses.replace(self, transactions=tuple(result.transactions)), result

    def update_transaction(self, transaction: Transaction) -> "Book":
        """
        Replace a transaction with an edited copy (category, fiscal year, ...).

        Raises:
            KeyError: If no transaction has that id
        """
        if self.find_transaction(transaction.id) is None:
            raise KeyError(f"Unknown transaction: {transaction.id}")
        return dataclasses.replace(
            self,
            transactions=tuple(transaction if t.id == transaction.id else t for t in self.transactions),
        )

    def add_mapping_rule(self, rule: MappingRule) -> "Book":
        """Add a rule, replacing any existing rule with the same id."""
        rules = tuple(r for r in self.mapping_rules if r.id != rule.id) + (rule,)
        return dataclasses.replace(self, mapping_rules=rules)

    def remove_mapping_rule(self, rule_id: str) -> "Book":
        return dataclasses.replace(self, mapping_rules=tuple(r for r in self.mapping_rules if r.id != rule_id))

    def upsert_currency(self, currency: Currency) -> "Book":
        """Add a user currency or replace the one with the same code."""
        code = currency.code.upper()
        if any(c.code.upper() == code for c in self.currencies):
            currencies = tuple(currency if c.code.upper() == code else c for c in self.currencies)
        else:
            currencies = self.currencies + (currency,)
        return dataclasses.replace(self, currencies=currencies)

    # Reconciliation

    def expected_balance(self, account_id: str, as_of: date) -> DecimalValue | None:
        """Projected balance of an account, or None for an unknown account."""
        account = self.find_account(account_id)
        if account is None:
            return None
        return reconciliation.expected_balance(account, self.transactions, as_of)

    def reconcile(
        self,
        account_id: str,
        reconciled_date: date,
        actual_balance: DecimalInput,
        notes: str = "",
        create_adjustment: bool = True,
        supersede_prior: bool = True,
        id_factory: IdFactory = _new_id,
    ) -> tuple["Book", reconciliation.ReconciliationResult]:
        """
        Reconcile an account and record the outcome.

        With supersede_prior (and create_adjustment), adjustment transactions
        from earlier reconciliations of the same account and date are removed
        first and listed in the new record's superseded_transaction_ids, so a
        date never carries more than one adjustment. The new adjustment then
        covers the whole gap from the balance expected before any of them.

        When an adjustment is created, the account snapshot moves to
        (actual_balance, reconciled_date). Earlier audit records are kept.
        """
        account = self.find_account(account_id)
        if account is None:
            result = reconciliation.reconcile_account(
                self.accounts, self.transactions, account_id, reconciled_date, actual_balance
            )
            return self, result

        voided: list[Transaction] = []
        if supersede_prior and create_adjustment:
            voided = [
                t for t in self.transactions if reconciliation.is_adjustment_for(t, account_id, reconciled_date)
            ]
        voided_ids = {t.id for t in voided}
        remaining = tuple(t for t in self.transactions if t.id not in voided_ids)

        # Prior adjustments are already folded into a snapshot taken on this date
        basis = account
        if voided and account.balance_date == reconciled_date:
            basis = account.with_snapshot(account.balance - sum_values(t.amount for t in voided), reconciled_date)

        result = reconciliation.perform_reconciliation(
            basis,
            [t for t in remaining if t.account_id == account_id],
            reconciled_date,
            actual_balance,
            notes=notes,
            create_adjustment=create_adjustment,
            superseded_transaction_ids=[t.id for t in voided],
            id_factory=id_factory,
        )

        updated_account = basis
        transactions = remaining
        if result.adjustment_transaction is not None:
            transactions = remaining + (result.adjustment_transaction,)
            updated_account = basis.with_snapshot(DecimalValue.parse(actual_balance), reconciled_date)

        if voided:
            logger.info(f"Superseded {len(voided)} earlier adjustment(s) for {account.name} on {reconciled_date}")

        book = dataclasses.replace(
            self,
            accounts=tuple(updated_account if a.id == account_id else a for a in self.accounts),
            transactions=transactions,
            reconciliations=self.reconciliations + ((result.reconciliation,) if result.reconciliation else ()),
        )
        return book, result

    def account_reconciliations(self, account_id: str) -> list[Reconciliation]:
        return reconciliation.account_reconciliations(self.reconciliations, account_id)

    # Reports

    def balance_sheet(
        self,
        as_of: date,
        context_id: str | None = None,
        report_currency: str | None = None,
        decimals: int = 2,
    ) -> BalanceSheetReport:
        return generate_balance_sheet(
            self.accounts_for_context(context_id),
            as_of,
            currencies=self.currencies,
            report_currency=report_currency,
            decimals=decimals,
        )

    def profit_loss(
        self,
        period: DateRange,
        context_id: str | None = None,
        report_currency: str | None = None,
        use_fiscal_year: bool = True,
        decimals: int = 2,
    ) -> ProfitLossReport:
        return generate_profit_loss(
            self.transactions_for_context(context_id),
            period,
            accounts=self.accounts,
            currencies=self.currencies,
            report_currency=report_currency,
            use_fiscal_year=use_fiscal_year,
            decimals=decimals,
        )

    def cash_flow(
        self,
        period: DateRange,
        context_id: str | None = None,
        report_currency: str | None = None,
        use_fiscal_year: bool = True,
        decimals: int = 2,
    ) -> CashFlowReport:
        return generate_cash_flow(
            self.transactions_for_context(context_id),
            self.accounts_for_context(context_id),
            period,
            currencies=self.currencies,
            report_currency=report_currency,
            use_fiscal_year=use_fiscal_year,
            decimals=decimals,
        )

    def category_spending(
        self,
        period: DateRange,
        context_id: str | None = None,
        report_currency: str | None = None,
        use_fiscal_year: bool = True,
        decimals: int = 2,
    ) -> CategorySpendingReport:
        return generate_category_spending(
            self.transactions_for_context(context_id),
            period,
            accounts=self.accounts,
            currencies=self.currencies,
            report_currency=report_currency,
            use_fiscal_year=use_fiscal_year,
            decimals=decimals,
        )

    def summary_metrics(
        self,
        period: DateRange,
        context_id: str | None = None,
        report_currency: str | None = None,
        use_fiscal_year: bool = True,
        decimals: int = 2,
    ) -> SummaryMetrics:
        return calculate_summary_metrics(
            self.transactions_for_context(context_id),
            self.accounts_for_context(context_id),
            period,
            currencies=self.currencies,
            report_currency=report_currency,
            use_fiscal_year=use_fiscal_year,
            decimals=decimals,
        )

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        return {
            "accounts": [a.to_dict() for a in self.accounts],
            "transactions": [t.to_dict() for t in self.transactions],
            "mapping_rules": [r.to_dict() for r in self.mapping_rules],
            "reconciliations": [r.to_dict() for r in self.reconciliations],
            "currencies": [c.to_dict() for c in self.currencies],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Book":
        return cls(
            accounts=tuple(BankAccount.from_dict(a) for a in data.get("accounts", [])),
            transactions=tuple(Transaction.from_dict(t) for t in data.get("transactions", [])),
            mapping_rules=tuple(MappingRule.from_dict(r) for r in data.get("mapping_rules", [])),
            reconciliations=tuple(Reconciliation.from_dict(r) for r in data.get("reconciliations", [])),
            currencies=tuple(Currency.from_dict(c) for c in data.get("currencies", [])),
        )
