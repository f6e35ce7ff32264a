#!/usr/bin/env python3
"""
Balance Reconciliation Engine

Compares the balance the engine expects for an account against the balance
the bank reports, and produces an audit record plus (optionally) an adjustment
transaction that makes the two agree.

Expected balance projection:
- The account's snapshot (balance, balance_date) is the anchor
- On or before balance_date the snapshot is the answer
- After it, every transaction of the account dated in
  (balance_date, as_of] is added to the snapshot

All functions are pure; persisting the results is the caller's job.
"""

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date

from ..core.decimal_value import DecimalInput, DecimalValue, subtract, sum_values
from ..core.models import BankAccount, Category, Reconciliation, Transaction

logger = logging.getLogger(__name__)

ADJUSTMENT_NAME = "Balance Adjustment"
ADJUSTMENT_MEMO = "Reconciliation adjustment to match bank balance"
ADJUSTMENT_PREFIX = "RECONCILE"

IdFactory = Callable[[], str]


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of a reconciliation attempt."""

    success: bool
    reconciliation: Reconciliation | None
    adjustment_transaction: Transaction | None
    message: str


def expected_balance(account: BankAccount, transactions: Iterable[Transaction], as_of: date) -> DecimalValue:
    """
    Project the account balance to a date.

    Args:
        account: Account with its balance snapshot
        transactions: Transactions (other accounts' entries are ignored)
        as_of: Date to project to (inclusive)

    Returns:
        Snapshot balance if as_of is on or before the snapshot date, else the
        snapshot plus all of the account's transactions after it up to as_of
    """
    if as_of <= account.balance_date:
        return account.balance

    movement = sum_values(
        tx.amount
        for tx in transactions
        if tx.account_id == account.id and account.balance_date < tx.date <= as_of
    )
    return account.balance + movement


def balance_from_transactions(transactions: Iterable[Transaction], as_of: date) -> DecimalValue:
    """Sum of every transaction dated on or before as_of (no snapshot)."""
    return sum_values(tx.amount for tx in transactions if tx.date <= as_of)


def discrepancy(expected: DecimalInput, actual: DecimalInput) -> DecimalValue:
    """actual - expected. Positive means the bank holds more than expected."""
    return subtract(actual, expected)


def needs_reconciliation(expected: DecimalInput, actual: DecimalInput) -> bool:
    return not discrepancy(expected, actual).is_zero()


def is_adjustment_for(transaction: Transaction, account_id: str, on_date: date) -> bool:
    """Check if a transaction is a reconciliation adjustment for an account and date."""
    return (
        transaction.account_id == account_id
        and transaction.date == on_date
        and transaction.category == Category.ADJUSTMENT
        and transaction.import_batch_id == f"{ADJUSTMENT_PREFIX}-{on_date.isoformat()}"
    )


def create_adjustment_transaction(
    account_id: str, on_date: date, amount: DecimalInput, id_factory: IdFactory = _new_id
) -> Transaction:
    """
    Create the transaction that closes a reconciliation gap.

    Args:
        account_id: Account to adjust
        on_date: Adjustment date (the reconciled date)
        amount: Signed adjustment; positive raises the balance
        id_factory: Source of unique ids

    Returns:
        Adjustment transaction in the adjustment category
    """
    iso_date = on_date.isoformat()
    suffix = id_factory().replace("-", "")[:8]
    return Transaction(
        id=id_factory(),
        account_id=account_id,
        date=on_date,
        amount=DecimalValue.parse(amount),
        name=ADJUSTMENT_NAME,
        memo=ADJUSTMENT_MEMO,
        category=Category.ADJUSTMENT,
        subcategory=ADJUSTMENT_NAME,
        fit_id=f"{ADJUSTMENT_PREFIX}-{iso_date}-{suffix}",
        type="OTHER",
        import_batch_id=f"{ADJUSTMENT_PREFIX}-{iso_date}",
    )


def create_reconciliation(
    account_id: str,
    reconciled_date: date,
    expected: DecimalInput,
    actual: DecimalInput,
    notes: str = "",
    adjustment_transaction_id: str | None = None,
    superseded_transaction_ids: Iterable[str] = (),
    id_factory: IdFactory = _new_id,
) -> Reconciliation:
    """Build the audit record; adjustment_amount is actual - expected."""
    expected_value = DecimalValue.parse(expected)
    actual_value = DecimalValue.parse(actual)
    return Reconciliation(
        id=id_factory(),
        account_id=account_id,
        reconciled_date=reconciled_date,
        expected_balance=expected_value,
        actual_balance=actual_value,
        adjustment_amount=discrepancy(expected_value, actual_value),
        adjustment_transaction_id=adjustment_transaction_id,
        notes=notes,
        superseded_transaction_ids=tuple(superseded_transaction_ids),
    )


def perform_reconciliation(
    account: BankAccount,
    transactions: Iterable[Transaction],
    reconciled_date: date,
    actual_balance: DecimalInput,
    notes: str = "",
    create_adjustment: bool = True,
    superseded_transaction_ids: Iterable[str] = (),
    id_factory: IdFactory = _new_id,
) -> ReconciliationResult:
    """
    Reconcile an account against the bank-reported balance.

    When the balances differ and create_adjustment is set, an adjustment
    transaction for the difference is created, dated reconciled_date.

    Adding the adjustment closes the gap in expected_balance only when
    reconciled_date is after account.balance_date. On or before the snapshot
    date the projection is the snapshot itself, so the caller must also move
    the snapshot to (actual_balance, reconciled_date), as Book.reconcile does.

    Returns:
        ReconciliationResult (always successful for a known account)
    """
    actual = DecimalValue.parse(actual_balance)
    expected = expected_balance(account, transactions, reconciled_date)
    gap = discrepancy(expected, actual)

    adjustment: Transaction | None = None
    if not gap.is_zero() and create_adjustment:
        adjustment = create_adjustment_transaction(account.id, reconciled_date, gap, id_factory)

    reconciliation = create_reconciliation(
        account.id,
        reconciled_date,
        expected,
        actual,
        notes=notes,
        adjustment_transaction_id=adjustment.id if adjustment else None,
        superseded_transaction_ids=superseded_transaction_ids,
        id_factory=id_factory,
    )

    if gap.is_zero():
        message = "Balance matches - no adjustment needed"
    else:
        message = f"Balance adjusted by {gap.to_fixed(2)} to match bank balance"
    logger.info(f"Reconciled {account.name} on {reconciled_date.isoformat()}: {message}")

    return ReconciliationResult(
        success=True,
        reconciliation=reconciliation,
        adjustment_transaction=adjustment,
        message=message,
    )


def reconcile_account(
    accounts: Iterable[BankAccount],
    transactions: Iterable[Transaction],
    account_id: str,
    reconciled_date: date,
    actual_balance: DecimalInput,
    notes: str = "",
    create_adjustment: bool = True,
    id_factory: IdFactory = _new_id,
) -> ReconciliationResult:
    """
    Look up an account and reconcile it.

    An unknown account is reported as an unsuccessful result, not raised.
    """
    account = next((a for a in accounts if a.id == account_id), None)
    if account is None:
        logger.warning(f"Reconciliation requested for unknown account {account_id}")
        return ReconciliationResult(
            success=False,
            reconciliation=None,
            adjustment_transaction=None,
            message=f"Account {account_id} not found",
        )

    account_transactions = [tx for tx in transactions if tx.account_id == account_id]
    return perform_reconciliation(
        account,
        account_transactions,
        reconciled_date,
        actual_balance,
        notes=notes,
        create_adjustment=create_adjustment,
        id_factory=id_factory,
    )


def account_reconciliations(reconciliations: Iterable[Reconciliation], account_id: str) -> list[Reconciliation]:
    """Reconciliation history for one account, newest reconciled date first."""
    return sorted(
        (r for r in reconciliations if r.account_id == account_id),
        key=lambda r: (r.reconciled_date, r.created_at),
        reverse=True,
    )
