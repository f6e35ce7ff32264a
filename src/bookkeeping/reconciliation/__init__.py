"""
Reconciliation Package

Expected-balance projection and bank balance reconciliation.
"""

from .engine import (
    ReconciliationResult,
    account_reconciliations,
    balance_from_transactions,
    create_adjustment_transaction,
    create_reconciliation,
    discrepancy,
    expected_balance,
    is_adjustment_for,
    needs_reconciliation,
    perform_reconciliation,
    reconcile_account,
)

__all__ = [
    "ReconciliationResult",
    "account_reconciliations",
    "balance_from_transactions",
    "create_adjustment_transaction",
    "create_reconciliation",
    "discrepancy",
    "expected_balance",
    "is_adjustment_for",
    "needs_reconciliation",
    "perform_reconciliation",
    "reconcile_account",
]
