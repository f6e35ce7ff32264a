#!/usr/bin/env python3
"""
Unit tests for the balance reconciliation engine.

Covers balance projection from the account snapshot, adjustment creation and
audit-record contents.
"""

import dataclasses
import itertools
from datetime import date

import pytest

from bookkeeping.core.decimal_value import DecimalValue
from bookkeeping.core.models import Category
from bookkeeping.reconciliation import (
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
from bookkeeping.reconciliation.engine import ADJUSTMENT_NAME


def sequential_ids():
    """Deterministic id factory: id-0001, id-0002, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter):04d}"


class TestExpectedBalance:
    """Test projection from the balance snapshot."""

    @pytest.mark.reconciliation
    def test_snapshot_on_or_before_balance_date(self, checking_account, make_transaction):
        """Test dates on or before the snapshot return the snapshot unchanged."""
        transactions = [make_transaction("-50.00", on=date(2024, 12, 31)), make_transaction("25.00")]
        assert expected_balance(checking_account, transactions, date(2025, 1, 1)) == "1000"
        assert expected_balance(checking_account, transactions, date(2024, 6, 1)) == "1000"

    @pytest.mark.reconciliation
    def test_projects_forward(self, checking_account, make_transaction):
        """Test transactions in (balance_date, as_of] are added."""
        transactions = [
            make_transaction("-100.00", on=date(2025, 1, 1)),  # on the snapshot date: already included
            make_transaction("-40.00", on=date(2025, 1, 10)),
            make_transaction("500.00", on=date(2025, 1, 31)),
            make_transaction("-999.00", on=date(2025, 2, 1)),  # after as_of
            make_transaction("-7.00", on=date(2025, 1, 15), account_id="acct-other"),
        ]
        assert expected_balance(checking_account, transactions, date(2025, 1, 31)) == "1460"

    @pytest.mark.reconciliation
    def test_balance_from_transactions(self, make_transaction):
        transactions = [make_transaction("10", on=date(2025, 1, 1)), make_transaction("5", on=date(2025, 2, 1))]
        assert balance_from_transactions(transactions, date(2025, 1, 31)) == "10"

    @pytest.mark.reconciliation
    def test_discrepancy(self):
        assert discrepancy("900", "880") == "-20"
        assert needs_reconciliation("900", "880")
        assert not needs_reconciliation("900.00", "900")


class TestAdjustmentTransaction:
    """Test adjustment transaction construction."""

    @pytest.mark.reconciliation
    def test_adjustment_fields(self):
        """Test the adjustment carries the reconcile batch and fit ids."""
        adjustment = create_adjustment_transaction("acct-checking", date(2025, 1, 31), "-20.00", sequential_ids())

        assert adjustment.id == "id-0002"
        assert adjustment.amount == "-20"
        assert adjustment.category == Category.ADJUSTMENT
        assert adjustment.name == ADJUSTMENT_NAME
        assert adjustment.fit_id == "RECONCILE-2025-01-31-id0001"
        assert adjustment.import_batch_id == "RECONCILE-2025-01-31"
        assert is_adjustment_for(adjustment, "acct-checking", date(2025, 1, 31))
        assert not is_adjustment_for(adjustment, "acct-checking", date(2025, 2, 1))
        assert not is_adjustment_for(adjustment, "acct-card", date(2025, 1, 31))

    @pytest.mark.reconciliation
    def test_regular_transaction_is_not_adjustment(self, make_transaction):
        tx = make_transaction("-20.00", on=date(2025, 1, 31), category=Category.ADJUSTMENT)
        assert not is_adjustment_for(tx, "acct-checking", date(2025, 1, 31))

    @pytest.mark.reconciliation
    def test_create_reconciliation_amount(self):
        """Test adjustment_amount = actual - expected."""
        record = create_reconciliation("acct-checking", date(2025, 1, 31), "900.00", "925.50", notes="Jan")
        assert record.adjustment_amount == "25.5"
        assert record.notes == "Jan"
        assert record.adjustment_transaction_id is None


class TestPerformReconciliation:
    """Test full reconciliation runs."""

    @pytest.mark.reconciliation
    def test_matching_balance(self, checking_account, make_transaction):
        """Test no adjustment when the balances agree."""
        transactions = [make_transaction("-100.00", on=date(2025, 1, 15))]
        result = perform_reconciliation(checking_account, transactions, date(2025, 1, 31), "900.00")

        assert result.success
        assert result.adjustment_transaction is None
        assert result.message == "Balance matches - no adjustment needed"
        assert result.reconciliation.adjustment_amount.is_zero()

    @pytest.mark.reconciliation
    def test_discrepancy_creates_adjustment(self, checking_account, make_transaction):
        transactions = [make_transaction("-100.00", on=date(2025, 1, 15))]
        result = perform_reconciliation(
            checking_account, transactions, date(2025, 1, 31), "880.00", id_factory=sequential_ids()
        )

        assert result.success
        assert result.message == "Balance adjusted by -20.00 to match bank balance"
        assert result.adjustment_transaction.amount == "-20"
        assert result.adjustment_transaction.date == date(2025, 1, 31)
        assert result.reconciliation.id == "id-0003"
        assert result.reconciliation.adjustment_transaction_id == result.adjustment_transaction.id
        assert result.reconciliation.expected_balance == "900"
        assert result.reconciliation.actual_balance == "880"

    @pytest.mark.reconciliation
    def test_adjustment_closes_the_gap(self, checking_account, make_transaction):
        """Test expected balance after adding the adjustment equals the bank balance."""
        transactions = [
            make_transaction("-12.34", on=date(2025, 1, 3)),
            make_transaction("250.00", on=date(2025, 1, 20)),
        ]
        actual = DecimalValue.parse("1111.11")
        result = perform_reconciliation(checking_account, transactions, date(2025, 1, 31), actual)

        with_adjustment = transactions + [result.adjustment_transaction]
        assert expected_balance(checking_account, with_adjustment, date(2025, 1, 31)) == actual

    @pytest.mark.reconciliation
    def test_adjustment_on_snapshot_date_needs_snapshot_move(self, checking_account):
        """Test an adjustment dated on the snapshot date is not seen by the projection."""
        snapshot_date = checking_account.balance_date
        result = perform_reconciliation(checking_account, [], snapshot_date, "1020.00")

        assert result.adjustment_transaction.amount == "20"
        # The projection stops at the snapshot, so the adjustment alone leaves the gap open
        assert expected_balance(checking_account, [result.adjustment_transaction], snapshot_date) == "1000"

        moved = dataclasses.replace(checking_account, balance=DecimalValue.parse("1020.00"))
        assert expected_balance(moved, [result.adjustment_transaction], snapshot_date) == "1020"
        assert expected_balance(moved, [result.adjustment_transaction], date(2025, 1, 31)) == "1020"

    @pytest.mark.reconciliation
    def test_audit_only(self, checking_account):
        """Test create_adjustment=False records the gap without a transaction."""
        result = perform_reconciliation(
            checking_account, [], date(2025, 1, 31), "990.00", create_adjustment=False
        )
        assert result.adjustment_transaction is None
        assert result.reconciliation.adjustment_amount == "-10"
        assert result.reconciliation.adjustment_transaction_id is None

    @pytest.mark.reconciliation
    def test_unknown_account(self, checking_account):
        result = reconcile_account([checking_account], [], "acct-missing", date(2025, 1, 31), "0")
        assert not result.success
        assert result.reconciliation is None
        assert result.message == "Account acct-missing not found"

    @pytest.mark.reconciliation
    def test_reconcile_account_ignores_other_accounts(self, checking_account, make_transaction):
        transactions = [make_transaction("-5.00", on=date(2025, 1, 5), account_id="acct-card")]
        result = reconcile_account([checking_account], transactions, "acct-checking", date(2025, 1, 31), "1000")
        assert result.adjustment_transaction is None


class TestReconciliationHistory:
    """Test history ordering."""

    @pytest.mark.reconciliation
    def test_newest_first(self):
        records = [
            create_reconciliation("acct-checking", date(2025, 1, 31), "1", "1"),
            create_reconciliation("acct-checking", date(2025, 3, 31), "1", "1"),
            create_reconciliation("acct-card", date(2025, 4, 30), "1", "1"),
            create_reconciliation("acct-checking", date(2025, 2, 28), "1", "1"),
        ]
        history = account_reconciliations(records, "acct-checking")
        assert [r.reconciled_date.month for r in history] == [3, 2, 1]
