#!/usr/bin/env python3
"""
Unit tests for the mapping rule engine.

Tests pattern matching, rule ordering, context scoping and rule definition
parsing.
"""

import dataclasses
import logging

import pytest

from bookkeeping.categorization import (
    MappingRuleEngine,
    apply_mapping_rules,
    match_text,
    rule_from_definition,
)
from bookkeeping.core.models import Category, IncomeType, MatchField, PatternType


class TestPatternMatching:
    """Test the three pattern types and match fields."""

    @pytest.mark.rules
    @pytest.mark.parametrize(
        "pattern,pattern_type,name,expected",
        [
            ("grocery", PatternType.CONTAINS, "GENERIC GROCERY STORE #12", True),
            ("grocery", PatternType.CONTAINS, "Gas Station", False),
            ("acme payroll", PatternType.EXACT, "ACME PAYROLL", True),
            ("acme payroll", PatternType.EXACT, "ACME PAYROLL SALARY", False),
            (r"^coffee\s+\d+$", PatternType.REGEX, "Coffee 42", True),
            (r"^coffee\s+\d+$", PatternType.REGEX, "Sample Coffee 42", False),
        ],
        ids=["contains", "contains_miss", "exact", "exact_miss", "regex", "regex_anchor_miss"],
    )
    def test_pattern_types_are_case_insensitive(
        self, make_rule, make_transaction, pattern, pattern_type, name, expected
    ):
        """Test every pattern type ignores case."""
        rule = make_rule(pattern, pattern_type=pattern_type)
        engine = MappingRuleEngine([rule])
        assert engine.matches(rule, make_transaction("-1", name=name)) is expected

    @pytest.mark.rules
    def test_match_fields(self, make_rule, make_transaction):
        """Test name, memo and combined matching."""
        tx = make_transaction("-1", name="POS PURCHASE", memo="Example Pharmacy")
        name_rule = make_rule("pharmacy", match_field=MatchField.NAME)
        memo_rule = make_rule("pharmacy", match_field=MatchField.MEMO)
        both_rule = make_rule("purchase example", match_field=MatchField.BOTH)
        engine = MappingRuleEngine([name_rule, memo_rule, both_rule])

        assert match_text(both_rule, tx) == "POS PURCHASE Example Pharmacy"
        assert not engine.matches(name_rule, tx)
        assert engine.matches(memo_rule, tx)
        assert engine.matches(both_rule, tx)

    @pytest.mark.rules
    def test_invalid_regex_never_matches(self, make_rule, make_transaction, caplog):
        """Test a broken regex is logged once and skipped."""
        broken = make_rule("([unclosed", pattern_type=PatternType.REGEX, priority=10)
        fallback = make_rule("store", subcategory="Shopping")
        engine = MappingRuleEngine([broken, fallback])

        with caplog.at_level(logging.WARNING):
            result = engine.apply([make_transaction("-1", name="Store"), make_transaction("-2", name="Store")])

        assert result.count == 2
        assert all(tx.subcategory == "Shopping" for tx in result.transactions)
        assert caplog.text.count("invalid regex") == 1


class TestRuleOrdering:
    """Test which rule wins when several match."""

    @pytest.mark.rules
    def test_highest_priority_wins(self, make_rule, make_transaction):
        low = make_rule("market", subcategory="Groceries", priority=1)
        high = make_rule("market", subcategory="Farmers Market", priority=5)
        result = apply_mapping_rules([make_transaction("-10", name="Market")], [low, high])
        assert result.transactions[0].subcategory == "Farmers Market"

    @pytest.mark.rules
    def test_tie_goes_to_older_rule(self, make_rule, make_transaction):
        """Test equal priority is resolved by creation time."""
        newer = make_rule("market", subcategory="Newer", created_at="2025-06-01T00:00:00+00:00")
        older = make_rule("market", subcategory="Older", created_at="2025-01-01T00:00:00+00:00")
        engine = MappingRuleEngine([newer, older])
        assert [r.subcategory for r in engine.rules] == ["Older", "Newer"]
        assert engine.find_matching_rule(make_transaction("-1", name="market")) == older

    @pytest.mark.rules
    def test_inactive_rules_are_ignored(self, make_rule, make_transaction):
        inactive = make_rule("market", is_active=False)
        assert MappingRuleEngine([inactive]).rules == []
        assert apply_mapping_rules([make_transaction("-1", name="market")], [inactive]).count == 0


class TestApply:
    """Test a full rule pass."""

    @pytest.mark.rules
    def test_only_uncategorized_transactions_change(self, make_rule, make_transaction):
        """Test manual categorizations are never overwritten."""
        manual = make_transaction("-10", name="Grocery", category=Category.EXPENSE, subcategory="Household")
        pending = make_transaction("-20", name="Grocery")
        unmatched = make_transaction("-30", name="Unknown Vendor")
        transactions = [manual, pending, unmatched]

        result = apply_mapping_rules(transactions, [make_rule("grocery")])

        assert result.count == 1
        assert [tx.id for tx in result.transactions] == [tx.id for tx in transactions]
        assert result.transactions[0] == manual
        assert result.transactions[1].category == Category.EXPENSE
        assert result.transactions[1].subcategory == "Groceries"
        assert result.transactions[2].is_uncategorized
        # Input is not mutated
        assert pending.is_uncategorized

    @pytest.mark.rules
    def test_income_type_is_copied(self, make_rule, make_transaction):
        rule = make_rule("payroll", category=Category.INCOME, subcategory="Salary", income_type=IncomeType.LOCAL)
        result = apply_mapping_rules([make_transaction("5000", name="ACME PAYROLL")], [rule])
        assert result.categorized[0].income_type == IncomeType.LOCAL

    @pytest.mark.rules
    def test_second_pass_is_a_no_op(self, make_rule, make_transaction):
        """Test applying the same rules twice changes nothing the second time."""
        rules = [make_rule("grocery")]
        first = apply_mapping_rules([make_transaction("-1", name="grocery")], rules)
        second = apply_mapping_rules(first.transactions, rules)
        assert second.count == 0
        assert second.transactions == first.transactions

    @pytest.mark.rules
    def test_context_scoping(self, make_rule, make_transaction, checking_account, credit_card_account):
        """Test only the context's rules and accounts take part."""
        business_account = dataclasses.replace(
            checking_account, id="acct-business", context_id="business", name="Business Checking"
        )
        accounts = [checking_account, credit_card_account, business_account]
        personal_rule = make_rule("office", subcategory="Personal Office")
        business_rule = make_rule("office", subcategory="Office Supplies", context_id="business")
        transactions = [
            make_transaction("-1", name="Office Depot", account_id="acct-checking"),
            make_transaction("-2", name="Office Depot", account_id="acct-business"),
        ]

        result = apply_mapping_rules(transactions, [personal_rule, business_rule], "business", accounts)

        assert result.count == 1
        assert result.transactions[0].is_uncategorized
        assert result.transactions[1].subcategory == "Office Supplies"


class TestRuleDefinitions:
    """Test building rules from user-authored definitions."""

    @pytest.mark.rules
    def test_defaults(self):
        rule = rule_from_definition({"pattern": "coffee", "category": "expense"}, "personal", lambda: "rule-x")
        assert rule.id == "rule-x"
        assert rule.context_id == "personal"
        assert rule.pattern_type == PatternType.CONTAINS
        assert rule.match_field == MatchField.NAME
        assert rule.priority == 0
        assert rule.is_active
        assert rule.income_type is None

    @pytest.mark.rules
    def test_id_is_stable_without_factory(self):
        """Test the same definition always gets the same id, and the context is part of it."""
        definition = {"pattern": "coffee", "category": "expense", "subcategory": "Dining"}
        first = rule_from_definition(definition, "personal")
        second = rule_from_definition({**definition, "subcategory": "Snacks", "priority": 3}, "personal")
        assert first.id == second.id
        assert first.id.startswith("rule-")
        assert rule_from_definition(definition, "business").id != first.id
        assert rule_from_definition({**definition, "pattern_type": "exact"}, "personal").id != first.id
        assert rule_from_definition({**definition, "match_field": "memo"}, "personal").id != first.id

    @pytest.mark.rules
    def test_full_definition(self):
        rule = rule_from_definition(
            {
                "id": "salary",
                "pattern": "^ACME",
                "pattern_type": "regex",
                "match_field": "both",
                "category": "income",
                "subcategory": "Salary",
                "income_type": "foreign",
                "priority": "10",
            },
            "personal",
        )
        assert rule.id == "salary"
        assert rule.pattern_type == PatternType.REGEX
        assert rule.income_type == IncomeType.FOREIGN
        assert rule.priority == 10

    @pytest.mark.rules
    @pytest.mark.parametrize(
        "definition",
        [
            {"category": "expense"},
            {"pattern": "coffee"},
            {"pattern": "coffee", "category": "snacks"},
            {"pattern": "coffee", "category": "expense", "pattern_type": "glob"},
        ],
        ids=["no_pattern", "no_category", "bad_category", "bad_pattern_type"],
    )
    def test_invalid_definitions(self, definition):
        with pytest.raises(ValueError):
            rule_from_definition(definition, "personal")
