#!/usr/bin/env python3
"""
Mapping Rule Engine

Pattern-based auto-categorization of imported transactions.

Evaluation:
- Only uncategorized transactions are considered
- Active rules are tried in priority order (highest first); ties go to the
  older rule, then to the smaller id
- The first matching rule wins; the transaction takes the rule's category,
  subcategory and income type
- A regex that fails to compile never matches; it is logged once per engine

The engine is pure: it returns updated copies and never mutates its input.
"""

import hashlib
import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from ..core.models import (
    BankAccount,
    Category,
    IncomeType,
    MappingRule,
    MatchField,
    PatternType,
    Transaction,
    utc_now_iso,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleApplicationResult:
    """
    Outcome of one rule pass.

    transactions is the full input list in input order with categorized
    entries replaced; categorized holds just the changed transactions.
    """

    transactions: list[Transaction]
    categorized: list[Transaction]

    @property
    def count(self) -> int:
        return len(self.categorized)


def match_text(rule: MappingRule, transaction: Transaction) -> str:
    """Text a rule is compared against."""
    if rule.match_field == MatchField.BOTH:
        return f"{transaction.name} {transaction.memo}"
    if rule.match_field == MatchField.MEMO:
        return transaction.memo
    return transaction.name


def _rule_order(rule: MappingRule) -> tuple[int, str, str]:
    return (-rule.priority, rule.created_at, rule.id)


class MappingRuleEngine:
    """
    Applies a fixed set of mapping rules to transactions.

    Example:
        >>> engine = MappingRuleEngine(rules, context_id="personal")
        >>> result = engine.apply(transactions, accounts)
        >>> result.count
        3
    """

    def __init__(self, rules: Iterable[MappingRule], context_id: str | None = None):
        self.context_id = context_id
        self.rules: list[MappingRule] = sorted(
            (
                rule
                for rule in rules
                if rule.is_active and (context_id is None or rule.context_id == context_id)
            ),
            key=_rule_order,
        )
        self._compiled: dict[str, re.Pattern[str] | None] = {}

    def _regex(self, rule: MappingRule) -> re.Pattern[str] | None:
        if rule.pattern not in self._compiled:
            try:
                self._compiled[rule.pattern] = re.compile(rule.pattern, re.IGNORECASE)
            except re.error as e:
                logger.warning(f"Mapping rule {rule.id} has invalid regex {rule.pattern!r}: {e}")
                self._compiled[rule.pattern] = None
        return self._compiled[rule.pattern]

    def matches(self, rule: MappingRule, transaction: Transaction) -> bool:
        """Check one rule against one transaction (case-insensitive)."""
        text = match_text(rule, transaction)

        if rule.pattern_type == PatternType.EXACT:
            return text.lower() == rule.pattern.lower()
        if rule.pattern_type == PatternType.CONTAINS:
            return rule.pattern.lower() in text.lower()

        regex = self._regex(rule)
        if regex is None:
            return False
        return regex.search(text) is not None

    def find_matching_rule(self, transaction: Transaction) -> MappingRule | None:
        """First rule (in evaluation order) matching the transaction."""
        for rule in self.rules:
            if self.matches(rule, transaction):
                return rule
        return None

    def apply(
        self, transactions: Sequence[Transaction], accounts: Iterable[BankAccount] | None = None
    ) -> RuleApplicationResult:
        """
        Categorize uncategorized transactions.

        Args:
            transactions: Transactions to consider
            accounts: When given together with a context_id, only transactions
                whose account belongs to that context are considered

        Returns:
            RuleApplicationResult with the updated list and the changed entries
        """
        eligible_accounts: set[str] | None = None
        if self.context_id is not None and accounts is not None:
            eligible_accounts = {a.id for a in accounts if a.context_id == self.context_id}

        updated: list[Transaction] = []
        categorized: list[Transaction] = []
        for tx in transactions:
            if not tx.is_uncategorized or (eligible_accounts is not None and tx.account_id not in eligible_accounts):
                updated.append(tx)
                continue

            rule = self.find_matching_rule(tx)
            if rule is None:
                updated.append(tx)
                continue

            changed = tx.with_categorization(rule.category, rule.subcategory, rule.income_type)
            updated.append(changed)
            categorized.append(changed)

        logger.info(f"Mapping rules categorized {len(categorized)} of {len(transactions)} transactions")
        return RuleApplicationResult(transactions=updated, categorized=categorized)


def apply_mapping_rules(
    transactions: Sequence[Transaction],
    rules: Iterable[MappingRule],
    context_id: str | None = None,
    accounts: Iterable[BankAccount] | None = None,
) -> RuleApplicationResult:
    """Single rule pass over transactions; see MappingRuleEngine.apply."""
    return MappingRuleEngine(rules, context_id=context_id).apply(transactions, accounts)


def definition_rule_id(context_id: str, pattern: str, pattern_type: PatternType, match_field: MatchField) -> str:
    """Stable rule id derived from what the rule matches."""
    key = "\x1f".join([context_id, pattern_type.value, match_field.value, pattern])
    return "rule-" + hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def rule_from_definition(
    definition: dict[str, Any], context_id: str, id_factory: Callable[[], str] | None = None
) -> MappingRule:
    """
    Build a MappingRule from a user-authored definition.

    Required keys are pattern and category. Defaults: pattern_type "contains",
    match_field "name", empty subcategory, priority 0, active.

    Without an explicit id or id_factory the id is derived from context,
    pattern, pattern_type and match_field, so loading the same definition
    again replaces the rule instead of adding a copy.

    Raises:
        ValueError: If a required key is missing or an enum value is unknown
    """
    if not definition.get("pattern"):
        raise ValueError(f"Mapping rule definition has no pattern: {definition!r}")
    if not definition.get("category"):
        raise ValueError(f"Mapping rule definition has no category: {definition!r}")

    income_type = definition.get("income_type")
    rule_context = str(definition.get("context_id") or context_id)
    pattern = str(definition["pattern"])
    pattern_type = PatternType(definition.get("pattern_type", PatternType.CONTAINS.value))
    match_field = MatchField(definition.get("match_field", MatchField.NAME.value))
    if definition.get("id"):
        rule_id = str(definition["id"])
    elif id_factory is not None:
        rule_id = id_factory()
    else:
        rule_id = definition_rule_id(rule_context, pattern, pattern_type, match_field)

    return MappingRule(
        id=rule_id,
        context_id=rule_context,
        pattern=pattern,
        pattern_type=pattern_type,
        match_field=match_field,
        category=Category(definition["category"]),
        subcategory=str(definition.get("subcategory") or ""),
        priority=int(definition.get("priority", 0)),
        is_active=bool(definition.get("is_active", True)),
        income_type=IncomeType(income_type) if income_type else None,
        created_at=str(definition.get("created_at") or utc_now_iso()),
    )
