"""
Categorization Package

Rule-based auto-categorization of imported bank transactions.
"""

from .rules import (
    MappingRuleEngine,
    RuleApplicationResult,
    apply_mapping_rules,
    match_text,
    rule_from_definition,
)

__all__ = [
    "MappingRuleEngine",
    "RuleApplicationResult",
    "apply_mapping_rules",
    "match_text",
    "rule_from_definition",
]
