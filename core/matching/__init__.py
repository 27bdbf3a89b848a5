# Path: core/matching/__init__.py
# Purpose: Package initializer for rule evaluation and product matching.
# Layer: core/matching.
# Details: Exposes the single-rule predicates and the batch matcher.

from .rules import default_priority, filters_match, keywords_match, normalize_keywords, rule_matches
from .matcher import RuleMatcher, RuleSource, select_best_rule

__all__ = [
    "RuleMatcher",
    "RuleSource",
    "default_priority",
    "filters_match",
    "keywords_match",
    "normalize_keywords",
    "rule_matches",
    "select_best_rule",
]
