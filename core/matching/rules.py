# Path: core/matching/rules.py
# Purpose: Evaluate a single matching rule against a product and derive default rule priorities.
# Layer: core/matching.
# Details: Pure functions shared by the rule store (at creation time) and the matcher (at match time).

from __future__ import annotations

from typing import Iterable, List, Optional

from core.errors import ValidationError
from core.models.domain import MatchingRule, Product, RuleFilters


def normalize_keywords(keywords: Optional[Iterable[str]]) -> Optional[List[str]]:
    """Strip keywords and drop blanks; an empty result collapses to None."""

    if keywords is None:
        return None
    if isinstance(keywords, str):
        keywords = keywords.split(",")
    if not isinstance(keywords, (list, tuple)) or not all(isinstance(keyword, str) for keyword in keywords):
        raise ValidationError("productNameKeywords must be a list of strings")
    cleaned = [keyword.strip() for keyword in keywords]
    cleaned = [keyword for keyword in cleaned if keyword]
    return cleaned or None


def default_priority(filters: RuleFilters, keywords: Optional[List[str]] = None) -> int:
    """Count the criteria a rule sets, so more specific rules outrank general ones.

    Each non-empty attribute filter counts once and a non-empty keyword list counts once.
    """

    count = sum(1 for value in filters.values() if value)
    if keywords:
        count += 1
    return count


def filters_match(filters: RuleFilters, product: Product) -> bool:
    """Return True when every set filter equals the product's attribute exactly."""

    pairs = (
        (filters.brand_name, product.brand_name),
        (filters.category, product.category),
        (filters.strain, product.strain),
        (filters.strain_type, product.strain_type),
    )
    return all(expected is None or expected == actual for expected, actual in pairs)


def keywords_match(keywords: Optional[List[str]], product_name: Optional[str]) -> bool:
    """Return True when every keyword occurs case-insensitively in the product name."""

    if not keywords:
        return True
    name = (product_name or "").casefold()
    return all(keyword.casefold() in name for keyword in keywords)


def rule_matches(rule: MatchingRule, product: Product) -> bool:
    """Return True when the rule's filters and keywords are all satisfied by the product."""

    return filters_match(rule.filters, product) and keywords_match(rule.product_name_keywords, product.product_name)
