# Path: core/matching/matcher.py
# Purpose: Select the best-matching repository image for each product in a batch.
# Layer: core/matching.
# Details: Reads one rule snapshot per call and evaluates every product independently against it.

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, Sequence

from core.models.domain import MatchingRule, MatchResult, Product
from .rules import rule_matches

logger = logging.getLogger(__name__)


class RuleSource(Protocol):
    """Anything that can return the current rules ordered by descending priority."""

    def list_rules_by_priority_desc(self) -> List[MatchingRule]:
        """Return every rule, highest priority first."""


def select_best_rule(rules: Iterable[MatchingRule], product: Product) -> Optional[MatchingRule]:
    """Return the highest-priority rule matching the product; equal priorities go to the lowest rule id."""

    best: Optional[MatchingRule] = None
    for rule in rules:
        if not rule_matches(rule, product):
            continue
        if best is None or (rule.priority, -rule.id) > (best.priority, -best.id):
            best = rule
    return best


def build_match_result(product: Product, rule: Optional[MatchingRule]) -> MatchResult:
    if rule is None:
        return MatchResult(product_id=product.product_id, product_name=product.product_name)
    return MatchResult(
        product_id=product.product_id,
        product_name=product.product_name,
        matched_image_id=rule.image_id,
        matched_image_name=rule.image_name,
        matched_rule_id=rule.id,
    )


class RuleMatcher:
    """Match catalog products against the repository's rules."""

    def __init__(self, source: RuleSource) -> None:
        self.source = source

    def match(self, products: Sequence[Product]) -> List[MatchResult]:
        """
        Return one MatchResult per product, in input order.

        External calls:
        - core/repository/store.py::RuleStore.list_rules_by_priority_desc - loads the rule snapshot.
        """

        if not products:
            return []
        rules = self.source.list_rules_by_priority_desc()
        results = [build_match_result(product, select_best_rule(rules, product)) for product in products]
        matched = sum(1 for result in results if result.matched)
        logger.info("Matched %d of %d products against %d rules", matched, len(results), len(rules))
        return results

    def match_one(self, product: Product) -> MatchResult:
        """Match a single product; convenience wrapper around ``match``."""

        return self.match([product])[0]
