"""core.matching.rules unit tests (single-rule evaluation and default priority)."""

from __future__ import annotations

import pytest

from core.errors import ValidationError
from core.matching.rules import default_priority, keywords_match, normalize_keywords, rule_matches
from core.models.domain import MatchingRule, Product, RuleFilters


def _rule(**filters) -> MatchingRule:
    keywords = filters.pop("keywords", None)
    return MatchingRule(id=1, image_id=1, filters=RuleFilters(**filters), product_name_keywords=keywords)


def test_normalize_keywords_strips_and_drops_blanks() -> None:
    assert normalize_keywords([" Pro ", "", "  ", "Cat"]) == ["Pro", "Cat"]
    assert normalize_keywords([]) is None
    assert normalize_keywords(None) is None


def test_normalize_keywords_accepts_comma_separated_string() -> None:
    assert normalize_keywords("pro, cat") == ["pro", "cat"]


def test_default_priority_counts_filters_and_keywords() -> None:
    assert default_priority(RuleFilters(brand_name="Acme")) == 1
    assert default_priority(RuleFilters()) == 0
    assert default_priority(RuleFilters(brand_name="Acme", category="Flower", strain_type="Indica")) == 3
    assert default_priority(RuleFilters(brand_name="Acme"), ["pro", "cat"]) == 2


def test_catch_all_rule_matches_anything() -> None:
    assert rule_matches(_rule(), Product(product_id=1))
    assert rule_matches(_rule(), Product(product_id=2, product_name="x", brand_name="y", category="z"))


def test_filters_are_case_sensitive_exact_matches() -> None:
    rule = _rule(brand_name="Acme")
    assert rule_matches(rule, Product(product_id=1, brand_name="Acme"))
    assert not rule_matches(rule, Product(product_id=1, brand_name="acme"))
    assert not rule_matches(rule, Product(product_id=1, brand_name=None))


def test_all_set_filters_must_match() -> None:
    rule = _rule(brand_name="Acme", strain_type="Sativa")
    assert rule_matches(rule, Product(product_id=1, brand_name="Acme", strain_type="Sativa"))
    assert not rule_matches(rule, Product(product_id=1, brand_name="Acme", strain_type="Indica"))


def test_keywords_require_every_keyword_case_insensitively() -> None:
    rule = _rule(keywords=["pro", "cat"])
    assert rule_matches(rule, Product(product_id=1, product_name="Lookah Pro Cat Vape"))
    assert not rule_matches(rule, Product(product_id=2, product_name="Lookah Cat Vape"))


def test_keywords_fail_against_missing_name() -> None:
    assert not keywords_match(["pro"], None)
    assert keywords_match(None, None)


@pytest.mark.parametrize("keywords", [5, ["pro", 7], {"pro": True}])
def test_normalize_keywords_rejects_non_string_lists(keywords) -> None:
    with pytest.raises(ValidationError, match="productNameKeywords"):
        normalize_keywords(keywords)
