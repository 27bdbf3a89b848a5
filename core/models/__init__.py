# Path: core/models/__init__.py
# Purpose: Package initializer for domain model definitions.
# Layer: core/models.
# Details: Exposes dataclasses used across the rule store, matcher, and apply pipeline.

from .domain import (
    ApplyItem,
    ImageBlob,
    MatchingRule,
    MatchResult,
    Product,
    RepositoryImage,
    RuleFilters,
)

__all__ = [
    "ApplyItem",
    "ImageBlob",
    "MatchingRule",
    "MatchResult",
    "Product",
    "RepositoryImage",
    "RuleFilters",
]
