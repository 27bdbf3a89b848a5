# Path: core/models/domain.py
# Purpose: Define domain models shared across the rule store, matcher, and bulk apply pipeline.
# Layer: core/models.
# Details: Lightweight dataclasses with explicit camelCase conversion for the API layer.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.errors import ValidationError


@dataclass(frozen=True)
class RuleFilters:
    """Exact-match product attribute filters; ``None`` means any value."""

    brand_name: Optional[str] = None
    category: Optional[str] = None
    strain: Optional[str] = None
    strain_type: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RuleFilters":
        # Empty strings are treated the same as an unset filter.
        return cls(
            brand_name=payload.get("brandName") or None,
            category=payload.get("category") or None,
            strain=payload.get("strain") or None,
            strain_type=payload.get("strainType") or None,
        )

    def values(self) -> List[Optional[str]]:
        return [self.brand_name, self.category, self.strain, self.strain_type]


@dataclass
class MatchingRule:
    """Rule associating a set of product attribute conditions with one repository image."""

    id: int
    image_id: int
    filters: RuleFilters = field(default_factory=RuleFilters)
    product_name_keywords: Optional[List[str]] = None
    priority: int = 0
    created_at: Optional[datetime] = None
    image_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "imageId": self.image_id,
            "brandName": self.filters.brand_name,
            "category": self.filters.category,
            "strain": self.filters.strain,
            "strainType": self.filters.strain_type,
            "productNameKeywords": list(self.product_name_keywords) if self.product_name_keywords else None,
            "priority": self.priority,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class RepositoryImage:
    """Reusable image asset stored independently of any single product."""

    id: int
    name: str
    file_name: str
    mime_type: str
    group_name: Optional[str] = None
    created_at: Optional[datetime] = None
    thumbnail_data_url: Optional[str] = None
    rules: List[MatchingRule] = field(default_factory=list)

    @property
    def rules_count(self) -> int:
        return len(self.rules)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "fileName": self.file_name,
            "mimeType": self.mime_type,
            "groupName": self.group_name,
            "thumbnailDataUrl": self.thumbnail_data_url,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "rulesCount": self.rules_count,
            "rules": [rule.to_dict() for rule in self.rules],
        }


@dataclass
class ImageBlob:
    """Stored bytes of a repository image together with its file metadata."""

    data: bytes
    file_name: str
    mime_type: str


@dataclass(frozen=True)
class Product:
    """Catalog product attributes supplied by the caller for matching."""

    product_id: int
    product_name: Optional[str] = None
    brand_name: Optional[str] = None
    category: Optional[str] = None
    strain: Optional[str] = None
    strain_type: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Product":
        if not isinstance(payload, dict):
            raise ValidationError("Each product must be an object")
        if payload.get("productId") is None:
            raise ValidationError("productId is required for every product")
        return cls(
            product_id=payload["productId"],
            product_name=payload.get("productName"),
            brand_name=payload.get("brandName"),
            category=payload.get("category"),
            strain=payload.get("strain"),
            strain_type=payload.get("strainType"),
        )


@dataclass
class MatchResult:
    """Best-match outcome for one product; all match fields are None when nothing matched."""

    product_id: int
    product_name: Optional[str] = None
    matched_image_id: Optional[int] = None
    matched_image_name: Optional[str] = None
    matched_rule_id: Optional[int] = None

    @property
    def matched(self) -> bool:
        return self.matched_rule_id is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "matchedImageId": self.matched_image_id,
            "matchedImageName": self.matched_image_name,
            "matchedRuleId": self.matched_rule_id,
        }


@dataclass(frozen=True)
class ApplyItem:
    """One unit of work for the bulk apply pipeline."""

    product_id: int
    image_id: int
    product_name: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ApplyItem":
        if not isinstance(payload, dict):
            raise ValidationError("Each item must be an object")
        if payload.get("productId") is None or payload.get("imageId") is None:
            raise ValidationError("Each item requires productId and imageId")
        return cls(
            product_id=payload["productId"],
            image_id=payload["imageId"],
            product_name=payload.get("productName"),
        )
