# Path: api/app.py
# Purpose: Expose a FastAPI application for the image repository, matcher, and bulk apply stream.
# Layer: api.
# Details: Thin routing over core services; domain errors map to 400/404 and apply progress streams as SSE.

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from config.settings import AppSettings
from core.apply import BulkApplyPipeline, encode_sse
from core.cache import TTLCache
from core.catalog import CatalogImageClient
from core.errors import NotFoundError, RepositoryError, ValidationError
from core.matching import RuleMatcher
from core.models.domain import ApplyItem, Product, RuleFilters
from core.repository import RuleStore, decode_base64

logger = logging.getLogger(__name__)

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def _require_list(payload: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    value = payload.get(key)
    if not isinstance(value, list):
        raise ValidationError(f"{key} array is required")
    return value


def create_app(
    store: Optional[RuleStore] = None,
    catalog: Optional[CatalogImageClient] = None,
    cache: Optional[TTLCache] = None,
    settings: Optional[AppSettings] = None,
):  # type: ignore[override]
    """Create a FastAPI app wired to the given repository store and catalog client."""

    from fastapi import FastAPI
    from fastapi.responses import JSONResponse, Response, StreamingResponse

    settings = settings or AppSettings.from_env()
    store = store or RuleStore.from_settings(settings)
    cache = cache if cache is not None else TTLCache()
    matcher = RuleMatcher(store)

    app = FastAPI(title="Catalog Image Repository API", version="0.1.0")
    app.state.store = store
    app.state.cache = cache

    @app.exception_handler(ValidationError)
    def handle_validation(_request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(NotFoundError)
    def handle_not_found(_request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(RepositoryError)
    def handle_repository_error(_request, exc: RepositoryError):
        logger.error("Repository operation failed: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.get("/health")
    def health() -> Dict[str, str]:
        """Return a simple health status payload."""

        return {"status": "ok"}

    @app.post("/repository/setup")
    def setup() -> Dict[str, Any]:
        """Create or migrate the repository schema."""

        store.ensure_schema()
        return {"success": True, "message": "Schema initialized"}

    @app.get("/repository/images")
    def list_images() -> List[Dict[str, Any]]:
        return [image.to_dict() for image in store.list_images()]

    @app.post("/repository/images")
    def create_image(payload: Dict[str, Any]) -> Dict[str, Any]:
        """Store a new repository image from a base64 payload."""

        data = decode_base64(payload.get("base64Image") or "")
        image = store.create_image(
            name=payload.get("name") or "",
            data=data,
            file_name=payload.get("fileName") or "",
            mime_type=payload.get("mimeType") or "",
            group_name=payload.get("groupName"),
        )
        return image.to_dict()

    @app.get("/repository/images/{image_id}")
    def get_image_content(image_id: int):
        """Serve the stored image bytes with their original mime type."""

        blob = store.get_image_blob(image_id)
        return Response(
            content=blob.data,
            media_type=blob.mime_type,
            headers={"Cache-Control": "public, max-age=31536000, immutable"},
        )

    @app.delete("/repository/images/{image_id}")
    def delete_image(image_id: int) -> Dict[str, bool]:
        store.delete_image(image_id)
        return {"success": True}

    @app.post("/repository/rules")
    def create_rule(payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create a matching rule for an existing image."""

        if payload.get("productNameContains"):
            raise ValidationError("productNameContains is no longer supported; use productNameKeywords")
        rule = store.create_rule(
            image_id=payload.get("imageId"),
            filters=RuleFilters.from_dict(payload),
            keywords=payload.get("productNameKeywords"),
            priority=payload.get("priority"),
        )
        return rule.to_dict()

    @app.delete("/repository/rules/{rule_id}")
    def delete_rule(rule_id: int) -> Dict[str, bool]:
        store.delete_rule(rule_id)
        return {"success": True}

    @app.post("/repository/match")
    def match(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Return the best repository image for each submitted product."""

        products = [Product.from_dict(item) for item in _require_list(payload, "products")]
        return [result.to_dict() for result in matcher.match(products)]

    @app.post("/repository/apply")
    def apply(payload: Dict[str, Any]):
        """Apply matched images to catalog products, streaming progress as server-sent events."""

        if catalog is None:
            return JSONResponse(status_code=503, content={"error": "Catalog client is not configured."})

        items = [ApplyItem.from_dict(item) for item in _require_list(payload, "items")]
        events = BulkApplyPipeline(store, catalog, cache).run(items)
        return StreamingResponse(
            (encode_sse(event) for event in events),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    return app
