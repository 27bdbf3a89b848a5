"""Shared pytest fixtures for the repository, matcher, and apply pipeline tests."""

from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest
from PIL import Image

# Keep the project root importable when running pytest from any directory.
_root = Path(__file__).resolve().parent.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from core.repository import RuleStore  # noqa: E402


class FakeCatalog:
    """In-memory stand-in for the external catalog's set-image operation."""

    def __init__(self, failing_products: Tuple[int, ...] = ()) -> None:
        self.failing_products = set(failing_products)
        self.calls: List[Dict[str, Any]] = []

    def set_image(self, product_id: int, base64_image: str, file_name: str) -> Dict[str, Any]:
        self.calls.append({"productId": product_id, "base64Image": base64_image, "fileName": file_name})
        if product_id in self.failing_products:
            raise RuntimeError("Catalog API 500: internal error")
        return {"imageId": 1000 + len(self.calls), "imageUrl": f"https://cdn.example/{product_id}/{file_name}"}


@pytest.fixture
def store(tmp_path: Path) -> RuleStore:
    return RuleStore(tmp_path / "repository.sqlite3")


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (400, 200), color=(20, 120, 60)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def make_image(store: RuleStore, png_bytes: bytes):
    """Factory creating repository images with sensible defaults."""

    def _make(name: str = "Acme Flower", group_name=None, data: bytes | None = None):
        return store.create_image(
            name=name,
            data=data if data is not None else png_bytes,
            file_name=f"{name.lower().replace(' ', '-')}.png",
            mime_type="image/png",
            group_name=group_name,
        )

    return _make


@pytest.fixture
def catalog_factory():
    return FakeCatalog
