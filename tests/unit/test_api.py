"""api.app tests using FastAPI's TestClient."""

from __future__ import annotations

import base64
import json

import pytest
from fastapi.testclient import TestClient

from api import create_app
from config import AppSettings
from core.cache import PRODUCTS_ALL_KEY, TTLCache


@pytest.fixture
def cache() -> TTLCache:
    return TTLCache()


@pytest.fixture
def client(store, catalog, cache, tmp_path) -> TestClient:
    settings = AppSettings(database_path=tmp_path / "unused.sqlite3")
    return TestClient(create_app(store=store, catalog=catalog, cache=cache, settings=settings))


def _upload(client: TestClient, png_bytes: bytes, name: str = "Acme Flower", **extra) -> dict:
    payload = {
        "name": name,
        "base64Image": base64.b64encode(png_bytes).decode("ascii"),
        "fileName": "acme.png",
        "mimeType": "image/png",
        **extra,
    }
    response = client.post("/repository/images", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def _events(response) -> list:
    frames = [frame for frame in response.text.split("\n\n") if frame]
    return [json.loads(frame[len("data: "):]) for frame in frames]


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_setup_is_idempotent(client) -> None:
    assert client.post("/repository/setup").json() == {"success": True, "message": "Schema initialized"}
    assert client.post("/repository/setup").status_code == 200


def test_upload_list_and_fetch_content(client, png_bytes) -> None:
    created = _upload(client, png_bytes, groupName="Flower")

    listed = client.get("/repository/images").json()
    content = client.get(f"/repository/images/{created['id']}")

    assert listed[0]["id"] == created["id"]
    assert listed[0]["groupName"] == "Flower"
    assert listed[0]["rulesCount"] == 0
    assert listed[0]["thumbnailDataUrl"].startswith("data:image/png;base64,")
    assert content.status_code == 200
    assert content.headers["content-type"] == "image/png"
    assert content.content == png_bytes


def test_upload_missing_fields_is_400(client) -> None:
    response = client.post("/repository/images", json={"name": "No bytes", "fileName": "a.png", "mimeType": "image/png"})

    assert response.status_code == 400
    assert "data" in response.json()["error"]


def test_unknown_image_content_is_404(client) -> None:
    assert client.get("/repository/images/999").status_code == 404


def test_rule_lifecycle(client, png_bytes) -> None:
    image = _upload(client, png_bytes)

    created = client.post(
        "/repository/rules",
        json={"imageId": image["id"], "brandName": "Acme", "category": "", "productNameKeywords": ["pro"]},
    )
    assert created.status_code == 200
    rule = created.json()
    assert rule["brandName"] == "Acme"
    assert rule["category"] is None
    assert rule["productNameKeywords"] == ["pro"]
    assert rule["priority"] == 2

    listed = client.get("/repository/images").json()
    assert listed[0]["rulesCount"] == 1

    assert client.delete(f"/repository/rules/{rule['id']}").json() == {"success": True}
    assert client.delete(f"/repository/rules/{rule['id']}").json() == {"success": True}
    assert client.get("/repository/images").json()[0]["rulesCount"] == 0


def test_rule_errors(client, png_bytes) -> None:
    image = _upload(client, png_bytes)

    assert client.post("/repository/rules", json={"brandName": "Acme"}).status_code == 400
    assert client.post("/repository/rules", json={"imageId": image["id"] + 10, "brandName": "Acme"}).status_code == 404
    legacy = client.post("/repository/rules", json={"imageId": image["id"], "productNameContains": "pro"})
    assert legacy.status_code == 400
    assert "productNameKeywords" in legacy.json()["error"]


def test_delete_unknown_image_succeeds(client) -> None:
    response = client.delete("/repository/images/424242")

    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_match_endpoint(client, png_bytes) -> None:
    image = _upload(client, png_bytes, name="Lookah Pro Cat")
    client.post("/repository/rules", json={"imageId": image["id"], "productNameKeywords": ["pro", "cat"]})

    response = client.post(
        "/repository/match",
        json={
            "products": [
                {"productId": 1, "productName": "Lookah Pro Cat Vape"},
                {"productId": 2, "productName": "Lookah Cat Vape"},
            ]
        },
    )

    results = response.json()
    assert [result["productId"] for result in results] == [1, 2]
    assert results[0]["matchedImageId"] == image["id"]
    assert results[0]["matchedImageName"] == "Lookah Pro Cat"
    assert results[1]["matchedImageId"] is None


def test_match_requires_products(client) -> None:
    assert client.post("/repository/match", json={}).status_code == 400
    assert client.post("/repository/match", json={"products": [{"productName": "no id"}]}).status_code == 400


def test_apply_streams_progress_events(client, png_bytes, catalog, cache) -> None:
    image = _upload(client, png_bytes)
    cache.set(PRODUCTS_ALL_KEY, ["stale"], ttl_seconds=600)

    response = client.post(
        "/repository/apply",
        json={
            "items": [
                {"productId": 1, "imageId": image["id"], "productName": "One"},
                {"productId": 2, "imageId": 9999, "productName": "Two"},
                {"productId": 3, "imageId": image["id"], "productName": "Three"},
            ]
        },
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = _events(response)
    assert [event["type"] for event in events] == ["start", "success", "start", "error", "start", "success", "done"]
    assert events[3]["error"] == "Repository image 9999 not found"
    assert events[1]["result"]["imageUrl"] == "https://cdn.example/1/acme.png"
    assert len(catalog.calls) == 2
    assert cache.get(PRODUCTS_ALL_KEY) is None


def test_apply_rejects_empty_batch(client, catalog) -> None:
    response = client.post("/repository/apply", json={"items": []})

    assert response.status_code == 400
    assert response.json() == {"error": "items array is required"}
    assert catalog.calls == []


def test_apply_without_catalog_is_503(store, tmp_path) -> None:
    app = create_app(store=store, settings=AppSettings(database_path=tmp_path / "unused.sqlite3"))

    response = TestClient(app).post("/repository/apply", json={"items": [{"productId": 1, "imageId": 1}]})

    assert response.status_code == 503
    assert response.json() == {"error": "Catalog client is not configured."}


@pytest.mark.parametrize(
    "path, payload",
    [
        ("/repository/rules", {"imageId": 1, "productNameKeywords": 5}),
        ("/repository/rules", {"imageId": 1, "productNameKeywords": ["pro", 7]}),
        ("/repository/match", {"products": [1]}),
        ("/repository/apply", {"items": [1]}),
        ("/repository/images", {"name": "A", "base64Image": 5, "fileName": "a.png", "mimeType": "image/png"}),
    ],
)
def test_malformed_payload_shapes_are_400(client, png_bytes, path, payload) -> None:
    _upload(client, png_bytes)

    response = client.post(path, json=payload)

    assert response.status_code == 400
    assert "error" in response.json()
