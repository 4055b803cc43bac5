"""FastAPI surface tests using the TestClient."""

from __future__ import annotations

import base64
import io
import time

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from models.room_analysis import Detection
from server.api import create_app
from swipe_app.app import SwipeShopApp
from swipe_app.config import AppConfig
from tools.catalog_client import CatalogClient, CatalogFetchFailed, InMemoryCatalog
from tools.demo_catalog import demo_items
from tools.vision_models import ModelUnavailableError, StaticVisionModel, VisionModelService

USER = "api-user"


class _DownCatalog(CatalogClient):
    async def fetch_page(self, tags, page_size, cursor=None):
        raise CatalogFetchFailed("catalog offline")


class _OfflineModel(VisionModelService):
    def load(self) -> None:
        raise ModelUnavailableError("service down")

    def detect(self, image):
        return []

    def classify(self, image):
        return []


class _SlowModel(VisionModelService):
    def detect(self, image):
        time.sleep(0.5)
        return []

    def classify(self, image):
        return []


def _photo_b64() -> str:
    buffer = io.BytesIO()
    Image.new("RGB", (320, 240), (40, 160, 160)).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()


def _client(config: AppConfig, catalog=None, vision_model=None) -> TestClient:
    shop = SwipeShopApp(
        config,
        catalog=catalog or InMemoryCatalog(demo_items()),
        vision_model=vision_model or StaticVisionModel(detections=[Detection("bed", 0.9)]),
    )
    client = TestClient(create_app(shop))
    assert client.post("/sessions", json={"user_id": USER}).status_code == 200
    return client


@pytest.fixture()
def client(app_config) -> TestClient:
    return _client(app_config)


def test_healthcheck(client: TestClient) -> None:
    body = client.get("/healthz").json()

    assert body["status"] == "ok"
    assert body["catalog"] == "InMemoryCatalog"
    assert body["vision_model"] == "StaticVisionModel"


def test_unknown_session_returns_404(client: TestClient) -> None:
    assert client.get("/sessions/ghost/feed").status_code == 404


def test_swipe_flow(client: TestClient) -> None:
    assert client.put(f"/sessions/{USER}/interests", json={"interests": ["Rugs", "lighting"]}).json() == {
        "interests": ["rugs", "lighting"]
    }
    feed = client.post(f"/sessions/{USER}/feed/load").json()
    assert feed["remaining"] == 6
    first_id = feed["current"]["item"]["item_id"]

    liked = client.post(f"/sessions/{USER}/decisions", json={"direction": "like"})
    assert liked.json()["state"] == "awaiting_sub_action"

    conflict = client.post(f"/sessions/{USER}/decisions", json={"direction": "pass"})
    assert conflict.status_code == 409

    resolved = client.post(f"/sessions/{USER}/decisions/resolve", json={"sub_action": "save"}).json()
    assert resolved["state"] == "resolved_save"
    assert resolved["item"]["item_id"] == first_id

    feed = client.get(f"/sessions/{USER}/feed").json()
    assert feed["index"] == 1
    assert feed["wishlist_count"] == 1

    undone = client.post(f"/sessions/{USER}/undo").json()
    assert undone["record"]["sub_action"] == "save"
    assert client.get(f"/sessions/{USER}/feed").json()["current"]["item"]["item_id"] == first_id

    persona = client.get(f"/sessions/{USER}/persona").json()
    assert persona["detected_vibe"] == "New Explorer"


def test_invalid_payload_returns_review_shape(client: TestClient) -> None:
    response = client.post(f"/sessions/{USER}/decisions", json={"direction": "sideways"})

    assert response.status_code == 422
    body = response.json()
    assert body["status"] == "needs_review"
    assert body["details"]

    unknown_interest = client.put(f"/sessions/{USER}/interests", json={"interests": ["spaceships"]})
    assert unknown_interest.status_code == 422


def test_blocked_tags_endpoint(client: TestClient) -> None:
    assert client.post(f"/sessions/{USER}/blocked-tags", json={"tag": "Neon"}).json() == {"blocked_tags": ["neon"]}
    assert client.post(f"/sessions/{USER}/blocked-tags", json={"tag": "neon", "blocked": False}).json() == {
        "blocked_tags": []
    }


def test_scan_and_pick_actions(client: TestClient) -> None:
    client.post(f"/sessions/{USER}/feed/load")

    response = client.post(f"/sessions/{USER}/scan", json={"image_base64": _photo_b64(), "text": "cozy"})

    assert response.status_code == 200
    body = response.json()
    assert body["analysis"]["room_type"] == "bedroom"
    top = body["picks"][0]
    assert top["item"]["category"] == "rugs"

    saved = client.post(f"/sessions/{USER}/picks/{top['item']['item_id']}/save")
    assert saved.status_code == 200
    assert len(saved.json()["picks"]) == len(body["picks"]) - 1

    assert client.post(f"/sessions/{USER}/picks/{top['item']['item_id']}/save").status_code == 404
    assert client.post(f"/sessions/{USER}/picks/anything/explode").status_code == 422
    assert client.post(f"/sessions/{USER}/scan/reset").json() == {"picks": []}

    reset = client.post(f"/sessions/{USER}/reset").json()
    assert reset["wishlist_count"] == 0
    assert reset["status"] == "idle"


def test_scan_rejects_undecodable_image(client: TestClient) -> None:
    response = client.post(f"/sessions/{USER}/scan", json={"image_base64": "%%%"})

    assert response.status_code == 422


def test_error_mapping_for_collaborator_failures(app_config: AppConfig, tmp_path) -> None:
    catalog_down = _client(app_config, catalog=_DownCatalog())
    assert catalog_down.post(f"/sessions/{USER}/feed/load").status_code == 502

    model_down = _client(app_config, vision_model=_OfflineModel())
    assert model_down.post(f"/sessions/{USER}/scan", json={"image_base64": _photo_b64()}).status_code == 503

    slow_config = AppConfig(profile_store_path=str(tmp_path / "slow"), analysis_timeout_seconds=0.05)
    slow = _client(slow_config, vision_model=_SlowModel())
    assert slow.post(f"/sessions/{USER}/scan", json={"image_base64": _photo_b64()}).status_code == 504
