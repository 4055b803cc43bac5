"""HTTP catalog client tests against a fake requests session."""

from __future__ import annotations

import asyncio

import pytest
import requests

from tools.catalog_client import CatalogFetchFailed, HTTPCatalogClient, filter_tags


class _FakeResponse:
    def __init__(self, status_code: int, payload=None, raises: bool = False) -> None:
        self.status_code = status_code
        self._payload = payload
        self._raises = raises

    def json(self):
        if self._raises:
            raise ValueError("not json")
        return self._payload


class _FakeSession:
    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append({"url": url, "params": params, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def test_fetch_page_builds_query_and_parses_items() -> None:
    payload = {
        "items": [
            {"id": "rug-1", "data": {"title": "Neutral Rug", "category": "Rugs", "tags": ["rugs", "cozy"], "price": 79.99}},
            {"id": "", "data": {}},
        ],
        "cursor": "rug-1",
        "hasMore": True,
    }
    session = _FakeSession(_FakeResponse(200, payload))
    client = HTTPCatalogClient("https://catalog.example.test/", timeout_seconds=3, session=session)

    page = asyncio.run(client.fetch_page(["rugs", "lighting", "rugs"], 30, "prev"))

    sent = session.requests[0]
    assert sent["url"] == "https://catalog.example.test/products"
    assert sent["params"] == {"limit": 30, "tags": "rugs,lighting", "cursor": "prev"}
    assert sent["timeout"] == 3
    assert [item.item_id for item in page.items] == ["rug-1"]
    assert page.items[0].name == "Neutral Rug"
    assert page.cursor == "rug-1"
    assert page.has_more is True


@pytest.mark.parametrize(
    "session",
    [
        _FakeSession(error=requests.ConnectionError("refused")),
        _FakeSession(_FakeResponse(500, {})),
        _FakeSession(_FakeResponse(200, raises=True)),
        _FakeSession(_FakeResponse(200, {"items": [{"data": {}}]})),
    ],
)
def test_fetch_failures_become_catalog_fetch_failed(session) -> None:
    client = HTTPCatalogClient("https://catalog.example.test", session=session)

    with pytest.raises(CatalogFetchFailed):
        asyncio.run(client.fetch_page([], 20))


def test_filter_tags_caps_at_remote_limit() -> None:
    tags = [f"tag-{index}" for index in range(15)] + ["tag-0"]

    assert filter_tags(tags) == [f"tag-{index}" for index in range(10)]
