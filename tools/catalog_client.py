"""Catalog collaborator abstractions and implementations."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests
from pydantic import BaseModel, Field, ValidationError

from models.item import Item, item_from_record
from models.taxonomy import MAX_FILTER_TAGS
from tools.observability import instrument_tool

LOGGER = logging.getLogger(__name__)


class CatalogFetchFailed(RuntimeError):
    """Raised when a catalog page cannot be retrieved."""


@dataclass
class CatalogPage:
    """One page of catalog items plus its continuation cursor."""

    items: List[Item] = field(default_factory=list)
    cursor: Optional[Any] = None
    has_more: bool = False


class _CatalogRecord(BaseModel):
    id: str
    data: Dict[str, Any] = {}


class _CatalogPageResponse(BaseModel):
    items: List[_CatalogRecord] = []
    cursor: Optional[str] = None
    has_more: bool = Field(False, alias="hasMore")

    model_config = {"populate_by_name": True}


def filter_tags(tags: Iterable[str]) -> List[str]:
    """Deduplicate interest tags and cap them at the remote query limit."""

    unique: List[str] = []
    for tag in tags:
        if tag and tag not in unique:
            unique.append(tag)
    return unique[:MAX_FILTER_TAGS]


class CatalogClient(ABC):
    """Abstract paged catalog interface."""

    @abstractmethod
    async def fetch_page(self, tags: Sequence[str], page_size: int, cursor: Optional[Any] = None) -> CatalogPage:
        """Return the next page of items carrying any of ``tags`` (all items when empty)."""


class HTTPCatalogClient(CatalogClient):
    """Catalog backed by a JSON HTTP endpoint.

    The endpoint receives ``tags`` (comma separated), ``limit`` and an optional
    ``cursor`` and answers ``{"items": [{"id", "data"}], "cursor", "hasMore"}``.
    Retry policy is left to the remote store; this client makes one request.
    """

    def __init__(self, base_url: str, timeout_seconds: float = 10.0, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def _get_page(self, tags: Sequence[str], page_size: int, cursor: Optional[Any]) -> CatalogPage:
        params: Dict[str, Any] = {"limit": page_size}
        selected = filter_tags(tags)
        if selected:
            params["tags"] = ",".join(selected)
        if cursor is not None:
            params["cursor"] = str(cursor)

        url = f"{self.base_url}/products"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            LOGGER.error("Catalog unreachable", extra={"url": url, "error": str(exc)})
            raise CatalogFetchFailed(f"Network error fetching catalog page: {exc}") from exc

        if not 200 <= response.status_code < 300:
            LOGGER.warning("Non-success catalog status", extra={"url": url, "status_code": response.status_code})
            raise CatalogFetchFailed(f"Catalog page request failed: HTTP {response.status_code}")

        try:
            parsed = _CatalogPageResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            LOGGER.error("Catalog payload schema validation failed", exc_info=exc)
            raise CatalogFetchFailed("Catalog page payload was malformed") from exc

        items: List[Item] = []
        for record in parsed.items:
            try:
                items.append(item_from_record(record.id, record.data))
            except ValueError as exc:
                LOGGER.warning("Skipping catalog record", extra={"record_id": record.id, "error": str(exc)})
        return CatalogPage(items=items, cursor=parsed.cursor, has_more=parsed.has_more)

    @instrument_tool("fetch_catalog_page")
    async def fetch_page(self, tags: Sequence[str], page_size: int, cursor: Optional[Any] = None) -> CatalogPage:
        return await asyncio.to_thread(self._get_page, list(tags), page_size, cursor)


class InMemoryCatalog(CatalogClient):
    """Catalog over a fixed item list, paged by item id like the remote store."""

    def __init__(self, items: Iterable[Item]) -> None:
        self.items = sorted(items, key=lambda item: item.item_id)

    @instrument_tool("fetch_catalog_page")
    async def fetch_page(self, tags: Sequence[str], page_size: int, cursor: Optional[Any] = None) -> CatalogPage:
        selected = set(filter_tags(tags))
        matching = [
            item
            for item in self.items
            if (not selected or selected.intersection(item.tags)) and (cursor is None or item.item_id > cursor)
        ]
        page = matching[:page_size]
        next_cursor = page[-1].item_id if page else None
        return CatalogPage(items=page, cursor=next_cursor, has_more=len(page) == page_size)


__all__ = [
    "CatalogFetchFailed",
    "CatalogPage",
    "CatalogClient",
    "HTTPCatalogClient",
    "InMemoryCatalog",
    "filter_tags",
]
