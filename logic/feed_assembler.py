"""Paged candidate pool assembly with low-water-mark refills."""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, List, Optional, Sequence, Set

from logic.dedup import CandidateDeduplicator
from logic.ledger import TagAffinityLedger
from logic.ranking import rank_items
from memory.profile import Profile
from models.item import Item
from swipe_app.logging_config import get_logger, log_event
from tools.catalog_client import CatalogClient, CatalogFetchFailed

LOGGER = get_logger(__name__)

INITIAL_PAGE_SIZE = 30
REFILL_PAGE_SIZE = 20
REFILL_THRESHOLD = 5
# Bounds on load_initial against catalogs that keep returning empty or fully deduplicated pages.
MAX_INITIAL_ITEMS = 150
MAX_INITIAL_PAGES = 10


class FeedStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class FeedAssembler:
    """Owns the candidate pool, its catalog cursor and the read position."""

    def __init__(
        self,
        catalog: CatalogClient,
        ledger: TagAffinityLedger,
        dedup: CandidateDeduplicator,
        profile: Profile,
        *,
        initial_page_size: int = INITIAL_PAGE_SIZE,
        refill_page_size: int = REFILL_PAGE_SIZE,
        refill_threshold: int = REFILL_THRESHOLD,
        max_initial_items: int = MAX_INITIAL_ITEMS,
        max_initial_pages: int = MAX_INITIAL_PAGES,
    ) -> None:
        self.catalog = catalog
        self.ledger = ledger
        self.dedup = dedup
        self.profile = profile
        self.initial_page_size = initial_page_size
        self.refill_page_size = refill_page_size
        self.refill_threshold = refill_threshold
        self.max_initial_items = max_initial_items
        self.max_initial_pages = max_initial_pages

        self.pool: List[Item] = []
        self.cursor: Optional[Any] = None
        self.has_more = True
        self.index = 0
        self.status = FeedStatus.IDLE
        self.last_error: Optional[CatalogFetchFailed] = None
        self._refilling = False
        self._refill_task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def remaining(self) -> int:
        return max(0, len(self.pool) - self.index)

    @property
    def refill_in_flight(self) -> bool:
        return self._refilling

    def current(self) -> Optional[Item]:
        if 0 <= self.index < len(self.pool):
            return self.pool[self.index]
        return None

    def upcoming(self, limit: int = 10) -> List[Item]:
        return self.pool[self.index : self.index + limit]

    def advance(self) -> None:
        self.index = min(self.index + 1, len(self.pool))

    def rewind(self) -> None:
        self.index = max(0, self.index - 1)

    def drop_upcoming(self, item_id: str) -> bool:
        """Remove an undecided item from the pool, e.g. after it was saved from a scan."""

        for position in range(self.index, len(self.pool)):
            if self.pool[position].item_id == item_id:
                del self.pool[position]
                return True
        return False

    def clear(self) -> None:
        """Drop the pool and pagination state, invalidating any in-flight refill."""

        self._generation += 1
        self.pool = []
        self.cursor = None
        self.has_more = True
        self.index = 0
        self.status = FeedStatus.IDLE
        self.last_error = None

    def _accepts(self, item: Item, pool_ids: Set[str]) -> bool:
        if item.item_id in pool_ids or self.dedup.seen(item.item_id):
            return False
        blocked = self.profile.blocked_tags
        return not (blocked and blocked.intersection(item.tags))

    def _filter_page(self, items: Sequence[Item], pool_ids: Set[str]) -> List[Item]:
        accepted: List[Item] = []
        for item in items:
            if self._accepts(item, pool_ids):
                accepted.append(item)
                pool_ids.add(item.item_id)
        return accepted

    async def load_initial(self, interest_tags: Sequence[str]) -> List[Item]:
        """Rebuild the pool from the first catalog pages and rank it once.

        Nothing is committed until every page has arrived; a fetch error leaves
        the previous pool, cursor and read position in place.
        """

        tags = list(interest_tags)
        collected: List[Item] = []
        pool_ids: Set[str] = set()
        cursor: Optional[Any] = None
        has_more = True
        pages = 0
        self.status = FeedStatus.LOADING

        try:
            while has_more and pages < self.max_initial_pages and len(collected) < self.max_initial_items:
                page = await self.catalog.fetch_page(tags, self.initial_page_size, cursor)
                pages += 1
                collected.extend(self._filter_page(page.items, pool_ids))
                if page.cursor is not None:
                    cursor = page.cursor
                has_more = page.has_more
        except CatalogFetchFailed as exc:
            self.last_error = exc
            self.status = FeedStatus.ERROR
            log_event(LOGGER, logging.WARNING, "feed_load_failed", pages=pages, error=str(exc))
            raise

        self._generation += 1
        self.pool = rank_items(collected, self.ledger)
        self.cursor = cursor
        self.has_more = has_more
        self.index = 0
        self.status = FeedStatus.READY
        self.last_error = None
        log_event(
            LOGGER,
            logging.INFO,
            "feed_loaded",
            pages=pages,
            pool_size=len(self.pool),
            has_more=has_more,
        )
        return list(self.pool)

    async def refill(self, interest_tags: Sequence[str]) -> int:
        """Fetch one more page and append it to the tail of the pool.

        Returns the number of items appended. A call made while another refill
        is in flight, or after the catalog reported no more pages, is dropped.
        """

        if self._refilling or not self.has_more:
            return 0
        self._refilling = True
        try:
            return await self._fetch_and_append(list(interest_tags))
        finally:
            self._refilling = False

    def maybe_refill(self, interest_tags: Sequence[str]) -> Optional[asyncio.Task]:
        """Schedule a background refill when the undecided count hits the threshold.

        Must be called from a running event loop. The re-entrancy flag is set
        before the task is created so a second trigger in the same tick is dropped.
        """

        if self.remaining > self.refill_threshold or not self.has_more or self._refilling:
            return None
        self._refilling = True
        self._refill_task = asyncio.get_running_loop().create_task(self._background_refill(list(interest_tags)))
        return self._refill_task

    async def _background_refill(self, tags: List[str]) -> int:
        try:
            return await self._fetch_and_append(tags)
        except CatalogFetchFailed:
            return 0
        finally:
            self._refilling = False

    async def _fetch_and_append(self, tags: List[str]) -> int:
        generation = self._generation
        try:
            page = await self.catalog.fetch_page(tags, self.refill_page_size, self.cursor)
        except CatalogFetchFailed as exc:
            self.last_error = exc
            log_event(LOGGER, logging.WARNING, "feed_refill_failed", error=str(exc))
            raise

        if generation != self._generation:
            log_event(LOGGER, logging.INFO, "feed_refill_discarded", reason="pool_reloaded")
            return 0

        pool_ids = {item.item_id for item in self.pool}
        fresh = rank_items(self._filter_page(page.items, pool_ids), self.ledger)
        self.pool.extend(fresh)
        if page.cursor is not None:
            self.cursor = page.cursor
        self.has_more = page.has_more
        self.last_error = None
        log_event(
            LOGGER,
            logging.INFO,
            "refill_completed",
            appended=len(fresh),
            pool_size=len(self.pool),
            has_more=self.has_more,
        )
        return len(fresh)


__all__ = [
    "FeedAssembler",
    "FeedStatus",
    "INITIAL_PAGE_SIZE",
    "REFILL_PAGE_SIZE",
    "REFILL_THRESHOLD",
]
