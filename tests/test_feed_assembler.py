"""Feed assembler paging, filtering and refill tests."""

from __future__ import annotations

import asyncio
from typing import List, Optional

import pytest

from logic.dedup import CandidateDeduplicator
from logic.feed_assembler import FeedAssembler, FeedStatus
from logic.ledger import TagAffinityLedger
from logic.reconciler import SwipeReconciler
from memory.profile import Profile
from models.item import Item
from tools.catalog_client import CatalogClient, CatalogFetchFailed, CatalogPage, InMemoryCatalog


def _items(*ids: str, tags=None) -> List[Item]:
    return [Item(item_id=item_id, name=item_id, tags=list(tags or ["cozy"])) for item_id in ids]


class ScriptedCatalog(CatalogClient):
    """Serves pre-baked pages (or raises pre-baked errors) in order."""

    def __init__(self, script, gate: Optional[asyncio.Event] = None, gate_after: int = 0) -> None:
        self.script = list(script)
        self.calls: List[tuple] = []
        self.gate = gate
        self.gate_after = gate_after

    async def fetch_page(self, tags, page_size, cursor=None) -> CatalogPage:
        self.calls.append((list(tags), page_size, cursor))
        if self.gate is not None and len(self.calls) > self.gate_after:
            await self.gate.wait()
        if not self.script:
            return CatalogPage(items=[], cursor=None, has_more=False)
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step


def _assembler(catalog: CatalogClient, profile: Optional[Profile] = None, **kwargs) -> FeedAssembler:
    profile = profile or Profile(user_id="feed-user")
    ledger = TagAffinityLedger(profile)
    return FeedAssembler(catalog, ledger, CandidateDeduplicator(profile), profile, **kwargs)


def test_load_initial_pages_until_exhausted_without_duplicates() -> None:
    catalog = ScriptedCatalog(
        [
            CatalogPage(items=_items("a", "b", "c"), cursor="c", has_more=True),
            CatalogPage(items=_items("c", "d", "a"), cursor="d", has_more=True),
            CatalogPage(items=_items("e"), cursor="e", has_more=False),
        ]
    )
    assembler = _assembler(catalog)

    pool = asyncio.run(assembler.load_initial(["rugs"]))

    ids = [item.item_id for item in pool]
    assert ids == ["a", "b", "c", "d", "e"]
    assert len(ids) == len(set(ids))
    assert [call[2] for call in catalog.calls] == [None, "c", "d"]
    assert assembler.status is FeedStatus.READY
    assert assembler.has_more is False


def test_load_initial_filters_seen_and_blocked_items() -> None:
    profile = Profile(user_id="feed-user", seen_ids={"b"}, blocked_tags={"neon"})
    page_items = _items("a", "b") + _items("c", tags=["neon", "bold"]) + _items("d")
    assembler = _assembler(ScriptedCatalog([CatalogPage(items=page_items, has_more=False)]), profile)

    pool = asyncio.run(assembler.load_initial([]))

    assert [item.item_id for item in pool] == ["a", "d"]


def test_load_initial_ranks_once_at_the_end() -> None:
    profile = Profile(user_id="feed-user", tag_scores={"modern": 3})
    page_one = _items("a", "b")
    page_two = _items("c", tags=["modern"]) + [Item(item_id="d", name="d", tags=["cozy"], priority=True)]
    catalog = ScriptedCatalog(
        [CatalogPage(items=page_one, cursor="b", has_more=True), CatalogPage(items=page_two, has_more=False)]
    )
    assembler = _assembler(catalog, profile)

    pool = asyncio.run(assembler.load_initial([]))

    assert [item.item_id for item in pool] == ["d", "c", "a", "b"]


def test_load_initial_stops_at_safety_cap_for_empty_pages() -> None:
    catalog = ScriptedCatalog([CatalogPage(items=[], cursor=None, has_more=True) for _ in range(50)])
    assembler = _assembler(catalog, max_initial_pages=4)

    pool = asyncio.run(assembler.load_initial([]))

    assert pool == []
    assert len(catalog.calls) == 4


def test_load_failure_leaves_previous_pool_and_cursor() -> None:
    catalog = ScriptedCatalog(
        [
            CatalogPage(items=_items("a", "b"), cursor="b", has_more=True),
            CatalogFetchFailed("boom"),
        ]
    )
    assembler = _assembler(catalog, max_initial_pages=1)
    asyncio.run(assembler.load_initial([]))
    assembler.advance()

    with pytest.raises(CatalogFetchFailed):
        asyncio.run(assembler.load_initial([]))

    assert [item.item_id for item in assembler.pool] == ["a", "b"]
    assert assembler.cursor == "b"
    assert assembler.index == 1
    assert assembler.status is FeedStatus.ERROR
    assert isinstance(assembler.last_error, CatalogFetchFailed)


def test_refill_appends_to_tail_and_keeps_cursor_when_page_has_none() -> None:
    profile = Profile(user_id="feed-user")
    catalog = ScriptedCatalog(
        [
            CatalogPage(items=_items("a", "b"), cursor="b", has_more=True),
            CatalogPage(items=_items("b", "x", tags=["modern"]), cursor=None, has_more=True),
        ]
    )
    assembler = _assembler(catalog, profile, max_initial_pages=1)
    asyncio.run(assembler.load_initial([]))
    profile.tag_scores["modern"] = 10

    appended = asyncio.run(assembler.refill([]))

    assert appended == 1
    assert [item.item_id for item in assembler.pool] == ["a", "b", "x"]
    assert assembler.cursor == "b"


def test_refill_is_skipped_once_catalog_is_exhausted() -> None:
    catalog = ScriptedCatalog([CatalogPage(items=_items("a"), has_more=False)])
    assembler = _assembler(catalog)
    asyncio.run(assembler.load_initial([]))

    assert asyncio.run(assembler.refill([])) == 0
    assert len(catalog.calls) == 1


def test_refill_failure_keeps_pool_and_reports_error() -> None:
    catalog = ScriptedCatalog(
        [CatalogPage(items=_items("a"), cursor="a", has_more=True), CatalogFetchFailed("offline")]
    )
    assembler = _assembler(catalog, max_initial_pages=1)
    asyncio.run(assembler.load_initial([]))

    with pytest.raises(CatalogFetchFailed):
        asyncio.run(assembler.refill([]))

    assert [item.item_id for item in assembler.pool] == ["a"]
    assert assembler.cursor == "a"
    assert assembler.refill_in_flight is False
    assert str(assembler.last_error) == "offline"


def test_refill_triggers_once_at_threshold_and_drops_reentrant_calls() -> None:
    async def scenario() -> None:
        gate = asyncio.Event()
        catalog = ScriptedCatalog(
            [
                CatalogPage(items=_items(*[f"p{i}" for i in range(6)]), cursor="p5", has_more=True),
                CatalogPage(items=_items("q0", "q1", "q2", "q3"), cursor="q3", has_more=False),
            ],
            gate=gate,
            gate_after=1,
        )
        profile = Profile(user_id="feed-user")
        assembler = _assembler(catalog, profile, max_initial_pages=1, refill_threshold=5)
        triggered = []
        reconciler = SwipeReconciler(
            profile,
            assembler.ledger,
            assembler.dedup,
            assembler,
            on_advance=lambda: triggered.append(assembler.maybe_refill([])),
        )
        await assembler.load_initial([])
        assert assembler.remaining == 6

        reconciler.decide("pass")
        assert assembler.remaining == 5
        assert assembler.refill_in_flight
        await asyncio.sleep(0)

        reconciler.decide("pass")
        await asyncio.sleep(0)

        assert len(catalog.calls) == 2
        assert triggered[1] is None

        gate.set()
        appended = await triggered[0]

        assert appended == 4
        assert len(assembler.pool) == 10
        assert not assembler.refill_in_flight
        ids = [item.item_id for item in assembler.pool]
        assert len(ids) == len(set(ids))

    asyncio.run(scenario())


def test_reload_discards_refill_started_for_previous_pool() -> None:
    async def scenario() -> None:
        gate = asyncio.Event()
        catalog = ScriptedCatalog(
            [
                CatalogPage(items=_items("a", "b"), cursor="b", has_more=True),
                CatalogPage(items=_items("stale"), cursor="stale", has_more=True),
            ],
            gate=gate,
            gate_after=1,
        )
        assembler = _assembler(catalog, max_initial_pages=1, refill_threshold=5)
        await assembler.load_initial([])

        task = assembler.maybe_refill([])
        await asyncio.sleep(0)
        assembler.clear()
        gate.set()

        assert await task == 0
        assert assembler.pool == []

    asyncio.run(scenario())


def test_in_memory_catalog_pages_by_id_and_filters_tags(numbered_items) -> None:
    catalog = InMemoryCatalog(numbered_items)

    first = asyncio.run(catalog.fetch_page(["cozy"], 3))
    second = asyncio.run(catalog.fetch_page(["cozy"], 3, first.cursor))

    assert [item.item_id for item in first.items] == ["item-01", "item-03", "item-05"]
    assert [item.item_id for item in second.items] == ["item-07", "item-09", "item-11"]
    assert first.has_more is True
