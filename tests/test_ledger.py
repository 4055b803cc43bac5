"""Tag affinity ledger, dedup set and ranking tests."""

from __future__ import annotations

import logging

import pytest

from logic.dedup import CandidateDeduplicator
from logic.ledger import (
    LIKE_DELTA,
    PASS_DELTA,
    UNDO_LIKE_DELTA,
    UNDO_PASS_DELTA,
    TagAffinityLedger,
    match_percent_for_score,
)
from logic.ranking import rank_items
from memory.profile import Profile
from memory.profile_store import PersistenceWriteFailed, SQLiteProfileStore


@pytest.mark.parametrize(("delta", "inverse"), [(PASS_DELTA, UNDO_PASS_DELTA), (LIKE_DELTA, UNDO_LIKE_DELTA)])
def test_adjust_then_inverse_restores_scores(profile, make_item, delta, inverse) -> None:
    ledger = TagAffinityLedger(profile)
    ledger.adjust_tags(["cozy"], 4)
    item = make_item("a", tags=["cozy", "rug", "warm"])
    before = {tag: ledger.tag_score(tag) for tag in item.tags}

    ledger.adjust(item, delta)
    ledger.adjust(item, inverse)

    assert {tag: ledger.tag_score(tag) for tag in item.tags} == before


def test_score_sums_tags_and_unknown_tags_read_zero(profile, make_item) -> None:
    ledger = TagAffinityLedger(profile)
    ledger.adjust_tags(["cozy", "rug"], 2)
    ledger.adjust_tags(["rug"], -5)

    assert ledger.score(make_item("a", tags=["cozy", "rug"])) == -1
    assert ledger.score(make_item("b", tags=["never-seen"])) == 0
    assert ledger.score(make_item("c")) == 0


@pytest.mark.parametrize("score", [-10_000, -6, -5, 0, 1, 8, 9, 10_000])
def test_match_percent_is_bounded(score) -> None:
    assert 60 <= match_percent_for_score(score) <= 99


def test_match_percent_is_monotonic() -> None:
    values = [match_percent_for_score(score) for score in range(-20, 21)]
    assert values == sorted(values)
    assert match_percent_for_score(0) == 75
    assert match_percent_for_score(-2) == 69


def test_top_tags_by_sign_and_filter(profile) -> None:
    ledger = TagAffinityLedger(profile)
    ledger.adjust_tags(["cozy"], 3)
    ledger.adjust_tags(["modern"], 1)
    ledger.adjust_tags(["bedroom"], 2)
    ledger.adjust_tags(["cluttered"], -4)

    assert ledger.top_tags(1) == ["cozy", "bedroom", "modern"]
    assert ledger.top_tags(1, only={"cozy", "modern"}) == ["cozy", "modern"]
    assert ledger.top_tags(-1) == ["cluttered"]


def test_ledger_survives_storage_round_trip(tmp_path) -> None:
    store = SQLiteProfileStore(tmp_path / "profiles.db")
    profile = Profile(user_id="user-9")
    ledger = TagAffinityLedger(profile, store=store)
    ledger.adjust_tags(["cozy", "rug"], 2)
    ledger.adjust_tags(["rug", "neon"], -3)

    reloaded = store.load_profile("user-9")

    assert reloaded is not None
    restored = TagAffinityLedger(reloaded)
    for tag in ("cozy", "rug", "neon"):
        assert restored.tag_score(tag) == ledger.tag_score(tag)


class _FailingStore:
    def set_value(self, user_id, key, value):
        raise PersistenceWriteFailed("disk full")


def test_persist_failure_is_logged_and_memory_stays_authoritative(profile, make_item, caplog) -> None:
    ledger = TagAffinityLedger(profile, store=_FailingStore())

    with caplog.at_level(logging.WARNING):
        ledger.adjust(make_item("a", tags=["cozy"]), LIKE_DELTA)

    assert ledger.tag_score("cozy") == 2
    assert any(record.getMessage() == "ledger_persist_failed" for record in caplog.records)


def test_dedup_mark_and_unmark(profile) -> None:
    dedup = CandidateDeduplicator(profile)

    dedup.mark("sku-1")
    assert dedup.seen("sku-1")
    dedup.unmark("sku-1")
    assert not dedup.seen("sku-1")
    dedup.unmark("never-marked")
    assert len(dedup) == 0


def test_ranking_puts_priority_first_then_score_and_is_stable(profile, make_item) -> None:
    ledger = TagAffinityLedger(profile)
    ledger.adjust_tags(["cozy"], 3)
    items = [
        make_item("tie-1", tags=["plain"]),
        make_item("liked", tags=["cozy"]),
        make_item("tie-2", tags=["plain"]),
        make_item("sponsored", tags=["plain"], priority=True),
        make_item("tie-3", tags=["other"]),
    ]

    ranked = [item.item_id for item in rank_items(items, ledger)]

    assert ranked == ["sponsored", "liked", "tie-1", "tie-2", "tie-3"]


def test_scenario_pass_then_undo_restores_zero_scores(engine, make_item) -> None:
    ledger, dedup, assembler, reconciler = engine
    assembler.pool = [make_item("rug-1", tags=["cozy", "rug"])]

    reconciler.decide("pass")
    assert ledger.snapshot() == {"cozy": -1, "rug": -1}
    # Each tag contributes -1, so the item scores -2 and a single-tag item -1.
    assert ledger.match_percent(assembler.pool[0]) == 69
    assert ledger.match_percent(make_item("cozy-only", tags=["cozy"])) == 72

    reconciler.undo()
    assert ledger.snapshot() == {"cozy": 0, "rug": 0}
    assert not dedup.seen("rug-1")
    assert assembler.index == 0
