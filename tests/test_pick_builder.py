"""Scan pick builder scoring, fallback and rationale tests."""

from __future__ import annotations

from logic.ledger import TagAffinityLedger
from logic.pick_builder import FALLBACK_COUNT, PICK_LIMIT, PICK_WEIGHTS, build_picks
from models.room_analysis import RoomAnalysisResult


def _bedroom_scan() -> RoomAnalysisResult:
    return RoomAnalysisResult(
        room_type="bedroom",
        palette=["#20a0a0"],
        objects=["bed", "lamp", "potted plant"],
        vibe_tags=["cozy"],
        recommended_categories=["bedding", "rugs"],
        recommended_tags=["bedroom", "add-rug"],
        image_analyzed=True,
    )


def test_missing_rug_bonus_and_rationale(profile, make_item) -> None:
    ledger = TagAffinityLedger(profile)
    rug = make_item("rug-1", tags=["neutral"], category="rugs")
    chair = make_item("chair-1", tags=["cozy"], category="seating")

    picks = build_picks([chair, rug], _bedroom_scan(), ledger)

    assert [pick.item.item_id for pick in picks] == ["rug-1", "chair-1"]
    top = picks[0]
    assert top.score == PICK_WEIGHTS["missing_rug"] + PICK_WEIGHTS["category_match"]
    assert "No rug detected" in top.rationale[0]
    assert len(top.rationale) <= 3


def test_no_missing_rug_bonus_without_a_photo(profile, make_item) -> None:
    ledger = TagAffinityLedger(profile)
    rug = make_item("rug-1", tags=["neutral"], category="rugs")
    scan = RoomAnalysisResult(recommended_categories=["rugs"])

    picks = build_picks([rug], scan, ledger)

    assert picks[0].score == PICK_WEIGHTS["category_match"]
    assert not any("No rug detected" in line for line in picks[0].rationale)


def test_priority_and_ledger_feed_the_score(profile, make_item) -> None:
    ledger = TagAffinityLedger(profile)
    ledger.adjust_tags(["velvet"], 4)
    featured = make_item("featured", tags=["plain"], priority=True)
    liked = make_item("liked", tags=["velvet"])

    picks = build_picks([liked, featured], _bedroom_scan(), ledger)

    assert [pick.item.item_id for pick in picks] == ["featured", "liked"]
    assert picks[1].score == 4
    assert picks[1].rationale == ["Lines up with styles you have liked."]


def test_saved_items_are_skipped_and_limit_applies(profile, make_item) -> None:
    ledger = TagAffinityLedger(profile)
    pool = [make_item(f"cozy-{index}", tags=["cozy"]) for index in range(PICK_LIMIT + 3)]

    picks = build_picks(pool, _bedroom_scan(), ledger, saved_ids={"cozy-0"})

    assert len(picks) == PICK_LIMIT
    assert "cozy-0" not in {pick.item.item_id for pick in picks}
    assert picks[0].item.item_id == "cozy-1"


def test_falls_back_to_pool_order_when_nothing_scores(profile, make_item) -> None:
    ledger = TagAffinityLedger(profile)
    pool = [make_item(f"plain-{index}", tags=["plain"], category="tables") for index in range(6)]

    picks = build_picks(pool, RoomAnalysisResult(), ledger)

    assert [pick.item.item_id for pick in picks] == [f"plain-{index}" for index in range(FALLBACK_COUNT)]
    assert picks[0].rationale == ["A tables pick with a plain feel to round out the space."]


def test_fallback_uses_saved_items_rather_than_nothing(profile, make_item) -> None:
    ledger = TagAffinityLedger(profile)
    pool = [make_item("only", tags=["plain"])]

    picks = build_picks(pool, RoomAnalysisResult(), ledger, saved_ids={"only"})

    assert [pick.item.item_id for pick in picks] == ["only"]


def test_empty_pool_returns_no_picks(profile) -> None:
    assert build_picks([], _bedroom_scan(), TagAffinityLedger(profile)) == []
