"""Ranks pool items against a room scan and explains each pick."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Collection, Dict, Iterable, List, Sequence

from logic.ledger import TagAffinityLedger
from models.item import Item
from models.room_analysis import RoomAnalysisResult, RoomScanPick

LOGGER = logging.getLogger(__name__)

PICK_LIMIT = 8
FALLBACK_COUNT = 4
MAX_RATIONALE = 3

# Tunable magnitudes; only their relative order matters.
PICK_WEIGHTS: Dict[str, int] = {
    "priority": 100,
    "category_match": 8,
    "tag_match": 3,
    "missing_rug": 25,
    "missing_lamp": 15,
    "missing_plants": 10,
}


@dataclass(frozen=True)
class MissingObjectSignal:
    """Bonus for items that fill a gap the scan found."""

    object_label: str
    weight_key: str
    matches: Callable[[Item], bool]
    rationale: str


def _is_kind(item: Item, category: str, *tags: str) -> bool:
    return item.category == category or any(tag in item.tags for tag in tags)


MISSING_OBJECT_SIGNALS: Sequence[MissingObjectSignal] = (
    MissingObjectSignal(
        "rug",
        "missing_rug",
        lambda item: _is_kind(item, "rugs", "rug", "rugs"),
        "No rug detected. A rug would ground the room and add warmth.",
    ),
    MissingObjectSignal(
        "lamp",
        "missing_lamp",
        lambda item: _is_kind(item, "lighting", "lamp", "lighting"),
        "No lamp detected. Softer light would make the room feel finished.",
    ),
    MissingObjectSignal(
        "potted plant",
        "missing_plants",
        lambda item: _is_kind(item, "plants", "plant", "plants"),
        "No plants detected. Greenery would bring the room to life.",
    ),
)


def _humanise(value: str) -> str:
    return value.replace("_", " ").replace("-", " ")


class _PickScorer:
    def __init__(self, analysis: RoomAnalysisResult, ledger: TagAffinityLedger) -> None:
        self.analysis = analysis
        self.ledger = ledger
        self.categories = set(analysis.recommended_categories)
        self.preferred = analysis.preferred_tags()
        self.gaps = [signal for signal in MISSING_OBJECT_SIGNALS if analysis.missing_object(signal.object_label)]

    def bonus(self, item: Item) -> int:
        """Everything the scan contributes, excluding the ledger score."""

        total = 0
        if item.priority:
            total += PICK_WEIGHTS["priority"]
        if item.category in self.categories:
            total += PICK_WEIGHTS["category_match"]
        total += PICK_WEIGHTS["tag_match"] * len(self.preferred.intersection(item.tags))
        for signal in self.gaps:
            if signal.matches(item):
                total += PICK_WEIGHTS[signal.weight_key]
        return total

    def rationale(self, item: Item) -> List[str]:
        reasons: List[str] = [signal.rationale for signal in self.gaps if signal.matches(item)]
        if item.category in self.categories:
            room = _humanise(self.analysis.room_type) if self.analysis.room_type else "room"
            reasons.append(f"Recommended {_humanise(item.category)} for your {room}.")
        shared = [tag for tag in item.tags if tag in self.preferred]
        if shared:
            reasons.append(f"Matches your {', '.join(_humanise(tag) for tag in shared[:2])} vibe.")
        if self.ledger.score(item) > 0:
            reasons.append("Lines up with styles you have liked.")
        if item.priority:
            reasons.append("Featured in the catalog right now.")
        if not reasons:
            reasons.append(generic_rationale(item))
        return reasons[:MAX_RATIONALE]


def generic_rationale(item: Item) -> str:
    if item.tags:
        return f"A {_humanise(item.category)} pick with a {_humanise(item.tags[0])} feel to round out the space."
    return f"A {_humanise(item.category)} pick to round out the space."


def build_picks(
    pool: Iterable[Item],
    analysis: RoomAnalysisResult,
    ledger: TagAffinityLedger,
    saved_ids: Collection[str] = (),
    limit: int = PICK_LIMIT,
) -> List[RoomScanPick]:
    """Score unsaved pool items for a scan and return the best ``limit`` picks.

    An item ranks on its ledger score plus the scan bonuses in
    :data:`PICK_WEIGHTS`. When no item earns a positive total the first few
    pool items are returned in pool order so the user always sees something.
    """

    items = list(pool)
    candidates = [item for item in items if item.item_id not in saved_ids]
    scorer = _PickScorer(analysis, ledger)

    scored = [(ledger.score(item) + scorer.bonus(item), item) for item in candidates]
    ranked = sorted((entry for entry in scored if entry[0] > 0), key=lambda entry: -entry[0])
    if ranked:
        picks = [
            RoomScanPick(item=item, score=float(score), rationale=scorer.rationale(item))
            for score, item in ranked[:limit]
        ]
    else:
        fallback = candidates or items
        picks = [
            RoomScanPick(item=item, score=float(ledger.score(item)), rationale=scorer.rationale(item))
            for item in fallback[:FALLBACK_COUNT]
        ]
        LOGGER.info("No scan signal matched the pool; falling back to pool order", extra={"count": len(picks)})
    return picks


__all__ = [
    "build_picks",
    "generic_rationale",
    "MISSING_OBJECT_SIGNALS",
    "PICK_LIMIT",
    "PICK_WEIGHTS",
]
