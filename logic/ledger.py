"""Tag affinity ledger: running signed scores per tag."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from memory.profile import Profile
from memory.profile_store import PersistenceWriteFailed, ProfileStore
from models.item import Item
from swipe_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)

PASS_DELTA = -1
LIKE_DELTA = 2
UNDO_PASS_DELTA = -PASS_DELTA
UNDO_LIKE_DELTA = -LIKE_DELTA
SCAN_BOOST_DELTA = 1
SCAN_AVOID_DELTA = -1

MATCH_BASE = 75
MATCH_STEP = 3
MATCH_MIN = 60
MATCH_MAX = 99

LEDGER_KEY = "tag_scores"


def match_percent_for_score(score: int) -> int:
    """Map a ledger score onto the bounded, cosmetic match percentage."""

    pct = MATCH_BASE + MATCH_STEP * score
    return int(round(max(MATCH_MIN, min(MATCH_MAX, pct))))


class TagAffinityLedger:
    """Integer score per tag, persisted after every adjustment.

    Scores are plain sums of every delta ever applied. There is no decay or
    normalisation; a score only returns to zero when its adjustments cancel.
    """

    def __init__(self, profile: Profile, store: Optional[ProfileStore] = None) -> None:
        self.profile = profile
        self.store = store

    @property
    def scores(self) -> Dict[str, int]:
        return self.profile.tag_scores

    def adjust(self, item: Item, delta: int) -> None:
        """Add ``delta`` to every tag on ``item`` and persist the whole map."""

        self.adjust_tags(item.tags, delta)

    def adjust_tags(self, tags: Iterable[str], delta: int) -> None:
        touched = False
        for tag in tags:
            self.scores[tag] = self.scores.get(tag, 0) + delta
            touched = True
        if touched:
            self._persist()

    def tag_score(self, tag: str) -> int:
        return self.scores.get(tag, 0)

    def score(self, item: Item) -> int:
        return self.score_tags(item.tags)

    def score_tags(self, tags: Iterable[str]) -> int:
        return sum(self.scores.get(tag, 0) for tag in tags)

    def match_percent(self, item: Item) -> int:
        return match_percent_for_score(self.score(item))

    def top_tags(self, sign: int, limit: int = 5, only: Optional[Iterable[str]] = None) -> List[str]:
        """Return the strongest positive (``sign=1``) or negative (``sign=-1``) tags."""

        allowed = set(only) if only is not None else None
        entries = [
            (tag, score)
            for tag, score in self.scores.items()
            if (score > 0 if sign > 0 else score < 0) and (allowed is None or tag in allowed)
        ]
        entries.sort(key=lambda entry: -entry[1] if sign > 0 else entry[1])
        return [tag for tag, _ in entries[:limit]]

    def reset(self) -> None:
        self.scores.clear()
        self._persist()

    def snapshot(self) -> Dict[str, int]:
        return dict(self.scores)

    def _persist(self) -> None:
        if self.store is None:
            return
        try:
            self.store.set_value(self.profile.user_id, LEDGER_KEY, self.snapshot())
        except PersistenceWriteFailed as exc:
            log_event(
                LOGGER,
                logging.WARNING,
                "ledger_persist_failed",
                user_id=self.profile.user_id,
                error=str(exc),
            )


__all__ = [
    "TagAffinityLedger",
    "match_percent_for_score",
    "PASS_DELTA",
    "LIKE_DELTA",
    "UNDO_PASS_DELTA",
    "UNDO_LIKE_DELTA",
    "SCAN_BOOST_DELTA",
    "SCAN_AVOID_DELTA",
]
