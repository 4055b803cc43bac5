"""Tracks item ids the user has already decided on."""

from __future__ import annotations

from typing import Iterable

from memory.profile import Profile


class CandidateDeduplicator:
    """Set membership over the profile's decided item ids."""

    def __init__(self, profile: Profile) -> None:
        self.profile = profile

    def seen(self, item_id: str) -> bool:
        return item_id in self.profile.seen_ids

    def mark(self, item_id: str) -> None:
        self.profile.seen_ids.add(item_id)

    def unmark(self, item_id: str) -> None:
        self.profile.seen_ids.discard(item_id)

    def mark_many(self, item_ids: Iterable[str]) -> None:
        self.profile.seen_ids.update(item_ids)

    def __len__(self) -> int:
        return len(self.profile.seen_ids)


__all__ = ["CandidateDeduplicator"]
