"""Deterministic feed ordering."""

from __future__ import annotations

from typing import List, Sequence

from logic.ledger import TagAffinityLedger
from models.item import Item


def rank_items(items: Sequence[Item], ledger: TagAffinityLedger) -> List[Item]:
    """Order items by priority flag, then ledger score, both descending.

    ``sorted`` is stable, so items that tie on both keys keep their input order.
    The match percentage is never consulted here.
    """

    return sorted(items, key=lambda item: (not item.priority, -ledger.score(item)))


__all__ = ["rank_items"]
