"""The per-user Profile aggregate owned by a session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

from models.decision import DecisionRecord
from models.item import Item, item_from_record


@dataclass
class Profile:
    """Everything the engine learns about one user.

    The ledger, deduplicator and reconciler all hold a reference to the same
    Profile instead of sharing module-level state.
    """

    user_id: str
    tag_scores: Dict[str, int] = field(default_factory=dict)
    seen_ids: Set[str] = field(default_factory=set)
    blocked_tags: Set[str] = field(default_factory=set)
    interests: List[str] = field(default_factory=list)
    wishlist: List[Item] = field(default_factory=list)
    cart: List[Item] = field(default_factory=list)
    undo_stack: List[DecisionRecord] = field(default_factory=list)

    def reset(self) -> None:
        """Clear every learned signal while keeping the user id."""

        self.tag_scores.clear()
        self.seen_ids.clear()
        self.blocked_tags.clear()
        self.interests.clear()
        self.wishlist.clear()
        self.cart.clear()
        self.undo_stack.clear()

    def saved_ids(self) -> Set[str]:
        return {item.item_id for item in self.wishlist} | {item.item_id for item in self.cart}

    def to_dict(self, include_undo: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "user_id": self.user_id,
            "tag_scores": dict(self.tag_scores),
            "seen_ids": sorted(self.seen_ids),
            "blocked_tags": sorted(self.blocked_tags),
            "interests": list(self.interests),
            "wishlist": [item.to_dict() for item in self.wishlist],
            "cart": [item.to_dict() for item in self.cart],
        }
        if include_undo:
            payload["undo_stack"] = [record.to_dict() for record in self.undo_stack]
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Profile":
        return cls(
            user_id=str(payload["user_id"]),
            tag_scores={str(tag): int(score) for tag, score in (payload.get("tag_scores") or {}).items()},
            seen_ids=set(payload.get("seen_ids") or []),
            blocked_tags=set(payload.get("blocked_tags") or []),
            interests=list(payload.get("interests") or []),
            wishlist=[item_from_record(None, raw) for raw in payload.get("wishlist") or []],
            cart=[item_from_record(None, raw) for raw in payload.get("cart") or []],
            undo_stack=[DecisionRecord.from_dict(raw) for raw in payload.get("undo_stack") or []],
        )


__all__ = ["Profile"]
