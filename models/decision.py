"""Swipe decision types shared by the reconciler and the profile store."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from models.item import Item, item_from_record


class Direction(str, Enum):
    PASS = "pass"
    LIKE = "like"


class SubAction(str, Enum):
    NONE = "none"
    SAVE = "save"
    BAG = "bag"


class DecisionSource(str, Enum):
    FEED = "feed"
    SCAN = "scan"


@dataclass(frozen=True)
class DecisionRecord:
    """An undo entry: enough to exactly reverse one decision."""

    item: Item
    direction: Direction
    sub_action: SubAction = SubAction.NONE
    source: DecisionSource = DecisionSource.FEED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item": self.item.to_dict(),
            "direction": self.direction.value,
            "sub_action": self.sub_action.value,
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "DecisionRecord":
        return cls(
            item=item_from_record(None, payload["item"]),
            direction=Direction(payload["direction"]),
            sub_action=SubAction(payload.get("sub_action", SubAction.NONE.value)),
            source=DecisionSource(payload.get("source", DecisionSource.FEED.value)),
        )


__all__ = ["Direction", "SubAction", "DecisionSource", "DecisionRecord"]
