"""Room scan data model."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from models.item import Item


@dataclass(frozen=True)
class Detection:
    """One object detected in a room photo."""

    label: str
    confidence: float


@dataclass(frozen=True)
class Classification:
    """One whole-image label from the scene classifier."""

    label: str
    confidence: float = 0.0


@dataclass(frozen=True)
class ProductIdea:
    """A generic shopping suggestion derived from a scan."""

    title: str
    category: str
    search_keywords: List[str]
    why: str


@dataclass
class RoomAnalysisResult:
    """Structured output of a single room scan."""

    room_type: Optional[str] = None
    palette: List[str] = field(default_factory=list)
    objects: List[str] = field(default_factory=list)
    vibe_tags: List[str] = field(default_factory=list)
    recommended_categories: List[str] = field(default_factory=list)
    recommended_tags: List[str] = field(default_factory=list)
    avoid_tags: List[str] = field(default_factory=list)
    summary: str = ""
    product_ideas: List[ProductIdea] = field(default_factory=list)
    scene_labels: List[str] = field(default_factory=list)
    image_analyzed: bool = False

    def has_object(self, label: str) -> bool:
        return label in self.objects

    def missing_object(self, label: str) -> bool:
        """True only when a photo was analysed and ``label`` was not found in it."""

        return self.image_analyzed and label not in self.objects

    def preferred_tags(self) -> set[str]:
        """Recommended and vibe tags together, as the pick builder matches them."""

        return set(self.recommended_tags) | set(self.vibe_tags)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RoomScanPick:
    """An item surfaced for a scan with the reasons it was chosen."""

    item: Item
    score: float
    rationale: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"item": self.item.to_dict(), "score": self.score, "rationale": list(self.rationale)}


__all__ = [
    "Detection",
    "Classification",
    "ProductIdea",
    "RoomAnalysisResult",
    "RoomScanPick",
]
