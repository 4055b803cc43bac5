"""Taste persona derived from the tag affinity ledger."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple

from logic.ledger import TagAffinityLedger
from models.taxonomy import INTEREST_IDS, ROOM_TAGS, VIBE_TAGS

# First positive vibe in this order names the persona.
VIBE_PERSONAS: Tuple[Tuple[str, str], ...] = (
    ("minimal", "Minimalist"),
    ("cozy", "Cozy Homebody"),
    ("modern", "Modern Curator"),
    ("neutral", "Neutral Aesthetic"),
    ("bold", "Bold Curator"),
    ("warm", "Warm & Inviting"),
    ("cool", "Cool & Clean"),
)
DEVELOPING_PERSONA = "Style Developing"
NEW_PERSONA = "New Explorer"


@dataclass
class TastePersona:
    detected_vibe: str = NEW_PERSONA
    style_keywords: List[str] = field(default_factory=list)
    disliked_features: List[str] = field(default_factory=list)
    liked_tags: List[str] = field(default_factory=list)
    avoided_tags: List[str] = field(default_factory=list)
    top_rooms: List[str] = field(default_factory=list)
    top_categories: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def detect_vibe(positive_vibes: List[str], has_positive: bool) -> str:
    for tag, persona in VIBE_PERSONAS:
        if tag in positive_vibes:
            return persona
    return DEVELOPING_PERSONA if has_positive else NEW_PERSONA


def derive_persona(ledger: TagAffinityLedger) -> TastePersona:
    """Summarise the ledger into the profile card shown to the user."""

    positive_vibes = ledger.top_tags(1, limit=6, only=VIBE_TAGS)
    liked = ledger.top_tags(1, limit=5)
    return TastePersona(
        detected_vibe=detect_vibe(positive_vibes, bool(liked)),
        style_keywords=positive_vibes,
        disliked_features=ledger.top_tags(-1, limit=6, only=VIBE_TAGS),
        liked_tags=liked,
        avoided_tags=ledger.top_tags(-1, limit=5),
        top_rooms=ledger.top_tags(1, limit=4, only=ROOM_TAGS),
        top_categories=ledger.top_tags(1, limit=5, only=INTEREST_IDS),
    )


__all__ = ["TastePersona", "derive_persona", "detect_vibe", "VIBE_PERSONAS"]
