"""Canonical taxonomy definitions for catalog items and taste tags.

This module centralises the labels shared by the feed, the persona summary and
the room scan rules: interest ids (which double as catalog categories), vibe
tags, room tags and the aliases used to fold free-form catalog categories onto
the canonical set.
"""

import re
from typing import Dict, Iterable, List

INTEREST_IDS: List[str] = [
    "rugs",
    "lighting",
    "wall_art",
    "seating",
    "tables",
    "bedding",
    "storage",
    "mirrors",
    "plants",
    "kitchen_decor",
]

INTEREST_LABELS: Dict[str, str] = {
    "rugs": "Rugs",
    "lighting": "Lighting",
    "wall_art": "Wall Art",
    "seating": "Seating",
    "tables": "Tables",
    "bedding": "Bedding",
    "storage": "Storage",
    "mirrors": "Mirrors",
    "plants": "Plants",
    "kitchen_decor": "Kitchen Decor",
}

VIBE_TAGS = {"cozy", "neutral", "modern", "minimal", "bold", "warm", "cool"}
ROOM_TAGS = {"entryway", "living_room", "bedroom", "kitchen", "dining_room", "bathroom"}

# Remote store "contains any" queries accept at most this many values.
MAX_FILTER_TAGS = 10

CATEGORY_ALIASES: Dict[str, str] = {
    "rug": "rugs",
    "area_rug": "rugs",
    "lamp": "lighting",
    "lamps": "lighting",
    "light": "lighting",
    "art": "wall_art",
    "wall_decor": "wall_art",
    "mirror": "mirrors",
    "plant": "plants",
    "chair": "seating",
    "chairs": "seating",
    "sofa": "seating",
    "table": "tables",
    "bed": "bedding",
    "organizer": "storage",
    "organizers": "storage",
}

_WHITESPACE = re.compile(r"\s+")


def normalise_tag(value: str) -> str:
    """Normalise a free-form tag into its canonical key."""

    return _WHITESPACE.sub("_", value.strip().lower())


def normalise_category(value: str) -> str:
    """Map a catalog category onto the canonical interest id when one exists."""

    key = normalise_tag(value or "")
    return CATEGORY_ALIASES.get(key, key)


def normalise_tags(values: Iterable[str], allowed: Iterable[str] | None = None) -> List[str]:
    """Normalise and deduplicate tags, optionally against an allowed set."""

    allowed_set = set(allowed) if allowed is not None else None
    normalised = []
    seen = set()
    for value in values:
        key = normalise_tag(str(value))
        if not key or key in seen:
            continue
        if allowed_set is not None and key not in allowed_set:
            continue
        normalised.append(key)
        seen.add(key)
    return normalised


def is_vibe_tag(tag: str) -> bool:
    return tag in VIBE_TAGS


def is_room_tag(tag: str) -> bool:
    return tag in ROOM_TAGS


def is_interest_id(tag: str) -> bool:
    return tag in INTEREST_LABELS


__all__ = [
    "INTEREST_IDS",
    "INTEREST_LABELS",
    "VIBE_TAGS",
    "ROOM_TAGS",
    "MAX_FILTER_TAGS",
    "CATEGORY_ALIASES",
    "normalise_tag",
    "normalise_category",
    "normalise_tags",
    "is_vibe_tag",
    "is_room_tag",
    "is_interest_id",
]
