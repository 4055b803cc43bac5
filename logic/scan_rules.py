"""Ordered rule tables for room scan inference.

Each table is evaluated top to bottom; the first room-type rule that fires
wins, while the tag/category tables collect every value whose rule fires,
deduplicated in table order. Rules that react to a *missing* object only fire
when a photo was actually analysed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from models.palette import palette_traits
from models.room_analysis import ProductIdea


@dataclass(frozen=True)
class ScanSignals:
    """Everything the rules may look at for one scan."""

    objects: FrozenSet[str] = frozenset()
    palette: Tuple[str, ...] = ()
    text: str = ""
    has_image: bool = False

    @classmethod
    def build(cls, objects: Iterable[str], palette: Sequence[str], text: str | None, has_image: bool) -> "ScanSignals":
        return cls(
            objects=frozenset(objects),
            palette=tuple(palette),
            text=(text or "").strip().lower(),
            has_image=has_image,
        )

    def has(self, *labels: str) -> bool:
        return any(label in self.objects for label in labels)

    def lacks(self, label: str) -> bool:
        return self.has_image and label not in self.objects

    def mentions(self, *phrases: str) -> bool:
        return any(re.search(rf"\b{re.escape(phrase)}\b", self.text) for phrase in phrases)


Predicate = Callable[[ScanSignals], bool]


@dataclass(frozen=True)
class Rule:
    name: str
    when: Predicate
    values: Tuple[str, ...] = field(default_factory=tuple)


def first_match(rules: Sequence[Rule], signals: ScanSignals) -> Optional[str]:
    for rule in rules:
        if rule.when(signals):
            return rule.values[0]
    return None


def collect(rules: Sequence[Rule], signals: ScanSignals) -> List[str]:
    values: List[str] = []
    for rule in rules:
        if not rule.when(signals):
            continue
        for value in rule.values:
            if value not in values:
                values.append(value)
    return values


def merge_unique(*groups: Iterable[str]) -> List[str]:
    merged: List[str] = []
    for group in groups:
        for value in group:
            if value not in merged:
                merged.append(value)
    return merged


ROOM_TYPE_RULES: Tuple[Rule, ...] = (
    Rule("bed_means_bedroom", lambda s: s.has("bed"), ("bedroom",)),
    Rule("sofa_means_living_room", lambda s: s.has("couch", "sofa"), ("living_room",)),
    Rule("dining_table_means_dining_room", lambda s: s.has("dining table"), ("dining_room",)),
    Rule("fixtures_mean_bathroom", lambda s: s.has("toilet", "sink"), ("bathroom",)),
)

OBJECT_CATEGORY_RULES: Tuple[Rule, ...] = (
    Rule("bed_needs_bedding", lambda s: s.has("bed"), ("bedding",)),
    Rule("seating_present", lambda s: s.has("couch", "sofa", "chair"), ("seating",)),
    Rule("tables_present", lambda s: s.has("dining table", "table"), ("tables",)),
    Rule("plants_present", lambda s: s.has("potted plant"), ("plants",)),
    Rule("lamp_present", lambda s: s.has("lamp"), ("lighting",)),
    Rule("missing_rug", lambda s: s.lacks("rug"), ("rugs",)),
)

TEXT_CATEGORY_RULES: Tuple[Rule, ...] = (
    Rule("mentions_storage", lambda s: s.mentions("storage"), ("storage",)),
    Rule("mentions_mirror", lambda s: s.mentions("mirror", "mirrors"), ("mirrors",)),
    Rule("mentions_art", lambda s: s.mentions("art", "wall art"), ("wall_art",)),
)

OBJECT_TAG_RULES: Tuple[Rule, ...] = (
    Rule("bed_textures", lambda s: s.has("bed"), ("cozy", "textured", "throw-pillows")),
    Rule("lamp_warm_lighting", lambda s: s.has("lamp"), ("warm-lighting",)),
    Rule("missing_rug_tag", lambda s: s.lacks("rug"), ("add-rug",)),
    Rule("missing_plants_tag", lambda s: s.lacks("potted plant"), ("add-plants",)),
    Rule("bare_walls_tag", lambda s: s.lacks("wall art"), ("wall-art",)),
)

TEXT_TAG_RULES: Tuple[Rule, ...] = (
    Rule("mentions_cozy", lambda s: s.mentions("cozy", "cosy"), ("cozy",)),
    Rule("mentions_fun", lambda s: s.mentions("fun", "cool"), ("statement-piece", "led-lights")),
)

PALETTE_VIBE_RULES: Tuple[Rule, ...] = (
    Rule("dark_red_channel", lambda s: palette_traits(s.palette).has_cool, ("cool",)),
    Rule("bright_red_channel", lambda s: palette_traits(s.palette).has_bright, ("bright",)),
    Rule("mid_red_channel", lambda s: palette_traits(s.palette).has_neutral, ("neutral",)),
    Rule("teal_palette", lambda s: palette_traits(s.palette).has_teal, ("teal", "modern")),
)

TEXT_VIBE_RULES: Tuple[Rule, ...] = (
    Rule("text_cozy", lambda s: s.mentions("cozy", "cosy"), ("cozy",)),
    Rule("text_minimal", lambda s: s.mentions("minimal", "minimalist"), ("minimal",)),
    Rule("text_modern", lambda s: s.mentions("modern"), ("modern",)),
    Rule("text_warm", lambda s: s.mentions("warm"), ("warm",)),
    Rule("text_bold", lambda s: s.mentions("bold"), ("bold",)),
)

AVOID_RULES: Tuple[Rule, ...] = (
    Rule("no_clutter", lambda s: s.mentions("no clutter", "declutter"), ("cluttered",)),
    Rule("no_black", lambda s: s.mentions("no black"), ("black-heavy",)),
)


@dataclass(frozen=True)
class IdeaRule:
    name: str
    when: Callable[[ScanSignals, Sequence[str], Sequence[str]], bool]
    idea: Callable[[ScanSignals, Optional[str]], ProductIdea]


PRODUCT_IDEA_RULES: Tuple[IdeaRule, ...] = (
    IdeaRule(
        "missing_lamp",
        lambda s, cats, tags: s.lacks("lamp"),
        lambda s, room: ProductIdea(
            title="Warm bedside lamp",
            category="lighting",
            search_keywords=["warm bedside lamp", "ambient table lamp", (room or "room").replace("_", " ") + " lighting"],
            why="Adds softer evening light and improves comfort.",
        ),
    ),
    IdeaRule(
        "missing_rug",
        lambda s, cats, tags: s.lacks("rug"),
        lambda s, room: ProductIdea(
            title="Neutral area rug",
            category="rugs",
            search_keywords=["neutral area rug", "soft textured rug", "modern rug"],
            why="Grounds the space and adds warmth underfoot.",
        ),
    ),
    IdeaRule(
        "teal_needs_wood",
        lambda s, cats, tags: palette_traits(s.palette).has_teal,
        lambda s, room: ProductIdea(
            title="Warm wood accents",
            category="decor",
            search_keywords=["warm wood decor", "walnut accent pieces", "wood tray decor"],
            why="Balances cool teal tones with natural warmth.",
        ),
    ),
    IdeaRule(
        "storage_requested",
        lambda s, cats, tags: "storage" in cats,
        lambda s, room: ProductIdea(
            title="Slim storage organizer",
            category="storage",
            search_keywords=["small space organizer", "decorative storage bins", "entryway storage"],
            why="Keeps clutter down without sacrificing style.",
        ),
    ),
    IdeaRule(
        "statement_requested",
        lambda s, cats, tags: "statement-piece" in tags,
        lambda s, room: ProductIdea(
            title="Statement accent piece",
            category="wall_art",
            search_keywords=["statement wall art", "bold decor accent", "modern gallery piece"],
            why="Introduces personality and a focal point.",
        ),
    ),
)

MAX_PRODUCT_IDEAS = 5


def product_ideas(
    signals: ScanSignals, room_type: Optional[str], categories: Sequence[str], tags: Sequence[str]
) -> List[ProductIdea]:
    ideas = [rule.idea(signals, room_type) for rule in PRODUCT_IDEA_RULES if rule.when(signals, categories, tags)]
    return ideas[:MAX_PRODUCT_IDEAS]


__all__ = [
    "ScanSignals",
    "Rule",
    "IdeaRule",
    "first_match",
    "collect",
    "merge_unique",
    "product_ideas",
    "ROOM_TYPE_RULES",
    "OBJECT_CATEGORY_RULES",
    "TEXT_CATEGORY_RULES",
    "OBJECT_TAG_RULES",
    "TEXT_TAG_RULES",
    "PALETTE_VIBE_RULES",
    "TEXT_VIBE_RULES",
    "AVOID_RULES",
    "PRODUCT_IDEA_RULES",
]
