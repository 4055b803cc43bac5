"""Lightweight palette helpers for deterministic room vibe inference."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

logger = logging.getLogger(__name__)

# Red-channel bands over quantized bucket centers (multiples of 32, capped at 255).
COOL_MAX_RED = 0x40
NEUTRAL_RED_RANGE = (0x80, 0xA0)
BRIGHT_MIN_RED = 0xC0
TEAL_MIN_CHANNEL = 80


@dataclass(frozen=True)
class PaletteTraits:
    """Summarises the coarse characteristics of a palette."""

    has_cool: bool
    has_bright: bool
    has_neutral: bool
    has_teal: bool

    def vibes(self) -> List[str]:
        vibes: List[str] = []
        if self.has_cool:
            vibes.append("cool")
        if self.has_bright:
            vibes.append("bright")
        if self.has_neutral:
            vibes.append("neutral")
        if self.has_teal:
            vibes.extend(["teal", "modern"])
        return vibes


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Format an RGB triple as a lowercase ``#rrggbb`` string."""

    return "#" + "".join(f"{max(0, min(255, int(c))):02x}" for c in (r, g, b))


def hex_to_rgb(value: str) -> Tuple[int, int, int]:
    """Parse ``#rrggbb`` into an RGB triple."""

    raw = value.strip().lstrip("#")
    if len(raw) != 6:
        raise ValueError(f"Unsupported color value '{value}'")
    return int(raw[0:2], 16), int(raw[2:4], 16), int(raw[4:6], 16)


def is_tealish(value: str) -> bool:
    """Return True when green and blue both dominate red."""

    r, g, b = hex_to_rgb(value)
    return g > r and b > r and g > TEAL_MIN_CHANNEL and b > TEAL_MIN_CHANNEL


def has_teal(palette: Iterable[str]) -> bool:
    return any(is_tealish(color) for color in palette)


def palette_traits(palette: Sequence[str]) -> PaletteTraits:
    """Classify a palette by the red channel of its entries plus a teal check."""

    reds = [hex_to_rgb(color)[0] for color in palette]
    traits = PaletteTraits(
        has_cool=any(red <= COOL_MAX_RED for red in reds),
        has_bright=any(red >= BRIGHT_MIN_RED for red in reds),
        has_neutral=any(NEUTRAL_RED_RANGE[0] <= red <= NEUTRAL_RED_RANGE[1] for red in reds),
        has_teal=has_teal(palette),
    )
    logger.debug("palette traits %s -> %s", list(palette), traits)
    return traits


__all__ = [
    "PaletteTraits",
    "rgb_to_hex",
    "hex_to_rgb",
    "is_tealish",
    "has_teal",
    "palette_traits",
]
