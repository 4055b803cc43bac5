"""Catalog item data model and helpers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from models.taxonomy import normalise_category, normalise_tag

DEFAULT_BRAND = "Seligo.AI"
DEFAULT_CATEGORY = "general"
DEFAULT_DESCRIPTION = "No description yet."


def _ensure_list(value: Any) -> List[Any]:
    """Coerce a scalar or iterable into a list."""

    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _normalise_tags(values: Iterable[Any]) -> List[str]:
    """Normalise and deduplicate tags while keeping their catalog order."""

    tags: List[str] = []
    seen = set()
    for value in values:
        tag = normalise_tag(str(value))
        if tag and tag not in seen:
            tags.append(tag)
            seen.add(tag)
    return tags


@dataclass
class Item:
    """A catalog product as the engine sees it.

    Items are owned by the catalog; the engine only ever works on copies and
    never mutates one after construction.
    """

    item_id: str
    name: str
    category: str = DEFAULT_CATEGORY
    tags: List[str] = field(default_factory=list)
    brand: str = DEFAULT_BRAND
    price: float = 0.0
    description: str = DEFAULT_DESCRIPTION
    image_url: str = ""
    priority: bool = False
    variant_id: Optional[int] = None
    merchant: Optional[str] = None
    purchase_url: Optional[str] = None

    def __post_init__(self) -> None:
        self.item_id = str(self.item_id)
        self.category = normalise_category(self.category) or DEFAULT_CATEGORY
        self.tags = _normalise_tags(_ensure_list(self.tags))
        self.price = float(self.price or 0.0)
        self.priority = bool(self.priority)
        if self.variant_id is not None:
            self.variant_id = int(self.variant_id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def item_from_record(record_id: str | None, data: Dict[str, Any]) -> Item:
    """Build an :class:`Item` from a loose catalog document.

    Missing display fields are filled with safe defaults the same way the
    catalog's own export tooling does (``title`` for ``name``, ``imageURL`` for
    ``image_url``, ``asin``-style numeric variant ids, and so on).
    """

    item_id = record_id or data.get("item_id") or data.get("id")
    if not item_id:
        raise ValueError("Catalog record is missing an identifier")

    brand = data.get("brand")
    if not brand or not str(brand).strip():
        brand = DEFAULT_BRAND

    variant = data.get("variant_id")
    if variant in ("", None):
        variant = None

    return Item(
        item_id=str(item_id),
        name=str(data.get("name") or data.get("title") or "Untitled"),
        category=str(data.get("category") or DEFAULT_CATEGORY),
        tags=_ensure_list(data.get("tags")),
        brand=str(brand),
        price=float(data.get("price") or 0.0),
        description=str(data.get("description") or DEFAULT_DESCRIPTION),
        image_url=str(data.get("image_url") or data.get("imageUrl") or data.get("imageURL") or ""),
        priority=bool(data.get("priority") or data.get("sponsored") or False),
        variant_id=variant,
        merchant=data.get("merchant"),
        purchase_url=data.get("purchase_url") or data.get("purchaseUrl"),
    )


__all__ = ["Item", "item_from_record", "DEFAULT_BRAND", "DEFAULT_CATEGORY"]
