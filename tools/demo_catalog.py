"""Launch set used when no remote catalog is configured."""

from __future__ import annotations

from typing import List

from models.item import Item, item_from_record

DEMO_BRAND = "SwipeShop Studio"

# (name, category, price, tags)
_LAUNCH_SET = [
    ("Neutral Area Rug", "Rugs", 79.99, ["rugs", "neutral", "cozy", "living room"]),
    ("Vintage Pattern Rug", "Rugs", 109.99, ["rugs", "vintage", "pattern", "warm"]),
    ("Minimal Runner Rug", "Rugs", 59.99, ["rugs", "minimal", "runner", "entryway"]),
    ("Modern Table Lamp", "Lighting", 49.99, ["lighting", "lamp", "modern", "bedroom"]),
    ("Arc Floor Lamp", "Lighting", 129.99, ["lighting", "floor_lamp", "statement", "living room"]),
    ("Minimal Pendant Light", "Lighting", 89.99, ["lighting", "pendant", "minimal", "kitchen_decor"]),
    ("Abstract Canvas Print", "Wall Art", 39.99, ["wall_art", "abstract", "modern", "statement"]),
    ("Minimal Line Art Set (2-pack)", "Wall Art", 29.99, ["wall_art", "minimal", "neutral", "set"]),
    ("Landscape Poster", "Wall Art", 24.99, ["wall_art", "calm", "bedroom", "neutral"]),
    ("Boucle Accent Chair", "Seating", 229.99, ["seating", "accent_chair", "cozy", "living room"]),
    ("Modern Dining Chair", "Seating", 79.99, ["seating", "dining", "modern", "durable"]),
    ("Minimal Bar Stool", "Seating", 89.99, ["seating", "stool", "minimal", "kitchen_decor"]),
    ("Round Coffee Table", "Tables", 149.99, ["tables", "coffee_table", "modern", "living room"]),
    ("Wood Side Table", "Tables", 69.99, ["tables", "side_table", "wood", "bedroom"]),
    ("Minimal Console Table", "Tables", 129.99, ["tables", "console", "minimal", "entryway"]),
    ("Linen Duvet Set", "Bedding", 119.99, ["bedding", "linen", "neutral", "bedroom"]),
    ("Cozy Throw Blanket", "Bedding", 39.99, ["bedding", "throw", "cozy", "living room"]),
    ("Minimal Pillow Set (2-pack)", "Bedding", 29.99, ["bedding", "pillows", "minimal", "neutral"]),
    ("Woven Storage Basket", "Storage", 24.99, ["storage", "basket", "natural", "living room"]),
    ("Minimal Shelf Unit", "Storage", 139.99, ["storage", "shelf", "minimal", "office"]),
    ("Entryway Shoe Cabinet", "Storage", 159.99, ["storage", "cabinet", "entryway", "organized"]),
    ("Round Wall Mirror", "Mirrors", 59.99, ["mirrors", "round", "minimal", "entryway"]),
    ("Full Length Mirror", "Mirrors", 89.99, ["mirrors", "full_length", "bedroom", "modern"]),
    ("Arched Mirror", "Mirrors", 109.99, ["mirrors", "arched", "statement", "living room"]),
    ("Faux Olive Tree", "Plants", 79.99, ["plants", "faux", "greenery", "living room"]),
    ("Ceramic Planter Set (2-pack)", "Plants", 29.99, ["plants", "planter", "minimal", "neutral"]),
    ("Hanging Plant Pot", "Plants", 19.99, ["plants", "hanging", "boho", "cozy"]),
    ("Minimal Canister Set", "Kitchen Decor", 34.99, ["kitchen_decor", "minimal", "organized", "neutral"]),
    ("Wood Cutting Board Set", "Kitchen Decor", 29.99, ["kitchen_decor", "wood", "warm", "countertop"]),
    ("Ceramic Vase (Kitchen Shelf)", "Kitchen Decor", 24.99, ["kitchen_decor", "ceramic", "minimal", "shelf"]),
]


def demo_items() -> List[Item]:
    items = []
    for index, (name, category, price, tags) in enumerate(_LAUNCH_SET, start=1):
        slug = tags[0]
        items.append(
            item_from_record(
                f"demo-{index:03d}",
                {
                    "name": name,
                    "brand": DEMO_BRAND,
                    "category": category,
                    "price": price,
                    "tags": tags,
                    "description": f"{name} from the {DEMO_BRAND} launch set.",
                    "imageUrl": f"https://picsum.photos/seed/{slug}_{index:02d}/600/600",
                },
            )
        )
    return items


__all__ = ["demo_items", "DEMO_BRAND"]
