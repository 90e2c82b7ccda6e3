from __future__ import annotations

import re
import zlib

from ..schemas.product import Product
from .normalizer import placeholder_image_url

_DIGITS_RE = re.compile(r"\D")

SYNTHETIC_TEMPLATES: tuple[dict, ...] = (
    {"name": "Apple, Red", "description": "Apple, Red 40 lb", "price": 54.0, "category": "Apple", "max_quantity": 10},
    {"name": "Asparagus", "description": "Asparagus", "price": 36.0, "category": "Vegetables", "max_quantity": 15},
    {
        "name": "Avocado, Hass 60 ct #1",
        "description": "Avocado, Hass 60 ct #1",
        "price": 47.0,
        "category": "Avocado",
        "max_quantity": 50,
    },
    {"name": "Banana, Regular", "description": "Banana, Regular 40 lb", "price": 29.0, "category": "Banana", "max_quantity": 100},
    {"name": "Tomato, 5x6", "description": "Tomato, 5x6 25 lb", "price": 20.0, "category": "Tomato", "max_quantity": 50},
    {"name": "Yucca, Fresh", "description": "Yucca, Fresh 32 lb", "price": 35.0, "category": "Roots", "max_quantity": 100},
)


def source_hash(source_id: str) -> int:
    """Stable number for a source id: its first five digits, else a CRC of the id."""
    digits = _DIGITS_RE.sub("", source_id or "")[:5]
    if digits:
        return int(digits)
    return zlib.crc32((source_id or "").encode("utf-8")) % 100000


def synthetic_window(source_id: str) -> tuple[int, int]:
    """Return ``(start, count)`` of the template window used for a source."""
    seed = source_hash(source_id)
    return seed % 3, 6 + seed % 4


def synthetic_products(source_id: str) -> list[Product]:
    start, count = synthetic_window(source_id)
    products: list[Product] = []
    for i in range(count):
        template = SYNTHETIC_TEMPLATES[(start + i) % len(SYNTHETIC_TEMPLATES)]
        image = placeholder_image_url(template["name"], template["category"])
        products.append(
            Product(
                id=f"{source_id}-dummy-{i}",
                name=template["name"],
                description=template["description"],
                price=template["price"],
                category=template["category"],
                image=image,
                images=[image],
                stock=template["max_quantity"],
                max_quantity=template["max_quantity"],
            )
        )
    return products


__all__ = ["SYNTHETIC_TEMPLATES", "source_hash", "synthetic_window", "synthetic_products"]
