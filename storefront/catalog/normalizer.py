"""Convert third-party product records into canonical ``Product`` values.

Remote sources disagree on field names, so every output field is resolved
through an alias table. Nothing outside this module should look at raw
source records.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional
from urllib.parse import quote

from ..schemas.product import Product, is_placeholder_image

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"
DEFAULT_STOCK = 10
DEFAULT_COLOR = "4096ff"

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("pid", "id", "productId"),
    "name": ("name", "productName", "text"),
    "price": ("price", "amount"),
    "description": ("description", "text"),
    "category": ("category", "productCategory", "type"),
    "stock": ("stock", "quantity"),
}

EXTRA_IMAGE_FIELDS = ("image", "thumbnail", "imageUrl")

CATEGORY_COLORS: dict[str, str] = {
    "Apple": "FF6B6B",
    "Vegetables": "6BCB77",
    "Avocado": "4D8B31",
    "Banana": "FFD93D",
    "Beans": "B45309",
    "Tomato": "DC2626",
    "Fruits": "7c2d12",
    "Roots": "f97316",
    "General": DEFAULT_COLOR,
}

_DARK_TEXT_CATEGORIES = {"Banana"}


def resolve_field(raw: dict[str, Any], field_name: str) -> Any:
    """Return the first truthy value among the aliases of ``field_name``."""
    for alias in FIELD_ALIASES.get(field_name, (field_name,)):
        value = raw.get(alias)
        if value not in (None, "", 0, False):
            return value
    return None


def parse_price(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        price = float(str(value).strip().lstrip("$"))
    except ValueError:
        return 0.0
    if price != price or price < 0:  # NaN or negative
        return 0.0
    return price


def parse_count(value: Any, default: int = DEFAULT_STOCK) -> int:
    if value is None:
        return default
    try:
        count = int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return default
    return count if count > 0 else default


def split_name(name: str) -> tuple[Optional[str], str]:
    """Split ``"Apple, Red"`` into its prefix and the remainder."""
    parts = name.split(",")
    if len(parts) > 1:
        return parts[0].strip(), parts[1].strip()
    return None, name


def derive_category(raw: dict[str, Any], name: str) -> str:
    explicit = resolve_field(raw, "category")
    if explicit:
        return str(explicit)
    prefix, _ = split_name(name)
    return prefix or DEFAULT_CATEGORY


def placeholder_image_url(caption: str, category: str) -> str:
    color = CATEGORY_COLORS.get(category, DEFAULT_COLOR)
    text_color = "333333" if category in _DARK_TEXT_CATEGORIES else "ffffff"
    return f"https://placehold.co/400x300/{color}/{text_color}?text={quote(caption, safe='')}"


def _parse_image_list(value: Any) -> list[str]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            logger.debug("Ignoring unparseable images payload: %.80s", value)
            return []
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def collect_images(raw: dict[str, Any]) -> list[str]:
    images = [url.replace("\\", "") for url in _parse_image_list(raw.get("images"))]
    images = [url for url in images if not is_placeholder_image(url)]
    for field_name in EXTRA_IMAGE_FIELDS:
        candidate = raw.get(field_name)
        if not isinstance(candidate, str):
            continue
        if is_placeholder_image(candidate) or candidate in images:
            continue
        images.append(candidate)
    return images


def normalize_product(raw: dict[str, Any], index: int = 0) -> Product:
    name = str(resolve_field(raw, "name") or f"Product {index + 1}")
    price = parse_price(resolve_field(raw, "price"))
    description = str(resolve_field(raw, "description") or name)
    category = derive_category(raw, name)

    images = collect_images(raw)
    if not images:
        _, clean_name = split_name(name)
        images = [placeholder_image_url(clean_name, category)]

    product_id = resolve_field(raw, "id")
    stock = parse_count(resolve_field(raw, "stock"))
    return Product(
        id=str(product_id) if product_id is not None else f"product-{index}",
        name=name,
        description=description,
        price=price,
        category=category,
        image=images[0],
        images=images,
        stock=stock,
        max_quantity=stock,
    )


def normalize_products(records: Iterable[Any], *, start_index: int = 0) -> list[Product]:
    products: list[Product] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        products.append(normalize_product(record, start_index + len(products)))
    return products


__all__ = [
    "DEFAULT_CATEGORY",
    "FIELD_ALIASES",
    "CATEGORY_COLORS",
    "resolve_field",
    "parse_price",
    "parse_count",
    "split_name",
    "derive_category",
    "placeholder_image_url",
    "collect_images",
    "normalize_product",
    "normalize_products",
]
