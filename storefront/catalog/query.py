from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..schemas.product import Product

SORT_KEYS = ("featured", "price-asc", "price-desc", "name")


def displayable(products: Iterable[Product]) -> list[Product]:
    """Products with at least one non-placeholder image, in input order."""
    return [product for product in products if product.has_real_image]


def find_product(products: Iterable[Product], product_id: str) -> Optional[Product]:
    for product in products:
        if product.id == product_id:
            return product
    return None


def categories(products: Iterable[Product]) -> list[str]:
    seen: list[str] = []
    for product in displayable(products):
        if product.category not in seen:
            seen.append(product.category)
    return sorted(seen)


def filter_products(
    products: Iterable[Product],
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    favorites: Optional[set[str]] = None,
) -> list[Product]:
    needle = (search or "").strip().lower()
    results: list[Product] = []
    for product in displayable(products):
        if needle and needle not in product.name.lower() and needle not in product.description.lower():
            continue
        if category and category != "All" and product.category != category:
            continue
        if min_price is not None and product.price < min_price:
            continue
        if max_price is not None and product.price > max_price:
            continue
        if favorites is not None and product.id not in favorites:
            continue
        results.append(product)
    return results


def sort_products(products: Sequence[Product], sort_key: str = "featured") -> list[Product]:
    if sort_key not in SORT_KEYS:
        raise ValueError(f"Unsupported sort key: {sort_key}")
    items = list(products)
    if sort_key == "price-asc":
        return sorted(items, key=lambda product: product.price)
    if sort_key == "price-desc":
        return sorted(items, key=lambda product: product.price, reverse=True)
    if sort_key == "name":
        return sorted(items, key=lambda product: product.name.lower())
    return items


def similar_products(products: Sequence[Product], product_id: str, limit: int = 4) -> list[Product]:
    target = find_product(products, product_id)
    if target is None:
        return []
    matches = [
        product
        for product in displayable(products)
        if product.id != product_id and product.category == target.category
    ]
    return matches[:limit]


def recently_viewed(
    products: Sequence[Product],
    viewed_ids: Sequence[str],
    *,
    exclude: Optional[str] = None,
    limit: int = 4,
) -> list[Product]:
    index = {product.id: product for product in displayable(products)}
    results = [index[product_id] for product_id in viewed_ids if product_id != exclude and product_id in index]
    return results[:limit]


__all__ = [
    "SORT_KEYS",
    "displayable",
    "find_product",
    "categories",
    "filter_products",
    "sort_products",
    "similar_products",
    "recently_viewed",
]
