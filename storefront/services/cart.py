from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError

from ..schemas.product import CartItem, Product
from .state_store import PersistentStore

logger = logging.getLogger(__name__)

CART_KEY = "cart"
FAVORITES_KEY = "favorites"
VIEWED_KEY = "viewedProducts"
VIEWED_LIMIT = 10

ChangeListener = Callable[[str], None]


def _validate_quantity(quantity: Any, *, allow_zero: bool) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError(f"Quantity must be an integer, got {quantity!r}")
    if quantity < 0 or (quantity == 0 and not allow_zero):
        raise ValueError(f"Invalid quantity: {quantity}")
    return quantity


def _load_id_list(store: PersistentStore, key: str) -> list[str]:
    raw = store.get_json(key, [])
    if not isinstance(raw, list):
        logger.warning("Ignoring non-list value stored under %s", key)
        return []
    ids: list[str] = []
    for value in raw:
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            product_id = str(value)
            if product_id not in ids:
                ids.append(product_id)
    return ids


class CartManager:
    """Own the cart, favorites and viewed-products collections.

    Every mutation is written through to the store. Changes announced by
    another tab replace the matching in-memory collection wholesale.
    Quantities are not capped at ``max_quantity`` here; callers check
    ``remaining_quantity`` before adding.
    """

    def __init__(self, store: PersistentStore) -> None:
        self.store = store
        self._items: dict[str, CartItem] = {}
        self._favorites: list[str] = []
        self._viewed: list[str] = []
        self._listeners: list[ChangeListener] = []
        self.reload()
        self._unsubscribers = [
            store.on_external_change(key, self._handle_external_change)
            for key in (CART_KEY, FAVORITES_KEY, VIEWED_KEY)
        ]

    # -- cart -------------------------------------------------------------

    @property
    def items(self) -> list[CartItem]:
        return list(self._items.values())

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items.values())

    @property
    def subtotal(self) -> float:
        return sum(item.line_total for item in self._items.values())

    def get_item(self, product_id: str) -> Optional[CartItem]:
        return self._items.get(product_id)

    def quantity_of(self, product_id: str) -> int:
        item = self._items.get(product_id)
        return item.quantity if item is not None else 0

    def remaining_quantity(self, product: Product) -> int:
        return max(product.max_quantity - self.quantity_of(product.id), 0)

    def add_to_cart(self, product: Product, quantity: int = 1) -> CartItem:
        quantity = _validate_quantity(quantity, allow_zero=False)
        existing = self._items.get(product.id)
        if existing is not None:
            item = existing.model_copy(update={"quantity": existing.quantity + quantity})
        else:
            item = CartItem.from_product(product, quantity)
        self._items[product.id] = item
        self._save_cart()
        return item

    def remove_from_cart(self, product_id: str) -> None:
        if self._items.pop(product_id, None) is not None:
            self._save_cart()

    def update_quantity(self, product_id: str, quantity: int) -> Optional[CartItem]:
        quantity = _validate_quantity(quantity, allow_zero=True)
        if quantity == 0:
            self.remove_from_cart(product_id)
            return None
        existing = self._items.get(product_id)
        if existing is None:
            return None
        item = existing.model_copy(update={"quantity": quantity})
        self._items[product_id] = item
        self._save_cart()
        return item

    def clear_cart(self) -> None:
        self._items = {}
        self._save_cart()

    # -- favorites --------------------------------------------------------

    @property
    def favorites(self) -> set[str]:
        return set(self._favorites)

    def is_favorite(self, product_id: str) -> bool:
        return product_id in self._favorites

    def toggle_favorite(self, product_id: str) -> bool:
        if product_id in self._favorites:
            self._favorites.remove(product_id)
            active = False
        else:
            self._favorites.append(product_id)
            active = True
        self.store.set_json(FAVORITES_KEY, self._favorites)
        self._notify(FAVORITES_KEY)
        return active

    # -- viewed products --------------------------------------------------

    @property
    def viewed_products(self) -> list[str]:
        return list(self._viewed)

    def track_product_view(self, product_id: str) -> None:
        viewed = [product_id] + [value for value in self._viewed if value != product_id]
        self._viewed = viewed[:VIEWED_LIMIT]
        self.store.set_json(VIEWED_KEY, self._viewed)
        self._notify(VIEWED_KEY)

    # -- persistence ------------------------------------------------------

    def reload(self) -> None:
        self._items = self._load_cart()
        self._favorites = _load_id_list(self.store, FAVORITES_KEY)
        self._viewed = _load_id_list(self.store, VIEWED_KEY)[:VIEWED_LIMIT]

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._listeners.clear()

    def _load_cart(self) -> dict[str, CartItem]:
        raw = self.store.get_json(CART_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Ignoring non-list cart payload")
            return {}
        items: dict[str, CartItem] = {}
        for entry in raw:
            try:
                item = CartItem.model_validate(entry)
            except ValidationError as exc:
                logger.warning("Dropping invalid stored cart item: %s", exc.errors()[:1])
                continue
            existing = items.get(item.id)
            if existing is not None:
                item = existing.model_copy(update={"quantity": existing.quantity + item.quantity})
            items[item.id] = item
        return items

    def _save_cart(self) -> None:
        payload = [item.model_dump(mode="json", by_alias=True) for item in self._items.values()]
        self.store.set_json(CART_KEY, payload)
        self._notify(CART_KEY)

    def _handle_external_change(self, key: str, _value: Optional[str]) -> None:
        logger.info("Reloading %s after external change", key)
        if key == CART_KEY:
            self._items = self._load_cart()
        elif key == FAVORITES_KEY:
            self._favorites = _load_id_list(self.store, FAVORITES_KEY)
        elif key == VIEWED_KEY:
            self._viewed = _load_id_list(self.store, VIEWED_KEY)[:VIEWED_LIMIT]
        self._notify(key)

    def _notify(self, key: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(key)
            except Exception:
                logger.exception("Cart listener failed for %s", key)


__all__ = [
    "CART_KEY",
    "FAVORITES_KEY",
    "VIEWED_KEY",
    "VIEWED_LIMIT",
    "CartManager",
]
