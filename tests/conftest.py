import pytest

from storefront.config import Settings
from storefront.schemas.product import Product
from storefront.services.cart import CartManager
from storefront.services.state_store import MemoryBackend, PersistentStore


def make_product(product_id: str = "1", *, price: float = 10.0, name: str | None = None, **extra) -> Product:
    return Product(
        id=product_id,
        name=name or f"Item {product_id}",
        description="Test product",
        price=price,
        category=extra.pop("category", "General"),
        image=extra.pop("image", f"https://cdn.example.com/{product_id}.jpg"),
        images=extra.pop("images", [f"https://cdn.example.com/{product_id}.jpg"]),
        stock=extra.pop("stock", 10),
        max_quantity=extra.pop("max_quantity", 10),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_base_url="https://forms.test",
        api_key="test-key",
        source_ids=["1001", "2002", "3003"],
        order_form_id="1001",
        environment="production",
        dev_order_fallback=False,
        confirmation_reset_seconds=0.0,
        storage_url="sqlite://",
    )


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend) -> PersistentStore:
    return PersistentStore(backend)


@pytest.fixture
def cart(store: PersistentStore) -> CartManager:
    return CartManager(store)
