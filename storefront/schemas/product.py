from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

PLACEHOLDER_MARKERS = ("placehold.co", "placeholder", "?text=", "no-image")


def is_placeholder_image(url: str | None) -> bool:
    if not url:
        return True
    return any(marker in url for marker in PLACEHOLDER_MARKERS)


class Product(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    description: str = ""
    price: float = Field(0.0, ge=0)
    category: str = "General"
    image: str = ""
    images: List[str] = Field(default_factory=list)
    stock: int = 10
    max_quantity: int = Field(10, alias="maxQuantity")

    @property
    def real_images(self) -> list[str]:
        candidates = list(self.images)
        if self.image and self.image not in candidates:
            candidates.append(self.image)
        return [url for url in candidates if not is_placeholder_image(url)]

    @property
    def has_real_image(self) -> bool:
        return bool(self.real_images)


class CartItem(Product):
    quantity: int = Field(..., ge=1)

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> "CartItem":
        payload = product.model_dump()
        payload.pop("quantity", None)
        return cls(**payload, quantity=quantity)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


__all__ = [
    "PLACEHOLDER_MARKERS",
    "is_placeholder_image",
    "Product",
    "CartItem",
]
