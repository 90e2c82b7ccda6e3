"""Static catalog shown when every remote source and synthetic path fails."""

from __future__ import annotations

from ..schemas.product import Product
from .normalizer import normalize_products

SEED_RECORDS: tuple[dict, ...] = (
    {"id": 1, "name": "Apple, Red", "description": "Apple, Red 40 lb", "price": 54.0, "image": "https://www.example.com/apple-red.jpg", "stock": 10},
    {"id": 2, "name": "Asparagus", "description": "Asparagus", "price": 36.0, "image": "https://www.example.com/asparagus.jpg", "stock": 15},
    {"id": 3, "name": "Avocado, Hass 60 ct #1", "description": "Avocado, Hass 60 ct #1", "price": 47.0, "image": "https://www.example.com/avocado-hass.jpg", "stock": 50},
    {"id": 4, "name": "Avocado, Hass 60 ct #1 Pinto", "description": "Avocado, Hass 60 ct. #1 Pinto", "price": 48.0, "image": "https://www.example.com/avocado-pinto.jpg", "stock": 50},
    {"id": 5, "name": "Avocado, Hass 48 ct", "description": "Avocado, Hass 48 ct", "price": 45.0, "image": "https://www.example.com/avocado-48ct.jpg", "stock": 50},
    {"id": 6, "name": "Avocado, Florida GreenSkin", "description": "Avocado, Florida GreenSkin", "price": 48.0, "image": "https://www.example.com/avocado-florida.jpg", "stock": 50},
    {"id": 7, "name": "Banana, Burro", "description": "Banana, Burro 40 lb", "price": 35.0, "image": "https://www.example.com/banana-burro.jpg", "stock": 100},
    {"id": 8, "name": "Banana, Cooking (Guineo)", "description": "Banana, Cooking (Guineo) 40 lb", "price": 26.0, "image": "https://www.example.com/banana-cooking.jpg", "stock": 100},
    {"id": 9, "name": "Banana, Plantain", "description": "Banana, Plantain Green 40 lb", "price": 41.0, "image": "https://www.example.com/banana-plantain.jpg", "stock": 100},
    {"id": 10, "name": "Banana, Regular", "description": "Banana, Regular 40 lb", "price": 29.0, "image": "https://www.example.com/banana-regular.jpg", "stock": 100},
    {"id": 11, "name": "Beans, Pinto", "description": "Beans, Pinto 50 lb", "price": 48.5, "image": "https://www.example.com/beans-pinto.jpg", "stock": 50},
    {"id": 12, "name": "Tomato, 5x6", "description": "Tomato, 5x6 25 lb", "price": 20.0, "image": "https://www.example.com/tomato-5x6.jpg", "stock": 50},
    {"id": 13, "name": "Tomato, 6x6", "description": "Tomato, 6x6 25 lb", "price": 19.0, "image": "https://www.example.com/tomato-6x6.jpg", "stock": 50},
    {"id": 14, "name": "Tomato, 6x7", "description": "Tomato, 6x7 25 lb", "price": 15.0, "image": "https://www.example.com/tomato-6x7.jpg", "stock": 50},
    {"id": 15, "name": "Tomato, Plum", "description": "Tomato, Plum 25 lb", "price": 20.0, "image": "https://www.example.com/tomato-plum.jpg", "stock": 50},
)


def seed_products() -> list[Product]:
    return normalize_products(SEED_RECORDS)


__all__ = ["SEED_RECORDS", "seed_products"]
