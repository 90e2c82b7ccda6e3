import json

from storefront.catalog.normalizer import (
    collect_images,
    normalize_product,
    normalize_products,
    parse_count,
    parse_price,
    placeholder_image_url,
)
from storefront.schemas.product import is_placeholder_image


def test_normalize_uses_field_aliases():
    product = normalize_product(
        {"pid": 42, "productName": "Beans, Pinto", "amount": "48.5", "quantity": "20"},
        index=3,
    )
    assert product.id == "42"
    assert product.name == "Beans, Pinto"
    assert product.price == 48.5
    assert product.description == "Beans, Pinto"
    assert product.category == "Beans"
    assert product.stock == 20
    assert product.max_quantity == 20


def test_normalize_synthesizes_missing_name_and_id():
    product = normalize_product({}, index=4)
    assert product.id == "product-4"
    assert product.name == "Product 5"
    assert product.price == 0.0
    assert product.category == "General"
    assert product.stock == 10
    assert product.max_quantity == 10


def test_price_and_count_parsing_defaults():
    assert parse_price("abc") == 0.0
    assert parse_price("-3") == 0.0
    assert parse_price("$12.50") == 12.5
    assert parse_count("nope") == 10
    assert parse_count("7") == 7
    assert parse_count(None, default=3) == 3


def test_images_from_json_string_strip_escapes_and_placeholders():
    raw = {
        "name": "Tomato, Plum",
        "images": json.dumps(
            [
                "https:\\/\\/cdn.example.com\\/tomato.jpg",
                "https://placehold.co/400x300?text=Tomato",
            ]
        ),
        "thumbnail": "https://cdn.example.com/tomato-thumb.jpg",
        "imageUrl": "https://cdn.example.com/placeholder.png",
    }
    images = collect_images(raw)
    assert images == [
        "https://cdn.example.com/tomato.jpg",
        "https://cdn.example.com/tomato-thumb.jpg",
    ]


def test_extra_image_not_duplicated():
    raw = {
        "images": ["https://cdn.example.com/a.jpg"],
        "image": "https://cdn.example.com/a.jpg",
    }
    assert collect_images(raw) == ["https://cdn.example.com/a.jpg"]


def test_placeholder_generated_from_category_color():
    product = normalize_product({"name": "Banana, Burro", "images": "not json"})
    assert product.images == [product.image]
    assert product.image.startswith("https://placehold.co/400x300/FFD93D/333333?text=")
    assert product.image.endswith("Burro")
    assert not product.has_real_image


def test_placeholder_default_color_for_unknown_category():
    url = placeholder_image_url("Widget", "Gadgets")
    assert "/4096ff/ffffff?text=Widget" in url


def test_placeholder_heuristic():
    assert is_placeholder_image("")
    assert is_placeholder_image(None)
    assert is_placeholder_image("https://placehold.co/100")
    assert is_placeholder_image("https://img.example.com/x.png?text=Hi")
    assert is_placeholder_image("https://img.example.com/placeholder.png")
    assert not is_placeholder_image("https://img.example.com/apple.png")


def test_explicit_category_wins_over_name_prefix():
    product = normalize_product({"name": "Apple, Red", "productCategory": "Fruits"})
    assert product.category == "Fruits"


def test_normalize_products_skips_non_mappings():
    products = normalize_products([{"name": "A"}, "junk", None, {"name": "B"}])
    assert [product.name for product in products] == ["A", "B"]
    assert [product.id for product in products] == ["product-0", "product-1"]
