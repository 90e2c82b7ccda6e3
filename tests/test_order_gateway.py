import asyncio
import json
from urllib.parse import parse_qs

import httpx
import pytest

from storefront.exceptions import CheckoutValidationError
from storefront.schemas.order import CheckoutDraft, Order
from storefront.schemas.product import CartItem
from storefront.services.order_gateway import (
    DEV_FALLBACK_MESSAGE,
    GENERIC_FAILURE_MESSAGE,
    LOGICAL_FAILURE_MESSAGE,
    NETWORK_FAILURE_MESSAGE,
    SUCCESS_MESSAGE,
    OrderGateway,
    build_submission_payload,
    product_field_id,
    validate_order,
)

from conftest import make_product


def _order(name="Ada", address="1 Main St", items=None) -> Order:
    if items is None:
        items = [CartItem.from_product(make_product("p1", price=10.0, name="Apple, Red"), 10)]
    return Order.from_draft(CheckoutDraft(name=name, address=address), items)


def _gateway(settings, handler, calls=None) -> OrderGateway:
    def wrapped(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return handler(request)

    return OrderGateway(settings, transport=httpx.MockTransport(wrapped))


def test_validate_order_messages():
    with pytest.raises(CheckoutValidationError, match="Customer name is required"):
        validate_order(_order(name="  "))
    with pytest.raises(CheckoutValidationError, match="Customer address is required"):
        validate_order(_order(address=""))
    with pytest.raises(CheckoutValidationError, match="Order must contain at least one item"):
        validate_order(_order(items=[]))


def test_product_field_id_lookup():
    assert product_field_id("Asparagus") == "6"
    assert product_field_id("Organic asparagus bundle") == "6"
    assert product_field_id("Dragon fruit") is None


def test_payload_summary_includes_shipping_but_order_total_does_not():
    order = _order()
    payload = dict(build_submission_payload(order, api_key="k", shipping_fee=4.99))

    assert order.total_amount == 100.0
    assert payload["apiKey"] == "k"
    assert payload["submission[1]"] == "Ada"
    assert payload["submission[2]"] == "1 Main St"
    assert payload["submission[3]"] == "Apple, Red x 10 = $100.00"
    assert payload["submission[4]"] == "$104.99"
    assert payload["submission[5_quantity]"] == "10"
    assert payload["submission[5_price]"] == "10"
    assert json.loads(payload["submission[5]"])["price"] == 10
    assert json.loads(payload["submission[5]"])["total"] == "100.00"
    assert json.loads(payload["submission[products]"])[0]["maxQuantity"] == 10


def test_unknown_products_use_sequential_field_ids():
    items = [
        CartItem.from_product(make_product("a", name="Kiwi"), 1),
        CartItem.from_product(make_product("b", name="Mango", price=12.5), 2),
    ]
    payload = dict(build_submission_payload(_order(items=items), api_key=None, shipping_fee=0))
    assert "apiKey" not in payload
    assert payload["submission[5_name]"] == "Kiwi"
    assert payload["submission[6_name]"] == "Mango"
    assert payload["submission[6_price]"] == "12.5"
    assert payload["submission[4]"] == "$35.00"


def test_successful_submission(settings):
    calls = []

    def handler(request):
        return httpx.Response(200, json={"responseCode": 200, "content": {"submissionID": "98765"}})

    result = asyncio.run(_gateway(settings, handler, calls).submit(_order()))

    assert result.success is True
    assert result.message == SUCCESS_MESSAGE
    assert result.submission_id == "98765"
    request = calls[0]
    assert request.method == "POST"
    assert request.url.path == "/form/1001/submissions"
    body = parse_qs(request.content.decode())
    assert body["submission[4]"] == ["$104.99"]
    assert body["apiKey"] == ["test-key"]


def test_empty_content_counts_as_success(settings):
    def handler(request):
        return httpx.Response(200, json={"responseCode": 200, "content": {}})

    result = asyncio.run(_gateway(settings, handler).submit(_order()))
    assert result.success is True
    assert result.submission_id


def test_logical_failure_uses_server_message(settings):
    def handler(request):
        return httpx.Response(200, json={"responseCode": 401, "message": "Invalid API key"})

    result = asyncio.run(_gateway(settings, handler).submit(_order()))
    assert result.success is False
    assert result.message == "Invalid API key"


def test_logical_failure_default_message(settings):
    def handler(request):
        return httpx.Response(200, json={"responseCode": 200, "content": None})

    result = asyncio.run(_gateway(settings, handler).submit(_order()))
    assert result.message == LOGICAL_FAILURE_MESSAGE


def test_http_error_reports_status(settings):
    def handler(request):
        return httpx.Response(500, json={"message": "Internal failure"})

    result = asyncio.run(_gateway(settings, handler).submit(_order()))
    assert result.success is False
    assert result.message == "Server error: 500. Internal failure"


def test_http_error_without_body(settings):
    def handler(request):
        return httpx.Response(503, text="<html>down</html>")

    result = asyncio.run(_gateway(settings, handler).submit(_order()))
    assert result.message == "Server error: 503. Please try again."


def test_network_error(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = asyncio.run(_gateway(settings, handler).submit(_order()))
    assert result.success is False
    assert result.message == NETWORK_FAILURE_MESSAGE


def test_malformed_response_is_generic_failure(settings):
    def handler(request):
        return httpx.Response(200, text="not json")

    result = asyncio.run(_gateway(settings, handler).submit(_order()))
    assert result.success is False
    assert result.message == GENERIC_FAILURE_MESSAGE


def test_invalid_order_is_not_sent(settings):
    calls = []
    gateway = _gateway(settings, lambda request: httpx.Response(200, json={}), calls)

    result = asyncio.run(gateway.submit(_order(items=[])))
    assert result.success is False
    assert result.message == "Order must contain at least one item"
    assert calls == []


def test_dev_fallback_only_outside_production(settings):
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    settings.dev_order_fallback = True
    production = asyncio.run(_gateway(settings, handler).submit(_order()))
    assert production.success is False

    settings.environment = "development"
    development = asyncio.run(_gateway(settings, handler).submit(_order()))
    assert development.success is True
    assert development.message == DEV_FALLBACK_MESSAGE
    assert development.submission_id.startswith("DEV-")


def test_verification_does_not_change_result(settings):
    settings.verify_submission = True
    settings.verify_delay_seconds = 0
    calls = []

    def handler(request):
        if request.method == "GET":
            return httpx.Response(404, json={"message": "missing"})
        return httpx.Response(200, json={"responseCode": 200, "content": {"submissionID": "55"}})

    result = asyncio.run(_gateway(settings, handler, calls).submit(_order()))
    assert result.success is True
    assert result.submission_id == "55"
    assert calls[1].url.path == "/submission/55"
