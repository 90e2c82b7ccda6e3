import asyncio

import httpx

from storefront.app import StorefrontApp
from storefront.catalog.pipeline import BACKUP_DATA_WARNING
from storefront.catalog.query import filter_products
from storefront.catalog.seed import SEED_RECORDS
from storefront.services.checkout import CheckoutStep
from storefront.services.state_store import MemoryBackend, StorageChannel


def _handler(submissions):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            submissions.append(request)
            return httpx.Response(200, json={"responseCode": 200, "content": {"submissionID": "777"}})
        return httpx.Response(404, json={"responseCode": 404, "message": "Not found"})

    return handler


def test_end_to_end_purchase_from_seed_catalog(settings):
    settings.synthetic_fallback = False
    submissions = []
    app = StorefrontApp(
        settings,
        backend=MemoryBackend(),
        transport=httpx.MockTransport(_handler(submissions)),
    )

    async def scenario():
        await app.start()
        product = app.catalog.products[0]
        app.cart.add_to_cart(product, 2)
        app.checkout.open()
        await app.checkout.advance()
        app.checkout.update_draft(name="Ada", address="1 Main St")
        await app.checkout.advance()
        result = await app.checkout.advance()
        step = app.checkout.step
        await app.checkout.wait_for_reset()
        return product, result, step

    try:
        product, result, step = asyncio.run(scenario())
    finally:
        app.close()

    assert app.catalog.warning == BACKUP_DATA_WARNING
    assert len(app.catalog.products) == len(SEED_RECORDS)
    assert result is True
    assert step == CheckoutStep.CONFIRMATION
    assert app.cart.is_empty
    assert app.checkout.step == CheckoutStep.CART
    assert len(submissions) == 1
    history = app.checkout.order_history()
    assert history[0].submission_id == "777"
    assert history[0].total_amount == product.price * 2


def test_apps_sharing_storage_see_each_others_cart(settings):
    backend = MemoryBackend()
    channel = StorageChannel()
    transport = httpx.MockTransport(_handler([]))
    first = StorefrontApp(settings, backend=backend, channel=channel, transport=transport)
    second = StorefrontApp(settings, backend=backend, channel=channel, transport=transport)
    try:
        asyncio.run(first.start())
        assert first.catalog.warning == BACKUP_DATA_WARNING
        assert filter_products(first.catalog.products)
        product = first.catalog.products[0]
        first.cart.add_to_cart(product, 3)
        first.cart.toggle_favorite(product.id)

        assert second.cart.quantity_of(product.id) == 3
        assert second.cart.is_favorite(product.id)

        second.cart.remove_from_cart(product.id)
        assert first.cart.is_empty
    finally:
        first.close()
        second.close()
