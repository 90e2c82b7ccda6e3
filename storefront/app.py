"""Storefront application - ties the store, cart, catalog and checkout together."""

from __future__ import annotations

from typing import Optional

import httpx

from .catalog.pipeline import CatalogPipeline, CatalogSession
from .config import Settings, get_settings
from .db.database import Database
from .services.cart import CartManager
from .services.checkout import CheckoutStateMachine
from .services.order_gateway import OrderGateway
from .services.state_store import KeyValueBackend, PersistentStore, SqlBackend, StorageChannel


class StorefrontApp:
    """One running instance of the storefront (one browser tab).

    Instances built with the same backend and channel behave like tabs
    sharing storage: each keeps its own in-memory state and reloads when
    another instance writes.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        backend: Optional[KeyValueBackend] = None,
        channel: Optional[StorageChannel] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.backend = backend or SqlBackend(Database(self.settings.storage_url))
        self.store = PersistentStore(self.backend, channel=channel)
        self.cart = CartManager(self.store)
        self.pipeline = CatalogPipeline(self.settings, transport=transport)
        self.catalog = CatalogSession(self.pipeline, list(self.settings.source_ids))
        self.gateway = OrderGateway(self.settings, transport=transport)
        self.checkout = CheckoutStateMachine(self.cart, self.gateway, self.store, settings=self.settings)

    async def start(self) -> bool:
        """Load the catalog for this session."""
        return await self.catalog.refresh()

    def close(self) -> None:
        self.checkout.cancel_reset()
        self.catalog.close()
        self.cart.close()
        self.store.close()


__all__ = ["StorefrontApp"]
