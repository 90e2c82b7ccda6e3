from .cart import CartManager
from .checkout import CheckoutMessage, CheckoutStateMachine, CheckoutStep
from .order_gateway import OrderGateway
from .state_store import KeyValueBackend, MemoryBackend, PersistentStore, SqlBackend, StorageChannel

__all__ = [
    "CartManager",
    "CheckoutMessage",
    "CheckoutStateMachine",
    "CheckoutStep",
    "OrderGateway",
    "KeyValueBackend",
    "MemoryBackend",
    "PersistentStore",
    "SqlBackend",
    "StorageChannel",
]
