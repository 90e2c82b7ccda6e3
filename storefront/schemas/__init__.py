from .order import CheckoutDraft, Order, OrderRecord, PaymentMethod, SubmissionResult
from .product import CartItem, Product, is_placeholder_image

__all__ = [
    "Product",
    "CartItem",
    "is_placeholder_image",
    "PaymentMethod",
    "CheckoutDraft",
    "Order",
    "OrderRecord",
    "SubmissionResult",
]
