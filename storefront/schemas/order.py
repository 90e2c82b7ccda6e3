from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .product import CartItem

PaymentMethod = Literal["card", "paypal"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _today() -> str:
    return date.today().isoformat()


class CheckoutDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    name: str = ""
    address: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    payment_method: PaymentMethod = Field("card", alias="paymentMethod")
    order_date: str = Field(default_factory=_today, alias="orderDate")

    @property
    def has_required_fields(self) -> bool:
        return bool(self.name.strip()) and bool(self.address.strip())


class Order(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer: CheckoutDraft
    items: List[CartItem] = Field(default_factory=list)
    payment_method: PaymentMethod = Field("card", alias="paymentMethod")
    order_date: str = Field(default_factory=_today, alias="orderDate")

    @property
    def total_amount(self) -> float:
        # Excludes shipping; the gateway adds it to the display total.
        return sum(item.price * item.quantity for item in self.items)

    @classmethod
    def from_draft(cls, draft: CheckoutDraft, items: List[CartItem]) -> "Order":
        return cls(
            customer=draft.model_copy(),
            items=list(items),
            payment_method=draft.payment_method,
            order_date=draft.order_date,
        )


class SubmissionResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool
    message: str
    submission_id: Optional[str] = None

    @classmethod
    def ok(cls, message: str, submission_id: str) -> "SubmissionResult":
        return cls(success=True, message=message, submission_id=submission_id)

    @classmethod
    def failed(cls, message: str) -> "SubmissionResult":
        return cls(success=False, message=message)


class OrderRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    submission_id: Optional[str] = Field(None, alias="submissionId")
    customer: CheckoutDraft
    items: List[CartItem] = Field(default_factory=list)
    total_amount: float = Field(0.0, alias="totalAmount")
    payment_method: PaymentMethod = Field("card", alias="paymentMethod")
    order_date: str = Field(default_factory=_today, alias="orderDate")
    submitted_at: datetime = Field(default_factory=_utcnow, alias="submittedAt")

    @classmethod
    def from_order(cls, order: Order, submission_id: Optional[str]) -> "OrderRecord":
        return cls(
            submission_id=submission_id,
            customer=order.customer,
            items=order.items,
            total_amount=order.total_amount,
            payment_method=order.payment_method,
            order_date=order.order_date,
        )


__all__ = [
    "PaymentMethod",
    "CheckoutDraft",
    "Order",
    "SubmissionResult",
    "OrderRecord",
]
