from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from ..config import Settings, get_settings
from ..exceptions import CheckoutValidationError
from ..schemas.order import CheckoutDraft, Order, OrderRecord, SubmissionResult
from .cart import CartManager
from .state_store import PersistentStore

logger = logging.getLogger(__name__)

DRAFT_KEYS: dict[str, str] = {
    "name": "checkout.name",
    "address": "checkout.address",
    "email": "checkout.email",
    "phone": "checkout.phone",
    "order_date": "checkout.orderDate",
}
PAYMENT_METHOD_KEY = "paymentMethod"
ORDER_HISTORY_KEY = "orderHistory"
ORDER_HISTORY_LIMIT = 50

EMPTY_CART_MESSAGE = "Your cart is empty"
MISSING_FIELDS_MESSAGE = "Please fill out all required fields"
SUBMISSION_IN_PROGRESS_MESSAGE = "Your order is already being submitted"
NOT_AT_PAYMENT_MESSAGE = "Complete the previous checkout steps first"

_CONTACT_FIELDS = ("name", "address", "email", "phone")


class CheckoutStep(enum.IntEnum):
    CART = 1
    DETAILS = 2
    PAYMENT = 3
    CONFIRMATION = 4


@dataclass
class CheckoutMessage:
    text: str
    is_error: bool = False


class OrderSubmitter(Protocol):
    async def submit(self, order: Order) -> SubmissionResult: ...


class CheckoutStateMachine:
    """Drive the cart → details → payment → confirmation flow.

    Forward moves are guarded; a failed guard leaves the step unchanged and
    sets an error message. Backward moves always succeed and keep the draft.
    The draft is written to the store on every change so a reload in the
    middle of checkout restores it.
    """

    def __init__(
        self,
        cart: CartManager,
        gateway: OrderSubmitter,
        store: PersistentStore,
        *,
        settings: Optional[Settings] = None,
        reset_delay: Optional[float] = None,
    ) -> None:
        self.cart = cart
        self.gateway = gateway
        self.store = store
        self.settings = settings or get_settings()
        self.reset_delay = self.settings.confirmation_reset_seconds if reset_delay is None else reset_delay

        self.step = CheckoutStep.CART
        self.is_open = False
        self.is_submitting = False
        self.message: Optional[CheckoutMessage] = None
        self.last_result: Optional[SubmissionResult] = None
        self.confirmed_order: Optional[Order] = None
        self.draft = self._load_draft()
        self._reset_task: Optional[asyncio.Task] = None

    # -- panel ------------------------------------------------------------

    def open(self) -> None:
        self.is_open = True
        self.step = CheckoutStep.CART
        self.message = None

    def close(self) -> None:
        self.is_open = False

    @property
    def shipping_display(self) -> str:
        fee = self.settings.shipping_fee
        return "Free" if fee <= 0 else f"${fee:.2f}"

    @property
    def confirmed_total(self) -> Optional[float]:
        if self.confirmed_order is None:
            return None
        return self.confirmed_order.total_amount

    def dismiss_message(self) -> None:
        self.message = None

    # -- navigation -------------------------------------------------------

    def check_step(self, step: CheckoutStep) -> None:
        """Raise ``CheckoutValidationError`` if ``step`` cannot be entered now."""
        if step >= CheckoutStep.DETAILS and self.cart.is_empty:
            raise CheckoutValidationError(EMPTY_CART_MESSAGE)
        if step >= CheckoutStep.PAYMENT and not self.draft.has_required_fields:
            raise CheckoutValidationError(MISSING_FIELDS_MESSAGE)

    async def advance(self) -> bool:
        if self.step == CheckoutStep.CONFIRMATION:
            return False
        if self.step == CheckoutStep.PAYMENT:
            result = await self.submit_order()
            return result.success
        target = CheckoutStep(self.step + 1)
        try:
            self.check_step(target)
        except CheckoutValidationError as exc:
            self.message = CheckoutMessage(exc.message, is_error=True)
            return False
        self.step = target
        self.message = None
        return True

    def back(self) -> bool:
        if self.step in (CheckoutStep.CART, CheckoutStep.CONFIRMATION):
            return False
        self.step = CheckoutStep(self.step - 1)
        self.message = None
        return True

    def jump_to(self, step: int) -> bool:
        try:
            target = CheckoutStep(step)
        except ValueError:
            return False
        if target == CheckoutStep.CONFIRMATION or self.step == CheckoutStep.CONFIRMATION:
            return False
        if target <= self.step:
            self.step = target
            self.message = None
            return True
        try:
            self.check_step(target)
        except CheckoutValidationError:
            return False
        self.step = target
        self.message = None
        return True

    # -- draft ------------------------------------------------------------

    def update_draft(self, **fields: Any) -> CheckoutDraft:
        unknown = set(fields) - set(DRAFT_KEYS)
        if unknown:
            raise ValueError(f"Unknown draft fields: {', '.join(sorted(unknown))}")
        try:
            self.draft = CheckoutDraft.model_validate({**self.draft.model_dump(), **fields})
        except ValidationError as exc:
            raise ValueError(f"Invalid draft fields: {', '.join(sorted(fields))}") from exc
        for name in fields:
            self._persist_draft_field(name)
        return self.draft

    def set_payment_method(self, method: str) -> None:
        try:
            self.draft.payment_method = method
        except ValidationError as exc:
            raise ValueError(f"Unsupported payment method: {method}") from exc
        self.store.set(PAYMENT_METHOD_KEY, self.draft.payment_method)

    # -- submission -------------------------------------------------------

    async def submit_order(self) -> SubmissionResult:
        if self.is_submitting:
            return SubmissionResult.failed(SUBMISSION_IN_PROGRESS_MESSAGE)
        if self.step != CheckoutStep.PAYMENT:
            return SubmissionResult.failed(NOT_AT_PAYMENT_MESSAGE)
        try:
            self.check_step(CheckoutStep.PAYMENT)
        except CheckoutValidationError as exc:
            self.message = CheckoutMessage(exc.message, is_error=True)
            return SubmissionResult.failed(exc.message)

        order = Order.from_draft(self.draft, self.cart.items)
        self.is_submitting = True
        self.message = None
        try:
            result = await self.gateway.submit(order)
        finally:
            self.is_submitting = False
        self.last_result = result

        if not result.success:
            self.message = CheckoutMessage(result.message, is_error=True)
            return result

        self._record_order(order, result)
        self.cart.clear_cart()
        self.confirmed_order = order
        self.step = CheckoutStep.CONFIRMATION
        self.message = CheckoutMessage(result.message, is_error=False)
        self._schedule_reset()
        return result

    def order_history(self) -> list[OrderRecord]:
        raw = self.store.get_json(ORDER_HISTORY_KEY, [])
        if not isinstance(raw, list):
            return []
        records: list[OrderRecord] = []
        for entry in raw:
            try:
                records.append(OrderRecord.model_validate(entry))
            except ValidationError:
                logger.warning("Skipping malformed order history entry")
        return records

    async def wait_for_reset(self) -> None:
        if self._reset_task is not None:
            await self._reset_task

    def cancel_reset(self) -> None:
        if self._reset_task is not None and not self._reset_task.done():
            self._reset_task.cancel()
        self._reset_task = None

    # -- internals --------------------------------------------------------

    def _record_order(self, order: Order, result: SubmissionResult) -> None:
        try:
            history = self.store.get_json(ORDER_HISTORY_KEY, [])
            if not isinstance(history, list):
                history = []
            record = OrderRecord.from_order(order, result.submission_id)
            history.append(record.model_dump(mode="json", by_alias=True))
            self.store.set_json(ORDER_HISTORY_KEY, history[-ORDER_HISTORY_LIMIT:])
        except Exception:
            logger.exception("Failed to record order history")

    def _schedule_reset(self) -> None:
        self.cancel_reset()
        self._reset_task = asyncio.get_running_loop().create_task(self._auto_reset())

    async def _auto_reset(self) -> None:
        await asyncio.sleep(self.reset_delay)
        self._reset_after_confirmation()

    def _reset_after_confirmation(self) -> None:
        cleared = {name: "" if name in ("name", "address") else None for name in _CONTACT_FIELDS}
        self.draft = CheckoutDraft(payment_method=self.draft.payment_method, **cleared)
        for name in DRAFT_KEYS:
            self._persist_draft_field(name)
        self.step = CheckoutStep.CART
        self.message = None
        self.is_open = False

    def _persist_draft_field(self, name: str) -> None:
        key = DRAFT_KEYS[name]
        value = getattr(self.draft, name)
        if value is None or value == "":
            self.store.remove(key)
        else:
            self.store.set(key, str(value))

    def _load_draft(self) -> CheckoutDraft:
        values: dict[str, Any] = {}
        for name, key in DRAFT_KEYS.items():
            stored = self.store.get(key)
            if stored is not None:
                values[name] = stored
        method = self.store.get(PAYMENT_METHOD_KEY)
        if method in ("card", "paypal"):
            values["payment_method"] = method
        return CheckoutDraft(**values)


__all__ = [
    "DRAFT_KEYS",
    "PAYMENT_METHOD_KEY",
    "ORDER_HISTORY_KEY",
    "EMPTY_CART_MESSAGE",
    "MISSING_FIELDS_MESSAGE",
    "NOT_AT_PAYMENT_MESSAGE",
    "CheckoutStep",
    "CheckoutMessage",
    "OrderSubmitter",
    "CheckoutStateMachine",
]
