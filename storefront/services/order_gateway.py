from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Optional
from urllib.parse import urlencode
from uuid import uuid4

import httpx

from ..config import Settings, get_settings
from ..exceptions import (
    CheckoutValidationError,
    SubmissionLogicalError,
    SubmissionNetworkError,
    TrackedError,
)
from ..log import log_order_submission
from ..schemas.order import Order, SubmissionResult
from ..schemas.product import CartItem

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Order submitted successfully"
DEV_FALLBACK_MESSAGE = "Order submitted successfully (development fallback)"
LOGICAL_FAILURE_MESSAGE = "Order submission failed. Please try again."
NETWORK_FAILURE_MESSAGE = "No response from server. Check your internet connection."
GENERIC_FAILURE_MESSAGE = "An error occurred during submission. Please try again later."

# Form field ids of the order form.
FIELD_MAPPING: dict[str, str] = {
    "full_name": "1",
    "address": "2",
    "order_summary": "3",
    "total_amount": "4",
    "product_details": "5",
}

PRODUCT_FIELD_IDS: dict[str, str] = {
    "Apple, Red": "5",
    "Asparagus": "6",
    "Avocado, Hass 60 ct #1": "7",
}


def product_field_id(product_name: str) -> Optional[str]:
    if product_name in PRODUCT_FIELD_IDS:
        return PRODUCT_FIELD_IDS[product_name]
    lowered = product_name.lower()
    for known, field_id in PRODUCT_FIELD_IDS.items():
        if known.lower() in lowered:
            return field_id
    return None


def validate_order(order: Order) -> None:
    if not order.customer.name.strip():
        raise CheckoutValidationError("Customer name is required")
    if not order.customer.address.strip():
        raise CheckoutValidationError("Customer address is required")
    if not order.items:
        raise CheckoutValidationError("Order must contain at least one item")


def format_currency(amount: float) -> str:
    return f"${amount:.2f}"


def wire_number(value: float) -> int | float:
    """Whole-number prices go out without a trailing ``.0``."""
    return int(value) if float(value).is_integer() else value


def order_summary(items: list[CartItem]) -> str:
    return "\n".join(
        f"{item.name} x {item.quantity} = {format_currency(item.price * item.quantity)}" for item in items
    )


def display_total(order: Order, shipping_fee: float) -> float:
    """Total shown to the merchant: item subtotal plus flat shipping."""
    return order.total_amount + shipping_fee


def build_submission_payload(
    order: Order,
    *,
    api_key: Optional[str],
    shipping_fee: float,
) -> list[tuple[str, str]]:
    fields: list[tuple[str, str]] = []
    if api_key:
        fields.append(("apiKey", api_key))
    fields.append((f"submission[{FIELD_MAPPING['full_name']}]", order.customer.name))
    fields.append((f"submission[{FIELD_MAPPING['address']}]", order.customer.address))
    fields.append((f"submission[{FIELD_MAPPING['order_summary']}]", order_summary(order.items)))
    fields.append(
        (f"submission[{FIELD_MAPPING['total_amount']}]", format_currency(display_total(order, shipping_fee)))
    )

    base_field = int(FIELD_MAPPING["product_details"])
    for index, item in enumerate(order.items):
        field_id = product_field_id(item.name) or str(base_field + index)
        fields.append((f"submission[{field_id}_name]", item.name))
        fields.append((f"submission[{field_id}_quantity]", str(item.quantity)))
        fields.append((f"submission[{field_id}_price]", str(wire_number(item.price))))
        fields.append(
            (
                f"submission[{field_id}]",
                json.dumps(
                    {
                        "name": item.name,
                        "quantity": item.quantity,
                        "price": wire_number(item.price),
                        "total": f"{item.price * item.quantity:.2f}",
                    }
                ),
            )
        )

    fields.append(("submission[new]", "1"))
    fields.append(("submission[flag]", "0"))
    fields.append(
        (
            "submission[products]",
            json.dumps([item.model_dump(mode="json", by_alias=True) for item in order.items]),
        )
    )
    return fields


class OrderGateway:
    """Submit orders to the form-builder submissions endpoint.

    ``submit`` never raises. Local validation, transport failures, HTTP
    errors and unexpected payloads all come back as a failed
    ``SubmissionResult``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client
        self._transport = transport

    @property
    def form_id(self) -> str:
        return self.settings.resolved_order_form_id

    async def submit(self, order: Order) -> SubmissionResult:
        started = time.monotonic()
        try:
            validate_order(order)
        except CheckoutValidationError as exc:
            return SubmissionResult.failed(exc.message)

        try:
            submission_id = await self._post(order)
        except (SubmissionNetworkError, SubmissionLogicalError) as exc:
            return self._failure(order, exc, started)
        except Exception:
            logger.exception("Unexpected error while submitting order")
            error = TrackedError(GENERIC_FAILURE_MESSAGE, error_type="unexpected")
            return self._failure(order, error, started)

        log_order_submission(self.form_id, len(order.items), True, time.monotonic() - started, submission_id)
        return SubmissionResult.ok(SUCCESS_MESSAGE, submission_id)

    async def _post(self, order: Order) -> str:
        payload = build_submission_payload(
            order,
            api_key=self.settings.api_key,
            shipping_fee=self.settings.shipping_fee,
        )
        if self._client is not None:
            return await self._send(self._client, payload)
        async with self._build_client() as client:
            return await self._send(client, payload)

    async def _send(self, client: httpx.AsyncClient, payload: list[tuple[str, str]]) -> str:
        try:
            response = await client.post(
                f"/form/{self.form_id}/submissions",
                content=urlencode(payload),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.TransportError as exc:
            raise SubmissionNetworkError(NETWORK_FAILURE_MESSAGE) from exc

        data = self._decode(response)
        if response.status_code >= 400:
            server_message = data.get("message") if isinstance(data, dict) else None
            raise SubmissionLogicalError(
                f"Server error: {response.status_code}. {server_message or 'Please try again.'}",
                status_code=response.status_code,
            )
        if not isinstance(data, dict):
            raise ValueError("Unexpected submission response shape")
        if data.get("responseCode") == 200 and data.get("content") is not None:
            content = data["content"]
            submission_id = content.get("submissionID") if isinstance(content, dict) else None
            submission_id = str(submission_id) if submission_id else uuid4().hex
            if self.settings.verify_submission:
                await self._verify(client, submission_id)
            return submission_id
        raise SubmissionLogicalError(
            str(data.get("message") or LOGICAL_FAILURE_MESSAGE),
            status_code=response.status_code,
        )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            if response.status_code >= 400:
                return None
            raise

    async def _verify(self, client: httpx.AsyncClient, submission_id: str) -> None:
        """Best-effort read-back of a fresh submission; never affects the result."""
        try:
            await asyncio.sleep(self.settings.verify_delay_seconds)
            params = {"apiKey": self.settings.api_key} if self.settings.api_key else None
            response = await client.get(f"/submission/{submission_id}", params=params)
            response.raise_for_status()
            logger.info("Verified submission %s", submission_id)
        except httpx.HTTPError as exc:
            logger.warning("Could not verify submission %s: %s", submission_id, exc)

    def _failure(
        self,
        order: Order,
        error: TrackedError,
        started: float,
    ) -> SubmissionResult:
        elapsed = time.monotonic() - started
        logger.warning("Order submission failed: %s", error.with_trace())
        log_order_submission(self.form_id, len(order.items), False, elapsed, error_type=error.error_type)
        if self.settings.allows_dev_order_fallback:
            logger.warning("Using development fallback for failed order submission")
            return SubmissionResult.ok(DEV_FALLBACK_MESSAGE, f"DEV-{int(time.time() * 1000)}")
        return SubmissionResult.failed(error.message)

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.api_base_url,
            timeout=self.settings.request_timeout_seconds,
            transport=self._transport,
        )


__all__ = [
    "SUCCESS_MESSAGE",
    "DEV_FALLBACK_MESSAGE",
    "LOGICAL_FAILURE_MESSAGE",
    "NETWORK_FAILURE_MESSAGE",
    "GENERIC_FAILURE_MESSAGE",
    "FIELD_MAPPING",
    "product_field_id",
    "validate_order",
    "format_currency",
    "wire_number",
    "order_summary",
    "display_total",
    "build_submission_payload",
    "OrderGateway",
]
