"""Razorpay orders over the REST API."""

import hashlib
import hmac
import logging
from decimal import Decimal
import httpx

from salonbook.core.config import settings
from salonbook.core.errors import ProviderError
from salonbook.services.payments.base import (
    PAID,
    PENDING,
    PaymentIntent,
    Verification,
    from_minor_units,
    to_minor_units,
)

logger = logging.getLogger(__name__)

RAZORPAY_API_URL = "https://api.razorpay.com/v1"


def hmac_sha256_hex(secret: str, message: bytes | str) -> str:
    if isinstance(message, str):
        message = message.encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class RazorpayGateway:
    name = "razorpay"

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        webhook_secret: str | None = None,
        base_url: str = RAZORPAY_API_URL,
    ):
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.RAZORPAY_WEBHOOK_SECRET
        self.base_url = base_url

    def _ensure_configured(self) -> None:
        if not self.key_id or not self.key_secret:
            raise ProviderError(self.name, "Razorpay is not configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET.")

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        self._ensure_configured()
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                resp = await client.request(
                    method, f"{self.base_url}{path}", auth=(self.key_id, self.key_secret), **kwargs
                )
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as e:
            detail = e.response.json().get("error", {}).get("description") if e.response.content else None
            logger.error("Razorpay %s %s failed: %s", method, path, detail or e)
            raise ProviderError(self.name, detail or str(e))
        except httpx.HTTPError as e:
            logger.error("Razorpay %s %s failed: %s", method, path, e)
            raise ProviderError(self.name, str(e))

    async def create_intent(self, amount: Decimal, currency: str, metadata: dict) -> PaymentIntent:
        order = await self._request(
            "POST",
            "/orders",
            json={
                "amount": to_minor_units(amount),
                "currency": currency.upper(),
                "receipt": metadata.get("receipt") or metadata.get("appointmentId", "")[:40],
                "notes": metadata,
            },
        )
        logger.info("Created Razorpay order %s", order["id"])
        return PaymentIntent(
            session_ref=order["id"],
            client_data={
                "orderId": order["id"],
                "amount": order.get("amount"),
                "currency": order.get("currency"),
                "keyId": self.key_id,
            },
        )

    async def verify(self, session_ref: str) -> Verification:
        # Stored refs are order ids until a webhook swaps in the payment id
        if session_ref.startswith("order_"):
            order = await self._request("GET", f"/orders/{session_ref}")
            status = PAID if order.get("status") == "paid" else PENDING
            return Verification(
                status=status, provider_payment_id=order["id"], amount=from_minor_units(order["amount"])
            )
        payment = await self._request("GET", f"/payments/{session_ref}")
        status = PAID if payment.get("status") == "captured" else PENDING
        return Verification(
            status=status, provider_payment_id=payment["id"], amount=from_minor_units(payment["amount"])
        )

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Checkout callback signature: HMAC-SHA256 of ``order_id|payment_id``."""
        self._ensure_configured()
        expected = hmac_sha256_hex(self.key_secret, f"{order_id}|{payment_id}")
        return hmac.compare_digest(expected, signature or "")

    def verify_webhook_signature(self, body: bytes, signature: str | None) -> bool:
        if not self.webhook_secret:
            raise ProviderError(self.name, "Razorpay webhook secret not configured")
        expected = hmac_sha256_hex(self.webhook_secret, body)
        return hmac.compare_digest(expected, signature or "")
