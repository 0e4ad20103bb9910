"""Cashfree PG orders over the REST API."""

import base64
import hashlib
import hmac
import logging
import re
from decimal import Decimal
import httpx

from salonbook.core.config import settings
from salonbook.core.errors import ProviderError, ValidationError
from salonbook.services.payments.base import PAID, PENDING, PaymentIntent, Verification, to_major_units

logger = logging.getLogger(__name__)

CASHFREE_SANDBOX_URL = "https://sandbox.cashfree.com/pg"
CASHFREE_PRODUCTION_URL = "https://api.cashfree.com/pg"
CASHFREE_API_VERSION = "2022-09-01"


def format_phone(phone: str) -> str:
    """Digits only, with the 91 country code on bare 10-digit numbers."""
    digits = re.sub(r"\s+", "", phone)
    digits = re.sub(r"^\+?91", "", digits)
    return f"91{digits}" if len(digits) == 10 else digits


class CashfreeGateway:
    name = "cashfree"

    def __init__(
        self,
        app_id: str | None = None,
        secret_key: str | None = None,
        test_mode: bool | None = None,
    ):
        self.app_id = app_id if app_id is not None else settings.CASHFREE_APP_ID
        self.secret_key = secret_key if secret_key is not None else settings.CASHFREE_SECRET_KEY
        self.test_mode = settings.CASHFREE_TEST_MODE if test_mode is None else test_mode

    @property
    def base_url(self) -> str:
        return CASHFREE_SANDBOX_URL if self.test_mode else CASHFREE_PRODUCTION_URL

    def _headers(self) -> dict:
        if not self.app_id or not self.secret_key:
            raise ProviderError(
                self.name, "Cashfree is not configured. Set CASHFREE_APP_ID and CASHFREE_SECRET_KEY."
            )
        return {
            "x-client-id": self.app_id,
            "x-client-secret": self.secret_key,
            "x-api-version": CASHFREE_API_VERSION,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        headers = self._headers()
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                resp = await client.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as e:
            detail = e.response.json().get("message") if e.response.content else None
            logger.error("Cashfree %s %s failed: %s", method, path, detail or e)
            raise ProviderError(self.name, detail or str(e))
        except httpx.HTTPError as e:
            logger.error("Cashfree %s %s failed: %s", method, path, e)
            raise ProviderError(self.name, str(e))

    async def create_intent(self, amount: Decimal, currency: str, metadata: dict) -> PaymentIntent:
        phone = (metadata.get("customerPhone") or "").strip()
        if not phone:
            raise ValidationError(
                "Phone number is required for payment. Please update your profile with a phone number "
                "before proceeding with payment."
            )
        appointment_id = metadata.get("appointmentId", "")
        order_id = metadata.get("orderId") or f"appt_{appointment_id}"
        order = await self._request(
            "POST",
            "/orders",
            json={
                "order_id": order_id,
                # Cashfree takes the amount in rupees, not paise
                "order_amount": float(to_major_units(amount)),
                "order_currency": currency.upper(),
                "order_note": f"Appointment payment - Order {order_id}",
                "customer_details": {
                    "customer_id": f"user_{metadata.get('userId', '')}",
                    "customer_phone": format_phone(phone),
                    "customer_email": metadata.get("customerEmail") or "",
                    "customer_name": metadata.get("customerName") or "",
                },
                "order_meta": {
                    "return_url": (
                        f"{settings.FRONTEND_URL}/payment/success?order_id={{order_id}}"
                        f"&appointmentId={appointment_id}"
                    ),
                    "notify_url": f"{settings.BACKEND_URL}/api/v1/payments/webhook/cashfree",
                },
            },
        )
        logger.info("Created Cashfree order %s", order["order_id"])
        return PaymentIntent(
            session_ref=order["order_id"],
            client_data={
                "orderId": order["order_id"],
                "paymentSessionId": order.get("payment_session_id"),
                "amount": order.get("order_amount"),
                "currency": order.get("order_currency"),
                "appId": self.app_id,
                "testMode": self.test_mode,
            },
        )

    async def verify(self, session_ref: str) -> Verification:
        order = await self._request("GET", f"/orders/{session_ref}")
        status = PAID if order.get("order_status") == "PAID" else PENDING
        payment_id = (order.get("payment_details") or {}).get("cf_payment_id")
        return Verification(
            status=status,
            provider_payment_id=str(payment_id) if payment_id else order["order_id"],
            amount=Decimal(str(order["order_amount"])) if order.get("order_amount") is not None else None,
        )

    def verify_webhook_signature(self, body: bytes, timestamp: str | None, signature: str | None) -> bool:
        """Base64 HMAC-SHA256 of the timestamp header followed by the raw body."""
        if not self.secret_key:
            raise ProviderError(self.name, "Cashfree secret key not configured")
        message = (timestamp or "").encode() + body
        digest = hmac.new(self.secret_key.encode(), message, hashlib.sha256).digest()
        expected = base64.b64encode(digest).decode()
        return hmac.compare_digest(expected, signature or "")
