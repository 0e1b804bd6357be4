"""Ziina service - Integration with the Ziina payment intent API"""

import logging
from typing import Optional

import httpx

from ...config import ZIINA_API_BASE, ZIINA_API_KEY, ZIINA_TEST_MODE
from ...shared.errors import ServiceUnavailable, UpstreamError

logger = logging.getLogger(__name__)


class ZiinaClient:
    """Async client for Ziina payment intents. Amounts are in minor units (fils)."""

    def __init__(
        self,
        api_key: Optional[str] = ZIINA_API_KEY,
        api_base: str = ZIINA_API_BASE,
        test_mode: bool = ZIINA_TEST_MODE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 15.0,
    ):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.test_mode = test_mode
        self.transport = transport
        self.timeout = timeout

        if not self.api_key:
            logger.warning("ZIINA_API_KEY not set; payment endpoints will fail until configured")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        if not self.is_available():
            raise ServiceUnavailable("Ziina API key not configured", error_code="PAYMENTS_NOT_CONFIGURED")

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.request(
                    method, f"{self.api_base}{path}", headers=self._headers(), json=json
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Ziina request failed: {e}")
            raise UpstreamError("Payment gateway unreachable", error_code="PAYMENT_GATEWAY_ERROR") from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            logger.error(f"❌ Ziina returned a non-object body ({response.status_code}): {response.text[:200]}")
            raise UpstreamError(
                "Payment gateway returned an unexpected response",
                error_code="PAYMENT_GATEWAY_ERROR",
                extra={"gateway_status": response.status_code},
            )

        if response.status_code >= 400:
            logger.error(f"❌ Ziina API error ({response.status_code}): {data or response.text}")
            raise UpstreamError(
                data.get("message") or "Payment gateway rejected the request",
                error_code="PAYMENT_GATEWAY_ERROR",
                extra={"gateway_status": response.status_code},
            )

        return data

    async def create_payment_intent(
        self,
        amount_minor: int,
        currency: str,
        success_url: str,
        cancel_url: str,
        message: Optional[str] = None,
    ) -> dict:
        """Returns the gateway intent: {id, redirect_url, status, ...}"""
        payload = {
            "amount": amount_minor,
            "currency_code": currency,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "test": self.test_mode,
        }
        if message:
            payload["message"] = message
        logger.info(f"💳 Creating Ziina payment intent: {amount_minor} {currency} (test={self.test_mode})")
        return await self._request("POST", "/payment_intent", json=payload)

    async def get_payment_intent(self, payment_id: str) -> dict:
        return await self._request("GET", f"/payment_intent/{payment_id}")
