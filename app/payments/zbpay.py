"""
ZbPay payment gateway client.

Endpoints (relative to ZBPAY_BASE_URL):
    POST payments/initiate-transaction
    GET  payments/transaction/{orderReference}/status/check

The initiation body is restricted to the fields the gateway accepts; extra
fields have been rejected by the gateway before.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import GatewayError

logger = logging.getLogger(__name__)

INITIATE_PATH = "payments/initiate-transaction"
STATUS_PATH = "payments/transaction/{order_reference}/status/check"

SUCCESS_STATUSES = frozenset({"PAID", "SUCCESSFUL"})
FAILURE_STATUSES = frozenset({"FAILED", "CANCELED"})


class ZbPayError(GatewayError):
    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload


def build_initiate_payload(
    amount: Any,
    currency_code: int,
    return_url: str,
    result_url: str,
    order_reference: str,
    item_name: str,
) -> Dict[str, Any]:
    return {
        "Amount": amount,
        "CurrencyCode": currency_code,
        "returnUrl": return_url,
        "resultUrl": result_url,
        "orderReference": order_reference,
        "itemName": item_name,
    }


class ZbPayClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_secret: str,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "x-api-secret": self.api_secret,
        }

    async def initiate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("ZbPay initiate order=%s amount=%s", payload.get("orderReference"), payload.get("Amount"))
        return await self._request("POST", INITIATE_PATH, json=payload)

    async def check_status(self, order_reference: str) -> Dict[str, Any]:
        logger.info("ZbPay status check order=%s", order_reference)
        return await self._request("GET", STATUS_PATH.format(order_reference=order_reference))

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=json, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("ZbPay %s %s failed: %s", method, path, exc)
            raise ZbPayError(f"ZbPay request failed: {exc}") from exc

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            logger.warning("ZbPay %s %s returned non-JSON (%s)", method, path, response.status_code)
            raise ZbPayError(f"ZbPay returned non-JSON response: {response.text[:100]}")
        try:
            data = response.json()
        except ValueError as exc:
            raise ZbPayError("ZbPay returned malformed JSON") from exc
        if not isinstance(data, dict):
            raise ZbPayError("ZbPay returned an unexpected JSON body")

        if not response.is_success:
            logger.warning("ZbPay %s %s returned %s: %s", method, path, response.status_code, data)
            message = data.get("message") or data.get("error") or "Unknown error"
            raise ZbPayError(f"ZbPay API error: {message}", payload=data)
        return data


def get_gateway() -> ZbPayClient:
    return ZbPayClient(
        base_url=settings.zbpay_base_url,
        api_key=settings.zbpay_api_key,
        api_secret=settings.zbpay_api_secret,
        timeout=settings.zbpay_timeout_seconds,
    )
