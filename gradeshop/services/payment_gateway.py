"""
Payment gateway clients.

StripeGateway talks to the Stripe REST API over httpx. SandboxGateway keeps
intents in memory and settles them immediately, for development and tests.
"""
import logging
import uuid
from typing import Optional

import httpx
from flask import current_app

from ..pricing import GatewayIntent

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """The gateway could not be reached or rejected the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StripeGateway:
    def __init__(self, secret_key: str, api_base: str = "https://api.stripe.com/v1", timeout: float = 30.0,
                 transport: Optional[httpx.BaseTransport] = None):
        if not secret_key:
            raise ValueError("STRIPE_SECRET_KEY is not configured")
        self.api_base = api_base.rstrip("/")
        self._http_client = httpx.Client(
            base_url=self.api_base,
            timeout=timeout,
            auth=(secret_key, ""),
            transport=transport,
        )

    def close(self) -> None:
        self._http_client.close()

    def _request(self, method: str, path: str, data: Optional[dict] = None) -> dict:
        try:
            response = self._http_client.request(method, path, data=data)
        except httpx.HTTPError as e:
            logger.error(f"Stripe request {method} {path} failed: {e}")
            raise PaymentGatewayError(f"payment gateway unreachable: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Stripe request failed: {response.status_code} - {response.text}")
            try:
                message = response.json().get("error", {}).get("message") or response.text
            except ValueError:
                message = response.text
            raise PaymentGatewayError(message, status_code=response.status_code)

        return response.json()

    @staticmethod
    def _to_intent(payload: dict) -> GatewayIntent:
        status = payload.get("status", "")
        return GatewayIntent(
            intent_id=payload["id"],
            status=status,
            amount=int(payload.get("amount") or 0),
            currency=(payload.get("currency") or "").lower(),
            client_secret=payload.get("client_secret"),
            captured_amount=payload.get("amount_received") if status == "succeeded" else None,
            metadata=dict(payload.get("metadata") or {}),
        )

    def create_intent(self, amount: int, currency: str, metadata: Optional[dict] = None) -> GatewayIntent:
        data = {
            "amount": int(amount),
            "currency": currency.lower(),
            "automatic_payment_methods[enabled]": "true",
        }
        for key, value in (metadata or {}).items():
            data[f"metadata[{key}]"] = str(value)
        intent = self._to_intent(self._request("POST", "/payment_intents", data=data))
        logger.info(f"Payment intent created: {intent.intent_id} ({intent.amount} {intent.currency})")
        return intent

    def get_intent(self, intent_id: str) -> GatewayIntent:
        return self._to_intent(self._request("GET", f"/payment_intents/{intent_id}"))


class SandboxGateway:
    """In-process gateway; every intent succeeds for its full amount unless told otherwise."""

    def __init__(self, auto_capture: bool = True):
        self.auto_capture = auto_capture
        self.intents: dict[str, GatewayIntent] = {}

    def create_intent(self, amount: int, currency: str, metadata: Optional[dict] = None) -> GatewayIntent:
        intent_id = f"pi_sandbox_{uuid.uuid4().hex[:16]}"
        intent = GatewayIntent(
            intent_id=intent_id,
            status="succeeded" if self.auto_capture else "requires_payment_method",
            amount=int(amount),
            currency=currency.lower(),
            client_secret=f"{intent_id}_secret_{uuid.uuid4().hex[:8]}",
            captured_amount=int(amount) if self.auto_capture else None,
            metadata={k: str(v) for k, v in (metadata or {}).items()},
        )
        self.intents[intent_id] = intent
        return intent

    def get_intent(self, intent_id: str) -> GatewayIntent:
        intent = self.intents.get(intent_id)
        if intent is None:
            raise PaymentGatewayError(f"No such payment_intent: {intent_id}", status_code=404)
        return intent

    def settle(self, intent_id: str, status: str = "succeeded", captured_amount: Optional[int] = None) -> GatewayIntent:
        intent = self.get_intent(intent_id)
        if captured_amount is None and status == "succeeded":
            captured_amount = intent.amount
        settled = GatewayIntent(
            intent_id=intent.intent_id,
            status=status,
            amount=intent.amount,
            currency=intent.currency,
            client_secret=intent.client_secret,
            captured_amount=captured_amount,
            metadata=intent.metadata,
        )
        self.intents[intent_id] = settled
        return settled


def build_gateway(config):
    kind = (config.get("PAYMENT_GATEWAY") or "sandbox").lower()
    if kind == "stripe":
        return StripeGateway(
            secret_key=config.get("STRIPE_SECRET_KEY"),
            api_base=config.get("STRIPE_API_BASE") or "https://api.stripe.com/v1",
            timeout=float(config.get("PAYMENT_TIMEOUT") or 30),
        )
    if kind == "sandbox":
        return SandboxGateway()
    raise ValueError(f"unknown PAYMENT_GATEWAY {kind!r}")


def get_gateway():
    gw = current_app.extensions.get("payment_gateway")
    if gw is None:
        gw = build_gateway(current_app.config)
        current_app.extensions["payment_gateway"] = gw
    return gw
