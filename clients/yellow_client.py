"""
Yellow payment processor client for invoice creation.

Requests are authenticated with an HMAC-SHA256 signature over
nonce + url + body, sent in the API-Key / API-Nonce / API-Sign headers.
Inbound notifications are signed the same way, so the signature helper
lives here and is shared with the notification verifier.

Failures are surfaced, never retried: a retry after a timeout could leave
two live invoices for one checkout.
"""

import hashlib
import hmac
import json
import logging
import threading
from datetime import datetime
from decimal import Decimal

import requests

from core.config import GatewayConfig
from core.exceptions import GatewayError
from core.models import Invoice, InvoiceRequest
from utils.timezone import epoch_millis, now_utc, parse_iso

logger = logging.getLogger(__name__)


class InvoiceCreationError(GatewayError):
    """Processor rejected the invoice request or could not be reached."""


def compute_signature(api_secret: str, nonce: str, url: str, body: str | bytes) -> str:
    """
    Hex HMAC-SHA256 of nonce + url + body, keyed with the API secret.

    Args:
        api_secret: Shared secret issued by the processor
        nonce: Request nonce as sent in API-Nonce
        url: Fully-qualified URL the request was sent to
        body: Raw request body
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    message = nonce.encode("utf-8") + url.encode("utf-8") + body
    return hmac.new(api_secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class YellowClient:
    """Create invoices with the processor and expose the store's callback URL."""

    def __init__(self, api_key: str, api_secret: str, config: GatewayConfig):
        """
        Initialize with processor credentials.

        Raises:
            ValueError: If any credential is empty
        """
        if not api_key:
            raise ValueError("api_key is required")
        if not api_secret:
            raise ValueError("api_secret is required")

        self.api_key = api_key
        self._api_secret = api_secret
        self._config = config
        self._nonce_lock = threading.Lock()
        self._last_nonce = 0

    @property
    def invoice_endpoint(self) -> str:
        return f"{self._config.api_base_url.rstrip('/')}{self._config.invoice_path}"

    def current_callback_url(self) -> str:
        """Callback URL sent with every invoice and expected on every notification."""
        return self._config.callback_url()

    def _next_nonce(self) -> str:
        # Millisecond clock, bumped when two requests land in the same millisecond
        with self._nonce_lock:
            nonce = max(epoch_millis(), self._last_nonce + 1)
            self._last_nonce = nonce
        return str(nonce)

    def create_invoice(
        self,
        order_id: str,
        amount: Decimal | float,
        currency: str,
        callback_url: str,
        order_number: str,
    ) -> Invoice:
        """
        Create an invoice for an order.

        Args:
            order_id: Local order identifier, recorded as the invoice's order reference
            amount: Price to quote, must be positive
            currency: ISO 4217 code
            callback_url: Absolute URL the processor will post notifications to
            order_number: Customer-facing order number sent to the processor

        Returns:
            Invoice as issued by the processor

        Raises:
            ValueError: If arguments violate the request constraints (no network call made)
            InvoiceCreationError: On rejection, malformed response, connection failure or timeout
        """
        request = InvoiceRequest(
            base_price=amount,
            base_ccy=currency,
            callback=callback_url,
            order=str(order_number),
        )

        url = self.invoice_endpoint
        body = json.dumps(request.to_payload(), separators=(",", ":"))
        nonce = self._next_nonce()

        headers = {
            "Content-Type": "application/json",
            "API-Key": self.api_key,
            "API-Nonce": nonce,
            "API-Sign": compute_signature(self._api_secret, nonce, url, body),
        }

        try:
            response = requests.post(
                url,
                data=body,
                headers=headers,
                timeout=self._config.request_timeout_seconds,
            )
        except requests.exceptions.Timeout as e:
            logger.error("Invoice creation timed out for order %s: %s", order_id, e)
            raise InvoiceCreationError(f"Processor timed out: {e}")
        except (requests.exceptions.RequestException, ConnectionError) as e:
            logger.error("Invoice creation connection failed for order %s: %s", order_id, e)
            raise InvoiceCreationError(f"Connection failed: {e}")

        try:
            data = response.json()
        except ValueError:
            logger.error("Processor returned invalid JSON (HTTP %s): %s", response.status_code, response.text)
            raise InvoiceCreationError("Invalid response from processor")

        if not 200 <= response.status_code < 300:
            message = data.get("message") or data.get("error") if isinstance(data, dict) else None
            logger.error("Processor rejected invoice for order %s (HTTP %s): %s",
                         order_id, response.status_code, message)
            raise InvoiceCreationError(f"Processor error (HTTP {response.status_code}): {message or 'Unknown error'}")

        if not isinstance(data, dict) or not data.get("id") or not data.get("url"):
            logger.error("Processor response missing invoice id/url: %s", data)
            raise InvoiceCreationError("Processor response did not contain an invoice")

        logger.debug("Invoice created with payload: %s, response: %s", body, json.dumps(data))

        return Invoice(
            id=str(data["id"]),
            url=str(data["url"]),
            status=data.get("status"),
            order_reference=str(order_id),
            base_amount=request.base_price,
            base_currency=request.base_ccy,
            created_at=_created_at(data),
        )


def _created_at(data: dict) -> datetime:
    """Use the processor's timestamp when it sends a parseable one."""
    raw = data.get("created_at")
    if isinstance(raw, str):
        try:
            return parse_iso(raw)
        except ValueError:
            logger.debug("Ignoring unparseable invoice timestamp %r", raw)
    return now_utc()
