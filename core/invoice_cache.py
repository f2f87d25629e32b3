"""
Session-scoped invoice cache.

Maps (checkout session, order) to the invoice the customer is currently
paying, so reloading the checkout page redisplays the same invoice instead
of issuing a new one. An entry stays valid until the order fails; a failed
order needs a fresh invoice.

Entries live in any KeyValueStore (Valkey in production) with a TTL.
Losing them is harmless: the next checkout simply creates a new invoice.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Protocol
from uuid import uuid4

from pydantic import ValidationError

from core.exceptions import GatewayError
from core.models import Invoice, OrderStatus
from utils.session_context import get_current_session_id

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Storage operations the cache and replay guard need. ValkeyClient implements them."""

    def get_json(self, key: str) -> dict | list | None: ...

    def set_json(self, key: str, value: dict | list, expire_seconds: int | None = None) -> None: ...

    def delete(self, key: str) -> bool: ...

    def set_if_absent(self, key: str, value: str, expire_seconds: int) -> bool: ...

    def delete_if_equals(self, key: str, expected: str) -> bool: ...

    def exists(self, key: str) -> bool: ...


class CheckoutInProgressError(GatewayError):
    """Another request holds the checkout lock for this order and session."""


def invalid_when_failed(order_status: str | None) -> bool:
    """Default invalidation rule: a failed order never redisplays its old invoice."""
    return order_status == OrderStatus.FAILED.value


class InvoiceCache:
    """Per-session invoice cache with a per-order checkout lock."""

    KEY_PREFIX = "invoice:"
    LOCK_PREFIX = "lock:invoice:"

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: int,
        lock_ttl_seconds: int = 30,
        lock_wait_seconds: float = 5.0,
        is_invalid: Callable[[str | None], bool] = invalid_when_failed,
        poll_interval_seconds: float = 0.05,
    ):
        self._store = store
        self._ttl_seconds = ttl_seconds
        self._lock_ttl_seconds = lock_ttl_seconds
        self._lock_wait_seconds = lock_wait_seconds
        self._is_invalid = is_invalid
        self._poll_interval_seconds = poll_interval_seconds

    def _scope(self, order_id: str) -> str:
        return f"{get_current_session_id()}:{order_id}"

    def _key(self, order_id: str) -> str:
        return f"{self.KEY_PREFIX}{self._scope(order_id)}"

    def _lock_key(self, order_id: str) -> str:
        return f"{self.LOCK_PREFIX}{self._scope(order_id)}"

    def get(self, order_id: str) -> Invoice | None:
        """Cached invoice for the order in the current session, regardless of validity."""
        key = self._key(order_id)
        try:
            data = self._store.get_json(key)
            if data is None:
                return None
            return Invoice.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.warning("Dropping unreadable invoice cache entry %s: %s", key, e)
            self._store.delete(key)
            return None

    def lookup(self, order_id: str, order_status: str | None) -> Invoice | None:
        """
        Cached invoice if it may be reused for an order in this status.

        Returns None when nothing is cached or the entry is invalid for the
        order's status (it is left in place to be overwritten).
        """
        invoice = self.get(order_id)
        if invoice is None:
            return None
        if self._is_invalid(order_status):
            logger.debug("Cached invoice %s not reusable for order %s in status %s",
                         invoice.id, order_id, order_status)
            return None
        return invoice

    def put(self, order_id: str, invoice: Invoice) -> None:
        """Make invoice the active one for the order, replacing any previous entry."""
        self._store.set_json(
            self._key(order_id),
            invoice.model_dump(mode="json"),
            expire_seconds=self._ttl_seconds,
        )

    def invalidate(self, order_id: str) -> None:
        """Forget the active invoice. Safe to call when nothing is cached."""
        self._store.delete(self._key(order_id))

    @contextmanager
    def lock(self, order_id: str):
        """
        Serialize checkouts of one order within one session.

        Raises:
            CheckoutInProgressError: Lock not acquired within lock_wait_seconds
        """
        key = self._lock_key(order_id)
        token = str(uuid4())
        deadline = time.monotonic() + self._lock_wait_seconds

        while not self._store.set_if_absent(key, token, self._lock_ttl_seconds):
            if time.monotonic() >= deadline:
                logger.warning("Checkout lock busy for order %s", order_id)
                raise CheckoutInProgressError(f"Checkout already in progress for order {order_id}")
            time.sleep(self._poll_interval_seconds)

        try:
            yield
        finally:
            self._store.delete_if_equals(key, token)
