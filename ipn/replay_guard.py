"""Nonce replay detection for processor notifications.

Each (API key, nonce) pair is processed once per window. A nonce is only
recorded after its notification has been reconciled, so a delivery that
failed part way can be retried with the same signed request. Keys expire
on their own in Valkey, so the window needs no cleanup job.
"""

import logging

from core.invoice_cache import KeyValueStore

logger = logging.getLogger(__name__)


class ReplayGuard:
    """Remembers recently processed notification nonces."""

    KEY_PREFIX = "ipn:nonce:"

    def __init__(self, store: KeyValueStore, window_seconds: int):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._store = store
        self._window_seconds = window_seconds

    def _key(self, api_key: str, nonce: str) -> str:
        return f"{self.KEY_PREFIX}{api_key}:{nonce}"

    def seen(self, api_key: str, nonce: str) -> bool:
        """Whether this nonce was already processed within the window."""
        return self._store.exists(self._key(api_key, nonce))

    def register(self, api_key: str, nonce: str) -> bool:
        """
        Record a processed nonce.

        Returns True the first time a nonce is recorded within the window,
        False if it was already there (two deliveries raced).
        """
        first_seen = self._store.set_if_absent(self._key(api_key, nonce), "1", self._window_seconds)
        if not first_seen:
            logger.info("Notification nonce %s was already recorded", nonce)
        return first_seen
