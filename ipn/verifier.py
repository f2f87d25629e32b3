"""Authenticity checks for processor notifications.

A notification is accepted only when every transport header is present,
the API key matches the configured key, the signature recomputed over
nonce + target URL + raw body matches, and the nonce has not already been
processed within the replay window. Anything else, including an internal
error, counts as a rejection.

Checking never records the nonce. The caller records it with
record_nonce() once the notification has been reconciled.
"""

import hmac
import logging
from dataclasses import dataclass
from enum import Enum

from clients.yellow_client import compute_signature
from ipn.replay_guard import ReplayGuard
from ipn.types import ProcessorCredentials

logger = logging.getLogger(__name__)


class VerificationFailure(Enum):
    MISSING_HEADERS = "missing_headers"
    TARGET_MISMATCH = "target_mismatch"
    UNKNOWN_API_KEY = "unknown_api_key"
    BAD_SIGNATURE = "bad_signature"
    REPLAYED_NONCE = "replayed_nonce"
    VERIFIER_ERROR = "verifier_error"


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    failure: VerificationFailure | None = None

    @classmethod
    def accepted(cls) -> "VerificationResult":
        return cls(valid=True)

    @classmethod
    def rejected(cls, failure: VerificationFailure) -> "VerificationResult":
        return cls(valid=False, failure=failure)


def _equal(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


class NotificationVerifier:
    """Decides whether an inbound notification really came from the processor."""

    def __init__(
        self,
        replay_guard: ReplayGuard | None = None,
        expected_target_url: str | None = None,
    ):
        """
        Args:
            replay_guard: Nonce store; replay detection is off when None
            expected_target_url: Callback URL the processor was given. When
                set, notifications addressed to any other URL are rejected.
        """
        self._replay_guard = replay_guard
        self._expected_target_url = expected_target_url

    def verify(
        self,
        target_url: str | None,
        signature: str | None,
        api_key_id: str | None,
        nonce: str | None,
        raw_body: bytes | str,
        credentials: ProcessorCredentials,
    ) -> bool:
        """Return True only if the notification is authentic."""
        return self.check(target_url, signature, api_key_id, nonce, raw_body, credentials).valid

    def check(
        self,
        target_url: str | None,
        signature: str | None,
        api_key_id: str | None,
        nonce: str | None,
        raw_body: bytes | str,
        credentials: ProcessorCredentials,
    ) -> VerificationResult:
        """Like verify(), but report why a notification was rejected."""
        try:
            return self._check(target_url, signature, api_key_id, nonce, raw_body, credentials)
        except Exception:
            logger.exception("Notification verification failed unexpectedly")
            return VerificationResult.rejected(VerificationFailure.VERIFIER_ERROR)

    def _check(
        self,
        target_url: str | None,
        signature: str | None,
        api_key_id: str | None,
        nonce: str | None,
        raw_body: bytes | str,
        credentials: ProcessorCredentials,
    ) -> VerificationResult:
        if not (target_url and signature and api_key_id and nonce):
            return VerificationResult.rejected(VerificationFailure.MISSING_HEADERS)

        if self._expected_target_url is not None and target_url != self._expected_target_url:
            logger.debug("Notification sent to %s, expected %s", target_url, self._expected_target_url)
            return VerificationResult.rejected(VerificationFailure.TARGET_MISMATCH)

        if not _equal(api_key_id, credentials.api_key):
            return VerificationResult.rejected(VerificationFailure.UNKNOWN_API_KEY)

        expected = compute_signature(credentials.api_secret, nonce, target_url, raw_body)
        if not _equal(signature.strip().lower(), expected):
            return VerificationResult.rejected(VerificationFailure.BAD_SIGNATURE)

        # Checked only once the signature holds; recording happens in record_nonce()
        if self._replay_guard is not None and self._replay_guard.seen(api_key_id, nonce):
            return VerificationResult.rejected(VerificationFailure.REPLAYED_NONCE)

        return VerificationResult.accepted()

    def record_nonce(self, api_key_id: str, nonce: str) -> None:
        """Mark a notification's nonce as processed. Call once it has been reconciled."""
        if self._replay_guard is not None:
            self._replay_guard.register(api_key_id, nonce)
