"""Notification service - authenticates processor callbacks and reconciles orders."""

import logging

from core.exceptions import ResolutionError
from core.reconciliation import IgnoredTransition, OrderReconciler, ReconciliationResult
from ipn.exceptions import AuthenticationError
from ipn.security_logger import SecurityEvent, SecurityLogger
from ipn.types import Notification, NotificationHeaders, ProcessorCredentials
from ipn.verifier import NotificationVerifier, VerificationFailure

logger = logging.getLogger(__name__)

DUPLICATE_REASON = "duplicate notification"


class NotificationService:
    """Handles one inbound notification end to end.

    Authentication happens before the body is even parsed. Only an
    authenticated body reaches the reconciler, and its nonce is recorded
    only after reconciliation succeeds. A delivery that failed (storefront
    down, order not committed yet) can therefore be retried verbatim, while
    a redelivery of one that already went through is answered as ignored.
    """

    def __init__(
        self,
        verifier: NotificationVerifier,
        reconciler: OrderReconciler,
        credentials: ProcessorCredentials,
        security_logger: SecurityLogger | None = None,
    ):
        self._verifier = verifier
        self._reconciler = reconciler
        self._credentials = credentials
        self._security_logger = security_logger or SecurityLogger()

    def handle(
        self,
        raw_body: bytes,
        headers: NotificationHeaders,
        target_url: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ReconciliationResult:
        """
        Authenticate a notification and apply it to its order.

        Raises:
            AuthenticationError: Notification is not authentic
            ResolutionError: Authentic, but the order or status could not be resolved
        """
        result = self._verifier.check(
            target_url,
            headers.signature,
            headers.api_key,
            headers.nonce,
            raw_body,
            self._credentials,
        )

        if result.failure is VerificationFailure.REPLAYED_NONCE:
            # Signature held, so this is the processor redelivering
            return self._duplicate(raw_body, target_url, ip_address, user_agent)

        if not result.valid:
            self._security_logger.log(
                SecurityEvent.NOTIFICATION_REJECTED,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"reason": result.failure.value, "target_url": target_url},
            )
            raise AuthenticationError(result.failure.value)

        logger.debug("Valid IPN call: %r", raw_body)

        notification = None
        try:
            notification = Notification.from_body(raw_body)
            outcome = self._reconciler.apply(
                notification.order_reference, notification.external_status
            )
        except ResolutionError as e:
            self._security_logger.log(
                SecurityEvent.NOTIFICATION_UNRESOLVED,
                order_reference=notification.order_reference if notification else None,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"error": str(e)},
            )
            raise

        self._verifier.record_nonce(headers.api_key, headers.nonce)

        self._security_logger.log(
            SecurityEvent.NOTIFICATION_ACCEPTED,
            order_reference=outcome.order_reference,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"outcome": outcome.outcome.value, "status": outcome.external_status},
        )
        return outcome

    def _duplicate(
        self,
        raw_body: bytes,
        target_url: str,
        ip_address: str | None,
        user_agent: str | None,
    ) -> IgnoredTransition:
        notification = Notification.from_body(raw_body)
        self._security_logger.log(
            SecurityEvent.NOTIFICATION_REPLAYED,
            order_reference=notification.order_reference,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"reason": VerificationFailure.REPLAYED_NONCE.value, "target_url": target_url},
        )
        return IgnoredTransition(
            order_reference=notification.order_reference,
            external_status=notification.external_status,
            previous_status=None,
            reason=DUPLICATE_REASON,
        )
