"""Security event logging for inbound notifications.

Authentication failures go to their own logger ("ipn.security") so they
can be alerted on separately from ordinary ignored notifications.
"""

import logging
from enum import Enum
from typing import Any


class SecurityEvent(Enum):
    """Notification security event types."""

    NOTIFICATION_ACCEPTED = "notification_accepted"
    NOTIFICATION_REJECTED = "notification_rejected"
    NOTIFICATION_REPLAYED = "notification_replayed"
    NOTIFICATION_UNRESOLVED = "notification_unresolved"


_LEVELS = {
    SecurityEvent.NOTIFICATION_ACCEPTED: logging.INFO,
    SecurityEvent.NOTIFICATION_REJECTED: logging.WARNING,
    SecurityEvent.NOTIFICATION_REPLAYED: logging.WARNING,
    SecurityEvent.NOTIFICATION_UNRESOLVED: logging.ERROR,
}


class SecurityLogger:
    """Structured security event logger."""

    LOGGER_NAME = "ipn.security"

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger(self.LOGGER_NAME)

    def log(
        self,
        event: SecurityEvent,
        order_reference: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log security event with structured fields in `extra`."""
        self._logger.log(
            _LEVELS[event],
            "%s order=%s ip=%s details=%s",
            event.value,
            order_reference,
            ip_address,
            details or {},
            extra={
                "security_event": event.value,
                "order_reference": order_reference,
                "ip_address": ip_address,
                "user_agent": user_agent,
                "details": details or {},
            },
        )
