"""Typed exceptions for notification handling failures."""

from core.exceptions import NotificationError, ResolutionError


class AuthenticationError(NotificationError):
    """
    Notification could not be shown to come from the processor.

    Missing transport headers, unknown API key, wrong target URL or a bad
    signature. Nothing about the order is touched.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Notification rejected: {reason}")


__all__ = ["NotificationError", "AuthenticationError", "ResolutionError"]
