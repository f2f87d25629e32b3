"""Typed exceptions shared by checkout and notification handling."""


class GatewayError(Exception):
    """Base class for payment gateway errors."""


class NotificationError(GatewayError):
    """Base class for errors that terminate notification processing."""


class ResolutionError(NotificationError):
    """
    An authenticated notification could not be resolved to an order.

    Raised for notifications with an unparseable body, no order reference
    or status, an unknown order, an order without a status or (strict mode)
    an unrecognized status.
    This points at a data integrity problem and needs operator attention;
    it is never downgraded to an ignored notification.
    """


class OrderNotFoundError(GatewayError):
    """Checkout was started for an order the storefront does not know."""
