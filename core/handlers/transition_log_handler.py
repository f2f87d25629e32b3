"""
Handler that writes an audit line for every gateway event.

Applied transitions and new invoices are logged at INFO, ignored
notifications and invoice reuse at DEBUG so redeliveries don't flood logs.
"""

import logging
from typing import Callable

from core.events import (
    GatewayEvent,
    InvoiceCreated,
    InvoiceReused,
    OrderTransitioned,
    TransitionIgnored,
)

logger = logging.getLogger(__name__)


def handle_gateway_event(audit_logger: logging.Logger | None = None) -> Callable:
    """
    Factory that returns a handler for all gateway events.

    Args:
        audit_logger: Logger to write to (defaults to this module's logger)

    Returns:
        Handler callable, subscribe it with EventBus.WILDCARD
    """
    log = audit_logger or logger

    def handler(event: GatewayEvent):
        if isinstance(event, OrderTransitioned):
            log.info(
                "transition order=%s invoice_status=%s %s->%s note=%r",
                event.order_reference, event.external_status,
                event.previous_status, event.new_status, event.note,
            )
        elif isinstance(event, TransitionIgnored):
            log.debug(
                "ignored order=%s invoice_status=%s status=%s reason=%s",
                event.order_reference, event.external_status,
                event.previous_status, event.reason,
            )
        elif isinstance(event, InvoiceCreated):
            log.info(
                "invoice_created order=%s invoice=%s replaced_failed=%s",
                event.order_id, event.invoice.id, event.replaced_failed,
            )
        elif isinstance(event, InvoiceReused):
            log.debug("invoice_reused order=%s invoice=%s", event.order_id, event.invoice.id)

    return handler
