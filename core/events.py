"""
Domain events for the payment gateway.

Immutable event objects describing what the gateway did to an order or an
invoice. The storefront (or anything else) subscribes to them to persist
audit trails or trigger follow-up work without the gateway knowing who is
listening.

Event Categories:
- InvoiceEvent: Invoice lifecycle at checkout (created, reused)
- TransitionEvent: Notification outcomes (applied, ignored)
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from core.models import Invoice
from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class GatewayEvent:
    """Base class for all gateway domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# INVOICE EVENTS
# =============================================================================


@dataclass(frozen=True)
class InvoiceEvent(GatewayEvent):
    """Events related to invoices issued at checkout."""
    order_id: str = ""
    invoice: Invoice | None = None


@dataclass(frozen=True)
class InvoiceCreated(InvoiceEvent):
    """A fresh invoice was issued by the processor."""
    replaced_failed: bool = False

    @classmethod
    def create(cls, order_id: str, invoice: Invoice, replaced_failed: bool = False) -> "InvoiceCreated":
        return cls(order_id=order_id, invoice=invoice, replaced_failed=replaced_failed)


@dataclass(frozen=True)
class InvoiceReused(InvoiceEvent):
    """A checkout reload was served from the session's cached invoice."""

    @classmethod
    def create(cls, order_id: str, invoice: Invoice) -> "InvoiceReused":
        return cls(order_id=order_id, invoice=invoice)


# =============================================================================
# TRANSITION EVENTS
# =============================================================================


@dataclass(frozen=True)
class TransitionEvent(GatewayEvent):
    """Events describing how a notification affected an order."""
    order_reference: str = ""
    external_status: str = ""
    previous_status: str | None = None


@dataclass(frozen=True)
class OrderTransitioned(TransitionEvent):
    """A notification moved the order to a new status."""
    new_status: str = ""
    note: str = ""

    @classmethod
    def create(
        cls,
        order_reference: str,
        external_status: str,
        previous_status: str | None,
        new_status: str,
        note: str,
    ) -> "OrderTransitioned":
        return cls(
            order_reference=order_reference,
            external_status=external_status,
            previous_status=previous_status,
            new_status=new_status,
            note=note,
        )


@dataclass(frozen=True)
class TransitionIgnored(TransitionEvent):
    """A notification did not match the guard for the order's current status."""
    reason: str = ""

    @classmethod
    def create(
        cls,
        order_reference: str,
        external_status: str,
        previous_status: str | None,
        reason: str,
    ) -> "TransitionIgnored":
        return cls(
            order_reference=order_reference,
            external_status=external_status,
            previous_status=previous_status,
            reason=reason,
        )
