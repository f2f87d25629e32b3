"""
Order reconciliation from processor invoice notifications.

The processor reports invoice status changes asynchronously, possibly more
than once and out of order. Each external status maps to at most one local
transition, and each transition is guarded by the order's current status.
A notification that fails its guard is an expected race and is ignored;
reapplying the same notification therefore never changes the order twice.

Transition table (current status -> external status -> new status):

    pending, on-hold                 authorizing   processing
    processing                       paid          completed (payment complete)
    not processing, not completed    refund_owed   failed
    not processing, not completed    refund_paid   refunded
    pending, on-hold                 expired       failed

A `paid` notification for an order that never reached `processing` is
ignored; the storefront only completes payment after `authorizing`.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from core.event_bus import EventBus
from core.events import OrderTransitioned, TransitionIgnored
from core.exceptions import ResolutionError
from core.models import ExternalStatus, OrderStatus
from core.orders import OrderManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """One row of the transition table."""

    external_status: ExternalStatus
    new_status: OrderStatus
    note: str
    allowed_from: frozenset[str] | None = None
    blocked_from: frozenset[str] | None = None
    completes_payment: bool = False

    def permits(self, current_status: str) -> bool:
        """Guard: whether the order's current status admits this transition."""
        if self.allowed_from is not None:
            return current_status in self.allowed_from
        return current_status not in (self.blocked_from or frozenset())


_AWAITING_PAYMENT = frozenset({OrderStatus.PENDING.value, OrderStatus.ON_HOLD.value})
_PAYMENT_UNDERWAY = frozenset({OrderStatus.PROCESSING.value, OrderStatus.COMPLETED.value})

TRANSITIONS: dict[ExternalStatus, Transition] = {
    ExternalStatus.AUTHORIZING: Transition(
        external_status=ExternalStatus.AUTHORIZING,
        new_status=OrderStatus.PROCESSING,
        note="Yellow invoice paid. Awaiting network confirmation and payment completed status.",
        allowed_from=_AWAITING_PAYMENT,
    ),
    ExternalStatus.PAID: Transition(
        external_status=ExternalStatus.PAID,
        new_status=OrderStatus.COMPLETED,
        note="Yellow invoice payment confirmed. The order is awaiting fulfillment.",
        allowed_from=frozenset({OrderStatus.PROCESSING.value}),
        completes_payment=True,
    ),
    # Neither processing nor completed: a refund never overrides a confirmed payment
    ExternalStatus.REFUND_OWED: Transition(
        external_status=ExternalStatus.REFUND_OWED,
        new_status=OrderStatus.FAILED,
        note="Yellow invoice needs refund.",
        blocked_from=_PAYMENT_UNDERWAY,
    ),
    ExternalStatus.REFUND_PAID: Transition(
        external_status=ExternalStatus.REFUND_PAID,
        new_status=OrderStatus.REFUNDED,
        note="Yellow invoice refunded.",
        blocked_from=_PAYMENT_UNDERWAY,
    ),
    ExternalStatus.EXPIRED: Transition(
        external_status=ExternalStatus.EXPIRED,
        new_status=OrderStatus.FAILED,
        note="Yellow invoice expired.",
        allowed_from=_AWAITING_PAYMENT,
    ),
}


def decide(current_status: str, external_status: ExternalStatus) -> Transition | None:
    """
    Transition for an external status given the order's current status.

    Returns None when no row matches or the guard rejects it.
    """
    transition = TRANSITIONS.get(external_status)
    if transition is None or not transition.permits(current_status):
        return None
    return transition


class ReconciliationOutcome(str, Enum):
    APPLIED = "applied"
    IGNORED = "ignored"


@dataclass(frozen=True)
class AppliedTransition:
    """The order was moved to a new status."""

    order_reference: str
    external_status: str
    previous_status: str
    new_status: str
    note: str

    outcome = ReconciliationOutcome.APPLIED

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "order": self.order_reference,
            "external_status": self.external_status,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "note": self.note,
        }


@dataclass(frozen=True)
class IgnoredTransition:
    """The notification was authentic but changed nothing."""

    order_reference: str
    external_status: str
    previous_status: str | None  # None for a redelivery answered without reading the order
    reason: str

    outcome = ReconciliationOutcome.IGNORED

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "order": self.order_reference,
            "external_status": self.external_status,
            "previous_status": self.previous_status,
            "new_status": self.previous_status,
            "reason": self.reason,
        }


ReconciliationResult = AppliedTransition | IgnoredTransition


class OrderReconciler:
    """Applies authenticated notifications to orders through the OrderManager."""

    def __init__(self, orders: OrderManager, event_bus: EventBus, strict_status: bool = False):
        self._orders = orders
        self._event_bus = event_bus
        self._strict_status = strict_status

    def apply(self, order_reference: str | None, external_status: str | None) -> ReconciliationResult:
        """
        Apply one notification to its order.

        Args:
            order_reference: Order id/number carried by the notification
            external_status: Invoice status reported by the processor

        Returns:
            AppliedTransition or IgnoredTransition

        Raises:
            ResolutionError: Missing reference or status, unknown order,
                order without status, or (strict mode) unrecognized status
        """
        order_reference = str(order_reference).strip() if order_reference is not None else ""
        if not order_reference:
            raise ResolutionError("Notification does not carry an order reference")

        raw_status = str(external_status).strip() if external_status is not None else ""
        if not raw_status:
            raise ResolutionError(f"Notification for order {order_reference} does not carry a status")

        order = self._orders.get_order(order_reference)
        if order is None:
            raise ResolutionError(f"Order {order_reference} not found")

        current_status = self._orders.current_status(order)
        if not current_status:
            raise ResolutionError(f"Order {order_reference} has no current status")

        status = ExternalStatus.parse(raw_status)
        if status is None:
            if self._strict_status:
                raise ResolutionError(
                    f"Unrecognized invoice status '{raw_status}' for order {order_reference}"
                )
            logger.warning("Ignoring unrecognized invoice status '%s' for order %s", raw_status, order_reference)
            return self._ignore(order_reference, raw_status, current_status, "unrecognized status")

        transition = decide(current_status, status)
        if transition is None:
            return self._ignore(
                order_reference, status.value, current_status,
                f"no transition for '{status.value}' from '{current_status}'",
            )

        if transition.new_status.value == current_status:
            return self._ignore(order_reference, status.value, current_status, "already applied")

        if transition.completes_payment:
            self._orders.mark_payment_complete(order)
        else:
            self._orders.update_status(order, transition.new_status.value)
        self._orders.add_note(order, transition.note)

        result = AppliedTransition(
            order_reference=order_reference,
            external_status=status.value,
            previous_status=current_status,
            new_status=transition.new_status.value,
            note=transition.note,
        )

        logger.info(
            "Order %s: %s -> %s (invoice %s)",
            order_reference, current_status, result.new_status, status.value,
        )
        self._event_bus.publish(OrderTransitioned.create(
            order_reference=order_reference,
            external_status=status.value,
            previous_status=current_status,
            new_status=result.new_status,
            note=transition.note,
        ))

        return result

    def _ignore(
        self,
        order_reference: str,
        external_status: str,
        current_status: str,
        reason: str,
    ) -> IgnoredTransition:
        logger.info(
            "Order %s: ignored invoice status '%s' in status '%s' (%s)",
            order_reference, external_status, current_status, reason,
        )
        self._event_bus.publish(TransitionIgnored.create(
            order_reference=order_reference,
            external_status=external_status,
            previous_status=current_status,
            reason=reason,
        ))
        return IgnoredTransition(
            order_reference=order_reference,
            external_status=external_status,
            previous_status=current_status,
            reason=reason,
        )
