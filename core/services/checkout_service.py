"""
Checkout service: issue or reuse the invoice for an order.

One checkout attempt issues at most one invoice. Reloads within the same
checkout session reuse the cached invoice unless the order has failed in
the meantime, in which case a fresh invoice replaces it.
"""

import logging
from dataclasses import dataclass, asdict

from clients.yellow_client import InvoiceCreationError, YellowClient
from core.config import GatewayConfig
from core.event_bus import EventBus
from core.events import InvoiceCreated, InvoiceReused
from core.exceptions import OrderNotFoundError
from core.invoice_cache import CheckoutInProgressError, InvoiceCache
from core.models import Invoice, Order, OrderStatus
from core.orders import OrderManager

logger = logging.getLogger(__name__)

RETRY_MESSAGE = (
    "We're sorry, an error has occurred while completing your request. "
    "Please resubmit the shopping cart and try again. If the error persists, "
    "please send us an email at support@yellowpay.co"
)


@dataclass
class CheckoutResult:
    """Outcome of a checkout attempt."""

    result: str  # "success" or "retry"
    invoice_id: str | None = None
    invoice_url: str | None = None
    reused: bool = False
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.result == "success"

    def to_dict(self) -> dict:
        return asdict(self)


class CheckoutService:
    """Runs the payment step of checkout for the current session."""

    def __init__(
        self,
        orders: OrderManager,
        client: YellowClient,
        cache: InvoiceCache,
        event_bus: EventBus,
        config: GatewayConfig,
    ):
        self.orders = orders
        self.client = client
        self.cache = cache
        self.event_bus = event_bus
        self.config = config

    def process_payment(self, order_id: str) -> CheckoutResult:
        """
        Issue (or reuse) the invoice the customer pays for this order.

        Args:
            order_id: Order being checked out

        Returns:
            CheckoutResult with the invoice URL, or result="retry" with an
            apology when the processor failed or another checkout of the same
            order is still running.

        Raises:
            OrderNotFoundError: If the order doesn't exist
            ValueError: If order_id is empty or the order can't be invoiced
                (e.g. non-positive total)
        """
        if not order_id:
            raise ValueError("Checkout was called without an order id")

        order = self.orders.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")

        try:
            with self.cache.lock(order_id):
                status = self.orders.current_status(order)

                cached = self.cache.lookup(order_id, status)
                if cached is not None:
                    logger.info("Reusing invoice %s for order %s", cached.id, order_id)
                    self.event_bus.publish(InvoiceReused.create(order_id=order_id, invoice=cached))
                    return CheckoutResult(
                        result="success",
                        invoice_id=cached.id,
                        invoice_url=cached.url,
                        reused=True,
                    )

                invoice = self._issue_invoice(order_id, order, status)
        except (InvoiceCreationError, CheckoutInProgressError) as e:
            logger.error("Checkout for order %s not completed: %s", order_id, e)
            return CheckoutResult(result="retry", message=RETRY_MESSAGE)

        return CheckoutResult(
            result="success",
            invoice_id=invoice.id,
            invoice_url=invoice.url,
            reused=False,
        )

    def _issue_invoice(self, order_id: str, order: Order, status: str | None) -> Invoice:
        """Create a fresh invoice, run the storefront side effects and cache it."""
        invoice = self.client.create_invoice(
            order_id=order_id,
            amount=order.total,
            currency=order.currency or self.config.store_currency,
            callback_url=self.client.current_callback_url(),
            order_number=order.number,
        )

        replaced_failed = status == OrderStatus.FAILED.value
        if replaced_failed:
            self.orders.add_note(order, f"New Yellow invoice created of ID: {invoice.id}")
            self.orders.update_status(order, OrderStatus.PENDING.value)
        else:
            # First invoice for this order: stock and cart are settled exactly once
            self.orders.add_note(order, f"Order created with Yellow invoice of ID: {invoice.id}")
            self.orders.reduce_stock(order)
            self.orders.clear_cart()

        self.cache.put(order_id, invoice)

        logger.info("Created invoice %s for order %s", invoice.id, order_id)
        self.event_bus.publish(InvoiceCreated.create(
            order_id=order_id,
            invoice=invoice,
            replaced_failed=replaced_failed,
        ))

        return invoice

    def get_invoice_url(self, order_id: str) -> str | None:
        """Invoice URL to embed on the pay page for this session, or None."""
        invoice = self.cache.get(order_id)
        return invoice.url if invoice is not None else None
