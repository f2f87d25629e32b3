"""
Order-management collaborator interface.

The storefront implements this. The gateway reads orders and requests
changes exclusively through these methods; it never mutates order fields
directly.
"""

from typing import Protocol

from core.models import Order


class OrderManager(Protocol):
    """Entry points the gateway needs from the hosting storefront."""

    def get_order(self, order_id: str) -> Order | None:
        """Load an order by id or order number. None if it doesn't exist."""
        ...

    def current_status(self, order: Order) -> str | None:
        """Fresh status of the order (may differ from the loaded snapshot)."""
        ...

    def update_status(self, order: Order, new_status: str) -> None:
        ...

    def add_note(self, order: Order, text: str) -> None:
        ...

    def mark_payment_complete(self, order: Order) -> None:
        """Run the storefront's "payment done" transition."""
        ...

    def reduce_stock(self, order: Order) -> None:
        ...

    def clear_cart(self) -> None:
        ...
