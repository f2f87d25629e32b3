"""Core domain models."""

from core.models.invoice import Invoice, InvoiceRequest, ExternalStatus
from core.models.order import Order, OrderStatus

__all__ = [
    # Invoice
    "Invoice", "InvoiceRequest", "ExternalStatus",
    # Order
    "Order", "OrderStatus",
]
