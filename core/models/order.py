"""Order view consumed from the order-management system.

The storefront owns orders. This is the subset the gateway reads; the
gateway never invents statuses, it only requests transitions between the
ones below.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    """Local order status values the gateway reasons about."""

    PENDING = "pending"
    ON_HOLD = "on-hold"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class Order(BaseModel):
    """Order as seen by the gateway."""

    id: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    # Plain string: the storefront may use statuses outside OrderStatus
    status: str | None = None
    total: Decimal
    currency: str | None = None

    model_config = {"from_attributes": True}
