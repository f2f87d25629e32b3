"""Invoice domain models.

An invoice is the processor's record of a single payment request. Once the
processor has issued it, nothing about it changes locally: re-quoting an
order means a new invoice, never a mutation of this one.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator


class ExternalStatus(str, Enum):
    """Invoice status values reported by the processor."""

    NEW = "new"
    AUTHORIZING = "authorizing"
    PAID = "paid"
    REFUND_REQUESTED = "refund_requested"
    REFUND_OWED = "refund_owed"
    REFUND_PAID = "refund_paid"
    EXPIRED = "expired"

    @classmethod
    def parse(cls, value: str) -> "ExternalStatus | None":
        """Map a raw status string to a known status, or None if unrecognized."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class InvoiceRequest(BaseModel):
    """Payload for invoice creation. Field names follow the processor's wire format."""

    base_price: Decimal = Field(..., gt=0)
    base_ccy: str = Field(..., pattern=r"^[A-Z]{3}$")
    callback: str
    type: str = "cart"
    order: str = Field(..., min_length=1)

    @field_validator("base_ccy", mode="before")
    @classmethod
    def _normalize_currency(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("callback")
    @classmethod
    def _require_absolute_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"callback must be an absolute http(s) URL, got '{value}'")
        return value

    def to_payload(self) -> dict:
        """JSON body sent to the processor."""
        return {
            "base_price": float(self.base_price),
            "base_ccy": self.base_ccy,
            "callback": self.callback,
            "type": self.type,
            "order": self.order,
        }


class Invoice(BaseModel):
    """Invoice as issued by the processor."""

    id: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    status: str | None = None
    order_reference: str
    base_amount: Decimal
    base_currency: str
    created_at: datetime

    model_config = {"frozen": True}
