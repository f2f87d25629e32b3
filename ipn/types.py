"""Pydantic models for inbound processor notifications."""

import json
from typing import Any, ClassVar, Mapping

from pydantic import BaseModel, Field

from core.exceptions import ResolutionError


class ProcessorCredentials(BaseModel):
    """API key pair issued by the processor."""

    api_key: str = Field(..., min_length=1)
    api_secret: str = Field(..., min_length=1, repr=False)

    model_config = {"frozen": True}


class NotificationHeaders(BaseModel):
    """Out-of-band authentication metadata sent alongside a notification body."""

    signature: str | None = None
    api_key: str | None = None
    nonce: str | None = None

    SIGN_HEADER: ClassVar[str] = "API-SIGN"
    KEY_HEADER: ClassVar[str] = "API-KEY"
    NONCE_HEADER: ClassVar[str] = "API-NONCE"

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str]) -> "NotificationHeaders":
        """Read the API-* headers, ignoring header name case."""
        lowered = {str(k).lower(): v for k, v in headers.items()}
        return cls(
            signature=lowered.get(cls.SIGN_HEADER.lower()),
            api_key=lowered.get(cls.KEY_HEADER.lower()),
            nonce=lowered.get(cls.NONCE_HEADER.lower()),
        )


class Notification(BaseModel):
    """Business content of an authenticated notification."""

    order_reference: str | None = None
    external_status: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_body(cls, raw_body: bytes | str) -> "Notification":
        """
        Parse a notification body. Only call after the body was authenticated.

        Raises:
            ResolutionError: If the body is not a JSON object
        """
        try:
            data = json.loads(raw_body)
        except (ValueError, UnicodeDecodeError) as e:
            raise ResolutionError(f"Notification body is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise ResolutionError("Notification body is not a JSON object")

        order = data.get("order")
        status = data.get("status")
        return cls(
            order_reference=str(order) if order is not None else None,
            external_status=str(status) if status is not None else None,
            payload=data,
        )
