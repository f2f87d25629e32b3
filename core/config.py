"""Payment gateway configuration."""

from pydantic import BaseModel, Field


class GatewayConfig(BaseModel):
    """
    Gateway configuration.

    Secrets (API key and secret) are not part of this model; they come from
    Vault at wiring time. Durations are in seconds.
    """

    # Availability
    enabled: bool = Field(
        default=True,
        description="Accept payments through this gateway",
    )
    debug: bool = Field(
        default=False,
        description="Log invoice payloads and raw notification bodies",
    )

    # Processor API
    api_base_url: str = Field(
        default="https://api.yellowpay.co/v1",
        description="Processor API root",
    )
    invoice_path: str = Field(
        default="/invoices",
        description="Invoice creation endpoint, relative to api_base_url",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for calls to the processor",
        ge=1,
        le=60,
    )

    # Store
    store_base_url: str = Field(
        default="http://localhost:8000",
        description="Public base URL of the store, used to build the callback URL",
    )
    callback_path: str = Field(
        default="/api/yellow/ipn",
        description="Path the processor posts notifications to",
    )
    store_currency: str = Field(
        default="USD",
        description="Currency used when an order does not carry one",
        pattern=r"^[A-Z]{3}$",
    )

    # Invoice cache and checkout lock
    invoice_cache_ttl_seconds: int = Field(
        default=86400,
        description="How long a checkout session keeps reusing an invoice",
        ge=60,
        le=604800,
    )
    checkout_lock_ttl_seconds: int = Field(
        default=30,
        description="Auto-release time for the per-order checkout lock",
        ge=5,
        le=300,
    )
    checkout_lock_wait_seconds: float = Field(
        default=5.0,
        description="How long a concurrent checkout waits for the lock",
        ge=0,
        le=60,
    )

    # Notifications
    replay_window_seconds: int = Field(
        default=300,
        description="Reject a repeated nonce within this window (0 disables)",
        ge=0,
        le=86400,
    )
    strict_status: bool = Field(
        default=False,
        description="Treat unrecognized notification statuses as errors instead of ignoring them",
    )

    def callback_url(self) -> str:
        """Fully-qualified URL the processor posts notifications to."""
        return f"{self.store_base_url.rstrip('/')}{self.callback_path}"

    def is_available(self, api_key: str | None, api_secret: str | None) -> bool:
        """Whether the gateway can be offered at checkout."""
        return self.enabled and bool(api_key) and bool(api_secret)
