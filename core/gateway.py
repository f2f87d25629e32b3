"""
Gateway display descriptor.

Which title the storefront shows depends on where it renders it: checkout
and the order-pay form get the rich title with the explainer link, admin
screens get the plain one. Callers say where they are rendering.
"""

from dataclasses import dataclass
from enum import Enum


class RenderContext(str, Enum):
    """Where the gateway title is being rendered."""

    CHECKOUT = "checkout"
    PAYMENT_FORM = "payment_form"
    ADMIN = "admin"


@dataclass(frozen=True)
class GatewayDescriptor:
    """Static display text for the gateway."""

    id: str = "yellow"
    title: str = (
        'Pay with Bitcoin (<a href="http://yellowpay.co/what-is-bitcoin/" '
        'target="_blank">what is bitcoin?</a>)'
    )
    backend_title: str = "Bitcoin Payment"
    description: str = (
        "Bitcoin is digital cash. Make online payments even if you don't have a credit card!"
    )
    method_title: str = "Yellow"
    method_description: str = (
        "To accept bitcoin payment, register through the Yellow merchants website, "
        "then paste your API key and secret below"
    )

    def title_for(self, context: RenderContext) -> str:
        """Title for the given rendering context."""
        if context in (RenderContext.CHECKOUT, RenderContext.PAYMENT_FORM):
            return self.title
        return self.backend_title

    def to_dict(self, context: RenderContext) -> dict:
        return {
            "id": self.id,
            "title": self.title_for(context),
            "description": self.description,
            "method_title": self.method_title,
            "method_description": self.method_description,
        }
