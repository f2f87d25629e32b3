"""HTTP routes for the payment step of checkout."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.base import success_response, error_response, ErrorCodes
from core.services.checkout_service import CheckoutService


def create_checkout_router(checkout_service: CheckoutService, available: bool = True) -> APIRouter:
    """Create checkout router with injected service.

    Args:
        checkout_service: Issues and reuses invoices
        available: False when the gateway is disabled or has no credentials
    """
    router = APIRouter(prefix="/yellow/checkout", tags=["checkout"])

    def _unavailable(request: Request) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content=error_response(
                ErrorCodes.GATEWAY_UNAVAILABLE,
                "Bitcoin payment is not available",
                request.state.request_id,
            ).model_dump(mode="json"),
        )

    @router.post("/{order_id}")
    def start_checkout(request: Request, order_id: str):
        """Issue or reuse the invoice for this order in the caller's session."""
        if not available:
            return _unavailable(request)

        result = checkout_service.process_payment(order_id)
        return success_response(result.to_dict(), request.state.request_id)

    @router.get("/{order_id}/invoice")
    def get_invoice(request: Request, order_id: str):
        """Invoice URL for the pay page."""
        if not available:
            return _unavailable(request)

        invoice_url = checkout_service.get_invoice_url(order_id)
        if invoice_url is None:
            raise ValueError(f"Invoice for order {order_id} not found")

        return success_response(
            {"order": order_id, "invoice_url": invoice_url},
            request.state.request_id,
        )

    return router
