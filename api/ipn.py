"""HTTP route for processor notifications (IPN)."""

import ipaddress

from fastapi import APIRouter, Request

from api.base import success_response
from ipn.service import NotificationService
from ipn.types import NotificationHeaders


def _get_client_ip(request: Request) -> str | None:
    """Extract valid IP address from request, or None if invalid."""
    if not request.client:
        return None
    host = request.client.host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return None


def create_ipn_router(notification_service: NotificationService, callback_path: str) -> APIRouter:
    """Create notification router with injected service."""
    router = APIRouter(tags=["ipn"])

    @router.post(callback_path)
    async def receive_notification(request: Request):
        """Authenticate a processor notification and reconcile its order.

        Returns 200 for applied and ignored notifications alike. Rejections
        surface through the error handlers (401 / 422).
        """
        # Signature covers the exact bytes sent, so read before any parsing
        raw_body = await request.body()

        result = notification_service.handle(
            raw_body=raw_body,
            headers=NotificationHeaders.from_mapping(request.headers),
            target_url=str(request.url),
            ip_address=_get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )

        return success_response(result.to_dict(), request.state.request_id)

    return router
