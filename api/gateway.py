"""GET /api/yellow/gateway - display text for the payment method."""

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.gateway import GatewayDescriptor, RenderContext


def create_gateway_router(descriptor: GatewayDescriptor) -> APIRouter:
    router = APIRouter(tags=["gateway"])

    @router.get("/yellow/gateway")
    async def describe_gateway(
        request: Request,
        context: RenderContext = Query(RenderContext.CHECKOUT),
    ):
        return success_response(descriptor.to_dict(context), request.state.request_id)

    return router
