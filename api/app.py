"""Application factory: wires clients, services and routes into a FastAPI app."""

import logging

from fastapi import FastAPI

from api.checkout import create_checkout_router
from api.errors import register_error_handlers
from api.gateway import create_gateway_router
from api.ipn import create_ipn_router
from api.middleware import CheckoutSessionMiddleware, RequestIDMiddleware
from clients.valkey_client import ValkeyClient
from clients.vault_client import VaultError, get_processor_credentials, get_valkey_url
from clients.yellow_client import YellowClient
from core.config import GatewayConfig
from core.event_bus import EventBus
from core.gateway import GatewayDescriptor
from core.handlers.transition_log_handler import handle_gateway_event
from core.invoice_cache import InvoiceCache, KeyValueStore
from core.orders import OrderManager
from core.reconciliation import OrderReconciler
from core.services.checkout_service import CheckoutService
from ipn.replay_guard import ReplayGuard
from ipn.security_logger import SecurityLogger
from ipn.service import NotificationService
from ipn.types import ProcessorCredentials
from ipn.verifier import NotificationVerifier
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(
    config: GatewayConfig,
    credentials: ProcessorCredentials,
    order_manager: OrderManager,
    store: KeyValueStore,
    event_bus: EventBus | None = None,
) -> FastAPI:
    """
    Build the gateway app.

    Args:
        config: Gateway configuration
        credentials: Processor API key pair
        order_manager: Storefront order adapter
        store: Shared key-value store (ValkeyClient in production)
        event_bus: Bus for gateway events; a private one is created if omitted
    """
    event_bus = event_bus or EventBus()
    event_bus.subscribe(EventBus.WILDCARD, handle_gateway_event())

    client = YellowClient(credentials.api_key, credentials.api_secret, config)
    cache = InvoiceCache(
        store,
        ttl_seconds=config.invoice_cache_ttl_seconds,
        lock_ttl_seconds=config.checkout_lock_ttl_seconds,
        lock_wait_seconds=config.checkout_lock_wait_seconds,
    )
    checkout_service = CheckoutService(order_manager, client, cache, event_bus, config)

    reconciler = OrderReconciler(order_manager, event_bus, strict_status=config.strict_status)
    replay_guard = (
        ReplayGuard(store, config.replay_window_seconds)
        if config.replay_window_seconds > 0
        else None
    )
    verifier = NotificationVerifier(
        replay_guard=replay_guard,
        expected_target_url=client.current_callback_url(),
    )
    notification_service = NotificationService(
        verifier, reconciler, credentials, SecurityLogger()
    )

    app = FastAPI(title="Yellow Payment Gateway")
    app.add_middleware(
        CheckoutSessionMiddleware,
        secure_cookie=config.store_base_url.startswith("https://"),
        max_age_seconds=config.invoice_cache_ttl_seconds,
    )
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    available = config.is_available(credentials.api_key, credentials.api_secret)
    app.include_router(create_ipn_router(notification_service, config.callback_path))
    app.include_router(create_checkout_router(checkout_service, available=available), prefix="/api")
    app.include_router(create_gateway_router(GatewayDescriptor()), prefix="/api")

    app.state.event_bus = event_bus
    app.state.checkout_service = checkout_service
    app.state.notification_service = notification_service

    logger.info(
        "Yellow gateway ready (available=%s, callback=%s)",
        available,
        client.current_callback_url(),
    )
    return app


def build_app_from_vault(order_manager: OrderManager, config: GatewayConfig | None = None) -> FastAPI:
    """
    Build the app with credentials and the Valkey URL read from Vault.

    Raises:
        VaultError: Processor credentials or the Valkey URL could not be read
        redis.ConnectionError: Valkey is unreachable
    """
    config = config or GatewayConfig()
    setup_logging(debug=config.debug)

    try:
        credentials = ProcessorCredentials(**get_processor_credentials())
        valkey_url = get_valkey_url()
    except (PermissionError, KeyError) as e:
        raise VaultError(f"Gateway secrets unavailable: {e}") from e

    store = ValkeyClient(valkey_url)

    return create_app(config, credentials, order_manager, store)
