"""Shared test fixtures for the gateway test suite.

Everything here runs in memory: orders live in an InMemoryOrderManager and
cache, lock and nonce keys in a FakeStore, so no Valkey, Vault or
storefront is needed.
"""

from decimal import Decimal
from pathlib import Path

import pytest

from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton so no test reuses another test's secrets
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from clients.yellow_client import compute_signature
from core.config import GatewayConfig
from core.event_bus import EventBus
from core.models import Order
from ipn.types import ProcessorCredentials
from utils.session_context import checkout_session, clear_current_session_id


# =============================================================================
# TEST CONSTANTS
# =============================================================================

TEST_API_KEY = "test-api-key"
TEST_API_SECRET = "test-api-secret"
TEST_STORE_URL = "http://testserver"
TEST_CALLBACK_URL = f"{TEST_STORE_URL}/api/yellow/ipn"
TEST_API_BASE_URL = "https://api.yellow.test/v1"
TEST_INVOICE_ENDPOINT = f"{TEST_API_BASE_URL}/invoices"
TEST_SESSION_ID = "session-a"


# =============================================================================
# IN-MEMORY COLLABORATORS
# =============================================================================


class FakeStore:
    """Dict-backed KeyValueStore. Records TTLs instead of expiring keys."""

    def __init__(self):
        self.data: dict[str, object] = {}
        self.ttls: dict[str, int | None] = {}

    def get_json(self, key):
        return self.data.get(key)

    def set_json(self, key, value, expire_seconds=None):
        self.data[key] = value
        self.ttls[key] = expire_seconds

    def delete(self, key):
        self.ttls.pop(key, None)
        return self.data.pop(key, None) is not None

    def set_if_absent(self, key, value, expire_seconds):
        if key in self.data:
            return False
        self.data[key] = value
        self.ttls[key] = expire_seconds
        return True

    def delete_if_equals(self, key, expected):
        if self.data.get(key) != expected:
            return False
        return self.delete(key)

    def exists(self, key):
        return key in self.data


class InMemoryOrderManager:
    """OrderManager over a dict, recording every side effect."""

    def __init__(self):
        self.orders: dict[str, Order] = {}
        self.statuses: dict[str, str | None] = {}
        self.notes: dict[str, list[str]] = {}
        self.status_updates: list[tuple[str, str]] = []
        self.payments_completed: list[str] = []
        self.stock_reductions: list[str] = []
        self.carts_cleared = 0

    def add(self, order_id, status="pending", total="25.00", currency="USD", number=None):
        order = Order(
            id=order_id,
            number=number or order_id,
            status=status,
            total=Decimal(total),
            currency=currency,
        )
        self.orders[order_id] = order
        self.statuses[order_id] = status
        self.notes[order_id] = []
        return order

    def get_order(self, order_id):
        if order_id in self.orders:
            return self.orders[order_id]
        for order in self.orders.values():
            if order.number == order_id:
                return order
        return None

    def current_status(self, order):
        return self.statuses.get(order.id)

    def update_status(self, order, new_status):
        self.statuses[order.id] = new_status
        self.status_updates.append((order.id, new_status))

    def add_note(self, order, text):
        self.notes[order.id].append(text)

    def mark_payment_complete(self, order):
        self.statuses[order.id] = "completed"
        self.payments_completed.append(order.id)

    def reduce_stock(self, order):
        self.stock_reductions.append(order.id)

    def clear_cart(self):
        self.carts_cleared += 1


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_session_context():
    """Ensure no checkout session leaks between tests."""
    clear_current_session_id()
    yield
    clear_current_session_id()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def orders():
    return InMemoryOrderManager()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def published(event_bus):
    """Every event published on the bus, in order."""
    events = []
    event_bus.subscribe(EventBus.WILDCARD, events.append)
    return events


@pytest.fixture
def config():
    return GatewayConfig(
        api_base_url=TEST_API_BASE_URL,
        store_base_url=TEST_STORE_URL,
        checkout_lock_wait_seconds=0,
    )


@pytest.fixture
def credentials():
    return ProcessorCredentials(api_key=TEST_API_KEY, api_secret=TEST_API_SECRET)


@pytest.fixture
def in_session():
    """Run the test inside the primary checkout session."""
    with checkout_session(TEST_SESSION_ID):
        yield TEST_SESSION_ID


@pytest.fixture
def sign():
    """Build processor-style notification headers for a body."""
    counter = iter(range(1_700_000_000_000, 1_800_000_000_000))

    def _sign(body, url=TEST_CALLBACK_URL, secret=TEST_API_SECRET, api_key=TEST_API_KEY, nonce=None):
        nonce = nonce or str(next(counter))
        return {
            "API-KEY": api_key,
            "API-NONCE": nonce,
            "API-SIGN": compute_signature(secret, nonce, url, body),
        }

    return _sign
