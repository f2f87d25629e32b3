"""Tests for CheckoutService - invoice issue and reuse at checkout."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest

from clients.yellow_client import InvoiceCreationError, YellowClient
from core.events import InvoiceCreated, InvoiceReused
from core.exceptions import OrderNotFoundError
from core.invoice_cache import InvoiceCache
from core.models import Invoice
from core.reconciliation import OrderReconciler
from core.services.checkout_service import RETRY_MESSAGE, CheckoutService
from utils.session_context import checkout_session


def _invoice(invoice_id, order="1"):
    return Invoice(
        id=invoice_id,
        url=f"https://pay/{invoice_id}",
        order_reference=order,
        base_amount=Decimal("25.00"),
        base_currency="USD",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def client():
    """Mock processor client issuing inv_1, inv_2, ... in order."""
    mock = Mock(spec=YellowClient)
    mock.current_callback_url.return_value = "http://testserver/api/yellow/ipn"
    counter = iter(range(1, 100))
    mock.create_invoice.side_effect = lambda **kw: _invoice(f"inv_{next(counter)}", kw["order_id"])
    return mock


@pytest.fixture
def cache(store, config):
    return InvoiceCache(store, ttl_seconds=config.invoice_cache_ttl_seconds, lock_wait_seconds=0)


@pytest.fixture
def service(orders, client, cache, event_bus, config):
    return CheckoutService(orders, client, cache, event_bus, config)


class TestFirstCheckout:

    def test_creates_invoice(self, service, orders, client, in_session):
        orders.add("1001", status="pending", total="25.00", currency="EUR", number="WC-1001")

        result = service.process_payment("1001")

        assert result.ok
        assert result.invoice_id == "inv_1"
        assert result.invoice_url == "https://pay/inv_1"
        assert result.reused is False
        client.create_invoice.assert_called_once_with(
            order_id="1001",
            amount=Decimal("25.00"),
            currency="EUR",
            callback_url="http://testserver/api/yellow/ipn",
            order_number="WC-1001",
        )

    def test_falls_back_to_store_currency(self, service, orders, client, in_session):
        orders.add("1", currency=None)

        service.process_payment("1")

        assert client.create_invoice.call_args.kwargs["currency"] == "USD"

    def test_side_effects(self, service, orders, in_session):
        orders.add("1")

        service.process_payment("1")

        assert orders.notes["1"] == ["Order created with Yellow invoice of ID: inv_1"]
        assert orders.stock_reductions == ["1"]
        assert orders.carts_cleared == 1

    def test_publishes_invoice_created(self, service, orders, published, in_session):
        orders.add("1")

        service.process_payment("1")

        assert len(published) == 1
        assert isinstance(published[0], InvoiceCreated)
        assert published[0].replaced_failed is False


class TestInvoiceReuse:

    def test_reload_reuses_invoice(self, service, orders, client, in_session):
        orders.add("1")

        first = service.process_payment("1")
        second = service.process_payment("1")

        assert second.invoice_url == first.invoice_url
        assert second.reused is True
        assert client.create_invoice.call_count == 1

    def test_reuse_has_no_side_effects(self, service, orders, published, in_session):
        orders.add("1")
        service.process_payment("1")

        service.process_payment("1")

        assert orders.stock_reductions == ["1"]
        assert orders.carts_cleared == 1
        assert isinstance(published[-1], InvoiceReused)

    def test_other_session_gets_own_invoice(self, service, orders, client):
        orders.add("1")

        with checkout_session("a"):
            a = service.process_payment("1")
        with checkout_session("b"):
            b = service.process_payment("1")

        assert a.invoice_id != b.invoice_id
        assert client.create_invoice.call_count == 2

    def test_failed_order_gets_new_invoice(self, service, orders, client, in_session):
        orders.add("1")
        first = service.process_payment("1")
        orders.statuses["1"] = "failed"

        second = service.process_payment("1")

        assert second.invoice_url != first.invoice_url
        assert second.reused is False
        assert client.create_invoice.call_count == 2

    def test_failed_order_replacement_side_effects(self, service, orders, published, in_session):
        orders.add("1")
        service.process_payment("1")
        orders.statuses["1"] = "failed"

        service.process_payment("1")

        assert orders.notes["1"][-1] == "New Yellow invoice created of ID: inv_2"
        assert orders.statuses["1"] == "pending"
        assert orders.stock_reductions == ["1"]
        assert orders.carts_cleared == 1
        assert published[-1].replaced_failed is True

    def test_replacement_is_then_reused(self, service, orders, client, in_session):
        orders.add("1")
        service.process_payment("1")
        orders.statuses["1"] = "failed"
        replacement = service.process_payment("1")

        again = service.process_payment("1")

        assert again.invoice_id == replacement.invoice_id
        assert client.create_invoice.call_count == 2


class TestExpiredThenCheckout:

    def test_expired_order_checkout_creates_brand_new_invoice(
        self, service, orders, client, event_bus, in_session
    ):
        orders.add("1002", status="on-hold")
        old = service.process_payment("1002")

        OrderReconciler(orders, event_bus).apply("1002", "expired")
        new = service.process_payment("1002")

        assert orders.statuses["1002"] == "pending"
        assert new.invoice_url != old.invoice_url


class TestFailures:

    def test_processor_failure_returns_retry(self, service, orders, client, in_session):
        orders.add("1")
        client.create_invoice.side_effect = InvoiceCreationError("Processor timed out")

        result = service.process_payment("1")

        assert result.result == "retry"
        assert result.message == RETRY_MESSAGE
        assert result.invoice_url is None
        assert orders.notes["1"] == []
        assert orders.stock_reductions == []

    def test_failure_caches_nothing(self, service, orders, client, store, in_session):
        orders.add("1")
        client.create_invoice.side_effect = InvoiceCreationError("down")

        service.process_payment("1")

        assert store.data == {}

    def test_busy_lock_returns_retry(self, service, orders, cache, client, in_session):
        orders.add("1")

        with cache.lock("1"):
            result = service.process_payment("1")

        assert result.result == "retry"
        client.create_invoice.assert_not_called()

    def test_unknown_order_raises(self, service, in_session):
        with pytest.raises(OrderNotFoundError, match="not found"):
            service.process_payment("404")

    def test_empty_order_id_raises(self, service, in_session):
        with pytest.raises(ValueError, match="without an order id"):
            service.process_payment("")


class TestGetInvoiceUrl:

    def test_returns_cached_url(self, service, orders, in_session):
        orders.add("1")
        service.process_payment("1")
        assert service.get_invoice_url("1") == "https://pay/inv_1"

    def test_none_when_nothing_cached(self, service, in_session):
        assert service.get_invoice_url("1") is None


class TestCheckoutResult:

    def test_to_dict(self, service, orders, in_session):
        orders.add("1")
        data = service.process_payment("1").to_dict()
        assert data == {
            "result": "success",
            "invoice_id": "inv_1",
            "invoice_url": "https://pay/inv_1",
            "reused": False,
            "message": None,
        }
