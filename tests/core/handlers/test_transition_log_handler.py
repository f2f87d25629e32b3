"""Tests for the gateway event audit handler."""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from core.event_bus import EventBus
from core.events import InvoiceCreated, InvoiceReused, OrderTransitioned, TransitionIgnored
from core.handlers.transition_log_handler import handle_gateway_event
from core.models import Invoice


def _invoice():
    return Invoice(
        id="inv_1", url="https://pay/inv_1", order_reference="1",
        base_amount=Decimal("1"), base_currency="USD",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class TestHandleGatewayEvent:

    def test_transition_logged_at_info(self, caplog):
        handler = handle_gateway_event()

        with caplog.at_level(logging.INFO, logger="core.handlers.transition_log_handler"):
            handler(OrderTransitioned.create(
                order_reference="1001", external_status="authorizing",
                previous_status="pending", new_status="processing", note="n",
            ))

        assert "order=1001" in caplog.text
        assert "pending->processing" in caplog.text

    def test_ignored_logged_at_debug_only(self, caplog):
        handler = handle_gateway_event()
        event = TransitionIgnored.create(
            order_reference="1", external_status="paid", previous_status="pending", reason="r",
        )

        with caplog.at_level(logging.INFO, logger="core.handlers.transition_log_handler"):
            handler(event)
        assert caplog.records == []

        with caplog.at_level(logging.DEBUG, logger="core.handlers.transition_log_handler"):
            handler(event)
        assert "ignored order=1" in caplog.text

    def test_invoice_events(self, caplog):
        handler = handle_gateway_event()

        with caplog.at_level(logging.DEBUG, logger="core.handlers.transition_log_handler"):
            handler(InvoiceCreated.create(order_id="1", invoice=_invoice()))
            handler(InvoiceReused.create(order_id="1", invoice=_invoice()))

        assert "invoice_created order=1 invoice=inv_1" in caplog.text
        assert "invoice_reused order=1 invoice=inv_1" in caplog.text

    def test_custom_logger(self, caplog):
        handler = handle_gateway_event(logging.getLogger("shop.audit"))

        with caplog.at_level(logging.INFO, logger="shop.audit"):
            handler(InvoiceCreated.create(order_id="1", invoice=_invoice()))

        assert caplog.records[0].name == "shop.audit"

    def test_subscribed_as_wildcard(self, caplog):
        bus = EventBus()
        bus.subscribe(EventBus.WILDCARD, handle_gateway_event())

        with caplog.at_level(logging.INFO, logger="core.handlers.transition_log_handler"):
            bus.publish(InvoiceCreated.create(order_id="7", invoice=_invoice()))

        assert "invoice_created order=7" in caplog.text
