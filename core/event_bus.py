"""
Event bus for gateway domain events.

Synchronous in-process pub/sub. Handlers execute immediately in the same
thread as the publisher. Handler errors are logged but never propagate:
by the time an event is published the order has already been updated, and
the processor must still get its 200.
"""

import logging
from typing import Callable, Dict, List

from core.events import GatewayEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    In-process event bus for gateway domain events.

    Subscribe by event class name (string) or "*" for every event,
    publish by event instance. Handlers are called in subscription order.
    """

    WILDCARD = "*"

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, callback: Callable):
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Name of event class (e.g. 'OrderTransitioned') or "*"
            callback: Function to call when event is published
        """
        self._subscribers.setdefault(event_type, []).append(callback)

    def publish(self, event: GatewayEvent):
        """
        Publish an event to all subscribers of that type, then to wildcard subscribers.

        Args:
            event: GatewayEvent instance to publish
        """
        event_type = event.__class__.__name__
        callbacks = self._subscribers.get(event_type, []) + self._subscribers.get(self.WILDCARD, [])

        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s (event_id=%s)",
                    getattr(callback, "__name__", repr(callback)),
                    event_type,
                    event.event_id,
                )
