# File: src/gatepark/infrastructure/messaging.py
"""
In-process domain event bus

ParkingService drains the facility's pending domain events after every use
case and hands them to an EventBus. Subscribers register per event type
(the event class name, e.g. "VehicleExitedEvent") or for every event with "*".
"""

from typing import Callable, Dict, List
import logging

from ..domain.models import DomainEvent


EventHandler = Callable[[DomainEvent], None]

ALL_EVENTS = "*"


class EventBus:
    """
    Synchronous publish/subscribe for domain events
    A failing handler is logged and does not stop the others
    """

    def __init__(self):
        self._subscribers: Dict[str, List[EventHandler]] = {}
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe to events of a specific type"""
        handlers = self._subscribers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            self._logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers"""
        self._logger.info(f"Publishing event: {event.event_type} (ID: {event.event_id})")

        handlers = self._subscribers.get(event.event_type, []) + self._subscribers.get(ALL_EVENTS, [])
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self._logger.error(f"Error handling event {event.event_type}: {e}")
