"""
Event Bus Infrastructure

Architectural Intent:
- In-memory event bus implementation for publishing deployment outcome events
- Handlers subscribed to a base class receive its subclasses too
- A failing handler is logged and does not stop delivery to the others
"""

import logging
from typing import Sequence

from stagecoach.domain.events.event_base import DomainEvent
from stagecoach.domain.ports.event_bus_port import EventHandler

logger = logging.getLogger(__name__)


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = {}

    def _handlers_for(self, event: DomainEvent) -> list[EventHandler]:
        handlers: list[EventHandler] = []
        for cls in type(event).__mro__:
            handlers.extend(self._handlers.get(cls, ()))
        return handlers

    async def publish(self, events: Sequence[DomainEvent]) -> None:
        for event in events:
            for handler in self._handlers_for(event):
                try:
                    await handler(event)
                except Exception as e:
                    logger.error("Handler %r failed for %s: %s", handler, event.event_type, e)

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
