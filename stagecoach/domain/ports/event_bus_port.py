"""
Event Bus Port

Architectural Intent:
- Delivers a finished run's outcome events to subscribers (telemetry today)
- Subscribing to a base event class receives every subclass of it
"""

from typing import Awaitable, Callable, Protocol, Sequence, runtime_checkable
from stagecoach.domain.events.event_base import DomainEvent

EventHandler = Callable[[DomainEvent], Awaitable[None]]


@runtime_checkable
class EventBusPort(Protocol):
    async def publish(self, events: Sequence[DomainEvent]) -> None: ...

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None: ...
