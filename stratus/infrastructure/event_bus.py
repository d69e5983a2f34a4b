"""
Event Bus Infrastructure

Architectural Intent:
- In-memory event bus implementation for publishing domain events
- Supports async subscription handlers; DomainEvent subscribers see every event
"""

import logging
from typing import Callable, Awaitable
from stratus.domain.events.event_base import DomainEvent

logger = logging.getLogger(__name__)


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[DomainEvent], Awaitable[None]]]] = {}

    async def publish(self, events: list[DomainEvent]) -> None:
        for event in events:
            for event_type, handlers in self._handlers.items():
                if isinstance(event, event_type):
                    for handler in handlers:
                        await handler(event)
            logger.debug("Published %s", event.event_type)

    def subscribe(
        self, event_type: type, handler: Callable[[DomainEvent], Awaitable[None]]
    ) -> None:
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)
