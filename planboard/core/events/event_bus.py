"""Simple in-process event bus."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional


@dataclass(frozen=True)
class DomainEvent:
    """A committed domain change announced to in-process subscribers."""

    event_type: str
    payload: dict = field(default_factory=dict)
    user_id: Optional[str] = None


EventHandler = Callable[[DomainEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._subscribers.setdefault(event_type, [])
        # Factories run once per app; keep one registration per handler.
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in list(self._subscribers.get(event.event_type, [])):
            handler(event)


# Global singleton
event_bus = EventBus()


def publish(event_type: str, payload: dict, user_id: Optional[str] = None) -> DomainEvent:
    """Build and publish an event on the shared bus."""
    event = DomainEvent(event_type=event_type, payload=payload, user_id=user_id)
    event_bus.publish(event)
    return event
