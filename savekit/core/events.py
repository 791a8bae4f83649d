"""
Typed event bus used to tell listeners that persisted data changed.

The bus is an ordinary object handed to stores and services, there is
no global instance. Event types are Enum members so that listeners
and publishers share one vocabulary.

Usage:
    bus = EventBus()
    bus.subscribe(StoreEvent.SAVED, on_saved)
    bus.publish(StoreEvent.SAVED, feature="quests", schema_version=2)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


class StoreEvent(Enum):
    """Versioned store lifecycle."""
    CREATED = auto()      # Default store written for the first time
    LOADED = auto()       # Existing record read and decoded
    MIGRATED = auto()     # Schema upgraded on load
    SAVED = auto()
    SAVE_FAILED = auto()
    CLEARED = auto()


class FeatureEvent(Enum):
    """Feature registry lifecycle."""
    BOOTED = auto()
    DEGRADED = auto()     # Running on an in-memory store
    FAILED = auto()       # Did not boot, e.g. migration gap


@dataclass
class Event:
    """
    A published event.

    Attributes:
        type: Enum member identifying the event
        data: Keyword payload given to publish()
        consumed: Set by a handler to stop propagation
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        """Stop delivery to lower priority handlers."""
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


@dataclass(eq=False)
class _Subscription:
    priority: int
    handler: Any          # callable, ref or WeakMethod
    one_shot: bool


class EventBus:
    """
    Synchronous publish/subscribe dispatcher.

    Features:
    - Enum-typed events
    - Priority ordering (higher first, FIFO within a priority)
    - Weak references by default
    - One-shot handlers
    - Consumption stops propagation
    - Events published from inside a handler are queued until the
      current dispatch finishes
    """

    def __init__(self):
        self._subscriptions: dict[Enum, list[_Subscription]] = {}
        self._queue: list[Event] = []
        self._dispatching = False

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = True,
    ) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to listen for
            handler: Callback receiving the Event
            priority: Higher priority handlers run first
            one_shot: Remove the handler after its first call
            weak: Hold the handler weakly (lambdas need weak=False)
        """
        if weak:
            target = WeakMethod(handler) if hasattr(handler, '__self__') else ref(handler)
        else:
            target = handler

        subs = self._subscriptions.setdefault(event_type, [])
        index = len(subs)
        for i, sub in enumerate(subs):
            if priority > sub.priority:
                index = i
                break
        subs.insert(index, _Subscription(priority, target, one_shot))

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        """Remove a handler. Unknown handlers are ignored."""
        subs = self._subscriptions.get(event_type)
        if not subs:
            return
        self._subscriptions[event_type] = [
            s for s in subs if self._resolve(s.handler) != handler
        ]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Publish an event.

        Returns:
            The Event (check .consumed to see whether it was handled)
        """
        event = Event(type=event_type, data=data)
        if self._dispatching:
            self._queue.append(event)
        else:
            self._dispatch(event)
        return event

    def has_subscribers(self, event_type: Enum) -> bool:
        return bool(self._subscriptions.get(event_type))

    def clear(self, event_type: Enum | None = None) -> None:
        """Drop handlers for one event type, or all of them."""
        if event_type is None:
            self._subscriptions.clear()
        else:
            self._subscriptions.pop(event_type, None)

    def _dispatch(self, event: Event) -> None:
        subs = self._subscriptions.get(event.type)
        if subs:
            self._dispatching = True
            try:
                self._deliver(event, subs)
            finally:
                self._dispatching = False

        while self._queue:
            self._dispatch(self._queue.pop(0))

    def _deliver(self, event: Event, subs: list[_Subscription]) -> None:
        dead: list[_Subscription] = []

        for sub in list(subs):
            handler = self._resolve(sub.handler)
            if handler is None:
                dead.append(sub)
                continue

            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in event handler for {event.type}")

            if sub.one_shot:
                dead.append(sub)
            if event.consumed:
                break

        for sub in dead:
            if sub in subs:
                subs.remove(sub)

    @staticmethod
    def _resolve(target: Any) -> EventHandler | None:
        if isinstance(target, (ref, WeakMethod)):
            return target()
        return target
