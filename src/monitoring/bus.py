# EventBus for monitoring events
"""
In-process pub/sub for MonitoringEvent.

Publishers:
    guard components (combat, trust lists, hunger, commands, follow loop)
    bot_core action execution

Subscribers:
    JsonFileLogger (per-bot JSONL), tests, ad-hoc tooling

A subscriber may ask for a subset of EventTypes; by default it gets all
of them. Guard code publishes from the event loop thread, but loggers can
be attached or detached from elsewhere, so the subscription table is
guarded by a lock and publish() iterates over a snapshot of it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Callable, FrozenSet, Iterable, List, Optional

from .events import EventType, MonitoringEvent

log = logging.getLogger(__name__)

SubscriberFn = Callable[[MonitoringEvent], None]


@dataclass(frozen=True)
class _Subscription:
    fn: SubscriberFn
    event_types: Optional[FrozenSet[EventType]] = None   # None = everything

    def wants(self, event: MonitoringEvent) -> bool:
        return self.event_types is None or event.event_type in self.event_types


class EventBus:
    def __init__(self) -> None:
        self._subscriptions: List[_Subscription] = []
        self._lock = Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(
        self,
        fn: SubscriberFn,
        event_types: Optional[Iterable[EventType]] = None,
    ) -> None:
        """Register `fn`, optionally only for the given event types."""
        types = frozenset(event_types) if event_types is not None else None
        with self._lock:
            self._subscriptions.append(_Subscription(fn, types))

    def unsubscribe(self, fn: SubscriberFn) -> None:
        """Drop every subscription of `fn`. Unknown subscribers are ignored."""
        with self._lock:
            self._subscriptions = [s for s in self._subscriptions if s.fn != fn]

    def publish(self, event: MonitoringEvent) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions)

        for sub in subscriptions:
            if not sub.wants(event):
                continue
            try:
                sub.fn(event)
            except Exception:
                log.exception("Monitoring subscriber failed for %s", event.event_type.name)

    def clear(self) -> None:
        with self._lock:
            self._subscriptions.clear()
