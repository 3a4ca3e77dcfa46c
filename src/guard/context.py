# src/guard/context.py
"""
Shared mutable state for one guard bot instance.

Every guard component receives the same GuardContext in its constructor.
Nothing here is module-level; two bots in one process never share state.

Writer roles (one per field):
    guarding_enabled   -> CommandDispatcher
    is_eating          -> HungerManager
    last_attack_ts     -> CombatEngine
    guarded_name       -> CommandDispatcher (guard) and GuardLoop (discovery)
    announced_boss     -> GuardLoop
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from spec.types import EntityView
from spec.world import WorldClient

from .trust import TrustLists

log = logging.getLogger(__name__)

Notifier = Callable[[str], None]


@dataclass
class GuardState:
    guarding_enabled: bool = True
    is_eating: bool = False
    last_attack_ts: float = float("-inf")   # clock() seconds
    announced_boss: bool = False


def _log_notifier(text: str) -> None:
    log.info("notify: %s", text)


@dataclass
class GuardContext:
    """
    Fields
    ------
    trust:
        Boss list and hostile target list.
    state:
        GuardState flags and timestamps.
    guarded_name:
        Username of the guarded player. Resolved to a live entity on every
        use via resolve_guarded(); never cached as a handle.
    notify:
        Outbound operator channel (supervisor {type: "message"}).
    clock:
        Monotonic seconds; injectable for tests.
    bus:
        Optional monitoring bus.
    name:
        Bot username, used as correlation id on monitoring events.
    """

    trust: TrustLists
    state: GuardState = field(default_factory=GuardState)
    guarded_name: Optional[str] = None
    notify: Notifier = _log_notifier
    clock: Callable[[], float] = time.monotonic
    bus: Optional[EventBus] = None
    name: Optional[str] = None

    def resolve_guarded(self, world: WorldClient) -> Optional[EntityView]:
        """Live entity for the guarded player, or None if unset/absent."""
        if self.guarded_name is None:
            return None
        return world.player_entity(self.guarded_name)

    def set_guarded(self, username: str, *, source: str) -> None:
        """Replace the guarded player. Resets the one-shot announcement."""
        previous = self.guarded_name
        self.guarded_name = username
        self.state.announced_boss = False
        log.info("Guarding %s (was %s, via %s)", username, previous, source)
        self.emit(
            "guard.context",
            EventType.GUARD_CHANGED,
            f"Guarding {username}",
            {"username": username, "previous": previous, "source": source},
        )

    def emit(self, module: str, event_type: EventType, message: str, payload: dict) -> None:
        log_event(
            bus=self.bus,
            module=module,
            event_type=event_type,
            message=message,
            payload=payload,
            correlation_id=self.name,
        )
