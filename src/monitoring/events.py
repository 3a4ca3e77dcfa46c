# path: src/monitoring/events.py
"""
Event schemas for guard bot monitoring.

This module defines:
- EventType enum
- MonitoringEvent (structured system events)

All events are JSON-serializable via `.to_dict()` and are intended
for use with monitoring.bus.EventBus and monitoring.logger.JsonFileLogger.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by the guard bot."""

    # Threat scanning and combat
    THREAT_DETECTED = auto()
    ENGAGEMENT = auto()              # one engage() attempt and its outcome

    # Trust list changes
    ATTACKER_RECORDED = auto()
    TARGET_FORGOTTEN = auto()

    # Guard / follow state machine
    GUARD_CHANGED = auto()           # guarded entity adopted or replaced
    GUARDING_TOGGLED = auto()

    # Hunger
    EAT = auto()

    # Commands
    COMMAND_DISPATCHED = auto()
    COMMAND_REJECTED = auto()

    # Low-level action execution (bot_core)
    ACTION_EXECUTED = auto()

    # Generic log messages
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the guard logic or bot_core.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("guard.combat", "bot_core", etc.)
    event_type: EventType       # Enum describing the event class
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (target, mode, outcome)
    correlation_id: Optional[str] = None  # Groups events per bot instance

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name  # store name, not enum
        return data
