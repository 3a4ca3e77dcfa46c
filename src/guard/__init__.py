# guard package
# src/guard/__init__.py
"""
Guard decision core.

Exports:
    - GuardBot: wires every component below to a WorldClient
    - GuardContext / GuardState: shared mutable state
    - TrustLists: boss list + dynamic target list
    - ThreatScanner, CombatEngine, GuardLoop, HungerManager,
      EquipmentResolver, CommandDispatcher
"""

from __future__ import annotations

from .bot import GuardBot
from .combat import (
    CombatEngine,
    CombatPhase,
    EngagementMode,
    EngagementOutcome,
    ModePolicy,
    TravelTimePolicy,
)
from .commands import Channel, CommandDispatcher
from .context import GuardContext, GuardState
from .equipment import EquipmentCategory, EquipmentResolver
from .follow import GuardLoop, StepOutcome
from .hunger import EatResult, EatStatus, HungerManager
from .threat import ThreatScanner
from .trust import TrustLists

__all__ = [
    "GuardBot",
    "CombatEngine",
    "CombatPhase",
    "EngagementMode",
    "EngagementOutcome",
    "ModePolicy",
    "TravelTimePolicy",
    "Channel",
    "CommandDispatcher",
    "GuardContext",
    "GuardState",
    "EquipmentCategory",
    "EquipmentResolver",
    "GuardLoop",
    "StepOutcome",
    "EatResult",
    "EatStatus",
    "HungerManager",
    "ThreatScanner",
    "TrustLists",
]
