# src/spec/__init__.py

from __future__ import annotations

"""
Public spec surface for the guard bot.

This module re-exports *interfaces and data types* shared across packages:
  - world primitives (Vec3, EntityView, ItemStack, FollowGoal, ActionResult)
  - the WorldClient protocol implemented by bot_core and test fakes

Deliberately does NOT export concrete implementations, so guard/ code can
depend on the protocol without importing the transport.
"""

from .types import (
    HOSTILE_CATEGORY,
    ActionResult,
    EntityView,
    FollowGoal,
    ItemStack,
    Vec3,
)
from .world import WORLD_EVENTS, EntityPredicate, EventHandler, WorldClient

__all__ = [
    "HOSTILE_CATEGORY",
    "ActionResult",
    "EntityView",
    "FollowGoal",
    "ItemStack",
    "Vec3",
    "WORLD_EVENTS",
    "EntityPredicate",
    "EventHandler",
    "WorldClient",
]
