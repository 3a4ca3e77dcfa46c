# RawWorldSnapshot + conversions to EntityView / ItemStack
# src/bot_core/snapshot.py
"""
Snapshot structures for bot_core.

This module defines the raw world types used internally by bot_core and
the adapters that convert them into the shared types defined in
`spec.types` (EntityView, ItemStack).

Design goals:
- Keep Raw* structures close to the data we ingest from the bridge.
- Keep EntityView stable and spec-owned; this module only adapts into it.
- No guard semantics here (hostility, trust, targeting).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from spec.types import EntityView, ItemStack, Vec3
from spec.world import EntityPredicate


# ---------------------------------------------------------------------------
# Raw world types (internal to bot_core)
# ---------------------------------------------------------------------------


@dataclass
class RawEntity:
    """
    Raw entity data as captured from bridge packets.

    `data` keeps the latest payload fields (category, username,
    display_name, health, ...) merged across spawn/update packets.
    """

    entity_id: int
    kind: str  # "player", "mob", "object", ...
    x: float
    y: float
    z: float
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RawWorldSnapshot:
    """
    Full raw snapshot of the world as tracked by bot_core.

    Used for tracing and debugging; guard logic goes through the
    WorldClient accessors instead.
    """

    tick: int
    self_id: Optional[int]
    username: Optional[str]

    player_pos: Optional[Dict[str, float]]
    health: float
    food: int

    entities: List[RawEntity]
    players: List[str]
    inventory: List[Dict[str, Any]]
    foods: List[str]

    context: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _optional_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def entity_to_view(entity: RawEntity) -> EntityView:
    """Adapt a RawEntity into the shared EntityView."""
    data = entity.data
    return EntityView(
        entity_id=entity.entity_id,
        kind=entity.kind,
        position=Vec3(entity.x, entity.y, entity.z),
        category=_optional_str(data.get("category")),
        username=_optional_str(data.get("username")),
        display_name=_optional_str(data.get("display_name")),
        health=_optional_float(data.get("health")),
        is_valid=bool(data.get("is_valid", True)),
    )


def slot_to_stack(slot: int, entry: Mapping[str, Any]) -> Optional[ItemStack]:
    """Adapt one inventory slot dict; empty slots ({}) become None."""
    name = entry.get("name")
    if not name:
        return None
    try:
        count = int(entry.get("count", 1))
    except (TypeError, ValueError):
        count = 0
    if count <= 0:
        return None
    return ItemStack(name=str(name), count=count, slot=slot)


def inventory_to_stacks(inventory: Iterable[Mapping[str, Any]]) -> List[ItemStack]:
    stacks: List[ItemStack] = []
    for slot, entry in enumerate(inventory):
        stack = slot_to_stack(slot, entry)
        if stack is not None:
            stacks.append(stack)
    return stacks


def nearest(
    entities: Iterable[EntityView],
    origin: Optional[Vec3],
    predicate: EntityPredicate,
) -> Optional[EntityView]:
    """
    Nearest entity to `origin` satisfying `predicate`.

    Ties keep the first one found. Without an origin there is no "near".
    """
    if origin is None:
        return None
    best: Optional[EntityView] = None
    best_dist = float("inf")
    for entity in entities:
        if not predicate(entity):
            continue
        dist = origin.distance_to(entity.position)
        if dist < best_dist:
            best, best_dist = entity, dist
    return best


__all__ = [
    "RawEntity",
    "RawWorldSnapshot",
    "entity_to_view",
    "slot_to_stack",
    "inventory_to_stacks",
    "nearest",
]
