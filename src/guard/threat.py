# src/guard/threat.py
"""
Threat detection and attacker attribution.

Both scans go through WorldClient.nearest_entity(), so "nearest" always
means nearest to the bot, and ties resolve to the world's scan order.
"""

from __future__ import annotations

import logging
from typing import Collection, Optional

from env.schema import GuardConfig
from spec.types import EntityView, Vec3
from spec.world import WorldClient

from .context import GuardContext

log = logging.getLogger(__name__)


class ThreatScanner:
    def __init__(
        self,
        world: WorldClient,
        context: GuardContext,
        config: Optional[GuardConfig] = None,
    ) -> None:
        self._world = world
        self._ctx = context
        self._cfg = config or GuardConfig()

    def is_hostile(self, entity: EntityView) -> bool:
        """Hostile creature, or a name on the target list."""
        return entity.is_hostile_creature or self._ctx.trust.is_known_hostile(entity.name)

    def find_threat(
        self,
        self_position: Optional[Vec3],
        guarded_position: Optional[Vec3] = None,
        *,
        guarded_id: Optional[int] = None,
    ) -> Optional[EntityView]:
        """
        Nearest hostile within near_radius of the bot, or within
        guard_radius of the guarded player when one is given.

        Returns None when the bot has no position yet.
        """
        if self_position is None:
            return None

        near = self._cfg.near_radius
        guard = self._cfg.guard_radius

        def qualifies(entity: EntityView) -> bool:
            if guarded_id is not None and entity.entity_id == guarded_id:
                return False
            if not self.is_hostile(entity):
                return False
            if entity.position.distance_to(self_position) < near:
                return True
            if guarded_position is None:
                return False
            return entity.position.distance_to(guarded_position) < guard

        return self._world.nearest_entity(qualifies)

    def find_attacker(
        self,
        position: Vec3,
        exclude: Collection[int] = (),
    ) -> Optional[EntityView]:
        """
        Best guess at who just hurt someone standing at `position`:
        the nearest non-boss within melee_radius of it.

        Proximity at event time is a heuristic, not proof. Bosses are
        never blamed.
        """
        radius = self._cfg.melee_radius

        def qualifies(entity: EntityView) -> bool:
            if entity.entity_id in exclude:
                return False
            if self._ctx.trust.is_trusted(entity.username):
                return False
            return entity.position.distance_to(position) < radius

        return self._world.nearest_entity(qualifies)
