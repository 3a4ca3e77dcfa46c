# src/guard/follow.py
"""
Guard / follow loop.

One step per world tick, in order:

    guarding disabled          -> nothing
    threat in range            -> CombatEngine.engage(), no following this tick
    guarded player resolvable  -> keep a follow goal on them
    nobody guarded             -> discovery: adopt a present boss

Combat preempts travel, but an in-flight navigation that is already being
awaited is never aborted; a new threat is handled on the next tick.
"""

from __future__ import annotations

import logging
import random
from enum import Enum, auto
from typing import Optional

from env.schema import GuardConfig
from monitoring.events import EventType
from spec.types import EntityView, FollowGoal
from spec.world import WorldClient

from .combat import CombatEngine
from .context import GuardContext
from .threat import ThreatScanner

log = logging.getLogger(__name__)


class StepOutcome(Enum):
    DISABLED = auto()
    ENGAGED = auto()
    FOLLOWING = auto()
    DISCOVERING = auto()
    ADOPTED = auto()


class GuardLoop:
    def __init__(
        self,
        world: WorldClient,
        context: GuardContext,
        scanner: ThreatScanner,
        combat: CombatEngine,
        config: Optional[GuardConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._world = world
        self._ctx = context
        self._scanner = scanner
        self._combat = combat
        self._cfg = config or GuardConfig()
        self._rng = rng or random.Random()
        self._ticks_until_discovery = 0
        self._last_threat_id: Optional[int] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def step(self) -> StepOutcome:
        if not self._ctx.state.guarding_enabled:
            return StepOutcome.DISABLED

        guarded = self._ctx.resolve_guarded(self._world)

        threat = self._scanner.find_threat(
            self._world.position,
            guarded.position if guarded is not None else None,
            guarded_id=guarded.entity_id if guarded is not None else None,
        )
        if threat is not None:
            self._report_threat(threat)
            await self._combat.engage(threat)
            return StepOutcome.ENGAGED
        self._last_threat_id = None

        if guarded is not None:
            self._follow(guarded)
            return StepOutcome.FOLLOWING

        return self._discover()

    async def run(self) -> None:
        """Step once per tick until cancelled."""
        log.info("Guard loop started")
        while True:
            await self._world.wait_for_ticks(1)
            try:
                await self.step()
            except Exception:
                log.exception("Guard step failed; continuing next tick")

    def enable(self) -> None:
        self._set_enabled(True)

    def disable(self) -> None:
        """Stop guarding and drop whatever the navigator is pursuing."""
        self._set_enabled(False)
        self._world.set_goal(None)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _set_enabled(self, enabled: bool) -> None:
        state = self._ctx.state
        if state.guarding_enabled == enabled:
            return
        state.guarding_enabled = enabled
        self._ctx.emit(
            "guard.follow",
            EventType.GUARDING_TOGGLED,
            "Guarding enabled" if enabled else "Guarding disabled",
            {"enabled": enabled},
        )

    def _report_threat(self, threat: EntityView) -> None:
        if threat.entity_id == self._last_threat_id:
            return
        self._last_threat_id = threat.entity_id
        log.info("Threat: %s (%s)", threat.name, threat.entity_id)
        self._ctx.emit(
            "guard.follow",
            EventType.THREAT_DETECTED,
            f"Threat {threat.name or threat.entity_id}",
            {"entity_id": threat.entity_id, "name": threat.name, "kind": threat.kind},
        )

    def _follow(self, guarded: EntityView) -> None:
        state = self._ctx.state
        if not state.announced_boss:
            self._world.chat(f"Following boss: {guarded.name}")
            state.announced_boss = True

        goal = FollowGoal(entity_id=guarded.entity_id, range=self._cfg.follow_range)
        if self._world.current_goal == goal:
            return
        self._world.set_goal(goal)

    def _discover(self) -> StepOutcome:
        if self._ticks_until_discovery > 0:
            self._ticks_until_discovery -= 1
            return StepOutcome.DISCOVERING
        self._ticks_until_discovery = self._cfg.discovery_interval_ticks

        bosses = sorted(self._ctx.trust.bosses)
        self._rng.shuffle(bosses)
        for name in bosses:
            if self._world.player_entity(name) is not None:
                self._ctx.set_guarded(name, source="discovery")
                return StepOutcome.ADOPTED
        return StepOutcome.DISCOVERING
