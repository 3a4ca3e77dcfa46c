# src/guard/combat.py
"""
Combat decision engine.

Per engagement:

    IDLE -> EVALUATING -> RANGED_ENGAGE  -> IDLE
                       -> MELEE_APPROACH -> IDLE

engage() is throttled by a global cooldown on attempts, not on hits: the
guard loop calls it every tick while a threat is in range, and a
persistent navigation failure must not turn into a request storm.

Mode selection compares the route ETA to the target against the bow draw
time. If walking over would take longer than drawing, and a bow plus
arrows are owned, shoot; otherwise close in and swing. The choice is
delegated to an injectable ModePolicy so tests stay deterministic.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Awaitable, Optional, Protocol, Set

from env.schema import GuardConfig
from monitoring.events import EventType
from spec.types import ActionResult, EntityView, FollowGoal
from spec.world import WorldClient

from .context import GuardContext
from .equipment import EquipmentCategory, EquipmentResolver

log = logging.getLogger(__name__)


class CombatPhase(Enum):
    IDLE = auto()
    EVALUATING = auto()
    RANGED_ENGAGE = auto()
    MELEE_APPROACH = auto()


class EngagementMode(Enum):
    MELEE = auto()
    RANGED = auto()


class ModePolicy(Protocol):
    def choose(self, eta_ticks: Optional[float], can_shoot: bool) -> EngagementMode:
        """Pick a mode given the route ETA (None = no route) and bow readiness."""
        ...


@dataclass
class TravelTimePolicy:
    """
    Ranged iff a shot is possible and travel is slower than drawing.

    ranged_probability < 1 makes ranged a weighted coin flip even when it
    is viable. No route at all (eta None) counts as infinitely slow.
    """

    draw_threshold_ticks: float = 4.0
    ranged_probability: float = 1.0
    rng: random.Random = field(default_factory=random.Random)

    def choose(self, eta_ticks: Optional[float], can_shoot: bool) -> EngagementMode:
        if not can_shoot:
            return EngagementMode.MELEE
        if eta_ticks is not None and eta_ticks <= self.draw_threshold_ticks:
            return EngagementMode.MELEE
        if self.ranged_probability < 1.0 and self.rng.random() >= self.ranged_probability:
            return EngagementMode.MELEE
        return EngagementMode.RANGED


@dataclass
class EngagementOutcome:
    """What one engage() call did."""

    attempted: bool
    success: bool
    reason: str
    mode: Optional[EngagementMode] = None
    target: Optional[str] = None

    @classmethod
    def skipped(cls, reason: str) -> "EngagementOutcome":
        return cls(attempted=False, success=False, reason=reason)


class CombatEngine:
    def __init__(
        self,
        world: WorldClient,
        context: GuardContext,
        equipment: EquipmentResolver,
        config: Optional[GuardConfig] = None,
        policy: Optional[ModePolicy] = None,
    ) -> None:
        self._world = world
        self._ctx = context
        self._equipment = equipment
        self._cfg = config or GuardConfig()
        self._policy: ModePolicy = policy or TravelTimePolicy(
            draw_threshold_ticks=self._cfg.draw_threshold_ticks,
            ranged_probability=self._cfg.ranged_probability,
        )
        self._phase = CombatPhase.IDLE
        # Strong refs only; callers never observe in-flight shots.
        self._volleys: Set[asyncio.Task] = set()

    @property
    def phase(self) -> CombatPhase:
        return self._phase

    # ------------------------------------------------------------------
    # Engagement
    # ------------------------------------------------------------------

    async def engage(self, candidate: Optional[EntityView]) -> EngagementOutcome:
        """Run one throttled engagement against `candidate`."""
        if candidate is None or not candidate.is_alive:
            return EngagementOutcome.skipped("invalid_target")

        state = self._ctx.state
        now = self._ctx.clock()
        if now - state.last_attack_ts < self._cfg.attack_cooldown_s:
            return EngagementOutcome.skipped("cooldown")
        # Stamped before the first await so an interleaved caller sees it.
        state.last_attack_ts = now

        try:
            outcome = await self._engage(candidate)
        finally:
            self._phase = CombatPhase.IDLE

        outcome.target = candidate.name
        log.debug(
            "engage target=%s mode=%s success=%s reason=%s",
            candidate.name,
            outcome.mode.name if outcome.mode else None,
            outcome.success,
            outcome.reason,
        )
        self._ctx.emit(
            "guard.combat",
            EventType.ENGAGEMENT,
            f"Engaged {candidate.name or candidate.entity_id}",
            {
                "entity_id": candidate.entity_id,
                "target": candidate.name,
                "mode": outcome.mode.name if outcome.mode else None,
                "success": outcome.success,
                "reason": outcome.reason,
            },
        )
        return outcome

    async def _engage(self, candidate: EntityView) -> EngagementOutcome:
        self._phase = CombatPhase.EVALUATING
        goal = FollowGoal(entity_id=candidate.entity_id, range=self._cfg.melee_range)

        can_shoot = self._equipment.can_shoot()
        eta = await self._estimate(goal) if can_shoot else None
        mode = self._policy.choose(eta, can_shoot)

        if mode is EngagementMode.RANGED:
            return await self._ranged(candidate)
        return await self._melee(candidate, goal)

    async def _ranged(self, candidate: EntityView) -> EngagementOutcome:
        self._phase = CombatPhase.RANGED_ENGAGE
        mode = EngagementMode.RANGED

        weapon = self._equipment.best_item(EquipmentCategory.RANGED)
        if weapon is None:
            return EngagementOutcome(True, False, "ranged_equip_failed", mode)

        # The hand stays claimed until the volley task finishes.
        await self._equipment.hold_hand()
        dispatched = False
        try:
            if not await self._equipment.equip_best(EquipmentCategory.RANGED, hand_held=True):
                return EngagementOutcome(True, False, "ranged_equip_failed", mode)
            if self._equipment.ammo_count() <= 0:
                return EngagementOutcome(True, False, "no_ammo", mode)
            volley = self._spawn(self._fire(candidate.entity_id, weapon.name))
            volley.add_done_callback(lambda _task: self._equipment.release_hand())
            dispatched = True
        finally:
            if not dispatched:
                self._equipment.release_hand()
        return EngagementOutcome(True, True, "shot_dispatched", mode)

    async def _melee(self, candidate: EntityView, goal: FollowGoal) -> EngagementOutcome:
        self._phase = CombatPhase.MELEE_APPROACH
        mode = EngagementMode.MELEE

        nav = await self._navigate(goal)
        if not nav.success:
            self._ctx.notify(f"Could not path to enemy: {nav.error}")
            return EngagementOutcome(True, False, "nav_failed", mode)

        # The target may have died or left while we were walking.
        live = self._world.entity(candidate.entity_id)
        if live is None or not live.is_alive:
            return EngagementOutcome(True, False, "target_lost", mode)

        await self._equipment.equip_best(EquipmentCategory.WEAPON)
        result = await self._world.attack(live.entity_id)
        if not result.success:
            log.warning("Attack on %s failed: %s", live.name, result.error)
            return EngagementOutcome(True, False, result.error or "attack_failed", mode)
        return EngagementOutcome(True, True, "attacked", mode)

    # ------------------------------------------------------------------
    # Manual actions (commands)
    # ------------------------------------------------------------------

    async def punch(self, target: EntityView) -> ActionResult:
        """Equip the best melee weapon and swing once, wherever we stand."""
        await self._equipment.equip_best(EquipmentCategory.WEAPON)
        result = await self._world.attack(target.entity_id)
        if not result.success:
            log.warning("Punch failed: %s", result.error)
        return result

    async def crit(self, target: EntityView) -> ActionResult:
        """Jump, wait for the fall, attack. Jump is always released."""
        self._world.set_control_state("jump", True)
        try:
            await self._world.wait_for_ticks(self._cfg.crit_wait_ticks)
            result = await self._world.attack(target.entity_id)
        except Exception as exc:
            log.exception("Crit failed")
            result = ActionResult.failed("crit_exception", exception=repr(exc))
        finally:
            self._world.set_control_state("jump", False)

        if not result.success:
            log.warning("Crit failed: %s", result.error)
        return result

    async def shoot(self, target: EntityView) -> ActionResult:
        """Shoot once and wait for the release."""
        weapon = self._equipment.best_item(EquipmentCategory.RANGED)
        if weapon is None or self._equipment.ammo_count() <= 0:
            return ActionResult.failed("cannot_shoot")
        await self._equipment.hold_hand()
        try:
            if not await self._equipment.equip_best(EquipmentCategory.RANGED, hand_held=True):
                return ActionResult.failed("ranged_equip_failed", weapon=weapon.name)
            return await self._world.shoot(target.entity_id, weapon.name)
        finally:
            self._equipment.release_hand()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _estimate(self, goal: FollowGoal) -> Optional[float]:
        try:
            return await asyncio.wait_for(
                self._world.estimate_travel_ticks(goal),
                timeout=self._cfg.navigation_timeout_s,
            )
        except asyncio.TimeoutError:
            log.warning("Route estimate timed out for entity %s", goal.entity_id)
            return None

    async def _navigate(self, goal: FollowGoal) -> ActionResult:
        try:
            return await asyncio.wait_for(
                self._world.navigate_to(goal),
                timeout=self._cfg.navigation_timeout_s,
            )
        except asyncio.TimeoutError:
            self._world.set_goal(None)
            return ActionResult.failed(
                "nav_timeout",
                entity_id=goal.entity_id,
                timeout_s=self._cfg.navigation_timeout_s,
            )

    async def _fire(self, entity_id: int, weapon: str) -> None:
        try:
            result = await self._world.shoot(entity_id, weapon)
        except Exception:
            log.exception("Shot at entity %s raised", entity_id)
            return
        if result.success:
            log.info("Shot fired at entity %s", entity_id)
        else:
            log.warning("Failed to shoot entity %s: %s", entity_id, result.error)

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Future:
        task = asyncio.ensure_future(coro)
        self._volleys.add(task)
        task.add_done_callback(self._volleys.discard)
        return task
