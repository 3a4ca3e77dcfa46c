# src/guard/hunger.py
"""
Hunger manager: eat the first owned food when satiation drops.

is_eating is a reentrancy flag, not a lock. On a single event loop the
check and the set happen with no await in between, so a second eat()
arriving while the first is suspended on equip/consume sees the flag
and returns at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from env.schema import HungerConfig
from monitoring.events import EventType
from spec.world import WorldClient

from .context import GuardContext

log = logging.getLogger(__name__)


class EatStatus(Enum):
    ATE = "ate"
    ALREADY_EATING = "already_eating"
    FULL = "full"
    NO_FOOD = "no_food"
    FAILED = "failed"


@dataclass
class EatResult:
    status: EatStatus
    message: str
    food: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is EatStatus.ATE


class HungerManager:
    def __init__(
        self,
        world: WorldClient,
        context: GuardContext,
        config: Optional[HungerConfig] = None,
    ) -> None:
        self._world = world
        self._ctx = context
        self._cfg = config or HungerConfig()

    def is_hungry(self) -> bool:
        return self._world.food <= self._cfg.hunger_limit

    async def eat(self) -> EatResult:
        state = self._ctx.state
        if state.is_eating:
            return EatResult(EatStatus.ALREADY_EATING, "already eating")
        if self._world.food >= self._cfg.max_food:
            return EatResult(EatStatus.FULL, "too full")

        state.is_eating = True
        try:
            result = await self._eat_first_owned()
        finally:
            state.is_eating = False

        self._ctx.emit(
            "guard.hunger",
            EventType.EAT,
            result.message,
            {"status": result.status.value, "food": result.food},
        )
        return result

    async def on_health(self) -> Optional[EatResult]:
        """World 'health' event handler: eat at or below the low-water mark."""
        if not self.is_hungry():
            return None
        result = await self.eat()
        if result.status is not EatStatus.ALREADY_EATING:
            self._ctx.notify(result.message)
        return result

    async def _eat_first_owned(self) -> EatResult:
        owned = {}
        for stack in self._world.inventory():
            owned[stack.name] = owned.get(stack.name, 0) + stack.count

        for food in self._world.foods():
            if owned.get(food, 0) <= 0:
                continue

            equipped = await self._world.equip(food, "hand")
            if not equipped.success:
                log.warning("Eating error: could not equip %s: %s", food, equipped.error)
                return EatResult(EatStatus.FAILED, f"Eating error: {equipped.error}", food)

            consumed = await self._world.consume()
            if not consumed.success:
                log.warning("Eating error: could not consume %s: %s", food, consumed.error)
                return EatResult(EatStatus.FAILED, f"Eating error: {consumed.error}", food)

            return EatResult(EatStatus.ATE, f"ate 1 {food}", food)

        return EatResult(EatStatus.NO_FOOD, "no food")
