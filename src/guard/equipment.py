# src/guard/equipment.py
"""
Weapon / armor auto-equip by static priority list.

Armor pieces live in disjoint slots and are resolved concurrently. The
melee weapon and the ranged weapon both go to the hand, so those two are
serialized by a single hand lock. A ranged shot keeps the lock until the
arrow is released, so a melee equip cannot swap the bow out mid-draw.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Dict, List, Mapping, Optional

from env.schema import EquipmentConfig
from spec.types import ItemStack
from spec.world import WorldClient

log = logging.getLogger(__name__)


class EquipmentCategory(Enum):
    WEAPON = "weapon"
    HELMET = "helmet"
    CHESTPLATE = "chestplate"
    LEGGINGS = "leggings"
    BOOTS = "boots"
    RANGED = "ranged"


SLOT_FOR_CATEGORY: Dict[EquipmentCategory, str] = {
    EquipmentCategory.WEAPON: "hand",
    EquipmentCategory.HELMET: "head",
    EquipmentCategory.CHESTPLATE: "torso",
    EquipmentCategory.LEGGINGS: "legs",
    EquipmentCategory.BOOTS: "feet",
    EquipmentCategory.RANGED: "hand",
}

ARMOR_CATEGORIES = (
    EquipmentCategory.HELMET,
    EquipmentCategory.CHESTPLATE,
    EquipmentCategory.LEGGINGS,
    EquipmentCategory.BOOTS,
)


def priorities_from_config(config: EquipmentConfig) -> Dict[EquipmentCategory, List[str]]:
    return {
        EquipmentCategory.WEAPON: list(config.weapons),
        EquipmentCategory.HELMET: list(config.helmets),
        EquipmentCategory.CHESTPLATE: list(config.chestplates),
        EquipmentCategory.LEGGINGS: list(config.leggings),
        EquipmentCategory.BOOTS: list(config.boots),
        EquipmentCategory.RANGED: list(config.ranged),
    }


def pick_best(
    inventory: List[ItemStack],
    priority: List[str],
) -> Optional[ItemStack]:
    """Owned stack whose name has the lowest index in `priority`."""
    best: Optional[ItemStack] = None
    best_index = len(priority)
    for stack in inventory:
        if stack.count <= 0 or stack.name not in priority:
            continue
        index = priority.index(stack.name)
        if index < best_index:
            best, best_index = stack, index
    return best


class EquipmentResolver:
    def __init__(
        self,
        world: WorldClient,
        config: Optional[EquipmentConfig] = None,
        priorities: Optional[Mapping[EquipmentCategory, List[str]]] = None,
    ) -> None:
        self._world = world
        self._cfg = config or EquipmentConfig()
        self._priorities = dict(priorities) if priorities is not None else priorities_from_config(self._cfg)
        self._hand_lock = asyncio.Lock()

    @property
    def ammo_item(self) -> str:
        return self._cfg.ammo

    def best_item(self, category: EquipmentCategory) -> Optional[ItemStack]:
        return pick_best(self._world.inventory(), self._priorities.get(category, []))

    def ammo_count(self) -> int:
        return sum(s.count for s in self._world.inventory() if s.name == self._cfg.ammo)

    def can_shoot(self) -> bool:
        """A ranged weapon and at least one round of ammunition are owned."""
        return self.best_item(EquipmentCategory.RANGED) is not None and self.ammo_count() > 0

    async def hold_hand(self) -> None:
        """
        Claim the hand slot until release_hand() is called.

        Used to keep a drawn bow in hand across a shot. While held, callers
        that already own the hand pass hand_held=True to equip_best().
        """
        await self._hand_lock.acquire()

    def release_hand(self) -> None:
        self._hand_lock.release()

    async def equip_best(self, category: EquipmentCategory, *, hand_held: bool = False) -> bool:
        """Equip the best owned item for `category`. True iff something was equipped."""
        slot = SLOT_FOR_CATEGORY[category]
        if slot == "hand" and not hand_held:
            async with self._hand_lock:
                return await self._equip_best(category, slot)
        return await self._equip_best(category, slot)

    async def equip_armor(self) -> Dict[EquipmentCategory, bool]:
        """Resolve all armor slots concurrently."""
        results = await asyncio.gather(*(self.equip_best(c) for c in ARMOR_CATEGORIES))
        return dict(zip(ARMOR_CATEGORIES, results))

    async def _equip_best(self, category: EquipmentCategory, slot: str) -> bool:
        item = self.best_item(category)
        if item is None:
            return False

        result = await self._world.equip(item.name, slot)
        if not result.success:
            log.warning(
                "Failed to equip %s in slot %s: %s %r",
                item.name,
                slot,
                result.error,
                result.details,
            )
            return False
        log.debug("Equipped %s in slot %s", item.name, slot)
        return True
