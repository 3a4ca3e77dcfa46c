# tests/test_hunger.py
"""
Tests for guard.hunger.HungerManager.
"""

from __future__ import annotations

import asyncio
from typing import List

from bot_core.testing.fakes import FakeWorld
from guard.context import GuardContext
from guard.hunger import EatStatus, HungerManager
from guard.trust import TrustLists
from spec.types import ActionResult


def make_manager(world: FakeWorld, notes: List[str]) -> HungerManager:
    context = GuardContext(trust=TrustLists([]), notify=notes.append)
    return HungerManager(world, context)


def test_eats_first_owned_food_in_preference_order() -> None:
    world = FakeWorld(food=10)
    world.set_foods("golden_carrot", "bread", "apple")
    world.set_inventory(("apple", 3), ("bread", 1))
    notes: List[str] = []
    manager = make_manager(world, notes)

    result = asyncio.run(manager.eat())

    assert result.status is EatStatus.ATE
    assert result.message == "ate 1 bread"
    assert world.action_calls("equip") == [("bread", "hand")]
    assert world.action_calls("consume") == [()]


def test_full_bot_does_not_eat() -> None:
    world = FakeWorld(food=20)
    world.set_foods("bread")
    world.set_inventory(("bread", 1))
    manager = make_manager(world, [])

    result = asyncio.run(manager.eat())

    assert result.status is EatStatus.FULL
    assert result.message == "too full"
    assert world.calls == []


def test_no_food_owned() -> None:
    world = FakeWorld(food=5)
    world.set_foods("bread")
    world.set_inventory(("iron_sword", 1))
    manager = make_manager(world, [])

    result = asyncio.run(manager.eat())

    assert result.status is EatStatus.NO_FOOD
    assert result.message == "no food"


def test_concurrent_eat_runs_once() -> None:
    world = FakeWorld(food=10)
    world.set_foods("bread")
    world.set_inventory(("bread", 2))
    world.consume_delay_ticks = 3
    manager = make_manager(world, [])

    async def scenario():
        return await asyncio.gather(manager.eat(), manager.eat())

    results = asyncio.run(scenario())

    assert sorted(r.status.value for r in results) == ["already_eating", "ate"]
    assert len(world.action_calls("consume")) == 1


def test_flag_released_after_failure() -> None:
    world = FakeWorld(food=10)
    world.set_foods("bread")
    world.set_inventory(("bread", 1))
    world.results["consume"] = ActionResult.failed("interrupted")
    context = GuardContext(trust=TrustLists([]))
    manager = HungerManager(world, context)

    result = asyncio.run(manager.eat())

    assert result.status is EatStatus.FAILED
    assert result.message == "Eating error: interrupted"
    assert context.state.is_eating is False


def test_on_health_only_below_limit() -> None:
    world = FakeWorld(food=16)
    world.set_foods("bread")
    world.set_inventory(("bread", 1))
    notes: List[str] = []
    manager = make_manager(world, notes)

    assert asyncio.run(manager.on_health()) is None

    world.food = 15
    result = asyncio.run(manager.on_health())

    assert result is not None and result.status is EatStatus.ATE
    assert notes == ["ate 1 bread"]


def test_on_health_is_quiet_while_eating() -> None:
    world = FakeWorld(food=3)
    notes: List[str] = []
    context = GuardContext(trust=TrustLists([]), notify=notes.append)
    context.state.is_eating = True
    manager = HungerManager(world, context)

    result = asyncio.run(manager.on_health())

    assert result is not None and result.status is EatStatus.ALREADY_EATING
    assert notes == []
