# tests/test_guard_bot_events.py
"""
Tests for guard.bot.GuardBot world event handling.
"""

from __future__ import annotations

import asyncio
from typing import List

from bot_core.testing.fakes import FakeWorld
from guard import GuardBot, TrustLists
from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent
from spec.types import HOSTILE_CATEGORY, EntityView, Vec3


def make_self(world: FakeWorld) -> EntityView:
    return EntityView(world.self_id, "player", Vec3(0.0, 64.0, 0.0), username="Knight", health=18.0)


def make_bot(world: FakeWorld, notes: List[str], bus: EventBus = None, targets=()) -> GuardBot:
    return GuardBot(world, TrustLists(["Boss"], targets), name="Knight", notify=notes.append, bus=bus)


def test_spawn_announces_and_starts_loop() -> None:
    world = FakeWorld()
    notes: List[str] = []
    bot = make_bot(world, notes)

    async def scenario():
        await world.emit("spawn")
        running = bot.running
        await asyncio.sleep(0)
        await bot.stop()
        return running

    assert asyncio.run(scenario()) is True
    assert notes == ["Bot spawned."]
    assert bot.running is False


def test_hurt_records_nearby_player_attacker() -> None:
    world = FakeWorld()
    world.add_entity(EntityView(7, "player", Vec3(2.0, 64.0, 0.0), username="Griefer"))
    bus = EventBus()
    seen: List[MonitoringEvent] = []
    bus.subscribe(seen.append)
    notes: List[str] = []
    bot = make_bot(world, notes, bus)

    asyncio.run(world.emit("entity_hurt", make_self(world)))

    assert notes == ["Knight was hurt!"]
    assert bot.context.trust.targets == ("Griefer",)
    recorded = [e for e in seen if e.event_type is EventType.ATTACKER_RECORDED]
    assert recorded[0].payload == {"attacker": "Griefer", "victim": "Knight"}


def test_hurt_never_blames_a_boss() -> None:
    world = FakeWorld()
    world.add_entity(EntityView(2, "player", Vec3(1.0, 64.0, 0.0), username="Boss"))
    bot = make_bot(world, [])

    asyncio.run(world.emit("entity_hurt", make_self(world)))

    assert bot.context.trust.targets == ()


def test_hurt_by_mob_is_not_recorded() -> None:
    world = FakeWorld()
    world.add_entity(
        EntityView(8, "mob", Vec3(1.0, 64.0, 0.0), category=HOSTILE_CATEGORY, display_name="Zombie")
    )
    bot = make_bot(world, [])

    asyncio.run(world.emit("entity_hurt", make_self(world)))

    assert bot.context.trust.targets == ()


def test_guarded_player_hurt_is_handled() -> None:
    world = FakeWorld()
    boss = EntityView(2, "player", Vec3(10.0, 64.0, 0.0), username="Boss")
    world.add_player("Boss", boss)
    world.add_entity(EntityView(7, "player", Vec3(12.0, 64.0, 0.0), username="Griefer"))
    notes: List[str] = []
    bot = make_bot(world, notes)
    bot.context.guarded_name = "Boss"

    asyncio.run(world.emit("entity_hurt", boss))

    assert notes == ["Boss was hurt!"]
    assert bot.context.trust.targets == ("Griefer",)


def test_unrelated_hurt_is_ignored() -> None:
    world = FakeWorld()
    world.add_entity(EntityView(7, "player", Vec3(2.0, 64.0, 0.0), username="Griefer"))
    stranger = world.add_entity(EntityView(6, "player", Vec3(1.0, 64.0, 0.0), username="Visitor"))
    notes: List[str] = []
    bot = make_bot(world, notes)

    asyncio.run(world.emit("entity_hurt", stranger))

    assert notes == []
    assert bot.context.trust.targets == ()


def test_entity_gone_forgets_target() -> None:
    world = FakeWorld()
    bot = make_bot(world, [], targets=["Griefer"])
    griefer = EntityView(7, "player", Vec3(2.0, 64.0, 0.0), username="Griefer")

    asyncio.run(world.emit("entity_gone", griefer))

    assert bot.context.trust.targets == ()


def test_respawn_reequips_armor() -> None:
    world = FakeWorld()
    world.set_inventory(("iron_chestplate", 1))
    notes: List[str] = []
    make_bot(world, notes)

    asyncio.run(world.emit("respawn"))

    assert notes == ["Respawned."]
    assert world.action_calls("equip") == [("iron_chestplate", "torso")]


def test_only_own_pickups_reequip() -> None:
    world = FakeWorld()
    world.set_inventory(("iron_boots", 1))
    make_bot(world, [])
    other = EntityView(7, "player", Vec3(2.0, 64.0, 0.0), username="Visitor")

    asyncio.run(world.emit("player_collect", other, None))
    assert world.action_calls("equip") == []

    asyncio.run(world.emit("player_collect", make_self(world), None))
    assert world.action_calls("equip") == [("iron_boots", "feet")]


def test_health_event_triggers_eating() -> None:
    world = FakeWorld(food=4)
    world.set_foods("bread")
    world.set_inventory(("bread", 1))
    notes: List[str] = []
    make_bot(world, notes)

    asyncio.run(world.emit("health"))

    assert notes == ["ate 1 bread"]
    assert world.action_calls("consume") == [()]


def test_kicked_notifies() -> None:
    world = FakeWorld()
    notes: List[str] = []
    make_bot(world, notes)

    asyncio.run(world.emit("kicked", "Server closed"))

    assert notes == ["Kicked: Server closed"]
