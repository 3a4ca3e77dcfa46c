# tests/test_commands.py
"""
Tests for guard.commands.CommandDispatcher, driven through GuardBot so
the dispatcher sees the same wiring as production.

Covers:
- boss-only authorization for chat / whisper, silent drops otherwise
- replies go back on the originating channel
- individual command semantics
"""

from __future__ import annotations

import asyncio
from typing import List

from bot_core.testing.fakes import FakeWorld
from guard import Channel, GuardBot, TrustLists
from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent
from spec.types import ActionResult, EntityView, Vec3


def make_bot(world: FakeWorld, notes: List[str], bus: EventBus = None) -> GuardBot:
    return GuardBot(world, TrustLists(["Boss"]), name="Knight", notify=notes.append, bus=bus)


def dispatch(bot: GuardBot, text: str, channel: Channel, sender: str, replies: List[str]) -> bool:
    return asyncio.run(bot.dispatcher.dispatch(text.split(), channel, sender, replies.append))


def test_guard_unknown_player() -> None:
    world = FakeWorld()
    bot = make_bot(world, [])
    replies: List[str] = []

    dispatch(bot, "guard Alice", Channel.CHAT, "Boss", replies)

    assert replies == ['Player "Alice" not found.']
    assert bot.context.guarded_name is None


def test_guard_present_player() -> None:
    world = FakeWorld()
    world.add_player("Alice", EntityView(5, "player", Vec3(1.0, 64.0, 0.0), username="Alice"))
    bot = make_bot(world, [])
    bot.context.state.announced_boss = True

    assert dispatch(bot, "guard Alice", Channel.CHAT, "Boss", []) is True
    assert bot.context.guarded_name == "Alice"
    assert bot.context.state.announced_boss is False


def test_untrusted_whisper_is_dropped_silently() -> None:
    world = FakeWorld()
    bus = EventBus()
    seen: List[MonitoringEvent] = []
    bus.subscribe(seen.append)
    bot = make_bot(world, [], bus)
    replies: List[str] = []

    assert dispatch(bot, "ping", Channel.WHISPER, "Stranger", replies) is False
    assert replies == []
    assert [e.event_type for e in seen] == [EventType.COMMAND_REJECTED]

    assert dispatch(bot, "ping", Channel.WHISPER, "Boss", replies) is True
    assert replies == ["pong"]


def test_world_whisper_replies_by_whisper() -> None:
    world = FakeWorld()
    make_bot(world, [])

    async def scenario():
        await world.emit("whisper", "Stranger", "ping")
        await world.emit("whisper", "Boss", "ping")

    asyncio.run(scenario())

    assert world.whispers == [("Boss", "pong")]
    assert world.chat_log == []


def test_world_chat_replies_in_chat() -> None:
    world = FakeWorld(health=17.5, food=12)
    make_bot(world, [])

    asyncio.run(world.emit("chat", "Boss", "status"))

    assert world.chat_log == ["HEALTH: 17.5 HUNGER: 12"]


def test_unknown_command() -> None:
    bot = make_bot(FakeWorld(), [])
    replies: List[str] = []

    assert dispatch(bot, "dance now", Channel.CHAT, "Boss", replies) is False
    assert replies == ["Unknown command."]


def test_empty_message_is_ignored() -> None:
    bot = make_bot(FakeWorld(), [])
    replies: List[str] = []

    assert asyncio.run(bot.dispatcher.dispatch([], Channel.CHAT, "Boss", replies.append)) is False
    assert replies == []


def test_stop_and_continue() -> None:
    world = FakeWorld()
    bot = make_bot(world, [])
    replies: List[str] = []

    dispatch(bot, "stop", Channel.CHAT, "Boss", replies)
    assert replies == ["Stopping guard mode."]
    assert bot.context.state.guarding_enabled is False
    assert world.goal_history == [None]

    dispatch(bot, "continue", Channel.CHAT, "Boss", replies)
    assert bot.context.state.guarding_enabled is True
    assert replies == ["Stopping guard mode."]


def test_supervisor_channel_skips_trust_check() -> None:
    world = FakeWorld()
    notes: List[str] = []
    bot = make_bot(world, notes)

    asyncio.run(bot.handle_supervisor_message({"type": "command", "command": ["ping"]}))
    asyncio.run(bot.handle_supervisor_message({"type": "command", "command": "ping"}))
    asyncio.run(bot.handle_supervisor_message({"type": "other"}))

    assert notes == ["pong"]


def test_punch_resolves_target_by_name() -> None:
    world = FakeWorld()
    world.add_entity(EntityView(9, "mob", Vec3(2.0, 64.0, 0.0), display_name="Zombie"))
    world.set_inventory(("iron_sword", 1))
    bot = make_bot(world, [])
    replies: List[str] = []

    dispatch(bot, "punch Skeleton", Channel.CHAT, "Boss", replies)
    dispatch(bot, "punch Zombie", Channel.CHAT, "Boss", replies)

    assert replies == ["Couldn't find Skeleton."]
    assert world.action_calls("attack") == [(9,)]
    assert world.action_calls("equip") == [("iron_sword", "hand")]


def test_punch_and_crit_report_failure() -> None:
    world = FakeWorld()
    world.add_entity(EntityView(9, "mob", Vec3(2.0, 64.0, 0.0), display_name="Zombie"))
    world.results["attack"] = ActionResult.failed("out_of_reach")
    bot = make_bot(world, [])
    replies: List[str] = []

    dispatch(bot, "punch Zombie", Channel.CHAT, "Boss", replies)
    dispatch(bot, "crit Zombie", Channel.CHAT, "Boss", replies)

    assert replies == ["Punch failed: out_of_reach", "Crit failed: out_of_reach"]
    assert world.control_states["jump"] is False


def test_shoot_reports_failure() -> None:
    world = FakeWorld()
    world.add_entity(EntityView(9, "mob", Vec3(2.0, 64.0, 0.0), display_name="Zombie"))
    bot = make_bot(world, [])
    replies: List[str] = []

    dispatch(bot, "shoot Zombie", Channel.CHAT, "Boss", replies)

    assert replies == ["Failed to shoot: cannot_shoot"]


def test_eat_and_equiparmor_reply() -> None:
    world = FakeWorld(food=20)
    world.set_inventory(("iron_helmet", 1))
    bot = make_bot(world, [])
    replies: List[str] = []

    dispatch(bot, "eat", Channel.CHAT, "Boss", replies)
    dispatch(bot, "equiparmor", Channel.CHAT, "Boss", replies)

    assert replies == ["too full", "Armor equipped."]
    assert world.action_calls("equip") == [("iron_helmet", "head")]
