# tests/test_threat_scanner.py
"""
Tests for guard.threat.ThreatScanner.

Covers:
- near radius around the bot, guard radius around the guarded player
- strict distance comparison
- target-list players count as threats, other players do not
- attacker attribution never blames bosses or excluded ids
"""

from __future__ import annotations

from bot_core.testing.fakes import FakeWorld
from guard.context import GuardContext
from guard.threat import ThreatScanner
from guard.trust import TrustLists
from spec.types import HOSTILE_CATEGORY, EntityView, Vec3


def make_mob(entity_id: int, x: float, z: float = 0.0, health: float = 20.0) -> EntityView:
    return EntityView(
        entity_id=entity_id,
        kind="mob",
        position=Vec3(x, 64.0, z),
        category=HOSTILE_CATEGORY,
        display_name="Zombie",
        health=health,
    )


def make_player(entity_id: int, username: str, x: float, z: float = 0.0) -> EntityView:
    return EntityView(entity_id=entity_id, kind="player", position=Vec3(x, 64.0, z), username=username)


def make_scanner(world: FakeWorld, targets=()) -> ThreatScanner:
    context = GuardContext(trust=TrustLists(["Boss"], targets))
    return ThreatScanner(world, context)


def test_threat_near_guarded_player_is_selected() -> None:
    # 10 blocks from the bot (outside near radius 8),
    # 12 from the guarded player (inside guard radius 16).
    world = FakeWorld()
    mob = world.add_entity(make_mob(10, x=10.0))
    guarded = make_player(2, "Boss", x=10.0, z=12.0)
    world.add_player("Boss", guarded)

    scanner = make_scanner(world)
    threat = scanner.find_threat(world.position, guarded.position, guarded_id=guarded.entity_id)

    assert threat == mob


def test_threat_far_from_both_is_ignored() -> None:
    world = FakeWorld()
    world.add_entity(make_mob(10, x=20.0))
    guarded = make_player(2, "Boss", x=20.0, z=20.0)
    world.add_player("Boss", guarded)

    scanner = make_scanner(world)

    assert scanner.find_threat(world.position, guarded.position, guarded_id=2) is None


def test_near_radius_without_guarded_player() -> None:
    world = FakeWorld()
    mob = world.add_entity(make_mob(10, x=7.0))

    scanner = make_scanner(world)

    assert scanner.find_threat(world.position) == mob


def test_distance_comparison_is_strict() -> None:
    world = FakeWorld()
    world.add_entity(make_mob(10, x=8.0))

    scanner = make_scanner(world)

    assert scanner.find_threat(world.position) is None


def test_nearest_threat_wins() -> None:
    world = FakeWorld()
    world.add_entity(make_mob(10, x=6.0))
    closer = world.add_entity(make_mob(11, x=-3.0))

    scanner = make_scanner(world)

    assert scanner.find_threat(world.position) == closer


def test_target_list_players_are_threats() -> None:
    world = FakeWorld()
    griefer = world.add_entity(make_player(20, "Griefer", x=5.0))
    world.add_entity(make_player(21, "Visitor", x=3.0))

    scanner = make_scanner(world, targets=["Griefer"])

    assert scanner.find_threat(world.position) == griefer


def test_passive_mobs_are_not_threats() -> None:
    world = FakeWorld()
    world.add_entity(
        EntityView(30, "mob", Vec3(2.0, 64.0, 0.0), category="Passive mobs", display_name="Cow")
    )

    assert make_scanner(world).find_threat(world.position) is None


def test_guarded_entity_is_never_a_threat() -> None:
    world = FakeWorld()
    guarded = make_player(2, "Griefer", x=2.0)
    world.add_player("Griefer", guarded)

    scanner = make_scanner(world, targets=["Griefer"])

    assert scanner.find_threat(world.position, guarded.position, guarded_id=2) is None


def test_no_position_means_no_threat() -> None:
    world = FakeWorld(position=None)
    world.add_entity(make_mob(10, x=1.0))

    assert make_scanner(world).find_threat(None) is None


def test_find_attacker_skips_bosses_and_excluded() -> None:
    world = FakeWorld()
    world.add_entity(make_player(2, "Boss", x=1.0))
    victim = world.add_entity(make_player(3, "Victim", x=2.0))
    griefer = world.add_entity(make_player(4, "Griefer", x=3.0))

    scanner = make_scanner(world)
    attacker = scanner.find_attacker(victim.position, exclude={world.self_id, victim.entity_id})

    assert attacker == griefer


def test_find_attacker_outside_melee_radius() -> None:
    world = FakeWorld()
    world.add_entity(make_player(4, "Griefer", x=9.0))

    scanner = make_scanner(world)

    assert scanner.find_attacker(Vec3(0.0, 64.0, 0.0)) is None
