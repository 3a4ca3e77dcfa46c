# tests/test_trust_lists.py
"""
Tests for guard.trust.TrustLists.

Covers:
- bosses never enter the target list (init and record_attacker)
- duplicate / empty names rejected
- forget() idempotence
"""

from __future__ import annotations

from guard.trust import TrustLists


def test_initial_targets_exclude_bosses() -> None:
    trust = TrustLists(["Boss"], ["Griefer", "Boss", "Raider"])

    assert trust.targets == ("Griefer", "Raider")
    assert trust.is_trusted("Boss")
    assert not trust.is_known_hostile("Boss")


def test_record_attacker_never_adds_a_boss() -> None:
    trust = TrustLists(["Boss", "Alice"])

    assert trust.record_attacker("Alice") is False
    assert trust.record_attacker("Griefer") is True
    assert trust.targets == ("Griefer",)


def test_record_attacker_rejects_empty_and_duplicates() -> None:
    trust = TrustLists(["Boss"])

    assert trust.record_attacker(None) is False
    assert trust.record_attacker("") is False
    assert trust.record_attacker("Griefer") is True
    assert trust.record_attacker("Griefer") is False
    assert trust.targets == ("Griefer",)


def test_forget_is_idempotent() -> None:
    trust = TrustLists(["Boss"], ["Griefer"])

    assert trust.forget("Griefer") is True
    assert trust.forget("Griefer") is False
    assert trust.forget(None) is False
    assert trust.targets == ()
    assert not trust.is_known_hostile("Griefer")


def test_targets_keep_insertion_order() -> None:
    trust = TrustLists([])
    for name in ["c", "a", "b"]:
        trust.record_attacker(name)
    trust.forget("a")
    trust.record_attacker("a")

    assert trust.targets == ("c", "b", "a")
