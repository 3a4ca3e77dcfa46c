# src/guard/trust.py
"""
Boss list and dynamic hostile target list.

Invariant: the target list never contains a boss, whatever order
record_attacker() calls or the initial target file arrive in.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Optional, Tuple


class TrustLists:
    """Immutable boss set plus an insertion-ordered set of hostile usernames."""

    def __init__(self, bosses: Iterable[str], targets: Iterable[str] = ()) -> None:
        self._bosses: FrozenSet[str] = frozenset(bosses)
        # dict keys as an insertion-ordered set
        self._targets: Dict[str, None] = {}
        for name in targets:
            self.record_attacker(name)

    @property
    def bosses(self) -> FrozenSet[str]:
        return self._bosses

    @property
    def targets(self) -> Tuple[str, ...]:
        return tuple(self._targets)

    def is_trusted(self, name: Optional[str]) -> bool:
        return name is not None and name in self._bosses

    def is_known_hostile(self, name: Optional[str]) -> bool:
        return name is not None and name in self._targets

    def record_attacker(self, name: Optional[str]) -> bool:
        """Add `name` to the target list. Returns True if it was added."""
        if not name or self.is_trusted(name) or name in self._targets:
            return False
        self._targets[name] = None
        return True

    def forget(self, name: Optional[str]) -> bool:
        """Remove `name` if present. Returns True if something was removed."""
        if name is None or name not in self._targets:
            return False
        del self._targets[name]
        return True
