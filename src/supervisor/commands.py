# supervisor CLI parsing
# src/supervisor/commands.py
"""
Parse one supervisor input line.

    spawn [n | name...]    stop [name...]    list    ping    help
    @name <command...>     forwarded to that bot verbatim
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

FORWARD = "forward"

HELP_TEXT = """Available commands:
    spawn [n|name1 name2 ...] - Spawn bots
    stop [name ...]           - Stop specific bots, or all if none given
    list                      - List active bots
    @botName <command>        - Send command to bot
    ping                      - Test supervisor responsiveness
    help                      - Show this message"""


@dataclass
class SupervisorCommand:
    name: str
    args: List[str] = field(default_factory=list)
    target: Optional[str] = None


def parse_line(line: str) -> Optional[SupervisorCommand]:
    """Tokenize on whitespace. Blank lines parse to None."""
    tokens = line.split()
    if not tokens:
        return None

    head = tokens[0]
    if head.startswith("@"):
        return SupervisorCommand(name=FORWARD, args=tokens[1:], target=head[1:])
    return SupervisorCommand(name=head.lower(), args=tokens[1:])


def default_names(default_name: str, count: int) -> List[str]:
    """`count` default bot names: bare when one, `<name>_<i>` (1-based) otherwise."""
    if count <= 1:
        return [default_name] if count == 1 else []
    return [f"{default_name}_{i}" for i in range(1, count + 1)]
