# supervisor package
# src/supervisor/__init__.py
"""
Multi-bot supervisor.

Spawns guard bots as child processes and relays commands to them.

Usage:
    python -m runtime.supervisor_main
"""

from __future__ import annotations

from .commands import SupervisorCommand, parse_line
from .console import SupervisorConsole
from .manager import BotManager

__all__ = [
    "BotManager",
    "SupervisorCommand",
    "SupervisorConsole",
    "parse_line",
]
