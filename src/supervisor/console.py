# rich console output for the supervisor
# src/supervisor/console.py
"""
Colored supervisor output.

    [INFO]   cyan
    [WARN]   yellow
    [ERROR]  red
    @name    green, for messages relayed from a bot
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.text import Text


class SupervisorConsole:
    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console(highlight=False)

    @property
    def console(self) -> Console:
        return self._console

    def info(self, message: str) -> None:
        self._tagged("[INFO]", "cyan", message)

    def warn(self, message: str) -> None:
        self._tagged("[WARN]", "yellow", message)

    def error(self, message: str) -> None:
        self._tagged("[ERROR]", "red", message)

    def bot_message(self, name: str, text: str) -> None:
        line = Text()
        line.append(f"@{name}", style="green")
        line.append(f": {text}")
        self._console.print(line)

    def plain(self, message: str) -> None:
        self._console.print(Text(message))

    def _tagged(self, tag: str, style: str, message: str) -> None:
        # Text objects keep bot-provided strings from being read as markup.
        line = Text()
        line.append(tag, style=style)
        line.append(f" {message}")
        self._console.print(line)
