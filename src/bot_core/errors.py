# src/bot_core/errors.py
"""
Domain errors for bot_core.

Action-level failures never raise; they come back as ActionResult with an
explicit error code. BotCoreError is reserved for everything else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class BotCoreError(RuntimeError):
    """
    Domain-level error raised for non-action failures.

    Examples:
        - failed to connect or disconnect cleanly
        - request on a bridge that is not connected
        - bridge refused the join request
    """

    code: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"BotCoreError(code={self.code!r}, details={self.details!r})"


__all__ = ["BotCoreError"]
