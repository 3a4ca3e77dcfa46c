# bot_core package
# src/bot_core/__init__.py
"""
bot_core package.

Exports:
    - BotCoreImpl: WorldClient implementation over the game bridge
    - BotCoreError: domain-level error type for non-action failures
"""

from __future__ import annotations

from .core import BotCoreImpl
from .errors import BotCoreError

__all__ = [
    "BotCoreImpl",
    "BotCoreError",
]
