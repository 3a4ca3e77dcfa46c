# bot_core.net package
# src/bot_core/net/__init__.py
"""
Network layer for bot_core.

This package provides:
- PacketClient protocol (common interface)
- IpcClient: JSON-lines bridge client
- SupervisorLink: stdin/stdout channel to the parent supervisor process
"""

from __future__ import annotations

from .client import (
    PacketClient,
    PacketHandler,
    create_packet_client,
)
from .ipc import IpcClient
from .supervisor import SupervisorLink

__all__ = [
    "PacketClient",
    "PacketHandler",
    "create_packet_client",
    "IpcClient",
    "SupervisorLink",
]
