# bridge protocol client
# src/bot_core/net/client.py
"""
Client abstraction for the game bridge.

Defines the PacketClient protocol used by bot_core, plus a factory for
constructing the concrete client from the `bridge` section of the bot
configuration (config/guard.yaml / BridgeConfig).
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from env.schema import BridgeConfig

# Type alias for packet handlers.
PacketHandler = Callable[[Mapping[str, Any]], None]


class PacketClient(Protocol):
    """
    Abstract interface for the bridge that owns the real game connection.

    Implementations:
    - IpcClient (JSON lines over TCP)
    - FakePacketClient (tests)
    """

    async def connect(self) -> None:
        """Open the bridge connection and start pumping incoming packets."""
        ...

    async def disconnect(self) -> None:
        """Cleanly close the bridge connection."""
        ...

    async def wait_closed(self) -> None:
        """Return once the connection has gone away, for whatever reason."""
        ...

    def send_packet(self, packet_type: str, data: Mapping[str, Any]) -> None:
        """
        Send a fire-and-forget message.

        Used for chat, goal updates and control states, where the bridge
        sends no response.
        """
        ...

    async def request(
        self,
        packet_type: str,
        data: Mapping[str, Any],
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Send a message carrying a request_id and wait for its response.

        Returns the response payload: {request_id, success, error, details}.
        A request that times out resolves to a failed payload with
        error="request_timeout" instead of raising.
        """
        ...

    def on_packet(self, packet_type: str, handler: PacketHandler) -> None:
        """
        Register a handler for event packets of a given type.

        Handlers receive the decoded payload mapping.
        """
        ...


def create_packet_client(config: Optional[BridgeConfig] = None) -> PacketClient:
    """
    Construct the PacketClient for a bridge config.

    The concrete implementation lives in ipc.IpcClient.
    """
    # Lazy import to avoid cycles.
    from .ipc import IpcClient

    return IpcClient(config or BridgeConfig())
