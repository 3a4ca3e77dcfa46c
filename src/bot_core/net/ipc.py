# JSON-lines bridge client
# src/bot_core/net/ipc.py
"""
IPC-based client for the game bridge.

The bridge owns the real Minecraft connection (pathfinding, physics,
protocol). This client talks to it over TCP with a simple message
protocol and exposes it as a PacketClient.

The goal is:
- keep Python-side logic simple
- keep a clean PacketClient interface
- correlate requests and responses by request_id
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from typing import Any, Dict, Mapping, Optional

from env.schema import BridgeConfig

from ..errors import BotCoreError
from .client import PacketClient, PacketHandler

log = logging.getLogger(__name__)

RESPONSE_TYPE = "response"


def failed_response(request_id: Optional[int], error: str, **details: Any) -> Dict[str, Any]:
    return {
        "request_id": request_id,
        "success": False,
        "error": error,
        "details": dict(details),
    }


class IpcClient(PacketClient):
    """
    IPC client for communicating with the bridge.

    Message format:
      - Each message is a single line of UTF-8 JSON.
      - JSON object:
          {
            "type": "<packet_type>",
            "payload": { ... }
          }
      - Requests carry payload.request_id; the bridge answers with
          {"type": "response",
           "payload": {"request_id", "success", "error", "details"}}
    """

    def __init__(self, config: BridgeConfig) -> None:
        self._config = config
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._read_task: Optional[asyncio.Task] = None
        self._closed: Optional[asyncio.Event] = None

        self._handlers: Dict[str, PacketHandler] = {}
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)

    @property
    def connected(self) -> bool:
        return self._writer is not None

    # ------------------------------------------------------------------
    # PacketClient protocol
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open IPC connection to the bridge."""
        if self.connected:
            return

        log.info("IpcClient connecting to %s:%d", self._config.host, self._config.port)
        self._reader, self._writer = await asyncio.open_connection(
            self._config.host, self._config.port
        )
        self._closed = asyncio.Event()
        self._read_task = asyncio.ensure_future(self._read_loop())

    async def disconnect(self) -> None:
        """Close IPC connection."""
        if not self.connected:
            return
        log.info("IpcClient disconnecting")

        task, self._read_task = self._read_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._close_transport()

    async def wait_closed(self) -> None:
        if self._closed is None:
            return
        await self._closed.wait()

    def send_packet(self, packet_type: str, data: Mapping[str, Any]) -> None:
        """
        Send a JSON message to the bridge.

        Format:
          {"type": "<packet_type>", "payload": { ... }}
        """
        if self._writer is None:
            raise BotCoreError(code="not_connected", details={"packet_type": packet_type})

        msg = {"type": packet_type, "payload": dict(data)}
        encoded = json.dumps(msg, separators=(",", ":")).encode("utf-8") + b"\n"
        self._writer.write(encoded)

    async def request(
        self,
        packet_type: str,
        data: Mapping[str, Any],
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            self.send_packet(packet_type, {**dict(data), "request_id": request_id})
            return await asyncio.wait_for(
                future,
                timeout=timeout if timeout is not None else self._config.request_timeout_s,
            )
        except asyncio.TimeoutError:
            log.warning("IpcClient request %s (%s) timed out", request_id, packet_type)
            return failed_response(request_id, "request_timeout", packet_type=packet_type)
        finally:
            self._pending.pop(request_id, None)

    def on_packet(self, packet_type: str, handler: PacketHandler) -> None:
        """Register a handler for incoming IPC messages of a given type."""
        self._handlers[packet_type] = handler

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _read_loop(self) -> None:
        assert self._reader is not None
        try:
            while True:
                line = await self._reader.readline()
                if not line:
                    log.info("IpcClient received EOF; disconnecting")
                    break
                line = line.strip()
                if not line:
                    continue
                self._handle_raw_line(line)
        except (ConnectionError, OSError):
            log.exception("IpcClient socket error, disconnecting")
        finally:
            await self._close_transport()

    async def _close_transport(self) -> None:
        writer, self._writer = self._writer, None
        self._reader = None
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                log.debug("IpcClient error while closing transport", exc_info=True)

        for request_id, future in list(self._pending.items()):
            if not future.done():
                future.set_result(failed_response(request_id, "disconnected"))
        self._pending.clear()

        if self._closed is not None:
            self._closed.set()

    def _handle_raw_line(self, line: bytes) -> None:
        """Decode a JSON line and dispatch to the appropriate handler."""
        try:
            obj = json.loads(line.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            log.exception("IpcClient failed to decode JSON line: %r", line)
            return

        if not isinstance(obj, dict):
            log.warning("IpcClient received non-object message: %r", obj)
            return

        packet_type = obj.get("type")
        payload = obj.get("payload", {})

        if not isinstance(packet_type, str):
            log.warning("IpcClient received message without valid type: %r", obj)
            return
        if not isinstance(payload, dict):
            log.warning("IpcClient received message with non-dict payload: %r", obj)
            return

        if packet_type == RESPONSE_TYPE:
            self._resolve(payload)
            return

        handler = self._handlers.get(packet_type)
        if handler is None:
            log.debug("IpcClient no handler for packet_type=%s", packet_type)
            return

        try:
            handler(payload)
        except Exception:
            log.exception("Error in IPC handler for %s", packet_type)

    def _resolve(self, payload: Dict[str, Any]) -> None:
        request_id = payload.get("request_id")
        future = self._pending.get(request_id) if isinstance(request_id, int) else None
        if future is None:
            log.debug("IpcClient response for unknown request_id=%r", request_id)
            return
        if not future.done():
            future.set_result(payload)
