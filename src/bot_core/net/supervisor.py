# stdin/stdout channel to the supervisor process
# src/bot_core/net/supervisor.py
"""
Parent-process channel for a bot.

    inbound  (stdin):  {"type": "command", "command": [tokens]}
    outbound (stdout): {"type": "message", "text": "..."}

One JSON object per line. stdout is reserved for this channel, so bot
processes must log to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, Dict, Optional, TextIO

log = logging.getLogger(__name__)

MessageHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class SupervisorLink:
    def __init__(
        self,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
    ) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    def send_message(self, text: str) -> None:
        """Write one outbound message line and flush."""
        line = json.dumps({"type": "message", "text": text}, separators=(",", ":"))
        self._stdout.write(line + "\n")
        self._stdout.flush()

    async def run(self, handler: MessageHandler) -> None:
        """Read stdin until EOF, passing each decoded message to `handler`."""
        reader = await self._open_reader()
        while True:
            raw = await reader.readline()
            if not raw:
                log.info("Supervisor channel closed")
                return
            await self.handle_line(raw, handler)

    async def handle_line(self, raw: bytes | str, handler: MessageHandler) -> None:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        raw = raw.strip()
        if not raw:
            return
        try:
            data = json.loads(raw)
        except ValueError:
            log.warning("Ignoring malformed supervisor line: %r", raw)
            return
        if not isinstance(data, dict):
            log.warning("Ignoring non-object supervisor message: %r", data)
            return
        try:
            await handler(data)
        except Exception:
            log.exception("Supervisor message handler failed for %r", data)

    async def _open_reader(self) -> asyncio.StreamReader:
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, self._stdin)
        return reader
