# bot process management
# src/supervisor/manager.py
"""
BotManager: spawn, stop, list and talk to bot child processes.

Each bot runs `python -m runtime.bot_main <name> <host> <port>` with
stdin/stdout pipes carrying JSON lines:

    supervisor -> bot   {"type": "command", "command": [tokens]}
    bot -> supervisor   {"type": "message", "text": "..."}

A bot that exits on its own is respawned after spawn_delay_s when
auto_respawn is set. A bot stopped through stop() is not.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set

from env.schema import SupervisorConfig

from .commands import FORWARD, HELP_TEXT, SupervisorCommand, default_names, parse_line
from .console import SupervisorConsole

log = logging.getLogger(__name__)

BOT_MODULE = "runtime.bot_main"

Spawner = Callable[[List[str]], Awaitable[Any]]


async def spawn_subprocess(argv: List[str]) -> asyncio.subprocess.Process:
    # stderr is inherited so bot logs show up in the supervisor terminal.
    return await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
    )


@dataclass
class BotHandle:
    name: str
    process: Any
    stopped: bool = False


class BotManager:
    def __init__(
        self,
        config: Optional[SupervisorConfig] = None,
        console: Optional[SupervisorConsole] = None,
        *,
        bot_config_path: Optional[Path] = None,
        event_log_dir: Optional[Path] = None,
        spawner: Spawner = spawn_subprocess,
        python: str = sys.executable,
    ) -> None:
        self._cfg = config or SupervisorConfig()
        self._console = console or SupervisorConsole()
        self._bot_config_path = bot_config_path
        self._event_log_dir = event_log_dir
        self._spawner = spawner
        self._python = python

        self._bots: Dict[str, BotHandle] = {}
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def names(self) -> List[str]:
        return list(self._bots)

    def bot_argv(self, name: str) -> List[str]:
        argv = [self._python, "-m", BOT_MODULE, name, self._cfg.host, str(self._cfg.port)]
        if self._bot_config_path is not None:
            argv += ["--config", str(self._bot_config_path)]
        if self._event_log_dir is not None:
            argv += ["--event-log", str(self._event_log_dir / f"{name}.jsonl")]
        return argv

    # ------------------------------------------------------------------
    # Process lifecycle
    # ------------------------------------------------------------------

    async def spawn(self, name: str) -> bool:
        if name in self._bots:
            self._console.warn(f'Bot "{name}" already exists.')
            return False

        try:
            process = await self._spawner(self.bot_argv(name))
        except OSError as exc:
            self._console.error(f'Failed to spawn bot "{name}": {exc}')
            return False

        handle = BotHandle(name=name, process=process)
        self._bots[name] = handle
        self._track(self._pump(handle))
        self._console.info(f"Spawned bot: {name}")
        return True

    async def spawn_many(self, names: Sequence[str]) -> None:
        for i, name in enumerate(names):
            if i:
                await asyncio.sleep(self._cfg.spawn_delay_s)
            await self.spawn(name)

    async def spawn_default(self, count: Optional[int] = None) -> None:
        if count is None:
            count = self._cfg.default_bot_count
        await self.spawn_many(default_names(self._cfg.default_name, count))

    async def stop(self, name: str) -> bool:
        handle = self._bots.pop(name, None)
        if handle is None:
            self._console.warn(f'No bot found with name "{name}"')
            return False

        handle.stopped = True
        try:
            handle.process.terminate()
        except ProcessLookupError:
            log.debug("Bot %s already exited", name)
        self._console.info(f"Stopped bot: {name}")
        return True

    async def stop_all(self) -> None:
        for name in list(self._bots):
            await self.stop(name)
        self._console.info("All bots stopped.")

    async def forward(self, name: str, tokens: Sequence[str]) -> bool:
        handle = self._bots.get(name)
        if handle is None:
            self._console.warn(f'No bot named "{name}".')
            return False

        line = json.dumps({"type": "command", "command": list(tokens)}, separators=(",", ":"))
        try:
            handle.process.stdin.write(line.encode("utf-8") + b"\n")
            await handle.process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            self._console.error(f'Could not reach bot "{name}": {exc}')
            return False
        return True

    async def shutdown(self) -> None:
        await self.stop_all()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Command line
    # ------------------------------------------------------------------

    def submit(self, line: str) -> None:
        """Run one input line in the background so batch spawns don't block input."""
        self._track(self.run_command(line))

    async def run_command(self, line: str) -> None:
        command = parse_line(line)
        if command is None:
            return
        await self.execute(command)

    async def execute(self, command: SupervisorCommand) -> None:
        name, args = command.name, command.args

        if name == FORWARD:
            await self.forward(command.target or "", args)
        elif name == "ping":
            self._console.plain("pong")
        elif name == "spawn":
            await self._cmd_spawn(args)
        elif name == "stop":
            if not args:
                await self.stop_all()
            for bot_name in args:
                await self.stop(bot_name)
        elif name == "list":
            self._console.plain("Active bots: " + (", ".join(self.names()) or "(none)"))
        elif name == "help":
            self._console.plain(HELP_TEXT)
        else:
            self._console.error(f"Unknown command: {name}")

    async def _cmd_spawn(self, args: List[str]) -> None:
        if len(args) == 1 and args[0].isdigit():
            await self.spawn_default(int(args[0]))
        elif args:
            await self.spawn_many(args)
        else:
            await self.spawn_default(1)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _track(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _pump(self, handle: BotHandle) -> None:
        """Relay bot output until EOF, then reap and maybe respawn."""
        stdout = handle.process.stdout
        while True:
            raw = await stdout.readline()
            if not raw:
                break
            self._relay(handle.name, raw)

        code = await handle.process.wait()
        if self._bots.get(handle.name) is handle:
            del self._bots[handle.name]
        if handle.stopped:
            return

        self._console.warn(f'Bot "{handle.name}" exited (code={code})')
        if not self._cfg.auto_respawn:
            return
        self._console.info(f"Respawning {handle.name} in {self._cfg.spawn_delay_s:g}s...")
        await asyncio.sleep(self._cfg.spawn_delay_s)
        if handle.name not in self._bots:
            await self.spawn(handle.name)

    def _relay(self, name: str, raw: bytes) -> None:
        text = raw.decode("utf-8", errors="replace").strip()
        if not text:
            return
        try:
            data = json.loads(text)
        except ValueError:
            log.warning("Non-JSON output from bot %s: %r", name, text)
            return
        if isinstance(data, dict) and data.get("type") == "message":
            self._console.bot_message(name, str(data.get("text", "")))
        else:
            log.debug("Ignoring message from bot %s: %r", name, data)
