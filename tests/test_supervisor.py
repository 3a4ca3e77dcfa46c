# tests/test_supervisor.py
"""
Tests for the supervisor: line parsing, default names and BotManager
process handling over fake child processes.
"""

from __future__ import annotations

import asyncio
import io
import json
from pathlib import Path
from typing import List

from rich.console import Console

from env.schema import SupervisorConfig
from supervisor import BotManager, SupervisorConsole, parse_line
from supervisor.commands import FORWARD, default_names


# ---------------------------------------------------------------------------
# Fake child processes
# ---------------------------------------------------------------------------


class FakeStdout:
    def __init__(self) -> None:
        self.lines: asyncio.Queue = asyncio.Queue()

    async def readline(self) -> bytes:
        return await self.lines.get()


class FakeStdin:
    def __init__(self, broken: bool = False) -> None:
        self.written: List[bytes] = []
        self.broken = broken

    def write(self, data: bytes) -> None:
        if self.broken:
            raise BrokenPipeError("pipe closed")
        self.written.append(data)

    async def drain(self) -> None:
        return None


class FakeProcess:
    def __init__(self, argv: List[str]) -> None:
        self.argv = argv
        self.stdin = FakeStdin()
        self.stdout = FakeStdout()
        self.returncode = 0
        self.terminated = False

    def terminate(self) -> None:
        self.terminated = True
        self.stdout.lines.put_nowait(b"")

    def crash(self, code: int = 1) -> None:
        self.returncode = code
        self.stdout.lines.put_nowait(b"")

    async def wait(self) -> int:
        return self.returncode


class FakeSpawner:
    def __init__(self) -> None:
        self.processes: List[FakeProcess] = []

    async def __call__(self, argv: List[str]) -> FakeProcess:
        process = FakeProcess(argv)
        self.processes.append(process)
        return process


def make_manager(**overrides):
    cfg = SupervisorConfig(spawn_delay_s=0.0, **overrides)
    output = io.StringIO()
    console = SupervisorConsole(Console(file=output, width=200, color_system=None))
    spawner = FakeSpawner()
    manager = BotManager(cfg, console, spawner=spawner, python="python3")
    return manager, spawner, output


async def settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def test_parse_line_commands() -> None:
    assert parse_line("   ") is None

    cmd = parse_line("SPAWN 3")
    assert cmd.name == "spawn"
    assert cmd.args == ["3"]

    fwd = parse_line("@Knight guard Boss")
    assert fwd.name == FORWARD
    assert fwd.target == "Knight"
    assert fwd.args == ["guard", "Boss"]


def test_default_names() -> None:
    assert default_names("NamelessKnight", 0) == []
    assert default_names("NamelessKnight", 1) == ["NamelessKnight"]
    assert default_names("NamelessKnight", 3) == [
        "NamelessKnight_1",
        "NamelessKnight_2",
        "NamelessKnight_3",
    ]


# ---------------------------------------------------------------------------
# BotManager
# ---------------------------------------------------------------------------


def test_bot_argv_includes_options() -> None:
    manager = BotManager(
        SupervisorConfig(host="mc.local", port=25570),
        bot_config_path=Path("cfg/guard.yaml"),
        event_log_dir=Path("logs"),
        python="python3",
    )

    assert manager.bot_argv("Knight") == [
        "python3", "-m", "runtime.bot_main", "Knight", "mc.local", "25570",
        "--config", "cfg/guard.yaml",
        "--event-log", str(Path("logs") / "Knight.jsonl"),
    ]


def test_spawn_and_duplicate() -> None:
    manager, spawner, output = make_manager()

    async def scenario():
        await manager.run_command("spawn Knight")
        await manager.run_command("spawn Knight")
        names = manager.names()
        await manager.shutdown()
        return names

    names = asyncio.run(scenario())

    assert names == ["Knight"]
    assert len(spawner.processes) == 1
    text = output.getvalue()
    assert "Spawned bot: Knight" in text
    assert 'Bot "Knight" already exists.' in text


def test_spawn_count_uses_default_names() -> None:
    manager, spawner, _ = make_manager()

    async def scenario():
        await manager.run_command("spawn 2")
        names = manager.names()
        await manager.shutdown()
        return names

    assert asyncio.run(scenario()) == ["NamelessKnight_1", "NamelessKnight_2"]


def test_forward_writes_command_line() -> None:
    manager, spawner, output = make_manager()

    async def scenario():
        await manager.spawn("Knight")
        await manager.run_command("@Knight guard Boss")
        await manager.run_command("@Ghost ping")
        await manager.shutdown()

    asyncio.run(scenario())

    written = spawner.processes[0].stdin.written
    assert [json.loads(line) for line in written] == [{"type": "command", "command": ["guard", "Boss"]}]
    assert 'No bot named "Ghost".' in output.getvalue()


def test_forward_to_dead_pipe_reports_error() -> None:
    manager, spawner, output = make_manager()

    async def scenario():
        await manager.spawn("Knight")
        spawner.processes[0].stdin.broken = True
        ok = await manager.forward("Knight", ["ping"])
        await manager.shutdown()
        return ok

    assert asyncio.run(scenario()) is False
    assert 'Could not reach bot "Knight"' in output.getvalue()


def test_bot_messages_are_relayed() -> None:
    manager, spawner, output = make_manager()

    async def scenario():
        await manager.spawn("Knight")
        stdout = spawner.processes[0].stdout
        stdout.lines.put_nowait(b'{"type":"message","text":"Bot spawned."}\n')
        stdout.lines.put_nowait(b"not json\n")
        await settle()
        await manager.shutdown()

    asyncio.run(scenario())

    assert "@Knight: Bot spawned." in output.getvalue()


def test_stopped_bot_is_not_respawned() -> None:
    manager, spawner, output = make_manager()

    async def scenario():
        await manager.spawn("Knight")
        await manager.run_command("stop Knight")
        await settle()
        names = manager.names()
        await manager.shutdown()
        return names

    assert asyncio.run(scenario()) == []
    assert len(spawner.processes) == 1
    assert spawner.processes[0].terminated
    assert "Stopped bot: Knight" in output.getvalue()


def test_crashed_bot_is_respawned() -> None:
    manager, spawner, output = make_manager()

    async def scenario():
        await manager.spawn("Knight")
        spawner.processes[0].crash(code=3)
        await settle(20)
        names = manager.names()
        await manager.shutdown()
        return names

    assert asyncio.run(scenario()) == ["Knight"]
    assert len(spawner.processes) == 2
    text = output.getvalue()
    assert 'Bot "Knight" exited (code=3)' in text
    assert "Respawning Knight in 0s..." in text


def test_crashed_bot_without_auto_respawn() -> None:
    manager, spawner, _ = make_manager(auto_respawn=False)

    async def scenario():
        await manager.spawn("Knight")
        spawner.processes[0].crash()
        await settle()
        names = manager.names()
        await manager.shutdown()
        return names

    assert asyncio.run(scenario()) == []
    assert len(spawner.processes) == 1


def test_misc_commands() -> None:
    manager, _, output = make_manager()

    async def scenario():
        await manager.run_command("list")
        await manager.run_command("ping")
        await manager.run_command("dance")
        await manager.run_command("stop Ghost")
        await manager.run_command("help")

    asyncio.run(scenario())

    text = output.getvalue()
    assert "Active bots: (none)" in text
    assert "pong" in text
    assert "Unknown command: dance" in text
    assert 'No bot found with name "Ghost"' in text
    assert "Available commands:" in text


def test_console_does_not_parse_markup() -> None:
    output = io.StringIO()
    console = SupervisorConsole(Console(file=output, width=200, color_system=None))

    console.bot_message("Knight", "[bold]hi[/bold]")
    console.warn("[red]x")

    text = output.getvalue()
    assert "@Knight: [bold]hi[/bold]" in text
    assert "[WARN] [red]x" in text
