# path: src/runtime/supervisor_main.py

"""
Entry point for the multi-bot supervisor.

    python -m runtime.supervisor_main [--config PATH] [--event-log-dir DIR]

Spawns `supervisor.default_bot_count` bots at startup, then reads
commands from stdin until EOF (see `help`).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from agent.logging_config import configure_logging
from env.loader import load_config
from supervisor import BotManager, SupervisorConsole

log = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guard-supervisor",
        description="Spawn and command guard bot processes.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to guard.yaml, passed on to every bot.",
    )
    parser.add_argument("--host", type=str, default=None, help="Override supervisor.host.")
    parser.add_argument("--port", type=int, default=None, help="Override supervisor.port.")
    parser.add_argument(
        "--event-log-dir",
        type=Path,
        default=None,
        help="Directory for per-bot monitoring event logs (<name>.jsonl).",
    )
    return parser


async def read_lines(manager: BotManager, console: SupervisorConsole) -> None:
    loop = asyncio.get_running_loop()
    while True:
        console.console.print("> ", end="")
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            return
        manager.submit(line)


async def run_supervisor(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    sup_cfg = config.supervisor
    if args.host is not None:
        sup_cfg.host = args.host
    if args.port is not None:
        sup_cfg.port = args.port

    console = SupervisorConsole()
    manager = BotManager(
        sup_cfg,
        console,
        bot_config_path=args.config,
        event_log_dir=args.event_log_dir,
    )

    try:
        if sup_cfg.default_bot_count > 0:
            await manager.spawn_default()
        await read_lines(manager, console)
    finally:
        await manager.shutdown()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(stream=sys.stderr)
    try:
        return asyncio.run(run_supervisor(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
