# path: src/runtime/bot_main.py

"""
Entry point for one guard bot process.

    python -m runtime.bot_main <name> <host> <port> [--config PATH] [--event-log PATH]

Wiring:
- logging to stderr (stdout carries the supervisor protocol)
- BotCoreImpl over the bridge, joined to <host>:<port> as <name>
- GuardBot with trust lists from the configured files
- SupervisorLink: commands in on stdin, notifications out on stdout
- optional JsonFileLogger for monitoring events

The process exits when the bridge connection closes or stdin reaches EOF,
so the supervisor can respawn it.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from agent.logging_config import configure_logging
from bot_core import BotCoreError, BotCoreImpl
from bot_core.net import SupervisorLink
from env.loader import PROJECT_ROOT, load_config, load_name_list
from env.schema import BotConfig
from guard import GuardBot, TrustLists
from monitoring.bus import EventBus
from monitoring.logger import JsonFileLogger

log = logging.getLogger(__name__)


def resolve_list_path(raw: str) -> Path:
    """Relative list paths resolve against the working directory, then the project root."""
    path = Path(raw)
    if path.is_absolute() or path.exists():
        return path
    return PROJECT_ROOT / path


def load_trust_lists(config: BotConfig) -> TrustLists:
    bosses = load_name_list(resolve_list_path(config.trust.boss_list))

    target_path = resolve_list_path(config.trust.target_list)
    if target_path.exists():
        targets = load_name_list(target_path)
    else:
        log.warning("No target list at %s; starting with an empty one", target_path)
        targets = []

    log.info("Loaded %d bosses, %d initial targets", len(bosses), len(targets))
    return TrustLists(bosses, targets)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guard-bot",
        description="Run one guard bot and attach it to the supervisor channel.",
    )
    parser.add_argument("name", type=str, help="Bot username.")
    parser.add_argument("host", type=str, help="Minecraft server host.")
    parser.add_argument("port", type=int, help="Minecraft server port.")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to guard.yaml (default: $GUARD_BOT_CONFIG or config/guard.yaml).",
    )
    parser.add_argument(
        "--event-log",
        type=Path,
        default=None,
        help="Append monitoring events as JSONL to this file.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser


async def run_bot(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    trust = load_trust_lists(config)
    bus = EventBus()

    with contextlib.ExitStack() as stack:
        if args.event_log is not None:
            stack.enter_context(JsonFileLogger(path=args.event_log, bus=bus))

        link = SupervisorLink()
        world = BotCoreImpl(config=config.bridge, bus=bus)
        bot = GuardBot(
            world,
            trust,
            config,
            name=args.name,
            notify=link.send_message,
            bus=bus,
        )

        try:
            await world.connect(args.name, args.host, args.port)
        except BotCoreError as exc:
            log.error("Could not start bot %s: %s", args.name, exc)
            return 1

        closed = asyncio.ensure_future(world.wait_closed())
        commands = asyncio.ensure_future(link.run(bot.handle_supervisor_message))
        try:
            await asyncio.wait({closed, commands}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (closed, commands):
                task.cancel()
            await bot.stop()
            await world.disconnect()

    log.info("Bot %s shutting down", args.name)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(
        level=logging.DEBUG if args.debug else logging.INFO,
        stream=sys.stderr,
    )
    try:
        return asyncio.run(run_bot(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
