# src/guard/commands.py
"""
Command dispatch across three channels.

    SUPERVISOR  parent process, {type: "command", command: [tokens]}; trusted
    CHAT        public in-world chat; boss senders only, replies in chat
    WHISPER     private message; boss senders only, replies by whisper

Unauthorized in-world commands are dropped without a reply. Unknown
commands reply "Unknown command." on the channel they came in on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from monitoring.events import EventType
from spec.types import EntityView
from spec.world import WorldClient

from .combat import CombatEngine
from .context import GuardContext
from .equipment import EquipmentCategory, EquipmentResolver
from .follow import GuardLoop
from .hunger import HungerManager

log = logging.getLogger(__name__)

Reply = Callable[[str], None]


class Channel(Enum):
    SUPERVISOR = "supervisor"
    CHAT = "chat"
    WHISPER = "whisper"


@dataclass
class CommandRequest:
    args: List[str]
    sender: str
    channel: Channel
    reply: Reply


CommandHandler = Callable[[CommandRequest], Awaitable[None]]


class CommandDispatcher:
    def __init__(
        self,
        world: WorldClient,
        context: GuardContext,
        *,
        guard_loop: GuardLoop,
        hunger: HungerManager,
        combat: CombatEngine,
        equipment: EquipmentResolver,
    ) -> None:
        self._world = world
        self._ctx = context
        self._guard_loop = guard_loop
        self._hunger = hunger
        self._combat = combat
        self._equipment = equipment

        self._commands: Dict[str, CommandHandler] = {
            "continue": self._cmd_continue,
            "stop": self._cmd_stop,
            "guard": self._cmd_guard,
            "eat": self._cmd_eat,
            "status": self._cmd_status,
            "ping": self._cmd_ping,
            "punch": self._cmd_punch,
            "crit": self._cmd_crit,
            "shoot": self._cmd_shoot,
            "equip": self._cmd_equip,
            "equiparmor": self._cmd_equiparmor,
        }

    @property
    def command_names(self) -> List[str]:
        return sorted(self._commands)

    def is_authorized(self, channel: Channel, sender: str) -> bool:
        return channel is Channel.SUPERVISOR or self._ctx.trust.is_trusted(sender)

    async def dispatch(
        self,
        tokens: Sequence[str],
        channel: Channel,
        sender: str,
        reply: Reply,
    ) -> bool:
        """Run one command. Returns True if a handler ran."""
        if not self.is_authorized(channel, sender):
            log.debug("Dropping %s command from untrusted sender %s", channel.value, sender)
            self._ctx.emit(
                "guard.commands",
                EventType.COMMAND_REJECTED,
                f"Unauthorized {channel.value} command from {sender}",
                {"sender": sender, "channel": channel.value, "reason": "unauthorized"},
            )
            return False

        tokens = [t for t in tokens if t]
        if not tokens:
            return False

        name, args = tokens[0], tokens[1:]
        handler = self._commands.get(name)
        if handler is None:
            reply("Unknown command.")
            self._ctx.emit(
                "guard.commands",
                EventType.COMMAND_REJECTED,
                f"Unknown command {name!r}",
                {"sender": sender, "channel": channel.value, "command": name, "reason": "unknown"},
            )
            return False

        self._ctx.emit(
            "guard.commands",
            EventType.COMMAND_DISPATCHED,
            f"{name} from {sender}",
            {"sender": sender, "channel": channel.value, "command": name, "args": list(args)},
        )
        await handler(CommandRequest(args=list(args), sender=sender, channel=channel, reply=reply))
        return True

    # ------------------------------------------------------------------
    # Guard state
    # ------------------------------------------------------------------

    async def _cmd_continue(self, req: CommandRequest) -> None:
        self._guard_loop.enable()

    async def _cmd_stop(self, req: CommandRequest) -> None:
        req.reply("Stopping guard mode.")
        self._guard_loop.disable()

    async def _cmd_guard(self, req: CommandRequest) -> None:
        if not req.args:
            req.reply("Usage: guard <player>")
            return
        username = req.args[0]
        if username not in self._world.players():
            req.reply(f'Player "{username}" not found.')
            return
        self._ctx.set_guarded(username, source=f"command:{req.sender}")

    # ------------------------------------------------------------------
    # Status / upkeep
    # ------------------------------------------------------------------

    async def _cmd_eat(self, req: CommandRequest) -> None:
        result = await self._hunger.eat()
        req.reply(result.message)

    async def _cmd_status(self, req: CommandRequest) -> None:
        req.reply(f"HEALTH: {self._world.health} HUNGER: {self._world.food}")

    async def _cmd_ping(self, req: CommandRequest) -> None:
        req.reply("pong")

    async def _cmd_equip(self, req: CommandRequest) -> None:
        await self._equipment.equip_best(EquipmentCategory.WEAPON)

    async def _cmd_equiparmor(self, req: CommandRequest) -> None:
        await self._equipment.equip_armor()
        req.reply("Armor equipped.")

    # ------------------------------------------------------------------
    # Manual combat
    # ------------------------------------------------------------------

    async def _cmd_punch(self, req: CommandRequest) -> None:
        target = self._resolve_target(req)
        if target is None:
            return
        result = await self._combat.punch(target)
        if not result.success:
            req.reply(f"Punch failed: {result.error}")

    async def _cmd_crit(self, req: CommandRequest) -> None:
        target = self._resolve_target(req)
        if target is None:
            return
        result = await self._combat.crit(target)
        if not result.success:
            req.reply(f"Crit failed: {result.error}")

    async def _cmd_shoot(self, req: CommandRequest) -> None:
        target = self._resolve_target(req)
        if target is None:
            return
        result = await self._combat.shoot(target)
        if not result.success:
            req.reply(f"Failed to shoot: {result.error}")

    def _resolve_target(self, req: CommandRequest) -> Optional[EntityView]:
        """Nearest entity whose username or display name matches args[0]."""
        if not req.args:
            req.reply("Usage: <command> <target>")
            return None
        name = req.args[0]
        target = self._world.nearest_entity(
            lambda e: e.username == name or e.display_name == name
        )
        if target is None:
            req.reply(f"Couldn't find {name}.")
        return target
