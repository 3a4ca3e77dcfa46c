# src/guard/bot.py
"""
GuardBot: wires guard components to a WorldClient.

Owns one GuardContext and hands it to every component. World events are
translated here:

    spawn           -> announce, start guard loop
    entity_hurt     -> blame the nearest non-boss player, add to target list
    entity_gone     -> forget that username
    health          -> hunger check
    respawn         -> announce, re-equip armor
    player_collect  -> re-equip armor (our pickups only)
    chat / whisper  -> command dispatch (boss senders only)
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Callable, Mapping, Optional

from env.schema import BotConfig
from monitoring.bus import EventBus
from monitoring.events import EventType
from spec.types import EntityView
from spec.world import WorldClient

from .combat import CombatEngine, ModePolicy
from .commands import Channel, CommandDispatcher
from .context import GuardContext, Notifier
from .equipment import EquipmentResolver
from .follow import GuardLoop
from .hunger import HungerManager
from .threat import ThreatScanner
from .trust import TrustLists

log = logging.getLogger(__name__)

SUPERVISOR_SENDER = "admin"


class GuardBot:
    def __init__(
        self,
        world: WorldClient,
        trust: TrustLists,
        config: Optional[BotConfig] = None,
        *,
        name: Optional[str] = None,
        notify: Optional[Notifier] = None,
        bus: Optional[EventBus] = None,
        policy: Optional[ModePolicy] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or BotConfig()
        self.world = world

        context = GuardContext(trust=trust, bus=bus, name=name, clock=clock)
        if notify is not None:
            context.notify = notify
        self.context = context

        self.equipment = EquipmentResolver(world, self.config.equipment)
        self.scanner = ThreatScanner(world, context, self.config.guard)
        self.combat = CombatEngine(
            world,
            context,
            self.equipment,
            self.config.guard,
            policy=policy,
        )
        self.guard_loop = GuardLoop(
            world,
            context,
            self.scanner,
            self.combat,
            self.config.guard,
            rng=rng,
        )
        self.hunger = HungerManager(world, context, self.config.hunger)
        self.dispatcher = CommandDispatcher(
            world,
            context,
            guard_loop=self.guard_loop,
            hunger=self.hunger,
            combat=self.combat,
            equipment=self.equipment,
        )

        self._loop_task: Optional[asyncio.Task] = None
        self._register_handlers()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the guard loop task (idempotent)."""
        if self._loop_task is not None and not self._loop_task.done():
            return
        self._loop_task = asyncio.ensure_future(self.guard_loop.run())

    async def stop(self) -> None:
        task, self._loop_task = self._loop_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def handle_supervisor_message(self, data: Mapping[str, Any]) -> None:
        """Inbound supervisor message: {type: "command", command: [tokens]}."""
        if data.get("type") != "command":
            log.debug("Ignoring supervisor message of type %r", data.get("type"))
            return
        tokens = data.get("command")
        if not isinstance(tokens, list):
            log.warning("Supervisor command without token list: %r", data)
            return
        await self.dispatcher.dispatch(
            [str(t) for t in tokens],
            Channel.SUPERVISOR,
            SUPERVISOR_SENDER,
            self.context.notify,
        )

    # ------------------------------------------------------------------
    # World event wiring
    # ------------------------------------------------------------------

    def _register_handlers(self) -> None:
        self.world.on("spawn", self._on_spawn)
        self.world.on("entity_hurt", self._on_entity_hurt)
        self.world.on("entity_gone", self._on_entity_gone)
        self.world.on("health", self._on_health)
        self.world.on("respawn", self._on_respawn)
        self.world.on("player_collect", self._on_player_collect)
        self.world.on("chat", self._on_chat)
        self.world.on("whisper", self._on_whisper)
        self.world.on("kicked", self._on_kicked)
        self.world.on("error", self._on_error)

    def _on_spawn(self) -> None:
        self.context.notify("Bot spawned.")
        self.start()

    def _on_entity_hurt(self, entity: EntityView) -> None:
        guarded = self.context.resolve_guarded(self.world)
        self_id = self.world.self_id

        is_self = self_id is not None and entity.entity_id == self_id
        is_guarded = guarded is not None and entity.entity_id == guarded.entity_id
        if not (is_self or is_guarded):
            return

        self.context.notify(f"{entity.username or 'entity'} was hurt!")

        exclude = {entity.entity_id}
        if self_id is not None:
            exclude.add(self_id)
        if guarded is not None:
            exclude.add(guarded.entity_id)

        attacker = self.scanner.find_attacker(entity.position, exclude)
        # Only players are tracked by name; hostile mobs are threats anyway.
        if attacker is None or attacker.kind != "player":
            return
        if self.context.trust.record_attacker(attacker.username):
            log.info("Recorded attacker %s", attacker.username)
            self.context.emit(
                "guard.bot",
                EventType.ATTACKER_RECORDED,
                f"Recorded attacker {attacker.username}",
                {"attacker": attacker.username, "victim": entity.name},
            )

    def _on_entity_gone(self, entity: EntityView) -> None:
        if self.context.trust.forget(entity.username):
            self.context.emit(
                "guard.bot",
                EventType.TARGET_FORGOTTEN,
                f"Forgot target {entity.username}",
                {"username": entity.username},
            )

    async def _on_health(self) -> None:
        await self.hunger.on_health()

    async def _on_respawn(self) -> None:
        self.context.notify("Respawned.")
        await self.equipment.equip_armor()

    async def _on_player_collect(
        self, collector: EntityView, collected: Optional[EntityView]
    ) -> None:
        if collector.entity_id != self.world.self_id:
            return
        await self.equipment.equip_armor()

    async def _on_chat(self, username: str, message: str) -> None:
        await self.dispatcher.dispatch(message.split(), Channel.CHAT, username, self.world.chat)

    async def _on_whisper(self, username: str, message: str) -> None:
        def reply(text: str) -> None:
            self.world.whisper(username, text)

        await self.dispatcher.dispatch(message.split(), Channel.WHISPER, username, reply)

    def _on_kicked(self, reason: str) -> None:
        log.warning("Kicked: %s", reason)
        self.context.notify(f"Kicked: {reason}")

    def _on_error(self, message: str) -> None:
        log.error("World error: %s", message)
