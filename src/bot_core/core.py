# src/bot_core/core.py
"""
Concrete WorldClient implementation backed by the game bridge.

This module wires together:
- PacketClient / IPC transport
- WorldTracker (incremental raw world state + world events)
- ActionTracer (logging for bridge actions)

Public surface (for the guard layer):
    class BotCoreImpl(WorldClient):
        connect(username, host, port) / disconnect() / wait_closed()
        queries: entities(), entity(), nearest_entity(), players(), ...
        actions: navigate_to(), equip(), attack(), shoot(), consume(), ...
        on(event, handler)

Design constraints:
- No packet or protocol details leak to callers.
- All action-related failures return ActionResult with explicit error codes.
- Non-action failures (e.g., connection problems) raise BotCoreError.
"""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, List, Mapping, Optional

from env.schema import BridgeConfig
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from spec.types import ActionResult, EntityView, FollowGoal, ItemStack, Vec3
from spec.world import WORLD_EVENTS, EntityPredicate, EventHandler, WorldClient

from .emitter import EventEmitter
from .errors import BotCoreError
from .net import PacketClient, create_packet_client
from .snapshot import RawWorldSnapshot, inventory_to_stacks, nearest
from .tracing import ActionTracer
from .world_tracker import WorldTracker

log = logging.getLogger(__name__)

# Server simulation rate: 20 ticks per second.
TICK_SECONDS = 0.05


class BotCoreImpl(WorldClient):
    """
    WorldClient over a bridge connection.

    Orchestrates:
        - PacketClient (transport)
        - WorldTracker (state + events)
        - ActionTracer (traces)
    """

    def __init__(
        self,
        client: Optional[PacketClient] = None,
        *,
        config: Optional[BridgeConfig] = None,
        tracer: Optional[ActionTracer] = None,
        bus: Optional[EventBus] = None,
        tick_seconds: float = TICK_SECONDS,
    ) -> None:
        """
        Build a BotCoreImpl.

        If `client` is None, it is constructed from `config` via
        create_packet_client().
        """
        self._config = config or BridgeConfig()
        self._client: PacketClient = client or create_packet_client(self._config)
        self._emitter = EventEmitter()
        self._tracker = WorldTracker(self._client, self._emitter)
        self._tracer: ActionTracer = tracer or ActionTracer()
        self._bus = bus
        self._tick_seconds = tick_seconds

        self._goal: Optional[FollowGoal] = None
        self._connected: bool = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self, username: str, host: str, port: int) -> None:
        """
        Open the bridge and ask it to join `host:port` as `username`.

        Raises:
            BotCoreError if the bridge is unreachable or refuses the join.
        """
        if self._connected:
            return

        try:
            await self._client.connect()
        except OSError as exc:
            raise BotCoreError(
                code="connect_failed",
                details={"exception": repr(exc)},
            ) from exc

        self._connected = True
        self._tracker.set_context("server", f"{host}:{port}")

        response = await self._client.request(
            "join",
            {"username": username, "host": host, "port": port},
        )
        if not response.get("success"):
            await self.disconnect()
            raise BotCoreError(
                code="join_failed",
                details={"error": response.get("error"), "username": username},
            )
        log.info("Joined %s:%s as %s", host, port, username)

    async def disconnect(self) -> None:
        """
        Close the bridge connection.

        Raises:
            BotCoreError if the underlying client fails to disconnect.
        """
        if not self._connected:
            return
        self._connected = False
        try:
            await self._client.disconnect()
        except OSError as exc:
            raise BotCoreError(
                code="disconnect_failed",
                details={"exception": repr(exc)},
            ) from exc

    async def wait_closed(self) -> None:
        await self._client.wait_closed()

    # ------------------------------------------------------------------
    # Self state
    # ------------------------------------------------------------------

    @property
    def self_id(self) -> Optional[int]:
        return self._tracker.self_id

    @property
    def username(self) -> Optional[str]:
        return self._tracker.username

    @property
    def position(self) -> Optional[Vec3]:
        return self._tracker.position

    @property
    def health(self) -> float:
        return self._tracker.health

    @property
    def food(self) -> int:
        return self._tracker.food

    @property
    def current_goal(self) -> Optional[FollowGoal]:
        return self._goal

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def observe(self) -> RawWorldSnapshot:
        """Raw snapshot of the tracked world, for debugging and tracing."""
        return self._tracker.build_snapshot()

    def entities(self) -> List[EntityView]:
        return self._tracker.entity_views()

    def entity(self, entity_id: int) -> Optional[EntityView]:
        return self._tracker.entity_view(entity_id)

    def nearest_entity(self, predicate: EntityPredicate) -> Optional[EntityView]:
        return nearest(self.entities(), self.position, predicate)

    def players(self) -> List[str]:
        return self._tracker.players()

    def player_entity(self, username: str) -> Optional[EntityView]:
        if username not in self._tracker.players():
            return None
        for view in self.entities():
            if view.kind == "player" and view.username == username:
                return view
        return None

    def inventory(self) -> List[ItemStack]:
        return inventory_to_stacks(self._tracker.inventory_slots())

    def foods(self) -> List[str]:
        return self._tracker.foods()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def estimate_travel_ticks(self, goal: FollowGoal) -> Optional[float]:
        result = await self._execute("estimate_route", goal.to_dict())
        if not result.success:
            return None
        ticks = result.details.get("ticks")
        return float(ticks) if ticks is not None else None

    async def navigate_to(self, goal: FollowGoal) -> ActionResult:
        # The bridge has a single pathfinder; a navigate drops any background goal.
        self._goal = goal
        return await self._execute("navigate", goal.to_dict())

    def set_goal(self, goal: Optional[FollowGoal]) -> None:
        self._goal = goal
        self._client.send_packet("set_goal", goal.to_dict() if goal is not None else {"kind": None})

    async def equip(self, item: str, slot: str) -> ActionResult:
        return await self._execute("equip", {"item": item, "slot": slot})

    async def attack(self, entity_id: int) -> ActionResult:
        return await self._execute("attack", {"entity_id": entity_id})

    async def shoot(self, entity_id: int, weapon: str) -> ActionResult:
        return await self._execute("shoot", {"entity_id": entity_id, "weapon": weapon})

    async def consume(self) -> ActionResult:
        return await self._execute("consume", {})

    def set_control_state(self, control: str, state: bool) -> None:
        self._client.send_packet("set_control_state", {"control": control, "state": state})

    async def wait_for_ticks(self, ticks: int) -> None:
        await asyncio.sleep(max(0, ticks) * self._tick_seconds)

    def chat(self, text: str) -> None:
        self._client.send_packet("chat", {"message": text})

    def whisper(self, username: str, text: str) -> None:
        self._client.send_packet("whisper", {"username": username, "message": text})

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, handler: EventHandler) -> None:
        if event not in WORLD_EVENTS:
            raise ValueError(f"Unknown world event: {event!r}")
        self._emitter.on(event, handler)

    # ------------------------------------------------------------------
    # Tracing access (optional helpers)
    # ------------------------------------------------------------------

    def get_action_traces(self) -> list[Any]:
        """Return a snapshot of recorded action traces."""
        return self._tracer.get_records()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _execute(self, action: str, params: Mapping[str, Any]) -> ActionResult:
        """
        Run one bridge request as an action.

        Bridge-side failures and timeouts come back as failed results.
        BotCoreError (e.g. not connected) propagates.
        """
        start = perf_counter()
        response = await self._client.request(action, params)
        duration = perf_counter() - start

        result = _response_to_result(response)
        self._tracer.record(
            action=action,
            params=params,
            snapshot=self._tracker.build_snapshot(),
            result=result,
            duration_s=duration,
        )
        log_event(
            bus=self._bus,
            module="bot_core",
            event_type=EventType.ACTION_EXECUTED,
            message=f"Action {action}: {'ok' if result.success else result.error}",
            payload={
                "action_name": action,
                "action_args": dict(params),
                "success": result.success,
                "error": result.error,
                "duration_s": duration,
            },
            correlation_id=self.username,
        )
        return result


def _response_to_result(response: Mapping[str, Any]) -> ActionResult:
    details = response.get("details")
    details_dict: Dict[str, Any] = dict(details) if isinstance(details, Mapping) else {}
    if response.get("success"):
        return ActionResult(success=True, error=None, details=details_dict)
    return ActionResult(
        success=False,
        error=str(response.get("error") or "bridge_error"),
        details=details_dict,
    )


__all__ = ["BotCoreImpl", "BotCoreError", "TICK_SECONDS"]
