# track entities/players/inventory and build snapshots from packets
# src/bot_core/world_tracker.py
"""
World tracker for bot_core.

Consumes event packets from a PacketClient and maintains a raw,
incrementally updated view of the world. This module is the ONLY owner
of RawWorldSnapshot assembly, and the only place bridge packets turn
into world events on the EventEmitter.

Rules:
- Keep storage minimal and "raw"; views are built on demand.
- State is updated before the matching world event is emitted, so
  handlers observe the new state. entity_gone is the exception: it
  carries the last view of the entity that was just removed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from spec.types import EntityView, Vec3

from .emitter import EventEmitter
from .net import PacketClient
from .snapshot import RawEntity, RawWorldSnapshot, entity_to_view


@dataclass
class _PlayerState:
    """Minimal tracked state for the local player."""

    entity_id: Optional[int] = None
    username: Optional[str] = None
    pos: Optional[Dict[str, float]] = None
    health: float = 20.0
    food: int = 20
    alive: bool = False


def _coerce_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class WorldTracker:
    """
    Maintains an incrementally updated RawWorldSnapshot.

    Event packets handled (see the bridge protocol):

        - "login"             → own entity id / username
        - "spawn"             → (re)entered the world        → spawn
        - "respawn"           → came back after death        → respawn
        - "time_update"       → tick counter
        - "position_update"   → own position
        - "update_health"     → own health / food            → health
        - "spawn_entity"      → entity created
        - "entity_update"     → entity fields changed
        - "entity_hurt"       → entity took damage           → entity_hurt
        - "destroy_entities"  → entities gone                → entity_gone
        - "player_info"       → player joined the tab list
        - "player_remove"     → player left
        - "window_items"      → full inventory snapshot
        - "set_slot"          → single inventory slot changed
        - "foods"             → consumables catalog
        - "player_collect"    → someone picked up an item    → player_collect
        - "chat" / "whisper"  → messages                     → chat / whisper
        - "kicked" / "error"  → connection problems          → kicked / error
    """

    def __init__(self, client: PacketClient, emitter: Optional[EventEmitter] = None) -> None:
        self._client = client
        self._emitter = emitter or EventEmitter()

        self._tick: int = 0
        self._player: _PlayerState = _PlayerState()

        # Entities keyed by numeric ID (never contains ourselves).
        self._entities: Dict[int, RawEntity] = {}

        # Present players, insertion ordered.
        self._players: Dict[str, None] = {}

        # Flat inventory representation (list of slot dicts)
        self._inventory: List[Dict[str, Any]] = []

        self._foods: List[str] = []

        self._context: Dict[str, Any] = {}

        self._register_handlers()

    # ------------------------------------------------------------------
    # Packet wiring
    # ------------------------------------------------------------------

    def _register_handlers(self) -> None:
        on = self._client.on_packet
        on("login", self._handle_login)
        on("spawn", self._handle_spawn)
        on("respawn", self._handle_respawn)
        on("time_update", self._handle_time_update)
        on("position_update", self._handle_position_update)
        on("update_health", self._handle_update_health)
        on("spawn_entity", self._handle_spawn_entity)
        on("entity_update", self._handle_entity_update)
        on("entity_hurt", self._handle_entity_hurt)
        on("destroy_entities", self._handle_destroy_entities)
        on("player_info", self._handle_player_info)
        on("player_remove", self._handle_player_remove)
        on("window_items", self._handle_window_items)
        on("set_slot", self._handle_set_slot)
        on("foods", self._handle_foods)
        on("player_collect", self._handle_player_collect)
        on("chat", self._handle_chat)
        on("whisper", self._handle_whisper)
        on("kicked", self._handle_kicked)
        on("error", self._handle_error)

    # ------------------------------------------------------------------
    # Packet handlers: self state
    # ------------------------------------------------------------------

    def _handle_login(self, pkt: Mapping[str, Any]) -> None:
        """
        Expected fields:
            - "entity_id": int
            - "username": str
        """
        self._player.entity_id = _coerce_int(pkt.get("entity_id"))
        username = pkt.get("username")
        if username:
            self._player.username = str(username)
            self._players.setdefault(self._player.username, None)

    def _handle_spawn(self, pkt: Mapping[str, Any]) -> None:
        self._player.alive = True
        self._update_position(pkt)
        self._emitter.emit("spawn")

    def _handle_respawn(self, pkt: Mapping[str, Any]) -> None:
        self._player.alive = True
        self._update_position(pkt)
        self._emitter.emit("respawn")

    def _handle_time_update(self, pkt: Mapping[str, Any]) -> None:
        """
        Expected fields:
            - "tick" or "time": int
        """
        value = _coerce_int(pkt.get("tick", pkt.get("time")))
        if value is not None:
            self._tick = value

    def _handle_position_update(self, pkt: Mapping[str, Any]) -> None:
        """
        Expected fields:
            - "x", "y", "z": float
        """
        self._update_position(pkt)

    def _handle_update_health(self, pkt: Mapping[str, Any]) -> None:
        """
        Expected fields:
            - "health": float
            - "food": int (0..20)
        """
        try:
            if "health" in pkt:
                self._player.health = float(pkt["health"])
            if "food" in pkt:
                self._player.food = int(pkt["food"])
        except (TypeError, ValueError):
            # Ignore malformed health updates.
            return
        if self._player.health <= 0:
            self._player.alive = False
        self._emitter.emit("health")

    def _update_position(self, pkt: Mapping[str, Any]) -> None:
        if not all(k in pkt for k in ("x", "y", "z")):
            return
        try:
            self._player.pos = {
                "x": float(pkt["x"]),
                "y": float(pkt["y"]),
                "z": float(pkt["z"]),
            }
        except (TypeError, ValueError):
            # Ignore malformed position updates.
            pass

    # ------------------------------------------------------------------
    # Packet handlers: entities
    # ------------------------------------------------------------------

    def _handle_spawn_entity(self, pkt: Mapping[str, Any]) -> None:
        """
        Expected fields:
            - "entity_id": int
            - "kind" or "type": str
            - "x", "y", "z": float
            - optional "category", "username", "display_name", "health"
        """
        entity_id = _coerce_int(pkt.get("entity_id"))
        if entity_id is None or entity_id == self._player.entity_id:
            return

        kind = pkt.get("kind", pkt.get("type", "unknown"))
        try:
            x = float(pkt.get("x", 0.0))
            y = float(pkt.get("y", 0.0))
            z = float(pkt.get("z", 0.0))
        except (TypeError, ValueError):
            x = y = z = 0.0

        self._entities[entity_id] = RawEntity(
            entity_id=entity_id,
            kind=str(kind),
            x=x,
            y=y,
            z=z,
            data=dict(pkt),
        )

    def _handle_entity_update(self, pkt: Mapping[str, Any]) -> None:
        """Merge changed fields (position, health, ...) into a tracked entity."""
        entity_id = _coerce_int(pkt.get("entity_id"))
        entity = self._entities.get(entity_id) if entity_id is not None else None
        if entity is None:
            return
        try:
            entity.x = float(pkt.get("x", entity.x))
            entity.y = float(pkt.get("y", entity.y))
            entity.z = float(pkt.get("z", entity.z))
        except (TypeError, ValueError):
            pass
        entity.data.update(pkt)

    def _handle_entity_hurt(self, pkt: Mapping[str, Any]) -> None:
        entity_id = _coerce_int(pkt.get("entity_id"))
        if entity_id is None:
            return
        if "health" in pkt and entity_id in self._entities:
            self._entities[entity_id].data["health"] = pkt["health"]
        view = self.entity_view(entity_id)
        if view is not None:
            self._emitter.emit("entity_hurt", view)

    def _handle_destroy_entities(self, pkt: Mapping[str, Any]) -> None:
        """
        Expected fields:
            - "entity_ids": iterable of ints
        """
        ids = pkt.get("entity_ids")
        if not ids:
            return

        for raw_id in ids:
            eid = _coerce_int(raw_id)
            if eid is None:
                continue
            entity = self._entities.pop(eid, None)
            if entity is None:
                continue
            gone = entity_to_view(entity)
            self._emitter.emit("entity_gone", gone)

    # ------------------------------------------------------------------
    # Packet handlers: players / inventory
    # ------------------------------------------------------------------

    def _handle_player_info(self, pkt: Mapping[str, Any]) -> None:
        username = pkt.get("username")
        if username:
            self._players.setdefault(str(username), None)

    def _handle_player_remove(self, pkt: Mapping[str, Any]) -> None:
        username = pkt.get("username")
        if username:
            self._players.pop(str(username), None)

    def _handle_set_slot(self, pkt: Mapping[str, Any]) -> None:
        """
        Expected fields:
            - "slot": int
            - "item": mapping {name, count} or None
        """
        idx = _coerce_int(pkt.get("slot"))
        if idx is None or idx < 0:
            return
        item = pkt.get("item")

        while len(self._inventory) <= idx:
            self._inventory.append({})

        # Represent empty slot as {} for simplicity.
        self._inventory[idx] = dict(item) if isinstance(item, Mapping) else {}

    def _handle_window_items(self, pkt: Mapping[str, Any]) -> None:
        """
        Expected fields:
            - "items": list[Mapping[str, Any]] (one per slot)
        """
        items = pkt.get("items")
        if not isinstance(items, list):
            return
        self._inventory = [dict(e) if isinstance(e, Mapping) else {} for e in items]

    def _handle_foods(self, pkt: Mapping[str, Any]) -> None:
        items = pkt.get("items")
        if isinstance(items, list):
            self._foods = [str(name) for name in items]

    # ------------------------------------------------------------------
    # Packet handlers: pass-through events
    # ------------------------------------------------------------------

    def _handle_player_collect(self, pkt: Mapping[str, Any]) -> None:
        collector = self.entity_view(_coerce_int(pkt.get("collector_id")))
        if collector is None:
            return
        collected = self.entity_view(_coerce_int(pkt.get("collected_id")))
        self._emitter.emit("player_collect", collector, collected)

    def _handle_chat(self, pkt: Mapping[str, Any]) -> None:
        username, message = pkt.get("username"), pkt.get("message")
        if not username or message is None or username == self._player.username:
            return
        self._emitter.emit("chat", str(username), str(message))

    def _handle_whisper(self, pkt: Mapping[str, Any]) -> None:
        username, message = pkt.get("username"), pkt.get("message")
        if not username or message is None or username == self._player.username:
            return
        self._emitter.emit("whisper", str(username), str(message))

    def _handle_kicked(self, pkt: Mapping[str, Any]) -> None:
        self._player.alive = False
        self._emitter.emit("kicked", str(pkt.get("reason", "")))

    def _handle_error(self, pkt: Mapping[str, Any]) -> None:
        self._emitter.emit("error", str(pkt.get("message", "")))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def emitter(self) -> EventEmitter:
        return self._emitter

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def self_id(self) -> Optional[int]:
        return self._player.entity_id

    @property
    def username(self) -> Optional[str]:
        return self._player.username

    @property
    def position(self) -> Optional[Vec3]:
        if not self._player.alive or self._player.pos is None:
            return None
        return Vec3.from_mapping(self._player.pos)

    @property
    def health(self) -> float:
        return self._player.health

    @property
    def food(self) -> int:
        return self._player.food

    def entity_view(self, entity_id: Optional[int]) -> Optional[EntityView]:
        """View of a tracked entity, or of ourselves; None when unknown."""
        if entity_id is None:
            return None
        if entity_id == self._player.entity_id:
            position = self.position
            if position is None:
                return None
            return EntityView(
                entity_id=entity_id,
                kind="player",
                position=position,
                username=self._player.username,
                health=self._player.health,
            )
        entity = self._entities.get(entity_id)
        return entity_to_view(entity) if entity is not None else None

    def entity_views(self) -> List[EntityView]:
        return [entity_to_view(e) for e in self._entities.values()]

    def players(self) -> List[str]:
        return list(self._players)

    def inventory_slots(self) -> List[Dict[str, Any]]:
        return [dict(slot) for slot in self._inventory]

    def foods(self) -> List[str]:
        return list(self._foods)

    def set_context(self, key: str, value: Any) -> None:
        """Attach arbitrary metadata to the tracker context."""
        self._context[key] = value

    def build_snapshot(self) -> RawWorldSnapshot:
        """
        Build a RawWorldSnapshot from the current tracked state.

        This is the ONLY way to get a snapshot out of the tracker.
        """
        return RawWorldSnapshot(
            tick=self._tick,
            self_id=self._player.entity_id,
            username=self._player.username,
            player_pos=dict(self._player.pos) if self._player.pos is not None else None,
            health=self._player.health,
            food=self._player.food,
            entities=list(self._entities.values()),
            players=list(self._players),
            inventory=[dict(stack) for stack in self._inventory],
            foods=list(self._foods),
            context=dict(self._context),
        )


__all__ = ["WorldTracker"]
