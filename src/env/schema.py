# BotConfig and section dataclasses
# src/env/schema.py

from dataclasses import dataclass, field
from typing import List


@dataclass
class BridgeConfig:
    """Where the game-client bridge listens, and how long we wait on it."""
    host: str = "127.0.0.1"
    port: int = 25580
    request_timeout_s: float = 15.0


@dataclass
class GuardConfig:
    """Distances are in blocks, waits in ticks unless suffixed _s."""
    near_radius: float = 8.0
    guard_radius: float = 16.0
    melee_radius: float = 5.0          # attacker attribution radius
    follow_range: float = 3.0
    melee_range: float = 4.0
    attack_cooldown_s: float = 0.5
    draw_threshold_ticks: float = 4.0
    ranged_probability: float = 1.0    # chance to shoot when ranged is viable
    crit_wait_ticks: int = 10
    discovery_interval_ticks: int = 20
    navigation_timeout_s: float = 10.0


@dataclass
class HungerConfig:
    hunger_limit: int = 15             # eat at or below this
    max_food: int = 20


@dataclass
class EquipmentConfig:
    """Priority lists, best first."""
    weapons: List[str] = field(default_factory=lambda: [
        "netherite_sword", "netherite_axe",
        "diamond_sword", "diamond_axe",
        "iron_sword", "iron_axe",
        "wooden_sword", "wooden_axe",
        "golden_sword", "golden_axe",
    ])
    helmets: List[str] = field(default_factory=lambda: [
        "netherite_helmet", "diamond_helmet", "iron_helmet",
        "golden_helmet", "leather_helmet",
    ])
    chestplates: List[str] = field(default_factory=lambda: [
        "netherite_chestplate", "diamond_chestplate", "iron_chestplate",
        "golden_chestplate", "leather_chestplate",
    ])
    leggings: List[str] = field(default_factory=lambda: [
        "netherite_leggings", "diamond_leggings", "iron_leggings",
        "golden_leggings", "leather_leggings",
    ])
    boots: List[str] = field(default_factory=lambda: [
        "netherite_boots", "diamond_boots", "iron_boots",
        "golden_boots", "leather_boots",
    ])
    ranged: List[str] = field(default_factory=lambda: ["bow"])
    ammo: str = "arrow"


@dataclass
class TrustConfig:
    """Newline-delimited username files; relative paths resolve from cwd."""
    boss_list: str = "boss-list.txt"
    target_list: str = "target-list.txt"


@dataclass
class SupervisorConfig:
    host: str = "localhost"
    port: int = 25565
    default_bot_count: int = 1
    spawn_delay_s: float = 5.0
    auto_respawn: bool = True
    default_name: str = "NamelessKnight"


@dataclass
class BotConfig:
    """Top-level resolved configuration."""
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    guard: GuardConfig = field(default_factory=GuardConfig)
    hunger: HungerConfig = field(default_factory=HungerConfig)
    equipment: EquipmentConfig = field(default_factory=EquipmentConfig)
    trust: TrustConfig = field(default_factory=TrustConfig)
    supervisor: SupervisorConfig = field(default_factory=SupervisorConfig)
