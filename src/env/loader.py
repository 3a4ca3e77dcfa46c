from __future__ import annotations

import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

import yaml

from .schema import (
    BotConfig,
    BridgeConfig,
    EquipmentConfig,
    GuardConfig,
    HungerConfig,
    SupervisorConfig,
    TrustConfig,
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"
DEFAULT_CONFIG_PATH = CONFIG_ROOT / "guard.yaml"

# Overrides the default config location when set.
CONFIG_ENV_VAR = "GUARD_BOT_CONFIG"

_T = TypeVar("_T")

_SECTIONS: Dict[str, type] = {
    "bridge": BridgeConfig,
    "guard": GuardConfig,
    "hunger": HungerConfig,
    "equipment": EquipmentConfig,
    "trust": TrustConfig,
    "supervisor": SupervisorConfig,
}


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping from `path`."""
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _build_section(name: str, cls: Type[_T], raw: Any) -> _T:
    """Build one dataclass section, keeping defaults for missing keys."""
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ValueError(f"Config section '{name}' must be a mapping, got {type(raw)}")

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown keys in config section '{name}': {unknown}")
    return cls(**raw)


def _resolve_config_path(path: Optional[Path]) -> Optional[Path]:
    if path is not None:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: Optional[Path] = None) -> BotConfig:
    """Main entry point: returns a fully resolved BotConfig.

    Resolution order: explicit `path`, $GUARD_BOT_CONFIG, config/guard.yaml.
    With none of those present, built-in defaults are used.
    """
    resolved = _resolve_config_path(path)
    raw: Dict[str, Any] = _load_yaml(resolved) if resolved is not None else {}

    unknown = sorted(set(raw) - set(_SECTIONS))
    if unknown:
        raise ValueError(f"Unknown config sections: {unknown}")

    sections = {
        name: _build_section(name, cls, raw.get(name))
        for name, cls in _SECTIONS.items()
    }
    config = BotConfig(**sections)

    # perform basic validation before returning
    _validate_config(config)
    return config


def load_name_list(path: Path | str) -> List[str]:
    """Read a newline-delimited username list, skipping blank lines."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing name list: {path}")
    text = path.read_text(encoding="utf-8")
    return [line.strip() for line in text.splitlines() if line.strip()]


def _validate_config(config: BotConfig) -> None:
    """Minimal sanity checks for the configuration."""
    guard = config.guard

    for name in ("near_radius", "guard_radius", "melee_radius", "follow_range", "melee_range"):
        if getattr(guard, name) <= 0:
            raise ValueError(f"guard.{name} must be positive, got {getattr(guard, name)}")

    if guard.attack_cooldown_s < 0:
        raise ValueError("guard.attack_cooldown_s must be >= 0")
    if not 0.0 <= guard.ranged_probability <= 1.0:
        raise ValueError(
            f"guard.ranged_probability must be within [0, 1], got {guard.ranged_probability}"
        )
    if guard.navigation_timeout_s <= 0:
        raise ValueError("guard.navigation_timeout_s must be positive")

    hunger = config.hunger
    if not 0 <= hunger.hunger_limit <= hunger.max_food:
        raise ValueError(
            f"hunger.hunger_limit must be within [0, {hunger.max_food}], got {hunger.hunger_limit}"
        )

    if not config.equipment.weapons:
        raise ValueError("equipment.weapons must not be empty")

    for section in (config.bridge, config.supervisor):
        if not 0 < int(section.port) < 65536:
            raise ValueError(f"Invalid port: {section.port}")
