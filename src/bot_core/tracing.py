# src/bot_core/tracing.py
"""
Tracing for bot_core actions.

This module provides a thin, structured logging layer around bridge
requests (equip, attack, navigate, ...) so that monitoring can consume
consistent traces.

It does NOT:
- Make control decisions
- Retry anything
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Mapping, Optional

from spec.types import ActionResult
from .snapshot import RawWorldSnapshot


@dataclass
class ActionTraceRecord:
    """Structured record of a single action execution."""

    timestamp: float           # wall-clock time (time.time())
    duration_s: float          # execution duration in seconds

    action: str
    params: Dict[str, Any]

    success: bool
    error: Optional[str]

    # Minimal world context at decision time
    tick: Optional[int]
    position: Optional[Dict[str, float]]


class ActionTracer:
    """
    In-memory action tracer with optional logging.

    Responsibilities:
    - Keep a rolling buffer of recent ActionTraceRecord entries.
    - Emit a single structured log line per action (debug level; the
      guard tick issues actions often).
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        max_records: int = 1_000,
    ) -> None:
        self._logger = logger or logging.getLogger("bot_core.action")
        self._records: Deque[ActionTraceRecord] = deque(maxlen=max_records)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(
        self,
        *,
        action: str,
        params: Mapping[str, Any],
        snapshot: RawWorldSnapshot,
        result: ActionResult,
        duration_s: float,
    ) -> None:
        """
        Record a trace for a completed action.

        This should be called even on failures; `success` and `error`
        capture outcome.
        """
        record = ActionTraceRecord(
            timestamp=time.time(),
            duration_s=duration_s,
            action=action,
            params=dict(params),
            success=bool(result.success),
            error=result.error,
            tick=snapshot.tick,
            position=dict(snapshot.player_pos) if snapshot.player_pos is not None else None,
        )
        self._records.append(record)

        pos = record.position or {}
        self._logger.debug(
            "action_exec action=%s success=%s error=%s duration=%.4fs tick=%s "
            "pos=(%.2f,%.2f,%.2f)",
            record.action,
            record.success,
            record.error,
            record.duration_s,
            record.tick,
            pos.get("x", 0.0),
            pos.get("y", 0.0),
            pos.get("z", 0.0),
        )

    def get_records(self) -> List[ActionTraceRecord]:
        """Return a snapshot of all currently buffered records."""
        return list(self._records)
