# src/agent/logging_config.py
"""
Central logging configuration for guard bot processes.

Call configure_logging() from your main entrypoint once, for example:

    from agent.logging_config import configure_logging
    configure_logging(stream=sys.stderr)

Bot processes log to stderr: their stdout carries the supervisor
protocol and must stay pure JSON lines.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    level: int = logging.INFO,
    stream: Optional[TextIO] = None,
    fmt: str = LOG_FORMAT,
) -> None:
    """
    Configure root logging if no handlers are attached yet.

    Args:
        level: default logging level (e.g., logging.INFO, logging.DEBUG)
        stream: target stream; stdout when omitted
        fmt: record format
    """
    root = logging.getLogger()

    # Don't duplicate handlers if someone already configured logging.
    if root.handlers:
        return

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=fmt))
    root.addHandler(handler)
    root.setLevel(level)
