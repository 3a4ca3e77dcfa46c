# src/bot_core/emitter.py
"""
World event emitter.

Handlers may be plain functions or coroutine functions. Coroutines are
scheduled on the running loop and never awaited by emit(); their failures,
like synchronous ones, are logged and do not reach the emitter.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List, Set

log = logging.getLogger(__name__)

Handler = Callable[..., Any]


class EventEmitter:
    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._tasks: Set[asyncio.Task] = set()

    def on(self, event: str, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(*args)
            except Exception:
                log.exception("Error in %s handler %r", event, handler)
                continue
            if inspect.isawaitable(result):
                self._schedule(event, result)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _schedule(self, event: str, awaitable: Any) -> None:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)

        def _done(t: asyncio.Task) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                log.error("Error in async %s handler", event, exc_info=exc)

        task.add_done_callback(_done)
