"""Minimal asyncio-aware event emitter.

Handlers are plain callables or coroutine functions. Coroutine results are
scheduled as tasks on the running loop and kept referenced until done.
"""

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventEmitter:
    """Named-event notification handle."""

    def __init__(self):
        self._handlers: dict[str, list[Callable]] = defaultdict(list)
        self._tasks: set[asyncio.Task] = set()

    def on(self, event: str, handler: Callable) -> Callable:
        """Subscribe a handler to an event. Returns the handler."""
        self._handlers[event].append(handler)
        return handler

    def off(self, event: str, handler: Callable) -> None:
        """Unsubscribe a handler (no-op when not subscribed)."""
        if handler in self._handlers.get(event, []):
            self._handlers[event].remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every handler of an event.

        A handler that raises is logged and the remaining handlers still run.

        Returns:
            True if at least one handler was subscribed
        """
        handlers = list(self._handlers.get(event, []))

        if not handlers:
            if event == "error":
                logger.error(f"Unhandled error event on {self.__class__.__name__}: {args!r}")
            return False

        for handler in handlers:
            try:
                result = handler(*args)
            except Exception:
                logger.exception(f"{event} handler failed on {self.__class__.__name__}")
                continue

            if inspect.isawaitable(result):
                self._track(asyncio.ensure_future(result))

        return True

    def _track(self, task: asyncio.Task) -> asyncio.Task:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until every task scheduled by this emitter has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
