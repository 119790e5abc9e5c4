"""Debounce scheduler for search requests.

Each ``call`` replaces the pending request, so a burst of calls collapses to
the newest one once the quiet period elapses.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any


class Debouncer:
    """Cancel-then-reschedule wrapper around ``loop.call_later``.

    Without a running (or explicitly supplied) event loop there is nothing to
    defer onto, so ``call`` runs the callback immediately. This keeps local
    collections searchable from plain synchronous code.
    """

    def __init__(self, delay_seconds: float, loop: asyncio.AbstractEventLoop | None = None) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be non-negative")
        self.delay_seconds = delay_seconds
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _resolve_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def call(self, callback: Callable[..., Any], *args: Any) -> None:
        self.cancel()
        loop = self._resolve_loop()
        if loop is None:
            callback(*args)
            return

        def fire() -> None:
            self._handle = None
            callback(*args)

        self._handle = loop.call_later(self.delay_seconds, fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
