"""Timer-handle debouncer bound to the running event loop."""

from __future__ import annotations

import asyncio
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Fire ``callback`` once a value has been left alone for ``delay`` seconds.

    Every ``trigger`` cancels the pending timer and schedules a new one, so a
    burst of changes produces a single call carrying the last value.
    """

    def __init__(self, delay: float, callback: Callable[[T], None]) -> None:
        if delay < 0:
            raise ValueError("Debounce delay must not be negative.")
        self.delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, value: T) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, value)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, value: T) -> None:
        self._handle = None
        self._callback(value)


__all__ = ["Debouncer"]
