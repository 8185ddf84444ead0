"""
Timer and deferral primitives used by the shell controller.

defer() means "run after the current update settles": the callback never runs
inside the call that scheduled it, only on a later turn of the loop.
"""
import asyncio
import logging
from typing import Callable, Optional, Protocol

log = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def defer(self, callback: Callable[[], None]) -> None: ...


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._get_loop().call_later(delay, callback)

    def defer(self, callback: Callable[[], None]) -> None:
        self._get_loop().call_soon(callback)
