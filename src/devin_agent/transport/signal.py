"""
Abort signals for in-flight requests.

An ``AbortSignal`` fires once. Listeners run synchronously inside ``abort()``,
so chained signals (hard abort -> current request signal) settle before the
caller regains control.
"""

import asyncio
from typing import Callable


class AbortSignal:
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._listeners: list[Callable[[], None]] = []

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self) -> None:
        if self._event.is_set():
            return
        self._event.set()
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener()

    def add_listener(self, listener: Callable[[], None]) -> None:
        if self.aborted:
            listener()
        else:
            self._listeners.append(listener)

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds. Returns False if aborted first."""
        if self.aborted:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False

    def __repr__(self) -> str:
        return f"AbortSignal(aborted={self.aborted})"
