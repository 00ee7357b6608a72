import asyncio
from collections.abc import Callable

from typemaster.trainer.domain.ports import ITimer, ITimerFactory


class AsyncioIntervalTimer(ITimer):
    """Repeating callback on the event loop, rescheduled after each fire."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], None],
    ) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._handle: asyncio.TimerHandle | None = None
        self._schedule()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._callback()
        # The callback may have cancelled us (e.g. the test just finished).
        if not self._cancelled:
            self._schedule()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioTimerFactory(ITimerFactory):
    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def start(self, interval: float, callback: Callable[[], None]) -> ITimer:
        loop = self._loop or asyncio.get_running_loop()
        return AsyncioIntervalTimer(loop, interval, callback)
