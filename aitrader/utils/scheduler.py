import asyncio
from typing import Awaitable, Callable, Optional

from .logger import log


class TickerHandle:
    """Cancellation handle for a running interval. Cancelling stops future
    ticks; a tick already in progress is allowed to finish."""

    def __init__(self):
        self._cancelled = False
        self._task: Optional[asyncio.Task] = None
        self._in_tick = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        self._cancelled = True
        if self._task is not None and not self._in_tick:
            self._task.cancel()

    async def wait(self):
        """Block until the ticker loop has exited. Cancelling the waiter
        propagates to the waiter only; the ticker keeps running."""
        if self._task is None:
            return
        await asyncio.wait({self._task})


def start_interval(callback: Callable[[], Awaitable[None]], interval: float,
                   run_now: bool = False) -> TickerHandle:
    """Call `callback` every `interval` seconds on the running loop.

    Each call is awaited to completion before the next sleep starts, so calls
    never overlap. A callback that raises is logged and the schedule keeps
    going. Must be called from inside a running event loop.
    """
    handle = TickerHandle()

    async def _loop():
        first = True
        while not handle.cancelled:
            if not (first and run_now):
                await asyncio.sleep(interval)
                if handle.cancelled:
                    break
            first = False
            handle._in_tick = True
            try:
                await callback()
            except Exception:
                log.exception("Scheduled tick failed")
            finally:
                handle._in_tick = False

    handle._task = asyncio.get_running_loop().create_task(_loop())
    return handle
