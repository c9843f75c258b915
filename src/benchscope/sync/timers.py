"""Timer scheduling, cancellation tokens and write-once result cells."""

import asyncio
import logging
import threading
from typing import Any, Callable, Generic, List, Optional, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Anything that runs a callback once after a delay in seconds."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)


class CancelToken:
    """Cancellation token of one action's scheduled work.

    Callbacks scheduled through a token never run once the token is
    cancelled, even if the underlying handle already fired its wrapper.
    """

    def __init__(self, action: str):
        self.action = action
        self.cancelled = False
        self._handles: List[TimerHandle] = []

    def schedule(
        self,
        scheduler: Scheduler,
        delay: float,
        callback: Callable[[], Any],
    ) -> Optional[TimerHandle]:
        if self.cancelled:
            return None

        def fire():
            if not self.cancelled:
                callback()

        handle = scheduler.call_later(delay, fire)
        self._handles.append(handle)
        return handle

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        logger.debug(f"Cancelled pending {self.action} timers")


class SettledCell(Generic[T]):
    """A write-once result cell.

    Only the first ``settle`` call stores its value and returns True; every
    later call is a no-op returning False.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._settled = False
        self._value: Optional[T] = None

    @property
    def settled(self) -> bool:
        return self._settled

    @property
    def value(self) -> Optional[T]:
        return self._value

    def settle(self, value: Optional[T] = None) -> bool:
        with self._lock:
            if self._settled:
                return False
            self._settled = True
            self._value = value
            return True
