"""Fire-once timers tagged with a call generation."""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from app.services.ivr.events import TimerFired

logger = logging.getLogger(__name__)

TimerDispatch = Callable[[TimerFired], None]


class TimerHandle:
    """A pending timer."""

    def __init__(self, handle_id: int, token: str, delay_ms: int, generation: int):
        self.id = handle_id
        self.token = token
        self.delay_ms = delay_ms
        self.generation = generation
        self.cancelled = False
        self.fired = False
        self._armed: Any = None  # Backend-specific timer object

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self) -> str:
        return (
            f"TimerHandle(id={self.id}, token={self.token!r}, "
            f"delay_ms={self.delay_ms}, generation={self.generation})"
        )


class TimerScheduler(ABC):
    """Pending-timer bookkeeping shared by all scheduler backends.

    Subclasses decide how a handle is armed and disarmed. When a timer
    elapses the backend calls `_fire`, which dispatches
    `TimerFired(token, generation)` unless the handle was cancelled.
    """

    def __init__(self, dispatch: Optional[TimerDispatch] = None):
        self._dispatch = dispatch
        self._pending: Dict[int, TimerHandle] = {}
        self._next_id = 1

    def bind(self, dispatch: TimerDispatch) -> None:
        """Set the callback that receives fired timers."""
        self._dispatch = dispatch

    def schedule_once(self, token: str, delay_ms: int, generation: int) -> TimerHandle:
        """Fire `TimerFired(token, generation)` after `delay_ms`."""
        handle = TimerHandle(self._next_id, token, delay_ms, generation)
        self._next_id += 1
        self._pending[handle.id] = handle
        self._arm(handle)
        logger.debug(f"[SCHEDULER] Scheduled {handle}")
        return handle

    def cancel(self, handle: TimerHandle) -> bool:
        """Cancel a pending timer. Returns False if it already fired or was cancelled."""
        if not handle.active:
            return False
        handle.cancelled = True
        self._pending.pop(handle.id, None)
        self._disarm(handle)
        return True

    def cancel_all(self, current_generation: int) -> int:
        """Cancel every pending timer not scheduled under `current_generation`."""
        stale = [h for h in self._pending.values() if h.generation != current_generation]
        for handle in stale:
            self.cancel(handle)
        if stale:
            logger.debug(
                f"[SCHEDULER] Cancelled {len(stale)} stale timers "
                f"(current generation {current_generation})"
            )
        return len(stale)

    def shutdown(self) -> None:
        """Cancel every pending timer."""
        for handle in list(self._pending.values()):
            self.cancel(handle)

    def pending(self) -> List[TimerHandle]:
        """Pending timers in scheduling order."""
        return sorted(self._pending.values(), key=lambda h: h.id)

    def _fire(self, handle: TimerHandle) -> None:
        if not handle.active:
            return
        handle.fired = True
        self._pending.pop(handle.id, None)
        if self._dispatch is None:
            logger.warning(f"[SCHEDULER] No dispatcher bound, dropping {handle}")
            return
        self._dispatch(TimerFired(token=handle.token, generation=handle.generation))

    @abstractmethod
    def _arm(self, handle: TimerHandle) -> None:
        """Start the backend timer for `handle`."""
        pass

    @abstractmethod
    def _disarm(self, handle: TimerHandle) -> None:
        """Stop the backend timer for `handle`."""
        pass


class AsyncioTimerScheduler(TimerScheduler):
    """Scheduler backed by the running asyncio event loop."""

    def __init__(
        self,
        dispatch: Optional[TimerDispatch] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        super().__init__(dispatch)
        self._loop = loop

    def _arm(self, handle: TimerHandle) -> None:
        loop = self._loop or asyncio.get_running_loop()
        handle._armed = loop.call_later(handle.delay_ms / 1000, self._fire, handle)

    def _disarm(self, handle: TimerHandle) -> None:
        if handle._armed is not None:
            handle._armed.cancel()
            handle._armed = None
