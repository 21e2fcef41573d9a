"""
Reset countdown state machine.

Idle -> Running(duration) when started, Running(n) -> Running(n - 1) once per
tick, Running -> Idle on cancel() or when the count reaches zero. Reaching
zero fires on_complete after the state is already back to Idle.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ..models.schemas import CountdownStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass
class Running:
    handle: asyncio.Task
    remaining: int


CountdownState = Union[Idle, Running]

IDLE = Idle()


class CountdownAlreadyRunning(RuntimeError):
    pass


class ResetCountdown:
    def __init__(
        self,
        duration_s: int,
        tick_interval_s: float = 1.0,
        on_tick: Optional[Callable[[int], None]] = None,
        on_complete: Optional[Callable[[], None]] = None,
    ):
        self.duration_s = duration_s
        self.tick_interval_s = tick_interval_s
        self.on_tick = on_tick
        self.on_complete = on_complete
        self.state: CountdownState = IDLE

    @property
    def active(self) -> bool:
        return isinstance(self.state, Running)

    @property
    def remaining(self) -> Optional[int]:
        state = self.state
        return state.remaining if isinstance(state, Running) else None

    def status(self) -> CountdownStatus:
        return CountdownStatus(
            active=self.active,
            remaining_seconds=self.remaining,
            duration_seconds=self.duration_s,
        )

    def start(self):
        """Schedule the countdown on the running event loop."""
        if isinstance(self.state, Running):
            raise CountdownAlreadyRunning("Reset countdown is already running")
        handle = asyncio.get_running_loop().create_task(self._run())
        self.state = Running(handle=handle, remaining=self.duration_s)
        logger.info(f"Reset countdown started ({self.duration_s}s)")

    def cancel(self) -> bool:
        """Stop a running countdown. The pending tick is invalidated before this returns."""
        state = self.state
        if not isinstance(state, Running):
            return False
        self.state = IDLE
        state.handle.cancel()
        logger.info(f"Reset countdown cancelled with {state.remaining}s remaining")
        return True

    def shutdown(self):
        self.cancel()

    async def _run(self):
        handle = asyncio.current_task()
        try:
            while True:
                await asyncio.sleep(self.tick_interval_s)
                if not self._tick(handle):
                    return
        except asyncio.CancelledError:
            logger.debug("Reset countdown task cancelled")
            raise

    def _tick(self, handle) -> bool:
        state = self.state
        # A stale task must never touch a newer countdown
        if not isinstance(state, Running) or state.handle is not handle:
            return False

        state.remaining -= 1
        logger.debug(f"Reset countdown: {state.remaining}s remaining")
        if state.remaining > 0:
            self._call_hook(self.on_tick, state.remaining)
            return True

        self.state = IDLE
        logger.info("Reset countdown completed")
        self._call_hook(self.on_complete)
        return False

    @staticmethod
    def _call_hook(hook, *args):
        if hook is None:
            return
        try:
            hook(*args)
        except Exception as e:
            logger.error(f"Reset countdown hook failed: {e}", exc_info=True)
