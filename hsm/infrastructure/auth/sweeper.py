"""Background sweep of expired OAuth correlation states."""

import logging
from contextlib import AsyncExitStack

from apscheduler import AsyncScheduler
from apscheduler.triggers.interval import IntervalTrigger

from hsm.domain.auth.port.state_store import StateStore

logger = logging.getLogger(__name__)

SCHEDULE_ID = "oauth-state-sweep"


class StateSweeper:
    """Runs StateStore.sweep() on a fixed interval.

    Started and stopped by the application lifespan.
    """

    def __init__(self, state_store: StateStore, interval_seconds: int) -> None:
        self._state_store = state_store
        self._interval_seconds = interval_seconds
        self._scheduler: AsyncScheduler | None = None
        self._exit_stack: AsyncExitStack | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    async def start(self) -> None:
        if self._scheduler is not None:
            return

        self._exit_stack = AsyncExitStack()
        await self._exit_stack.__aenter__()

        self._scheduler = AsyncScheduler()
        await self._exit_stack.enter_async_context(self._scheduler)
        await self._scheduler.add_schedule(
            self.sweep_once,
            IntervalTrigger(seconds=self._interval_seconds),
            id=SCHEDULE_ID,
        )
        await self._scheduler.start_in_background()

        logger.info("State sweeper started: interval=%ds", self._interval_seconds)

    async def stop(self) -> None:
        if self._exit_stack:
            await self._exit_stack.__aexit__(None, None, None)
            self._exit_stack = None
        self._scheduler = None
        logger.info("State sweeper stopped")

    async def sweep_once(self) -> int:
        """Sweep once; failures are logged and retried on the next tick."""
        try:
            return await self._state_store.sweep()
        except Exception:
            logger.exception("OAuth state sweep failed")
            return 0
