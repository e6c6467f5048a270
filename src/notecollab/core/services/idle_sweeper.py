"""Periodic idle-connection sweep, driven from the app lifespan."""

import asyncio
from contextlib import suppress
from typing import Optional

from ..logging import get_logger
from .interfaces import ICollaborationHub

logger = get_logger("collab.sweeper")


class IdleSweeper:
    """Calls ``hub.sweep_idle`` on a fixed cadence.

    The hub never schedules itself; this task is the scheduler.
    """

    def __init__(self, hub: ICollaborationHub, threshold_seconds: float, interval_seconds: float):
        self.hub = hub
        self.threshold_seconds = threshold_seconds
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        if self.interval_seconds <= 0:
            logger.info("Idle sweeper disabled")
            return
        self._task = asyncio.create_task(self._run(), name="collab-idle-sweeper")
        logger.info("Idle sweeper started", extra={
            "interval_s": self.interval_seconds,
            "threshold_s": self.threshold_seconds,
        })

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Idle sweeper stopped")

    def sweep_now(self, threshold_seconds: Optional[float] = None) -> list[str]:
        return self.hub.sweep_idle(threshold_seconds or self.threshold_seconds)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.sweep_now()
            except Exception:
                logger.error("Idle sweep failed", exc_info=True)
