from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import structlog

log = structlog.get_logger("scheduler")


@dataclass(slots=True)
class SchedulerConfig:
    interval_s: float = 0.8
    max_cycles: Optional[int] = None  # None = run until stop()


class PeriodicScheduler:
    """
    Runs `job` forever with a fixed pause of interval_s between the end of one
    run and the start of the next. No backoff, no jitter.

    An exception escaping the job is logged and the loop carries on; only
    stop()/cancellation ends it.

    Usage:
        sched = PeriodicScheduler(cycle.run_cycle, SchedulerConfig(interval_s=0.8))
        await sched.start()
        ...
        await sched.stop()
    """
    def __init__(self, job: Callable[[], Awaitable[object]], cfg: Optional[SchedulerConfig] = None):
        self.job = job
        self.cfg = cfg or SchedulerConfig()
        self.cycles = 0
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        self._stop.clear()
        self._task = asyncio.create_task(self.run(), name="floorwatch-scheduler")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def run(self) -> None:
        try:
            while not self._stop.is_set():
                try:
                    await self.job()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    log.error("cycle_crashed", cycle=self.cycles, err=repr(e), exc_info=e)
                self.cycles += 1
                if self.cfg.max_cycles is not None and self.cycles >= self.cfg.max_cycles:
                    break
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self.cfg.interval_s)
                except asyncio.TimeoutError:
                    pass
        except asyncio.CancelledError:
            log.info("scheduler_cancelled", cycles=self.cycles)
            raise
        log.info("scheduler_exit", cycles=self.cycles)
