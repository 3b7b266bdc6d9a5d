# src/floorwatch/cycle.py
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Protocol, Sequence

import structlog

from floorwatch.config import StoreConfig
from floorwatch.data.history import FloorHistory, HistoryFile
from floorwatch.errors import DeliveryError, HistoryReadError, PersistError
from floorwatch.ingest.store_poller import JsonFetcher, StorePoller
from floorwatch.utils.time import utc_now
from floorwatch.utils.types import CycleReport, PollResult

log = structlog.get_logger("cycle")


class Notifier(Protocol):
    async def send(self, text: str) -> None: ...


class WatchCycle:
    """
    One pass over every configured store:

      load history -> one task per store (slugs sequential inside) -> join
        -> at most one notification -> at most one history write

    Stores share nothing while running: each task returns its own PollResult and
    results are merged only after the gather barrier, in config order. The history
    loaded at the start is read-only until the final write.
    """
    def __init__(
        self,
        stores: Sequence[StoreConfig],
        history_file: HistoryFile,
        fetcher: JsonFetcher,
        notifier: Notifier,
        now_fn: Callable[[], datetime] = utc_now,
    ):
        self.stores = list(stores)
        self.history_file = history_file
        self.poller = StorePoller(fetcher)
        self.notifier = notifier
        self._now = now_fn

    async def load_history(self) -> FloorHistory:
        try:
            return await asyncio.to_thread(self.history_file.load)
        except HistoryReadError as e:
            # keep going: this cycle re-records every floor it sees
            log.error("history_read_failed", path=e.path, err=str(e))
            return FloorHistory()

    async def run_cycle(self) -> CycleReport:
        report = CycleReport()
        history = await self.load_history()

        tasks = [
            asyncio.create_task(self.poller.poll(store, history), name=f"poll-{store.name}")
            for store in self.stores
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        alerts: list[str] = []
        floors: dict[str, float] = {}
        for store, res in zip(self.stores, results):
            if isinstance(res, PollResult):
                alerts.extend(res.alerts)
                floors.update(res.floors)
                continue
            if isinstance(res, asyncio.CancelledError):
                raise res
            # a bug or unexpected error inside one store; the others still count
            report.failed_stores.append(store.name)
            log.error("store_poll_crashed", store=store.name, err=repr(res), exc_info=res)

        report.alerts = len(alerts)
        report.observations = len(floors)

        if alerts:
            try:
                await self.notifier.send("\n".join(alerts))
                report.notified = True
            except DeliveryError as e:
                log.error("notify_failed", status=e.status, err=str(e), alerts=len(alerts))

        if floors:
            updated = history.extended(floors, ts=self._now())
            try:
                await asyncio.to_thread(self.history_file.save, updated)
                report.persisted = True
            except PersistError as e:
                log.error("history_write_failed", path=e.path, err=str(e))

        # quiet cycles are the common case at sub-second intervals
        emit = log.info if (floors or report.failed_stores) else log.debug
        emit(
            "cycle_done",
            stores=len(self.stores),
            alerts=report.alerts,
            observations=report.observations,
            notified=report.notified,
            persisted=report.persisted,
            failed_stores=report.failed_stores or None,
        )
        return report
