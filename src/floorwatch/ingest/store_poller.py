from __future__ import annotations

from typing import Any, Protocol

import structlog

from floorwatch.alerts.evaluator import EvaluatorConfig, FloorChangeEvaluator
from floorwatch.alerts.rules import FloorBandRule
from floorwatch.config import StoreConfig
from floorwatch.data.history import FloorHistory
from floorwatch.errors import ExtractionError, FetchError
from floorwatch.ingest.extractor import extract
from floorwatch.utils.types import PollResult


class JsonFetcher(Protocol):
    async def get_json(self, url: str) -> Any: ...


class StorePoller:
    """
    Polls every watched collection of ONE store, strictly one request at a time
    (marketplaces rate-limit aggressively). A failing slug is logged and skipped;
    it never aborts the remaining slugs.

    Lifecycle per slug:
      stats url -> fetch json -> extract floor -> compare with history -> alert line
    """
    def __init__(self, fetcher: JsonFetcher):
        self.fetcher = fetcher

    def evaluator_for(self, store: StoreConfig) -> FloorChangeEvaluator:
        return FloorChangeEvaluator(EvaluatorConfig(
            store_url_template=store.store_url_template,
            rule=FloorBandRule(min_floor=store.min, max_floor=store.max),
        ))

    async def poll(self, store: StoreConfig, history: FloorHistory) -> PollResult:
        log = structlog.get_logger("poller").bind(store=store.name)
        evaluator = self.evaluator_for(store)
        result = PollResult(store=store.name)

        for slug in store.slugs:
            url = store.stats_url(slug)
            try:
                doc = await self.fetcher.get_json(url)
                floor = extract(doc, store.json_path, store.multiplier, url=url)
            except FetchError as e:
                log.warning("fetch_failed", slug=slug, url=url, status=e.status, err=str(e))
                result.errors += 1
                continue
            except ExtractionError as e:
                log.warning("extract_failed", slug=slug, url=url, key=e.key, value=repr(e.value)[:200], err=str(e))
                result.errors += 1
                continue

            decision = evaluator.evaluate(slug, floor, history)
            if not decision.record:
                log.debug("floor_unchanged", slug=slug, floor=floor)
                continue

            result.floors[slug] = decision.floor
            log.info("floor_changed", slug=slug, floor=decision.floor, previous=decision.previous)
            if decision.alert is not None:
                result.alerts.append(decision.alert)

        return result
