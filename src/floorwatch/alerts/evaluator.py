from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from floorwatch.alerts.formatting import format_alert_line, percent_change
from floorwatch.alerts.rules import FloorBandRule
from floorwatch.config import fill_slug
from floorwatch.data.history import FloorHistory
from floorwatch.utils.types import FloorDecision

log = structlog.get_logger("evaluator")


@dataclass(slots=True)
class EvaluatorConfig:
    store_url_template: str = "%s"
    rule: FloorBandRule = field(default_factory=FloorBandRule)


class FloorChangeEvaluator:
    """
    Compares a freshly fetched floor against the last known one.
    Inputs:
      - slug, floor:  the collection and its just-extracted floor
      - history:      read-only FloorHistory loaded at cycle start
    Output: FloorDecision (record? and optional alert line).
    """
    def __init__(self, cfg: EvaluatorConfig | None = None):
        self.cfg = cfg or EvaluatorConfig()
        self.rule = self.cfg.rule

    def store_url(self, slug: str) -> str:
        return fill_slug(self.cfg.store_url_template, slug)

    def evaluate(self, slug: str, floor: float, history: FloorHistory) -> FloorDecision:
        previous = history.latest_floor(slug)

        # unchanged: no record, no alert
        if previous > 0 and floor == previous:
            return FloorDecision(slug=slug, floor=floor, previous=previous, record=False)

        decision = FloorDecision(slug=slug, floor=floor, previous=previous, record=True)
        if not self.rule.allows(floor):
            log.debug(
                "floor_outside_band",
                slug=slug, floor=floor,
                min=self.rule.min_floor, max=self.rule.max_floor,
            )
            return decision

        pct = percent_change(floor, previous)
        decision.alert = format_alert_line(slug, self.store_url(slug), floor, pct)
        return decision
