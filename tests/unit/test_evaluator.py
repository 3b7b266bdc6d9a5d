from datetime import datetime, timezone

from floorwatch.alerts.evaluator import EvaluatorConfig, FloorChangeEvaluator
from floorwatch.alerts.rules import FloorBandRule
from floorwatch.data.history import FloorHistory
from floorwatch.utils.types import Observation

T0 = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _evaluator(lo=0.0, hi=100.0):
    return FloorChangeEvaluator(EvaluatorConfig(
        store_url_template="https://store.test/%s",
        rule=FloorBandRule(min_floor=lo, max_floor=hi),
    ))

def _history(*pairs):
    return FloorHistory([Observation(s, f, T0) for s, f in pairs])


def test_unchanged_floor_is_fully_suppressed():
    d = _evaluator().evaluate("x", 3.0, _history(("x", 3.0)))
    assert d.record is False
    assert d.alert is None

def test_first_sighting_records_and_alerts():
    d = _evaluator().evaluate("x", 3.0, FloorHistory())
    assert d.record is True
    assert d.previous == 0.0
    assert d.alert == "[x](https://store.test/x): 3.0000*(+100.00%)*"

def test_above_band_records_without_alert():
    d = _evaluator(hi=5.0).evaluate("x", 6.0, _history(("x", 3.0)))
    assert d.record is True
    assert d.alert is None

def test_band_bounds_are_exclusive():
    ev = _evaluator(lo=1.0, hi=5.0)
    assert ev.evaluate("x", 5.0, _history(("x", 3.0))).alert is None
    assert ev.evaluate("x", 1.0, _history(("x", 3.0))).alert is None
    assert ev.evaluate("x", 4.99, _history(("x", 3.0))).alert is not None

def test_zero_previous_with_zero_floor_is_not_treated_as_unchanged():
    # previous 0 means "unknown", so even a 0 floor gets recorded
    d = _evaluator(lo=-1.0).evaluate("x", 0.0, _history(("x", 0.0)))
    assert d.record is True

def test_rise_and_drop_markers():
    ev = _evaluator()
    up = ev.evaluate("x", 5.0, _history(("x", 4.0)))
    down = ev.evaluate("x", 4.0, _history(("x", 5.0)))
    assert up.alert.endswith("*(+20.00%)*")
    assert down.alert.endswith("`(-25.00%)`")
