from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TypedDict

# ---- persisted history ----

@dataclass(frozen=True, slots=True)
class Observation:
    slug: str
    floor: float
    timestamp: datetime  # timezone-aware UTC


class PersistedObservation(TypedDict):
    """On-disk shape of one history entry."""
    slug: str
    floor: float
    date: str  # ISO 8601 / RFC 3339


# ---- per-cycle results ----

@dataclass(slots=True)
class FloorDecision:
    """
    Outcome of comparing one fetched floor with history.
      record=False  -> floor unchanged, nothing to do
      alert=None    -> recorded but outside the alert band
    """
    slug: str
    floor: float
    previous: float
    record: bool
    alert: str | None = None


@dataclass(slots=True)
class PollResult:
    store: str
    alerts: list[str] = field(default_factory=list)
    floors: dict[str, float] = field(default_factory=dict)
    errors: int = 0


@dataclass(slots=True)
class CycleReport:
    alerts: int = 0
    observations: int = 0
    notified: bool = False
    persisted: bool = False
    failed_stores: list[str] = field(default_factory=list)
