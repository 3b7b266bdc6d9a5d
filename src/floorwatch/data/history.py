from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Mapping

import structlog

from floorwatch.errors import HistoryReadError, PersistError
from floorwatch.utils.time import parse_iso, to_iso, utc_now
from floorwatch.utils.types import Observation, PersistedObservation

log = structlog.get_logger("history")


class FloorHistory:
    """
    Append-only, chronologically ordered log of floor observations.
    The last entry for a slug is its most recent known floor.
    Instances are never mutated in place; `extended()` returns a new one.
    """
    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[Observation] = ()):
        self._entries: tuple[Observation, ...] = tuple(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self._entries)

    def latest(self, slug: str) -> Observation | None:
        # newest first
        for obs in reversed(self._entries):
            if obs.slug == slug:
                return obs
        return None

    def latest_floor(self, slug: str) -> float:
        """Most recent floor for slug, 0.0 if never seen."""
        obs = self.latest(slug)
        return obs.floor if obs is not None else 0.0

    def extended(self, floors: Mapping[str, float], ts: datetime | None = None) -> FloorHistory:
        """Old entries + one new observation per slug, all stamped with `ts` (default now)."""
        ts = ts or utc_now()
        fresh = [Observation(slug=s, floor=float(f), timestamp=ts) for s, f in floors.items()]
        return FloorHistory(self._entries + tuple(fresh))


# --------- json file persistence ----------

def _to_record(obs: Observation) -> PersistedObservation:
    return {"slug": obs.slug, "floor": obs.floor, "date": to_iso(obs.timestamp)}

def _from_record(rec: object) -> Observation:
    if not isinstance(rec, dict):
        raise ValueError(f"entry is not an object: {rec!r}")
    slug = rec.get("slug")
    floor = rec.get("floor")
    date = rec.get("date")
    if not isinstance(slug, str):
        raise ValueError(f"bad slug: {slug!r}")
    if not isinstance(floor, (int, float)) or isinstance(floor, bool):
        raise ValueError(f"bad floor for {slug}: {floor!r}")
    if not isinstance(date, str):
        raise ValueError(f"bad date for {slug}: {date!r}")
    return Observation(slug=slug, floor=float(floor), timestamp=parse_iso(date))


class HistoryFile:
    """
    History stored as one JSON array of {slug, floor, date}.
    Read fully, rewritten fully; no incremental append on disk.
    """
    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    def load(self) -> FloorHistory:
        """
        A missing file is a first run and yields an empty history.
        Anything unreadable raises HistoryReadError.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            log.info("history_missing", path=str(self.path))
            return FloorHistory()
        except (OSError, UnicodeDecodeError) as e:
            raise HistoryReadError(str(self.path), str(e)) from e

        if not raw.strip():
            return FloorHistory()
        try:
            data = json.loads(raw)
            if data is None:
                return FloorHistory()
            if not isinstance(data, list):
                raise ValueError("history root is not a list")
            entries = [_from_record(rec) for rec in data]
        except ValueError as e:  # JSONDecodeError is a ValueError
            raise HistoryReadError(str(self.path), str(e)) from e

        log.debug("history_loaded", path=str(self.path), entries=len(entries))
        return FloorHistory(entries)

    def save(self, history: FloorHistory) -> None:
        """Write the whole history through a temp file + rename."""
        payload = json.dumps([_to_record(o) for o in history])
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise PersistError(str(self.path), str(e)) from e
        log.debug("history_saved", path=str(self.path), entries=len(history))
