from __future__ import annotations
from typing import Any, Optional, Sequence

from floorwatch.errors import ExtractionError


def _is_number(v: Any) -> bool:
    # bool is an int subclass but never a price
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def extract(
    document: Any,
    path: Sequence[str],
    multiplier: float,
    *,
    url: Optional[str] = None,
) -> float:
    """
    Walk `path` through a decoded JSON document and return the floor.

    The first numeric value met along the path wins, even when keys remain:
      {"a": {"b": 5}}, ["a", "b"], 2  -> 10.0
      {"a": 7},        ["a", "b"], 2  -> 14.0

    Marketplace shapes differ only by path, e.g.
      opensea:   ["stats", "floor_price"]
      magiceden: ["results", "floorPrice"]   (with multiplier 1e-9 for lamports)
    """
    node = document
    for key in path:
        val = node.get(key) if isinstance(node, dict) else None
        if _is_number(val):
            try:
                return float(val) * multiplier
            except OverflowError as e:
                raise ExtractionError(
                    f"floor at {key!r} does not fit a float",
                    url=url,
                    key=key,
                    value=val,
                ) from e
        if isinstance(val, dict):
            node = val
            continue
        raise ExtractionError(
            f"invalid json traverse at {key!r}, ended with {val!r}",
            url=url,
            key=key,
            value=val,
        )
    raise ExtractionError("floor not found", url=url)
