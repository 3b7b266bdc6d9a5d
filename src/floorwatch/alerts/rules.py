# src/floorwatch/alerts/rules.py
from __future__ import annotations
from dataclasses import dataclass

@dataclass(slots=True)
class FloorBandRule:
    """
    Alert only while the new floor sits strictly inside (min_floor, max_floor).
    A floor at or beyond either bound is still recorded, just not announced.
    """
    min_floor: float = 0.0
    max_floor: float = float("inf")

    def allows(self, floor: float) -> bool:
        return self.min_floor < floor < self.max_floor
