from __future__ import annotations
import math


def percent_change(floor: float, previous: float) -> float:
    """
    Fractional change relative to the NEW floor: (floor - previous) / floor.
    A zero floor degenerates like float division would (-inf / inf / nan).
    """
    diff = floor - previous
    if floor == 0:
        if diff == 0:
            return math.nan
        return math.copysign(math.inf, diff)
    return diff / floor


def format_alert_line(slug: str, store_url: str, floor: float, pct: float) -> str:
    """
    Telegram (legacy markdown) line, e.g.
      [degods](https://magiceden.io/marketplace/degods): 5.0000*(+20.00%)*
      [degods](https://magiceden.io/marketplace/degods): 4.0000`(-25.00%)`
    Rises are bold, everything else is monospace.
    """
    line = f"[{slug}]({store_url}): {floor:.4f}"
    if pct > 0:
        return line + f"*(+{pct * 100:.2f}%)*"
    return line + f"`({pct * 100:.2f}%)`"
