# demostats/services/trends.py
from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from demostats.types import TrendStat


def build_stat_with_trend(current: float | int | None, previous: float | int | None,
                          lower_is_better: bool = False) -> TrendStat:
    """
    Compare a metric across two periods.

      previous > 0            -> change = (cur - prev) / prev * 100, 1 decimal
      previous == 0, cur > 0  -> change = 100
      otherwise               -> neutral, change 0

    `change` is always reported as a magnitude; direction lives in `trend`.
    For lower-is-better metrics the direction is inverted.
    """
    cur = float(current or 0)
    prev = float(previous or 0)

    if prev > 0:
        change = round((cur - prev) / prev * 100, 1)
        if change > 0:
            trend = "down" if lower_is_better else "up"
        elif change < 0:
            trend = "up" if lower_is_better else "down"
        else:
            trend = "neutral"
    elif cur > 0:
        change = 100.0
        trend = "down" if lower_is_better else "up"
    else:
        change = 0.0
        trend = "neutral"

    return {"value": current if current is not None else 0, "trend": trend, "change": abs(change)}


def rank_changes(stats: Iterable[Tuple[str, TrendStat]], trend: str, limit: int = 2) -> Optional[List[dict]]:
    """
    Pick the `limit` stats moving in `trend` direction with the largest change.
    Returns None when nothing moved that way. Ties keep input order.
    """
    picked = [
        {"name": name, "value": stat["value"], "trend": stat["trend"], "change": stat["change"]}
        for name, stat in stats
        if stat["trend"] == trend
    ]
    if not picked:
        return None
    picked.sort(key=lambda s: s["change"], reverse=True)
    return picked[:limit]
