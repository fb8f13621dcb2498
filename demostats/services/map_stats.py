# demostats/services/map_stats.py
from __future__ import annotations

from collections import OrderedDict
from typing import Dict, List

from demostats.models import User
from demostats.services.aggregates import mean, percentage, ratio
from demostats.services.complexion import average_complexion, score_complexion
from demostats.services.periods import MatchRow, StatFilters, resolve_periods
from demostats.services.stats_cache import remember, stats_identity
from demostats.services.win_status import WinStatusLookup
from demostats.types import MapRow

UNKNOWN_MAP = "unknown"


def group_by_map(steam_id: str, rows: List[MatchRow]) -> List[MapRow]:
    """
    Per-map breakdown of a window. Maps ordered by match count desc;
    equal counts keep the order the map first appeared (most recent first).
    """
    wins = WinStatusLookup(steam_id, [m for _, m in rows])

    grouped: "OrderedDict[str, List[MatchRow]]" = OrderedDict()
    for event, match in rows:
        grouped.setdefault(match.map or UNKNOWN_MAP, []).append((event, match))

    out: List[MapRow] = []
    for map_name, map_rows in grouped.items():
        events = [e for e, _ in map_rows]
        n = len(events)
        map_wins = wins.count_wins(m.id for _, m in map_rows)
        kills = sum(e.kills or 0 for e in events)
        deaths = sum(e.deaths or 0 for e in events)
        out.append({
            "map": map_name,
            "matches": n,
            "wins": map_wins,
            "win_rate": percentage(map_wins, n),
            "avg_kills": round(ratio(kills, n), 1),
            "avg_assists": round(mean(e.assists for e in events), 1),
            "avg_deaths": round(ratio(deaths, n), 1),
            "avg_kd": round(ratio(kills, deaths), 2),
            "avg_adr": round(mean(e.adr for e in events), 1),
            "avg_opening_kills": round(mean(e.first_kills for e in events), 1),
            "avg_opening_deaths": round(mean(e.first_deaths for e in events), 1),
            "avg_complexion": average_complexion(
                [score_complexion(steam_id, e.match_id, event=e) for e in events]
            ),
        })

    # sorted() is stable, so ties keep first-appearance order
    return sorted(out, key=lambda r: r["matches"], reverse=True)


def build_map_stats(user: User, filters: StatFilters) -> Dict:
    windows = resolve_periods(user.steam_id, filters)
    return {
        "maps": group_by_map(user.steam_id, windows.current),
        "total_matches": len(windows.current),
    }


def get_map_stats(user: User, filters: StatFilters) -> Dict:
    return remember("dashboard", "map-stats", stats_identity(user), filters.as_key_dict(),
                    lambda: build_map_stats(user, filters))
