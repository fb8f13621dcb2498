# demostats/services/ranks.py
"""
Rank history tab: competitive (ranked per map), premier and FACEIT.

Each series is the newest `past_match_count` readings, oldest first, with the
current rank and a trend from the last two readings.
"""
from __future__ import annotations

import calendar
from typing import Dict, List

from demostats.models import RANK_TYPES, Player, PlayerRank, User
from demostats.services.map_stats import UNKNOWN_MAP
from demostats.services.periods import StatFilters, apply_date_bounds
from demostats.services.stats_cache import remember, stats_identity
from demostats.types import RankPoint, Trend

# readings fetched per requested match, enough to cover every type and map
READINGS_PER_MATCH = 10


def rank_readings_for(player: Player, filters: StatFilters) -> List[PlayerRank]:
    """
    player_ranks WHERE player_id = :player [AND date bounds on created_at]
    ORDER BY created_at DESC, id DESC
    LIMIT past_match_count * 10
    """
    q = PlayerRank.query.filter(PlayerRank.player_id == player.id)
    q = apply_date_bounds(q, PlayerRank.created_at, filters)
    q = q.order_by(PlayerRank.created_at.desc(), PlayerRank.id.desc())
    return q.limit(filters.past_match_count * READINGS_PER_MATCH).all()


def _point(reading: PlayerRank) -> RankPoint:
    return {
        "rank": reading.rank,
        "rank_value": reading.rank_value,
        "date": reading.created_at.strftime("%Y-%m-%d"),
        "timestamp": calendar.timegm(reading.created_at.timetuple()),
    }


def rank_trend(history: List[PlayerRank]) -> Trend:
    """Latest reading against the one before it."""
    if len(history) < 2:
        return "neutral"
    current, previous = history[-1].rank_value, history[-2].rank_value
    if current > previous:
        return "up"
    if current < previous:
        return "down"
    return "neutral"


def _series(readings: List[PlayerRank], count: int) -> dict:
    # readings arrive newest first
    history = list(reversed(readings[:count]))
    current = history[-1]
    return {
        "current_rank": current.rank,
        "current_rank_value": current.rank_value,
        "trend": rank_trend(history),
        "history": [_point(r) for r in history],
    }


def format_rank_history(readings: List[PlayerRank], rank_type: str, count: int) -> dict:
    if not readings:
        return {
            "rank_type": rank_type,
            "current_rank": None,
            "current_rank_value": None,
            "history": [],
            "trend": "neutral",
            "maps": [],
        }

    if rank_type == "competitive":
        by_map: Dict[str, List[PlayerRank]] = {}
        for r in readings:
            by_map.setdefault(r.map or UNKNOWN_MAP, []).append(r)
        # most recently ranked map first
        return {
            "rank_type": rank_type,
            "maps": [dict(map=name, **_series(rs, count)) for name, rs in by_map.items()],
        }

    return dict(rank_type=rank_type, **_series(readings, count))


def build_rank_stats(user: User, filters: StatFilters) -> dict:
    player = Player.query.filter_by(steam_id=user.steam_id).first() if user.steam_id else None
    if player is None:
        return {rank_type: [] for rank_type in RANK_TYPES}

    readings = rank_readings_for(player, filters)

    return {
        rank_type: format_rank_history(
            [r for r in readings if r.rank_type == rank_type], rank_type, filters.past_match_count
        )
        for rank_type in RANK_TYPES
    }


def get_rank_stats(user: User, filters: StatFilters) -> dict:
    return remember("dashboard", "rank-stats", stats_identity(user), filters.as_key_dict(),
                    lambda: build_rank_stats(user, filters))
