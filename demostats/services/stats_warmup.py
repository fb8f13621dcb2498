# demostats/services/stats_warmup.py
from __future__ import annotations

from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from demostats.extensions import db
from demostats.models import GameMatch, MatchPlayer, Player, PlayerMatchEvent, User
from demostats.services import dashboard, map_stats, ranks
from demostats.services.periods import StatFilters
from demostats.services.stats_cache import invalidate_user_stats

# past_match_count values the dashboard offers
WARM_MATCH_COUNTS = (5, 10, 15, 30)

DASHBOARD_TABS = (
    dashboard.get_player_stats,
    dashboard.get_aim_stats,
    dashboard.get_utility_stats,
    dashboard.get_summary,
    map_stats.get_map_stats,
    ranks.get_rank_stats,
)


def match_steam_ids(match_id: int) -> List[str]:
    """Everyone in the match, from match_players and from the event rows."""
    rostered = (
        db.session.query(Player.steam_id)
        .join(MatchPlayer, MatchPlayer.player_id == Player.id)
        .filter(MatchPlayer.match_id == match_id)
    )
    with_events = (
        db.session.query(PlayerMatchEvent.player_steam_id)
        .filter(PlayerMatchEvent.match_id == match_id)
    )
    return sorted({sid for (sid,) in rostered.all()} | {sid for (sid,) in with_events.all()})


def warm_cache_for_match(match_id: int) -> Optional[Dict[str, int]]:
    """
    After a match is stored: drop each linked player's cached stats, then
    rebuild every dashboard tab for the common match counts.
    None when the match does not exist.

    A database error while warming one user is logged and rolled back;
    the other users still get warmed.
    """
    if db.session.get(GameMatch, match_id) is None:
        return None

    steam_ids = match_steam_ids(match_id)
    users = User.query.filter(User.steam_id.in_(steam_ids)).order_by(User.id.asc()).all() if steam_ids else []
    stats = {"match_id": match_id, "players": len(steam_ids), "users": len(users), "warmed": 0, "failed": 0}

    for user in users:
        invalidate_user_stats(user.steam_id)
        try:
            for count in WARM_MATCH_COUNTS:
                filters = StatFilters(past_match_count=count)
                for get_tab in DASHBOARD_TABS:
                    get_tab(user, filters)
        except SQLAlchemyError:
            db.session.rollback()
            stats["failed"] += 1
            current_app.logger.exception("stats warm-up failed match=%s user=%s", match_id, user.id)
            continue
        stats["warmed"] += 1

    current_app.logger.info("stats warm-up complete %s", stats)
    return stats
