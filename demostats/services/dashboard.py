# demostats/services/dashboard.py
from __future__ import annotations

from typing import Dict, List

from demostats.models import User
from demostats.services.aggregates import aggregate_player_match_stats, aggregate_utility_stats, mean
from demostats.services.aim import aim_stats_for_window, build_aim_stats
from demostats.services.complexion import average_complexion, score_complexion
from demostats.services.periods import MatchRow, StatFilters, resolve_periods
from demostats.services.stats_cache import remember, stats_identity
from demostats.services.trends import build_stat_with_trend, rank_changes
from demostats.services.win_status import WinStatusLookup

CACHE_NAMESPACE = "dashboard"

# (key, lower_is_better)
PLAYER_TRENDS = (
    ("total_kills", False),
    ("total_deaths", True),
    ("average_kills", False),
    ("average_deaths", True),
    ("average_kd", False),
    ("average_adr", False),
    ("win_percentage", False),
    ("average_impact", False),
    ("average_round_swing", False),
)
OPENING_TRENDS = (
    ("total_opening_kills", False),
    ("total_opening_deaths", True),
    ("opening_duel_winrate", False),
    ("average_opening_kills", False),
    ("average_opening_deaths", True),
    ("average_duel_winrate", False),
)
TRADING_TRENDS = (
    ("total_trades", False),
    ("total_possible_trades", False),
    ("total_traded_deaths", False),
    ("total_possible_traded_deaths", False),
    ("average_trades", False),
    ("average_possible_trades", False),
    ("average_traded_deaths", False),
    ("average_possible_traded_deaths", False),
    ("average_trade_success_rate", False),
    ("average_traded_death_success_rate", False),
)


def _player_stats_for(steam_id: str, rows: List[MatchRow]) -> dict:
    wins = WinStatusLookup(steam_id, [m for _, m in rows])
    return aggregate_player_match_stats([e for e, _ in rows], wins.did_win)


def _trend_block(current: dict, previous: dict, keys) -> Dict[str, dict]:
    return {key: build_stat_with_trend(current[key], previous[key], lower) for key, lower in keys}


def build_player_stats(user: User, filters: StatFilters) -> dict:
    windows = resolve_periods(user.steam_id, filters)
    current = _player_stats_for(user.steam_id, windows.current)
    previous = _player_stats_for(user.steam_id, windows.previous)

    out = _trend_block(current, previous, PLAYER_TRENDS)
    out["opening_stats"] = _trend_block(current, previous, OPENING_TRENDS)
    out["trading_stats"] = _trend_block(current, previous, TRADING_TRENDS)
    out["clutch_stats"] = current["clutch_stats"]
    out["total_matches"] = current["total_matches"]
    return out


def build_utility_stats(user: User, filters: StatFilters) -> dict:
    windows = resolve_periods(user.steam_id, filters)
    cur = aggregate_utility_stats([e for e, _ in windows.current])
    prev = aggregate_utility_stats([e for e, _ in windows.previous])

    return {
        "avg_blind_duration_enemy": build_stat_with_trend(cur["enemy_flash_duration"], prev["enemy_flash_duration"]),
        "avg_blind_duration_friendly": build_stat_with_trend(
            cur["friendly_flash_duration"], prev["friendly_flash_duration"], lower_is_better=True),
        "avg_players_blinded_enemy": build_stat_with_trend(cur["enemy_players_blinded"], prev["enemy_players_blinded"]),
        "avg_players_blinded_friendly": build_stat_with_trend(
            cur["friendly_players_blinded"], prev["friendly_players_blinded"], lower_is_better=True),
        "he_molotov_damage": build_stat_with_trend(cur["he_molotov_damage"], prev["he_molotov_damage"]),
        "grenade_effectiveness": build_stat_with_trend(cur["grenade_effectiveness"], prev["grenade_effectiveness"]),
        "average_grenade_usage": build_stat_with_trend(cur["grenade_usage"], prev["grenade_usage"]),
    }


def build_summary(user: User, filters: StatFilters) -> dict:
    """
    Headline card: the two most and least improved stats across the windows,
    plus averages for the player card.
    """
    windows = resolve_periods(user.steam_id, filters)
    cur_events = [e for e, _ in windows.current]
    prev_events = [e for e, _ in windows.previous]

    player = _player_stats_for(user.steam_id, windows.current)
    prev_player = _player_stats_for(user.steam_id, windows.previous)
    aim = aim_stats_for_window(user.steam_id, windows.current_match_ids)
    prev_aim = aim_stats_for_window(user.steam_id, windows.previous_match_ids)
    utility = aggregate_utility_stats(cur_events)
    prev_utility = aggregate_utility_stats(prev_events)

    headline = [
        ("Win Rate", build_stat_with_trend(player["win_percentage"], prev_player["win_percentage"])),
        ("K/D Ratio", build_stat_with_trend(player["average_kd"], prev_player["average_kd"])),
        ("Average Kills", build_stat_with_trend(player["average_kills"], prev_player["average_kills"])),
        ("Aim Rating", build_stat_with_trend(aim["aim_rating"], prev_aim["aim_rating"])),
        ("Headshot %", build_stat_with_trend(aim["headshot_percentage"], prev_aim["headshot_percentage"])),
        ("Crosshair Placement", build_stat_with_trend(
            aim["crosshair_placement"], prev_aim["crosshair_placement"], lower_is_better=True)),
        ("Grenade Effectiveness", build_stat_with_trend(
            utility["grenade_effectiveness"], prev_utility["grenade_effectiveness"])),
        ("Enemy Flash Duration", build_stat_with_trend(
            utility["enemy_flash_duration"], prev_utility["enemy_flash_duration"])),
    ]
    moved = [(name, stat) for name, stat in headline if stat["change"] > 0]

    complexion = average_complexion([score_complexion(user.steam_id, e.match_id, event=e) for e in cur_events])

    return {
        "most_improved_stats": rank_changes(moved, "up"),
        "least_improved_stats": rank_changes(moved, "down"),
        "average_aim_rating": {"value": aim["aim_rating"], "max": 100},
        "average_utility_effectiveness": {"value": utility["grenade_effectiveness"], "max": 100},
        "player_card": {
            "username": user.name,
            "average_impact": round(mean(e.average_impact for e in cur_events), 2),
            "average_round_swing": round(mean(e.match_swing_percent for e in cur_events), 1),
            "average_kd": player["average_kd"],
            "average_adr": player["average_adr"],
            "average_kills": player["average_kills"],
            "average_deaths": player["average_deaths"],
            "total_kills": player["total_kills"],
            "total_deaths": player["total_deaths"],
            "total_matches": player["total_matches"],
            "win_percentage": player["win_percentage"],
            "player_complexion": complexion,
        },
    }


# ---------------- cached entry points ----------------

def get_player_stats(user: User, filters: StatFilters) -> dict:
    return remember(CACHE_NAMESPACE, "player-stats", stats_identity(user), filters.as_key_dict(),
                    lambda: build_player_stats(user, filters))


def get_aim_stats(user: User, filters: StatFilters) -> dict:
    return remember(CACHE_NAMESPACE, "aim-stats", stats_identity(user), filters.as_key_dict(),
                    lambda: build_aim_stats(user, filters))


def get_utility_stats(user: User, filters: StatFilters) -> dict:
    return remember(CACHE_NAMESPACE, "utility-stats", stats_identity(user), filters.as_key_dict(),
                    lambda: build_utility_stats(user, filters))


def get_summary(user: User, filters: StatFilters) -> dict:
    return remember(CACHE_NAMESPACE, "summary", stats_identity(user), filters.as_key_dict(),
                    lambda: build_summary(user, filters))

