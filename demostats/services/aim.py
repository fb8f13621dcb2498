# demostats/services/aim.py
from __future__ import annotations

from typing import List, Optional, Sequence

from demostats.extensions import db
from demostats.models import PlayerMatchAimEvent, PlayerMatchAimWeaponEvent, User
from demostats.services.aggregates import aggregate_aim_stats, hit_distribution, weapon_display_name
from demostats.services.periods import StatFilters, resolve_periods
from demostats.services.stats_cache import remember, stats_identity
from demostats.services.trends import build_stat_with_trend

CACHE_NAMESPACE = "aim"
ALL_WEAPONS = "all"


def aim_events_for(steam_id: str, match_ids: Sequence[int]) -> List[PlayerMatchAimEvent]:
    """player_match_aim_events WHERE player_steam_id = :steam_id AND match_id IN (:ids)"""
    if not steam_id or not match_ids:
        return []
    return (
        PlayerMatchAimEvent.query
        .filter(PlayerMatchAimEvent.player_steam_id == steam_id,
                PlayerMatchAimEvent.match_id.in_(list(match_ids)))
        .order_by(PlayerMatchAimEvent.match_id.asc())
        .all()
    )


def weapon_events_for(steam_id: str, match_ids: Sequence[int],
                      weapon: Optional[str] = None) -> List[PlayerMatchAimWeaponEvent]:
    """player_match_aim_weapon_events for the same scope, optionally one weapon."""
    if not steam_id or not match_ids:
        return []
    q = PlayerMatchAimWeaponEvent.query.filter(
        PlayerMatchAimWeaponEvent.player_steam_id == steam_id,
        PlayerMatchAimWeaponEvent.match_id.in_(list(match_ids)),
    )
    if weapon and weapon != ALL_WEAPONS:
        q = q.filter(PlayerMatchAimWeaponEvent.weapon_name == weapon)
    return q.order_by(PlayerMatchAimWeaponEvent.id.asc()).all()


def aim_stats_for_window(steam_id: str, match_ids: Sequence[int]) -> dict:
    return aggregate_aim_stats(aim_events_for(steam_id, match_ids), weapon_events_for(steam_id, match_ids))


def build_aim_stats(user: User, filters: StatFilters) -> dict:
    windows = resolve_periods(user.steam_id, filters)
    current = aim_stats_for_window(user.steam_id, windows.current_match_ids)
    previous = aim_stats_for_window(user.steam_id, windows.previous_match_ids)

    return {
        "aim_statistics": {
            "average_aim_rating": build_stat_with_trend(current["aim_rating"], previous["aim_rating"]),
            "average_accuracy": build_stat_with_trend(current["accuracy"], previous["accuracy"]),
            "average_headshot_percentage": build_stat_with_trend(
                current["headshot_percentage"], previous["headshot_percentage"]),
            "average_spray_accuracy": build_stat_with_trend(current["spray_accuracy"], previous["spray_accuracy"]),
            "average_crosshair_placement": build_stat_with_trend(
                current["crosshair_placement"], previous["crosshair_placement"], lower_is_better=True),
            "average_time_to_damage": build_stat_with_trend(
                current["time_to_damage"], previous["time_to_damage"], lower_is_better=True),
        },
        "weapon_breakdown": current["weapon_breakdown"],
    }


def build_available_weapons(user: User, filters: StatFilters) -> List[dict]:
    """Weapons used in the current window, 'All Weapons' first."""
    windows = resolve_periods(user.steam_id, filters)
    weapons: List[dict] = [{"value": ALL_WEAPONS, "label": "All Weapons"}]
    if not windows.current:
        return weapons

    rows = (
        db.session.query(PlayerMatchAimWeaponEvent.weapon_name)
        .filter(PlayerMatchAimWeaponEvent.player_steam_id == user.steam_id,
                PlayerMatchAimWeaponEvent.match_id.in_(windows.current_match_ids))
        .distinct()
        .order_by(PlayerMatchAimWeaponEvent.weapon_name.asc())
        .all()
    )
    weapons.extend({"value": name, "label": weapon_display_name(name)} for (name,) in rows)
    return weapons


def build_hit_distribution(user: User, filters: StatFilters, weapon: Optional[str] = None) -> dict:
    """
    Summed hit regions for the current window. 'all' (or None) reads the
    per-match aim rows; a weapon name reads the per-weapon rows.
    Empty dict when nothing was fired.
    """
    windows = resolve_periods(user.steam_id, filters)
    if weapon and weapon != ALL_WEAPONS:
        rows = weapon_events_for(user.steam_id, windows.current_match_ids, weapon)
    else:
        rows = aim_events_for(user.steam_id, windows.current_match_ids)
    return dict(hit_distribution(rows) or {})


# ---------------- cached entry points ----------------

def get_aim_stats(user: User, filters: StatFilters) -> dict:
    return remember(CACHE_NAMESPACE, "aim-stats", stats_identity(user), filters.as_key_dict(),
                    lambda: build_aim_stats(user, filters))


def get_available_weapons(user: User, filters: StatFilters) -> List[dict]:
    return remember(CACHE_NAMESPACE, "weapons", stats_identity(user), filters.as_key_dict(),
                    lambda: build_available_weapons(user, filters))


def get_hit_distribution(user: User, filters: StatFilters, weapon: Optional[str] = None) -> dict:
    key = dict(filters.as_key_dict(), weapon=weapon or ALL_WEAPONS)
    return remember(CACHE_NAMESPACE, "hit-distribution", stats_identity(user), key,
                    lambda: build_hit_distribution(user, filters, weapon))
