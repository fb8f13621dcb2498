# demostats/services/aggregates.py
"""
Pure reducers over match event rows.

Everything here takes already-fetched rows and returns plain dicts.
Intermediate values stay unrounded; rounding happens when the output
dict is built.
"""
from __future__ import annotations

import math
from collections import OrderedDict, defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from demostats.models import PlayerMatchAimEvent, PlayerMatchAimWeaponEvent, PlayerMatchEvent
from demostats.types import ClutchScenario, HitDistribution

CLUTCH_SCENARIOS = ("1v1", "1v2", "1v3", "1v4", "1v5")


def ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is not positive."""
    if not denominator or denominator <= 0:
        return 0.0
    return float(numerator) / float(denominator)


def percentage(part: float, whole: float, places: Optional[int] = 1) -> float:
    value = ratio(part, whole) * 100
    return round(value, places) if places is not None else value


def mean(values: Iterable[float | int | None]) -> float:
    vals = [float(v) for v in values if v is not None]
    if not vals:
        return 0.0
    return sum(vals) / len(vals)


def crosshair_placement(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Average x and y independently, then take the euclidean norm (degrees)."""
    if not xs and not ys:
        return 0.0
    return round(math.hypot(mean(xs), mean(ys)), 1)


# ---------------- Accuracy ----------------

def accuracy_block(shots_fired: int, shots_hit: int, head: int, upper_chest: int, chest: int, legs: int,
                   spraying_fired: int = 0, spraying_hit: int = 0) -> HitDistribution:
    total_hits = head + upper_chest + chest + legs
    return {
        "head_hits": head,
        "upper_chest_hits": upper_chest,
        "chest_hits": chest,
        "legs_hits": legs,
        "total_hits": total_hits,
        "shots_fired": shots_fired,
        "shots_hit": shots_hit,
        "accuracy": percentage(shots_hit, shots_fired),
        "headshot_percentage": percentage(head, total_hits),
        "spray_accuracy": percentage(spraying_hit, spraying_fired),
    }


def hit_distribution(rows: Iterable[PlayerMatchAimEvent | PlayerMatchAimWeaponEvent]) -> Optional[HitDistribution]:
    """Sum aim counters across rows. None when no shots were fired at all."""
    totals: Dict[str, int] = defaultdict(int)
    for r in rows:
        totals["shots_fired"] += r.shots_fired or 0
        totals["shots_hit"] += r.shots_hit or 0
        totals["head"] += r.head_hits_total or 0
        totals["upper_chest"] += r.upper_chest_hits_total or 0
        totals["chest"] += r.chest_hits_total or 0
        totals["legs"] += r.legs_hits_total or 0
        totals["spraying_fired"] += r.spraying_shots_fired or 0
        totals["spraying_hit"] += r.spraying_shots_hit or 0

    if totals["shots_fired"] == 0:
        return None
    return accuracy_block(**totals)


def weapon_breakdown(rows: Iterable[PlayerMatchAimWeaponEvent]) -> List[dict]:
    """Per-weapon accuracy, most used weapon first."""
    by_weapon: "OrderedDict[str, List[PlayerMatchAimWeaponEvent]]" = OrderedDict()
    for r in rows:
        by_weapon.setdefault(r.weapon_name, []).append(r)

    out = []
    for weapon, weapon_rows in by_weapon.items():
        dist = hit_distribution(weapon_rows)
        if dist is None:
            continue
        out.append({
            "weapon": weapon,
            "label": weapon_display_name(weapon),
            "shots_fired": dist["shots_fired"],
            "shots_hit": dist["shots_hit"],
            "accuracy": dist["accuracy"],
            "headshot_percentage": dist["headshot_percentage"],
            "spray_accuracy": dist["spray_accuracy"],
            "crosshair_placement": crosshair_placement(
                [r.average_crosshair_placement_x or 0 for r in weapon_rows],
                [r.average_crosshair_placement_y or 0 for r in weapon_rows],
            ),
        })
    out.sort(key=lambda w: w["shots_fired"], reverse=True)
    return out


WEAPON_DISPLAY_NAMES = {
    "ak47": "AK-47",
    "aug": "AUG",
    "awp": "AWP",
    "bizon": "PP-Bizon",
    "cz75a": "CZ75-Auto",
    "deagle": "Desert Eagle",
    "elite": "Dual Berettas",
    "famas": "FAMAS",
    "fiveseven": "Five-SeveN",
    "g3sg1": "G3SG1",
    "galilar": "Galil AR",
    "glock": "Glock-18",
    "hkp2000": "P2000",
    "m249": "M249",
    "m4a1": "M4A4",
    "m4a1_silencer": "M4A1-S",
    "mac10": "MAC-10",
    "mag7": "MAG-7",
    "mp5sd": "MP5-SD",
    "mp7": "MP7",
    "mp9": "MP9",
    "negev": "Negev",
    "nova": "Nova",
    "p250": "P250",
    "p90": "P90",
    "revolver": "R8 Revolver",
    "sawedoff": "Sawed-Off",
    "scar20": "SCAR-20",
    "sg556": "SG 553",
    "ssg08": "SSG 08",
    "tec9": "Tec-9",
    "ump45": "UMP-45",
    "usp_silencer": "USP-S",
    "xm1014": "XM1014",
}


def weapon_display_name(weapon: str) -> str:
    return WEAPON_DISPLAY_NAMES.get(weapon, weapon.replace("_", " ").title())


# ---------------- Aim ----------------

EMPTY_AIM_STATS = {
    "aim_rating": 0,
    "accuracy": 0,
    "headshot_percentage": 0,
    "spray_accuracy": 0,
    "crosshair_placement": 0,
    "time_to_damage": 0,
    "weapon_breakdown": [],
}


def aggregate_aim_stats(aim_rows: Sequence[PlayerMatchAimEvent],
                        weapon_rows: Sequence[PlayerMatchAimWeaponEvent] = ()) -> dict:
    if not aim_rows:
        return dict(EMPTY_AIM_STATS, weapon_breakdown=[])

    dist = hit_distribution(aim_rows)
    return {
        "aim_rating": round(mean(r.aim_rating for r in aim_rows), 1),
        "accuracy": dist["accuracy"] if dist else 0,
        "headshot_percentage": dist["headshot_percentage"] if dist else 0,
        "spray_accuracy": dist["spray_accuracy"] if dist else 0,
        "crosshair_placement": crosshair_placement(
            [r.average_crosshair_placement_x or 0 for r in aim_rows],
            [r.average_crosshair_placement_y or 0 for r in aim_rows],
        ),
        "time_to_damage": round(mean(r.average_time_to_damage for r in aim_rows)),
        "weapon_breakdown": weapon_breakdown(weapon_rows),
    }


# ---------------- Player match stats ----------------

def clutch_stats(events: Sequence[PlayerMatchEvent]) -> Dict[str, ClutchScenario]:
    """
    Per scenario {total, attempts, winrate} plus `overall`.
    Overall sums wins and attempts first, then divides once.
    """
    out: Dict[str, ClutchScenario] = {}
    wins_sum = attempts_sum = 0
    for scenario in CLUTCH_SCENARIOS:
        wins = sum(getattr(e, f"clutch_wins_{scenario}") or 0 for e in events)
        attempts = sum(getattr(e, f"clutch_attempts_{scenario}") or 0 for e in events)
        wins_sum += wins
        attempts_sum += attempts
        out[scenario] = {"total": wins, "attempts": attempts, "winrate": percentage(wins, attempts)}
    out["overall"] = {"total": wins_sum, "attempts": attempts_sum, "winrate": percentage(wins_sum, attempts_sum)}
    return out


def aggregate_player_match_stats(events: Sequence[PlayerMatchEvent], did_win: Callable[[int], bool]) -> dict:
    """
    Headline combat stats for a window of matches.
    `did_win(match_id)` comes from a WinStatusLookup scoped to the same window.
    """
    n = len(events)

    total_kills = sum(e.kills or 0 for e in events)
    total_deaths = sum(e.deaths or 0 for e in events)
    total_adr = sum(e.adr or 0 for e in events)
    wins = sum(1 for e in events if did_win(e.match_id))

    opening_kills = sum(e.first_kills or 0 for e in events)
    opening_deaths = sum(e.first_deaths or 0 for e in events)
    duel_winrates = [ratio(e.first_kills or 0, (e.first_kills or 0) + (e.first_deaths or 0)) * 100 for e in events]

    trades = sum(e.total_successful_trades or 0 for e in events)
    possible_trades = sum(e.total_possible_trades or 0 for e in events)
    traded_deaths = sum(e.total_traded_deaths or 0 for e in events)
    possible_traded_deaths = sum(e.total_possible_traded_deaths or 0 for e in events)

    return {
        "total_matches": n,
        "win_percentage": percentage(wins, n),
        "total_kills": total_kills,
        "total_deaths": total_deaths,
        "average_kills": round(ratio(total_kills, n), 1),
        "average_deaths": round(ratio(total_deaths, n), 1),
        "average_kd": round(ratio(total_kills, total_deaths), 2),
        "average_adr": round(ratio(total_adr, n), 1),
        "average_impact": round(mean(e.average_impact for e in events), 2),
        "average_round_swing": round(mean(e.match_swing_percent for e in events), 1),
        "total_opening_kills": opening_kills,
        "total_opening_deaths": opening_deaths,
        "opening_duel_winrate": percentage(opening_kills, opening_kills + opening_deaths),
        "average_opening_kills": round(ratio(opening_kills, n), 1),
        "average_opening_deaths": round(ratio(opening_deaths, n), 1),
        "average_duel_winrate": round(mean(duel_winrates), 1),
        "total_trades": trades,
        "total_possible_trades": possible_trades,
        "total_traded_deaths": traded_deaths,
        "total_possible_traded_deaths": possible_traded_deaths,
        "average_trades": round(ratio(trades, n), 1),
        "average_possible_trades": round(ratio(possible_trades, n), 1),
        "average_traded_deaths": round(ratio(traded_deaths, n), 1),
        "average_possible_traded_deaths": round(ratio(possible_traded_deaths, n), 1),
        "average_trade_success_rate": percentage(trades, possible_trades),
        "average_traded_death_success_rate": percentage(traded_deaths, possible_traded_deaths),
        "clutch_stats": clutch_stats(events),
    }


# ---------------- Utility ----------------

def aggregate_utility_stats(events: Sequence[PlayerMatchEvent]) -> dict:
    return {
        "enemy_flash_duration": round(mean(e.enemy_flash_duration for e in events), 2),
        "friendly_flash_duration": round(mean(e.friendly_flash_duration for e in events), 2),
        "enemy_players_blinded": round(mean(e.enemy_players_affected for e in events), 1),
        "friendly_players_blinded": round(mean(e.friendly_players_affected for e in events), 1),
        "he_molotov_damage": round(mean(e.damage_dealt for e in events), 1),
        "grenade_effectiveness": round(mean(e.average_grenade_effectiveness for e in events), 1),
        "grenade_usage": round(mean(e.grenades_thrown for e in events), 1),
    }
