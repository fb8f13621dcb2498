# demostats/services/complexion.py
"""
Player "complexion": how much a single match looked like each of four roles.

  opener  - takes early fights, gets first kills, gets traded
  closer  - lives late, wins clutches
  support - utility volume and utility impact
  fragger - kills, damage, trade kills

Each role is a weighted mean of normalised metrics. A metric is normalised
against a reference value: metric / reference clamped to 0..1, inverted for
lower-is-better metrics, then scaled to 0..100.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, NamedTuple, Optional, Tuple

from flask import current_app

from demostats.models import PlayerMatchEvent
from demostats.services.aggregates import percentage, ratio
from demostats.types import Complexion

ROLES = ("opener", "closer", "support", "fragger")


def round_half_up(value: float, places: int = 0) -> float:
    """Halves round away from zero (62.5 -> 63), unlike round()."""
    return float(Decimal(str(value)).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


class MetricWeight(NamedTuple):
    reference: float
    higher_better: bool
    weight: float


COMPLEXION_WEIGHTS: Dict[str, Dict[str, MetricWeight]] = {
    "opener": {
        "average_round_time_of_death": MetricWeight(25, False, 1.0),
        "average_time_to_contact": MetricWeight(20, False, 3.0),
        "first_kills_plus_minus": MetricWeight(3, True, 5.0),
        "first_kill_attempts": MetricWeight(4, True, 4.0),
        "traded_death_percentage": MetricWeight(50, True, 2.0),
    },
    "closer": {
        "average_round_time_of_death": MetricWeight(40, True, 1.0),
        "average_time_to_contact": MetricWeight(35, True, 1.0),
        "clutch_win_percentage": MetricWeight(25, True, 4.0),
        "total_clutch_attempts": MetricWeight(5, True, 2.0),
    },
    "support": {
        "total_grenades_thrown": MetricWeight(25, True, 1.0),
        "damage_dealt_from_grenades": MetricWeight(200, True, 2.0),
        "enemy_flash_duration": MetricWeight(30, True, 2.0),
        "average_grenade_effectiveness": MetricWeight(50, True, 5.0),
        "total_flashes_leading_to_kills": MetricWeight(5, True, 2.0),
    },
    "fragger": {
        "kill_death_ratio": MetricWeight(1.5, True, 2.0),
        "total_kills_per_round": MetricWeight(0.9, True, 4.0),
        "average_damage_per_round": MetricWeight(90, True, 3.0),
        "trade_kill_percentage": MetricWeight(50, True, 3.0),
        "trade_opportunities_per_round": MetricWeight(1.5, True, 1.0),
    },
}


class ComplexionError(ValueError):
    """Match row cannot be scored (e.g. no rounds recorded)."""


@dataclass(frozen=True)
class ComplexionResult:
    scores: Optional[Complexion] = None
    skip_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.scores is not None

    @classmethod
    def success(cls, scores: Complexion) -> "ComplexionResult":
        return cls(scores=scores)

    @classmethod
    def skip(cls, reason: str) -> "ComplexionResult":
        return cls(skip_reason=reason)


def normalise(metric: float, reference: float, higher_better: bool = True) -> float:
    """Scale `metric` against `reference` onto 0..100 (2 decimals)."""
    if reference <= 0:
        raise ComplexionError(f"reference value must be positive, got {reference}")
    r = float(metric or 0) / float(reference)
    if not higher_better:
        r = 1 - r
    r = max(0.0, min(1.0, r))
    return round_half_up(r * 100, 2)


def weighted_mean(scores: List[Tuple[float, float]]) -> int:
    total_weight = sum(w for _, w in scores)
    if total_weight <= 0:
        return 0
    return int(round_half_up(sum(s * w for s, w in scores) / total_weight))


def _role_metrics(event: PlayerMatchEvent) -> Dict[str, Dict[str, float]]:
    rounds = event.total_rounds_played or 0
    if rounds <= 0:
        raise ComplexionError(f"no rounds recorded for match {event.match_id}")

    first_kills = event.first_kills or 0
    first_deaths = event.first_deaths or 0
    possible_trades = event.total_possible_trades or 0

    return {
        "opener": {
            "average_round_time_of_death": event.average_round_time_of_death or 0,
            "average_time_to_contact": event.average_time_to_contact or 0,
            "first_kills_plus_minus": first_kills - first_deaths,
            "first_kill_attempts": first_kills + first_deaths,
            "traded_death_percentage": percentage(event.total_successful_trades or 0,
                                                  event.total_possible_traded_deaths or 0, places=None),
        },
        "closer": {
            "average_round_time_of_death": event.average_round_time_of_death or 0,
            "average_time_to_contact": event.average_time_to_contact or 0,
            "clutch_win_percentage": percentage(event.clutch_wins, event.clutch_attempts, places=None),
            "total_clutch_attempts": event.clutch_attempts,
        },
        "support": {
            "total_grenades_thrown": event.grenades_thrown,
            "damage_dealt_from_grenades": event.damage_dealt or 0,
            "enemy_flash_duration": event.enemy_flash_duration or 0,
            "average_grenade_effectiveness": event.average_grenade_effectiveness or 0,
            "total_flashes_leading_to_kills": event.flashes_leading_to_kills or 0,
        },
        "fragger": {
            "kill_death_ratio": (event.kills or 0) / max(event.deaths or 0, 1),
            "total_kills_per_round": ratio(event.kills or 0, rounds),
            "average_damage_per_round": event.adr or 0,
            "trade_kill_percentage": percentage(event.total_successful_trades or 0, possible_trades, places=None),
            "trade_opportunities_per_round": ratio(possible_trades, rounds),
        },
    }


def complexion_for_event(event: PlayerMatchEvent) -> Complexion:
    """Raises ComplexionError when the row can't be scored."""
    metrics = _role_metrics(event)
    out = {}
    for role in ROLES:
        weights = COMPLEXION_WEIGHTS[role]
        out[role] = weighted_mean([
            (normalise(metrics[role][name], mw.reference, mw.higher_better), mw.weight)
            for name, mw in weights.items()
        ])
    return out  # type: ignore[return-value]


def score_complexion(steam_id: str, match_id: int, event: PlayerMatchEvent | None = None) -> ComplexionResult:
    """
    Score one (player, match). Never raises for bad data: an unscorable
    match comes back as a skip with the reason, and is logged.
    """
    if event is None:
        event = PlayerMatchEvent.query.filter_by(match_id=match_id, player_steam_id=steam_id).first()
    if event is None:
        return ComplexionResult.skip("no match event")
    try:
        return ComplexionResult.success(complexion_for_event(event))
    except (ComplexionError, ArithmeticError, TypeError, ValueError) as e:
        current_app.logger.warning("complexion skipped steam_id=%s match_id=%s: %s", steam_id, match_id, e)
        return ComplexionResult.skip(str(e))


def average_complexion(results: List[ComplexionResult]) -> Complexion:
    """Mean per role over successful results, rounded to whole numbers. Zeros when none succeeded."""
    ok = [r.scores for r in results if r.ok]
    if not ok:
        return {"opener": 0, "closer": 0, "support": 0, "fragger": 0}
    return {role: int(round_half_up(sum(s[role] for s in ok) / len(ok))) for role in ROLES}  # type: ignore[return-value]
