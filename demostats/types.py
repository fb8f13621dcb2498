# types.py
from typing import Literal, TypedDict

Trend = Literal["up", "down", "neutral"]


class TrendStat(TypedDict):
    value: float
    trend: Trend
    change: float


class ClutchScenario(TypedDict):
    total: int
    attempts: int
    winrate: float


class Complexion(TypedDict):
    opener: int
    closer: int
    support: int
    fragger: int


class HitDistribution(TypedDict):
    head_hits: int
    upper_chest_hits: int
    chest_hits: int
    legs_hits: int
    total_hits: int
    shots_fired: int
    shots_hit: int
    accuracy: float
    headshot_percentage: float
    spray_accuracy: float


class MapRow(TypedDict):
    map: str
    matches: int
    wins: int
    win_rate: float
    avg_kills: float
    avg_assists: float
    avg_deaths: float
    avg_kd: float
    avg_adr: float
    avg_opening_kills: float
    avg_opening_deaths: float
    avg_complexion: Complexion


class RankPoint(TypedDict):
    rank: str
    rank_value: int
    date: str
    timestamp: int
