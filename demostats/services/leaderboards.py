# demostats/services/leaderboards.py
"""
Clan leaderboards.

For one (clan, type, window) the calculation walks Idle -> Computing -> Persisted:
it reads the clan's matches in the window, computes each linked member's value
over those matches, ranks the members and upserts one row per member.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from demostats.extensions import db
from demostats.models import (
    Clan,
    ClanLeaderboard,
    ClanMatch,
    ClanMember,
    GameMatch,
    PlayerMatchAimEvent,
    PlayerMatchEvent,
    User,
)
from demostats.services.aggregates import mean
from demostats.services.complexion import score_complexion
from demostats.services.time_utils import leaderboard_window, utcnow_naive


class LeaderboardType(str, Enum):
    AIM = "aim"
    IMPACT = "impact"
    ROUND_SWING = "round_swing"
    FRAGGER = "fragger"
    SUPPORT = "support"
    OPENER = "opener"
    CLOSER = "closer"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def emoji(self) -> str:
        return LEADERBOARD_EMOJI.get(self, "")

    @classmethod
    def parse(cls, raw: str) -> "LeaderboardType":
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            raise ValueError(f"unknown leaderboard type {raw!r}; valid types: {', '.join(cls.values())}")

    @classmethod
    def values(cls) -> List[str]:
        return [t.value for t in cls]


LEADERBOARD_EMOJI = {
    LeaderboardType.AIM: "🎯",
    LeaderboardType.IMPACT: "💥",
    LeaderboardType.ROUND_SWING: "📈",
    LeaderboardType.FRAGGER: "🔫",
    LeaderboardType.SUPPORT: "🛡️",
    LeaderboardType.OPENER: "🚪",
    LeaderboardType.CLOSER: "🔒",
}


class CalculationState(str, Enum):
    IDLE = "idle"
    COMPUTING = "computing"
    PERSISTED = "persisted"


# ---------------- queries ----------------

def clan_match_ids(clan_id: int, start: datetime, end: datetime) -> List[int]:
    """
    clan_matches JOIN matches ON clan_matches.match_id = matches.id
    WHERE clan_id = :clan AND (start_timestamp BETWEEN .. OR end_timestamp BETWEEN ..)
    """
    rows = (
        db.session.query(GameMatch.id)
        .join(ClanMatch, ClanMatch.match_id == GameMatch.id)
        .filter(ClanMatch.clan_id == clan_id)
        .filter(or_(
            GameMatch.start_timestamp.between(start, end),
            GameMatch.end_timestamp.between(start, end),
        ))
        .order_by(GameMatch.id.asc())
        .all()
    )
    return [mid for (mid,) in rows]


def linked_members(clan: Clan) -> List[User]:
    """Clan members with a Steam id, in membership order."""
    rows = (
        db.session.query(User)
        .join(ClanMember, ClanMember.user_id == User.id)
        .filter(ClanMember.clan_id == clan.id, User.steam_id.isnot(None), User.steam_id != "")
        .order_by(ClanMember.id.asc())
        .all()
    )
    return rows


def _member_events(steam_id: str, match_ids: Sequence[int]) -> List[PlayerMatchEvent]:
    return (
        PlayerMatchEvent.query
        .filter(PlayerMatchEvent.player_steam_id == steam_id, PlayerMatchEvent.match_id.in_(list(match_ids)))
        .order_by(PlayerMatchEvent.match_id.asc())
        .all()
    )


# ---------------- per-member values ----------------

def _aim_value(steam_id: str, match_ids: Sequence[int]) -> Optional[float]:
    ratings = [
        r for (r,) in db.session.query(PlayerMatchAimEvent.aim_rating)
        .filter(PlayerMatchAimEvent.player_steam_id == steam_id, PlayerMatchAimEvent.match_id.in_(list(match_ids)))
        .all()
    ]
    return mean(ratings) if ratings else None


def _event_mean(column: str) -> Callable[[str, Sequence[int]], Optional[float]]:
    def value(steam_id: str, match_ids: Sequence[int]) -> Optional[float]:
        events = _member_events(steam_id, match_ids)
        return mean(getattr(e, column) for e in events) if events else None
    return value


def _role_value(role: str) -> Callable[[str, Sequence[int]], Optional[float]]:
    def value(steam_id: str, match_ids: Sequence[int]) -> Optional[float]:
        scores = []
        for event in _member_events(steam_id, match_ids):
            result = score_complexion(steam_id, event.match_id, event=event)
            if result.ok:
                scores.append(result.scores[role])
        return mean(scores) if scores else None
    return value


VALUE_FUNCTIONS: Dict[LeaderboardType, Callable[[str, Sequence[int]], Optional[float]]] = {
    LeaderboardType.AIM: _aim_value,
    LeaderboardType.IMPACT: _event_mean("average_impact"),
    LeaderboardType.ROUND_SWING: _event_mean("match_swing_percent"),
    LeaderboardType.FRAGGER: _role_value("fragger"),
    LeaderboardType.SUPPORT: _role_value("support"),
    LeaderboardType.OPENER: _role_value("opener"),
    LeaderboardType.CLOSER: _role_value("closer"),
}


def get_user_value(leaderboard_type: LeaderboardType, steam_id: str, match_ids: Sequence[int]) -> Optional[float]:
    """None means 'no value' (member is left off the board), never zero."""
    if not steam_id or not match_ids:
        return None
    return VALUE_FUNCTIONS[leaderboard_type](steam_id, match_ids)


def rank(values: List[Tuple[User, float]]) -> List[Tuple[int, User, float]]:
    """Descending by value, positions 1..N. Equal values keep input order."""
    ordered = sorted(values, key=lambda uv: uv[1], reverse=True)
    return [(i, user, value) for i, (user, value) in enumerate(ordered, start=1)]


# ---------------- persistence ----------------

def upsert_entry(clan_id: int, leaderboard_type: LeaderboardType, start: datetime, end: datetime,
                 user_id: int, position: int, value: float) -> ClanLeaderboard:
    row = ClanLeaderboard.query.filter_by(
        clan_id=clan_id,
        leaderboard_type=leaderboard_type.value,
        start_date=start,
        end_date=end,
        user_id=user_id,
    ).first()
    if row is None:
        row = ClanLeaderboard()  # type: ignore[call-arg]
        row.clan_id = clan_id
        row.leaderboard_type = leaderboard_type.value
        row.start_date = start
        row.end_date = end
        row.user_id = user_id
        db.session.add(row)
    row.position = position
    row.value = round(value, 2)
    return row


class LeaderboardCalculation:
    def __init__(self, clan: Clan, leaderboard_type: LeaderboardType, start: datetime, end: datetime):
        self.clan = clan
        self.leaderboard_type = leaderboard_type
        self.start = start
        self.end = end
        self.state = CalculationState.IDLE
        self.entries: List[ClanLeaderboard] = []
        self.excluded: List[int] = []

    def run(self) -> List[ClanLeaderboard]:
        if self.state is not CalculationState.IDLE:
            raise RuntimeError(f"calculation already {self.state.value}")
        self.state = CalculationState.COMPUTING
        log = current_app.logger

        match_ids = clan_match_ids(self.clan.id, self.start, self.end)
        members = linked_members(self.clan)
        min_members = int(current_app.config.get("LEADERBOARD_MIN_MEMBERS", 2))
        if not match_ids or len(members) < min_members:
            log.info(
                "leaderboard skipped clan=%s type=%s matches=%s linked_members=%s",
                self.clan.id, self.leaderboard_type.value, len(match_ids), len(members),
            )
            self.state = CalculationState.PERSISTED
            return self.entries

        values: List[Tuple[User, float]] = []
        for member in members:
            try:
                value = get_user_value(self.leaderboard_type, member.steam_id, match_ids)
            except (ArithmeticError, TypeError, ValueError) as e:
                log.warning(
                    "leaderboard value failed clan=%s type=%s user=%s: %s",
                    self.clan.id, self.leaderboard_type.value, member.id, e,
                )
                self.excluded.append(member.id)
                continue
            if value is None:
                self.excluded.append(member.id)
                continue
            values.append((member, value))

        ranked = rank(values)
        self.entries = [
            upsert_entry(self.clan.id, self.leaderboard_type, self.start, self.end, user.id, position, value)
            for position, user, value in ranked
        ]
        # members that dropped off since the last run would leave gaps in positions
        (
            ClanLeaderboard.query
            .filter_by(clan_id=self.clan.id, leaderboard_type=self.leaderboard_type.value,
                       start_date=self.start, end_date=self.end)
            .filter(ClanLeaderboard.user_id.notin_([u.id for _, u, _ in ranked] or [-1]))
            .delete(synchronize_session=False)
        )
        db.session.commit()
        self.state = CalculationState.PERSISTED

        log.info(
            "leaderboard persisted clan=%s type=%s window=%s..%s entries=%s excluded=%s",
            self.clan.id, self.leaderboard_type.value, self.start.date(), self.end.date(),
            len(self.entries), len(self.excluded),
        )
        return self.entries


def calculate_leaderboard(clan: Clan, leaderboard_type: LeaderboardType | str,
                          start: datetime, end: datetime) -> List[ClanLeaderboard]:
    if not isinstance(leaderboard_type, LeaderboardType):
        leaderboard_type = LeaderboardType.parse(leaderboard_type)
    return LeaderboardCalculation(clan, leaderboard_type, start, end).run()


def get_leaderboard(clan_id: int, leaderboard_type: LeaderboardType | str,
                    start: datetime, end: datetime) -> List[ClanLeaderboard]:
    if not isinstance(leaderboard_type, LeaderboardType):
        leaderboard_type = LeaderboardType.parse(leaderboard_type)
    return (
        ClanLeaderboard.query
        .filter_by(clan_id=clan_id, leaderboard_type=leaderboard_type.value, start_date=start, end_date=end)
        .order_by(ClanLeaderboard.position.asc())
        .all()
    )


def period_window(period: str, now: datetime | None = None) -> Tuple[datetime, datetime]:
    days = current_app.config.get("LEADERBOARD_PERIOD_DAYS", {"week": 7, "month": 30})
    if period not in days:
        raise ValueError(f"unknown period {period!r}; valid periods: {', '.join(days)}")
    return leaderboard_window(int(days[period]), now)


def calculate_all_leaderboards(now: datetime | None = None,
                               periods: Sequence[str] = ("week", "month")) -> Dict[str, int]:
    """
    Every clan x every type x each period. One (clan, type) failing on the
    database is logged and rolled back; the rest still run.
    """
    now = now or utcnow_naive()
    windows = [(p, period_window(p, now)) for p in periods]
    stats = {"clans": 0, "boards": 0, "entries": 0, "failed": 0}

    for clan in Clan.query.order_by(Clan.id.asc()).all():
        stats["clans"] += 1
        for leaderboard_type in LeaderboardType:
            for period, (start, end) in windows:
                try:
                    entries = calculate_leaderboard(clan, leaderboard_type, start, end)
                except SQLAlchemyError:
                    db.session.rollback()
                    stats["failed"] += 1
                    current_app.logger.exception(
                        "leaderboard failed clan=%s type=%s period=%s", clan.id, leaderboard_type.value, period
                    )
                    continue
                stats["boards"] += 1
                stats["entries"] += len(entries)

    current_app.logger.info("leaderboards run complete %s", stats)
    return stats
