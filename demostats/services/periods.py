# demostats/services/periods.py
from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date, datetime, time, timedelta
from typing import List, Mapping, NamedTuple, Optional, Tuple

from flask import current_app

from demostats.extensions import db
from demostats.models import GameMatch, PlayerMatchEvent


class FilterError(ValueError):
    """Malformed filter input (bad date, out of range match count)."""


@dataclass(frozen=True)
class StatFilters:
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    game_type: Optional[str] = None
    map: Optional[str] = None
    past_match_count: int = 10

    @classmethod
    def from_args(cls, args: Mapping[str, str], default_count: int | None = None,
                  max_count: int | None = None) -> "StatFilters":
        """
        Build filters from request.args (or any str mapping).
        Blank values are treated as absent.
        """
        if default_count is None:
            default_count = int(current_app.config.get("DEFAULT_PAST_MATCH_COUNT", 10))
        if max_count is None:
            max_count = int(current_app.config.get("MAX_PAST_MATCH_COUNT", 100))

        raw_count = (args.get("past_match_count") or "").strip()
        if raw_count:
            try:
                count = int(raw_count)
            except ValueError:
                raise FilterError(f"past_match_count must be an integer, got {raw_count!r}")
        else:
            count = default_count
        if count < 1 or count > max_count:
            raise FilterError(f"past_match_count must be between 1 and {max_count}")

        date_from = _parse_date(args.get("date_from"), "date_from")
        date_to = _parse_date(args.get("date_to"), "date_to")
        if date_from and date_to and date_from > date_to:
            raise FilterError("date_from must not be after date_to")

        return cls(
            date_from=date_from,
            date_to=date_to,
            game_type=(args.get("game_type") or "").strip() or None,
            map=(args.get("map") or "").strip() or None,
            past_match_count=count,
        )

    def as_key_dict(self) -> dict:
        """JSON-safe representation used for cache keys."""
        d = asdict(self)
        d["date_from"] = self.date_from.isoformat() if self.date_from else None
        d["date_to"] = self.date_to.isoformat() if self.date_to else None
        return d


def _parse_date(raw: Optional[str], name: str) -> Optional[date]:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        # accept full ISO timestamps too; only the date part matters
        return date.fromisoformat(raw[:10])
    except ValueError:
        raise FilterError(f"{name} must be an ISO date (YYYY-MM-DD), got {raw!r}")


def apply_date_bounds(q, column, filters: StatFilters):
    """Inclusive calendar-day bounds on `column`; each bound applies on its own."""
    if filters.date_from is not None:
        q = q.filter(column >= datetime.combine(filters.date_from, time.min))
    if filters.date_to is not None:
        q = q.filter(column < datetime.combine(filters.date_to + timedelta(days=1), time.min))
    return q


MatchRow = Tuple[PlayerMatchEvent, GameMatch]


class PeriodWindows(NamedTuple):
    current: List[MatchRow]
    previous: List[MatchRow]

    @property
    def current_match_ids(self) -> List[int]:
        return [m.id for _, m in self.current]

    @property
    def previous_match_ids(self) -> List[int]:
        return [m.id for _, m in self.previous]


def find_match_events_for_player(steam_id: Optional[str], filters: StatFilters,
                                 offset: int = 0, limit: Optional[int] = None) -> List[MatchRow]:
    """
    player_match_events JOIN matches ON player_match_events.match_id = matches.id
    WHERE player_steam_id = :steam_id [AND date/type/map filters]
    ORDER BY matches.created_at DESC, matches.id DESC
    OFFSET :offset LIMIT :limit

    Date bounds are inclusive calendar days; each bound applies on its own.
    """
    if not steam_id:
        return []

    q = (
        db.session.query(PlayerMatchEvent, GameMatch)
        .join(GameMatch, PlayerMatchEvent.match_id == GameMatch.id)
        .filter(PlayerMatchEvent.player_steam_id == steam_id)
    )
    q = apply_date_bounds(q, GameMatch.created_at, filters)
    if filters.game_type:
        q = q.filter(GameMatch.match_type == filters.game_type)
    if filters.map:
        q = q.filter(GameMatch.map == filters.map)

    q = q.order_by(GameMatch.created_at.desc(), GameMatch.id.desc())
    if offset:
        q = q.offset(offset)
    if limit is not None:
        q = q.limit(limit)
    return [(event, match) for event, match in q.all()]


def resolve_periods(steam_id: Optional[str], filters: StatFilters) -> PeriodWindows:
    """
    current  = most recent N matching matches
    previous = the N matches right before those (same query, offset N)

    The previous window is positional, so it shifts when filters change.
    """
    n = filters.past_match_count
    current = find_match_events_for_player(steam_id, filters, offset=0, limit=n)
    previous = find_match_events_for_player(steam_id, filters, offset=n, limit=n)
    return PeriodWindows(current=current, previous=previous)
