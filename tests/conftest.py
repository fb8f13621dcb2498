"""Shared fixtures: an app on in-memory SQLite and a small row factory."""

from __future__ import annotations

from datetime import datetime, timedelta
from itertools import count

import pytest
from flask_login import FlaskLoginClient

from config import TestingConfig
from demostats import create_app
from demostats.extensions import cache, db
from demostats.models import (
    Clan,
    ClanMatch,
    ClanMember,
    GameMatch,
    MatchPlayer,
    Player,
    PlayerRank,
    PlayerMatchAimEvent,
    PlayerMatchAimWeaponEvent,
    PlayerMatchEvent,
    User,
)

BASE_TIME = datetime(2026, 10, 1, 18, 0, 0)


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    app.test_client_class = FlaskLoginClient
    with app.app_context():
        db.create_all()
        cache.clear()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


class Factory:
    """Creates and commits rows with sensible defaults."""

    def __init__(self):
        self._seq = count(1)

    def _save(self, obj):
        db.session.add(obj)
        db.session.commit()
        return obj

    def user(self, name: str | None = None, steam_id: str | None = None) -> User:
        n = next(self._seq)
        return self._save(User(name=name or f"user{n}", steam_id=steam_id))

    def match(self, created_at: datetime | None = None, map: str = "de_dust2", match_type: str = "premier",
              winning_team: str = "CT", start: datetime | None = None, end: datetime | None = None) -> GameMatch:
        n = next(self._seq)
        created_at = created_at or BASE_TIME + timedelta(hours=n)
        return self._save(GameMatch(
            match_hash=f"hash-{n}",
            map=map,
            match_type=match_type,
            winning_team=winning_team,
            created_at=created_at,
            start_timestamp=start or created_at,
            end_timestamp=end or created_at + timedelta(minutes=40),
        ))

    def _player(self, steam_id: str) -> Player:
        player = Player.query.filter_by(steam_id=steam_id).first()
        if player is None:
            player = self._save(Player(steam_id=steam_id, name=f"p-{steam_id}"))
        return player

    def played(self, match: GameMatch, steam_id: str, team: str = "CT") -> MatchPlayer:
        return self._save(MatchPlayer(match_id=match.id, player_id=self._player(steam_id).id, team=team))

    def event(self, match: GameMatch, steam_id: str, **kw) -> PlayerMatchEvent:
        kw.setdefault("total_rounds_played", 24)
        return self._save(PlayerMatchEvent(match_id=match.id, player_steam_id=steam_id, **kw))

    def aim(self, match: GameMatch, steam_id: str, **kw) -> PlayerMatchAimEvent:
        return self._save(PlayerMatchAimEvent(match_id=match.id, player_steam_id=steam_id, **kw))

    def weapon(self, match: GameMatch, steam_id: str, weapon_name: str, **kw) -> PlayerMatchAimWeaponEvent:
        return self._save(PlayerMatchAimWeaponEvent(
            match_id=match.id, player_steam_id=steam_id, weapon_name=weapon_name, **kw))

    def rank(self, steam_id: str, rank_type: str, rank_value: int, rank: str | None = None,
             map: str | None = None, created_at: datetime | None = None) -> PlayerRank:
        n = next(self._seq)
        return self._save(PlayerRank(
            player_id=self._player(steam_id).id, rank_type=rank_type, map=map, rank=rank or str(rank_value),
            rank_value=rank_value, created_at=created_at or BASE_TIME + timedelta(hours=n),
        ))

    def clan(self, name: str = "Clan", members=(), matches=(), discord_guild_id: str | None = None) -> Clan:
        clan = self._save(Clan(name=name, discord_guild_id=discord_guild_id))
        for user in members:
            db.session.add(ClanMember(clan_id=clan.id, user_id=user.id))
        for match in matches:
            db.session.add(ClanMatch(clan_id=clan.id, match_id=match.id))
        db.session.commit()
        return clan


@pytest.fixture
def make(app):
    return Factory()
