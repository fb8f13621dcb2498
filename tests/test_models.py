"""Tests for model-level behaviour."""

from __future__ import annotations

from demostats.extensions import db
from demostats.models import Player, PlayerRank, User


class TestUser:
    def test_columns(self):
        # sign-in lives outside this service; users only carry identity
        assert set(User.__table__.columns.keys()) == {"id", "name", "steam_id", "created_at"}

    def test_steam_id_optional(self, make):
        user = make.user(name="casual")
        assert db.session.get(User, user.id).steam_id is None


class TestPlayerRank:
    def test_deleted_with_player(self, make):
        make.rank("rank-owner", "premier", 10000)
        player = Player.query.filter_by(steam_id="rank-owner").one()
        db.session.delete(player)
        db.session.commit()
        assert PlayerRank.query.count() == 0
