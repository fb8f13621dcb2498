"""Tests for the flask CLI commands."""

from __future__ import annotations

import json
from datetime import datetime, timedelta

from demostats.models import ClanLeaderboard

NOW = "2026-10-18T12:00:00"


def _clan(make):
    when = datetime.fromisoformat(NOW) - timedelta(days=2)
    match = make.match(start=when, end=when)
    users = []
    for i, rating in enumerate((55, 75)):
        u = make.user(name=f"cli{i}", steam_id=f"cli-{i}")
        make.event(match, u.steam_id)
        make.aim(match, u.steam_id, aim_rating=rating)
        users.append(u)
    return make.clan(name="CLI Clan", members=users, matches=[match])


class TestCalculateLeaderboards:
    def test_full_run(self, app, make):
        _clan(make)
        result = app.test_cli_runner().invoke(args=["calculate-leaderboards", "--now", NOW, "--period", "week"])
        assert result.exit_code == 0
        assert "Leaderboards complete: clans=1" in result.output
        assert "failed=0" in result.output

    def test_single_board(self, app, make):
        clan = _clan(make)
        result = app.test_cli_runner().invoke(args=[
            "calculate-leaderboards", "--clan-id", str(clan.id), "--type", "aim", "--period", "week", "--now", NOW,
        ])
        assert result.exit_code == 0
        assert f"clan={clan.id} type=aim period=week entries=2" in result.output
        assert "Done: 2 entries upserted" in result.output
        assert ClanLeaderboard.query.count() == 2

    def test_unknown_clan(self, app):
        result = app.test_cli_runner().invoke(args=["calculate-leaderboards", "--clan-id", "99", "--type", "aim"])
        assert result.exit_code != 0
        assert "clan 99 not found" in result.output

    def test_bad_now(self, app):
        result = app.test_cli_runner().invoke(args=["calculate-leaderboards", "--now", "yesterday"])
        assert result.exit_code != 0


class TestLeaderboardReport:
    def test_prints_embed(self, app, make):
        clan = _clan(make)
        runner = app.test_cli_runner()
        runner.invoke(args=["calculate-leaderboards", "--clan-id", str(clan.id), "--type", "aim",
                            "--period", "week", "--now", NOW])
        result = runner.invoke(args=["leaderboard-report", str(clan.id), "aim", "--now", NOW])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        fields = payload["data"]["embeds"][0]["fields"]
        assert [f["value"] for f in fields] == ["75.00", "55.00"]
        assert payload["data"]["embeds"][0]["title"] == "🎯 Weekly Aim Leaderboard"

    def test_month_is_labelled_monthly(self, app, make):
        clan = _clan(make)
        runner = app.test_cli_runner()
        runner.invoke(args=["calculate-leaderboards", "--clan-id", str(clan.id), "--type", "aim",
                            "--period", "month", "--now", NOW])
        result = runner.invoke(args=["leaderboard-report", str(clan.id), "aim", "--period", "month", "--now", NOW])
        assert json.loads(result.output)["data"]["embeds"][0]["title"] == "🎯 Monthly Aim Leaderboard"


class TestInvalidateStatsCache:
    def test_bumps_generation(self, app):
        runner = app.test_cli_runner()
        first = runner.invoke(args=["invalidate-stats-cache", "765"])
        second = runner.invoke(args=["invalidate-stats-cache", "765"])
        assert "generation=1" in first.output
        assert "generation=2" in second.output


class TestWarmStatsCache:
    def test_warms_match(self, app, make):
        match = make.match()
        make.event(match, "warm-1")
        make.user(steam_id="warm-1")
        result = app.test_cli_runner().invoke(args=["warm-stats-cache", str(match.id)])
        assert result.exit_code == 0
        assert f"Warmed 1/1 users for match {match.id} (failed=0)" in result.output

    def test_unknown_match(self, app):
        result = app.test_cli_runner().invoke(args=["warm-stats-cache", "4242"])
        assert result.exit_code != 0
        assert "match 4242 not found" in result.output
