"""Tests for the dashboard tabs and the stats cache."""

from __future__ import annotations

from demostats.extensions import cache
from demostats.services import dashboard
from demostats.services.periods import StatFilters
from demostats.services.stats_cache import cache_key, invalidate_user_stats, remember, stats_identity

STEAM = "76561198000000005"


def _seed(make):
    """Previous window: 2 losses at 10 kills. Current window: 2 wins at 20 kills."""
    for kills, winner in ((10, "T"), (10, "T"), (20, "CT"), (20, "CT")):
        m = make.match(winning_team=winner)
        make.played(m, STEAM, team="CT")
        make.event(m, STEAM, kills=kills, deaths=10, adr=kills * 4,
                   clutch_wins_1v1=1, clutch_attempts_1v1=3,
                   enemy_flash_duration=5, friendly_flash_duration=2, average_grenade_effectiveness=40,
                   flashes_thrown=3, smokes_thrown=2)
        make.aim(m, STEAM, aim_rating=kills * 3, shots_fired=100, shots_hit=kills,
                 head_hits_total=kills // 2, chest_hits_total=kills // 2)


class TestPlayerStats:
    def test_trends_and_clutch(self, make):
        _seed(make)
        user = make.user(steam_id=STEAM)
        stats = dashboard.build_player_stats(user, StatFilters(past_match_count=2))

        assert stats["total_matches"] == 2
        assert stats["average_kills"] == {"value": 20.0, "trend": "up", "change": 100.0}
        assert stats["win_percentage"] == {"value": 100.0, "trend": "up", "change": 100.0}
        assert stats["total_deaths"]["trend"] == "neutral"
        assert stats["clutch_stats"]["1v1"] == {"total": 2, "attempts": 6, "winrate": 33.3}
        assert "opening_stats" in stats and "trading_stats" in stats

    def test_no_identity_is_empty_not_error(self, make):
        user = make.user(steam_id=None)
        stats = dashboard.build_player_stats(user, StatFilters())
        assert stats["total_matches"] == 0
        assert stats["average_kd"] == {"value": 0, "trend": "neutral", "change": 0.0}


class TestUtilityStats:
    def test_lower_is_better_flags(self, make):
        _seed(make)
        user = make.user(steam_id=STEAM)
        stats = dashboard.build_utility_stats(user, StatFilters(past_match_count=2))
        assert stats["avg_blind_duration_enemy"] == {"value": 5.0, "trend": "neutral", "change": 0.0}
        assert stats["average_grenade_usage"]["value"] == 5.0


class TestSummary:
    def test_most_improved(self, make):
        _seed(make)
        user = make.user(name="s1mple", steam_id=STEAM)
        summary = dashboard.build_summary(user, StatFilters(past_match_count=2))

        names = [s["name"] for s in summary["most_improved_stats"]]
        assert len(names) == 2
        assert set(names) <= {"Win Rate", "K/D Ratio", "Average Kills", "Aim Rating"}
        assert summary["least_improved_stats"] is None
        assert summary["average_aim_rating"] == {"value": 60.0, "max": 100}
        card = summary["player_card"]
        assert card["username"] == "s1mple"
        assert card["total_matches"] == 2
        assert set(card["player_complexion"]) == {"opener", "closer", "support", "fragger"}


class TestStatsCache:
    """Memoisation and per-user invalidation."""

    def test_remember_calls_builder_once(self, app):
        calls = []

        def build():
            calls.append(1)
            return {"n": len(calls)}

        assert remember("dashboard", "t", STEAM, {"a": 1}, build) == {"n": 1}
        assert remember("dashboard", "t", STEAM, {"a": 1}, build) == {"n": 1}
        assert len(calls) == 1

    def test_filters_change_key(self, app):
        assert cache_key("dashboard", "t", STEAM, {"a": 1}) != cache_key("dashboard", "t", STEAM, {"a": 2})

    def test_key_format(self, app):
        key = cache_key("dashboard", "summary", STEAM, {})
        assert key.startswith(f"dashboard:summary:{STEAM}:g0:")

    def test_unlinked_users_do_not_share_entries(self, make):
        alice = make.user(name="alice", steam_id=None)
        bob = make.user(name="bob", steam_id=None)

        assert dashboard.get_summary(alice, StatFilters())["player_card"]["username"] == "alice"
        assert dashboard.get_summary(bob, StatFilters())["player_card"]["username"] == "bob"

    def test_identity_falls_back_to_user_row(self, make):
        assert stats_identity(make.user(steam_id=STEAM)) == STEAM
        unlinked = make.user(steam_id=None)
        assert stats_identity(unlinked) == f"user-{unlinked.id}"

    def test_invalidation_is_per_user(self, app):
        remember("dashboard", "t", STEAM, {}, lambda: "mine")
        remember("dashboard", "t", "other", {}, lambda: "theirs")

        invalidate_user_stats(STEAM)

        assert remember("dashboard", "t", STEAM, {}, lambda: "fresh") == "fresh"
        assert remember("dashboard", "t", "other", {}, lambda: "fresh") == "theirs"

    def test_cached_tab_survives_new_data(self, make):
        _seed(make)
        user = make.user(steam_id=STEAM)
        filters = StatFilters(past_match_count=2)
        before = dashboard.get_player_stats(user, filters)

        m = make.match()
        make.event(m, STEAM, kills=40, deaths=10)
        assert dashboard.get_player_stats(user, filters) == before

        invalidate_user_stats(STEAM)
        assert dashboard.get_player_stats(user, filters) != before

    def test_ttl_from_config(self, app, monkeypatch):
        seen = {}
        real_set = cache.set

        def spy(key, value, timeout=None):
            seen["timeout"] = timeout
            return real_set(key, value, timeout=timeout)

        monkeypatch.setattr(cache, "set", spy)
        remember("dashboard", "ttl", STEAM, {}, lambda: 1)
        assert seen["timeout"] == 900
