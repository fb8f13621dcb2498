"""Tests for the aim page services."""

from __future__ import annotations

from demostats.services import aim
from demostats.services.periods import StatFilters

STEAM = "76561198000000004"


def _seed(make, n=4):
    """n matches, aim rating rising by 10 each match (oldest first)."""
    matches = []
    for i in range(n):
        m = make.match()
        make.event(m, STEAM)
        make.aim(m, STEAM, aim_rating=40 + 10 * i, shots_fired=100, shots_hit=25,
                 head_hits_total=5, chest_hits_total=20,
                 average_crosshair_placement_x=6, average_crosshair_placement_y=8,
                 average_time_to_damage=500)
        make.weapon(m, STEAM, "ak47", shots_fired=80, shots_hit=20, head_hits_total=5, chest_hits_total=15)
        make.weapon(m, STEAM, "deagle", shots_fired=20, shots_hit=5, chest_hits_total=5)
        matches.append(m)
    return matches


class TestBuildAimStats:
    """Current vs previous window aim stats."""

    def test_trends(self, make):
        _seed(make)
        user = make.user(steam_id=STEAM)
        payload = aim.build_aim_stats(user, StatFilters(past_match_count=2))

        stats = payload["aim_statistics"]
        # current = ratings 70, 60; previous = 50, 40
        assert stats["average_aim_rating"]["value"] == 65.0
        assert stats["average_aim_rating"]["trend"] == "up"
        assert stats["average_aim_rating"]["change"] == 44.4
        assert stats["average_accuracy"]["value"] == 25.0
        assert stats["average_headshot_percentage"]["value"] == 20.0
        assert stats["average_crosshair_placement"] == {"value": 10.0, "trend": "neutral", "change": 0.0}

    def test_weapon_breakdown(self, make):
        _seed(make)
        user = make.user(steam_id=STEAM)
        breakdown = aim.build_aim_stats(user, StatFilters(past_match_count=2))["weapon_breakdown"]
        assert [w["weapon"] for w in breakdown] == ["ak47", "deagle"]
        assert breakdown[0]["shots_fired"] == 160

    def test_no_identity(self, make):
        user = make.user(steam_id=None)
        stats = aim.build_aim_stats(user, StatFilters())["aim_statistics"]
        assert stats["average_aim_rating"] == {"value": 0, "trend": "neutral", "change": 0.0}


class TestAvailableWeapons:
    def test_all_first(self, make):
        _seed(make, n=1)
        user = make.user(steam_id=STEAM)
        weapons = aim.build_available_weapons(user, StatFilters())
        assert weapons == [
            {"value": "all", "label": "All Weapons"},
            {"value": "ak47", "label": "AK-47"},
            {"value": "deagle", "label": "Desert Eagle"},
        ]

    def test_no_matches(self, make):
        user = make.user(steam_id=STEAM)
        assert aim.build_available_weapons(user, StatFilters()) == [{"value": "all", "label": "All Weapons"}]


class TestHitDistribution:
    def test_all_weapons(self, make):
        _seed(make, n=2)
        user = make.user(steam_id=STEAM)
        dist = aim.build_hit_distribution(user, StatFilters())
        assert dist["shots_fired"] == 200
        assert dist["accuracy"] == 25.0
        assert dist["head_hits"] == 10

    def test_single_weapon(self, make):
        _seed(make, n=2)
        user = make.user(steam_id=STEAM)
        dist = aim.build_hit_distribution(user, StatFilters(), weapon="deagle")
        assert dist["shots_fired"] == 40
        assert dist["headshot_percentage"] == 0.0

    def test_unknown_weapon_is_empty(self, make):
        _seed(make, n=1)
        user = make.user(steam_id=STEAM)
        assert aim.build_hit_distribution(user, StatFilters(), weapon="awp") == {}


class TestAimCache:
    def test_cached_until_invalidated(self, make):
        from demostats.services.stats_cache import invalidate_user_stats

        _seed(make, n=1)
        user = make.user(steam_id=STEAM)
        first = aim.get_available_weapons(user, StatFilters())
        m = make.match()
        make.event(m, STEAM)
        make.weapon(m, STEAM, "awp", shots_fired=5, shots_hit=1)

        assert aim.get_available_weapons(user, StatFilters()) == first
        invalidate_user_stats(STEAM)
        assert {"value": "awp", "label": "AWP"} in aim.get_available_weapons(user, StatFilters())
