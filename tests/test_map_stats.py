"""Tests for the per-map breakdown."""

from __future__ import annotations

from demostats.services.map_stats import build_map_stats, group_by_map
from demostats.services.periods import StatFilters, resolve_periods
from demostats.services.win_status import WinStatusLookup

STEAM = "76561198000000003"


class TestWinStatusLookup:
    """Team membership vs winning team."""

    def test_win_and_loss(self, make):
        won = make.match(winning_team="CT")
        lost = make.match(winning_team="T")
        unknown = make.match(winning_team="CT")
        make.played(won, STEAM, team="CT")
        make.played(lost, STEAM, team="CT")

        lookup = WinStatusLookup(STEAM, [won, lost, unknown])
        assert lookup.did_win(won.id)
        assert not lookup.did_win(lost.id)
        # no match_players row -> not a win
        assert not lookup.did_win(unknown.id)
        assert lookup.count_wins([won.id, lost.id, unknown.id]) == 1

    def test_no_identity(self, make):
        m = make.match()
        lookup = WinStatusLookup(None, [m])
        assert not lookup.did_win(m.id)


class TestGroupByMap:
    """Grouping the current window by map."""

    def _seed(self, make):
        for i in range(3):
            m = make.match(map="de_mirage", winning_team="CT" if i < 2 else "T")
            make.played(m, STEAM, team="CT")
            make.event(m, STEAM, kills=20, deaths=10, assists=3, adr=80, first_kills=2, first_deaths=1)
        m = make.match(map="de_nuke", winning_team="T")
        make.played(m, STEAM, team="CT")
        make.event(m, STEAM, kills=10, deaths=20, assists=1, adr=60)

    def test_counts_and_order(self, make):
        self._seed(make)
        rows = resolve_periods(STEAM, StatFilters()).current
        maps = group_by_map(STEAM, rows)

        assert [m["map"] for m in maps] == ["de_mirage", "de_nuke"]
        mirage = maps[0]
        assert mirage["matches"] == 3
        assert mirage["wins"] == 2
        assert mirage["win_rate"] == 66.7
        assert mirage["avg_kills"] == 20.0
        assert mirage["avg_kd"] == 2.0
        assert mirage["avg_adr"] == 80.0
        assert mirage["avg_opening_kills"] == 2.0

        nuke = maps[1]
        assert nuke["wins"] == 0
        assert nuke["avg_kd"] == 0.5

    def test_complexion_present(self, make):
        self._seed(make)
        maps = group_by_map(STEAM, resolve_periods(STEAM, StatFilters()).current)
        assert set(maps[0]["avg_complexion"]) == {"opener", "closer", "support", "fragger"}

    def test_unscorable_matches_average_to_zero(self, make):
        m = make.match(map="de_ancient")
        make.event(m, STEAM, kills=5, deaths=5, total_rounds_played=0)
        maps = group_by_map(STEAM, resolve_periods(STEAM, StatFilters()).current)
        assert maps[0]["avg_complexion"] == {"opener": 0, "closer": 0, "support": 0, "fragger": 0}

    def test_build_payload(self, make):
        self._seed(make)
        user = make.user(steam_id=STEAM)
        payload = build_map_stats(user, StatFilters())
        assert payload["total_matches"] == 4
        assert len(payload["maps"]) == 2

    def test_no_matches(self, make):
        user = make.user(steam_id=None)
        assert build_map_stats(user, StatFilters()) == {"maps": [], "total_matches": 0}
