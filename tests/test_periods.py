"""Tests for filter parsing and current/previous window resolution."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from demostats.services.periods import FilterError, StatFilters, find_match_events_for_player, resolve_periods

STEAM = "76561198000000001"


class TestStatFiltersFromArgs:
    """Parsing request arguments into StatFilters."""

    def test_defaults(self, app):
        f = StatFilters.from_args({})
        assert f == StatFilters(past_match_count=10)

    def test_full(self, app):
        f = StatFilters.from_args({
            "date_from": "2026-10-01", "date_to": "2026-10-05",
            "game_type": "premier", "map": "de_mirage", "past_match_count": "20",
        })
        assert f.date_from == date(2026, 10, 1)
        assert f.date_to == date(2026, 10, 5)
        assert f.game_type == "premier"
        assert f.map == "de_mirage"
        assert f.past_match_count == 20

    def test_blank_values_are_absent(self, app):
        f = StatFilters.from_args({"map": "  ", "date_from": ""})
        assert f.map is None
        assert f.date_from is None

    @pytest.mark.parametrize("args", [
        {"past_match_count": "abc"},
        {"past_match_count": "0"},
        {"past_match_count": "1000"},
        {"date_from": "yesterday"},
        {"date_from": "2026-10-05", "date_to": "2026-10-01"},
    ])
    def test_invalid(self, app, args):
        with pytest.raises(FilterError):
            StatFilters.from_args(args)

    def test_key_dict_is_json_safe(self, app):
        f = StatFilters(date_from=date(2026, 1, 2))
        assert f.as_key_dict()["date_from"] == "2026-01-02"


class TestFindMatchEvents:
    """The single event-store query."""

    def test_no_steam_id_is_empty(self, make):
        m = make.match()
        make.event(m, STEAM)
        assert find_match_events_for_player(None, StatFilters()) == []
        assert find_match_events_for_player("", StatFilters()) == []

    def test_only_this_player_newest_first(self, make):
        old = make.match(created_at=datetime(2026, 10, 1, 12))
        new = make.match(created_at=datetime(2026, 10, 3, 12))
        make.event(old, STEAM)
        make.event(new, STEAM)
        make.event(new, "someone-else")

        rows = find_match_events_for_player(STEAM, StatFilters())
        assert [m.id for _, m in rows] == [new.id, old.id]
        assert all(e.player_steam_id == STEAM for e, _ in rows)

    def test_map_and_type_filters(self, make):
        a = make.match(map="de_mirage", match_type="premier")
        b = make.match(map="de_inferno", match_type="premier")
        c = make.match(map="de_mirage", match_type="wingman")
        for m in (a, b, c):
            make.event(m, STEAM)

        rows = find_match_events_for_player(STEAM, StatFilters(map="de_mirage", game_type="premier"))
        assert [m.id for _, m in rows] == [a.id]

    def test_date_from_alone_is_inclusive(self, make):
        before = make.match(created_at=datetime(2026, 9, 30, 23, 59))
        on_day = make.match(created_at=datetime(2026, 10, 1, 0, 0))
        for m in (before, on_day):
            make.event(m, STEAM)

        rows = find_match_events_for_player(STEAM, StatFilters(date_from=date(2026, 10, 1)))
        assert [m.id for _, m in rows] == [on_day.id]

    def test_date_to_alone_covers_whole_day(self, make):
        late_on_day = make.match(created_at=datetime(2026, 10, 5, 23, 30))
        next_day = make.match(created_at=datetime(2026, 10, 6, 0, 0))
        for m in (late_on_day, next_day):
            make.event(m, STEAM)

        rows = find_match_events_for_player(STEAM, StatFilters(date_to=date(2026, 10, 5)))
        assert [m.id for _, m in rows] == [late_on_day.id]

    def test_offset_and_limit(self, make):
        matches = [make.match() for _ in range(4)]
        for m in matches:
            make.event(m, STEAM)

        rows = find_match_events_for_player(STEAM, StatFilters(), offset=1, limit=2)
        assert [m.id for _, m in rows] == [matches[2].id, matches[1].id]


class TestResolvePeriods:
    """Current = newest N, previous = the N before those."""

    def test_windows(self, make):
        matches = [make.match() for _ in range(12)]
        for m in matches:
            make.event(m, STEAM)

        windows = resolve_periods(STEAM, StatFilters(past_match_count=5))
        newest_first = [m.id for m in reversed(matches)]
        assert windows.current_match_ids == newest_first[:5]
        assert windows.previous_match_ids == newest_first[5:10]

    def test_short_history(self, make):
        matches = [make.match() for _ in range(3)]
        for m in matches:
            make.event(m, STEAM)

        windows = resolve_periods(STEAM, StatFilters(past_match_count=5))
        assert len(windows.current) == 3
        assert windows.previous == []

    def test_no_identity(self, make):
        windows = resolve_periods(None, StatFilters())
        assert windows.current == [] and windows.previous == []
