# demostats/services/win_status.py
from __future__ import annotations

from typing import Dict, Iterable, Optional

from demostats.extensions import db
from demostats.models import GameMatch, MatchPlayer, Player


class WinStatusLookup:
    """
    Which team a player was on for a fixed set of matches.

    Built once per aggregation call:
      match_players JOIN players ON match_players.player_id = players.id
      WHERE players.steam_id = :steam_id AND match_players.match_id IN (:ids)
    """

    def __init__(self, steam_id: Optional[str], matches: Iterable[GameMatch]):
        self._winners: Dict[int, Optional[str]] = {m.id: m.winning_team for m in matches}
        self._teams: Dict[int, str] = {}
        if steam_id and self._winners:
            rows = (
                db.session.query(MatchPlayer.match_id, MatchPlayer.team)
                .join(Player, MatchPlayer.player_id == Player.id)
                .filter(Player.steam_id == steam_id, MatchPlayer.match_id.in_(list(self._winners)))
                .all()
            )
            self._teams = {match_id: team for match_id, team in rows}

    def did_win(self, match_id: int) -> bool:
        team = self._teams.get(match_id)
        winner = self._winners.get(match_id)
        return team is not None and winner is not None and team == winner

    def count_wins(self, match_ids: Iterable[int]) -> int:
        return sum(1 for mid in match_ids if self.did_win(mid))
