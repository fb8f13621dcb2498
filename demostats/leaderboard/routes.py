from __future__ import annotations
from datetime import datetime
from typing import Optional, Tuple

from flask import jsonify, request, abort
from flask_login import login_required, current_user

from demostats.extensions import db
from demostats.models import Clan, ClanMember
from demostats.services.discord_embeds import leaderboard_embed
from demostats.services.leaderboards import LeaderboardType, get_leaderboard, period_window
from demostats.services.time_utils import end_of_day, start_of_day
from . import bp


# --- helpers ---

def _clan_for_member(clan_id: int) -> Clan:
    clan = db.session.get(Clan, clan_id)
    if clan is None:
        abort(404, description="Clan not found.")
    is_member = ClanMember.query.filter_by(clan_id=clan.id, user_id=current_user.id).first() is not None
    if not is_member:
        abort(403, description="You are not a member of this clan.")
    return clan


def _type_or_404(raw: str) -> LeaderboardType:
    try:
        return LeaderboardType.parse(raw)
    except ValueError as e:
        abort(404, description=str(e))


def _window() -> Tuple[datetime, datetime, Optional[str]]:
    """
    ?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD picks an explicit stored window;
    otherwise ?period=week|month (default week) ending today.
    The third item is the period name, None for an explicit range.
    """
    start_raw = request.args.get("start_date")
    end_raw = request.args.get("end_date")
    if start_raw or end_raw:
        if not (start_raw and end_raw):
            abort(400, description="start_date and end_date must be given together.")
        try:
            start = start_of_day(datetime.fromisoformat(start_raw).date())
            end = end_of_day(datetime.fromisoformat(end_raw).date())
        except ValueError:
            abort(400, description="start_date/end_date must be ISO dates (YYYY-MM-DD).")
        return start, end, None

    period = request.args.get("period", "week")
    try:
        return (*period_window(period), period)
    except ValueError as e:
        abort(400, description=str(e))


def _payload(clan: Clan, leaderboard_type: LeaderboardType, start: datetime, end: datetime) -> dict:
    entries = get_leaderboard(clan.id, leaderboard_type, start, end)
    return {
        "type": leaderboard_type.value,
        "label": leaderboard_type.label,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "entries": [e.to_dict() for e in entries],
    }


# --- routes ---

@bp.get("/clans/<int:clan_id>")
@login_required
def clan_leaderboards(clan_id: int):
    """Every leaderboard type for the clan over one window."""
    clan = _clan_for_member(clan_id)
    start, end, _ = _window()
    return jsonify({
        "clan": {"id": clan.id, "name": clan.name},
        "leaderboards": [_payload(clan, t, start, end) for t in LeaderboardType],
    })


@bp.get("/clans/<int:clan_id>/<leaderboard_type>")
@login_required
def clan_leaderboard(clan_id: int, leaderboard_type: str):
    clan = _clan_for_member(clan_id)
    lt = _type_or_404(leaderboard_type)
    start, end, _ = _window()
    return jsonify(dict(_payload(clan, lt, start, end), clan={"id": clan.id, "name": clan.name}))


@bp.get("/clans/<int:clan_id>/<leaderboard_type>/discord")
@login_required
def clan_leaderboard_discord(clan_id: int, leaderboard_type: str):
    """Preview of the Discord embed for the stored board."""
    clan = _clan_for_member(clan_id)
    lt = _type_or_404(leaderboard_type)
    start, end, period = _window()
    return jsonify(leaderboard_embed(clan, lt, get_leaderboard(clan.id, lt, start, end), start, end, period))
