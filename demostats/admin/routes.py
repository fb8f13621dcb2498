# demostats/admin/routes.py
from __future__ import annotations

from flask import request, jsonify, abort, current_app

from demostats.services.discord_embeds import handle_leaderboard_command
from demostats.services.leaderboards import calculate_all_leaderboards
from demostats.services.stats_cache import invalidate_user_stats
from demostats.services.stats_warmup import warm_cache_for_match

from . import bp  # use the blueprint from __init__.py


def _require_cron_token():
    # Simple shared-secret auth (no login)
    token = request.args.get("token") or request.headers.get("X-CRON-TOKEN")
    if not token or token != current_app.config.get("CRON_SECRET"):
        abort(401)


@bp.post("/internal/cron/leaderboards")
def cron_leaderboards():
    _require_cron_token()

    periods = [p.strip() for p in (request.args.get("periods") or "week,month").split(",") if p.strip()]
    try:
        stats = calculate_all_leaderboards(periods=periods)
    except ValueError as e:
        abort(400, description=str(e))
    return jsonify({"ok": True, **stats}), 200


@bp.post("/internal/stats-cache/invalidate")
def cron_invalidate_stats():
    """Called by the demo parser after it stores a new match for a player."""
    _require_cron_token()

    steam_id = (request.get_json(silent=True) or {}).get("steam_id") or request.args.get("steam_id")
    if not steam_id:
        abort(400, description="steam_id is required.")
    generation = invalidate_user_stats(str(steam_id))
    return jsonify({"ok": True, "steam_id": str(steam_id), "generation": generation}), 200


@bp.post("/internal/stats-cache/warm-match")
def cron_warm_match():
    """Called by the demo parser once a whole match is stored."""
    _require_cron_token()

    raw = (request.get_json(silent=True) or {}).get("match_id") or request.args.get("match_id")
    try:
        match_id = int(raw)
    except (TypeError, ValueError):
        abort(400, description="match_id must be an integer.")
    stats = warm_cache_for_match(match_id)
    if stats is None:
        abort(404, description=f"Match {match_id} not found.")
    return jsonify({"ok": True, **stats}), 200


@bp.post("/internal/discord/leaderboard")
def discord_leaderboard():
    """Interaction payload in, interaction response out (the bot relays it)."""
    _require_cron_token()
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(400, description="JSON body required.")
    return jsonify(handle_leaderboard_command(payload)), 200
