from flask import Blueprint, jsonify, current_app, request, abort
from flask_login import login_required, current_user

from demostats.services import aim, dashboard, map_stats, ranks
from demostats.services.periods import FilterError, StatFilters

bp = Blueprint("api", __name__, url_prefix="/api")


def _filters() -> StatFilters:
    try:
        return StatFilters.from_args(request.args)
    except FilterError as e:
        abort(400, description=str(e))


def _no_cache(resp):
    # payloads are cached server-side; browsers should always ask again
    resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    resp.headers["Vary"] = "Cookie"
    return resp


def _respond(payload, tab: str):
    current_app.logger.info(
        "stats %s user=%s steam_id=%s", tab, getattr(current_user, "id", "?"), getattr(current_user, "steam_id", None)
    )
    return _no_cache(jsonify(payload))


# ---------------- dashboard ----------------

@bp.get("/dashboard/player-stats")
@login_required
def player_stats():
    return _respond(dashboard.get_player_stats(current_user, _filters()), "player-stats")


@bp.get("/dashboard/aim-stats")
@login_required
def dashboard_aim_stats():
    return _respond(dashboard.get_aim_stats(current_user, _filters()), "aim-stats")


@bp.get("/dashboard/utility-stats")
@login_required
def utility_stats():
    return _respond(dashboard.get_utility_stats(current_user, _filters()), "utility-stats")


@bp.get("/dashboard/summary")
@login_required
def summary():
    return _respond(dashboard.get_summary(current_user, _filters()), "summary")


@bp.get("/dashboard/map-stats")
@login_required
def dashboard_map_stats():
    return _respond(map_stats.get_map_stats(current_user, _filters()), "map-stats")


@bp.get("/dashboard/rank-stats")
@login_required
def rank_stats():
    return _respond(ranks.get_rank_stats(current_user, _filters()), "rank-stats")


# ---------------- aim page ----------------

@bp.get("/aim")
@login_required
def aim_stats():
    return _respond(aim.get_aim_stats(current_user, _filters()), "aim")


@bp.get("/aim/weapons")
@login_required
def aim_weapons():
    return _respond({"weapons": aim.get_available_weapons(current_user, _filters())}, "aim-weapons")


@bp.get("/aim/hit-distribution")
@login_required
def aim_hit_distribution():
    weapon = (request.args.get("weapon") or "").strip() or None
    return _respond(aim.get_hit_distribution(current_user, _filters(), weapon), "aim-hit-distribution")
