# demostats/cli.py
import json
import click
from datetime import datetime

from demostats.extensions import db
from demostats.models import Clan
from demostats.services.discord_embeds import leaderboard_embed
from demostats.services.leaderboards import (
    LeaderboardType,
    calculate_all_leaderboards,
    calculate_leaderboard,
    get_leaderboard,
    period_window,
)
from demostats.services.stats_cache import invalidate_user_stats
from demostats.services.stats_warmup import warm_cache_for_match


def _parse_now(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected ISO date/time, got {value!r}", param_hint="--now")


def register_cli(app):
    @app.cli.command("calculate-leaderboards")
    @click.option("--clan-id", type=int, default=None, help="Only this clan (default: every clan)")
    @click.option("--type", "leaderboard_type", type=click.Choice(LeaderboardType.values(), case_sensitive=False),
                  default=None, help="Only this leaderboard type (default: all)")
    @click.option("--period", type=click.Choice(["week", "month"]), multiple=True,
                  help="Window(s) to compute; repeatable. Default: week and month")
    @click.option("--now", default=None, help="Pretend it is this ISO timestamp (UTC)")
    def calculate_leaderboards_cmd(clan_id, leaderboard_type, period, now):
        """
        Rank clan members and upsert the leaderboard snapshots.
        Without --clan-id/--type this is the same run the cron endpoint triggers.
        """
        now_dt = _parse_now(now)
        periods = list(period) or ["week", "month"]

        if clan_id is None and leaderboard_type is None:
            stats = calculate_all_leaderboards(now=now_dt, periods=periods)
            click.echo(
                f"Leaderboards complete: clans={stats['clans']}, boards={stats['boards']}, "
                f"entries={stats['entries']}, failed={stats['failed']}"
            )
            return

        if clan_id is not None:
            clan = db.session.get(Clan, clan_id)
            if clan is None:
                raise click.ClickException(f"clan {clan_id} not found")
            clans = [clan]
        else:
            clans = Clan.query.order_by(Clan.id.asc()).all()
        types = [LeaderboardType.parse(leaderboard_type)] if leaderboard_type else list(LeaderboardType)

        total = 0
        for clan in clans:
            for lt in types:
                for p in periods:
                    start, end = period_window(p, now_dt)
                    entries = calculate_leaderboard(clan, lt, start, end)
                    total += len(entries)
                    click.echo(f"clan={clan.id} type={lt.value} period={p} entries={len(entries)}")
        click.echo(f"Done: {total} entries upserted")

    @app.cli.command("leaderboard-report")
    @click.argument("clan_id", type=int)
    @click.argument("leaderboard_type", type=click.Choice(LeaderboardType.values(), case_sensitive=False))
    @click.option("--period", type=click.Choice(["week", "month"]), default="week")
    @click.option("--now", default=None, help="Pretend it is this ISO timestamp (UTC)")
    def leaderboard_report(clan_id, leaderboard_type, period, now):
        """Print the stored leaderboard as a Discord interaction payload (JSON)."""
        clan = db.session.get(Clan, clan_id)
        if clan is None:
            raise click.ClickException(f"clan {clan_id} not found")
        lt = LeaderboardType.parse(leaderboard_type)
        start, end = period_window(period, _parse_now(now))
        payload = leaderboard_embed(clan, lt, get_leaderboard(clan.id, lt, start, end), start, end, period)
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))

    @app.cli.command("invalidate-stats-cache")
    @click.argument("steam_id")
    def invalidate_stats_cache(steam_id):
        """Drop every cached dashboard/aim payload for one player."""
        gen = invalidate_user_stats(steam_id)
        click.echo(f"Stats cache invalidated for {steam_id} (generation={gen})")

    @app.cli.command("warm-stats-cache")
    @click.argument("match_id", type=int)
    def warm_stats_cache(match_id):
        """Rebuild cached dashboard tabs for everyone in a match."""
        stats = warm_cache_for_match(match_id)
        if stats is None:
            raise click.ClickException(f"match {match_id} not found")
        click.echo(f"Warmed {stats['warmed']}/{stats['users']} users for match {match_id} (failed={stats['failed']})")
