# demostats/services/discord_embeds.py
"""
Discord interaction payloads for the /leaderboard slash command.
Only builds the JSON; delivering it is the bot's job.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from flask import current_app

from demostats.models import Clan, ClanLeaderboard
from demostats.services.leaderboards import LeaderboardType, get_leaderboard, period_window
from demostats.services.time_utils import format_period

CHANNEL_MESSAGE_WITH_SOURCE = 4
EPHEMERAL = 64
EMBED_COLOR = 0x5865F2
TROPHIES = {1: "🥇", 2: "🥈", 3: "🥉"}
# period -> (title adjective, phrase for the empty message); None is an explicit date range
PERIOD_WORDING = {
    "week": ("Weekly ", "this week"),
    "month": ("Monthly ", "this month"),
    None: ("", "for this period"),
}


def message_response(content: str) -> Dict[str, Any]:
    return {"type": CHANNEL_MESSAGE_WITH_SOURCE, "data": {"content": content, "flags": EPHEMERAL}}


def error_response(message: str) -> Dict[str, Any]:
    return message_response(f"❌ {message}")


def leaderboard_embed(clan: Clan, leaderboard_type: LeaderboardType, entries: List[ClanLeaderboard],
                      start: datetime, end: datetime, period: Optional[str] = "week") -> Dict[str, Any]:
    adjective, phrase = PERIOD_WORDING.get(period, PERIOD_WORDING[None])
    if not entries:
        return message_response(f"No leaderboard data available for {leaderboard_type.label} {phrase}.")

    limit = int(current_app.config.get("DISCORD_EMBED_LIMIT", 10))
    fields = []
    for entry in entries[:limit]:
        user = getattr(entry, "user", None)
        name = (user.name if user else None) or "Unknown"
        trophy = TROPHIES.get(entry.position, "")
        fields.append({
            "name": f"{trophy} #{entry.position} {name}".strip(),
            "value": f"{float(entry.value):.2f}",
            "inline": False,
        })

    prefix = f"{leaderboard_type.emoji} " if leaderboard_type.emoji else ""
    return {
        "type": CHANNEL_MESSAGE_WITH_SOURCE,
        "data": {
            "embeds": [{
                "title": f"{prefix}{adjective}{leaderboard_type.label} Leaderboard",
                "description": f"Period: {format_period(start, end)}",
                "fields": fields,
                "footer": {"text": clan.name},
                "color": EMBED_COLOR,
            }],
            "flags": EPHEMERAL,
        },
    }


def _option(payload: Dict[str, Any], name: str) -> Optional[str]:
    for opt in (payload.get("data") or {}).get("options") or []:
        if opt.get("name") == name:
            return opt.get("value")
    return None


def handle_leaderboard_command(payload: Dict[str, Any], now: datetime | None = None) -> Dict[str, Any]:
    """Answer a /leaderboard interaction with this week's board for the guild's clan."""
    guild_id = payload.get("guild_id")
    if not guild_id:
        return error_response("This command can only be used in a Discord server.")

    raw_type = _option(payload, "leaderboard_type")
    if not raw_type:
        return error_response("Leaderboard type is required.")
    try:
        leaderboard_type = LeaderboardType.parse(raw_type)
    except ValueError:
        return error_response("Invalid leaderboard type. Valid types: " + ", ".join(LeaderboardType.values()))

    clan = Clan.query.filter_by(discord_guild_id=str(guild_id)).first()
    if clan is None:
        return error_response("This Discord server is not linked to any clan.")

    start, end = period_window("week", now)
    entries = get_leaderboard(clan.id, leaderboard_type, start, end)
    return leaderboard_embed(clan, leaderboard_type, entries, start, end)
