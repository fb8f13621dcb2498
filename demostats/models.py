from datetime import datetime, timezone
from flask_login import UserMixin
from sqlalchemy import func
from demostats.extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    # linked Steam identity; None until the user connects their account
    steam_id = db.Column(db.String(32), unique=True, index=True, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class Player(db.Model):
    __tablename__ = "players"

    id = db.Column(db.Integer, primary_key=True)
    steam_id = db.Column(db.String(32), unique=True, index=True, nullable=False)
    name = db.Column(db.String(128), nullable=False)


RANK_TYPES = ("competitive", "premier", "faceit")


class PlayerRank(db.Model):
    """
    One rank reading, stored when a match is parsed or a FACEIT profile is fetched.
    `map` is only set for competitive, which is ranked per map.
    """
    __tablename__ = "player_ranks"

    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    rank_type = db.Column(db.String(16), nullable=False, index=True)  # competitive | premier | faceit
    map = db.Column(db.String(64), nullable=True)
    rank = db.Column(db.String(64), nullable=False)  # "Global Elite", "Level 8", "15,230"
    rank_value = db.Column(db.Integer, nullable=False)  # numeric, for ordering and trend
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    player = db.relationship("Player", backref=db.backref("ranks", lazy=True, cascade="all, delete-orphan"), lazy=True)

    __table_args__ = (
        db.Index("ix_player_ranks_player_type_created", "player_id", "rank_type", "created_at"),
    )


class GameMatch(db.Model):
    """One parsed demo. Rows are written by the parsing pipeline."""
    __tablename__ = "matches"

    id = db.Column(db.Integer, primary_key=True)
    match_hash = db.Column(db.String(64), unique=True, nullable=True)
    map = db.Column(db.String(64), nullable=True, index=True)
    match_type = db.Column(db.String(32), nullable=True, index=True)
    winning_team = db.Column(db.String(8), nullable=True)
    winning_team_score = db.Column(db.Integer)
    losing_team_score = db.Column(db.Integer)
    total_rounds = db.Column(db.Integer)
    start_timestamp = db.Column(db.DateTime, nullable=True)
    end_timestamp = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    players = db.relationship("MatchPlayer", backref="match", lazy=True, cascade="all, delete-orphan")


class MatchPlayer(db.Model):
    __tablename__ = "match_players"

    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    team = db.Column(db.String(8), nullable=False)

    player = db.relationship("Player", backref="match_players", lazy=True)

    __table_args__ = (
        db.UniqueConstraint("match_id", "player_id", name="uq_match_player_once"),
    )


class PlayerMatchEvent(db.Model):
    """Per (player, match) totals: combat, opening duels, trading, clutches, utility."""
    __tablename__ = "player_match_events"

    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    player_steam_id = db.Column(db.String(32), nullable=False, index=True)

    # combat
    kills = db.Column(db.Integer, nullable=False, default=0)
    assists = db.Column(db.Integer, nullable=False, default=0)
    deaths = db.Column(db.Integer, nullable=False, default=0)
    damage = db.Column(db.Integer, nullable=False, default=0)
    adr = db.Column(db.Float, nullable=False, default=0)
    headshots = db.Column(db.Integer, nullable=False, default=0)
    first_kills = db.Column(db.Integer, nullable=False, default=0)
    first_deaths = db.Column(db.Integer, nullable=False, default=0)
    average_round_time_of_death = db.Column(db.Float, nullable=False, default=0)
    average_time_to_contact = db.Column(db.Float, nullable=False, default=0)
    kills_with_awp = db.Column(db.Integer, nullable=False, default=0)
    average_impact = db.Column(db.Float, nullable=False, default=0)
    match_swing_percent = db.Column(db.Float, nullable=False, default=0)
    total_rounds_played = db.Column(db.Integer, nullable=False, default=0)

    # utility
    damage_dealt = db.Column(db.Integer, nullable=False, default=0)
    flashes_thrown = db.Column(db.Integer, nullable=False, default=0)
    fire_grenades_thrown = db.Column(db.Integer, nullable=False, default=0)
    smokes_thrown = db.Column(db.Integer, nullable=False, default=0)
    hes_thrown = db.Column(db.Integer, nullable=False, default=0)
    decoys_thrown = db.Column(db.Integer, nullable=False, default=0)
    friendly_flash_duration = db.Column(db.Float, nullable=False, default=0)
    enemy_flash_duration = db.Column(db.Float, nullable=False, default=0)
    friendly_players_affected = db.Column(db.Integer, nullable=False, default=0)
    enemy_players_affected = db.Column(db.Integer, nullable=False, default=0)
    flashes_leading_to_kills = db.Column(db.Integer, nullable=False, default=0)
    flashes_leading_to_deaths = db.Column(db.Integer, nullable=False, default=0)
    average_grenade_effectiveness = db.Column(db.Float, nullable=False, default=0)

    # trading
    total_successful_trades = db.Column(db.Integer, nullable=False, default=0)
    total_possible_trades = db.Column(db.Integer, nullable=False, default=0)
    total_traded_deaths = db.Column(db.Integer, nullable=False, default=0)
    total_possible_traded_deaths = db.Column(db.Integer, nullable=False, default=0)

    # clutches
    clutch_wins_1v1 = db.Column(db.Integer, nullable=False, default=0)
    clutch_wins_1v2 = db.Column(db.Integer, nullable=False, default=0)
    clutch_wins_1v3 = db.Column(db.Integer, nullable=False, default=0)
    clutch_wins_1v4 = db.Column(db.Integer, nullable=False, default=0)
    clutch_wins_1v5 = db.Column(db.Integer, nullable=False, default=0)
    clutch_attempts_1v1 = db.Column(db.Integer, nullable=False, default=0)
    clutch_attempts_1v2 = db.Column(db.Integer, nullable=False, default=0)
    clutch_attempts_1v3 = db.Column(db.Integer, nullable=False, default=0)
    clutch_attempts_1v4 = db.Column(db.Integer, nullable=False, default=0)
    clutch_attempts_1v5 = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())

    match = db.relationship("GameMatch", backref=db.backref("player_events", cascade="all, delete-orphan"), lazy=True)

    __table_args__ = (
        db.Index("ix_pme_match_player", "match_id", "player_steam_id"),
    )

    @property
    def grenades_thrown(self) -> int:
        return (
            (self.flashes_thrown or 0)
            + (self.fire_grenades_thrown or 0)
            + (self.smokes_thrown or 0)
            + (self.hes_thrown or 0)
            + (self.decoys_thrown or 0)
        )

    @property
    def clutch_wins(self) -> int:
        return sum(getattr(self, f"clutch_wins_1v{n}") or 0 for n in range(1, 6))

    @property
    def clutch_attempts(self) -> int:
        return sum(getattr(self, f"clutch_attempts_1v{n}") or 0 for n in range(1, 6))


class _AimCountersMixin:
    shots_fired = db.Column(db.Integer, nullable=False, default=0)
    shots_hit = db.Column(db.Integer, nullable=False, default=0)
    spraying_shots_fired = db.Column(db.Integer, nullable=False, default=0)
    spraying_shots_hit = db.Column(db.Integer, nullable=False, default=0)
    spraying_accuracy = db.Column(db.Float, nullable=False, default=0)
    average_crosshair_placement_x = db.Column(db.Float, nullable=False, default=0)
    average_crosshair_placement_y = db.Column(db.Float, nullable=False, default=0)
    headshot_accuracy = db.Column(db.Float, nullable=False, default=0)
    average_time_to_damage = db.Column(db.Float, nullable=False, default=0)
    head_hits_total = db.Column(db.Integer, nullable=False, default=0)
    upper_chest_hits_total = db.Column(db.Integer, nullable=False, default=0)
    chest_hits_total = db.Column(db.Integer, nullable=False, default=0)
    legs_hits_total = db.Column(db.Integer, nullable=False, default=0)


class PlayerMatchAimEvent(_AimCountersMixin, db.Model):
    __tablename__ = "player_match_aim_events"

    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    player_steam_id = db.Column(db.String(32), nullable=False, index=True)
    aim_rating = db.Column(db.Float, nullable=False, default=0)

    __table_args__ = (
        db.Index("ix_pmae_match_player", "match_id", "player_steam_id"),
    )


class PlayerMatchAimWeaponEvent(_AimCountersMixin, db.Model):
    __tablename__ = "player_match_aim_weapon_events"

    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    player_steam_id = db.Column(db.String(32), nullable=False, index=True)
    weapon_name = db.Column(db.String(64), nullable=False)

    __table_args__ = (
        db.Index("ix_pmawe_match_player_weapon", "match_id", "player_steam_id", "weapon_name"),
    )


class Clan(db.Model):
    __tablename__ = "clans"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    owned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    discord_guild_id = db.Column(db.String(32), unique=True, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    members = db.relationship(
        "ClanMember", backref="clan", lazy=True,
        cascade="all, delete-orphan", order_by="ClanMember.id",
    )


class ClanMember(db.Model):
    __tablename__ = "clan_members"

    id = db.Column(db.Integer, primary_key=True)
    clan_id = db.Column(db.Integer, db.ForeignKey("clans.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    joined_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", backref="clan_memberships", lazy=True)

    __table_args__ = (
        db.UniqueConstraint("clan_id", "user_id", name="uq_clan_member_once"),
    )


class ClanMatch(db.Model):
    __tablename__ = "clan_matches"

    id = db.Column(db.Integer, primary_key=True)
    clan_id = db.Column(db.Integer, db.ForeignKey("clans.id", ondelete="CASCADE"), nullable=False, index=True)
    match_id = db.Column(db.Integer, db.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)

    match = db.relationship("GameMatch", lazy=True)

    __table_args__ = (
        db.UniqueConstraint("clan_id", "match_id", name="uq_clan_match_once"),
    )


class ClanLeaderboard(db.Model):
    """Ranked snapshot of one member for (clan, type, window)."""
    __tablename__ = "clan_leaderboards"

    id = db.Column(db.Integer, primary_key=True)
    clan_id = db.Column(db.Integer, db.ForeignKey("clans.id", ondelete="CASCADE"), nullable=False, index=True)
    leaderboard_type = db.Column(db.String(32), nullable=False)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    value = db.Column(db.Numeric(10, 2), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=func.now())

    user = db.relationship("User", lazy=True)

    __table_args__ = (
        db.UniqueConstraint("clan_id", "leaderboard_type", "start_date", "end_date", "user_id", name="uq_clan_leaderboard_entry"),
        db.Index("ix_clan_leaderboards_lookup", "clan_id", "leaderboard_type", "start_date", "end_date"),
    )

    def to_dict(self):
        user = getattr(self, "user", None)
        return {
            "position": self.position,
            "user_id": self.user_id,
            "name": user.name if user else None,
            "steam_id": user.steam_id if user else None,
            "value": float(self.value) if self.value is not None else None,
        }
