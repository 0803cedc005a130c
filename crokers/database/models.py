"""
SQLAlchemy ORM models for the crokinole league scorekeeping system.
"""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from crokers.database.db import Base


DEFAULT_TIMEZONE = "America/New_York"
DEFAULT_TARGET_POINTS = 100


class MatchType(str, enum.Enum):
    """Kind of participant on both sides of a game."""

    TEAMS = "teams"
    PLAYERS = "players"


class GameStatus(str, enum.Enum):
    """Game lifecycle status."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELED = "canceled"


class SideLabel(str, enum.Enum):
    """The two sides of a game."""

    A = "A"
    B = "B"


class DiscColor(str, enum.Enum):
    """Disc color played by a side."""

    WHITE = "white"
    BLACK = "black"
    NATURAL = "natural"


class UserRole(str, enum.Enum):
    """Account roles."""

    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"


class User(Base):
    """User accounts with email/password authentication."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String(16), nullable=False, default=UserRole.USER.value)
    image = Column(String, nullable=False, default="default.png")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    players = relationship("Player", back_populates="user")

    __table_args__ = (Index("idx_users_email", "email"),)


class League(Base):
    """League groups. Owns seasons."""

    __tablename__ = "leagues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    seasons = relationship("Season", back_populates="league")

    __table_args__ = (
        Index("idx_leagues_name", "name"),
        Index("idx_leagues_deleted_at", "deleted_at"),
    )


class Season(Base):
    """A season belongs to one league and owns games and team links."""

    __tablename__ = "seasons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(
        Integer, ForeignKey("leagues.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False
    )
    name = Column(String, nullable=False)
    starts_on = Column(Date, nullable=True)
    ends_on = Column(Date, nullable=True)
    timezone = Column(String, nullable=False, default=DEFAULT_TIMEZONE)  # IANA name
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    league = relationship("League", back_populates="seasons")
    team_links = relationship("TeamSeason", back_populates="season")

    __table_args__ = (
        CheckConstraint(
            "starts_on IS NULL OR ends_on IS NULL OR ends_on >= starts_on",
            name="ck_seasons_date_range",
        ),
        Index("idx_seasons_league", "league_id"),
        Index("idx_seasons_name", "name"),
        Index("idx_seasons_deleted_at", "deleted_at"),
    )


class Player(Base):
    """Player profiles, optionally linked to a user account."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    nickname = Column(String, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="players")

    __table_args__ = (
        Index("idx_players_user", "user_id"),
        Index("idx_players_nickname", "nickname"),
        Index("idx_players_deleted_at", "deleted_at"),
    )


class Team(Base):
    """A fixed pair of two distinct players, stored with player_a_id < player_b_id."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    player_a_id = Column(
        Integer, ForeignKey("players.id", ondelete="RESTRICT", onupdate="CASCADE"), nullable=False
    )
    player_b_id = Column(
        Integer, ForeignKey("players.id", ondelete="RESTRICT", onupdate="CASCADE"), nullable=False
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    player_a = relationship("Player", foreign_keys=[player_a_id])
    player_b = relationship("Player", foreign_keys=[player_b_id])
    season_links = relationship("TeamSeason", back_populates="team")

    __table_args__ = (
        CheckConstraint("player_a_id < player_b_id", name="ck_teams_canonical_pair"),
        # One live team per unordered pair; tombstoned rows don't block re-creation
        Index(
            "uq_teams_live_pair",
            "player_a_id",
            "player_b_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("idx_teams_player_a", "player_a_id"),
        Index("idx_teams_player_b", "player_b_id"),
        Index("idx_teams_deleted_at", "deleted_at"),
    )


class TeamSeason(Base):
    """Many-to-many link between teams and seasons."""

    __tablename__ = "team_seasons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False
    )
    season_id = Column(
        Integer, ForeignKey("seasons.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False
    )
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    team = relationship("Team", back_populates="season_links")
    season = relationship("Season", back_populates="team_links")

    __table_args__ = (
        UniqueConstraint("team_id", "season_id", name="uq_team_seasons_team_season"),
        Index("idx_team_seasons_season", "season_id"),
        Index("idx_team_seasons_deleted_at", "deleted_at"),
    )


class Game(Base):
    """A game in a season, or an exhibition game when season_id is NULL."""

    __tablename__ = "games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    season_id = Column(
        Integer, ForeignKey("seasons.id", ondelete="SET NULL", onupdate="CASCADE"), nullable=True
    )
    match_type = Column(String(16), nullable=False, default=MatchType.PLAYERS.value)
    target_points = Column(Integer, nullable=False, default=DEFAULT_TARGET_POINTS)
    status = Column(String(16), nullable=False, default=GameStatus.SCHEDULED.value)
    winner_side = Column(String(1), nullable=True)  # "A" or "B" once completed
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    timezone = Column(String, nullable=False, default=DEFAULT_TIMEZONE)
    location = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    sides = relationship("GameSide", back_populates="game", order_by="GameSide.side")

    __table_args__ = (
        CheckConstraint("match_type IN ('teams', 'players')", name="ck_games_match_type"),
        CheckConstraint(
            "status IN ('scheduled', 'in_progress', 'completed', 'canceled')",
            name="ck_games_status",
        ),
        CheckConstraint(
            "winner_side IS NULL OR winner_side IN ('A', 'B')", name="ck_games_winner_side"
        ),
        Index("idx_games_season", "season_id"),
        Index("idx_games_status", "status"),
        Index("idx_games_match_type", "match_type"),
        Index("idx_games_deleted_at", "deleted_at"),
    )


class GameSide(Base):
    """One of the two participants of a game: a team or a player."""

    __tablename__ = "game_sides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(
        Integer, ForeignKey("games.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False
    )
    side = Column(String(1), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    color = Column(String(16), nullable=False, default=DiscColor.NATURAL.value)
    points = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    game = relationship("Game", back_populates="sides")

    __table_args__ = (
        UniqueConstraint("game_id", "side", name="uq_game_sides_game_side"),
        CheckConstraint("side IN ('A', 'B')", name="ck_game_sides_side"),
        CheckConstraint(
            "(team_id IS NULL) <> (player_id IS NULL)", name="ck_game_sides_one_participant"
        ),
        CheckConstraint("color IN ('white', 'black', 'natural')", name="ck_game_sides_color"),
        CheckConstraint("points >= 0", name="ck_game_sides_points"),
        Index("idx_game_sides_team", "team_id"),
        Index("idx_game_sides_player", "player_id"),
        Index("idx_game_sides_color", "color"),
    )
