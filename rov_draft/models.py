"""
models.py — All SQLAlchemy ORM models for ROV Draft Lab.

Importing this module registers all models with Base (from database.py),
so Alembic can detect the full schema via Base.metadata.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from rov_draft.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Game metadata
# ---------------------------------------------------------------------------

class Version(Base):
    """A game patch. Exactly one version is active at a time."""
    __tablename__ = "versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), nullable=False)
    start_date = Column(Date)
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class Hero(Base):
    __tablename__ = "heroes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), nullable=False, unique=True)
    icon_url = Column(Text, nullable=False, default="")
    # JSON list of POSITIONS, e.g. ["Jungle", "Roam"]
    main_position = Column(JSON, nullable=False, default=list)
    damage_type = Column(String(16))
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    stats = relationship("HeroStat", back_populates="hero", cascade="all, delete-orphan")


class HeroStat(Base):
    """Per-version hero attributes (tier, power spike, reference win rate)."""
    __tablename__ = "hero_stats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    hero_id = Column(Integer, ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False, index=True)
    version_id = Column(Integer, ForeignKey("versions.id", ondelete="CASCADE"), nullable=False, index=True)
    tier = Column(String(1))
    power_spike = Column(String(16))
    # percent, 0-100
    win_rate = Column(Float, nullable=False, default=50.0)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    hero = relationship("Hero", back_populates="stats")

    __table_args__ = (
        UniqueConstraint("hero_id", "version_id", name="uq_hero_stats_hero_version"),
    )


# ---------------------------------------------------------------------------
# Tournaments, teams, players
# ---------------------------------------------------------------------------

class Tournament(Base):
    __tablename__ = "tournaments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False)
    slug = Column(String(128), unique=True)
    start_date = Column(Date)
    end_date = Column(Date)
    status = Column(String(16), nullable=False, default="upcoming")
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    teams = relationship("Team", back_populates="tournament", cascade="all, delete-orphan")


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id", ondelete="CASCADE"), index=True)
    name = Column(String(128), nullable=False)
    slug = Column(String(128))
    short_name = Column(String(16))
    logo_url = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    tournament = relationship("Tournament", back_populates="teams")
    players = relationship("Player", back_populates="team")


class Player(Base):
    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Nullable: free agents are not on a team
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), index=True)
    name = Column(String(64), nullable=False, unique=True)
    slug = Column(String(64))
    positions = Column(JSON, nullable=False, default=list)
    roster_role = Column(String(32))
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    team = relationship("Team", back_populates="players")


# ---------------------------------------------------------------------------
# Drafts (populated by the simulator and by scrim summary entry)
# ---------------------------------------------------------------------------

class DraftMatch(Base):
    """A series between two teams (BO1..BO7)."""
    __tablename__ = "draft_matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_a_name = Column(String(128), nullable=False)
    team_b_name = Column(String(128), nullable=False)
    mode = Column(String(8), nullable=False, default="BO1")
    version_id = Column(Integer, ForeignKey("versions.id"), index=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id", ondelete="SET NULL"), index=True)
    status = Column(String(16), nullable=False, default="ongoing")
    slug = Column(String(32), unique=True)
    match_type = Column(String(32))
    match_date = Column(Date)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    version = relationship("Version")
    tournament = relationship("Tournament")
    games = relationship(
        "DraftGame",
        back_populates="match",
        cascade="all, delete-orphan",
        order_by="DraftGame.game_number",
    )


class DraftGame(Base):
    __tablename__ = "draft_games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("draft_matches.id", ondelete="CASCADE"), nullable=False, index=True)
    game_number = Column(SmallInteger, nullable=False)
    blue_team_name = Column(String(128))
    red_team_name = Column(String(128))
    # 'Blue' | 'Red' | NULL while undecided
    winner = Column(String(8))
    status = Column(String(16), nullable=False, default="ongoing")
    mvp_hero_id = Column(Integer, ForeignKey("heroes.id", ondelete="SET NULL"))
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    match = relationship("DraftMatch", back_populates="games")
    picks = relationship(
        "DraftPick",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="DraftPick.position_index",
    )


class DraftPick(Base):
    """One ban or pick of a game. position_index is the absolute 1-based draft slot."""
    __tablename__ = "draft_picks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(Integer, ForeignKey("draft_games.id", ondelete="CASCADE"), nullable=False, index=True)
    hero_id = Column(Integer, ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(4), nullable=False)    # BAN | PICK
    side = Column(String(8))                    # BLUE | RED (legacy rows may be NULL)
    position_index = Column(SmallInteger)
    assigned_role = Column(String(32))

    game = relationship("DraftGame", back_populates="picks")
    hero = relationship("Hero")


# ---------------------------------------------------------------------------
# Knowledge base (hand-curated by analysts)
# ---------------------------------------------------------------------------

class Matchup(Base):
    """hero (in position) vs enemy hero (in enemy position): win_rate from hero's side."""
    __tablename__ = "matchups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    version_id = Column(Integer, ForeignKey("versions.id", ondelete="CASCADE"), nullable=False, index=True)
    hero_id = Column(Integer, ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False)
    position = Column(String(32), nullable=False)
    enemy_hero_id = Column(Integer, ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False)
    enemy_position = Column(String(32), nullable=False)
    win_rate = Column(Float, nullable=False)
    note = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    hero = relationship("Hero", foreign_keys=[hero_id])
    opponent = relationship("Hero", foreign_keys=[enemy_hero_id])

    __table_args__ = (
        UniqueConstraint(
            "version_id", "hero_id", "position", "enemy_hero_id", "enemy_position",
            name="uq_matchups_pair",
        ),
    )


class HeroCombo(Base):
    __tablename__ = "hero_combos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    hero_a_id = Column(Integer, ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False)
    hero_a_position = Column(String(32))
    hero_b_id = Column(Integer, ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False)
    hero_b_position = Column(String(32))
    # 0-100
    synergy_score = Column(Integer, nullable=False)
    description = Column(Text)
    version_id = Column(Integer, ForeignKey("versions.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    hero_a = relationship("Hero", foreign_keys=[hero_a_id])
    hero_b = relationship("Hero", foreign_keys=[hero_b_id])


class WinCondition(Base):
    """A saved ally/enemy hero-role filter and the cached result of its last analysis."""
    __tablename__ = "win_conditions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False)
    version = Column(String(64))
    tournament_id = Column(Integer, ForeignKey("tournaments.id", ondelete="SET NULL"))
    # JSON lists of {"id", "heroId", "role"}
    ally_conditions = Column(JSON, nullable=False, default=list)
    enemy_conditions = Column(JSON, nullable=False, default=list)
    last_result = Column(JSON)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
