"""Initial schema: versions, heroes, tournaments, drafts, knowledge base.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates:
  versions, heroes, hero_stats
  tournaments, teams, players
  draft_matches, draft_games, draft_picks
  matchups, hero_combos
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=True)


def upgrade() -> None:
    op.create_table(
        "versions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )

    op.create_table(
        "heroes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(64), nullable=False, unique=True),
        sa.Column("icon_url", sa.Text(), nullable=False, server_default=""),
        sa.Column("main_position", sa.JSON(), nullable=False),
        sa.Column("damage_type", sa.String(16), nullable=True),
        _created_at(),
    )

    op.create_table(
        "hero_stats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("hero_id", sa.Integer(), sa.ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("version_id", sa.Integer(), sa.ForeignKey("versions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tier", sa.String(1), nullable=True),
        sa.Column("power_spike", sa.String(16), nullable=True),
        sa.Column("win_rate", sa.Float(), nullable=False, server_default="50"),
        _created_at(),
        sa.UniqueConstraint("hero_id", "version_id", name="uq_hero_stats_hero_version"),
    )
    op.create_index("ix_hero_stats_hero_id", "hero_stats", ["hero_id"])
    op.create_index("ix_hero_stats_version_id", "hero_stats", ["version_id"])

    op.create_table(
        "tournaments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("slug", sa.String(128), nullable=True, unique=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="upcoming"),
        _created_at(),
    )

    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tournament_id", sa.Integer(), sa.ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("slug", sa.String(128), nullable=True),
        sa.Column("short_name", sa.String(16), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_teams_tournament_id", "teams", ["tournament_id"])

    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(64), nullable=False, unique=True),
        sa.Column("slug", sa.String(64), nullable=True),
        sa.Column("positions", sa.JSON(), nullable=False),
        sa.Column("roster_role", sa.String(32), nullable=True),
        _created_at(),
    )
    op.create_index("ix_players_team_id", "players", ["team_id"])

    op.create_table(
        "draft_matches",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("team_a_name", sa.String(128), nullable=False),
        sa.Column("team_b_name", sa.String(128), nullable=False),
        sa.Column("mode", sa.String(8), nullable=False, server_default="BO1"),
        sa.Column("version_id", sa.Integer(), sa.ForeignKey("versions.id"), nullable=True),
        sa.Column("tournament_id", sa.Integer(), sa.ForeignKey("tournaments.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="ongoing"),
        _created_at(),
    )
    op.create_index("ix_draft_matches_version_id", "draft_matches", ["version_id"])
    op.create_index("ix_draft_matches_tournament_id", "draft_matches", ["tournament_id"])

    op.create_table(
        "draft_games",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("draft_matches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("game_number", sa.SmallInteger(), nullable=False),
        sa.Column("blue_team_name", sa.String(128), nullable=True),
        sa.Column("red_team_name", sa.String(128), nullable=True),
        sa.Column("winner", sa.String(8), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="ongoing"),
        sa.Column("mvp_hero_id", sa.Integer(), sa.ForeignKey("heroes.id", ondelete="SET NULL"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_draft_games_match_id", "draft_games", ["match_id"])

    op.create_table(
        "draft_picks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("game_id", sa.Integer(), sa.ForeignKey("draft_games.id", ondelete="CASCADE"), nullable=False),
        sa.Column("hero_id", sa.Integer(), sa.ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(4), nullable=False),
        sa.Column("side", sa.String(8), nullable=True),
        sa.Column("position_index", sa.SmallInteger(), nullable=True),
        sa.Column("assigned_role", sa.String(32), nullable=True),
    )
    op.create_index("ix_draft_picks_game_id", "draft_picks", ["game_id"])
    op.create_index("ix_draft_picks_hero_id", "draft_picks", ["hero_id"])

    op.create_table(
        "matchups",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("version_id", sa.Integer(), sa.ForeignKey("versions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("hero_id", sa.Integer(), sa.ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.String(32), nullable=False),
        sa.Column("enemy_hero_id", sa.Integer(), sa.ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("enemy_position", sa.String(32), nullable=False),
        sa.Column("win_rate", sa.Float(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        _created_at(),
        sa.UniqueConstraint(
            "version_id", "hero_id", "position", "enemy_hero_id", "enemy_position",
            name="uq_matchups_pair",
        ),
    )
    op.create_index("ix_matchups_version_id", "matchups", ["version_id"])

    op.create_table(
        "hero_combos",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("hero_a_id", sa.Integer(), sa.ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("hero_a_position", sa.String(32), nullable=True),
        sa.Column("hero_b_id", sa.Integer(), sa.ForeignKey("heroes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("hero_b_position", sa.String(32), nullable=True),
        sa.Column("synergy_score", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("version_id", sa.Integer(), sa.ForeignKey("versions.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
    )
    op.create_index("ix_hero_combos_version_id", "hero_combos", ["version_id"])


def downgrade() -> None:
    op.drop_table("hero_combos")
    op.drop_table("matchups")
    op.drop_table("draft_picks")
    op.drop_table("draft_games")
    op.drop_table("draft_matches")
    op.drop_table("players")
    op.drop_table("teams")
    op.drop_table("tournaments")
    op.drop_table("hero_stats")
    op.drop_table("heroes")
    op.drop_table("versions")
