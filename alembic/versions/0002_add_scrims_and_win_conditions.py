"""Add scrim metadata to draft_matches and the win_conditions table.

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19

Adds:
  draft_matches.slug        — 'YYYYMMDD-NN' for simulator matches, 'SCRIM000001' for scrims
  draft_matches.match_type  — scrim_simulator | scrim_summary | simulation | real
                              (nullable: rows created before this migration stay untyped)
  draft_matches.match_date
  win_conditions            — saved ally/enemy filters + cached last analysis
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("draft_matches") as batch:
        batch.add_column(sa.Column("slug", sa.String(32), nullable=True))
        batch.add_column(sa.Column("match_type", sa.String(32), nullable=True))
        batch.add_column(sa.Column("match_date", sa.Date(), nullable=True))
        batch.create_unique_constraint("uq_draft_matches_slug", ["slug"])

    op.create_table(
        "win_conditions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("version", sa.String(64), nullable=True),
        sa.Column("tournament_id", sa.Integer(), sa.ForeignKey("tournaments.id", ondelete="SET NULL"), nullable=True),
        sa.Column("ally_conditions", sa.JSON(), nullable=False),
        sa.Column("enemy_conditions", sa.JSON(), nullable=False),
        sa.Column("last_result", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("win_conditions")
    with op.batch_alter_table("draft_matches") as batch:
        batch.drop_constraint("uq_draft_matches_slug", type_="unique")
        batch.drop_column("match_date")
        batch.drop_column("match_type")
        batch.drop_column("slug")
