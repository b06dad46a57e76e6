"""Registration core — teams, athletes, events, tournaments, registrations

Revision ID: 001
Revises:
Create Date: 2025-05-12 00:00:00.000000

Changes:
  - Create teams, athletes, events, tournaments, registrations
  - Every table carries a nullable deleted_at soft-delete marker
  - Partial unique index: one live registration per (athlete, tournament)
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    # ── teams / athletes ──────────────────────────────────────────────────────
    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(120), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("owner_ref", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_teams_owner_ref", "teams", ["owner_ref"])

    op.create_table(
        "athletes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("gender", sa.String(1), nullable=False),
        sa.Column("birth_year", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_athletes_team_id", "athletes", ["team_id"])

    # ── events / tournaments ──────────────────────────────────────────────────
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "tournaments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("division", sa.String(20), nullable=False),
        sa.Column("modality", sa.String(20), nullable=False),
        sa.Column("equipment", sa.String(20), nullable=False),
        sa.Column(
            "status", sa.String(30), nullable=False, server_default="preliminary_open"
        ),
        *_timestamps(),
    )
    op.create_index("ix_tournaments_event_id", "tournaments", ["event_id"])

    # ── registrations ─────────────────────────────────────────────────────────
    op.create_table(
        "registrations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("athletes.id"), nullable=False),
        sa.Column(
            "tournament_id", sa.Integer(), sa.ForeignKey("tournaments.id"), nullable=False
        ),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("weight_class", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_receipt_url", sa.String(1024), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        *_timestamps(),
    )
    op.create_index("ix_registrations_tournament_id", "registrations", ["tournament_id"])
    op.create_index("ix_registrations_team_id", "registrations", ["team_id"])
    op.create_index(
        "uq_registrations_live",
        "registrations",
        ["athlete_id", "tournament_id"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_registrations_live", table_name="registrations")
    op.drop_index("ix_registrations_team_id", table_name="registrations")
    op.drop_index("ix_registrations_tournament_id", table_name="registrations")
    op.drop_table("registrations")
    op.drop_index("ix_tournaments_event_id", table_name="tournaments")
    op.drop_table("tournaments")
    op.drop_table("events")
    op.drop_index("ix_athletes_team_id", table_name="athletes")
    op.drop_table("athletes")
    op.drop_index("ix_teams_owner_ref", table_name="teams")
    op.drop_table("teams")
