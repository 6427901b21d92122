"""Baseline schema: players, users, tournaments, matches, ratings

Revision ID: 3f9a1c2b7d40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3f9a1c2b7d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("updated", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create the core and auth schemas and every table."""
    op.execute("CREATE SCHEMA IF NOT EXISTS core")
    op.execute("CREATE SCHEMA IF NOT EXISTS auth")

    earliest_rank_columns = []
    for mode in ("osu", "taiko", "catch", "mania"):
        earliest_rank_columns += [
            sa.Column(f"earliest_{mode}_global_rank", sa.Integer(), nullable=True),
            sa.Column(
                f"earliest_{mode}_global_rank_date",
                sa.DateTime(timezone=True),
                nullable=True,
            ),
        ]

    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("osu_id", sa.BigInteger(), nullable=False, comment="osu! user id"),
        sa.Column("username", sa.String(length=32), nullable=True),
        sa.Column("country", sa.String(length=4), nullable=True),
        sa.Column("rank_standard", sa.Integer(), nullable=True),
        sa.Column("rank_taiko", sa.Integer(), nullable=True),
        sa.Column("rank_catch", sa.Integer(), nullable=True),
        sa.Column("rank_mania", sa.Integer(), nullable=True),
        *earliest_rank_columns,
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_players")),
        schema="core",
    )
    op.create_index(
        op.f("ix_core_players_osu_id"), "players", ["osu_id"], unique=True, schema="core"
    )
    op.create_index(
        op.f("ix_core_players_updated"), "players", ["updated"], schema="core"
    )
    op.create_index(
        op.f("ix_core_players_earliest_osu_global_rank_date"),
        "players",
        ["earliest_osu_global_rank_date"],
        schema="core",
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=True),
        sa.Column(
            "roles",
            postgresql.ARRAY(sa.String(length=32)),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("session_token", sa.String(length=512), nullable=True),
        sa.Column("session_expiration", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["player_id"],
            ["core.players.id"],
            name=op.f("fk_users_player_id_players"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
        sa.UniqueConstraint("player_id", name=op.f("uq_users_player_id")),
        schema="auth",
    )
    op.create_index(
        op.f("ix_auth_users_last_login"), "users", ["last_login"], schema="auth"
    )

    op.create_table(
        "tournaments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=512), nullable=False),
        sa.Column("abbreviation", sa.String(length=32), nullable=True),
        sa.Column("forum_url", sa.String(length=255), nullable=True),
        sa.Column("rank_range_lower_bound", sa.Integer(), nullable=False),
        sa.Column("team_size", sa.Integer(), nullable=False),
        sa.Column("mode", sa.Integer(), nullable=False),
        sa.Column("submitter_user_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["submitter_user_id"],
            ["auth.users.id"],
            name=op.f("fk_tournaments_submitter_user_id_users"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_tournaments")),
        schema="core",
    )
    op.create_index(
        "idx_tournaments_name_mode", "tournaments", ["name", "mode"], schema="core"
    )

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("match_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(length=512), nullable=True),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("rank_range_lower_bound", sa.Integer(), nullable=True),
        sa.Column("team_size", sa.Integer(), nullable=True),
        sa.Column("mode", sa.Integer(), nullable=True),
        sa.Column("verification_status", sa.Integer(), nullable=False),
        sa.Column("verification_source", sa.Integer(), nullable=True),
        sa.Column("verification_info", sa.String(length=512), nullable=True),
        sa.Column("needs_auto_check", sa.Boolean(), nullable=False),
        sa.Column("is_api_processed", sa.Boolean(), nullable=False),
        sa.Column("submitter_user_id", sa.Integer(), nullable=True),
        sa.Column("verifier_user_id", sa.Integer(), nullable=True),
        sa.Column("merged_into_id", sa.Integer(), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["tournament_id"],
            ["core.tournaments.id"],
            name=op.f("fk_matches_tournament_id_tournaments"),
        ),
        sa.ForeignKeyConstraint(
            ["submitter_user_id"],
            ["auth.users.id"],
            name=op.f("fk_matches_submitter_user_id_users"),
        ),
        sa.ForeignKeyConstraint(
            ["verifier_user_id"],
            ["auth.users.id"],
            name=op.f("fk_matches_verifier_user_id_users"),
        ),
        sa.ForeignKeyConstraint(
            ["merged_into_id"],
            ["core.matches.id"],
            name=op.f("fk_matches_merged_into_id_matches"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_matches")),
        schema="core",
    )
    op.create_index(
        op.f("ix_core_matches_match_id"), "matches", ["match_id"], unique=True, schema="core"
    )
    op.create_index(
        op.f("ix_core_matches_tournament_id"), "matches", ["tournament_id"], schema="core"
    )
    op.create_index(
        "idx_matches_verification_status",
        "matches",
        ["verification_status"],
        schema="core",
    )
    op.create_index(
        "idx_matches_needs_auto_check", "matches", ["needs_auto_check"], schema="core"
    )

    op.create_table(
        "match_duplicate_xref",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("osu_match_id", sa.BigInteger(), nullable=False),
        sa.Column("suspected_duplicate_of", sa.Integer(), nullable=False),
        sa.Column("verified_by", sa.Integer(), nullable=True),
        sa.Column("verified_as_duplicate", sa.Boolean(), nullable=True),
        sa.Column("merged_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["match_id"],
            ["core.matches.id"],
            name=op.f("fk_match_duplicate_xref_match_id_matches"),
        ),
        sa.ForeignKeyConstraint(
            ["suspected_duplicate_of"],
            ["core.matches.id"],
            name=op.f("fk_match_duplicate_xref_suspected_duplicate_of_matches"),
        ),
        sa.ForeignKeyConstraint(
            ["verified_by"],
            ["auth.users.id"],
            name=op.f("fk_match_duplicate_xref_verified_by_users"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_match_duplicate_xref")),
        sa.UniqueConstraint(
            "match_id",
            "suspected_duplicate_of",
            name=op.f("uq_match_duplicate_xref_match_id"),
        ),
        schema="core",
    )
    op.create_index(
        op.f("ix_core_match_duplicate_xref_suspected_duplicate_of"),
        "match_duplicate_xref",
        ["suspected_duplicate_of"],
        schema="core",
    )

    op.create_table(
        "match_players",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column(
            "created",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(
            ["match_id"],
            ["core.matches.id"],
            name=op.f("fk_match_players_match_id_matches"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["player_id"],
            ["core.players.id"],
            name=op.f("fk_match_players_player_id_players"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_match_players")),
        sa.UniqueConstraint(
            "match_id", "player_id", name=op.f("uq_match_players_match_id")
        ),
        schema="core",
    )
    op.create_index(
        "idx_match_players_player", "match_players", ["player_id"], schema="core"
    )

    op.create_table(
        "ratings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("mode", sa.Integer(), nullable=False),
        sa.Column("mu", sa.Float(), nullable=False),
        sa.Column("sigma", sa.Float(), nullable=False),
        sa.Column("mu_initial", sa.Float(), nullable=False),
        sa.Column("sigma_initial", sa.Float(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["player_id"],
            ["core.players.id"],
            name=op.f("fk_ratings_player_id_players"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ratings")),
        sa.UniqueConstraint("player_id", "mode", name=op.f("uq_ratings_player_id")),
        schema="core",
    )
    op.create_index(
        op.f("ix_core_ratings_player_id"), "ratings", ["player_id"], schema="core"
    )

    op.create_table(
        "rating_histories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=True),
        sa.Column("mode", sa.Integer(), nullable=False),
        sa.Column("mu", sa.Float(), nullable=False),
        sa.Column("sigma", sa.Float(), nullable=False),
        sa.Column(
            "created",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(
            ["player_id"],
            ["core.players.id"],
            name=op.f("fk_rating_histories_player_id_players"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["match_id"],
            ["core.matches.id"],
            name=op.f("fk_rating_histories_match_id_matches"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_rating_histories")),
        schema="core",
    )
    op.create_index(
        "idx_rating_histories_player_mode_created",
        "rating_histories",
        ["player_id", "mode", "created"],
        schema="core",
    )


def downgrade() -> None:
    """Drop every table, then the schemas."""
    op.drop_table("rating_histories", schema="core")
    op.drop_table("ratings", schema="core")
    op.drop_table("match_players", schema="core")
    op.drop_table("match_duplicate_xref", schema="core")
    op.drop_table("matches", schema="core")
    op.drop_table("tournaments", schema="core")
    op.drop_table("users", schema="auth")
    op.drop_table("players", schema="core")
    op.execute("DROP SCHEMA IF EXISTS auth")
    op.execute("DROP SCHEMA IF EXISTS core")
