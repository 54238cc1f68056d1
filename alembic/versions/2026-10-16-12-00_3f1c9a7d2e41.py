"""Initial catalog schema

Revision ID: 3f1c9a7d2e41
Revises:
Create Date: 2026-10-16 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7d2e41"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "house_keeping",
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("value", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("key", name="pk_house_keeping"),
    )

    op.create_table(
        "anime",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("original_name", sa.String(), nullable=True),
        sa.Column("bdrip", sa.Boolean(), nullable=False),
        sa.Column("nsfw", sa.Boolean(), nullable=False),
        sa.Column("platform", sa.String(), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("release_year", sa.Integer(), nullable=True),
        sa.Column("release_season", sa.String(length=16), nullable=True),
        sa.Column("region", sa.String(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("episodes", sa.Integer(), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_anime"),
        sa.UniqueConstraint("name", name="uq_anime_name"),
    )

    op.create_table(
        "anime_site",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("site_id", sa.String(), nullable=False),
        sa.Column("site_type", sa.String(), nullable=False),
        sa.Column("last_update", sa.DateTime(), nullable=True),
        sa.Column("anime_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["anime_id"],
            ["anime.id"],
            name="fk_anime_site_anime_id_anime",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_anime_site"),
        sa.UniqueConstraint(
            "site_id", "site_type", name="uq_anime_site_site_id_site_type"
        ),
    )
    op.create_index("ix_anime_site_anime_id", "anime_site", ["anime_id"])
    op.create_index("ix_anime_site_site_type", "anime_site", ["site_type"])
    op.create_index("ix_anime_site_last_update", "anime_site", ["last_update"])

    op.create_table(
        "library",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("path", sa.String(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_library"),
        sa.UniqueConstraint("name", name="uq_library_name"),
    )

    op.create_table(
        "lib_file",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("library_id", sa.Integer(), nullable=False),
        sa.Column("path", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("is_dir", sa.Boolean(), nullable=False),
        sa.Column("removed", sa.Boolean(), nullable=False),
        sa.Column("anime_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["library_id"],
            ["library.id"],
            name="fk_lib_file_library_id_library",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["anime_id"],
            ["anime.id"],
            name="fk_lib_file_anime_id_anime",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_lib_file"),
        sa.UniqueConstraint(
            "library_id", "path", "name", name="uq_lib_file_library_id_path_name"
        ),
    )
    op.create_index("ix_lib_file_library_id", "lib_file", ["library_id"])
    op.create_index("ix_lib_file_path", "lib_file", ["path"])
    op.create_index("ix_lib_file_anime_id", "lib_file", ["anime_id"])


def downgrade() -> None:
    op.drop_index("ix_lib_file_anime_id", table_name="lib_file")
    op.drop_index("ix_lib_file_path", table_name="lib_file")
    op.drop_index("ix_lib_file_library_id", table_name="lib_file")
    op.drop_table("lib_file")
    op.drop_table("library")
    op.drop_index("ix_anime_site_last_update", table_name="anime_site")
    op.drop_index("ix_anime_site_site_type", table_name="anime_site")
    op.drop_index("ix_anime_site_anime_id", table_name="anime_site")
    op.drop_table("anime_site")
    op.drop_table("anime")
    op.drop_table("house_keeping")
