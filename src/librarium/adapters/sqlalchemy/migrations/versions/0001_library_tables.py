"""Create books, locations and ownerships.

Revision ID: 0001_library_tables
Revises:
Create Date: 2026-09-28 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from librarium.adapters.sqlalchemy.mappings import LOCATION_NAME_MAX_LENGTH, UTCDateTime

revision = "0001_library_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "books",
        sa.Column("isbn", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("author", sa.String(), nullable=True),
        sa.Column("thumbnail_url", sa.String(), nullable=True),
        sa.Column("is_doujin", sa.Boolean(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("isbn", name=op.f("pk_books")),
    )
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=LOCATION_NAME_MAX_LENGTH), nullable=False),
        sa.Column(
            "type",
            sa.Enum(
                "Physical",
                "Digital",
                name="location_kind",
                native_enum=False,
                create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_locations")),
        sa.UniqueConstraint("user_id", "name", name=op.f("uq_locations_user_id")),
    )
    op.create_table(
        "ownerships",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("isbn", sa.String(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["isbn"],
            ["books.isbn"],
            name=op.f("fk_ownerships_isbn_books"),
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["location_id"],
            ["locations.id"],
            name=op.f("fk_ownerships_location_id_locations"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ownerships")),
        sa.UniqueConstraint("user_id", "isbn", "location_id", name=op.f("uq_ownerships_user_id")),
    )
    op.create_index("ix_ownerships_user_id", "ownerships", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_ownerships_user_id", table_name="ownerships")
    op.drop_table("ownerships")
    op.drop_table("locations")
    op.drop_table("books")
