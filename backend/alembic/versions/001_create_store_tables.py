"""Create store directory tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates users, stores, store_tags, reviews and hearts.
How:   Portable column types (sa.Uuid, DateTime with time zone) so the same
       migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops every table (destructive — all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "stores",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        # Derived from name; "-{n}" suffix on collision
        sa.Column("slug", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location_type", sa.String(20), nullable=False, server_default=sa.text("'Point'")),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        # {uuid}.{ext} under UPLOADS_DIR
        sa.Column("photo", sa.String(255), nullable=True),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("idx_stores_created", "stores", [sa.text("created DESC")])
    op.create_index("idx_stores_lat_lng", "stores", ["latitude", "longitude"])
    op.create_index("ix_stores_author_id", "stores", ["author_id"])

    op.create_table(
        "store_tags",
        sa.Column("store_id", sa.Uuid(), nullable=False),
        sa.Column("tag", sa.String(100), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("store_id", "tag"),
    )
    # Tag histogram and /tags/{tag} both filter or group on tag
    op.create_index("ix_store_tags_tag", "store_tags", ["tag"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("store_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reviews_store_id", "reviews", ["store_id"])

    # Composite key: a user hearts a store at most once
    op.create_table(
        "hearts",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("store_id", sa.Uuid(), nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "store_id"),
    )


def downgrade() -> None:
    op.drop_table("hearts")
    op.drop_index("ix_reviews_store_id", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("ix_store_tags_tag", table_name="store_tags")
    op.drop_table("store_tags")
    op.drop_index("ix_stores_author_id", table_name="stores")
    op.drop_index("idx_stores_lat_lng", table_name="stores")
    op.drop_index("idx_stores_created", table_name="stores")
    op.drop_table("stores")
    op.drop_table("users")
