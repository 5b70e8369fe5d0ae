"""
StoreFinder Backend — Store SQLAlchemy Models
=============================================

What:  ORM models for the `stores` and `store_tags` tables.
Who:   Used by StoreRepository for queries and by Alembic for schema management.

Table Design Rationale:
    - UUID primary key: Non-sequential, safe to expose in URLs (/stores/{id}/edit)
    - slug: Derived from name by the repository before persisting; unique index
    - location: Stored as flat columns (type, longitude, latitude, address) so
      the same schema works on PostgreSQL and SQLite. The API exposes it as a
      GeoJSON-style point: {"type": "Point", "coordinates": [lng, lat], "address": ...}
    - tags: One row per (store, tag) in `store_tags`; the tag histogram is a
      plain GROUP BY over that table
    - reviews: 1:N from stores to reviews; never loaded implicitly, the
      repository attaches them explicitly (see StoreRepository.with_reviews)
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefinder.database import Base


class Store(Base):
    """
    A store listed in the directory.

    Lifecycle:
        1. Created from the add-store form (photo resized first, if any)
        2. Updated from the edit form by its author only; a new name re-derives the slug
        3. Never deleted
    """

    __tablename__ = "stores"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    slug: Mapped[str] = mapped_column(String(300), nullable=False, unique=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # ── Location ──────────────────────────────────────────────────────────
    # Update-style writes do not fill defaults, so the service sets this
    # explicitly on every update as well.
    location_type: Mapped[str] = mapped_column(String(20), nullable=False, default="Point")
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)

    # Generated filename ({uuid}.{ext}) under settings.uploads_dir
    photo: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )

    # ── Relationships ─────────────────────────────────────────────────────
    # tag_links is small and always needed, so it loads with every Store.
    # author and reviews raise if touched without an explicit loader option.
    tag_links: Mapped[List["StoreTag"]] = relationship(
        back_populates="store",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="StoreTag.position",
    )
    author: Mapped["User"] = relationship(lazy="raise")  # noqa: F821
    reviews: Mapped[List["Review"]] = relationship(  # noqa: F821
        back_populates="store",
        lazy="raise",
        order_by="Review.created.desc()",
    )

    __table_args__ = (
        Index("idx_stores_created", created.desc()),
        Index("idx_stores_lat_lng", "latitude", "longitude"),
    )

    @property
    def tags(self) -> List[str]:
        return [link.tag for link in self.tag_links]

    @tags.setter
    def tags(self, values: List[str]) -> None:
        unique_tags = dict.fromkeys(tag for tag in values if tag)
        self.tag_links = [
            StoreTag(tag=tag, position=position) for position, tag in enumerate(unique_tags)
        ]

    @property
    def coordinates(self) -> List[float]:
        """[lng, lat] order, as in GeoJSON."""
        return [self.longitude, self.latitude]

    def __repr__(self) -> str:
        return f"<Store(id={self.id}, slug='{self.slug}')>"


class StoreTag(Base):
    """One tag on one store. Composite key keeps a store's tags distinct."""

    __tablename__ = "store_tags"

    store_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("stores.id", ondelete="CASCADE"), primary_key=True
    )
    tag: Mapped[str] = mapped_column(String(100), primary_key=True, index=True)
    position: Mapped[int] = mapped_column(default=0, nullable=False)

    store: Mapped[Store] = relationship(back_populates="tag_links")
