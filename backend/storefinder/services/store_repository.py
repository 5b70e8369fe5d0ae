"""
StoreFinder Backend — Store Repository
======================================

What:  Every query and write against the `stores` table goes through here.
Why:   Keeps the data rules (validation, slug derivation, review population)
       in one place instead of spread across services and routes.
Who:   Called by StoreService and ReviewService; never by routes directly.

Hooks run as ordinary calls:
    - save() validates and, when the name changed, derives the slug before
      the row is flushed
    - with_reviews() attaches the 1:N reviews to list and single fetches
      before the statement executes

Aggregations are composed explicitly with SQLAlchemy:
    - get_tags_list():   GROUP BY tag, COUNT(*), ORDER BY count DESC
    - get_top_stores():  JOIN reviews, GROUP BY store, HAVING COUNT >= 2,
                         ORDER BY AVG(rating) DESC, LIMIT 10

Text and proximity search use a portable SQL prefilter (LIKE / bounding box)
and finish ranking in Python, so the same code runs on PostgreSQL and SQLite.
"""

import logging
import math
import re
import uuid
from typing import List, Optional, Sequence, Tuple

from slugify import slugify
from sqlalchemy import Row, Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefinder.exceptions import ValidationError
from storefinder.models import Heart, Review, Store, StoreTag

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_DEGREE_LAT = 111_320.0

_WORD = re.compile(r"\w+")


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two lat/lng points, in meters."""
    lat1_r, lng1_r, lat2_r, lng2_r = map(math.radians, [lat1, lng1, lat2, lng2])
    dlat = lat2_r - lat1_r
    dlng = lng2_r - lng1_r
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def _like_escape(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class StoreRepository:
    """Queries, validation and derived fields for Store rows."""

    # ── Hooks ─────────────────────────────────────────────────────────────

    @staticmethod
    def with_reviews(stmt: Select) -> Select:
        """Attach each store's reviews to the rows `stmt` returns."""
        return stmt.options(selectinload(Store.reviews))

    @staticmethod
    def validate(store: Store) -> None:
        """
        Check required fields before a store is written.

        Raises:
            ValidationError carrying the first problem as its message and
            all of them under context["errors"].
        """
        errors = {}
        if not store.name:
            errors["name"] = "Please enter a store name!"
        if store.longitude is None or store.latitude is None:
            errors["location.coordinates"] = "You must supply coordinates!"
        elif not (-180 <= store.longitude <= 180 and -90 <= store.latitude <= 90):
            errors["location.coordinates"] = "Coordinates must be a valid longitude and latitude!"
        if not store.address:
            errors["location.address"] = "You must supply an address!"
        if store.author_id is None:
            errors["author"] = "You must supply an author"

        if errors:
            field, message = next(iter(errors.items()))
            raise ValidationError(message=message, field=field, context={"errors": errors})

    async def generate_slug(
        self,
        db: AsyncSession,
        name: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> str:
        """
        Derive a unique slug from a store name.

        "Joe's Coffee" → "joes-coffee". If slugs matching ^(base)(-[0-9]*)?$
        already exist, the new slug is "base-{n}" where n starts at the
        number of matches plus one and is bumped past any suffix in use.
        """
        base = slugify(name) or "store"
        pattern = re.compile(rf"^({re.escape(base)})(-[0-9]*)?$", re.IGNORECASE)

        stmt = select(Store.slug).where(Store.slug.ilike(f"{_like_escape(base)}%", escape="\\"))
        if exclude_id is not None:
            stmt = stmt.where(Store.id != exclude_id)
        existing = {slug.lower() for slug in await db.scalars(stmt) if pattern.match(slug)}

        if not existing:
            return base

        suffix = len(existing) + 1
        while f"{base}-{suffix}" in existing:
            suffix += 1
        return f"{base}-{suffix}"

    async def save(self, db: AsyncSession, store: Store, *, name_changed: bool) -> Store:
        """
        Validate, re-derive the slug when the name changed, and flush.

        The slug lookup runs before the store joins the session so that
        autoflush never writes a pending row without a slug.
        """
        self.validate(store)
        if name_changed:
            store.slug = await self.generate_slug(db, store.name, exclude_id=store.id)
        db.add(store)
        await db.flush()
        logger.debug("Saved store %s (slug=%s)", store.id, store.slug)
        return store

    # ── Single Fetches ────────────────────────────────────────────────────

    async def find_by_id(self, db: AsyncSession, store_id: uuid.UUID) -> Optional[Store]:
        stmt = self.with_reviews(select(Store).where(Store.id == store_id))
        return await db.scalar(stmt)

    async def find_by_slug(self, db: AsyncSession, slug: str) -> Optional[Store]:
        stmt = self.with_reviews(
            select(Store).where(Store.slug == slug).options(selectinload(Store.author))
        )
        return await db.scalar(stmt)

    # ── Listing ───────────────────────────────────────────────────────────

    async def list_page(self, db: AsyncSession, limit: int, offset: int) -> Sequence[Store]:
        stmt = self.with_reviews(
            select(Store).order_by(Store.created.desc(), Store.id).offset(offset).limit(limit)
        )
        return (await db.scalars(stmt)).all()

    async def count(self, db: AsyncSession) -> int:
        return await db.scalar(select(func.count()).select_from(Store)) or 0

    async def find_by_tag(self, db: AsyncSession, tag: Optional[str]) -> Sequence[Store]:
        """Stores carrying `tag`; with no tag, every store that has at least one tag."""
        condition = Store.tag_links.any(StoreTag.tag == tag) if tag else Store.tag_links.any()
        stmt = self.with_reviews(select(Store).where(condition).order_by(Store.created.desc()))
        return (await db.scalars(stmt)).all()

    async def find_hearted(self, db: AsyncSession, user_id: uuid.UUID) -> Sequence[Store]:
        stmt = self.with_reviews(
            select(Store)
            .join(Heart, Heart.store_id == Store.id)
            .where(Heart.user_id == user_id)
            .order_by(Heart.created.desc())
        )
        return (await db.scalars(stmt)).all()

    # ── Aggregations ──────────────────────────────────────────────────────

    async def get_tags_list(self, db: AsyncSession) -> List[Tuple[str, int]]:
        """Tag histogram: (tag, number of stores), most used first."""
        count = func.count(StoreTag.store_id).label("count")
        stmt = select(StoreTag.tag, count).group_by(StoreTag.tag).order_by(count.desc(), StoreTag.tag)
        result = await db.execute(stmt)
        return [(row.tag, row.count) for row in result]

    async def get_top_stores(
        self,
        db: AsyncSession,
        limit: int,
        min_reviews: int,
    ) -> List[Tuple[Store, float, int]]:
        """
        Highest average rating first, among stores with at least `min_reviews`.

        Returns (store, average_rating, review_count) triples.
        """
        average = func.avg(Review.rating).label("average_rating")
        review_count = func.count(Review.id).label("review_count")
        stmt = self.with_reviews(
            select(Store, average, review_count)
            .join(Review, Review.store_id == Store.id)
            .group_by(Store.id)
            .having(func.count(Review.id) >= min_reviews)
            .order_by(average.desc(), review_count.desc())
            .limit(limit)
        )
        result = await db.execute(stmt)
        return [(store, float(avg), int(total)) for store, avg, total in result]

    # ── Search ────────────────────────────────────────────────────────────

    @staticmethod
    def text_score(store: Store, terms: Sequence[str]) -> float:
        """
        Relevance of a store to the query terms.

        Each field scores hits * (0.5 + 0.5 / words): every matching word
        counts, and a hit in a short field weighs more than one in a long
        description. A word matches a term it starts with ("coffees" ~ "coffee").
        """
        score = 0.0
        for text in (store.name, store.description or ""):
            words = _WORD.findall(text.lower())
            if not words:
                continue
            hits = sum(1 for word in words for term in terms if word.startswith(term))
            score += hits * (0.5 + 0.5 / len(words))
        return round(score, 4)

    async def search(
        self,
        db: AsyncSession,
        query: str,
        limit: int,
    ) -> List[Tuple[Store, float]]:
        """Full-text search over name and description, best match first."""
        terms = _WORD.findall(query.lower())
        if not terms:
            return []

        conditions = []
        for term in terms:
            like = f"%{_like_escape(term)}%"
            conditions.append(Store.name.ilike(like, escape="\\"))
            conditions.append(Store.description.ilike(like, escape="\\"))
        candidates = (await db.scalars(select(Store).where(or_(*conditions)))).all()

        scored = []
        for store in candidates:
            score = self.text_score(store, terms)
            if score > 0:
                scored.append((store, score))
        scored.sort(key=lambda pair: (-pair[1], pair[0].name.lower()))
        scored = scored[:limit]
        if not scored:
            return []

        # Reviews only for the stores being returned
        ids = [store.id for store, _ in scored]
        stmt = self.with_reviews(select(Store).where(Store.id.in_(ids))).execution_options(
            populate_existing=True
        )
        loaded = {store.id: store for store in (await db.scalars(stmt)).all()}
        return [(loaded[store.id], score) for store, score in scored]

    async def find_near(
        self,
        db: AsyncSession,
        lng: float,
        lat: float,
        max_distance_m: float,
        limit: int,
    ) -> List[Tuple[Row, float]]:
        """
        Stores within `max_distance_m` of (lng, lat), nearest first.

        A lat/lng bounding box narrows the rows in SQL; exact distances are
        computed with the haversine formula. Returns projected rows
        (id, slug, name, description, location columns, photo) with their
        distance in meters.
        """
        lat_delta = max_distance_m / METERS_PER_DEGREE_LAT
        cos_lat = math.cos(math.radians(lat))
        lng_delta = 180.0 if cos_lat < 1e-9 else min(180.0, lat_delta / cos_lat)

        stmt = select(
            Store.id,
            Store.slug,
            Store.name,
            Store.description,
            Store.location_type,
            Store.longitude,
            Store.latitude,
            Store.address,
            Store.photo,
        ).where(
            Store.latitude.between(lat - lat_delta, lat + lat_delta),
            Store.longitude.between(lng - lng_delta, lng + lng_delta),
        )
        rows = (await db.execute(stmt)).all()

        nearby = []
        for row in rows:
            distance = haversine_m(lat, lng, row.latitude, row.longitude)
            if distance <= max_distance_m:
                nearby.append((row, distance))
        nearby.sort(key=lambda pair: pair[1])
        return nearby[:limit]


# ── Singleton Instance ────────────────────────────────────────────────────
store_repository = StoreRepository()
