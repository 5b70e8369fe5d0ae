"""
StoreFinder Backend — Store Service
===================================

What:  Business logic behind every store route: listing, create/edit,
       store page, tags, search, map, hearts and top stores.
Why:   Routes stay thin (HTTP only); ownership and upload rules live here.
How:   Composes StoreRepository (queries) and PhotoService (uploads).

Create flow (POST /add):
    photo pipeline → Store(author = requester) → repository.save() → Store

Update flow (POST /add/{id}):
    load → confirm owner → photo pipeline → apply form, location.type = "Point"
    → repository.save() (slug re-derived on rename) → Store

Independent reads (page + count, tag list + tagged stores) are gathered
concurrently, each on its own session (see database.sibling_session).
"""

import asyncio
import logging
import math
import uuid
from typing import Awaitable, Callable, List, Optional, TypeVar

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefinder.config import settings
from storefinder.database import database_errors, sibling_session
from storefinder.exceptions import NotFoundError, OwnershipError
from storefinder.models import Heart, Store, User
from storefinder.schemas.store import (
    LocationResponse,
    NearbyStore,
    PageResponse,
    SearchResult,
    StoreForm,
    StoreListResponse,
    StoreResponse,
    StoresPageResponse,
    TagCount,
    TagPageResponse,
    TopStore,
    TopStoresResponse,
)
from storefinder.schemas.user import UserResponse
from storefinder.services.photo_service import photo_service
from storefinder.services.store_repository import store_repository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def confirm_owner(store: Store, user: User) -> None:
    """Raise OwnershipError unless `user` is the store's author."""
    if store.author_id != user.id:
        raise OwnershipError(context={"store_id": str(store.id), "user_id": str(user.id)})


async def _in_sibling(db: AsyncSession, query: Callable[..., Awaitable[T]], *args) -> T:
    async with sibling_session(db) as session:
        return await query(session, *args)


class StoreService:
    """
    Stateless orchestrator for store operations.

    Every method receives the request's session; writes are flushed here
    and committed by the get_db_session dependency.
    """

    # ── Listing ───────────────────────────────────────────────────────────

    async def get_stores(self, db: AsyncSession, page: int = 1) -> StoreListResponse:
        """
        One page of stores, newest first.

        pages = ceil(count / page_size). A page past the end comes back with
        an empty `stores` list; the route turns that into a redirect.
        """
        limit = settings.stores_page_size
        skip = (page - 1) * limit

        with database_errors("load stores", page=page):
            stores, count = await asyncio.gather(
                _in_sibling(db, store_repository.list_page, limit, skip),
                _in_sibling(db, store_repository.count),
            )

        return StoreListResponse(
            title="Stores",
            stores=[StoreResponse.from_store(store) for store in stores],
            page=page,
            pages=math.ceil(count / limit),
            count=count,
        )

    # ── Create / Edit ─────────────────────────────────────────────────────

    def add_store_page(self) -> PageResponse:
        return PageResponse(title="Add Store")

    async def create_store(
        self,
        db: AsyncSession,
        form: StoreForm,
        photo: Optional[UploadFile],
        author: User,
    ) -> Store:
        filename = await photo_service.process_upload(photo)

        store = Store(
            name=form.name,
            description=form.description,
            location_type="Point",
            longitude=form.lng,
            latitude=form.lat,
            address=form.address,
            photo=filename,
            author_id=author.id,
        )
        store.tags = form.tags

        try:
            with database_errors("create the store"):
                await store_repository.save(db, store, name_changed=True)
        except Exception:
            if filename:
                await photo_service.discard(filename)
            raise

        logger.info("Store created: %s (slug=%s) by %s", store.id, store.slug, author.id)
        return store

    async def _get_owned_store(self, db: AsyncSession, store_id: uuid.UUID, user: User) -> Store:
        with database_errors("load the store", store_id=str(store_id)):
            store = await store_repository.find_by_id(db, store_id)
        if store is None:
            raise NotFoundError(resource="store", resource_id=str(store_id))
        confirm_owner(store, user)
        return store

    async def edit_store_page(self, db: AsyncSession, store_id: uuid.UUID, user: User) -> PageResponse:
        store = await self._get_owned_store(db, store_id, user)
        return PageResponse(title=f"Edit {store.name}", store=StoreResponse.from_store(store))

    async def update_store(
        self,
        db: AsyncSession,
        store_id: uuid.UUID,
        form: StoreForm,
        photo: Optional[UploadFile],
        user: User,
    ) -> Store:
        """
        Apply the edit form to a store the requester owns.

        Ownership is checked before the photo is processed or any field is
        touched, so a rejected edit leaves no trace.
        """
        store = await self._get_owned_store(db, store_id, user)
        filename = await photo_service.process_upload(photo)

        name_changed = form.name != store.name
        store.name = form.name
        store.description = form.description
        store.tags = form.tags
        # Update-style writes get no defaults
        store.location_type = "Point"
        store.longitude = form.lng
        store.latitude = form.lat
        store.address = form.address
        if filename:
            store.photo = filename

        try:
            with database_errors("update the store", store_id=str(store_id)):
                await store_repository.save(db, store, name_changed=name_changed)
        except Exception:
            if filename:
                await photo_service.discard(filename)
            raise

        logger.info("Store updated: %s (slug=%s)", store.id, store.slug)
        return store

    # ── Store Page ────────────────────────────────────────────────────────

    async def get_store_by_slug(self, db: AsyncSession, slug: str) -> StoreResponse:
        with database_errors("load the store", slug=slug):
            store = await store_repository.find_by_slug(db, slug)
        if store is None:
            raise NotFoundError(resource="store", resource_id=slug)
        return StoreResponse.from_store(store, with_author=True)

    # ── Tags ──────────────────────────────────────────────────────────────

    async def get_stores_by_tag(self, db: AsyncSession, tag: Optional[str] = None) -> TagPageResponse:
        with database_errors("load tags", tag=tag):
            tags, stores = await asyncio.gather(
                _in_sibling(db, store_repository.get_tags_list),
                _in_sibling(db, store_repository.find_by_tag, tag),
            )
        return TagPageResponse(
            tag=tag,
            tags=[TagCount(tag=name, count=count) for name, count in tags],
            stores=[StoreResponse.from_store(store) for store in stores],
        )

    # ── JSON API ──────────────────────────────────────────────────────────

    async def search_stores(self, db: AsyncSession, query: str) -> List[SearchResult]:
        with database_errors("search stores"):
            matches = await store_repository.search(db, query, settings.search_result_limit)
        return [
            SearchResult(**SearchResult.store_fields(store), score=score)
            for store, score in matches
        ]

    async def map_stores(self, db: AsyncSession, lng: float, lat: float) -> List[NearbyStore]:
        with database_errors("find nearby stores", lng=lng, lat=lat):
            nearby = await store_repository.find_near(
                db, lng, lat, settings.near_max_distance_m, settings.near_result_limit
            )
        return [
            NearbyStore(
                id=row.id,
                slug=row.slug,
                name=row.name,
                description=row.description,
                location=LocationResponse(
                    type=row.location_type,
                    coordinates=[row.longitude, row.latitude],
                    address=row.address,
                ),
                photo=row.photo,
                distance_m=round(distance, 1),
            )
            for row, distance in nearby
        ]

    # ── Hearts ────────────────────────────────────────────────────────────

    async def get_heart_ids(self, db: AsyncSession, user: User) -> List[uuid.UUID]:
        stmt = select(Heart.store_id).where(Heart.user_id == user.id).order_by(Heart.created)
        return list((await db.scalars(stmt)).all())

    async def heart_store(self, db: AsyncSession, store_id: uuid.UUID, user: User) -> UserResponse:
        """
        Toggle `store_id` in the requester's hearts.

        Already hearted → removed; otherwise added. Returns the user with
        the updated heart set.
        """
        with database_errors("update hearts", store_id=str(store_id)):
            exists = await db.scalar(select(Store.id).where(Store.id == store_id))
            if exists is None:
                raise NotFoundError(resource="store", resource_id=str(store_id))

            heart = await db.get(Heart, (user.id, store_id))
            if heart is not None:
                await db.delete(heart)
            else:
                db.add(Heart(user_id=user.id, store_id=store_id))
            await db.flush()

            hearts = await self.get_heart_ids(db, user)

        logger.info(
            "User %s %s store %s",
            user.id,
            "unhearted" if heart is not None else "hearted",
            store_id,
        )
        return UserResponse(id=user.id, name=user.name, email=user.email, hearts=hearts)

    async def get_hearts(self, db: AsyncSession, user: User) -> StoresPageResponse:
        with database_errors("load hearted stores"):
            stores = await store_repository.find_hearted(db, user.id)
        return StoresPageResponse(
            title="Hearted Stores",
            stores=[StoreResponse.from_store(store) for store in stores],
        )

    # ── Rankings ──────────────────────────────────────────────────────────

    async def get_top_stores(self, db: AsyncSession) -> TopStoresResponse:
        with database_errors("load top stores"):
            ranked = await store_repository.get_top_stores(
                db, settings.top_stores_limit, settings.top_stores_min_reviews
            )
        return TopStoresResponse(
            stores=[
                TopStore(
                    **TopStore.store_fields(store),
                    average_rating=round(average, 2),
                    review_count=count,
                )
                for store, average, count in ranked
            ]
        )


# ── Singleton Instance ────────────────────────────────────────────────────
store_service = StoreService()
