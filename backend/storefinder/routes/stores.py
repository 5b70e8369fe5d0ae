"""
StoreFinder Backend — Store Page Routes
=======================================

What:  The page routes of the store directory: listing, add/edit forms,
       store page, tags, hearted stores and top stores.
How:   Each handler extracts request data, delegates to StoreService and
       returns a JSON page payload or a redirect.

Route Inventory:
    GET  /, /stores, /stores/page/{page}   paginated store list
    GET  /add                              add-store page
    POST /add                              create store (multipart, optional photo)
    GET  /stores/{store_id}/edit           edit page (author only)
    POST /add/{store_id}                   update store (author only)
    GET  /store/{slug}                     store page with author and reviews
    GET  /tags, /tags/{tag}                tag histogram + tagged stores
    GET  /hearts                           requester's hearted stores
    POST /stores/{store_id}/heart          toggle the store in the requester's hearts
    GET  /top                              top-rated stores

Form fields keep the bracketed names of the HTML form
(location[address], location[coordinates][0] = lng, [1] = lat).
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefinder.database import get_db_session
from storefinder.dependencies import get_current_user
from storefinder.models import User
from storefinder.routes.redirects import redirect_with_notice
from storefinder.schemas.common import ErrorResponse
from storefinder.schemas.store import (
    PageResponse,
    StoreForm,
    StoreListResponse,
    StoreResponse,
    StoresPageResponse,
    TagPageResponse,
    TopStoresResponse,
)
from storefinder.schemas.user import UserResponse
from storefinder.services.store_service import store_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Stores"])


def store_form(
    name: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    tags: List[str] = Form(default=[]),
    address: Optional[str] = Form(default=None, alias="location[address]"),
    lng: Optional[float] = Form(default=None, alias="location[coordinates][0]"),
    lat: Optional[float] = Form(default=None, alias="location[coordinates][1]"),
) -> StoreForm:
    return StoreForm(
        name=name,
        description=description,
        tags=tags,
        address=address,
        lng=lng,
        lat=lat,
    )


# ── Listing ───────────────────────────────────────────────────────────────

@router.get("/", response_model=StoreListResponse, summary="Home page (first page of stores)")
@router.get("/stores", response_model=StoreListResponse, summary="First page of stores")
async def get_stores(db: AsyncSession = Depends(get_db_session)):
    return await store_service.get_stores(db, page=1)


@router.get(
    "/stores/page/{page}",
    response_model=StoreListResponse,
    responses={302: {"description": "Page out of range; redirected to the last page"}},
    summary="A page of stores",
)
async def get_stores_page(
    page: int = Path(ge=1, description="1-based page number"),
    db: AsyncSession = Depends(get_db_session),
):
    result = await store_service.get_stores(db, page=page)

    if not result.stores and page > 1:
        last_page = max(result.pages, 1)
        logger.info("Page %d out of range; redirecting to page %d", page, last_page)
        return redirect_with_notice(
            f"/stores/page/{last_page}",
            f"Hey! You asked for page {page}. But that doesn't exist. So I put you on page {last_page}",
            status_code=302,
        )
    return result


# ── Create / Edit ─────────────────────────────────────────────────────────

@router.get("/add", response_model=PageResponse, summary="Add-store page")
async def add_store() -> PageResponse:
    return store_service.add_store_page()


@router.post(
    "/add",
    response_class=RedirectResponse,
    status_code=303,
    responses={
        400: {"description": "Missing field or rejected photo", "model": ErrorResponse},
        401: {"description": "No requester", "model": ErrorResponse},
    },
    summary="Create a store",
)
async def create_store(
    form: StoreForm = Depends(store_form),
    photo: Optional[UploadFile] = File(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    store = await store_service.create_store(db, form, photo, user)
    return redirect_with_notice(
        f"/store/{store.slug}",
        f"Successfully Created {store.name}. Care to leave a review?",
    )


@router.get(
    "/stores/{store_id}/edit",
    response_model=PageResponse,
    responses={
        403: {"description": "Requester is not the author", "model": ErrorResponse},
        404: {"description": "Store not found", "model": ErrorResponse},
    },
    summary="Edit-store page",
)
async def edit_store(
    store_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PageResponse:
    return await store_service.edit_store_page(db, store_id, user)


@router.post(
    "/add/{store_id}",
    response_class=RedirectResponse,
    status_code=303,
    responses={
        400: {"description": "Missing field or rejected photo", "model": ErrorResponse},
        403: {"description": "Requester is not the author", "model": ErrorResponse},
        404: {"description": "Store not found", "model": ErrorResponse},
    },
    summary="Update a store",
)
async def update_store(
    store_id: uuid.UUID,
    form: StoreForm = Depends(store_form),
    photo: Optional[UploadFile] = File(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    store = await store_service.update_store(db, store_id, form, photo, user)
    return redirect_with_notice(
        f"/stores/{store.id}/edit",
        f"Successfully updated {store.name}. View store at /store/{store.slug}",
    )


# ── Store Page ────────────────────────────────────────────────────────────

@router.get(
    "/store/{slug}",
    response_model=StoreResponse,
    responses={404: {"description": "Store not found", "model": ErrorResponse}},
    summary="Store page",
)
async def get_store_by_slug(slug: str, db: AsyncSession = Depends(get_db_session)) -> StoreResponse:
    return await store_service.get_store_by_slug(db, slug)


# ── Tags ──────────────────────────────────────────────────────────────────

@router.get("/tags", response_model=TagPageResponse, summary="All tags and every tagged store")
async def get_tags(db: AsyncSession = Depends(get_db_session)) -> TagPageResponse:
    return await store_service.get_stores_by_tag(db, None)


@router.get("/tags/{tag}", response_model=TagPageResponse, summary="Stores with one tag")
async def get_stores_by_tag(tag: str, db: AsyncSession = Depends(get_db_session)) -> TagPageResponse:
    return await store_service.get_stores_by_tag(db, tag)


# ── Hearts & Rankings ─────────────────────────────────────────────────────

@router.get("/hearts", response_model=StoresPageResponse, summary="Requester's hearted stores")
async def get_hearts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> StoresPageResponse:
    return await store_service.get_hearts(db, user)


@router.post(
    "/stores/{store_id}/heart",
    response_model=UserResponse,
    responses={
        401: {"description": "No requester", "model": ErrorResponse},
        404: {"description": "Store not found", "model": ErrorResponse},
    },
    summary="Heart or un-heart a store",
)
async def heart_store(
    store_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    """Toggle the store in the requester's hearts; returns the updated user."""
    return await store_service.heart_store(db, store_id, user)


@router.get("/top", response_model=TopStoresResponse, summary="Top-rated stores")
async def get_top_stores(db: AsyncSession = Depends(get_db_session)) -> TopStoresResponse:
    return await store_service.get_top_stores(db)
