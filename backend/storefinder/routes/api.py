"""
StoreFinder Backend — JSON API Routes
=====================================

What:  Endpoints called from the browser's scripts: type-ahead search,
       the map's nearby-stores lookup and the heart toggle.
How:   Validates query parameters, delegates to StoreService, returns JSON.
Who:   storefinder.client.typeahead (search) and storefinder.client.heart
       (heart toggle) drive these from Python; the map page calls /near.

Route Inventory:
    GET  /api/search?q=              top-5 text matches, best first
    GET  /api/stores/near?lat=&lng=  up to 10 stores within 10 km, nearest first
    POST /api/stores/{id}/heart      same toggle as POST /stores/{id}/heart
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefinder.database import get_db_session
from storefinder.dependencies import get_current_user
from storefinder.models import User
from storefinder.schemas.common import ErrorResponse
from storefinder.schemas.store import NearbyStore, SearchResult
from storefinder.schemas.user import UserResponse
from storefinder.services.store_service import store_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["API"])


@router.get(
    "/search",
    response_model=List[SearchResult],
    summary="Full-text store search",
    description=(
        "Matches the query against store names and descriptions. Returns at most "
        "five stores ordered by relevance, each with its score."
    ),
)
async def search_stores(
    q: str = Query(default="", description="Search text"),
    db: AsyncSession = Depends(get_db_session),
) -> List[SearchResult]:
    return await store_service.search_stores(db, q)


@router.get(
    "/stores/near",
    response_model=List[NearbyStore],
    summary="Stores near a point",
)
async def map_stores(
    lat: float = Query(ge=-90, le=90, description="Latitude of the query point"),
    lng: float = Query(ge=-180, le=180, description="Longitude of the query point"),
    db: AsyncSession = Depends(get_db_session),
) -> List[NearbyStore]:
    """
    Up to ten stores within 10 km of (lat, lng), nearest first.

    Each entry is a projection (slug, name, description, location, photo)
    plus its distance in meters.
    """
    return await store_service.map_stores(db, lng=lng, lat=lat)


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
    return await store_service.heart_store(db, store_id, user)
