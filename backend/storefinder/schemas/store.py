"""
StoreFinder Backend — Store Request/Response Schemas
====================================================

What:  Pydantic models defining the API contract for stores, tags and reviews.
How:   FastAPI uses these models to serialize responses and generate the
       OpenAPI documentation. StoreForm carries the add/edit form fields
       from the route into the service.

Page payloads (StoreListResponse, TagPageResponse, ...) stand in for the
rendered pages: each carries the page title plus the data a page shows.

Location is exposed as a GeoJSON-style point:
    {"type": "Point", "coordinates": [lng, lat], "address": "..."}
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from storefinder.schemas.user import UserSummary


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class StoreForm(BaseModel):
    """
    Fields submitted by the add/edit store form.

    Everything is optional here on purpose: required-field checks live in
    StoreRepository.validate() so that missing fields produce the same
    user-facing messages on create and update.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    address: Optional[str] = None
    lng: Optional[float] = None
    lat: Optional[float] = None

    @field_validator("name", "description", "address")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    @field_validator("tags")
    @classmethod
    def drop_blank_tags(cls, v: List[str]) -> List[str]:
        return [tag.strip() for tag in v if tag and tag.strip()]


class ReviewForm(BaseModel):
    rating: Optional[int] = None
    text: Optional[str] = None

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class LocationResponse(BaseModel):
    type: str = Field(default="Point", description="Geometry type")
    coordinates: List[float] = Field(description="[longitude, latitude]")
    address: str


class ReviewResponse(BaseModel):
    id: uuid.UUID
    store_id: uuid.UUID
    author_id: uuid.UUID
    rating: int
    text: str
    created: datetime

    model_config = {"from_attributes": True}


class StoreResponse(BaseModel):
    """
    Full representation of a store.

    `reviews` is populated whenever the repository attached them (list and
    single fetches); `author` only on the store page.
    """
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created: datetime
    location: LocationResponse
    photo: Optional[str] = None
    author_id: uuid.UUID
    author: Optional[UserSummary] = None
    reviews: List[ReviewResponse] = Field(default_factory=list)

    @classmethod
    def store_fields(cls, store, *, with_author: bool = False, with_reviews: bool = True) -> dict:
        return dict(
            id=store.id,
            name=store.name,
            slug=store.slug,
            description=store.description,
            tags=store.tags,
            created=store.created,
            location=LocationResponse(
                type=store.location_type,
                coordinates=store.coordinates,
                address=store.address,
            ),
            photo=store.photo,
            author_id=store.author_id,
            author=UserSummary.model_validate(store.author) if with_author else None,
            reviews=(
                [ReviewResponse.model_validate(r) for r in store.reviews]
                if with_reviews else []
            ),
        )

    @classmethod
    def from_store(cls, store, **kwargs) -> "StoreResponse":
        return cls(**cls.store_fields(store, **kwargs))


class SearchResult(StoreResponse):
    """Store returned by GET /api/search, with its relevance score."""
    score: float = Field(description="Relevance of the store to the query (higher is better)")


class NearbyStore(BaseModel):
    """Projection returned by GET /api/stores/near."""
    id: uuid.UUID
    slug: str
    name: str
    description: Optional[str] = None
    location: LocationResponse
    photo: Optional[str] = None
    distance_m: float = Field(description="Great-circle distance from the query point, in meters")


class TopStore(StoreResponse):
    average_rating: float
    review_count: int


class TagCount(BaseModel):
    tag: str
    count: int


# ══════════════════════════════════════════════════════════════════════════
# Page Payloads
# ══════════════════════════════════════════════════════════════════════════


class PageResponse(BaseModel):
    """Add/edit store page."""
    title: str
    store: Optional[StoreResponse] = None


class StoresPageResponse(BaseModel):
    title: str
    stores: List[StoreResponse]


class StoreListResponse(StoresPageResponse):
    """
    One page of the store listing.

    pages is ceil(count / page_size); 0 when there are no stores.
    """
    page: int
    pages: int
    count: int


class TagPageResponse(BaseModel):
    title: str = "Tags"
    tag: Optional[str] = None
    tags: List[TagCount]
    stores: List[StoreResponse]


class TopStoresResponse(BaseModel):
    title: str = "Top Stores!"
    stores: List[TopStore]
