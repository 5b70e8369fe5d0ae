"""
StoreFinder Backend — Review Routes
===================================

POST /reviews/{store_id} saves a review from the store page's review form
and sends the browser back to the store page.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefinder.database import get_db_session
from storefinder.dependencies import get_current_user
from storefinder.models import User
from storefinder.routes.redirects import redirect_with_notice
from storefinder.schemas.common import ErrorResponse
from storefinder.schemas.store import ReviewForm
from storefinder.services.review_service import review_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reviews"])


@router.post(
    "/reviews/{store_id}",
    response_class=RedirectResponse,
    status_code=303,
    responses={
        400: {"description": "Rating outside 1-5 or empty text", "model": ErrorResponse},
        401: {"description": "No requester", "model": ErrorResponse},
        404: {"description": "Store not found", "model": ErrorResponse},
    },
    summary="Review a store",
)
async def add_review(
    store_id: uuid.UUID,
    rating: Optional[int] = Form(default=None),
    text: Optional[str] = Form(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    store = await review_service.add_review(db, store_id, ReviewForm(rating=rating, text=text), user)
    return redirect_with_notice(f"/store/{store.slug}", "Review Saved!")
