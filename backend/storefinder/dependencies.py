"""
StoreFinder Backend — Request Dependencies
==========================================

get_current_user resolves the requester for routes that need one
(create/edit stores, hearts, reviews). Authentication itself happens
upstream; by the time a request arrives here the user id travels in the
X-User-ID header.
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from storefinder.database import get_db_session
from storefinder.exceptions import AuthenticationError
from storefinder.models import User

logger = logging.getLogger(__name__)


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if not x_user_id:
        raise AuthenticationError()

    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise AuthenticationError(context={"user_id": x_user_id})

    user = await db.get(User, user_id)
    if user is None:
        logger.warning("Request with unknown user id %s", user_id)
        raise AuthenticationError(context={"user_id": x_user_id})
    return user
