"""
StoreFinder Backend — User Schemas
==================================

UserResponse is what POST /api/stores/{id}/heart returns: the requester
with their updated heart set, so the client can show the new count.
"""

import uuid
from typing import List

from pydantic import BaseModel, Field


class UserSummary(BaseModel):
    """Author block embedded in store and review payloads."""
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    id: uuid.UUID = Field(description="User identifier")
    name: str = Field(description="Display name")
    email: str = Field(description="Email address")
    hearts: List[uuid.UUID] = Field(
        default_factory=list,
        description="IDs of the stores this user has hearted",
    )
