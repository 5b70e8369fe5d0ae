"""
StoreFinder — Heart Toggle Client
=================================

Submits the heart form of one store without a page reload and mirrors the
button state: hearted class, page-wide heart count, and a short float
animation when a store becomes hearted.
"""

import asyncio
import logging
import uuid
from typing import Optional, Set, Union

import httpx

logger = logging.getLogger(__name__)

HEARTED_CLASS = "heart__button--hearted"
FLOAT_CLASS = "heart__button--float"


class HeartButton:
    """
    State of one heart button.

    Args:
        client: httpx client pointed at the backend, carrying X-User-ID.
        store_id: Id of the store the button belongs to.
        hearted: Whether the store is hearted when the page loads.
        float_duration: Seconds the float class stays on after hearting.
        action: Form action; defaults to "/stores/{store_id}/heart".
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        store_id: Union[str, uuid.UUID],
        hearted: bool = False,
        float_duration: float = 2.5,
        action: Optional[str] = None,
    ):
        self.client = client
        self.store_id = str(store_id)
        self.action = action or f"/stores/{self.store_id}/heart"
        self.float_duration = float_duration
        self.classes: Set[str] = {"heart__button"}
        if hearted:
            self.classes.add(HEARTED_CLASS)
        self.count = 0

    @property
    def hearted(self) -> bool:
        return HEARTED_CLASS in self.classes

    async def submit(self) -> bool:
        """
        POST the heart form and update the button from the returned user.

        The hearted class follows whether the store is in the user's hearts,
        whatever the button showed before. Returns the new hearted state. On
        an HTTP error the exception propagates and the button is left as it was.
        """
        response = await self.client.post(self.action)
        response.raise_for_status()
        hearts = response.json()["hearts"]

        now_hearted = self.store_id in hearts
        if now_hearted:
            self.classes.add(HEARTED_CLASS)
            self.classes.add(FLOAT_CLASS)
            asyncio.get_running_loop().call_later(self.float_duration, self.classes.discard, FLOAT_CLASS)
        else:
            self.classes.discard(HEARTED_CLASS)
        self.count = len(hearts)

        logger.debug("Heart %s → hearted=%s, count=%d", self.action, now_hearted, self.count)
        return now_hearted
