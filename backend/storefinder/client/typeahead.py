"""
StoreFinder — Type-ahead Search Client
======================================

What:  Live search box: every keystroke queries /api/search and rebuilds
       the dropdown; arrow keys move a highlight and Enter picks a result.
How:   on_input() fetches and renders; on_key() only touches local state.

Markup per result:
    <a href="/store/{slug}" class="search__result"><strong>{name}</strong></a>

Store names and the typed text are HTML-escaped before they reach the markup.
"""

import html
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

logger = logging.getLogger(__name__)

RESULT_CLASS = "search__result"
ACTIVE_CLASS = "search__result--active"

NAVIGATION_KEYS = {"ArrowDown", "ArrowUp", "Enter"}


@dataclass
class SearchItem:
    href: str
    name: str


class TypeAhead:
    """State of one search box and its results dropdown."""

    def __init__(self, client: httpx.AsyncClient, search_path: str = "/api/search"):
        self.client = client
        self.search_path = search_path
        self.visible = False
        self.markup = ""
        self.items: List[SearchItem] = []
        self.active: Optional[int] = None

    async def on_input(self, value: str) -> None:
        """
        Handle a change of the search input.

        Empty input hides the dropdown without a request. HTTP failures
        propagate and leave the previous results in place.
        """
        if not value:
            self.visible = False
            return

        self.visible = True
        response = await self.client.get(self.search_path, params={"q": value})
        response.raise_for_status()
        stores = response.json()

        self.items = [SearchItem(href=f"/store/{store['slug']}", name=store["name"]) for store in stores]
        self.active = None
        if self.items:
            self.markup = "".join(
                f'<a href="{html.escape(item.href)}" class="{RESULT_CLASS}">'
                f"<strong>{html.escape(item.name)}</strong></a>"
                for item in self.items
            )
        else:
            self.markup = f'<div class="{RESULT_CLASS}">No results for {html.escape(value)} found</div>'
        logger.debug("Search %r returned %d result(s)", value, len(self.items))

    def on_key(self, key: str) -> Optional[str]:
        """
        Handle a key press in the search input.

        ArrowDown/ArrowUp move the active highlight, wrapping at both ends.
        Enter returns the href of the active result (where the browser
        would navigate); every other case returns None.
        """
        if key not in NAVIGATION_KEYS or not self.items:
            return None

        if key == "Enter":
            if self.active is None:
                return None
            return self.items[self.active].href

        last = len(self.items) - 1
        if key == "ArrowDown":
            self.active = 0 if self.active is None or self.active == last else self.active + 1
        else:
            self.active = last if self.active is None or self.active == 0 else self.active - 1
        return None

    def classes_for(self, index: int) -> str:
        """CSS classes of the result at `index`."""
        if index == self.active:
            return f"{RESULT_CLASS} {ACTIVE_CLASS}"
        return RESULT_CLASS
