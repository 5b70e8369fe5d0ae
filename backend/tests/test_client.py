"""
StoreFinder — Interaction Client Tests
======================================

TypeAhead and HeartButton driven against the real app through the
test_client fixture (httpx over ASGITransport).

What we test:
    ✅ Empty input hides results without a request
    ✅ Result markup (escaped) and the "No results" message
    ✅ Arrow-key highlight wraps at both ends; Enter yields the href
    ✅ Heart toggle sets the class from the returned hearts, updates the count,
       floats then settles
"""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from storefinder.client.heart import FLOAT_CLASS, HEARTED_CLASS, HeartButton
from storefinder.client.typeahead import ACTIVE_CLASS, TypeAhead


class TestTypeAhead:

    @pytest.mark.asyncio
    async def test_empty_input_hides_without_request(self):
        client = AsyncMock()
        typeahead = TypeAhead(client)
        typeahead.visible = True

        await typeahead.on_input("")

        assert typeahead.visible is False
        client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_results_markup(self, test_client, make_user, make_store):
        author = await make_user()
        await make_store(author, name="Coffee <Corner>")
        typeahead = TypeAhead(test_client)

        await typeahead.on_input("coffee")

        assert typeahead.visible is True
        assert typeahead.markup == (
            '<a href="/store/coffee-corner" class="search__result">'
            "<strong>Coffee &lt;Corner&gt;</strong></a>"
        )

    @pytest.mark.asyncio
    async def test_no_results_message(self, test_client):
        typeahead = TypeAhead(test_client)

        await typeahead.on_input("<b>zzz</b>")

        assert typeahead.items == []
        assert typeahead.markup == '<div class="search__result">No results for &lt;b&gt;zzz&lt;/b&gt; found</div>'

    @pytest.mark.asyncio
    async def test_arrow_keys_wrap_and_enter_navigates(self, test_client, make_user, make_store):
        author = await make_user()
        await make_store(author, name="Pizza One")
        await make_store(author, name="Pizza Two")
        typeahead = TypeAhead(test_client)
        await typeahead.on_input("pizza")
        hrefs = [item.href for item in typeahead.items]

        assert typeahead.on_key("Enter") is None  # nothing highlighted yet

        typeahead.on_key("ArrowDown")
        assert typeahead.active == 0
        typeahead.on_key("ArrowDown")
        typeahead.on_key("ArrowDown")
        assert typeahead.active == 0  # wrapped past the bottom

        typeahead.on_key("ArrowUp")
        assert typeahead.active == 1  # wrapped past the top
        assert ACTIVE_CLASS in typeahead.classes_for(1)
        assert ACTIVE_CLASS not in typeahead.classes_for(0)

        assert typeahead.on_key("Enter") == hrefs[1]

    def test_other_keys_ignored(self):
        typeahead = TypeAhead(AsyncMock())
        assert typeahead.on_key("a") is None
        assert typeahead.active is None


class TestHeartButton:

    @pytest.mark.asyncio
    async def test_heart_then_unheart(self, test_client, make_user, make_store):
        user = await make_user()
        store = await make_store(user)
        test_client.headers["X-User-ID"] = str(user.id)
        button = HeartButton(test_client, store.id, float_duration=0.05)

        assert await button.submit() is True
        assert HEARTED_CLASS in button.classes
        assert FLOAT_CLASS in button.classes
        assert button.count == 1

        await asyncio.sleep(0.1)
        assert FLOAT_CLASS not in button.classes

        assert await button.submit() is False
        assert HEARTED_CLASS not in button.classes
        assert FLOAT_CLASS not in button.classes
        assert button.count == 0

    @pytest.mark.asyncio
    async def test_http_error_leaves_button_unchanged(self, test_client, make_user, make_store):
        user = await make_user()
        store = await make_store(user)
        button = HeartButton(test_client, store.id, hearted=True)

        with pytest.raises(httpx.HTTPStatusError):
            await button.submit()  # no X-User-ID → 401

        assert button.hearted is True
        assert button.count == 0

    @pytest.mark.asyncio
    async def test_class_follows_response_not_initial_state(self, test_client, make_user, make_store):
        user = await make_user()
        store = await make_store(user)
        test_client.headers["X-User-ID"] = str(user.id)
        # Page claimed the store was hearted; the server has no heart yet
        button = HeartButton(test_client, store.id, hearted=True, float_duration=0.05)

        assert await button.submit() is True
        assert button.hearted is True
        assert button.count == 1

    def test_default_action(self):
        button = HeartButton(AsyncMock(), "abc")
        assert button.action == "/stores/abc/heart"
