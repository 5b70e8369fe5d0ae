"""
StoreFinder Backend — Store & Review Service Tests
==================================================

What:  Business rules of StoreService and ReviewService on a real SQLite
       database: pagination math, ownership, heart toggling, reviews.

What we test:
    ✅ Page slicing and page count (including the empty directory)
    ✅ Non-author edits rejected before anything changes
    ✅ Update re-derives the slug on rename and resets location type
    ✅ Heart toggle adds, then removes (set semantics)
    ✅ Review rating/text validation
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import select

from storefinder.exceptions import NotFoundError, OwnershipError, ValidationError
from storefinder.models import Review, Store
from storefinder.schemas.store import ReviewForm, StoreForm
from storefinder.services.review_service import ReviewService
from storefinder.services.store_service import StoreService


def edit_form(**overrides) -> StoreForm:
    fields = dict(
        name="Edited Name",
        description="New description",
        tags=["Wifi"],
        address="2 Side St",
        lng=-79.40,
        lat=43.66,
    )
    fields.update(overrides)
    return StoreForm(**fields)


class TestPagination:

    def setup_method(self):
        self.service = StoreService()

    @pytest.mark.asyncio
    async def test_pages_and_slice(self, db_session, make_user, make_store):
        """Nine stores at four per page → three pages, the last holding one."""
        author = await make_user()
        for i in range(9):
            await make_store(author, name=f"Store {i}")

        first = await self.service.get_stores(db_session, page=1)
        last = await self.service.get_stores(db_session, page=3)

        assert (first.pages, first.count, len(first.stores)) == (3, 9, 4)
        assert len(last.stores) == 1

    @pytest.mark.asyncio
    async def test_newest_first(self, db_session, make_user, make_store):
        author = await make_user()
        await make_store(author, name="Older")
        await make_store(author, name="Newer")

        result = await self.service.get_stores(db_session, page=1)

        assert [s.name for s in result.stores] == ["Newer", "Older"]

    @pytest.mark.asyncio
    async def test_past_the_end_is_empty(self, db_session, make_user, make_store):
        author = await make_user()
        await make_store(author)

        result = await self.service.get_stores(db_session, page=5)

        assert result.stores == []
        assert result.pages == 1

    @pytest.mark.asyncio
    async def test_empty_directory(self, db_session):
        result = await self.service.get_stores(db_session, page=1)
        assert (result.pages, result.count, result.stores) == (0, 0, [])


class TestOwnership:

    def setup_method(self):
        self.service = StoreService()

    @pytest.mark.asyncio
    async def test_non_author_cannot_open_edit_page(self, db_session, make_user, make_store):
        author = await make_user("Author")
        other = await make_user("Other")
        store = await make_store(author)

        with pytest.raises(OwnershipError, match="You must own a store in order to edit it"):
            await self.service.edit_store_page(db_session, store.id, other)

    @pytest.mark.asyncio
    async def test_non_author_update_leaves_store_unchanged(
        self, db_session, session_factory, make_user, make_store
    ):
        author = await make_user("Author")
        other = await make_user("Other")
        store = await make_store(author, name="Original", tags=["Cozy"])

        with patch("storefinder.services.store_service.photo_service") as mock_photo:
            mock_photo.process_upload = AsyncMock(return_value="should-not-happen.png")
            with pytest.raises(OwnershipError):
                await self.service.update_store(db_session, store.id, edit_form(), None, other)
            mock_photo.process_upload.assert_not_awaited()

        await db_session.rollback()
        async with session_factory() as fresh:
            reloaded = await fresh.scalar(select(Store).where(Store.id == store.id))
            assert (reloaded.name, reloaded.slug, reloaded.tags) == ("Original", "original", ["Cozy"])

    @pytest.mark.asyncio
    async def test_unknown_store(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(NotFoundError):
            await self.service.edit_store_page(db_session, uuid4(), user)


class TestUpdate:

    def setup_method(self):
        self.service = StoreService()

    @pytest.mark.asyncio
    async def test_author_update_applies_form(self, db_session, make_user, make_store):
        author = await make_user()
        store = await make_store(author, name="Original", tags=["Cozy"])
        store.location_type = "Polygon"

        updated = await self.service.update_store(db_session, store.id, edit_form(), None, author)

        assert updated.name == "Edited Name"
        assert updated.slug == "edited-name"
        assert updated.tags == ["Wifi"]
        assert updated.location_type == "Point"
        assert updated.coordinates == [-79.40, 43.66]

    @pytest.mark.asyncio
    async def test_update_without_photo_keeps_existing(self, db_session, make_user, make_store):
        author = await make_user()
        store = await make_store(author)
        store.photo = "existing.png"
        await db_session.commit()

        updated = await self.service.update_store(db_session, store.id, edit_form(), None, author)

        assert updated.photo == "existing.png"

    @pytest.mark.asyncio
    async def test_rejected_store_discards_photo(self, db_session, make_user):
        author = await make_user()

        with patch("storefinder.services.store_service.photo_service") as mock_photo:
            mock_photo.process_upload = AsyncMock(return_value="orphan.png")
            mock_photo.discard = AsyncMock()
            with pytest.raises(ValidationError, match="You must supply an address!"):
                await self.service.create_store(db_session, edit_form(address=""), None, author)
            mock_photo.discard.assert_awaited_once_with("orphan.png")


class TestHearts:

    def setup_method(self):
        self.service = StoreService()

    @pytest.mark.asyncio
    async def test_toggle_twice_restores_hearts(self, db_session, make_user, make_store):
        user = await make_user()
        kept = await make_store(user, name="Kept")
        toggled = await make_store(user, name="Toggled")
        await self.service.heart_store(db_session, kept.id, user)

        after_add = await self.service.heart_store(db_session, toggled.id, user)
        after_remove = await self.service.heart_store(db_session, toggled.id, user)

        assert set(after_add.hearts) == {kept.id, toggled.id}
        assert after_remove.hearts == [kept.id]

    @pytest.mark.asyncio
    async def test_hearted_stores_page(self, db_session, make_user, make_store):
        user = await make_user()
        hearted = await make_store(user, name="Loved")
        await make_store(user, name="Ignored")
        await self.service.heart_store(db_session, hearted.id, user)

        page = await self.service.get_hearts(db_session, user)

        assert page.title == "Hearted Stores"
        assert [s.name for s in page.stores] == ["Loved"]

    @pytest.mark.asyncio
    async def test_unknown_store(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(NotFoundError):
            await self.service.heart_store(db_session, uuid4(), user)


class TestReviews:

    def setup_method(self):
        self.service = ReviewService()

    @pytest.mark.parametrize("rating", [None, 0, 6])
    def test_rating_out_of_range(self, rating):
        with pytest.raises(ValidationError, match="Please rate the store from 1 to 5 stars!"):
            self.service.validate(ReviewForm(rating=rating, text="Great"))

    def test_text_required(self):
        with pytest.raises(ValidationError, match="Your review must have text!"):
            self.service.validate(ReviewForm(rating=4, text="   "))

    @pytest.mark.asyncio
    async def test_invalid_review_never_touches_database(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.add_review(mock_db_session, uuid4(), ReviewForm(rating=9, text="x"), None)
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_review_saved(self, db_session, make_user, make_store):
        author = await make_user()
        store = await make_store(author)

        result = await self.service.add_review(db_session, store.id, ReviewForm(rating=5, text="Lovely"), author)

        assert result.id == store.id
        reviews = (await db_session.scalars(select(Review).where(Review.store_id == store.id))).all()
        assert [(r.rating, r.text) for r in reviews] == [(5, "Lovely")]
