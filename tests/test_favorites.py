"""Tests for the favorites store."""

import uuid

import pytest

from weather_portal.database.connection import get_db
from weather_portal.errors import (
    DuplicateFavoriteError,
    NotFoundError,
    QuotaExceededError,
    StoreNotProvisionedError,
    ValidationError,
)
from weather_portal.favorites import FavoritesStore


@pytest.fixture
def store(db_session) -> FavoritesStore:
    return FavoritesStore(db_session)


@pytest.fixture
async def three_favorites(store, user):
    for place in ["Paris", "Lyon", "Nice"]:
        await store.add(user.id, place)
    return store


class TestAdd:
    """Tests for adding favorites."""

    async def test_add_and_list(self, store, user):
        favorite = await store.add(user.id, "  Paris ")

        assert favorite.place == "Paris"
        assert favorite.user_id == user.id
        assert favorite.created_at is not None
        assert [f.place for f in await store.list(user.id)] == ["Paris"]

    async def test_blank_place_rejected(self, store, user):
        with pytest.raises(ValidationError):
            await store.add(user.id, "   ")

    async def test_duplicate_ignores_case(self, three_favorites, user):
        with pytest.raises(DuplicateFavoriteError) as exc_info:
            await three_favorites.add(user.id, "paris")
        assert exc_info.value.place == "paris"

    async def test_quota_reached(self, three_favorites, user):
        with pytest.raises(QuotaExceededError) as exc_info:
            await three_favorites.add(user.id, "Marseille")

        assert exc_info.value.current_count == 3
        assert exc_info.value.max_allowed == 3
        assert exc_info.value.to_dict()["max_allowed"] == 3

    @pytest.mark.parametrize("place", ["Marseille", "Bordeaux", "Brest"])
    async def test_quota_rejects_any_new_place(self, three_favorites, user, place):
        with pytest.raises(QuotaExceededError):
            await three_favorites.add(user.id, place)

    @pytest.mark.parametrize("place", ["paris", "LYON", " Nice "])
    async def test_duplicate_at_quota(self, three_favorites, user, place):
        user_id = user.id
        with pytest.raises(DuplicateFavoriteError):
            await three_favorites.add(user_id, place)
        assert await three_favorites.count(user_id) == 3

    async def test_unlimited_skips_quota(self, three_favorites, user):
        await three_favorites.add(user.id, "Marseille", unlimited=True)
        assert await three_favorites.count(user.id) == 4

    async def test_unlimited_still_rejects_duplicates(self, three_favorites, user):
        with pytest.raises(DuplicateFavoriteError):
            await three_favorites.add(user.id, "NICE", unlimited=True)

    async def test_quota_is_per_user(self, three_favorites):
        favorite = await three_favorites.add("u2", "Paris")
        assert favorite.user_id == "u2"

    async def test_custom_quota(self, db_session, user):
        store = FavoritesStore(db_session, quota=1)
        await store.add(user.id, "Paris")
        with pytest.raises(QuotaExceededError):
            await store.add(user.id, "Lyon")

    async def test_store_usable_after_rejection(self, three_favorites, user):
        user_id = user.id
        with pytest.raises(QuotaExceededError):
            await three_favorites.add(user_id, "Marseille")
        assert await three_favorites.contains(user_id, "lyon")

    async def test_duplicate_from_another_session(self, store, user):
        """Another session sees the committed favorite and rejects the duplicate."""
        await store.add(user.id, "Paris")

        async with get_db() as other_session:
            other = FavoritesStore(other_session, quota=10)
            with pytest.raises(DuplicateFavoriteError):
                await other.add(user.id, "PARIS", unlimited=True)


class TestList:
    """Tests for listing favorites."""

    async def test_most_recent_first(self, three_favorites, user):
        places = [f.place for f in await three_favorites.list(user.id)]
        assert places == ["Nice", "Lyon", "Paris"]

    async def test_list_all_users(self, three_favorites):
        await three_favorites.add("u2", "Brest")
        assert len(await three_favorites.list()) == 4

    async def test_contains(self, three_favorites, user):
        assert await three_favorites.contains(user.id, "LYON")
        assert not await three_favorites.contains(user.id, "Brest")


class TestRemove:
    """Tests for removing favorites."""

    async def test_remove_by_place(self, three_favorites, user):
        removed = await three_favorites.remove(user_id=user.id, place="Lyon")

        assert removed.place == "Lyon"
        assert await three_favorites.count(user.id) == 2

    async def test_remove_by_id(self, store, user):
        favorite = await store.add(user.id, "Paris")
        await store.remove(favorite_id=favorite.id)
        assert await store.list(user.id) == []

    async def test_remove_frees_quota(self, three_favorites, user):
        await three_favorites.remove(user_id=user.id, place="Nice")
        await three_favorites.add(user.id, "Marseille")
        assert await three_favorites.count(user.id) == 3

    async def test_remove_missing(self, three_favorites, user):
        with pytest.raises(NotFoundError):
            await three_favorites.remove(user_id=user.id, place="Brest")

    async def test_remove_unknown_id(self, store, engine):
        with pytest.raises(NotFoundError):
            await store.remove(favorite_id=uuid.uuid4())

    async def test_remove_needs_place_or_id(self, store, engine):
        with pytest.raises(ValidationError):
            await store.remove(user_id="u1")


class TestProvisioning:
    """Tests for the missing-table check."""

    async def test_provisioned(self, store):
        await store.ensure_provisioned()

    async def test_not_provisioned(self, empty_engine):
        async with get_db() as session:
            with pytest.raises(StoreNotProvisionedError) as exc_info:
                await FavoritesStore(session).ensure_provisioned()

        body = exc_info.value.to_dict()
        assert exc_info.value.status_code == 503
        assert body["error"] == "Setup required"
        assert body["needs_setup"] is True
