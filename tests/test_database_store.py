# ABOUTME: Tests for the database contact store and subscriber repository.
# ABOUTME: Runs against in-memory SQLite to exercise uniqueness, tokens, and ordering.

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import UniqueConstraint, update
from sqlalchemy.exc import OperationalError

from continued_education.contacts.database import DatabaseContactStore
from continued_education.contacts.errors import (
    DuplicateSubscriberError,
    StoreUnavailableError,
    SubscriberNotFoundError,
)
from continued_education.db.models import EmailSubscriber
from continued_education.db.repository import SubscriberRepository


async def _set_subscribed_at(session_factory, subscriber_id: str, when: datetime) -> None:
    async with session_factory() as session:
        await session.execute(
            update(EmailSubscriber)
            .where(EmailSubscriber.id == subscriber_id)
            .values(subscribed_at=when)
        )
        await session.commit()


class TestEmailSubscriberModel:
    """Tests for the EmailSubscriber ORM model."""

    def test_repr_shows_status(self) -> None:
        row = EmailSubscriber(email="repr@test.com", unsubscribe_token="abc", is_active=False)
        assert "repr@test.com" in repr(row)
        assert "unsubscribed" in repr(row)


class TestCreate:
    """Tests for DatabaseContactStore.create."""

    async def test_create_stores_canonical_email(self, db_store: DatabaseContactStore) -> None:
        subscriber = await db_store.create("  Jane@Example.com ", "Jane", "Doe")

        assert subscriber.email == "jane@example.com"
        assert subscriber.is_active is True
        assert subscriber.first_name == "Jane"
        assert subscriber.unsubscribe_token
        assert len(subscriber.unsubscribe_token) == 32

    async def test_create_duplicate_raises(self, db_store: DatabaseContactStore) -> None:
        await db_store.create("jane@example.com")

        with pytest.raises(DuplicateSubscriberError):
            await db_store.create("JANE@example.com")

        assert (await db_store.stats()).total == 1

    async def test_create_duplicate_of_inactive_raises(
        self, db_store: DatabaseContactStore
    ) -> None:
        """Inactive records still own their email."""
        subscriber = await db_store.create("jane@example.com")
        await db_store.set_active(subscriber.id, False)

        with pytest.raises(DuplicateSubscriberError):
            await db_store.create("jane@example.com")

    async def test_tokens_are_unique(self, db_store: DatabaseContactStore) -> None:
        first = await db_store.create("a@example.com")
        second = await db_store.create("b@example.com")
        assert first.unsubscribe_token != second.unsubscribe_token

    async def test_empty_names_stored_as_none(self, db_store: DatabaseContactStore) -> None:
        subscriber = await db_store.create("a@example.com", "", "")
        assert subscriber.first_name is None
        assert subscriber.last_name is None
        assert subscriber.display_name == "a"


class TestLookups:
    """Tests for get, find_by_email and find_by_token."""

    async def test_find_by_email_is_case_insensitive(
        self, db_store: DatabaseContactStore
    ) -> None:
        created = await db_store.create("jane@example.com")

        found = await db_store.find_by_email("Jane@EXAMPLE.com")

        assert found is not None
        assert found.id == created.id

    async def test_find_by_token(self, db_store: DatabaseContactStore) -> None:
        created = await db_store.create("jane@example.com")

        found = await db_store.find_by_token(created.unsubscribe_token)

        assert found is not None
        assert found.email == "jane@example.com"

    async def test_find_by_unknown_or_empty_token(self, db_store: DatabaseContactStore) -> None:
        await db_store.create("jane@example.com")
        assert await db_store.find_by_token("not-a-token") is None
        assert await db_store.find_by_token("") is None

    async def test_get_unknown_returns_none(self, db_store: DatabaseContactStore) -> None:
        assert await db_store.get("missing-id") is None


class TestStatusChanges:
    """Tests for set_active, reactivate and remove."""

    async def test_set_active_is_idempotent(self, db_store: DatabaseContactStore) -> None:
        subscriber = await db_store.create("jane@example.com")

        await db_store.set_active(subscriber.id, False)
        await db_store.set_active(subscriber.id, False)

        stored = await db_store.get(subscriber.id)
        assert stored is not None
        assert stored.is_active is False

    async def test_set_active_keeps_token(self, db_store: DatabaseContactStore) -> None:
        subscriber = await db_store.create("jane@example.com")
        await db_store.set_active(subscriber.id, False)

        stored = await db_store.find_by_token(subscriber.unsubscribe_token)
        assert stored is not None
        assert stored.id == subscriber.id

    async def test_set_active_unknown_raises(self, db_store: DatabaseContactStore) -> None:
        with pytest.raises(SubscriberNotFoundError):
            await db_store.set_active("missing-id", False)

    async def test_reactivate_updates_names(self, db_store: DatabaseContactStore) -> None:
        subscriber = await db_store.create("jane@example.com", "Jane")
        await db_store.set_active(subscriber.id, False)

        reactivated = await db_store.reactivate(subscriber.id, "Janet", "Smith")

        assert reactivated.is_active is True
        assert reactivated.first_name == "Janet"
        assert reactivated.last_name == "Smith"
        assert reactivated.unsubscribe_token == subscriber.unsubscribe_token

    async def test_reactivate_unknown_raises(self, db_store: DatabaseContactStore) -> None:
        with pytest.raises(SubscriberNotFoundError):
            await db_store.reactivate("missing-id")

    async def test_remove_deletes_record(self, db_store: DatabaseContactStore) -> None:
        subscriber = await db_store.create("jane@example.com")

        await db_store.remove(subscriber.id)

        assert await db_store.get(subscriber.id) is None
        assert await db_store.find_by_token(subscriber.unsubscribe_token) is None
        # The email is free again
        again = await db_store.create("jane@example.com")
        assert again.id != subscriber.id

    async def test_remove_unknown_raises(self, db_store: DatabaseContactStore) -> None:
        with pytest.raises(SubscriberNotFoundError):
            await db_store.remove("missing-id")


class TestListingAndStats:
    """Tests for list_all and stats."""

    async def test_list_is_newest_first(
        self, db_store: DatabaseContactStore, session_factory
    ) -> None:
        base = datetime(2026, 1, 1, tzinfo=UTC)
        emails = ["old@example.com", "mid@example.com", "new@example.com"]
        for offset, email in enumerate(emails):
            subscriber = await db_store.create(email)
            await _set_subscribed_at(session_factory, subscriber.id, base + timedelta(days=offset))

        listed = await db_store.list_all()

        assert [s.email for s in listed] == [
            "new@example.com",
            "mid@example.com",
            "old@example.com",
        ]

    async def test_list_active_only(self, db_store: DatabaseContactStore) -> None:
        active = await db_store.create("active@example.com")
        inactive = await db_store.create("inactive@example.com")
        await db_store.set_active(inactive.id, False)

        listed = await db_store.list_all(active_only=True)

        assert [s.id for s in listed] == [active.id]

    async def test_stats_counts_total_and_active(self, db_store: DatabaseContactStore) -> None:
        created = [await db_store.create(f"user{i}@example.com") for i in range(3)]
        await db_store.set_active(created[0].id, False)

        stats = await db_store.stats()

        assert stats.total == 3
        assert stats.active == 2

    async def test_stats_empty(self, db_store: DatabaseContactStore) -> None:
        stats = await db_store.stats()
        assert stats.total == 0
        assert stats.active == 0


class TestUnavailable:
    """Driver failures surface as StoreUnavailableError."""

    async def test_database_error_maps_to_unavailable(self) -> None:
        factory = MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("down")))
        store = DatabaseContactStore(factory)

        with pytest.raises(StoreUnavailableError):
            await store.find_by_email("jane@example.com")


class TestUniquenessConstraint:
    """The table's unique index rejects an insert the pre-check missed."""

    async def test_concurrent_insert_maps_to_duplicate(
        self, db_store: DatabaseContactStore
    ) -> None:
        with patch.object(SubscriberRepository, "get_by_email", AsyncMock(return_value=None)):
            await db_store.create("jane@example.com")

            with pytest.raises(DuplicateSubscriberError):
                await db_store.create("Jane@Example.COM")

        assert (await db_store.stats()).total == 1

    async def test_repository_matches_canonical_email(self, session_factory) -> None:
        async with session_factory() as session:
            repo = SubscriberRepository(session)
            await repo.save(EmailSubscriber(email="jane@example.com", unsubscribe_token="t" * 32))

            found = await repo.get_by_email("jane@example.com")

        assert found is not None
        assert found.unsubscribe_token == "t" * 32

    def test_token_has_single_unique_index(self) -> None:
        table = EmailSubscriber.__table__
        token_indexes = [
            index
            for index in table.indexes
            if [column.name for column in index.columns] == ["unsubscribe_token"]
        ]
        token_constraints = [
            constraint
            for constraint in table.constraints
            if isinstance(constraint, UniqueConstraint)
            and [column.name for column in constraint.columns] == ["unsubscribe_token"]
        ]

        assert len(token_indexes) == 1
        assert token_indexes[0].unique is True
        assert token_indexes[0].name == "ix_email_subscribers_unsubscribe_token"
        assert token_constraints == []
