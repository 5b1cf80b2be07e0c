# ABOUTME: Tests for resolving unsubscribe links and the email fallback form.
# ABOUTME: Verifies terminal states, idempotency, and status codes.

from unittest.mock import AsyncMock, MagicMock

import pytest

from continued_education.config import Settings
from continued_education.contacts.database import DatabaseContactStore
from continued_education.models import SubscriptionResult, UnsubscribeState
from continued_education.services.subscription_service import SubscriptionService
from continued_education.services.unsubscribe_resolver import UnsubscribeResolver


@pytest.fixture
def resolver(db_store: DatabaseContactStore, mock_settings: Settings) -> UnsubscribeResolver:
    service = SubscriptionService(db_store, settings=mock_settings)
    return UnsubscribeResolver(db_store, service)


class TestResolveToken:
    """Tests for the emailed token link."""

    async def test_valid_token_unsubscribes(
        self, resolver: UnsubscribeResolver, db_store: DatabaseContactStore
    ) -> None:
        subscriber = await db_store.create("jane@example.com")

        outcome = await resolver.resolve_token(subscriber.unsubscribe_token)

        assert outcome.state is UnsubscribeState.SUCCESS
        assert outcome.status_code == 200
        assert "Continued Education" in outcome.message
        assert (await db_store.get(subscriber.id)).is_active is False

    async def test_second_click_is_already_unsubscribed(
        self, resolver: UnsubscribeResolver, db_store: DatabaseContactStore
    ) -> None:
        subscriber = await db_store.create("jane@example.com")
        await resolver.resolve_token(subscriber.unsubscribe_token)

        outcome = await resolver.resolve_token(subscriber.unsubscribe_token)

        assert outcome.state is UnsubscribeState.ALREADY_UNSUBSCRIBED
        assert outcome.succeeded is True
        assert (await db_store.get(subscriber.id)).is_active is False

    @pytest.mark.parametrize("token", [None, ""])
    async def test_missing_token(self, resolver: UnsubscribeResolver, token) -> None:
        outcome = await resolver.resolve_token(token)

        assert outcome.state is UnsubscribeState.ERROR
        assert outcome.status_code == 400
        assert outcome.message == "Invalid unsubscribe link. Please contact support."

    async def test_unknown_token(
        self, resolver: UnsubscribeResolver, db_store: DatabaseContactStore
    ) -> None:
        subscriber = await db_store.create("jane@example.com")

        outcome = await resolver.resolve_token("0123456789abcdef")

        assert outcome.state is UnsubscribeState.ERROR
        assert outcome.status_code == 404
        assert (await db_store.get(subscriber.id)).is_active is True

    async def test_store_failure(self, mock_settings: Settings) -> None:
        store = MagicMock()
        store.find_by_token = AsyncMock(side_effect=RuntimeError("connection reset"))
        resolver = UnsubscribeResolver(store, SubscriptionService(store, settings=mock_settings))

        outcome = await resolver.resolve_token("abcdef123456")

        assert outcome.state is UnsubscribeState.ERROR
        assert outcome.status_code == 500
        assert "connection reset" not in outcome.message


class TestResolveEmail:
    """Tests for the email fallback form."""

    async def test_known_email(
        self, resolver: UnsubscribeResolver, db_store: DatabaseContactStore
    ) -> None:
        subscriber = await db_store.create("jane@example.com")

        outcome = await resolver.resolve_email(" Jane@Example.com ")

        assert outcome.state is UnsubscribeState.SUCCESS
        assert (await db_store.get(subscriber.id)).is_active is False

    async def test_repeat_is_already_unsubscribed(
        self, resolver: UnsubscribeResolver, db_store: DatabaseContactStore
    ) -> None:
        await db_store.create("jane@example.com")
        await resolver.resolve_email("jane@example.com")

        outcome = await resolver.resolve_email("jane@example.com")

        assert outcome.state is UnsubscribeState.ALREADY_UNSUBSCRIBED

    async def test_unknown_email(self, resolver: UnsubscribeResolver) -> None:
        outcome = await resolver.resolve_email("nobody@example.com")

        assert outcome.state is UnsubscribeState.ERROR
        assert outcome.status_code == 404

    @pytest.mark.parametrize("email", [None, "", "not-an-email"])
    async def test_invalid_email(self, resolver: UnsubscribeResolver, email) -> None:
        outcome = await resolver.resolve_email(email)

        assert outcome.state is UnsubscribeState.ERROR
        assert outcome.status_code == 400

    async def test_outcome_follows_result_flag_not_message(self, mock_settings: Settings) -> None:
        service = MagicMock()
        service.settings = mock_settings
        service.unsubscribe = AsyncMock(
            return_value=SubscriptionResult(success=True, message="Reworded.", unchanged=True)
        )
        resolver = UnsubscribeResolver(MagicMock(), service)

        outcome = await resolver.resolve_email("jane@example.com")

        assert outcome.state is UnsubscribeState.ALREADY_UNSUBSCRIBED
        service.unsubscribe.assert_awaited_once_with(email="jane@example.com")
