# ABOUTME: Contact store backed by the email_subscribers table via async SQLAlchemy.
# ABOUTME: Issues per-subscriber unsubscribe tokens and maps driver errors to store errors.

import secrets
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from uuid import uuid4

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from continued_education.contacts.base import ContactStore
from continued_education.contacts.errors import (
    ContactStoreError,
    DuplicateSubscriberError,
    StoreUnavailableError,
    SubscriberNotFoundError,
)
from continued_education.db.models import EmailSubscriber
from continued_education.db.repository import SubscriberRepository
from continued_education.db.session import get_session
from continued_education.models import Subscriber, SubscriptionStats
from continued_education.validation import canonical_email

log = structlog.get_logger()


class DatabaseContactStore(ContactStore):
    """Contact store over a relational table with server-side uniqueness."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _repository(self) -> AsyncGenerator[SubscriberRepository]:
        """One session and transaction per store operation."""
        try:
            async with get_session(self._session_factory) as session:
                yield SubscriberRepository(session)
        except ContactStoreError:
            raise
        except (SQLAlchemyError, OSError) as e:
            log.error("contact_store_unavailable", backend="database", error=str(e))
            raise StoreUnavailableError(f"Subscriber database unavailable: {e}") from e

    async def create(
        self, email: str, first_name: str | None = None, last_name: str | None = None
    ) -> Subscriber:
        email = canonical_email(email)
        now = datetime.now(tz=UTC)

        async with self._repository() as repo:
            if await repo.get_by_email(email):
                raise DuplicateSubscriberError(email)

            row = EmailSubscriber(
                id=str(uuid4()),
                email=email,
                first_name=first_name or None,
                last_name=last_name or None,
                is_active=True,
                subscribed_at=now,
                unsubscribe_token=self._generate_token(),
                updated_at=now,
            )
            try:
                await repo.save(row)
            except IntegrityError as e:
                # Lost a race with a concurrent insert of the same email
                raise DuplicateSubscriberError(email) from e
            subscriber = self._to_subscriber(row)

        log.info("subscriber_created", email=email, id=subscriber.id)
        return subscriber

    async def reactivate(
        self,
        subscriber_id: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> Subscriber:
        async with self._repository() as repo:
            row = await repo.get_by_id(subscriber_id)
            if row is None:
                raise SubscriberNotFoundError(subscriber_id)
            row.is_active = True
            if first_name:
                row.first_name = first_name
            if last_name:
                row.last_name = last_name
            row.updated_at = datetime.now(tz=UTC)
            await repo.save(row)
            subscriber = self._to_subscriber(row)

        log.info("subscriber_reactivated", email=subscriber.email, id=subscriber_id)
        return subscriber

    async def get(self, subscriber_id: str) -> Subscriber | None:
        async with self._repository() as repo:
            row = await repo.get_by_id(subscriber_id)
            return self._to_subscriber(row) if row else None

    async def find_by_email(self, email: str) -> Subscriber | None:
        async with self._repository() as repo:
            row = await repo.get_by_email(canonical_email(email))
            return self._to_subscriber(row) if row else None

    async def find_by_token(self, token: str) -> Subscriber | None:
        if not token:
            return None
        async with self._repository() as repo:
            row = await repo.get_by_token(token)
            return self._to_subscriber(row) if row else None

    async def set_active(self, subscriber_id: str, active: bool) -> None:
        async with self._repository() as repo:
            row = await repo.get_by_id(subscriber_id)
            if row is None:
                raise SubscriberNotFoundError(subscriber_id)
            if row.is_active == active:
                return
            row.is_active = active
            row.updated_at = datetime.now(tz=UTC)
            await repo.save(row)

        log.info("subscriber_status_changed", id=subscriber_id, active=active)

    async def remove(self, subscriber_id: str) -> None:
        async with self._repository() as repo:
            removed = await repo.delete(subscriber_id)
            if not removed:
                raise SubscriberNotFoundError(subscriber_id)

        log.info("subscriber_removed", id=subscriber_id)

    async def list_all(self, active_only: bool = False) -> list[Subscriber]:
        async with self._repository() as repo:
            rows = await repo.list_all(active_only=active_only)
            return [self._to_subscriber(row) for row in rows]

    async def stats(self) -> SubscriptionStats:
        async with self._repository() as repo:
            return SubscriptionStats(total=await repo.count_all(), active=await repo.count_active())

    @staticmethod
    def _to_subscriber(row: EmailSubscriber) -> Subscriber:
        return Subscriber(
            id=row.id,
            email=row.email,
            first_name=row.first_name,
            last_name=row.last_name,
            is_active=row.is_active,
            created_at=row.subscribed_at,
            unsubscribe_token=row.unsubscribe_token,
        )

    @staticmethod
    def _generate_token() -> str:
        """Generate an unguessable unsubscribe token."""
        return secrets.token_hex(16)  # 32 chars
