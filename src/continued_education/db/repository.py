# ABOUTME: Repository for email_subscribers access patterns.
# ABOUTME: Thin query layer used by the database contact store.

from collections.abc import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from continued_education.db.models import EmailSubscriber


class SubscriberRepository:
    """Repository for EmailSubscriber CRUD operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, subscriber: EmailSubscriber) -> EmailSubscriber:
        """Save a subscriber (insert or update)."""
        self.session.add(subscriber)
        await self.session.flush()
        return subscriber

    async def get_by_id(self, subscriber_id: str) -> EmailSubscriber | None:
        """Get subscriber by primary key."""
        return await self.session.get(EmailSubscriber, subscriber_id)

    async def get_by_email(self, email: str) -> EmailSubscriber | None:
        """Get subscriber by canonical email address."""
        result = await self.session.execute(
            select(EmailSubscriber).where(EmailSubscriber.email == email)
        )
        return result.scalar_one_or_none()

    async def get_by_token(self, token: str) -> EmailSubscriber | None:
        """Get subscriber by unsubscribe token."""
        result = await self.session.execute(
            select(EmailSubscriber).where(EmailSubscriber.unsubscribe_token == token)
        )
        return result.scalar_one_or_none()

    async def list_all(self, active_only: bool = False) -> Sequence[EmailSubscriber]:
        """List subscribers, newest first."""
        query = select(EmailSubscriber)
        if active_only:
            query = query.where(EmailSubscriber.is_active == True)  # noqa: E712
        query = query.order_by(EmailSubscriber.subscribed_at.desc(), EmailSubscriber.id)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def count_active(self) -> int:
        """Count active subscribers."""
        result = await self.session.execute(
            select(func.count(EmailSubscriber.id)).where(
                EmailSubscriber.is_active == True  # noqa: E712
            )
        )
        return result.scalar_one()

    async def count_all(self) -> int:
        """Count all subscribers (including unsubscribed)."""
        result = await self.session.execute(select(func.count(EmailSubscriber.id)))
        return result.scalar_one()

    async def delete(self, subscriber_id: str) -> int:
        """Hard delete a subscriber. Returns number of rows removed."""
        result = await self.session.execute(
            delete(EmailSubscriber).where(EmailSubscriber.id == subscriber_id)
        )
        return result.rowcount or 0
