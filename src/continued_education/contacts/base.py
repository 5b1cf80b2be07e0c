# ABOUTME: Abstract contact store interface shared by database and audience backends.
# ABOUTME: Services, dispatcher and resolver depend only on this interface.

from abc import ABC, abstractmethod

from continued_education.models import Subscriber, SubscriptionStats


class ContactStore(ABC):
    """The set of subscriber records.

    Implementations canonicalize emails, keep one record per canonical email,
    and raise StoreUnavailableError for any transport or storage failure.
    """

    @property
    def audience_id(self) -> str | None:
        """Provider audience the transport can broadcast to, if any."""
        return None

    @abstractmethod
    async def create(
        self, email: str, first_name: str | None = None, last_name: str | None = None
    ) -> Subscriber:
        """Create an active subscriber.

        Raises:
            DuplicateSubscriberError: If any record exists for the canonical email.
        """

    @abstractmethod
    async def reactivate(
        self,
        subscriber_id: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> Subscriber:
        """Mark a subscriber active again, updating any provided name fields.

        Raises:
            SubscriberNotFoundError: If the id is unknown.
        """

    @abstractmethod
    async def get(self, subscriber_id: str) -> Subscriber | None:
        """Look up a subscriber by id."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Subscriber | None:
        """Case-insensitive exact match on email."""

    @abstractmethod
    async def find_by_token(self, token: str) -> Subscriber | None:
        """Exact match on unsubscribe token."""

    @abstractmethod
    async def set_active(self, subscriber_id: str, active: bool) -> None:
        """Set the active flag. Setting the current value again is a no-op.

        Raises:
            SubscriberNotFoundError: If the id is unknown.
        """

    @abstractmethod
    async def remove(self, subscriber_id: str) -> None:
        """Hard delete a subscriber.

        Raises:
            SubscriberNotFoundError: If the id is unknown.
        """

    @abstractmethod
    async def list_all(self, active_only: bool = False) -> list[Subscriber]:
        """All subscribers, newest first."""

    async def stats(self) -> SubscriptionStats:
        """Total and active counts."""
        subscribers = await self.list_all()
        return SubscriptionStats(
            total=len(subscribers),
            active=sum(1 for s in subscribers if s.is_active),
        )
