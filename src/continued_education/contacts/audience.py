# ABOUTME: Contact store backed by a Resend audience (Contacts API).
# ABOUTME: Maps provider contacts to Subscribers; the provider's unsubscribe link replaces tokens.

import asyncio
import re
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

import resend
import structlog

from continued_education.config import Settings
from continued_education.contacts.base import ContactStore
from continued_education.contacts.errors import (
    ConfigurationMissingError,
    DuplicateSubscriberError,
    StoreUnavailableError,
    SubscriberNotFoundError,
)
from continued_education.email.client import (
    call_resend,
    configure_resend,
    is_duplicate,
    is_not_found,
)
from continued_education.models import Subscriber
from continued_education.validation import canonical_email

log = structlog.get_logger()

T = TypeVar("T")

# Resend returns offsets like "+00"; fromisoformat wants "+00:00"
SHORT_OFFSET = re.compile(r"(:\d{2}(?:\.\d+)?[+-]\d{2})$")


def parse_provider_timestamp(value: str | None) -> datetime:
    """Parse Resend's created_at ("2023-10-06 23:47:56.678+00" or ISO with Z)."""
    if not value:
        return datetime.now(tz=UTC)
    try:
        normalized = SHORT_OFFSET.sub(r"\1:00", value.replace("Z", "+00:00"))
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        log.warning("contact_timestamp_unparseable", value=value)
        return datetime.now(tz=UTC)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def contact_to_subscriber(contact: dict[str, Any]) -> Subscriber:
    """Convert a Resend contact payload into a Subscriber."""
    return Subscriber(
        id=contact["id"],
        email=canonical_email(contact["email"]),
        first_name=contact.get("first_name") or None,
        last_name=contact.get("last_name") or None,
        is_active=not contact.get("unsubscribed", False),
        created_at=parse_provider_timestamp(contact.get("created_at")),
    )


class AudienceContactStore(ContactStore):
    """Contact store over a Resend audience.

    Contacts carry an `unsubscribed` flag instead of `is_active` and have no
    per-contact token, so find_by_token never matches. The provider offers no
    lookup by email, so email and id lookups scan the audience listing.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def audience_id(self) -> str | None:
        return self.settings.resend_audience_id or None

    def _require_audience(self) -> str:
        if not configure_resend(self.settings):
            raise ConfigurationMissingError("Resend API key not configured")
        if not self.audience_id:
            raise ConfigurationMissingError("Resend Audience ID not configured")
        return self.audience_id

    async def _call(
        self,
        operation: str,
        fn: Callable[..., T],
        *args: Any,
        subscriber_id: str | None = None,
        email: str | None = None,
        **kwargs: Any,
    ) -> T:
        """Run a sync SDK call in a worker thread and normalize its errors."""
        try:
            return await asyncio.to_thread(call_resend, fn, *args, **kwargs)
        except Exception as e:
            if subscriber_id is not None and is_not_found(e):
                raise SubscriberNotFoundError(subscriber_id) from e
            if email is not None and is_duplicate(e):
                raise DuplicateSubscriberError(email) from e
            log.error(
                "contact_store_unavailable",
                backend="audience",
                operation=operation,
                error=str(e),
            )
            raise StoreUnavailableError(f"Resend {operation} failed: {e}") from e

    async def create(
        self, email: str, first_name: str | None = None, last_name: str | None = None
    ) -> Subscriber:
        audience_id = self._require_audience()
        email = canonical_email(email)

        if await self.find_by_email(email):
            raise DuplicateSubscriberError(email)

        params: dict[str, Any] = {
            "audience_id": audience_id,
            "email": email,
            "unsubscribed": False,
        }
        if first_name:
            params["first_name"] = first_name
        if last_name:
            params["last_name"] = last_name

        response = await self._call("create", resend.Contacts.create, params, email=email)

        subscriber = Subscriber(
            id=response["id"],
            email=email,
            first_name=first_name or None,
            last_name=last_name or None,
            is_active=True,
            created_at=datetime.now(tz=UTC),
        )
        log.info("subscriber_created", email=email, id=subscriber.id, backend="audience")
        return subscriber

    async def reactivate(
        self,
        subscriber_id: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> Subscriber:
        fields: dict[str, Any] = {"unsubscribed": False}
        if first_name:
            fields["first_name"] = first_name
        if last_name:
            fields["last_name"] = last_name
        await self._update(subscriber_id, fields)

        subscriber = await self.get(subscriber_id)
        if subscriber is None:
            raise SubscriberNotFoundError(subscriber_id)
        log.info("subscriber_reactivated", email=subscriber.email, id=subscriber_id)
        return subscriber

    async def get(self, subscriber_id: str) -> Subscriber | None:
        for subscriber in await self.list_all():
            if subscriber.id == subscriber_id:
                return subscriber
        return None

    async def find_by_email(self, email: str) -> Subscriber | None:
        email = canonical_email(email)
        for subscriber in await self.list_all():
            if subscriber.email == email:
                return subscriber
        return None

    async def find_by_token(self, token: str) -> Subscriber | None:
        log.debug("token_lookup_unsupported", backend="audience")
        return None

    async def set_active(self, subscriber_id: str, active: bool) -> None:
        await self._update(subscriber_id, {"unsubscribed": not active})
        log.info("subscriber_status_changed", id=subscriber_id, active=active)

    async def remove(self, subscriber_id: str) -> None:
        audience_id = self._require_audience()
        await self._call(
            "remove",
            resend.Contacts.remove,
            audience_id=audience_id,
            id=subscriber_id,
            subscriber_id=subscriber_id,
        )
        log.info("subscriber_removed", id=subscriber_id, backend="audience")

    async def list_all(self, active_only: bool = False) -> list[Subscriber]:
        audience_id = self._require_audience()
        response = await self._call("list", resend.Contacts.list, audience_id=audience_id)
        contacts = (response or {}).get("data") or []
        subscribers = [contact_to_subscriber(c) for c in contacts]
        if active_only:
            subscribers = [s for s in subscribers if s.is_active]
        subscribers.sort(key=lambda s: s.created_at, reverse=True)
        return subscribers

    async def _update(self, subscriber_id: str, fields: dict[str, Any]) -> None:
        audience_id = self._require_audience()
        params = {"audience_id": audience_id, "id": subscriber_id, **fields}
        await self._call(
            "update", resend.Contacts.update, params, subscriber_id=subscriber_id
        )
