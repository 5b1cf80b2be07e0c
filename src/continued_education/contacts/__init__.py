# ABOUTME: Contact store package: one interface, database and Resend audience backends.
# ABOUTME: build_contact_store picks the backend from settings.

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from continued_education.config import Settings
from continued_education.contacts.audience import AudienceContactStore
from continued_education.contacts.base import ContactStore
from continued_education.contacts.database import DatabaseContactStore
from continued_education.contacts.errors import (
    ConfigurationMissingError,
    ContactStoreError,
    DuplicateSubscriberError,
    StoreUnavailableError,
    SubscriberNotFoundError,
)


def build_contact_store(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> ContactStore:
    """Create the contact store selected by settings.contact_backend."""
    if settings.contact_backend == "audience":
        return AudienceContactStore(settings)
    if session_factory is None:
        from continued_education.db.session import get_session_factory

        session_factory = get_session_factory()
    return DatabaseContactStore(session_factory)


__all__ = [
    "AudienceContactStore",
    "ConfigurationMissingError",
    "ContactStore",
    "ContactStoreError",
    "DatabaseContactStore",
    "DuplicateSubscriberError",
    "StoreUnavailableError",
    "SubscriberNotFoundError",
    "build_contact_store",
]
