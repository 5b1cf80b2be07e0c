# ABOUTME: Database module initialization.
# ABOUTME: Exports core database components for the subscriber table.

from continued_education.db.models import Base, EmailSubscriber
from continued_education.db.repository import SubscriberRepository
from continued_education.db.session import close_db, get_session, get_session_factory, init_db

__all__ = [
    "Base",
    "EmailSubscriber",
    "SubscriberRepository",
    "close_db",
    "get_session",
    "get_session_factory",
    "init_db",
]
