# ABOUTME: Exception types raised by contact stores.
# ABOUTME: Callers distinguish duplicates, missing records, and backend outages.


class ContactStoreError(Exception):
    """Base class for contact store errors."""


class DuplicateSubscriberError(ContactStoreError):
    """A record for this canonical email already exists (active or not)."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Subscriber {email} already exists")
        self.email = email


class SubscriberNotFoundError(ContactStoreError):
    """No record with this id."""

    def __init__(self, subscriber_id: str) -> None:
        super().__init__(f"Subscriber {subscriber_id} not found")
        self.subscriber_id = subscriber_id


class StoreUnavailableError(ContactStoreError):
    """The backing database or provider API failed (network, auth, rate limit).

    Never means "not found".
    """


class ConfigurationMissingError(StoreUnavailableError):
    """Required credentials or identifiers are not configured."""
