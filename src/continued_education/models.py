# ABOUTME: Pydantic models for the subscriber lifecycle and notification pipeline.
# ABOUTME: Defines Subscriber, PostRef, NotificationJob, DispatchResult, and service results.

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, computed_field


class Subscriber(BaseModel):
    """An opted-in recipient of new-post notifications, independent of storage backend."""

    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    is_active: bool = True
    created_at: datetime
    unsubscribe_token: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_name(self) -> str:
        """Full name when known, otherwise the email local part."""
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.email.split("@", 1)[0]


class SubscriberView(BaseModel):
    """Subscriber as shown in the admin table (no token)."""

    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    display_name: str
    is_active: bool
    subscribed_at: datetime

    @classmethod
    def from_subscriber(cls, subscriber: Subscriber) -> "SubscriberView":
        return cls(
            id=subscriber.id,
            email=subscriber.email,
            first_name=subscriber.first_name,
            last_name=subscriber.last_name,
            display_name=subscriber.display_name,
            is_active=subscriber.is_active,
            subscribed_at=subscriber.created_at,
        )


class SubscriptionStats(BaseModel):
    """Subscriber counts for the admin dashboard."""

    total: int = 0
    active: int = 0


class SubscriptionResult(BaseModel):
    """Outcome of a subscribe/unsubscribe/admin action.

    `message` is safe to show to end users, `error` is a short reason code.
    `unchanged` marks a successful no-op (the record was already in that state).
    """

    success: bool
    message: str
    error: str | None = None
    unchanged: bool = False


class PostRef(BaseModel):
    """The part of a published post needed to render a notification."""

    id: str
    title: str
    excerpt: str = ""


class NotificationJob(BaseModel):
    """Notify all active subscribers about one post. Never persisted."""

    post: PostRef


class DispatchMode(str, Enum):
    """How a notification job was delivered."""

    BATCH = "batch"
    BROADCAST = "broadcast"
    DISABLED = "disabled"


class RecipientError(BaseModel):
    """A single recipient that could not be sent to."""

    recipient: str
    reason: str


class DispatchResult(BaseModel):
    """Result of one notification run.

    In broadcast mode `sent_count` is the active subscriber count read after
    the send, not a per-recipient receipt.
    """

    success: bool
    sent_count: int = Field(default=0, ge=0)
    errors: list[str] = Field(default_factory=list)
    recipient_errors: list[RecipientError] = Field(default_factory=list)
    mode: DispatchMode = DispatchMode.BATCH

    @property
    def is_partial(self) -> bool:
        """Some recipients were sent to, some failed."""
        return self.sent_count > 0 and bool(self.errors)

    @classmethod
    def disabled(cls, reason: str) -> "DispatchResult":
        return cls(success=False, sent_count=0, errors=[reason], mode=DispatchMode.DISABLED)


class UnsubscribeState(str, Enum):
    """Terminal states of the unsubscribe link flow."""

    SUCCESS = "success"
    ALREADY_UNSUBSCRIBED = "already_unsubscribed"
    ERROR = "error"


class UnsubscribeOutcome(BaseModel):
    """What the unsubscribe page shows."""

    state: UnsubscribeState
    title: str
    message: str
    status_code: int = 200

    @property
    def succeeded(self) -> bool:
        return self.state is not UnsubscribeState.ERROR
