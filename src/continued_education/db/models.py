# ABOUTME: SQLAlchemy ORM models for subscriber persistence.
# ABOUTME: Defines the email_subscribers table backing the database contact store.

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class EmailSubscriber(Base):
    """A row in email_subscribers; email is stored in canonical form."""

    __tablename__ = "email_subscribers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    subscribed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    unsubscribe_token: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_email_subscribers_active_subscribed_at", "is_active", "subscribed_at"),
    )

    def __repr__(self) -> str:
        status = "active" if self.is_active else "unsubscribed"
        return f"<EmailSubscriber {self.email} ({status})>"
