# ABOUTME: Service for managing blog email subscriptions.
# ABOUTME: Subscribe, unsubscribe, stats, admin listing, CSV export, and new-post notification.

from collections.abc import Awaitable
from datetime import date

import structlog

from continued_education.config import Settings, get_settings
from continued_education.contacts.base import ContactStore
from continued_education.contacts.errors import (
    DuplicateSubscriberError,
    StoreUnavailableError,
    SubscriberNotFoundError,
)
from continued_education.models import (
    DispatchResult,
    NotificationJob,
    PostRef,
    Subscriber,
    SubscriberView,
    SubscriptionResult,
    SubscriptionStats,
)
from continued_education.services.dispatcher import NotificationDispatcher
from continued_education.validation import canonical_email, is_valid_email

log = structlog.get_logger()

CSV_HEADER = "Email,First Name,Last Name,Subscribed Date,Status"

INVALID_EMAIL_MSG = "Please enter a valid email address."
SUBSCRIBED_MSG = (
    "Successfully subscribed! You'll receive notifications when new posts are published."
)
RESUBSCRIBED_MSG = "Welcome back! You'll receive notifications when new posts are published again."
ALREADY_SUBSCRIBED_MSG = "This email is already subscribed to our newsletter."
SUBSCRIBE_FAILED_MSG = "Failed to subscribe. Please try again later."
UNSUBSCRIBED_MSG = "Successfully unsubscribed from our newsletter."
ALREADY_UNSUBSCRIBED_MSG = "You have already been unsubscribed from our mailing list."
NOT_FOUND_MSG = "Email address not found in our subscriber list."
UNSUBSCRIBE_FAILED_MSG = "Failed to unsubscribe. Please try again later."
ADMIN_FAILED_MSG = "The subscriber list is unavailable right now. Please try again later."


class SubscriptionService:
    """Subscribe/unsubscribe API consumed by the web layer and CLI.

    Invalid input, duplicates and unknown subscribers come back as
    SubscriptionResult values; store failures are logged in full and reported
    with a generic message.
    """

    def __init__(
        self,
        store: ContactStore,
        dispatcher: NotificationDispatcher | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.settings = settings or get_settings()

    async def subscribe(
        self,
        email: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> SubscriptionResult:
        """Subscribe an email, reactivating it if it had unsubscribed.

        Args:
            email: Address as typed by the user.
            first_name: Optional first name.
            last_name: Optional last name.

        Returns:
            Result with a user-facing message.
        """
        candidate = email.strip() if isinstance(email, str) else email
        if not is_valid_email(candidate):
            log.info("subscribe_invalid_email")
            return SubscriptionResult(
                success=False, message=INVALID_EMAIL_MSG, error="invalid_email"
            )

        email = canonical_email(candidate)
        first_name = (first_name or "").strip() or None
        last_name = (last_name or "").strip() or None

        try:
            await self.store.create(email, first_name, last_name)
        except DuplicateSubscriberError:
            return await self._resubscribe(email, first_name, last_name)
        except StoreUnavailableError as e:
            log.error("subscribe_failed", email=email, error=str(e))
            return SubscriptionResult(
                success=False, message=SUBSCRIBE_FAILED_MSG, error="store_unavailable"
            )
        except Exception:
            log.exception("subscribe_failed", email=email)
            return SubscriptionResult(success=False, message=SUBSCRIBE_FAILED_MSG, error="unknown")

        log.info("subscribed", email=email)
        return SubscriptionResult(success=True, message=SUBSCRIBED_MSG)

    async def _resubscribe(
        self, email: str, first_name: str | None, last_name: str | None
    ) -> SubscriptionResult:
        """Handle a duplicate: reject active records, reactivate inactive ones."""
        try:
            existing = await self.store.find_by_email(email)
            if existing is None:
                # Removed between create and lookup
                await self.store.create(email, first_name, last_name)
                return SubscriptionResult(success=True, message=SUBSCRIBED_MSG)
            if existing.is_active:
                log.info("already_subscribed", email=email)
                return SubscriptionResult(
                    success=False, message=ALREADY_SUBSCRIBED_MSG, error="already_subscribed"
                )
            await self.store.reactivate(existing.id, first_name, last_name)
        except DuplicateSubscriberError:
            return SubscriptionResult(
                success=False, message=ALREADY_SUBSCRIBED_MSG, error="already_subscribed"
            )
        except Exception as e:
            log.error("resubscribe_failed", email=email, error=str(e))
            return SubscriptionResult(
                success=False, message=SUBSCRIBE_FAILED_MSG, error="store_unavailable"
            )

        log.info("resubscribed", email=email)
        return SubscriptionResult(success=True, message=RESUBSCRIBED_MSG)

    async def unsubscribe(
        self, email: str | None = None, token: str | None = None
    ) -> SubscriptionResult:
        """Unsubscribe by email or token. Repeating it is a success.

        Args:
            email: Subscriber email address.
            token: Unsubscribe token from an email link.

        Returns:
            Result; not-found is success=False but never an exception.
        """
        if email is not None:
            candidate = email.strip()
            if not is_valid_email(candidate):
                return SubscriptionResult(
                    success=False, message=INVALID_EMAIL_MSG, error="invalid_email"
                )
        elif not token:
            return SubscriptionResult(success=False, message=NOT_FOUND_MSG, error="not_found")

        try:
            if email is not None:
                subscriber = await self.store.find_by_email(email)
            else:
                subscriber = await self.store.find_by_token(token)  # type: ignore[arg-type]

            if subscriber is None:
                log.info("unsubscribe_not_found", by="email" if email is not None else "token")
                return SubscriptionResult(success=False, message=NOT_FOUND_MSG, error="not_found")

            if not subscriber.is_active:
                log.info("already_unsubscribed", email=subscriber.email)
                return SubscriptionResult(
                    success=True, message=ALREADY_UNSUBSCRIBED_MSG, unchanged=True
                )

            await self.store.set_active(subscriber.id, False)
        except SubscriberNotFoundError:
            return SubscriptionResult(success=False, message=NOT_FOUND_MSG, error="not_found")
        except Exception as e:
            log.error("unsubscribe_failed", error=str(e))
            return SubscriptionResult(
                success=False, message=UNSUBSCRIBE_FAILED_MSG, error="store_unavailable"
            )

        log.info("unsubscribed", email=subscriber.email)
        return SubscriptionResult(success=True, message=UNSUBSCRIBED_MSG)

    async def stats(self) -> SubscriptionStats:
        """Subscriber counts; zeros if the store is unavailable."""
        try:
            return await self.store.stats()
        except Exception as e:
            log.error("stats_failed", error=str(e))
            return SubscriptionStats(total=0, active=0)

    async def list_subscribers(self, active_only: bool = False) -> list[SubscriberView]:
        """Subscribers for the admin table, newest first; empty if unavailable."""
        try:
            subscribers = await self.store.list_all(active_only=active_only)
        except Exception as e:
            log.error("list_subscribers_failed", error=str(e))
            return []
        return [SubscriberView.from_subscriber(s) for s in subscribers]

    async def export_csv(self) -> str:
        """Export all subscribers (active and unsubscribed) as CSV text.

        Returns:
            Header plus one row per subscriber.

        Raises:
            StoreUnavailableError: If the subscriber list cannot be read.
        """
        try:
            subscribers = await self.store.list_all()
        except Exception as e:
            log.error("export_failed", error=str(e))
            raise StoreUnavailableError(f"Subscriber export failed: {e}") from e

        rows = [CSV_HEADER, *(self._csv_row(s) for s in subscribers)]
        log.info("subscribers_exported", count=len(subscribers))
        return "\n".join(rows)

    def _csv_row(self, subscriber: Subscriber) -> str:
        status = "Active" if subscriber.is_active else "Unsubscribed"
        return ",".join(
            [
                subscriber.email,
                _csv_field(subscriber.first_name),
                _csv_field(subscriber.last_name),
                subscriber.created_at.strftime(self.settings.csv_date_format),
                status,
            ]
        )

    @staticmethod
    def export_filename(today: date | None = None) -> str:
        """Download filename for the CSV export."""
        return f"subscribers-{(today or date.today()).isoformat()}.csv"

    async def notify_of_new_post(self, post: PostRef) -> DispatchResult:
        """Notify active subscribers about a published post.

        Best-effort: failures come back in the result and are logged, never
        raised, so they cannot affect the already committed post.
        """
        if self.dispatcher is None:
            log.warning("email_notifications_disabled", reason="no_dispatcher", post_id=post.id)
            return DispatchResult.disabled("Email notifications are not configured")

        try:
            result = await self.dispatcher.dispatch(NotificationJob(post=post))
        except Exception as e:
            log.exception("notify_failed", post_id=post.id)
            return DispatchResult(success=False, sent_count=0, errors=[str(e)])

        if not result.success:
            log.warning(
                "notify_incomplete",
                post_id=post.id,
                sent_count=result.sent_count,
                errors=result.errors,
            )
        return result

    async def reactivate_subscriber(self, subscriber_id: str) -> SubscriptionResult:
        """Admin re-activation of an unsubscribed record."""
        return await self._admin_action(
            "reactivate",
            subscriber_id,
            self.store.reactivate(subscriber_id),
            "Subscriber reactivated.",
        )

    async def deactivate_subscriber(self, subscriber_id: str) -> SubscriptionResult:
        """Admin unsubscribe on behalf of a subscriber."""
        return await self._admin_action(
            "deactivate",
            subscriber_id,
            self.store.set_active(subscriber_id, False),
            "Subscriber unsubscribed.",
        )

    async def remove_subscriber(self, subscriber_id: str) -> SubscriptionResult:
        """Admin hard delete; the record and its token are gone for good."""
        return await self._admin_action(
            "remove", subscriber_id, self.store.remove(subscriber_id), "Subscriber removed."
        )

    async def _admin_action(
        self,
        action: str,
        subscriber_id: str,
        operation: Awaitable[object],
        success_message: str,
    ) -> SubscriptionResult:
        try:
            await operation
        except SubscriberNotFoundError:
            return SubscriptionResult(
                success=False, message="Subscriber not found.", error="not_found"
            )
        except Exception as e:
            log.error("admin_action_failed", action=action, id=subscriber_id, error=str(e))
            return SubscriptionResult(
                success=False, message=ADMIN_FAILED_MSG, error="store_unavailable"
            )
        log.info("admin_action", action=action, id=subscriber_id)
        return SubscriptionResult(success=True, message=success_message)


def _csv_field(value: str | None) -> str:
    """Names may not contain the separator."""
    return (value or "").replace(",", " ").replace("\n", " ").strip()
