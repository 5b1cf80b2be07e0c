# ABOUTME: Notification dispatcher for new-post emails.
# ABOUTME: Broadcasts to a provider audience or sends per recipient in rate-limited batches.

import asyncio
from collections.abc import Sequence

import structlog

from continued_education.config import Settings, get_settings
from continued_education.contacts.base import ContactStore
from continued_education.contacts.errors import ConfigurationMissingError, ContactStoreError
from continued_education.email.renderer import EmailRenderer
from continued_education.email.transport import EmailTransport
from continued_education.models import (
    DispatchMode,
    DispatchResult,
    NotificationJob,
    RecipientError,
    Subscriber,
)

log = structlog.get_logger()


def batched(items: Sequence[Subscriber], size: int) -> list[list[Subscriber]]:
    """Split items into consecutive batches of at most `size`."""
    size = max(1, size)
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class NotificationDispatcher:
    """Delivers one notification job to the active subscriber snapshot.

    Per-recipient failures are recorded, never fatal: a failing recipient does
    not abort its batch or the batches after it. There is no cancellation once
    a dispatch has started.
    """

    def __init__(
        self,
        store: ContactStore,
        transport: EmailTransport,
        renderer: EmailRenderer | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.transport = transport
        self.settings = settings or get_settings()
        self.renderer = renderer or EmailRenderer(self.settings)

    @property
    def batch_size(self) -> int:
        return self.settings.dispatch_batch_size

    @property
    def batch_delay(self) -> float:
        return self.settings.dispatch_batch_delay

    async def dispatch(self, job: NotificationJob) -> DispatchResult:
        """Send the notification for job.post.

        Returns:
            DispatchResult; success only if no errors were recorded.
        """
        if not self.transport.is_configured:
            log.warning("email_notifications_disabled", reason="api_key_missing")
            return DispatchResult.disabled("Email API key not configured")

        audience_id = self.store.audience_id
        if audience_id and self.transport.supports_broadcast:
            return await self._broadcast(job, audience_id)
        return await self._send_batches(job)

    async def _broadcast(self, job: NotificationJob, audience_id: str) -> DispatchResult:
        email = self.renderer.render_post_notification(
            job.post, self.settings.broadcast_unsubscribe_placeholder
        )
        try:
            await self.transport.broadcast(
                audience_id,
                email.subject,
                email.html,
                text=email.text,
                name=f"post-{job.post.id}",
            )
        except Exception as e:
            log.error("broadcast_failed", post_id=job.post.id, error=str(e))
            return DispatchResult(
                success=False, sent_count=0, errors=[str(e)], mode=DispatchMode.BROADCAST
            )

        # The provider gives no per-recipient receipt; report the current active count.
        try:
            sent_count = (await self.store.stats()).active
        except ContactStoreError as e:
            log.warning("broadcast_count_unavailable", post_id=job.post.id, error=str(e))
            sent_count = 0

        log.info("broadcast_dispatched", post_id=job.post.id, sent_count=sent_count)
        return DispatchResult(success=True, sent_count=sent_count, mode=DispatchMode.BROADCAST)

    async def _send_batches(self, job: NotificationJob) -> DispatchResult:
        try:
            recipients = await self.store.list_all(active_only=True)
        except ConfigurationMissingError as e:
            log.warning("email_notifications_disabled", reason=str(e))
            return DispatchResult.disabled(str(e))
        except ContactStoreError as e:
            log.error("dispatch_recipients_unavailable", post_id=job.post.id, error=str(e))
            return DispatchResult(success=False, sent_count=0, errors=[str(e)])

        if not recipients:
            log.info("no_active_subscribers", post_id=job.post.id)
            return DispatchResult(success=True, sent_count=0)

        batches = batched(recipients, self.batch_size)
        log.info(
            "dispatch_started",
            post_id=job.post.id,
            recipient_count=len(recipients),
            batches=len(batches),
        )

        sent_count = 0
        failures: list[RecipientError] = []

        for index, batch in enumerate(batches):
            outcomes = await asyncio.gather(
                *(self._send_one(job, subscriber) for subscriber in batch)
            )
            for outcome in outcomes:
                if outcome is None:
                    sent_count += 1
                else:
                    failures.append(outcome)

            if index < len(batches) - 1:
                await asyncio.sleep(self.batch_delay)

        result = DispatchResult(
            success=not failures,
            sent_count=sent_count,
            errors=[f"{f.recipient}: {f.reason}" for f in failures],
            recipient_errors=failures,
        )
        if result.is_partial:
            log.warning(
                "dispatch_partial_failure",
                post_id=job.post.id,
                sent_count=sent_count,
                failed=len(failures),
            )
        else:
            log.info(
                "dispatch_complete",
                post_id=job.post.id,
                sent_count=sent_count,
                failed=len(failures),
            )
        return result

    async def _send_one(
        self, job: NotificationJob, subscriber: Subscriber
    ) -> RecipientError | None:
        """Send to one recipient; returns the failure instead of raising."""
        try:
            email = self.renderer.render_post_notification(
                job.post, self.renderer.unsubscribe_url(subscriber)
            )
            await self.transport.send(subscriber.email, email.subject, email.html, text=email.text)
        except Exception as e:
            log.warning("recipient_send_failed", recipient=subscriber.email, error=str(e))
            return RecipientError(recipient=subscriber.email, reason=str(e))
        return None
