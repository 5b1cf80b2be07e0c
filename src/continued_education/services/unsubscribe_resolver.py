# ABOUTME: Resolves unsubscribe links (token) and the email fallback form to a terminal outcome.
# ABOUTME: Stateless and idempotent: repeating a request yields the same terminal state.

import structlog

from continued_education.contacts.base import ContactStore
from continued_education.contacts.errors import SubscriberNotFoundError
from continued_education.models import UnsubscribeOutcome, UnsubscribeState
from continued_education.services.subscription_service import SubscriptionService
from continued_education.validation import is_valid_email

log = structlog.get_logger()

SUCCESS_TITLE = "Successfully Unsubscribed"
ALREADY_TITLE = "Already Unsubscribed"
ERROR_TITLE = "Error"


class UnsubscribeResolver:
    """Maps a token or raw email to a contact store mutation and a confirmation outcome."""

    def __init__(self, store: ContactStore, service: SubscriptionService) -> None:
        self.store = store
        self.service = service

    @property
    def site_name(self) -> str:
        return self.service.settings.site_name

    def _success(self) -> UnsubscribeOutcome:
        return UnsubscribeOutcome(
            state=UnsubscribeState.SUCCESS,
            title=SUCCESS_TITLE,
            message=(
                f"You have been successfully unsubscribed from {self.site_name} "
                "blog notifications."
            ),
        )

    @staticmethod
    def _already() -> UnsubscribeOutcome:
        return UnsubscribeOutcome(
            state=UnsubscribeState.ALREADY_UNSUBSCRIBED,
            title=ALREADY_TITLE,
            message="You have already been unsubscribed from our mailing list.",
        )

    @staticmethod
    def _error(message: str, status_code: int) -> UnsubscribeOutcome:
        return UnsubscribeOutcome(
            state=UnsubscribeState.ERROR,
            title=ERROR_TITLE,
            message=message,
            status_code=status_code,
        )

    async def resolve_token(self, token: str | None) -> UnsubscribeOutcome:
        """Unsubscribe the holder of an emailed token."""
        if not token:
            return self._error("Invalid unsubscribe link. Please contact support.", 400)

        try:
            subscriber = await self.store.find_by_token(token)
            if subscriber is None:
                log.warning("unsubscribe_invalid_token", token=token[:8] + "...")
                return self._error("Invalid unsubscribe link or subscriber not found.", 404)

            if not subscriber.is_active:
                log.info("already_unsubscribed", email=subscriber.email)
                return self._already()

            await self.store.set_active(subscriber.id, False)
        except SubscriberNotFoundError:
            return self._error("Invalid unsubscribe link or subscriber not found.", 404)
        except Exception as e:
            log.error("unsubscribe_token_failed", token=token[:8] + "...", error=str(e))
            return self._error(
                "An error occurred while processing your request. Please try again later.", 500
            )

        log.info("subscriber_unsubscribed", email=subscriber.email, via="token")
        return self._success()

    async def resolve_email(self, email: str | None) -> UnsubscribeOutcome:
        """Email fallback for recipients without a token."""
        email = (email or "").strip()
        if not is_valid_email(email):
            return self._error("Please enter a valid email address.", 400)

        result = await self.service.unsubscribe(email=email)
        if result.success:
            if result.unchanged:
                return self._already()
            return self._success()
        if result.error == "not_found":
            return self._error(result.message, 404)
        return self._error(result.message, 500)
