# ABOUTME: Resend SDK setup and retry policy shared by transport and audience store.
# ABOUTME: Rate-limited calls are retried with exponential backoff before surfacing.

from collections.abc import Callable
from typing import Any, TypeVar

import resend
import structlog
from resend.exceptions import ResendError
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from continued_education.config import Settings

log = structlog.get_logger()

T = TypeVar("T")

RATE_LIMIT_ATTEMPTS = 3


def configure_resend(settings: Settings) -> bool:
    """Point the Resend SDK at the configured API key.

    Returns:
        True if a key is configured, False otherwise.
    """
    if not settings.email_enabled:
        return False
    resend.api_key = settings.resend_api_key.get_secret_value()  # type: ignore[union-attr]
    return True


def error_code(exc: BaseException) -> str:
    """HTTP status or error type carried by a Resend error, as a string."""
    return str(getattr(exc, "code", "") or "")


def is_rate_limited(exc: BaseException) -> bool:
    """True for Resend 429 / rate_limit_exceeded errors."""
    if not isinstance(exc, ResendError):
        return False
    return error_code(exc) == "429" or getattr(exc, "error_type", "") == "rate_limit_exceeded"


def is_not_found(exc: BaseException) -> bool:
    """True for Resend 404 / not_found errors."""
    if not isinstance(exc, ResendError):
        return False
    return error_code(exc) == "404" or getattr(exc, "error_type", "") == "not_found"


def is_duplicate(exc: BaseException) -> bool:
    """True when Resend rejects a contact that already exists."""
    message = f"{exc} {getattr(exc, 'message', '')}".lower()
    return "already exists" in message or "duplicate" in message


rate_limit_retry = retry(
    retry=retry_if_exception(is_rate_limited),
    stop=stop_after_attempt(RATE_LIMIT_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    before_sleep=lambda retry_state: log.warning(
        "resend_rate_limited",
        attempt=retry_state.attempt_number,
        wait=retry_state.next_action.sleep if retry_state.next_action else None,
    ),
    reraise=True,
)


@rate_limit_retry
def call_resend(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Invoke a Resend SDK function, retrying on rate limits."""
    return fn(*args, **kwargs)
