# ABOUTME: Main package for the Continued Education subscription service.
# ABOUTME: Exports settings and the core subscriber and notification models.

from continued_education.config import get_settings
from continued_education.models import (
    DispatchResult,
    NotificationJob,
    PostRef,
    Subscriber,
    SubscriptionResult,
)

__all__ = [
    "get_settings",
    "DispatchResult",
    "NotificationJob",
    "PostRef",
    "Subscriber",
    "SubscriptionResult",
]
