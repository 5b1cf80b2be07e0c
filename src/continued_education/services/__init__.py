# ABOUTME: Services package: subscription orchestration, dispatch, and unsubscribe resolution.
# ABOUTME: Exports the service classes used by the web layer and CLI.

from continued_education.services.dispatcher import NotificationDispatcher
from continued_education.services.subscription_service import SubscriptionService
from continued_education.services.unsubscribe_resolver import UnsubscribeResolver

__all__ = ["NotificationDispatcher", "SubscriptionService", "UnsubscribeResolver"]
