# ABOUTME: FastAPI dependency injection for settings, contact store, and services.
# ABOUTME: Services are built per request from explicit dependencies so tests can override them.

from typing import Annotated

from fastapi import Depends

from continued_education.config import Settings, get_settings
from continued_education.contacts import ContactStore, build_contact_store
from continued_education.email.renderer import EmailRenderer
from continued_education.email.transport import EmailTransport
from continued_education.services.dispatcher import NotificationDispatcher
from continued_education.services.subscription_service import SubscriptionService
from continued_education.services.unsubscribe_resolver import UnsubscribeResolver


def get_app_settings() -> Settings:
    """Get application settings."""
    return get_settings()


AppSettings = Annotated[Settings, Depends(get_app_settings)]


def get_contact_store(settings: AppSettings) -> ContactStore:
    """Get the configured contact store backend."""
    return build_contact_store(settings)


Store = Annotated[ContactStore, Depends(get_contact_store)]


def get_email_renderer(settings: AppSettings) -> EmailRenderer:
    """Get the email/page renderer."""
    return EmailRenderer(settings)


Renderer = Annotated[EmailRenderer, Depends(get_email_renderer)]


def get_email_transport(settings: AppSettings) -> EmailTransport:
    """Get the Resend email transport."""
    return EmailTransport(settings)


def get_dispatcher(
    store: Store,
    renderer: Renderer,
    transport: Annotated[EmailTransport, Depends(get_email_transport)],
    settings: AppSettings,
) -> NotificationDispatcher:
    """Get a notification dispatcher bound to the request's store."""
    return NotificationDispatcher(store, transport, renderer, settings)


def get_subscription_service(
    store: Store,
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
    settings: AppSettings,
) -> SubscriptionService:
    """Get subscription service instance."""
    return SubscriptionService(store, dispatcher, settings)


SubscriptionSvc = Annotated[SubscriptionService, Depends(get_subscription_service)]


def get_unsubscribe_resolver(store: Store, service: SubscriptionSvc) -> UnsubscribeResolver:
    """Get unsubscribe resolver instance."""
    return UnsubscribeResolver(store, service)


Resolver = Annotated[UnsubscribeResolver, Depends(get_unsubscribe_resolver)]
