# ABOUTME: Email package: Resend client setup, transport, and template rendering.
# ABOUTME: Exports the transport and renderer used by the notification dispatcher.

from continued_education.email.renderer import EmailRenderer, RenderedEmail
from continued_education.email.transport import (
    EmailNotConfiguredError,
    EmailTransport,
    EmailTransportError,
)

__all__ = [
    "EmailNotConfiguredError",
    "EmailRenderer",
    "EmailTransport",
    "EmailTransportError",
    "RenderedEmail",
]
