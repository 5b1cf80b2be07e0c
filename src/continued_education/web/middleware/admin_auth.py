# ABOUTME: Bearer token verification for admin subscriber endpoints.
# ABOUTME: Compares the Authorization header against ADMIN_API_KEY; skipped when unset.

import secrets

import structlog
from fastapi import HTTPException, Request

from continued_education.config import Settings
from continued_education.web.dependencies import AppSettings

log = structlog.get_logger()


async def verify_admin_token(request: Request, settings: AppSettings) -> bool:
    """Verify the admin bearer token.

    Returns True if a token was checked, False if no key is configured.

    Raises:
        HTTPException: If the header is missing, malformed, or wrong.
    """
    expected = _expected_token(settings)

    # Skip verification in development (no key configured)
    if expected is None:
        log.debug("admin_auth_skipped", reason="no_admin_key_configured")
        return False

    auth_header = request.headers.get("Authorization")
    if not auth_header:
        log.warning("admin_missing_authorization")
        raise HTTPException(status_code=401, detail="Authorization header required")

    if not auth_header.startswith("Bearer "):
        log.warning("admin_invalid_auth_format")
        raise HTTPException(status_code=401, detail="Invalid authorization format")

    token = auth_header[7:]  # Remove "Bearer " prefix
    if not secrets.compare_digest(token.encode(), expected.encode()):
        log.warning("admin_invalid_token")
        raise HTTPException(status_code=403, detail="Invalid admin token")

    return True


def _expected_token(settings: Settings) -> str | None:
    if settings.admin_api_key is None:
        return None
    return settings.admin_api_key.get_secret_value() or None

