# ABOUTME: Email address validation and canonicalization.
# ABOUTME: Pure functions, no network or MX lookups.

import re

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


def is_valid_email(value: object) -> bool:
    """Check that value has the local@domain.tld shape."""
    if not isinstance(value, str):
        return False
    return EMAIL_PATTERN.fullmatch(value) is not None


def canonical_email(value: str) -> str:
    """Trim and lower-case an address for use as the uniqueness key."""
    return value.strip().lower()
