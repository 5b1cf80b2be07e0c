# ABOUTME: Tests for email validation and canonicalization.
# ABOUTME: Covers accepted shapes, rejected input, and the canonical uniqueness key.

import pytest

from continued_education.validation import canonical_email, is_valid_email


class TestIsValidEmail:
    """Tests for is_valid_email."""

    @pytest.mark.parametrize(
        "email",
        [
            "user@example.com",
            "first.last@example.com",
            "user+tag@example.com",
            "user_name@mail.example.co.uk",
            "user%name@example-site.com",
            "Jane@Example.COM",
        ],
    )
    def test_accepts_valid_addresses(self, email: str) -> None:
        assert is_valid_email(email) is True

    @pytest.mark.parametrize(
        "email",
        [
            "",
            "plainaddress",
            "@example.com",
            "user@",
            "user@example",
            "user@example.c",
            "user name@example.com",
            "user@exa mple.com",
            "user!@example.com",
        ],
    )
    def test_rejects_invalid_addresses(self, email: str) -> None:
        assert is_valid_email(email) is False

    def test_rejects_trailing_newline(self) -> None:
        """A newline after the TLD must not slip through."""
        assert is_valid_email("user@example.com\n") is False

    def test_rejects_non_strings(self) -> None:
        assert is_valid_email(None) is False
        assert is_valid_email(42) is False


class TestCanonicalEmail:
    """Tests for canonical_email."""

    def test_lowercases_and_trims(self) -> None:
        assert canonical_email("  Jane@Example.com ") == "jane@example.com"

    def test_canonical_form_is_idempotent(self) -> None:
        once = canonical_email("Jane@Example.com")
        assert canonical_email(once) == once
