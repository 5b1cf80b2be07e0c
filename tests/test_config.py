# ABOUTME: Tests for configuration loading and derived settings.
# ABOUTME: Verifies Pydantic Settings defaults, secrets, and computed properties.

from pathlib import Path

from pydantic import SecretStr

from continued_education.config import Settings


class TestSettings:
    """Tests for Settings configuration class."""

    def test_settings_default_values(self) -> None:
        """Settings should load without any email or admin credentials."""
        settings = Settings(_env_file=None, resend_api_key=None, resend_audience_id=None)

        assert settings.site_name == "Continued Education"
        assert settings.contact_backend == "database"
        assert settings.dispatch_batch_size == 10
        assert settings.dispatch_batch_delay == 1.0
        assert settings.broadcast_unsubscribe_placeholder == "{{{RESEND_UNSUBSCRIBE_URL}}}"
        assert settings.email_enabled is False

    def test_email_enabled_with_key(self, mock_settings: Settings) -> None:
        assert mock_settings.email_enabled is True

    def test_empty_key_disables_email(self) -> None:
        settings = Settings(_env_file=None, resend_api_key=SecretStr(""))
        assert settings.email_enabled is False

    def test_settings_secret_values_hidden(self) -> None:
        """Secret values should not be exposed in string representation."""
        settings = Settings(
            _env_file=None,
            resend_api_key=SecretStr("re_super_secret"),
            admin_api_key=SecretStr("admin-secret"),
        )
        settings_str = str(settings)
        assert "re_super_secret" not in settings_str
        assert "admin-secret" not in settings_str

    def test_sender_header(self, mock_settings: Settings) -> None:
        assert mock_settings.sender == "Test Blog <noreply@example.com>"

    def test_base_url_strips_trailing_slash(self, mock_settings: Settings) -> None:
        assert mock_settings.base_url == "https://blog.example.com"

    def test_templates_dir_exists(self, mock_settings: Settings) -> None:
        assert isinstance(mock_settings.templates_dir, Path)
        assert (mock_settings.templates_dir / "post_notification.html").exists()

    def test_backend_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("CONTACT_BACKEND", "audience")
        monkeypatch.setenv("RESEND_AUDIENCE_ID", "aud_123")
        settings = Settings(_env_file=None)
        assert settings.contact_backend == "audience"
        assert settings.resend_audience_id == "aud_123"
