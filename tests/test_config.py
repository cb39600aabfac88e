"""Unit tests for configuration loading."""
import pytest

from codespace_auth.core import config as config_module
from codespace_auth.core.config import AuthConfig, get_auth_config, reload_auth_config
from codespace_auth.utils.errors import ConfigurationError


class TestAuthConfig:
    """Tests for environment-driven configuration."""

    def test_defaults(self, clean_env):
        config = AuthConfig()

        assert config.get_origin() == "http://localhost:8080"
        assert config.get_editor_redirect_url() == "http://localhost:8080/editor"
        assert config.auth_route == "/auth"
        assert config.get_timeout() == 30.0
        assert config.identity_backend == "memory"
        assert config.require_email_confirmation is False
        assert config.min_password_length == 6

    def test_external_url_overrides_origin(self, clean_env):
        clean_env.setenv("CODESPACE_EXTERNAL_URL", "https://code.example.com/")
        config = AuthConfig()
        assert config.get_editor_redirect_url() == "https://code.example.com/editor"

    def test_zero_timeout_disables(self, clean_env):
        clean_env.setenv("CODESPACE_AUTH_REQUEST_TIMEOUT", "0")
        assert AuthConfig().get_timeout() is None

    @pytest.mark.parametrize("value", ["soon", "-1"])
    def test_invalid_timeout(self, clean_env, value):
        clean_env.setenv("CODESPACE_AUTH_REQUEST_TIMEOUT", value)
        with pytest.raises(ConfigurationError):
            AuthConfig()

    def test_unknown_backend(self, clean_env):
        clean_env.setenv("CODESPACE_IDENTITY_BACKEND", "ldap")
        with pytest.raises(ConfigurationError, match="ldap"):
            AuthConfig()

    def test_email_confirmation_flag(self, clean_env):
        clean_env.setenv("CODESPACE_REQUIRE_EMAIL_CONFIRMATION", "true")
        assert AuthConfig().require_email_confirmation is True

    def test_summary_excludes_secrets(self, clean_env):
        clean_env.setenv("SUPABASE_URL", "https://project.supabase.co")
        clean_env.setenv("SUPABASE_KEY", "super-secret")
        summary = AuthConfig().get_environment_summary()

        assert summary["supabase_configured"] is True
        assert "super-secret" not in str(summary)

    def test_reload_replaces_global(self, clean_env):
        first = get_auth_config()
        clean_env.setenv("CODESPACE_EDITOR_ROUTE", "/workspace")

        reloaded = reload_auth_config()

        assert reloaded is not first
        assert get_auth_config().editor_route == "/workspace"
        config_module._auth_config = None
