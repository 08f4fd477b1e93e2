"""Tests for environment-driven configuration."""
import pytest
from pydantic import ValidationError

from dashboard_session.app import create_app
from dashboard_session.exceptions import ConfigurationError
from dashboard_session.google import GoogleOAuthConfig
from dashboard_session.vault import StoreConfig, TokenStore, generate_secret
from dashboard_session.vault.config import is_secure_url


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "TOKEN_ENCRYPTION_KEY",
        "APP_URL",
        "SESSION_CIPHER_BACKEND",
        "GOOGLE_CLIENT_ID",
        "GOOGLE_CLIENT_SECRET",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestStoreConfig:

    def test_missing_secret(self, clean_env):
        with pytest.raises(ConfigurationError):
            StoreConfig.from_env()

    def test_missing_secret_store(self, clean_env):
        with pytest.raises(ConfigurationError):
            TokenStore.from_env()

    def test_from_env_defaults(self, clean_env):
        clean_env.setenv("TOKEN_ENCRYPTION_KEY", "s3cret")
        config = StoreConfig.from_env()
        assert config.secret == "s3cret"
        assert config.secure is False
        assert config.cipher_backend == "aesgcm"
        assert config.max_age == 2592000
        assert config.cookie_name == "df_google_tokens"

    def test_https_app_url_sets_secure(self, clean_env):
        clean_env.setenv("TOKEN_ENCRYPTION_KEY", "s3cret")
        clean_env.setenv("APP_URL", "https://dashboard.example.com")
        assert StoreConfig.from_env().secure is True

    def test_http_app_url_not_secure(self, clean_env):
        clean_env.setenv("TOKEN_ENCRYPTION_KEY", "s3cret")
        clean_env.setenv("APP_URL", "http://localhost:3000")
        assert StoreConfig.from_env().secure is False

    def test_chacha20_from_env(self, clean_env):
        clean_env.setenv("TOKEN_ENCRYPTION_KEY", "s3cret")
        clean_env.setenv("SESSION_CIPHER_BACKEND", "ChaCha20")
        assert StoreConfig.from_env().cipher_backend == "chacha20"

    def test_unknown_cipher_from_env(self, clean_env):
        clean_env.setenv("TOKEN_ENCRYPTION_KEY", "s3cret")
        clean_env.setenv("SESSION_CIPHER_BACKEND", "des")
        with pytest.raises(ConfigurationError):
            StoreConfig.from_env()

    def test_unknown_cipher(self):
        with pytest.raises(ValidationError):
            StoreConfig(secret="s3cret", cipher_backend="rot13")

    def test_secret_not_in_repr(self):
        assert "s3cret" not in repr(StoreConfig(secret="s3cret"))

    def test_generate_secret(self):
        first, second = generate_secret(), generate_secret()
        assert first != second
        assert len(first) >= 32

    @pytest.mark.parametrize("url,expected", [
        ("https://x.example", True),
        ("HTTPS://x.example", True),
        ("http://x.example", False),
        ("", False),
        (None, False),
    ])
    def test_is_secure_url(self, url, expected):
        assert is_secure_url(url) is expected


class TestGoogleOAuthConfig:

    def test_missing_env(self, clean_env):
        clean_env.setenv("GOOGLE_CLIENT_ID", "cid")
        with pytest.raises(ConfigurationError):
            GoogleOAuthConfig.from_env()

    def test_from_env(self, clean_env):
        clean_env.setenv("GOOGLE_CLIENT_ID", "cid")
        clean_env.setenv("GOOGLE_CLIENT_SECRET", "csecret")
        clean_env.setenv("APP_URL", "https://dashboard.example.com/")
        config = GoogleOAuthConfig.from_env()
        assert config.app_url == "https://dashboard.example.com"
        assert config.redirect_uri == (
            "https://dashboard.example.com/api/auth/google/callback"
        )
        assert config.secure is True
        assert "csecret" not in repr(config)


class TestCreateApp:

    def test_create_app_without_secret(self, clean_env):
        with pytest.raises(ConfigurationError):
            create_app()

    def test_create_app_from_env(self, clean_env):
        clean_env.setenv("TOKEN_ENCRYPTION_KEY", "s3cret")
        clean_env.setenv("GOOGLE_CLIENT_ID", "cid")
        clean_env.setenv("GOOGLE_CLIENT_SECRET", "csecret")
        clean_env.setenv("APP_URL", "http://localhost:3000")
        app = create_app()
        paths = {
            route.resource.canonical
            for route in app.router.routes()
        }
        assert "/api/auth/google/callback" in paths
        assert "/api/ga4/select-property" in paths
