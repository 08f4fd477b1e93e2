"""
Token Store Configuration — Secret loading, key derivation and cookie settings.

Reads settings from environment variables:
    TOKEN_ENCRYPTION_KEY = <operator secret, any non-empty string>
    APP_URL = <public URL; https:// turns on the Secure cookie flag>
    SESSION_CIPHER_BACKEND = aesgcm | chacha20

Security Note:
    Never log the secret or the derived key. Only log cookie names and flags.
"""
import os
import secrets
import logging

from cryptography.hazmat.primitives import hashes
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..conf import SESSION_COOKIE, SESSION_MAX_AGE
from ..exceptions import ConfigurationError

logger = logging.getLogger("dashboard.session")

SECRET_ENV = "TOKEN_ENCRYPTION_KEY"


def derive_key(secret: str) -> bytes:
    """Expand the operator secret into a 32-byte key with SHA-256.

    Args:
        secret: Operator-configured secret string.

    Returns:
        32-byte symmetric key.

    Raises:
        ConfigurationError: If the secret is empty.
    """
    if not secret:
        raise ConfigurationError(f"{SECRET_ENV} is not set")
    digest = hashes.Hash(hashes.SHA256())
    digest.update(secret.encode("utf-8"))
    return digest.finalize()


def generate_secret() -> str:
    """Generate a random secret suitable for TOKEN_ENCRYPTION_KEY.

    This is a utility for operators to generate new secrets.
    """
    return secrets.token_urlsafe(32)


def is_secure_url(app_url: str | None) -> bool:
    """Return True when the deployment is served over https."""
    return bool(app_url) and app_url.lower().startswith("https://")


class StoreConfig(BaseModel):
    """Validated token store configuration."""

    secret: str = Field(repr=False, min_length=1)
    secure: bool = False
    cookie_name: str = Field(default=SESSION_COOKIE, min_length=1)
    max_age: int = Field(default=SESSION_MAX_AGE, ge=1)
    cipher_backend: str = Field(default="aesgcm")

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in ("aesgcm", "chacha20"):
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Create StoreConfig by loading values from environment.

        Raises:
            ConfigurationError: If TOKEN_ENCRYPTION_KEY is missing or a
                value does not validate.
        """
        secret = os.environ.get(SECRET_ENV, "")
        if not secret:
            raise ConfigurationError(f"{SECRET_ENV} is not set")
        app_url = os.environ.get("APP_URL")
        try:
            config = cls(
                secret=secret,
                secure=is_secure_url(app_url),
                cipher_backend=os.environ.get("SESSION_CIPHER_BACKEND", "aesgcm"),
            )
        except ValidationError as err:
            raise ConfigurationError(str(err)) from err
        logger.debug(
            "Token store configured: cookie=%s secure=%s cipher=%s",
            config.cookie_name, config.secure, config.cipher_backend,
        )
        return config
