"""
Google OAuth web flow: configuration, consent URL, code exchange and refresh.

Flow:
1. ``/api/auth/google/start`` builds the consent URL with a random ``state``
   stored in a short-lived plaintext cookie.
2. Google redirects back to ``/api/auth/google/callback`` with ``code`` and
   ``state``; the code is exchanged for tokens, which go into the encrypted
   session cookie.
"""
import os
import time
import secrets
import logging
from typing import Any, Optional
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

import aiohttp
from pydantic import BaseModel, Field, field_validator

from ..conf import DEFAULT_RETURN_TO
from ..exceptions import ConfigurationError, GoogleAuthenticationError
from .base import DEFAULT_TIMEOUT, GoogleHttpClient

logger = logging.getLogger("dashboard.google")

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

OAUTH_SCOPES = (
    "https://www.googleapis.com/auth/analytics.readonly",
    "https://www.googleapis.com/auth/webmasters.readonly",
    "openid",
    "email",
    "profile",
)

CALLBACK_PATH = "/api/auth/google/callback"


def new_state() -> str:
    """Random CSRF state token (24 bytes, hex)."""
    return secrets.token_hex(24)


def safe_return_to(raw: Optional[str]) -> str:
    """URL-decode ``raw`` and accept it only as an app-relative path."""
    if not raw:
        return DEFAULT_RETURN_TO
    try:
        decoded = unquote(raw, errors="strict")
    except UnicodeDecodeError:
        return DEFAULT_RETURN_TO
    if decoded.startswith("/"):
        return decoded
    return DEFAULT_RETURN_TO


def encode_return_to(path: str) -> str:
    """Cookie-safe form of a return path."""
    return quote(path, safe="")


def add_connected_param(path_with_query_and_hash: str) -> str:
    """Add ``connected=1`` to the query, defaulting the fragment to ``dashboard``."""
    parts = path_with_query_and_hash.split("#")
    path_and_query = parts[0]
    fragment = parts[1] if len(parts) > 1 else ""
    try:
        url = urlsplit(path_and_query)
    except ValueError:
        return "/settings/analytics?connected=1#dashboard"
    query = [
        (k, v) for k, v in parse_qsl(url.query, keep_blank_values=True)
        if k != "connected"
    ]
    query.append(("connected", "1"))
    path = url.path or "/"
    return f"{path}?{urlencode(query)}#{fragment or 'dashboard'}"


class GoogleOAuthConfig(BaseModel):
    """Validated Google OAuth client settings."""

    client_id: str = Field(min_length=1)
    client_secret: str = Field(repr=False, min_length=1)
    app_url: str = Field(min_length=1)
    scopes: tuple[str, ...] = OAUTH_SCOPES

    @field_validator("app_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def redirect_uri(self) -> str:
        return f"{self.app_url}{CALLBACK_PATH}"

    @property
    def secure(self) -> bool:
        return self.app_url.lower().startswith("https://")

    @classmethod
    def from_env(cls) -> "GoogleOAuthConfig":
        """Create GoogleOAuthConfig from GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and APP_URL.

        Raises:
            ConfigurationError: If any of them is missing.
        """
        client_id = os.environ.get("GOOGLE_CLIENT_ID")
        client_secret = os.environ.get("GOOGLE_CLIENT_SECRET")
        app_url = os.environ.get("APP_URL")
        if not client_id or not client_secret or not app_url:
            raise ConfigurationError(
                "Missing GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET / APP_URL env vars"
            )
        return cls(client_id=client_id, client_secret=client_secret, app_url=app_url)


class GoogleOAuthClient(GoogleHttpClient):
    """OAuth 2.0 web-server flow against Google's endpoints."""

    def __init__(
        self,
        config: GoogleOAuthConfig,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
        auth_url: str = AUTH_URL,
        token_url: str = TOKEN_URL,
        userinfo_url: str = USERINFO_URL,
    ):
        super().__init__(session=session, timeout=timeout)
        self.config = config
        self.auth_url = auth_url
        self.token_url = token_url
        self.userinfo_url = userinfo_url

    def authorization_url(self, state: str) -> str:
        """Consent URL requesting offline access (refresh token)."""
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.config.scopes),
            "state": state,
            "access_type": "offline",
            "prompt": "consent",
            "include_granted_scopes": "true",
        }
        return f"{self.auth_url}?{urlencode(params)}"

    @staticmethod
    def _with_expiry(token_data: dict[str, Any]) -> dict[str, Any]:
        # epoch milliseconds, the format stored in the session record
        expires_in = token_data.get("expires_in")
        if expires_in is not None and "expiry_date" not in token_data:
            token_data["expiry_date"] = int(time.time() * 1000) + int(expires_in) * 1000
        return token_data

    async def exchange_code(self, code: str) -> dict[str, Any]:
        """Exchange an authorization code for tokens."""
        payload = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
            "redirect_uri": self.config.redirect_uri,
            "grant_type": "authorization_code",
        }
        token_data = await self._request("POST", self.token_url, data=payload)
        logger.info("OAuth code exchanged (refresh_token=%s)", "refresh_token" in token_data)
        return self._with_expiry(token_data)

    async def refresh_access_token(self, refresh_token: str) -> dict[str, Any]:
        """Get a fresh access token from a stored refresh token."""
        payload = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
        token_data = await self._request("POST", self.token_url, data=payload)
        if not token_data.get("access_token"):
            raise GoogleAuthenticationError("Token refresh returned no access_token")
        return self._with_expiry(token_data)

    async def fetch_userinfo(self, access_token: str) -> dict[str, Any]:
        """Return the Google profile (email, name) for an access token."""
        headers = {"Authorization": f"Bearer {access_token}"}
        return await self._request("GET", self.userinfo_url, headers=headers)
