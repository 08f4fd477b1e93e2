"""Shared fixtures for the dashboard session tests."""
import pytest
from aiohttp import DummyCookieJar

from dashboard_session.app import create_app
from dashboard_session.exceptions import GoogleAuthenticationError
from dashboard_session.google import (
    GoogleDashboardApi,
    GoogleOAuthClient,
    GoogleOAuthConfig,
)
from dashboard_session.vault import StoreConfig, TokenStore


SECRET_A = "correct horse battery staple"
SECRET_B = "a completely different secret"


class FakeOAuth(GoogleOAuthClient):
    """OAuth client answering from memory instead of Google."""

    def __init__(self, config, tokens=None, profile=None, fail_userinfo=False):
        super().__init__(config)
        self.tokens = tokens if tokens is not None else {
            "access_token": "at_123",
            "refresh_token": "rt_abc",
            "expires_in": 3599,
            "scope": "openid email",
            "token_type": "Bearer",
        }
        self.profile = profile if profile is not None else {"email": "user@example.com"}
        self.fail_userinfo = fail_userinfo
        self.exchanged = []
        self.refreshed = []

    async def exchange_code(self, code):
        self.exchanged.append(code)
        return self._with_expiry(dict(self.tokens))

    async def fetch_userinfo(self, access_token):
        if self.fail_userinfo:
            raise GoogleAuthenticationError("userinfo unavailable")
        return self.profile

    async def refresh_access_token(self, refresh_token):
        self.refreshed.append(refresh_token)
        if refresh_token == "revoked":
            raise GoogleAuthenticationError("invalid_grant")
        return {"access_token": "fresh_token", "expires_in": 3599}


class FakeApi(GoogleDashboardApi):
    """Listing client answering from memory instead of Google."""

    def __init__(self):
        super().__init__()
        self.tokens_seen = []

    async def list_ga4_properties(self, access_token):
        self.tokens_seen.append(access_token)
        return [{"propertyId": "12345", "displayName": "Main site"}]

    async def list_gsc_sites(self, access_token):
        self.tokens_seen.append(access_token)
        return [{"siteUrl": "sc-domain:example.com", "permissionLevel": "siteOwner"}]


@pytest.fixture
def config():
    return StoreConfig(secret=SECRET_A)


@pytest.fixture
def store(config):
    return TokenStore(config)


@pytest.fixture
def other_store():
    return TokenStore(StoreConfig(secret=SECRET_B))


@pytest.fixture
def oauth_config():
    return GoogleOAuthConfig(
        client_id="client-id",
        client_secret="client-secret",
        app_url="http://localhost:3000",
    )


@pytest.fixture
def fake_oauth(oauth_config):
    return FakeOAuth(oauth_config)


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
async def client(aiohttp_client, store, fake_oauth, fake_api):
    """Test client that keeps no cookies; tests send them explicitly."""
    app = create_app(store=store, oauth=fake_oauth, api=fake_api)
    return await aiohttp_client(app, cookie_jar=DummyCookieJar())
