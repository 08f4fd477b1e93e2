"""Authenticated Google access from the encrypted session cookie."""
from aiohttp import web

from ..exceptions import GoogleNotConnected
from ..vault import TokenStore
from .oauth import GoogleOAuthClient


async def access_token_from_request(
    request: web.BaseRequest,
    store: TokenStore,
    oauth: GoogleOAuthClient,
) -> str:
    """Refresh and return an access token for the session's Google account.

    Raises:
        GoogleNotConnected: If the session holds no refresh token.
        GoogleAuthenticationError: If Google rejects the refresh.
    """
    record = store.read(request)
    if record is None or not record.has_refresh_token:
        raise GoogleNotConnected("Google not connected")
    token_data = await oauth.refresh_access_token(record["refresh_token"])
    return token_data["access_token"]
