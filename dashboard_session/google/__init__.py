"""Google OAuth and API collaborators of the session store."""

from .oauth import (
    GoogleOAuthClient,
    GoogleOAuthConfig,
    add_connected_param,
    encode_return_to,
    new_state,
    safe_return_to,
)
from .api import GoogleDashboardApi
from .credentials import access_token_from_request

__all__ = [
    "GoogleOAuthClient",
    "GoogleOAuthConfig",
    "GoogleDashboardApi",
    "access_token_from_request",
    "add_connected_param",
    "encode_return_to",
    "new_state",
    "safe_return_to",
]
