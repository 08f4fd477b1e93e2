"""aiohttp application factory for the dashboard session routes."""
import os
import logging
from typing import Optional

from aiohttp import web

from .exceptions import SessionStoreError
from .google import GoogleDashboardApi, GoogleOAuthClient, GoogleOAuthConfig
from .handlers import google_api_key, google_oauth_key, routes, token_store_key
from .vault import TokenStore

logger = logging.getLogger("dashboard.http")


@web.middleware
async def session_error_middleware(request: web.Request, handler):
    """Answer session store failures with a generic 500."""
    try:
        return await handler(request)
    except SessionStoreError as err:
        logger.error(
            "Session store failure on %s %s: %s",
            request.method, request.path, type(err).__name__,
        )
        return web.json_response(
            {"ok": False, "error": "Session store failure"}, status=500,
        )


def setup(
    app: web.Application,
    store: TokenStore,
    oauth: GoogleOAuthClient,
    api: Optional[GoogleDashboardApi] = None,
) -> None:
    """Register the store, the Google clients and the routes on ``app``."""
    app[token_store_key] = store
    app[google_oauth_key] = oauth
    app[google_api_key] = api or GoogleDashboardApi()
    app.middlewares.append(session_error_middleware)
    app.add_routes(routes)


def create_app(
    store: Optional[TokenStore] = None,
    oauth: Optional[GoogleOAuthClient] = None,
    api: Optional[GoogleDashboardApi] = None,
) -> web.Application:
    """Build the application; missing collaborators are configured from env.

    Raises:
        ConfigurationError: If a required setting is missing.
    """
    if store is None:
        store = TokenStore.from_env()
    if oauth is None:
        oauth = GoogleOAuthClient(GoogleOAuthConfig.from_env())
    app = web.Application()
    setup(app, store, oauth, api)
    return app


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    web.run_app(
        create_app(),
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8080")),
    )


if __name__ == "__main__":
    main()
