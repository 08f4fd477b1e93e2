"""
HTTP routes that create, read and update the encrypted session.

- ``/api/auth/google/start`` / ``callback``: OAuth round trip, writes the session
- ``/api/auth/google/status``: connection status from the session
- ``/api/auth/google/logout``: clears the session
- ``/api/ga4/select-property`` / ``/api/gsc/select-site``: merge-update one field
- ``/api/ga4/properties`` / ``/api/gsc/sites``: Google listings for the session
"""
import secrets
import logging
from typing import Any
from urllib.parse import quote

from aiohttp import web

from .conf import (
    COOKIE_PATH,
    COOKIE_SAMESITE,
    OAUTH_COOKIE_MAX_AGE,
    RETURN_TO_COOKIE,
    STATE_COOKIE,
)
from .data import TOKEN_FIELDS
from .exceptions import GoogleAuthenticationError
from .google import (
    GoogleDashboardApi,
    GoogleOAuthClient,
    access_token_from_request,
    add_connected_param,
    encode_return_to,
    new_state,
    safe_return_to,
)
from .vault import TokenStore

logger = logging.getLogger("dashboard.http")

token_store_key = web.AppKey("token_store", TokenStore)
google_oauth_key = web.AppKey("google_oauth", GoogleOAuthClient)
google_api_key = web.AppKey("google_api", GoogleDashboardApi)

routes = web.RouteTableDef()


def _set_oauth_cookie(
    response: web.StreamResponse,
    name: str,
    value: str,
    secure: bool,
    max_age: int = OAUTH_COOKIE_MAX_AGE,
) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path=COOKIE_PATH,
        secure=secure,
        httponly=True,
        samesite=COOKIE_SAMESITE,
    )


async def _json_body(request: web.Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


# ---------------------------------------------------------------------------
# OAuth
# ---------------------------------------------------------------------------

@routes.get("/api/auth/google/start")
async def google_start(request: web.Request) -> web.StreamResponse:
    oauth = request.app[google_oauth_key]
    return_to = safe_return_to(request.query.get("returnTo", ""))
    state = new_state()

    response = web.HTTPFound(oauth.authorization_url(state))
    _set_oauth_cookie(response, STATE_COOKIE, state, oauth.config.secure)
    _set_oauth_cookie(
        response, RETURN_TO_COOKIE, encode_return_to(return_to), oauth.config.secure,
    )
    raise response


@routes.get("/api/auth/google/callback")
async def google_callback(request: web.Request) -> web.StreamResponse:
    oauth = request.app[google_oauth_key]
    store = request.app[token_store_key]
    app_url = oauth.config.app_url

    error = request.query.get("error")
    if error:
        logger.warning("OAuth provider returned error: %s", error)
        raise web.HTTPFound(
            f"{app_url}/settings/analytics?error={quote(error, safe='')}#dashboard"
        )

    code = request.query.get("code")
    if not code:
        return web.json_response({"error": "Missing code"}, status=400)

    state = request.query.get("state")
    stored_state = request.cookies.get(STATE_COOKIE)
    if not stored_state or not state or not secrets.compare_digest(
        stored_state.encode("utf-8"), state.encode("utf-8"),
    ):
        logger.warning("OAuth callback with invalid state")
        return web.json_response({"error": "Invalid state"}, status=400)

    try:
        tokens = await oauth.exchange_code(code)
    except GoogleAuthenticationError as err:
        logger.error("OAuth code exchange failed: %s", err)
        return web.json_response({"error": "Token exchange failed"}, status=502)

    profile = None
    if tokens.get("access_token"):
        try:
            profile = await oauth.fetch_userinfo(tokens["access_token"])
        except GoogleAuthenticationError as err:
            # the session is still usable without the email
            logger.warning("Could not fetch Google profile: %s", err)

    record = {
        field: tokens.get(field) or None
        for field in TOKEN_FIELDS if field != "google_email"
    }
    record["google_email"] = (profile or {}).get("email") or None

    return_to = add_connected_param(
        safe_return_to(request.cookies.get(RETURN_TO_COOKIE, ""))
    )
    response = web.HTTPFound(f"{app_url}{return_to}")
    store.write(response, record)
    _set_oauth_cookie(response, STATE_COOKIE, "", oauth.config.secure, max_age=0)
    _set_oauth_cookie(response, RETURN_TO_COOKIE, "", oauth.config.secure, max_age=0)
    logger.info("Google account connected (email present=%s)", bool(record["google_email"]))
    raise response


@routes.get("/api/auth/google/status")
async def google_status(request: web.Request) -> web.Response:
    saved = request.app[token_store_key].read(request)
    return web.json_response({
        "connected": bool(saved and saved.connected),
        "email": saved.google_email if saved else None,
        "hasRefreshToken": bool(saved and saved.has_refresh_token),
    })


@routes.post("/api/auth/google/logout")
async def google_logout(request: web.Request) -> web.Response:
    response = web.json_response({"ok": True})
    request.app[token_store_key].clear(response)
    return response


# ---------------------------------------------------------------------------
# Dashboard selections (merge-update)
# ---------------------------------------------------------------------------

async def _select(request: web.Request, body_key: str, field: str) -> web.Response:
    body = await _json_body(request)
    value = body.get(body_key)
    if not value:
        return web.json_response(
            {"ok": False, "error": f"Missing {body_key}"}, status=400,
        )
    response = web.json_response({"ok": True})
    request.app[token_store_key].update(request, response, {field: value})
    return response


@routes.post("/api/ga4/select-property")
async def ga4_select_property(request: web.Request) -> web.Response:
    return await _select(request, "propertyId", "ga4_property_id")


@routes.post("/api/gsc/select-site")
async def gsc_select_site(request: web.Request) -> web.Response:
    return await _select(request, "siteUrl", "gsc_site")


# ---------------------------------------------------------------------------
# Google listings
# ---------------------------------------------------------------------------

@routes.get("/api/ga4/properties")
async def ga4_properties(request: web.Request) -> web.Response:
    try:
        access_token = await access_token_from_request(
            request, request.app[token_store_key], request.app[google_oauth_key],
        )
        properties = await request.app[google_api_key].list_ga4_properties(access_token)
    except GoogleAuthenticationError as err:
        logger.error("GA4 properties error: %s", err)
        return web.json_response(
            {"ok": False, "error": str(err) or "Failed to fetch GA4 properties"},
            status=401,
        )
    return web.json_response({"ok": True, "properties": properties})


@routes.get("/api/gsc/sites")
async def gsc_sites(request: web.Request) -> web.Response:
    try:
        access_token = await access_token_from_request(
            request, request.app[token_store_key], request.app[google_oauth_key],
        )
        sites = await request.app[google_api_key].list_gsc_sites(access_token)
    except GoogleAuthenticationError as err:
        logger.error("GSC sites error: %s", err)
        return web.json_response(
            {"ok": False, "error": str(err) or "Failed to list GSC sites"},
            status=401,
        )
    return web.json_response({"ok": True, "sites": sites})
