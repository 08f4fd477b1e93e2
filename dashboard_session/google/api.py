"""Thin GA4 Admin and Search Console listing calls."""
import logging
from typing import Any, Optional

import aiohttp

from .base import DEFAULT_TIMEOUT, GoogleHttpClient

logger = logging.getLogger("dashboard.google")

ANALYTICS_ADMIN_API_BASE = "https://analyticsadmin.googleapis.com/v1beta"
SEARCH_CONSOLE_API_BASE = "https://searchconsole.googleapis.com/webmasters/v3"


class GoogleDashboardApi(GoogleHttpClient):
    """Lists the GA4 properties and GSC sites an access token can see."""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
        analytics_admin_base: str = ANALYTICS_ADMIN_API_BASE,
        search_console_base: str = SEARCH_CONSOLE_API_BASE,
    ):
        super().__init__(session=session, timeout=timeout)
        self.analytics_admin_base = analytics_admin_base
        self.search_console_base = search_console_base

    async def list_ga4_properties(self, access_token: str) -> list[dict[str, Any]]:
        """Flatten account summaries into ``{propertyId, displayName}`` items."""
        headers = {"Authorization": f"Bearer {access_token}"}
        url = f"{self.analytics_admin_base}/accountSummaries"
        properties = []
        page_token = None
        while True:
            params = {"pageToken": page_token} if page_token else None
            data = await self._request("GET", url, headers=headers, params=params)
            for account in data.get("accountSummaries") or []:
                for prop in account.get("propertySummaries") or []:
                    properties.append({
                        "propertyId": prop.get("property", "").replace("properties/", ""),
                        "displayName": prop.get("displayName"),
                    })
            page_token = data.get("nextPageToken")
            if not page_token:
                break
        logger.debug("Listed %d GA4 properties", len(properties))
        return properties

    async def list_gsc_sites(self, access_token: str) -> list[dict[str, Any]]:
        """Return ``{siteUrl, permissionLevel}`` for every verified site."""
        headers = {"Authorization": f"Bearer {access_token}"}
        data = await self._request(
            "GET", f"{self.search_console_base}/sites", headers=headers,
        )
        sites = [
            {"siteUrl": s.get("siteUrl"), "permissionLevel": s.get("permissionLevel")}
            for s in data.get("siteEntry") or []
        ]
        logger.debug("Listed %d GSC sites", len(sites))
        return sites
