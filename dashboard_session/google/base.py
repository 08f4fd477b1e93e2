"""Shared aiohttp plumbing for Google endpoints."""
import asyncio
import logging
from typing import Any, Optional

import aiohttp

from ..exceptions import GoogleAuthenticationError

logger = logging.getLogger("dashboard.google")

DEFAULT_TIMEOUT = 30


class GoogleHttpClient:
    """Base class issuing JSON requests against Google endpoints.

    When ``session`` is given it is reused and left open; otherwise a
    short-lived ClientSession is opened per call.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        if self._session is not None:
            return await self._send(self._session, method, url, **kwargs)
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            return await self._send(session, method, url, **kwargs)

    async def _send(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        **kwargs: Any
    ) -> dict[str, Any]:
        try:
            async with session.request(
                method, url, timeout=self._timeout, **kwargs
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.error(
                        "Google request failed: %s %s -> %s",
                        method, url, response.status,
                    )
                    raise GoogleAuthenticationError(
                        f"Google request failed ({response.status}): {error_text}"
                    )
                return await response.json()
        except aiohttp.ClientError as err:
            logger.error("Google request error: %s %s: %s", method, url, err)
            raise GoogleAuthenticationError(f"Google request error: {err}") from err
        except asyncio.TimeoutError as err:
            logger.error("Google request timed out: %s %s", method, url)
            raise GoogleAuthenticationError("Google request timed out") from err
