# blog_migrator/crawler/fetcher.py
"""
Fetcher module: plain or password-gated GET requests with a per-request timeout.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from blog_migrator.config import CrawlTarget
from blog_migrator.crawler.auth import SessionAuthenticator
from blog_migrator.crawler.errors import FetchError
from blog_migrator.crawler.models import PageData
from blog_migrator.logger import LOGGER_NAME
from blog_migrator.utils import origin_of

__all__ = ("Fetcher", "FetchError")


class Fetcher:
    """Routes each GET through the gated-host session or the public one.

    Use as ``async with Fetcher(target, ...) as fetcher``; both the public
    session and every gated-origin session are closed on exit.
    """

    def __init__(
        self,
        target: CrawlTarget,
        user_agent: str = "Mozilla/5.0",
        timeout: float = 30.0,
        session: Optional[ClientSession] = None,
        authenticator: Optional[SessionAuthenticator] = None,
    ) -> None:
        self.target = target
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session
        self.authenticator = authenticator or SessionAuthenticator(user_agent, timeout)
        self.logger = logging.getLogger(LOGGER_NAME)
        self._owns_session = session is None

    async def __aenter__(self) -> Fetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
        await self.authenticator.close()

    async def fetch(self, url: str, auth_required: Optional[bool] = None) -> PageData:
        """
        GET *url* and return its HTML.

        ``auth_required=None`` decides from the host. Raises FetchError on any
        network error, timeout, non-2xx status, or a gated page that still
        shows the password prompt.
        """
        gated = self.target.requires_auth(url) if auth_required is None else auth_required
        if gated:
            session = await self.authenticator.authenticate(origin_of(url), self.target.password or "")
        else:
            if self.session is None:
                raise RuntimeError("Session not initialized")
            session = self.session

        try:
            async with session.get(url) as resp:
                status = resp.status
                if not 200 <= status < 300:
                    raise FetchError(url, f"HTTP {status}", status)
                text = await resp.text(errors="replace")
        except (ClientError, asyncio.TimeoutError) as exc:
            raise FetchError(url, str(exc) or type(exc).__name__) from exc

        if gated and SessionAuthenticator.shows_prompt(text):
            # expired or rejected cookie, the next attempt logs in again
            self.logger.warning("Password prompt returned for %s, session dropped", url)
            self.authenticator.invalidate(url, session)
            raise FetchError(url, "password prompt", status)
        return PageData(url, text)
