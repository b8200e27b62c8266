# blog_migrator/crawler/auth.py
"""
Password login for gated preview hosts.

Preview sites sit behind a shared password submitted as a form POST to the
site origin. The resulting cookie has to travel with every later request to
that origin, so each gated origin gets its own :class:`aiohttp.ClientSession`
(and cookie jar), created once per run and shared by all workers.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Tuple

from aiohttp import ClientError, ClientSession, ClientTimeout, CookieJar

from blog_migrator.crawler.errors import FetchError
from blog_migrator.logger import LOGGER_NAME
from blog_migrator.utils import origin_of

__all__ = ("SessionAuthenticator",)


class SessionAuthenticator:
    """Logs into gated origins and caches the cookie-bearing sessions."""

    #: Text that only the password prompt page shows together.
    PROMPT_MARKERS: Tuple[str, ...] = ("Site Preview", "Password")

    def __init__(self, user_agent: str = "Mozilla/5.0", timeout: float = 30.0) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.logger = logging.getLogger(LOGGER_NAME)
        self._sessions: Dict[str, ClientSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._retired: List[ClientSession] = []
        self.logins = 0

    @classmethod
    def shows_prompt(cls, html: str) -> bool:
        """True if *html* still looks like the password prompt."""
        return all(marker in html for marker in cls.PROMPT_MARKERS)

    async def authenticate(self, origin: str, password: str) -> ClientSession:
        """Return a session logged into *origin*, logging in on first use.

        A login page that still shows the prompt afterwards is only reported;
        the session is returned anyway because preview hosts vary their markup.
        Network errors during login raise :class:`FetchError`.
        """
        origin = origin_of(origin)
        lock = self._locks.setdefault(origin, asyncio.Lock())
        async with lock:
            session = self._sessions.get(origin)
            if session is not None and not session.closed:
                return session

            session = ClientSession(
                cookie_jar=CookieJar(unsafe=True),
                timeout=ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
            )
            try:
                async with session.post(origin, data={"password": password}) as resp:
                    body = await resp.text(errors="replace")
                    status = resp.status
            except (ClientError, asyncio.TimeoutError) as exc:
                await session.close()
                raise FetchError(origin, f"login failed: {exc}") from exc

            self.logins += 1
            self.logger.debug("Login POST %s -> HTTP %s", origin, status)
            if self.shows_prompt(body):
                self.logger.warning("Still seeing the password prompt after login: %s", origin)
            else:
                self.logger.info("Authenticated against %s", origin)
            self._sessions[origin] = session
            return session

    def invalidate(self, origin: str, session: ClientSession) -> None:
        """Forget *session* for *origin* so the next request logs in again.

        Only the session that served the prompt is dropped; one that another
        worker already replaced it with stays cached. The old session may still
        be serving other workers, it is closed in :meth:`close`.
        """
        key = origin_of(origin)
        if self._sessions.get(key) is not session:
            return
        del self._sessions[key]
        self._retired.append(session)

    async def close(self) -> None:
        sessions = list(self._sessions.values()) + self._retired
        self._sessions.clear()
        self._retired.clear()
        for session in sessions:
            if not session.closed:
                await session.close()

    async def __aenter__(self) -> SessionAuthenticator:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
