# blog_migrator/crawler/extractor.py
"""
Page extractor: fetch one blog post and turn it into a :class:`PageRecord`.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from blog_migrator.crawler.fetcher import Fetcher
from blog_migrator.crawler.models import PageRecord
from blog_migrator.logger import LOGGER_NAME
from blog_migrator.parser.html_parser import parse_post

__all__ = ("PageExtractor",)


class PageExtractor:
    """Fetches and parses posts with a fixed number of attempts and a fixed pause.

    Never raises for a broken page: once every attempt failed it returns
    :meth:`PageRecord.failed`, and the caller decides what to do with it.
    """

    def __init__(self, fetcher: Fetcher, max_attempts: int = 3, retry_delay: float = 2.0) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.fetcher = fetcher
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.logger = logging.getLogger(LOGGER_NAME)

    async def extract(self, url: str, auth_required: Optional[bool] = None) -> PageRecord:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                page = await self.fetcher.fetch(url, auth_required=auth_required)
                return parse_post(page.content, url)
            except Exception as exc:  # fetch or parse, both retried
                last_error = exc
                if attempt < self.max_attempts:
                    self.logger.debug(
                        "Attempt %d/%d for %s failed: %s; retrying in %.1f s",
                        attempt, self.max_attempts, url, exc, self.retry_delay,
                    )
                    await asyncio.sleep(self.retry_delay)

        self.logger.warning("Giving up on %s after %d attempts: %s", url, self.max_attempts, last_error)
        return PageRecord.failed(url)
