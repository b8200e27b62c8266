# blog_migrator/crawler/errors.py
"""
Exceptions raised by the crawler layer.
"""
from __future__ import annotations

from typing import Optional


class FetchError(Exception):
    """A page could not be fetched: network error, timeout or non-2xx status."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status = status
