# File: blog_migrator/utils.py
"""blog_migrator.utils: URL helpers and run-file naming shared by the crawl and compare commands."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from blog_migrator.logger import logger

__all__: Sequence[str] = (
    "strip_fragment",
    "origin_of",
    "client_name",
    "crawl_file_name",
    "comparison_stamp",
)


def strip_fragment(url: str) -> str:
    """Drop the ``#fragment`` part, leaving everything else untouched."""
    return url.split("#", 1)[0]


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` of *url*."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, "", "", ""))


def client_name(url: str, gated_host_suffix: str = ".preview.octanesites.com") -> str:
    """Short site identifier used in output file names.

    ``acme.preview.octanesites.com`` → ``acme``; ``www.acme.net`` → ``acme``.
    """
    host = (urlsplit(url).hostname or "").lower()
    if gated_host_suffix and host.endswith(gated_host_suffix.lower()):
        return host.split(".")[0]
    return host.replace("www.", "", 1).split(".")[0]


def crawl_file_name(
    index_url: str,
    now: Optional[datetime] = None,
    gated_host_suffix: str = ".preview.octanesites.com",
) -> str:
    """``[preview-]<client>_<MM-DD-YY>_<hh-mm-ss-AM>_blogs.csv`` for one crawl run."""
    now = now or datetime.now()
    prefix = "preview-" if "preview" in (urlsplit(index_url).hostname or "") else ""
    name = client_name(index_url, gated_host_suffix)
    stamp = f"{now:%m-%d-%y}_{now:%I-%M-%S-%p}"
    file_name = f"{prefix}{name}_{stamp}_blogs.csv"
    logger.debug("Crawl output file name: %s", file_name)
    return file_name


def comparison_stamp(now: Optional[datetime] = None) -> str:
    """ISO timestamp safe for file names (``:`` and ``.`` replaced with ``-``)."""
    now = now or datetime.now()
    return now.isoformat(timespec="milliseconds").replace(":", "-").replace(".", "-")

