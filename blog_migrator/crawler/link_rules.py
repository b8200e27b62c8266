# blog_migrator/crawler/link_rules.py
"""
Link classification for blog discovery.

Every anchor found on an index page is resolved to an absolute URL and then
run through :data:`LINK_RULES`, an ordered table of ``predicate → action``
pairs. The first rule whose predicate holds decides what happens to the link:

* ``ENQUEUE`` – another page of the index (pagination), crawl it too;
* ``EMIT``    – a blog post, report it;
* ``IGNORE``  – anything else.

Nothing here touches the network, so the policy can be tested on plain strings.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Callable, FrozenSet, Iterable, Optional, Tuple
from urllib.parse import urljoin, urlsplit

from blog_migrator.crawler.frontier import Frontier
from blog_migrator.utils import strip_fragment

__all__ = (
    "LinkAction",
    "LinkContext",
    "LinkRule",
    "LINK_RULES",
    "classify_link",
    "resolve_link",
    "is_pagination",
)

_PAGE_QUERY_RE = re.compile(r"(?:^|[&;])(?:p|page|paged)=\d+(?:&|;|$)")
_PAGE_PATH_RE = re.compile(r"/page/\d+(?:/|$)")
_TAXONOMY_SEGMENTS = ("/category/", "/tag/")
_ASSET_SUFFIXES = frozenset(
    {
        # images
        ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico", ".bmp", ".avif", ".tif", ".tiff",
        # styles / scripts
        ".css", ".js", ".mjs", ".map",
        # fonts
        ".woff", ".woff2", ".ttf", ".otf", ".eot",
    }
)


class LinkAction(str, Enum):
    IGNORE = "ignore"
    ENQUEUE = "enqueue"
    EMIT = "emit"


@dataclass(frozen=True)
class LinkContext:
    """What the rules need to know about the page a link was found on."""

    seeds: FrozenSet[str]
    gated: bool
    content_marker: str
    frontier: Frontier

    @classmethod
    def build(
        cls, seed_urls: Iterable[str], gated: bool, content_marker: str, frontier: Frontier
    ) -> LinkContext:
        return cls(frozenset(u.rstrip("/") for u in seed_urls), gated, content_marker, frontier)


@dataclass(frozen=True)
class LinkRule:
    name: str
    predicate: Callable[[str, LinkContext], bool]
    action: LinkAction


def resolve_link(href: str, page_url: str) -> Optional[str]:
    """Absolute form of *href* without fragment, or ``None`` if it does not parse."""
    href = href.strip()
    if not href:
        return None
    try:
        absolute = urljoin(page_url, href)
        urlsplit(absolute).port  # raises on garbage like "http://host:abc"
    except ValueError:
        return None
    return strip_fragment(absolute)


def is_pagination(url: str) -> bool:
    parts = urlsplit(url)
    return bool(_PAGE_QUERY_RE.search(parts.query) or _PAGE_PATH_RE.search(parts.path))


def _is_seed(url: str, ctx: LinkContext) -> bool:
    return url.rstrip("/") in ctx.seeds


def _is_pagination(url: str, ctx: LinkContext) -> bool:
    return is_pagination(url)


def _is_taxonomy(url: str, ctx: LinkContext) -> bool:
    return any(segment in url for segment in _TAXONOMY_SEGMENTS)


def _has_query(url: str, ctx: LinkContext) -> bool:
    return bool(urlsplit(url).query)


def _is_static_asset(url: str, ctx: LinkContext) -> bool:
    return PurePosixPath(urlsplit(url).path).suffix.lower() in _ASSET_SUFFIXES


def _not_http(url: str, ctx: LinkContext) -> bool:
    return urlsplit(url).scheme not in ("http", "https")


def _is_gated_post(url: str, ctx: LinkContext) -> bool:
    return ctx.gated and ctx.content_marker in urlsplit(url).path


def _is_gated(url: str, ctx: LinkContext) -> bool:
    return ctx.gated


def _is_known(url: str, ctx: LinkContext) -> bool:
    return ctx.frontier.is_known(url)


def _has_path(url: str, ctx: LinkContext) -> bool:
    return urlsplit(url).path not in ("", "/")


#: Evaluated top to bottom, first match wins; no match means IGNORE.
LINK_RULES: Tuple[LinkRule, ...] = (
    LinkRule("seed", _is_seed, LinkAction.IGNORE),
    LinkRule("pagination", _is_pagination, LinkAction.ENQUEUE),
    LinkRule("taxonomy", _is_taxonomy, LinkAction.IGNORE),
    LinkRule("query", _has_query, LinkAction.IGNORE),
    LinkRule("static-asset", _is_static_asset, LinkAction.IGNORE),
    LinkRule("non-http", _not_http, LinkAction.IGNORE),
    LinkRule("gated-post", _is_gated_post, LinkAction.EMIT),
    LinkRule("gated-other", _is_gated, LinkAction.IGNORE),
    LinkRule("already-known", _is_known, LinkAction.IGNORE),
    LinkRule("public-post", _has_path, LinkAction.EMIT),
)


def classify_link(
    url: str, ctx: LinkContext, rules: Tuple[LinkRule, ...] = LINK_RULES
) -> Tuple[LinkAction, Optional[str]]:
    """Return the action for *url* and the name of the rule that decided it."""
    for rule in rules:
        if rule.predicate(url, ctx):
            return rule.action, rule.name
    return LinkAction.IGNORE, None
