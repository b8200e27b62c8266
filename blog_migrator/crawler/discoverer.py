# === FILE: blog_migrator/crawler/discoverer.py ===
"""
Blog post discovery: a page-budgeted walk over the blog index and its pagination.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from bs4 import BeautifulSoup

from blog_migrator.config import CrawlTarget
from blog_migrator.crawler.errors import FetchError
from blog_migrator.crawler.fetcher import Fetcher
from blog_migrator.crawler.frontier import Frontier
from blog_migrator.crawler.link_rules import LinkAction, LinkContext, classify_link, resolve_link
from blog_migrator.crawler.models import PageData
from blog_migrator.logger import LOGGER_NAME

__all__ = ("LinkDiscoverer", "extract_links", "extract_nav_links")

logger = logging.getLogger(LOGGER_NAME)


def extract_links(page: PageData) -> List[str]:
    """Every anchor target of *page* as an absolute URL without fragment, in document order.

    Hrefs that do not parse are dropped without a word.
    """
    soup = BeautifulSoup(page.content, "html.parser")
    links: List[str] = []
    for tag in soup.find_all("a", href=True):
        href = tag.get("href")
        if not isinstance(href, str):
            continue
        url = resolve_link(href, page.url)
        if url is not None:
            links.append(url)
    return links


async def extract_nav_links(fetcher: Fetcher, homepage_url: str) -> Set[str]:
    """Collect every link of the site root (menus, footer, sidebar).

    A homepage that fails to load gives an empty set, the crawl goes on unfiltered.
    """
    try:
        page = await fetcher.fetch(homepage_url)
    except FetchError as exc:
        logger.warning("Failed to load homepage %s: %s", homepage_url, exc)
        return set()
    links = set(extract_links(page))
    logger.info("Found %d navigation links on %s", len(links), homepage_url)
    return links


class LinkDiscoverer:
    """Walks blog index pages depth-first and collects post URLs.

    Pages are fetched one at a time. Pagination links go back onto the
    frontier, post links are collected, and the walk stops once
    ``max_pages`` pages were visited or nothing is left to visit.
    """

    def __init__(self, fetcher: Fetcher, target: CrawlTarget) -> None:
        self.fetcher = fetcher
        self.target = target
        self.frontier: Optional[Frontier] = None

    async def discover(self, seed_urls: Iterable[str], max_pages: Optional[int] = None) -> Set[str]:
        """Return the post URLs reachable from *seed_urls* within the page budget."""
        seeds = list(seed_urls)
        budget = self.target.max_pages if max_pages is None else max_pages
        frontier = Frontier.seeded(seeds)
        self.frontier = frontier

        while frontier.pages_visited < budget:
            url = frontier.pop()
            if url is None:
                break
            gated = self.target.requires_auth(url)
            try:
                page = await self.fetcher.fetch(url, auth_required=gated)
            except FetchError as exc:
                logger.warning("Failed to crawl index page %s: %s", url, exc)
                continue
            logger.info("Loaded %s index page: %s", "gated" if gated else "public", url)

            ctx = LinkContext.build(seeds, gated, self.target.content_marker, frontier)
            for link in extract_links(page):
                action, rule = classify_link(link, ctx)
                if action is LinkAction.ENQUEUE:
                    if frontier.push(link):
                        logger.debug("Queued pagination page %s", link)
                elif action is LinkAction.EMIT:
                    frontier.emit(link)
                else:
                    logger.debug("Ignored %s (%s)", link, rule or "no rule")

        if frontier.to_visit:
            logger.info(
                "Page budget of %d reached, %d queued pages dropped", budget, len(frontier.to_visit)
            )
        logger.info(
            "Discovery visited %d pages, found %d post URLs",
            frontier.pages_visited,
            len(frontier.discovered),
        )
        return set(frontier.discovered)
