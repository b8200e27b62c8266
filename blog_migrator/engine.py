# File: blog_migrator/engine.py
"""blog_migrator.engine: orchestration of the crawl pipeline and of the old/new site comparison."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple, Union

from blog_migrator.compare.reconciler import ReconciliationResult, reconcile
from blog_migrator.config import CrawlTarget, MigratorConfig
from blog_migrator.crawler.discoverer import LinkDiscoverer, extract_nav_links
from blog_migrator.crawler.extractor import PageExtractor
from blog_migrator.crawler.fetcher import Fetcher
from blog_migrator.crawler.models import PageRecord
from blog_migrator.logger import logger
from blog_migrator.report.csv_report import read_rows, write_records, write_rows
from blog_migrator.report.summary_report import render_summary
from blog_migrator.utils import comparison_stamp, crawl_file_name

__all__ = [
    "CrawlResult",
    "CrawlPipeline",
    "ComparisonOutcome",
    "run_crawl",
    "save_crawl",
    "filter_nav_links",
    "collect_records",
    "list_crawl_files",
    "run_comparison",
]

#: Called with (finished pages, total pages) after every extracted post.
ProgressCallback = Callable[[int, int], None]


@dataclass(slots=True)
class CrawlResult:
    """Deduplicated records of one crawl plus the outcome counts."""

    records: List[PageRecord] = field(default_factory=list)
    urls: List[str] = field(default_factory=list)
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0


def filter_nav_links(urls: Iterable[str], nav_links: Iterable[str]) -> List[str]:
    """Drop URLs that also appear on the homepage (menus, footer, sidebar)."""
    nav = {u.rstrip("/") for u in nav_links}
    return [u for u in urls if u.rstrip("/") not in nav]


def collect_records(records: Iterable[PageRecord]) -> CrawlResult:
    """Keep the first record per non-empty title, counting failures and duplicates."""
    result = CrawlResult()
    seen: Set[str] = set()
    for record in records:
        result.urls.append(record.oldurl)
        if record.is_empty:
            result.failed += 1
        elif record.pagetitle in seen:
            result.skipped += 1
        else:
            seen.add(record.pagetitle)
            result.records.append(record)
            result.succeeded += 1
    return result


class CrawlPipeline:
    """Discovery → nav-link filtering → bounded parallel extraction for one profile."""

    def __init__(self, config: MigratorConfig, target: CrawlTarget) -> None:
        self.config = config
        self.target = target
        self.fetcher = Fetcher(target, user_agent=config.user_agent, timeout=config.timeout)

    async def __aenter__(self) -> CrawlPipeline:
        await self.fetcher.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.fetcher.__aexit__(exc_type, exc, tb)

    async def discover(self) -> List[str]:
        """Sorted post URLs found from the seeds, minus homepage navigation links."""
        found = await LinkDiscoverer(self.fetcher, self.target).discover(
            self.target.seed_urls, self.target.max_pages
        )
        nav = await extract_nav_links(self.fetcher, self.target.resolved_homepage())
        urls = filter_nav_links(sorted(found), nav)
        logger.info("%d post URLs left after removing navigation links", len(urls))
        return urls

    async def extract(
        self, urls: Sequence[str], on_progress: Optional[ProgressCallback] = None
    ) -> List[PageRecord]:
        """Extract every URL with at most ``config.concurrency`` requests in flight.

        Records come back in the order of *urls*.
        """
        extractor = PageExtractor(
            self.fetcher, max_attempts=self.config.max_attempts, retry_delay=self.config.retry_delay
        )
        semaphore = asyncio.Semaphore(self.config.concurrency)
        total = len(urls)
        done = 0

        async def _one(url: str) -> PageRecord:
            nonlocal done
            async with semaphore:
                record = await extractor.extract(url, auth_required=self.target.requires_auth(url))
            done += 1
            if on_progress is not None:
                on_progress(done, total)
            return record

        return list(await asyncio.gather(*(_one(url) for url in urls)))

    async def run(self, on_progress: Optional[ProgressCallback] = None) -> CrawlResult:
        urls = await self.discover()
        if on_progress is not None:
            on_progress(0, len(urls))
        result = collect_records(await self.extract(urls, on_progress))
        logger.info(
            "Crawl finished: %d saved, %d failed, %d duplicate titles skipped",
            result.succeeded, result.failed, result.skipped,
        )
        return result


async def run_crawl(
    config: MigratorConfig,
    target: CrawlTarget,
    on_progress: Optional[ProgressCallback] = None,
) -> CrawlResult:
    """Run the whole crawl for *target*, bounded by ``config.crawl_deadline`` if set."""

    async def _runner() -> CrawlResult:
        async with CrawlPipeline(config, target) as pipeline:
            return await pipeline.run(on_progress)

    if config.crawl_deadline is None:
        return await _runner()
    try:
        return await asyncio.wait_for(_runner(), timeout=config.crawl_deadline)
    except asyncio.TimeoutError:
        logger.error("Crawl did not finish within %s seconds", config.crawl_deadline)
        raise


def save_crawl(
    result: CrawlResult,
    target: CrawlTarget,
    output_dir: Union[Path, str],
    now: Optional[datetime] = None,
) -> Path:
    """Write the crawl CSV named after the site and the run time."""
    name = crawl_file_name(target.seed_urls[0], now, target.gated_host_suffix)
    path = write_records(result.records, Path(output_dir) / name)
    logger.info("%d blog posts saved to %s", len(result.records), path)
    return path


# --------------------------------------------------------------------------- #
# Old site vs. new site comparison                                            #
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class ComparisonOutcome:
    result: ReconciliationResult
    summary_path: Path
    unmatched_csv: Optional[Path] = None
    timestamp: str = ""


def list_crawl_files(directory: Union[Path, str]) -> Tuple[List[Path], List[Path]]:
    """Split crawl CSVs into (new site = "preview" in name, old site), newest first."""
    folder = Path(directory)
    if not folder.is_dir():
        return [], []
    files = sorted(folder.glob("*.csv"), key=lambda p: p.stat().st_mtime, reverse=True)
    new_site = [p for p in files if "preview" in p.name.lower()]
    old_site = [p for p in files if "preview" not in p.name.lower()]
    return new_site, old_site


def _title_key(row: dict) -> str:
    return (row.get("pagetitle") or "").lower().strip()


def run_comparison(
    config: MigratorConfig,
    old_path: Union[Path, str],
    new_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
    now: Optional[datetime] = None,
) -> ComparisonOutcome:
    """Reconcile two crawl files and write the unmatched old rows and the summary."""
    old_fields, old_rows = read_rows(old_path)
    _, new_rows = read_rows(new_path)
    logger.info("Comparing %d old-site rows with %d new-site rows", len(old_rows), len(new_rows))

    result = reconcile([_title_key(r) for r in old_rows], [_title_key(r) for r in new_rows])

    to_migrate = set(result.migrate)
    unmatched_rows = [row for row in old_rows if _title_key(row) in to_migrate]

    stamp = comparison_stamp(now)
    csv_name = f"unmatched_oldsite_blogs_{stamp}.csv"
    unmatched_csv = None
    if unmatched_rows:
        unmatched_csv = write_rows(unmatched_rows, old_fields, Path(config.compare_dir) / csv_name)
        logger.info("Unmatched old site blogs written to %s", unmatched_csv)
    else:
        logger.info("All old site blog titles are present on the new site")

    summary_path = render_summary(
        result,
        stamp,
        Path(config.summary_dir) / csv_name.replace(".csv", ".txt"),
        template_dir,
    )
    return ComparisonOutcome(result, summary_path, unmatched_csv, stamp)
