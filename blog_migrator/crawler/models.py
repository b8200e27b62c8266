# blog_migrator/crawler/models.py
"""
Data models for the BlogMigrator crawler.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Tuple, Union

#: Column order of the crawl CSV, as the new platform's importer expects it.
RECORD_COLUMNS: Tuple[str, ...] = (
    "pageid",
    "pageparent",
    "pagetitle",
    "pagelive",
    "pageintrash",
    "titletag",
    "metadesc",
    "publishdate",
    "oldurl",
    "pagedata",
    "post_type",
    "published",
    "fix_images",
    "blogcategories",
    "tags",
    "overrideurl",
    "noindex",
)

DEFAULT_CATEGORY = "blog/category/general"


@dataclass(slots=True)
class PageData:
    """Holds the URL and the HTML of a fetched page."""

    url: str
    content: str


@dataclass(frozen=True, slots=True)
class PageRecord:
    """One row of the crawl output: a blog post ready for import."""

    oldurl: str
    pagetitle: str = ""
    titletag: str = ""
    metadesc: str = ""
    publishdate: str = ""
    pagedata: str = ""
    overrideurl: str = ""
    noindex: str = "no"
    published: str = "yes"
    fix_images: str = "TRUE"
    blogcategories: str = DEFAULT_CATEGORY
    tags: str = ""
    pageid: str = ""
    pageparent: int = 0
    pagelive: str = "live"
    pageintrash: int = 0
    post_type: str = "post"

    @classmethod
    def failed(cls, url: str) -> PageRecord:
        """Sentinel record for a page whose every fetch attempt failed."""
        return cls(
            oldurl=url,
            published="no",
            fix_images="FALSE",
            blogcategories="",
            noindex="unknown",
        )

    @property
    def is_empty(self) -> bool:
        return not self.pagetitle

    def as_row(self) -> Dict[str, Union[str, int]]:
        """Row mapping in :data:`RECORD_COLUMNS` order."""
        data = asdict(self)
        return {column: data[column] for column in RECORD_COLUMNS}
