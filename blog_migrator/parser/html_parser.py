# === FILE: blog_migrator/parser/html_parser.py ===
"""HTML → :class:`PageRecord` extraction for blog posts.

Legacy blog themes differ a lot, so every field is read through an ordered
list of fallbacks and the first non-empty value wins:

* title       : ``og:title`` meta, then the first ``<h1>``;
* title tag   : ``<title>``;
* description : ``description`` meta;
* publish date: ``article:published_time`` meta, ``pubdate`` meta, first
  ``<time>``'s ``datetime`` attribute, then its text (passed through as-is);
* body        : inner HTML of every :data:`CONTENT_SELECTORS` match, in
  document order;
* image       : ``src`` of the first ``<img>`` inside a content container.

Nothing here does I/O; :mod:`blog_migrator.crawler.extractor` fetches the page.
"""
from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from blog_migrator.crawler.models import PageRecord

__all__: Sequence[str] = ("CONTENT_SELECTORS", "parse_post", "build_pagedata")

#: Containers presumed to hold the article body.
CONTENT_SELECTORS: tuple[str, ...] = ("article", ".content", ".postcontent")


def _meta(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    content = tag.get("content")
    return content.strip() if isinstance(content, str) else ""


def _first_text(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find(name)
    return tag.get_text().strip() if tag is not None else ""


def _first_of(*candidates: Optional[str]) -> str:
    for value in candidates:
        if value:
            return value
    return ""


def extract_title(soup: BeautifulSoup) -> str:
    return _first_of(_meta(soup, property="og:title"), _first_text(soup, "h1"))


def extract_publish_date(soup: BeautifulSoup) -> str:
    time_tag = soup.find("time")
    time_attr = time_tag.get("datetime") if time_tag is not None else None
    return _first_of(
        _meta(soup, property="article:published_time"),
        _meta(soup, name="pubdate"),
        time_attr.strip() if isinstance(time_attr, str) else None,
        time_tag.get_text().strip() if time_tag is not None else None,
    )


def extract_content(soup: BeautifulSoup) -> str:
    """Concatenated inner HTML of all content containers, ``""`` if none."""
    sections = soup.select(", ".join(CONTENT_SELECTORS))
    return "".join(section.decode_contents() for section in sections).strip()


def extract_first_image(soup: BeautifulSoup) -> str:
    img = soup.select_one(", ".join(f"{sel} img" for sel in CONTENT_SELECTORS))
    src = img.get("src") if img is not None else None
    return src if isinstance(src, str) else ""


def is_noindex(soup: BeautifulSoup) -> bool:
    return "noindex" in _meta(soup, name="robots").lower()


def override_path(url: str) -> str:
    """URL path without its leading slash: ``/blog/my-post`` → ``blog/my-post``."""
    path = urlsplit(url).path
    return path[1:] if path.startswith("/") else path


def build_pagedata(title: str, image: str, content: str) -> str:
    """Serialized structured payload the new platform stores per post."""
    payload = {
        "title": title,
        "display-title": title,
        "article-author": "",
        "preview-image": {"imagefile": image, "alt": title},
        "hero-image": {"imagefile": image, "alt": title},
        "content": content,
    }
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def parse_post(html: str, url: str) -> PageRecord:
    """Build the import record of the post at *url* from its HTML."""
    soup = BeautifulSoup(html, "html.parser")
    title = extract_title(soup)

    return PageRecord(
        oldurl=url,
        pagetitle=title,
        titletag=_first_text(soup, "title"),
        metadesc=_meta(soup, name="description"),
        publishdate=extract_publish_date(soup),
        pagedata=build_pagedata(title, extract_first_image(soup), extract_content(soup)),
        overrideurl=override_path(url),
        noindex="yes" if is_noindex(soup) else "no",
    )
