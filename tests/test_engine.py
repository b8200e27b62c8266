# File: tests/test_engine.py
"""Crawl pipeline end to end on a local server, plus the comparison run."""
import asyncio
import csv
import os
from datetime import datetime

import pytest
from aiohttp import web

from blog_migrator.crawler.models import RECORD_COLUMNS, PageRecord
from blog_migrator.engine import (
    CrawlPipeline,
    collect_records,
    filter_nav_links,
    list_crawl_files,
    run_comparison,
    run_crawl,
    save_crawl,
)
from blog_migrator.report.csv_report import write_rows
from conftest import html_response, serve_app


def post(title: str) -> str:
    return f'<meta property="og:title" content="{title}"><article><p>{title} body</p></article>'


def post_handler(title: str):
    async def handler(_):
        return html_response(post(title))

    return handler


def test_nav_link_suppression_scenario():
    discovered = ["https://example.test/about", "https://example.test/blog/my-post"]
    nav = {"https://example.test/about"}
    assert filter_nav_links(discovered, nav) == ["https://example.test/blog/my-post"]
    # trailing slashes do not defeat the filter
    assert filter_nav_links(["https://example.test/about/"], nav) == []


def test_collect_records_dedupes_titles():
    records = [
        PageRecord(oldurl="u1", pagetitle="A"),
        PageRecord.failed("u2"),
        PageRecord(oldurl="u3", pagetitle="A"),
        PageRecord(oldurl="u4", pagetitle="B"),
    ]
    result = collect_records(records)
    assert [r.oldurl for r in result.records] == ["u1", "u4"]
    assert (result.succeeded, result.failed, result.skipped) == (2, 1, 1)
    assert result.urls == ["u1", "u2", "u3", "u4"]


@pytest.fixture()
def blog_app():
    app = web.Application()

    async def home(_):
        return html_response('<a href="/about">About</a><a href="/blog">Blog</a>')

    async def index(_):
        return html_response(
            '<a href="/about">About</a>'
            '<a href="/blog/my-post">Mine</a>'
            '<a href="/blog/copy-of-my-post">Copy</a>'
            '<a href="/blog/broken">Broken</a>'
            '<a href="/blog/page/2/">Older</a>'
        )

    async def index2(_):
        return html_response('<a href="/blog/older-post">Older post</a>')

    async def broken(_):
        return web.Response(status=500)

    app.router.add_get("/", home)
    app.router.add_get("/about", post_handler("About Us"))
    app.router.add_get("/blog", index)
    app.router.add_get("/blog/page/2/", index2)
    app.router.add_get("/blog/my-post", post_handler("My Post"))
    app.router.add_get("/blog/copy-of-my-post", post_handler("My Post"))
    app.router.add_get("/blog/older-post", post_handler("Older Post"))
    app.router.add_get("/blog/broken", broken)
    return app


@pytest.mark.asyncio()
async def test_crawl_pipeline_end_to_end(make_target, make_config, blog_app, unused_tcp_port, tmp_path):
    progress = []

    async for base in serve_app(blog_app, unused_tcp_port):
        target = make_target(f"{base}/blog", max_pages=5)
        config = make_config(target, concurrency=2)
        result = await run_crawl(config, target, on_progress=lambda d, t: progress.append((d, t)))

    titles = [r.pagetitle for r in result.records]
    assert titles == ["My Post", "Older Post"]
    # copy-of-my-post sorts first, so it wins the duplicate title
    assert [r.oldurl for r in result.records] == [f"{base}/blog/copy-of-my-post", f"{base}/blog/older-post"]
    assert f"{base}/about" not in result.urls
    assert (result.succeeded, result.failed, result.skipped) == (2, 1, 1)
    assert progress[0] == (0, 4)
    assert progress[-1] == (4, 4)

    path = save_crawl(result, target, tmp_path / "out", now=datetime(2024, 3, 5, 14, 7, 9))
    assert path.name == "127_03-05-24_02-07-09-PM_blogs.csv"
    with path.open(encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        rows = list(reader)
    assert reader.fieldnames == list(RECORD_COLUMNS)
    assert [row["pagetitle"] for row in rows] == ["My Post", "Older Post"]
    assert rows[0]["overrideurl"] == "blog/copy-of-my-post"


@pytest.mark.asyncio()
async def test_pipeline_discover_only(make_target, make_config, blog_app, unused_tcp_port):
    async for base in serve_app(blog_app, unused_tcp_port):
        target = make_target(f"{base}/blog", max_pages=1)
        async with CrawlPipeline(make_config(target), target) as pipeline:
            urls = await pipeline.discover()

    assert urls == sorted(
        [f"{base}/blog/broken", f"{base}/blog/copy-of-my-post", f"{base}/blog/my-post"]
    )


@pytest.mark.asyncio()
async def test_crawl_deadline(make_target, make_config, unused_tcp_port):
    app = web.Application()

    async def slow(_):
        await asyncio.sleep(2)
        return html_response("")

    app.router.add_get("/blog", slow)

    async for base in serve_app(app, unused_tcp_port):
        target = make_target(f"{base}/blog")
        config = make_config(target, crawl_deadline=0.2)
        with pytest.raises(asyncio.TimeoutError):
            await run_crawl(config, target)


@pytest.mark.asyncio()
async def test_extraction_never_exceeds_concurrency(make_target, make_config, unused_tcp_port):
    app = web.Application()
    load = {"now": 0, "peak": 0}

    async def slow_post(request):
        load["now"] += 1
        load["peak"] = max(load["peak"], load["now"])
        await asyncio.sleep(0.05)
        load["now"] -= 1
        return html_response(post(f"Post {request.match_info['n']}"))

    app.router.add_get("/blog/post-{n}", slow_post)

    async for base in serve_app(app, unused_tcp_port):
        target = make_target(f"{base}/blog")
        urls = [f"{base}/blog/post-{n}" for n in range(8)]
        async with CrawlPipeline(make_config(target, concurrency=2), target) as pipeline:
            records = await pipeline.extract(urls)

    assert load["peak"] <= 2
    assert [r.oldurl for r in records] == urls
    assert [r.pagetitle for r in records] == [f"Post {n}" for n in range(8)]


@pytest.mark.asyncio()
async def test_expired_preview_cookie_is_not_saved_as_post(make_target, make_config, unused_tcp_port):
    app = web.Application()
    state = {"logins": 0, "post_gets": 0}

    async def login(_):
        state["logins"] += 1
        resp = html_response("Welcome")
        resp.set_cookie("preview_auth", str(state["logins"]))
        return resp

    async def index(_):
        return html_response('<a href="/blog/a">A</a>')

    async def gated_post(_):
        state["post_gets"] += 1
        if state["post_gets"] == 1:
            return html_response("<h1>Site Preview</h1>Password")
        return html_response(post("Real Post"))

    app.router.add_post("/", login)
    app.router.add_get("/blog", index)
    app.router.add_get("/blog/a", gated_post)

    async for base in serve_app(app, unused_tcp_port):
        target = make_target(f"{base}/blog", gated_host_suffix="127.0.0.1", password="takealook")
        result = await run_crawl(make_config(target), target)

    assert [r.pagetitle for r in result.records] == ["Real Post"]
    assert state["post_gets"] == 2
    assert state["logins"] == 2


# --------------------------------------------------------------------------- #
#                                 Comparison                                  #
# --------------------------------------------------------------------------- #


def write_crawl(path, titles):
    rows = [PageRecord(oldurl=f"https://old.test/{i}", pagetitle=t).as_row() for i, t in enumerate(titles)]
    return write_rows(rows, RECORD_COLUMNS, path)


def test_run_comparison(make_target, make_config, tmp_path):
    config = make_config(make_target("https://www.acme.net/blog"))
    old = write_crawl(tmp_path / "acme_old.csv", ["How to Bake Bread", "10 Tips for Gardening Success in Spring"])
    new = write_crawl(
        tmp_path / "preview-acme.csv", ["how to bake bread!", "Gardening Tips for a Great Spring Garden"]
    )

    outcome = run_comparison(config, old, new, now=datetime(2024, 1, 2, 3, 4, 5, 678000))

    assert outcome.timestamp == "2024-01-02T03-04-05-678"
    assert outcome.unmatched_csv.name == "unmatched_oldsite_blogs_2024-01-02T03-04-05-678.csv"
    with outcome.unmatched_csv.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert [r["pagetitle"] for r in rows] == ["10 Tips for Gardening Success in Spring"]

    summary = outcome.summary_path.read_text(encoding="utf-8")
    assert outcome.summary_path.suffix == ".txt"
    assert "Comparison Summary - 2024-01-02T03-04-05-678" in summary
    assert "Matched Titles (removed): 1" in summary
    assert "Unmatched Titles (to migrate): 1" in summary
    assert "New Site Titles not found on Old Site: 1" in summary
    assert '"how to bake bread" = "how to bake bread!" ... These were found to be a match by "exact match"' in summary


def test_run_comparison_everything_matched(make_target, make_config, tmp_path):
    config = make_config(make_target("https://www.acme.net/blog"))
    old = write_crawl(tmp_path / "old.csv", ["Same Title"])
    new = write_crawl(tmp_path / "preview.csv", ["same title "])
    outcome = run_comparison(config, old, new)
    assert outcome.unmatched_csv is None
    assert outcome.result.counts == {"matched": 1, "migrate": 0, "new_only": 0}
    assert outcome.summary_path.exists()


def test_run_comparison_needs_pagetitle(make_target, make_config, tmp_path):
    config = make_config(make_target("https://www.acme.net/blog"))
    bad = tmp_path / "bad.csv"
    bad.write_text("title\nx\n", encoding="utf-8")
    good = write_crawl(tmp_path / "preview.csv", ["x"])
    with pytest.raises(ValueError):
        run_comparison(config, bad, good)


def test_list_crawl_files(tmp_path):
    for i, name in enumerate(["acme_a.csv", "preview-acme_a.csv", "acme_b.csv", "preview-acme_b.csv", "notes.txt"]):
        p = tmp_path / name
        p.write_text("pagetitle\n", encoding="utf-8")
        os.utime(p, (1_000 + i, 1_000 + i))

    new_site, old_site = list_crawl_files(tmp_path)
    assert [p.name for p in new_site] == ["preview-acme_b.csv", "preview-acme_a.csv"]
    assert [p.name for p in old_site] == ["acme_b.csv", "acme_a.csv"]
    assert list_crawl_files(tmp_path / "missing") == ([], [])
