# File: tests/conftest.py
import logging
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from aiohttp import web

from blog_migrator.config import CrawlTarget, MigratorConfig
from blog_migrator.crawler.models import PageData
from blog_migrator.logger import LOGGER_NAME, configure


@pytest.fixture(autouse=True)
def propagate_logs():
    """Let caplog see the project logger, which normally does not propagate."""
    lg = logging.getLogger(LOGGER_NAME)
    lg.propagate = True
    yield
    # CliRunner streams are closed by now, rebind handlers to the real stderr
    configure(level="INFO")
    lg.propagate = False


@pytest.fixture()
def make_target():
    """Factory for CrawlTarget with test-friendly defaults."""

    def _make(*index_urls: str, **kwargs) -> CrawlTarget:
        return CrawlTarget(index_urls=list(index_urls), **kwargs)

    return _make


@pytest.fixture()
def make_config(tmp_path: Path):
    """Factory for MigratorConfig writing into tmp_path, without retry pauses."""

    def _make(target: CrawlTarget, **kwargs) -> MigratorConfig:
        params = dict(
            timeout=5.0,
            retry_delay=0.0,
            output_dir=tmp_path / "CSV Files",
            compare_dir=tmp_path / "Compared CSV",
            summary_dir=tmp_path / "Comparison Summaries",
            profiles={"test": target},
        )
        params.update(kwargs)
        return MigratorConfig(**params)

    return _make


@pytest.fixture()
def post_html() -> str:
    """A typical legacy blog post."""
    return """
    <html>
      <head>
        <title>My Post | Example Blog</title>
        <meta property="og:title" content="My Post">
        <meta name="description" content="A short summary.">
        <meta property="article:published_time" content="2023-04-01T10:00:00+00:00">
        <meta name="robots" content="index, follow">
      </head>
      <body>
        <nav><a href="/about">About</a><img src="/logo.png"></nav>
        <h1>Headline that is not used</h1>
        <article><p>First paragraph.</p><img src="/img/hero.jpg" alt="x"></article>
        <div class="postcontent"><p>More text.</p></div>
      </body>
    </html>
    """


@pytest.fixture()
def mock_page_data() -> PageData:
    html = '<html><body><a href="/blog/post-1#comments">P1</a><a href="mailto:a@b.c">M</a></body></html>'
    return PageData(url="https://example.test/blog", content=html)


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on 127.0.0.1:*port*, yield its base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


def html_response(body: str) -> web.Response:
    return web.Response(text=f"<html><body>{body}</body></html>", content_type="text/html")
