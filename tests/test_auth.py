# File: tests/test_auth.py
import asyncio
import logging

import pytest
from aiohttp import web

from blog_migrator.crawler.auth import SessionAuthenticator
from blog_migrator.crawler.errors import FetchError
from conftest import html_response, serve_app

PROMPT = "<h1>Site Preview</h1><form method=post>Password <input name=password></form>"


def login_app(state: dict) -> web.Application:
    app = web.Application()

    async def login(request):
        data = await request.post()
        state.setdefault("posts", []).append(dict(data))
        await asyncio.sleep(0.05)
        if data.get("password") == "takealook":
            resp = html_response("Welcome")
            resp.set_cookie("preview_auth", "ok")
            return resp
        return html_response(PROMPT)

    async def page(request):
        if request.cookies.get("preview_auth") != "ok":
            return html_response(PROMPT)
        return html_response("secret content")

    app.router.add_post("/", login)
    app.router.add_get("/blog/post", page)
    return app


def test_shows_prompt():
    assert SessionAuthenticator.shows_prompt(PROMPT)
    assert not SessionAuthenticator.shows_prompt("<p>Password reset tips</p>")


@pytest.mark.asyncio()
async def test_login_sets_cookie(unused_tcp_port):
    state: dict = {}
    async for base in serve_app(login_app(state), unused_tcp_port):
        async with SessionAuthenticator(timeout=5.0) as auth:
            session = await auth.authenticate(f"{base}/blog/post", "takealook")
            async with session.get(f"{base}/blog/post") as resp:
                body = await resp.text()

    assert "secret content" in body
    assert state["posts"] == [{"password": "takealook"}]


@pytest.mark.asyncio()
async def test_concurrent_workers_share_one_login(unused_tcp_port):
    state: dict = {}
    async for base in serve_app(login_app(state), unused_tcp_port):
        async with SessionAuthenticator(timeout=5.0) as auth:
            sessions = await asyncio.gather(*(auth.authenticate(base, "takealook") for _ in range(5)))

    assert len({id(s) for s in sessions}) == 1
    assert auth.logins == 1
    assert len(state["posts"]) == 1


@pytest.mark.asyncio()
async def test_wrong_password_is_only_a_warning(unused_tcp_port, caplog):
    state: dict = {}
    caplog.set_level(logging.WARNING, logger="BlogMigrator")
    async for base in serve_app(login_app(state), unused_tcp_port):
        async with SessionAuthenticator(timeout=5.0) as auth:
            session = await auth.authenticate(base, "wrong")
            async with session.get(f"{base}/blog/post") as resp:
                body = await resp.text()

    assert SessionAuthenticator.shows_prompt(body)
    assert any("password prompt" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio()
async def test_invalidate_forces_new_login(unused_tcp_port):
    state: dict = {}
    async for base in serve_app(login_app(state), unused_tcp_port):
        async with SessionAuthenticator(timeout=5.0) as auth:
            first = await auth.authenticate(base, "takealook")
            auth.invalidate(f"{base}/blog/post", first)
            second = await auth.authenticate(base, "takealook")
            assert not first.closed

    assert first is not second
    assert first.closed and second.closed
    assert auth.logins == 2


@pytest.mark.asyncio()
async def test_stale_session_does_not_evict_fresh_one(unused_tcp_port):
    state: dict = {}
    async for base in serve_app(login_app(state), unused_tcp_port):
        async with SessionAuthenticator(timeout=5.0) as auth:
            stale = await auth.authenticate(base, "takealook")
            auth.invalidate(base, stale)
            fresh = await auth.authenticate(base, "takealook")
            # a second worker still holding the stale session reports the prompt too
            auth.invalidate(base, stale)
            again = await auth.authenticate(base, "takealook")

    assert again is fresh
    assert auth.logins == 2
    assert len(state["posts"]) == 2


@pytest.mark.asyncio()
async def test_unreachable_host_raises_fetch_error(unused_tcp_port):
    async with SessionAuthenticator(timeout=2.0) as auth:
        with pytest.raises(FetchError):
            await auth.authenticate(f"http://127.0.0.1:{unused_tcp_port}", "takealook")
