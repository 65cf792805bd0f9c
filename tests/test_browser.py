import asyncio

import pytest

from backend import browser
from backend.browser import close_session, launch_args, open_session
from backend.errors import LaunchFailure


class _Page:
    def __init__(self):
        self.navigation_timeout = None
        self.timeout = None

    def set_default_navigation_timeout(self, ms):
        self.navigation_timeout = ms

    def set_default_timeout(self, ms):
        self.timeout = ms


class _Browser:
    def __init__(self, page_error=None, close_error=None):
        self.page_error = page_error
        self.close_error = close_error
        self.viewport = None
        self.close_calls = 0

    async def new_page(self, viewport=None):
        if self.page_error is not None:
            raise self.page_error
        self.viewport = viewport
        return _Page()

    async def close(self):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class _Chromium:
    def __init__(self, browser_obj, launch_error=None):
        self.browser = browser_obj
        self.launch_error = launch_error
        self.launches = []

    async def launch(self, headless=True, args=None):
        self.launches.append((headless, args))
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


class _Playwright:
    def __init__(self, chromium):
        self.chromium = chromium
        self.stop_calls = 0

    async def stop(self):
        self.stop_calls += 1


class _Starter:
    def __init__(self, playwright):
        self.playwright = playwright

    async def start(self):
        return self.playwright


class _Stealth:
    def __init__(self):
        self.pages = []

    async def apply_stealth_async(self, page):
        self.pages.append(page)


@pytest.fixture
def fake_playwright(monkeypatch):
    def install(browser_obj=None, launch_error=None):
        browser_obj = browser_obj or _Browser()
        pw = _Playwright(_Chromium(browser_obj, launch_error))
        stealth = _Stealth()
        monkeypatch.setattr(browser, "async_playwright", lambda: _Starter(pw))
        monkeypatch.setattr(browser, "_stealth", stealth)
        return pw, stealth

    return install


def test_launch_args_size_the_window():
    args = launch_args(1024, 768)
    assert "--no-sandbox" in args
    assert "--disable-setuid-sandbox" in args
    assert args[-1] == "--window-size=1024,768"


def test_open_session_configures_page(fake_playwright):
    pw, stealth = fake_playwright()
    session = asyncio.run(open_session(1024, 768))

    assert pw.chromium.launches == [(True, launch_args(1024, 768))]
    assert pw.chromium.browser.viewport == {"width": 1024, "height": 768}
    assert session.page.navigation_timeout == 30000
    assert session.page.timeout == 30000
    assert stealth.pages == [session.page]
    assert not session.closed


def test_launch_failure_stops_the_driver(fake_playwright):
    pw, _ = fake_playwright(launch_error=RuntimeError("Executable doesn't exist"))
    with pytest.raises(LaunchFailure, match="Executable doesn't exist"):
        asyncio.run(open_session(1280, 800))
    assert pw.stop_calls == 1


def test_page_failure_closes_the_browser(fake_playwright):
    pw, _ = fake_playwright(browser_obj=_Browser(page_error=RuntimeError("Target closed")))
    with pytest.raises(LaunchFailure):
        asyncio.run(open_session(1280, 800))
    assert pw.chromium.browser.close_calls == 1
    assert pw.stop_calls == 1


def test_close_is_idempotent(fake_playwright):
    pw, _ = fake_playwright()

    async def run():
        session = await open_session(1280, 800)
        await close_session(session)
        await close_session(session)
        return session

    session = asyncio.run(run())
    assert session.closed
    assert session.page is None
    assert pw.chromium.browser.close_calls == 1
    assert pw.stop_calls == 1


def test_close_swallows_browser_errors(fake_playwright):
    pw, _ = fake_playwright(browser_obj=_Browser(close_error=RuntimeError("connection lost")))

    async def run():
        session = await open_session(1280, 800)
        await session.close()

    asyncio.run(run())
    assert pw.stop_calls == 1


def test_close_session_accepts_none():
    asyncio.run(close_session(None))
