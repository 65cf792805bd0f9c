# backend/browser.py
import logging

from playwright.async_api import async_playwright
from playwright_stealth import Stealth

from backend.config import TIMEOUT_MS
from backend.errors import LaunchFailure, SessionCloseFailure

logger = logging.getLogger(__name__)

_stealth = Stealth()


def launch_args(width: int, height: int) -> list:
    return [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-accelerated-2d-canvas",
        "--disable-gpu",
        f"--window-size={width},{height}",
    ]


class BrowserSession:
    """One Playwright driver, one Chromium process and one page.

    Owned by a single capture; ``close()`` tears everything down exactly once
    and never raises.
    """

    def __init__(self, playwright, browser, page, width: int, height: int):
        self.playwright = playwright
        self.browser = browser
        self.page = page
        self.width = width
        self.height = height
        self.closed = False

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.browser is not None:
            try:
                await self.browser.close()
            except Exception as e:
                logger.error("%s", SessionCloseFailure(f"Error closing browser: {e}"))
        if self.playwright is not None:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.error("%s", SessionCloseFailure(f"Error stopping playwright: {e}"))
        self.browser = None
        self.page = None
        self.playwright = None
        logger.info("Browser session closed")


async def open_session(width: int, height: int) -> BrowserSession:
    playwright = None
    browser = None
    try:
        playwright = await async_playwright().start()
        browser = await playwright.chromium.launch(headless=True, args=launch_args(width, height))
        page = await browser.new_page(viewport={"width": width, "height": height})
        page.set_default_navigation_timeout(TIMEOUT_MS)
        page.set_default_timeout(TIMEOUT_MS)
        await _stealth.apply_stealth_async(page)
    except Exception as e:
        # Tear down whatever got started before reporting the launch failure
        await BrowserSession(playwright, browser, None, width, height).close()
        raise LaunchFailure(f"Failed to launch browser: {e}") from e
    logger.info("Browser session opened (viewport=%dx%d)", width, height)
    return BrowserSession(playwright, browser, page, width, height)


async def close_session(session) -> None:
    if session is None:
        return
    try:
        await session.close()
    except Exception as e:
        logger.error("%s", SessionCloseFailure(f"Error closing session: {e}"))
