# backend/navigation.py
import asyncio
import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from backend.config import SETTLE_DELAY_MS, TIMEOUT_MS
from backend.errors import HttpFailure, NavigationFailure, NavigationTimeout

logger = logging.getLogger(__name__)

READY_STATE_COMPLETE = "document.readyState === 'complete'"


async def navigate(session, url: str):
    """Load ``url`` and wait until the document is complete and settled.

    Playwright's ``networkidle`` (no requests for 500 ms) is what counts as
    page load for dynamic pages; the whole call is bounded by the session
    timeout except for the fixed settle delay at the end.
    """
    page = session.page
    try:
        response = await page.goto(url, wait_until="networkidle", timeout=TIMEOUT_MS)
    except PlaywrightTimeoutError as e:
        raise NavigationTimeout(f"Timed out loading {url}: {e}") from e
    except PlaywrightError as e:
        raise NavigationFailure(f"Failed to load the page: {e}") from e

    if response is None:
        raise NavigationFailure("Failed to load the page")
    if not response.ok:
        raise HttpFailure(response.status, response.status_text)

    try:
        await page.wait_for_function(READY_STATE_COMPLETE, timeout=TIMEOUT_MS)
    except PlaywrightTimeoutError as e:
        raise NavigationTimeout(f"Timed out waiting for {url} to finish loading") from e
    except PlaywrightError as e:
        raise NavigationFailure(f"Failed to load the page: {e}") from e

    logger.info("Loaded %s (%s)", url, response.status)
    await asyncio.sleep(SETTLE_DELAY_MS / 1000)
    return response
