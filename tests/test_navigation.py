import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from backend.errors import HttpFailure, NavigationFailure, NavigationTimeout
from backend.navigation import navigate
from fakes import FakePage, FakeResponse, FakeSession


def test_navigate_waits_for_network_idle():
    page = FakePage()
    response = asyncio.run(navigate(FakeSession(page), "https://example.com/"))
    assert response.status == 200
    assert page.visited == [("https://example.com/", "networkidle", 30000)]


def test_missing_response_is_a_navigation_failure():
    page = FakePage(response=False)
    with pytest.raises(NavigationFailure, match="Failed to load the page"):
        asyncio.run(navigate(FakeSession(page), "https://example.com/"))


def test_error_status_is_an_http_failure():
    page = FakePage(response=FakeResponse(404, "Not Found"))
    with pytest.raises(HttpFailure) as exc:
        asyncio.run(navigate(FakeSession(page), "https://example.com/missing"))
    assert exc.value.status == 404
    assert str(exc.value) == "Page error: 404 Not Found"


def test_goto_timeout():
    page = FakePage(goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded."))
    with pytest.raises(NavigationTimeout):
        asyncio.run(navigate(FakeSession(page), "https://slow.example.com/"))


def test_goto_network_error():
    page = FakePage(goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
    with pytest.raises(NavigationFailure, match="ERR_NAME_NOT_RESOLVED"):
        asyncio.run(navigate(FakeSession(page), "https://nowhere.invalid/"))


def test_ready_state_timeout():
    page = FakePage(ready_error=PlaywrightTimeoutError("Timeout 30000ms exceeded."))
    with pytest.raises(NavigationTimeout):
        asyncio.run(navigate(FakeSession(page), "https://example.com/"))
