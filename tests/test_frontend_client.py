import pytest
import requests

from frontend import client


class _Resp:
    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


@pytest.fixture
def posted(monkeypatch):
    calls = []
    reply = {"value": _Resp(200, {"success": True, "id": "abc", "path": "./screenshots/abc.png"})}

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json))
        if isinstance(reply["value"], Exception):
            raise reply["value"]
        return reply["value"]

    monkeypatch.setattr(client.requests, "post", fake_post)
    return calls, reply


def test_request_uses_backend_field_names(posted):
    calls, _ = posted
    result = client.request_screenshot("http://localhost:8000/", "https://example.com", full_page=True)

    assert result["success"] is True
    url, payload = calls[0]
    assert url == "http://localhost:8000/screenshot"
    assert payload == {
        "url": "https://example.com",
        "width": 1280,
        "height": 800,
        "waitTime": 1000,
        "fullPage": True,
        "handleCookieBanners": True,
    }


def test_backend_error_passes_through(posted):
    _, reply = posted
    reply["value"] = _Resp(500, {"success": False, "error": "Page error: 404 Not Found"})
    assert client.request_screenshot("http://b", "https://example.com") == {
        "success": False,
        "error": "Page error: 404 Not Found",
    }


def test_unreachable_backend(posted):
    _, reply = posted
    reply["value"] = requests.ConnectionError("refused")
    result = client.request_screenshot("http://b", "https://example.com")
    assert result["success"] is False
    assert "refused" in result["error"]


def test_non_json_reply(posted):
    _, reply = posted
    reply["value"] = _Resp(502, None, text="Bad Gateway")
    result = client.request_screenshot("http://b", "https://example.com")
    assert result == {"success": False, "error": "Backend error: 502 Bad Gateway"}
