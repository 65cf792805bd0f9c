import pytest

from backend import blocker, config, navigation


@pytest.fixture(autouse=True)
def offline_blocker(monkeypatch):
    # Never reach the real filter lists from tests
    monkeypatch.setattr(config, "BLOCKLIST_URLS", [])
    blocker.reset_ruleset()
    yield
    blocker.reset_ruleset()


@pytest.fixture(autouse=True)
def no_settle_delay(monkeypatch):
    monkeypatch.setattr(navigation, "SETTLE_DELAY_MS", 0)


@pytest.fixture
def screenshots_dir(tmp_path, monkeypatch):
    out = tmp_path / "screenshots"
    monkeypatch.setattr(config, "SCREENSHOTS_DIR", str(out))
    return out
