"""
Tests for Jellyfin integration helpers.
"""

from typing import Any, Dict

import requests

from app.config import get_settings
from app.integrations_utils import refresh_media_server, trigger_jellyfin_library_scan


class DummyResponse:
    """Minimal response object to emulate requests.Response."""

    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text


class DummySession:
    """Simple session stub capturing POST calls."""

    def __init__(self, post_response: DummyResponse = None, error: Exception = None):
        self._post_response = post_response
        self._error = error
        self.post_kwargs: Dict[str, Any] = {}

    def post(self, url: str, **kwargs: Any) -> DummyResponse:
        self.post_kwargs = {"url": url, **kwargs}
        if self._error is not None:
            raise self._error
        return self._post_response


def test_trigger_scan_successful():
    session = DummySession(DummyResponse(status_code=204))
    logs = []

    result = trigger_jellyfin_library_scan(
        base_url="https://media.local:8096/",
        api_key="token",
        session=session,
        log=logs.append,
    )

    assert result.success is True
    assert result.status_code == 204
    assert session.post_kwargs["url"] == "https://media.local:8096/Library/Refresh"
    headers = session.post_kwargs["headers"]
    assert headers["X-Emby-Token"] == "token"
    assert "theme library refresh" in logs[0]


def test_trigger_scan_missing_config():
    result = trigger_jellyfin_library_scan(base_url="", api_key="")
    assert result.success is False
    assert "Missing Jellyfin" in result.message


def test_trigger_scan_http_error():
    session = DummySession(DummyResponse(status_code=401, text="Unauthorized"))

    result = trigger_jellyfin_library_scan("https://media.local", "bad", session=session)

    assert result.success is False
    assert result.status_code == 401
    assert "Unauthorized" in result.message


def test_trigger_scan_request_exception():
    session = DummySession(error=requests.ConnectionError("refused"))

    result = trigger_jellyfin_library_scan("https://media.local", "token", session=session)

    assert result.success is False
    assert "refused" in result.message


def test_refresh_skipped_when_not_configured():
    session = DummySession(DummyResponse(status_code=204))

    assert refresh_media_server(session=session) is None
    assert session.post_kwargs == {}


def test_refresh_uses_settings(monkeypatch):
    monkeypatch.setenv("JELLYFIN_BASE_URL", "https://media.local")
    monkeypatch.setenv("JELLYFIN_API_KEY", "secret")
    get_settings.cache_clear()
    session = DummySession(DummyResponse(status_code=204))

    result = refresh_media_server(session=session)

    assert result.success is True
    assert session.post_kwargs["headers"]["X-Emby-Token"] == "secret"
