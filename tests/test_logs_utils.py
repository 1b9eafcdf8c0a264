"""
Tests for log helpers and yt-dlp error classification.
"""

from app.config import get_settings
from app.logs_utils import (
    clean_log_line,
    is_authentication_error,
    log_authentication_error_hint,
    log_debug,
    log_title,
    safe_push_log,
    should_suppress_message,
)


class TestClassification:
    def test_authentication_errors(self):
        assert is_authentication_error("ERROR: Sign in to confirm you're not a bot")
        assert is_authentication_error("HTTP Error 403: Forbidden")
        assert is_authentication_error(
            "WARNING: The provided YouTube account cookies are no longer valid"
        )
        assert not is_authentication_error("ERROR: Unsupported URL")

    def test_suppressed_messages(self):
        assert should_suppress_message("   ")
        assert should_suppress_message("[download] Sleeping 3.0 seconds")
        assert not should_suppress_message("[download] 42.0%")

    def test_clean_log_line(self):
        assert clean_log_line("\x1b[0;32mok\x1b[0m\r\n") == "ok"


class TestLogging:
    def test_registered_sink(self, captured_logs):
        safe_push_log("hello")
        log_title("Title")

        assert captured_logs == ["hello", "Title", "─────"]

    def test_fallback_to_print(self, capsys):
        safe_push_log("no sink")

        assert "[LOG] no sink" in capsys.readouterr().out

    def test_debug_only_when_enabled(self, monkeypatch, captured_logs):
        log_debug("hidden")
        monkeypatch.setenv("DEBUG", "true")
        get_settings.cache_clear()
        log_debug("shown")

        assert captured_logs == ["🐞 shown"]

    def test_hint_for_missing_cookies(self, captured_logs):
        log_authentication_error_hint("none")

        assert any("No cookies configured" in line for line in captured_logs)
