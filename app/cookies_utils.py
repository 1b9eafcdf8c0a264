"""
Cookie / authentication handling for yt-dlp invocations.

Exactly one authentication strategy applies to a download. A cookie file
(explicit, else the environment default) always wins over browser cookie
extraction, and an unusable cookie file is an error rather than a silent
fallback.
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from app.config import ensure_data_dir, get_settings
from app.errors import CookiesFileInvalid, ValidationError
from app.logs_utils import safe_push_log

SUPPORTED_BROWSERS = ("chrome", "chromium", "brave", "edge", "firefox", "safari")
DEFAULT_BROWSER = "chrome"


# === STRATEGIES ===


@dataclass(frozen=True)
class NoAuth:
    kind = "none"

    def to_args(self) -> List[str]:
        return []

    def describe(self) -> str:
        return "No cookies authentication"


@dataclass(frozen=True)
class CookieFile:
    path: str
    kind = "file"

    def to_args(self) -> List[str]:
        return ["--cookies", self.path]

    def describe(self) -> str:
        return f"Using cookies from file: {self.path}"


@dataclass(frozen=True)
class BrowserExtraction:
    browser: str
    kind = "browser"

    def to_args(self) -> List[str]:
        return ["--cookies-from-browser", self.browser]

    def describe(self) -> str:
        return f"Using cookies from browser: {self.browser}"


AuthenticationStrategy = Union[NoAuth, CookieFile, BrowserExtraction]


# === RESOLUTION ===


def is_valid_browser(browser: Optional[str]) -> bool:
    """Check if browser is one yt-dlp can extract cookies from"""
    if not browser:
        return False
    return browser.strip().lower() in SUPPORTED_BROWSERS


def normalize_browser(browser: Optional[str]) -> str:
    """Requested browser if supported, otherwise the default"""
    if is_valid_browser(browser):
        return browser.strip().lower()
    return DEFAULT_BROWSER


def validate_cookie_file(path: str) -> str:
    """
    Ensure a cookie file exists and is a regular file.

    Raises:
        CookiesFileInvalid: if the path is missing, unreadable or not a file
    """
    try:
        st = os.stat(path)
    except (OSError, ValueError):
        raise CookiesFileInvalid(f"Cookies file not readable: {path}", path=path)
    if not stat.S_ISREG(st.st_mode):
        raise CookiesFileInvalid(f"Cookies file is not a file: {path}", path=path)
    return path


def resolve_authentication(
    explicit_file: Optional[str] = None,
    environment_file: Optional[str] = None,
    use_browser: bool = False,
    requested_browser: Optional[str] = None,
) -> AuthenticationStrategy:
    """
    Decide which authentication strategy applies to a download.

    Args:
        explicit_file: Cookie file given with the request
        environment_file: Default cookie file from the environment
        use_browser: Whether browser cookie extraction was requested
        requested_browser: Browser name; unknown names fall back to chrome

    Returns:
        NoAuth, CookieFile or BrowserExtraction

    Raises:
        CookiesFileInvalid: if the chosen cookie file cannot be used
    """
    cookie_path = (explicit_file or "").strip() or (environment_file or "").strip()
    if cookie_path:
        return CookieFile(validate_cookie_file(cookie_path))

    if use_browser:
        return BrowserExtraction(normalize_browser(requested_browser))

    return NoAuth()


def resolve_authentication_from_config(
    explicit_file: Optional[str] = None,
    use_browser: bool = False,
    requested_browser: Optional[str] = None,
) -> AuthenticationStrategy:
    """resolve_authentication with YTDLP_COOKIES_FILE / YTDLP_BROWSER defaults"""
    settings = get_settings()
    browser = (requested_browser or "").strip().lower() or settings.YTDLP_BROWSER
    return resolve_authentication(
        explicit_file=explicit_file,
        environment_file=settings.YTDLP_COOKIES_FILE,
        use_browser=use_browser,
        requested_browser=browser,
    )


# === PERSISTENCE ===


def save_cookies_text(text: str, dest: Optional[Path] = None) -> Path:
    """
    Store pasted Netscape cookies text as the application cookies file.

    Raises:
        ValidationError: if text is empty
    """
    if not text or not text.strip():
        raise ValidationError("cookies text is required")
    if dest is None:
        ensure_data_dir()
        dest = get_settings().COOKIES_FILE
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(text, encoding="utf-8")
    safe_push_log(f"🍪 Cookies saved to {dest}")
    return dest


def save_cookies_upload(stream: BinaryIO, dest: Optional[Path] = None) -> Path:
    """Store an uploaded cookies file as the application cookies file"""
    data = stream.read()
    if not data or not data.strip():
        raise ValidationError("uploaded cookies file is empty")
    if dest is None:
        ensure_data_dir()
        dest = get_settings().COOKIES_FILE
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(data)
    safe_push_log(f"🍪 Cookies file uploaded to {dest}")
    return dest
