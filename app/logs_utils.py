"""
Logging and Error Handling Utilities for ThemeTube

Provides centralized logging functionality and error message analysis
for better user experience and debugging.
"""

import re
from typing import Callable, Optional


# Authentication error patterns seen in yt-dlp output
AUTH_ERROR_PATTERNS = [
    "sign in to confirm",
    "please log in",
    "login required",
    "video is private",
    "age restricted",
    "requires authentication",
    "authentication required",
    "403",
    "forbidden",
]

ANSI_ESCAPE_PATTERN = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")

_MAIN_PUSH_LOG: Optional[Callable[[str], None]] = None


# === MESSAGE CLASSIFICATION FUNCTIONS ===


def clean_log_line(line: str) -> str:
    """Strip trailing newline, ANSI escapes and control characters"""
    clean_line = ANSI_ESCAPE_PATTERN.sub("", line.rstrip("\r\n"))
    return "".join(char for char in clean_line if ord(char) >= 32 or char == "\t")


def is_cookies_expired_warning(message: str) -> bool:
    """Check if message is a YouTube cookies expiration warning"""
    message_lower = message.lower()
    cookies_patterns = [
        "the provided youtube account cookies are no longer valid",
        "cookies are no longer valid",
        "they have likely been rotated in the browser as a security measure",
    ]
    return any(pattern in message_lower for pattern in cookies_patterns)


def should_suppress_message(message: str) -> bool:
    """Check if a message should be suppressed from user logs"""
    message_lower = message.lower()

    if message.strip() == "":
        return True

    # ffmpeg progress chatter and yt-dlp sleeps are not useful in the log panel
    repetitive_patterns = [
        "sleeping",
        "press [q] to stop",
    ]
    return any(pattern in message_lower for pattern in repetitive_patterns)


def is_authentication_error(error_message: str) -> bool:
    """
    Check if an error message indicates an authentication/cookies issue.

    Args:
        error_message: The error message to check

    Returns:
        True if it's likely an authentication issue
    """
    message_lower = error_message.lower()
    if is_cookies_expired_warning(message_lower):
        return True
    return any(keyword in message_lower for keyword in AUTH_ERROR_PATTERNS)


# === LOGGING FUNCTIONS ===


def register_main_push_log(push_log: Optional[Callable[[str], None]]) -> None:
    """Register the sink used by safe_push_log (the dashboard log panel)"""
    global _MAIN_PUSH_LOG
    _MAIN_PUSH_LOG = push_log


def safe_push_log(message: str):
    """Safe logging function that works even if logs aren't initialized yet"""
    if _MAIN_PUSH_LOG is not None:
        try:
            _MAIN_PUSH_LOG(message)
            return
        except Exception as e:
            print(f"[LOG] {message} (Error: {e})")
            return
    print(f"[LOG] {message}")


def log_title(title: str, underline_char: str = "─"):
    """
    Log a title with automatic underline matching the exact title length

    Args:
        title: The title text to display
        underline_char: Character to use for underline (default: ─)
    """
    safe_push_log(title)
    safe_push_log(underline_char * len(title))


def log_debug(message: str):
    """Log only when DEBUG is enabled"""
    from app.config import get_settings

    if get_settings().DEBUG:
        safe_push_log(f"🐞 {message}")


# === ERROR HINT FUNCTIONS ===


def log_authentication_error_hint(auth_kind: str, browser: str = ""):
    """
    Log context-aware authentication hints after a failed download.

    Args:
        auth_kind: "none", "file" or "browser" (see AuthenticationStrategy.kind)
        browser: Browser used for cookie extraction, if any
    """
    safe_push_log("🍪 This appears to be a cookies/authentication issue")

    if auth_kind == "none":
        safe_push_log("❌ No cookies configured - the source likely requires authentication")
        safe_push_log("💡 SOLUTION: provide a cookies file or enable browser cookies")
    elif auth_kind == "file":
        safe_push_log("⏰ Cookies file used but it may be expired")
        safe_push_log("💡 SOLUTION: re-export cookies from a logged-in browser session")
    elif auth_kind == "browser":
        safe_push_log(f"⏰ Browser cookies used ({browser}) but they may be expired")
        safe_push_log(f"💡 SOLUTION: make sure you're logged in with {browser}")
