"""
Input validation helpers.

Pure functions, no state. Used by the API and the orchestrator to reject
bad requests before any external process is spawned.
"""

import os
import re
from urllib.parse import urlparse

from app.errors import PathTraversalError

# Characters a URL host can never contain
INVALID_HOST_CHARS = re.compile(r"[\s<>\"{}|\\^`]")


def is_absolute_path(p) -> bool:
    """True iff p is a non-empty string that is absolute on this platform."""
    if not isinstance(p, str) or not p:
        return False
    try:
        return os.path.isabs(p)
    except (TypeError, ValueError):
        return False


def is_valid_http_url(url) -> bool:
    """True iff url parses as an http(s) URL with a host."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
        # Accessing .port validates it and raises on garbage like ":abc"
        parsed.port
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return False
    return not INVALID_HOST_CHARS.search(parsed.netloc)


def join_safe(base: str, segment: str) -> str:
    """
    Join segment onto base, refusing results that escape base.

    Raises:
        PathTraversalError: if the resolved path is outside base
    """
    joined = os.path.join(base, segment)
    resolved_base = os.path.realpath(base)
    resolved_joined = os.path.realpath(joined)
    if os.path.commonpath([resolved_base, resolved_joined]) != resolved_base:
        raise PathTraversalError(f"Path traversal detected: {segment}")
    return joined
