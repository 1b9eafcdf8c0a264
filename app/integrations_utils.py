"""
Post-download integrations (Jellyfin library refresh).

A new theme file only shows up in Jellyfin after the library is rescanned.
When JELLYFIN_BASE_URL and JELLYFIN_API_KEY are set, a refresh is requested
after each successful download. Failures are logged, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import requests

from app.config import get_settings
from app.logs_utils import log_debug, safe_push_log


DEFAULT_TIMEOUT = 10


@dataclass(frozen=True)
class JellyfinScanResult:
    """Result of a Jellyfin library refresh attempt."""

    success: bool
    message: str
    status_code: Optional[int] = None


def trigger_jellyfin_library_scan(
    base_url: str,
    api_key: str,
    session: Optional[requests.Session] = None,
    log: Optional[Callable[[str], None]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> JellyfinScanResult:
    """
    Ask Jellyfin to rescan its libraries so new theme files get picked up.

    Args:
        base_url: Jellyfin server URL, e.g. https://jellyfin.local:8096
        api_key: Jellyfin API key, sent as X-Emby-Token
        session: requests Session to use (tests pass a dummy one)
        log: diagnostic logger, silent when omitted
        timeout: request timeout in seconds

    Returns:
        JellyfinScanResult, never raises on network errors
    """
    if not (base_url and api_key):
        return JellyfinScanResult(False, "Missing Jellyfin base URL or API key.")

    emit = log or (lambda _: None)
    endpoint = base_url.rstrip("/") + "/Library/Refresh"
    emit(f"POST {endpoint} (theme library refresh)")

    try:
        response = (session or requests.Session()).post(
            endpoint, headers={"X-Emby-Token": api_key.strip()}, timeout=timeout
        )
    except requests.RequestException as exc:
        result = JellyfinScanResult(False, f"Jellyfin refresh request failed: {exc}")
        emit(result.message)
        return result

    status = response.status_code
    if 200 <= status < 300:
        return JellyfinScanResult(True, "Jellyfin library refresh triggered successfully.", status)

    body = (response.text or "").strip()
    result = JellyfinScanResult(False, f"Jellyfin refresh failed with status {status}. {body}".strip(), status)
    emit(result.message)
    return result


def refresh_media_server(
    session: Optional[requests.Session] = None,
) -> Optional[JellyfinScanResult]:
    """
    Ask Jellyfin to pick up new theme files, if configured.

    Returns:
        The scan result, or None when no media server is configured
    """
    settings = get_settings()
    if not (settings.JELLYFIN_BASE_URL and settings.JELLYFIN_API_KEY):
        return None

    result = trigger_jellyfin_library_scan(
        base_url=settings.JELLYFIN_BASE_URL,
        api_key=settings.JELLYFIN_API_KEY,
        session=session,
        log=log_debug,
    )
    if result.success:
        safe_push_log(f"📡 {result.message}")
    else:
        safe_push_log(f"⚠️ {result.message}")
    return result
