"""
Error taxonomy for the theme acquisition pipeline.

Validation, filesystem and cookie errors are raised before any external
process is spawned. Process failures keep the raw diagnostic text of the tool.
"""

from typing import Optional


class ThemeTubeError(Exception):
    """Base class for all errors surfaced to callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ThemeTubeError):
    """Bad URL, non-absolute path or missing identifier."""

    status_code = 400


class FilesystemError(ThemeTubeError):
    """Target directory could not be prepared or written."""


class PermissionDeniedError(FilesystemError):
    pass


class InsufficientSpaceError(FilesystemError):
    pass


class PathTraversalError(FilesystemError):
    status_code = 400


class CookiesFileInvalid(ThemeTubeError):
    """Explicit or environment cookie file is missing or not a regular file."""

    status_code = 400

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class DownloaderFailed(ThemeTubeError):
    """yt-dlp exited with a non-zero code; output is kept verbatim."""

    def __init__(self, output: str, returncode: Optional[int] = None):
        super().__init__(f"yt-dlp failed: {output or 'unknown error'}")
        self.output = output
        self.returncode = returncode


class OutputNotFound(ThemeTubeError):
    """yt-dlp reported success but no theme file matching the convention exists."""


class PostProcessWarning(ThemeTubeError):
    """
    Crop step failed or was skipped.

    Raised and caught inside the crop post-processor, which turns it into a
    warning on the result. Never escalated to a download failure.
    """
