"""
File System Utilities for ThemeTube

Prepares target folders before a download (existence, writability) and
translates OS errors into user-facing filesystem errors.
"""

import errno
import os
from typing import Tuple

from app.errors import FilesystemError, InsufficientSpaceError, PermissionDeniedError
from app.scan_utils import BACKDROPS_DIRNAME


WRITE_PROBE_NAME = ".write_test"

_PERMISSION_ERRNOS = {errno.EACCES, errno.EPERM, errno.EROFS}


# === ERROR TRANSLATION ===


def _is_permission_error(error: OSError) -> bool:
    return isinstance(error, PermissionError) or error.errno in _PERMISSION_ERRNOS


def _is_no_space_error(error: OSError) -> bool:
    return error.errno in (errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC))


# === DIRECTORY OPERATIONS ===


def ensure_dir(path: str) -> bool:
    """
    Create directory and all parent directories if they don't exist.

    Returns:
        bool: True if the directory was created by this call
    """
    if os.path.isdir(path):
        return False
    os.makedirs(path, exist_ok=True)
    return True


def verify_writable_dir(path: str) -> None:
    """
    Prove path is writable by creating and removing a zero-byte probe file.

    Raises:
        OSError: whatever the filesystem reported
    """
    probe = os.path.join(path, WRITE_PROBE_NAME)
    with open(probe, "w"):
        pass
    os.unlink(probe)


def ensure_writable_target(target_dir: str) -> None:
    """
    Check an existing item folder is writable (audio downloads).

    The item folder itself is never created here: it comes from a scan.

    Raises:
        FilesystemError: folder missing, not writable or disk full
    """
    if not os.path.isdir(target_dir):
        raise FilesystemError(f"Target folder does not exist: {target_dir}")
    try:
        verify_writable_dir(target_dir)
    except OSError as e:
        if _is_permission_error(e):
            raise PermissionDeniedError(
                f"Permission denied: Cannot write to target folder at {target_dir}"
            )
        if _is_no_space_error(e):
            raise InsufficientSpaceError("Insufficient disk space to write in target folder")
        raise FilesystemError(f"No write permission in target folder: {e}")


def ensure_backdrops(item_dir: str) -> Tuple[str, bool]:
    """
    Make sure <item_dir>/backdrops exists and is writable.

    Returns:
        tuple: (backdrops_path, created)

    Raises:
        FilesystemError: with a distinct message for permission and space issues
    """
    backdrops_path = os.path.join(item_dir, BACKDROPS_DIRNAME)

    try:
        created = ensure_dir(backdrops_path)
    except OSError as e:
        if _is_permission_error(e):
            raise PermissionDeniedError(
                f"Permission denied: Cannot create backdrops folder at {backdrops_path}"
            )
        if _is_no_space_error(e):
            raise InsufficientSpaceError("Insufficient disk space to create backdrops folder")
        raise FilesystemError(f"Failed to create backdrops folder: {e}")

    try:
        verify_writable_dir(backdrops_path)
    except OSError as e:
        if _is_permission_error(e):
            raise PermissionDeniedError(
                f"Permission denied: Cannot write to backdrops folder at {backdrops_path}"
            )
        if _is_no_space_error(e):
            raise InsufficientSpaceError("Insufficient disk space to write in backdrops folder")
        raise FilesystemError(f"No write permission in backdrops folder: {e}")

    return backdrops_path, created


# === FILE OPERATIONS ===


def remove_file_quietly(path: str) -> bool:
    """Remove a leftover working file; True if something was removed"""
    try:
        os.unlink(path)
        return True
    except FileNotFoundError:
        return False
    except OSError:
        return False
