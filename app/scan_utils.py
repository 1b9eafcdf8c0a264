"""
Library scanning utilities for ThemeTube.

Walks the configured library roots one level deep (one folder per movie or
series) and reports whether theme assets are already present:

    <item>/theme.<audio ext>
    <item>/backdrops/theme.<video ext>

Items are a derived view over the filesystem, rebuilt on every scan.
"""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

AUDIO_EXTENSIONS = frozenset({"mp3", "wav", "flac", "ogg", "m4a", "aac", "wma", "opus"})
VIDEO_EXTENSIONS = frozenset({"mp4", "mkv", "webm", "avi", "mov", "wmv"})

THEME_PREFIX = "theme."
CROP_WORKING_STEM = "theme._cropped"
BACKDROPS_DIRNAME = "backdrops"


class LibraryKind(Enum):
    MOVIE = "Movie"
    SERIES = "Series"


@dataclass(frozen=True)
class MediaRoot:
    """A configured library root folder."""

    path: str
    kind: LibraryKind


@dataclass
class ThemeAudioStatus:
    exists: bool = False
    path: Optional[str] = None
    format: Optional[str] = None

    def to_dict(self) -> Dict:
        return {"exists": self.exists, "path": self.path, "format": self.format}


@dataclass
class ThemeVideoStatus:
    exists: bool = False
    path: Optional[str] = None
    format: Optional[str] = None
    backdrops_folder_exists: bool = False

    def to_dict(self) -> Dict:
        return {
            "exists": self.exists,
            "path": self.path,
            "format": self.format,
            "backdropsFolderExists": self.backdrops_folder_exists,
        }


@dataclass
class MediaItem:
    """One movie or series folder found under a library root."""

    id: str
    name: str
    path: str
    theme_audio: ThemeAudioStatus = field(default_factory=ThemeAudioStatus)
    theme_video: ThemeVideoStatus = field(default_factory=ThemeVideoStatus)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "themeAudio": self.theme_audio.to_dict(),
            "themeVideo": self.theme_video.to_dict(),
        }


# === HELPERS ===


def make_item_id(path: str) -> str:
    """Stable identifier for an item folder: first 16 hex chars of sha1(path)"""
    return hashlib.sha1(path.encode("utf-8")).hexdigest()[:16]


def _dir_exists(path: str) -> bool:
    try:
        return os.path.isdir(path)
    except (OSError, ValueError):
        return False


def _list_dir(path: str) -> List[str]:
    """List a directory, treating any failure as empty"""
    try:
        return os.listdir(path)
    except OSError:
        return []


def theme_extension(filename: str, extensions: Iterable[str]) -> Optional[str]:
    """
    Return the lowercase extension if filename follows the theme.<ext> convention.

    Examples:
        >>> theme_extension("theme.MP3", AUDIO_EXTENSIONS)
        'mp3'
        >>> theme_extension("theme._cropped.mp4", VIDEO_EXTENSIONS) is None
        True
    """
    lower = filename.lower()
    if not lower.startswith(THEME_PREFIX):
        return None
    stem, ext = os.path.splitext(lower)
    if stem == CROP_WORKING_STEM:
        return None
    ext = ext.lstrip(".")
    if ext in extensions:
        return ext
    return None


def find_theme_file(directory: str, extensions: Iterable[str]) -> Optional[str]:
    """
    First regular file in directory named theme.<ext> with ext in extensions.

    Returns:
        Absolute path of the match or None (also None if the listing fails)
    """
    for name in _list_dir(directory):
        if theme_extension(name, extensions) is None:
            continue
        full = os.path.join(directory, name)
        if os.path.isfile(full):
            return full
    return None


# === DETECTION ===


def detect_theme_audio(item_dir: str) -> ThemeAudioStatus:
    found = find_theme_file(item_dir, AUDIO_EXTENSIONS)
    if not found:
        return ThemeAudioStatus()
    return ThemeAudioStatus(
        exists=True, path=found, format=theme_extension(os.path.basename(found), AUDIO_EXTENSIONS)
    )


def detect_theme_video(item_dir: str) -> ThemeVideoStatus:
    backdrops = os.path.join(item_dir, BACKDROPS_DIRNAME)
    if not _dir_exists(backdrops):
        return ThemeVideoStatus(backdrops_folder_exists=False)

    found = find_theme_file(backdrops, VIDEO_EXTENSIONS)
    if not found:
        return ThemeVideoStatus(backdrops_folder_exists=True)
    return ThemeVideoStatus(
        exists=True,
        path=found,
        format=theme_extension(os.path.basename(found), VIDEO_EXTENSIONS),
        backdrops_folder_exists=True,
    )


def build_media_item(item_dir: str) -> MediaItem:
    return MediaItem(
        id=make_item_id(item_dir),
        name=os.path.basename(item_dir),
        path=item_dir,
        theme_audio=detect_theme_audio(item_dir),
        theme_video=detect_theme_video(item_dir),
    )


# === SCANNING ===


def _is_dir_entry(entry: os.DirEntry) -> bool:
    """An entry that cannot be stat'ed is skipped, not the whole root"""
    try:
        return entry.is_dir()
    except OSError:
        return False


def scan_library(roots: Iterable[str]) -> List[MediaItem]:
    """
    Scan library roots and report theme presence for each item folder.

    Roots that do not exist or cannot be listed contribute zero items.
    Ordering follows filesystem enumeration and must not be relied upon.
    """
    items: List[MediaItem] = []
    for root in roots:
        if not _dir_exists(root):
            continue
        try:
            with os.scandir(root) as entries:
                subdirs = [entry.path for entry in entries if _is_dir_entry(entry)]
        except OSError:
            continue
        for item_dir in subdirs:
            items.append(build_media_item(item_dir))
    return items


def scan_movies(roots: Iterable[str]) -> List[MediaItem]:
    return scan_library(roots)


def scan_series(roots: Iterable[str]) -> List[MediaItem]:
    """Series folders share the movie layout: one folder per show"""
    return scan_library(roots)
