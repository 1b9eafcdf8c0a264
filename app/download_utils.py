"""
Theme download orchestration.

Each download is prepared synchronously (input validation, folder checks,
argument list) so that bad requests fail before yt-dlp is spawned, then runs
as a generator of progress events returning the DownloadResult. The same
pipeline backs both entry points:

    fetch_audio / fetch_video     run to completion, return DownloadResult
    stream_audio / stream_video   yield stage/log events, then done or error
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Generator, Iterator, List, Optional

from app.core import build_audio_command, build_video_command
from app.cookies_utils import AuthenticationStrategy, BrowserExtraction, NoAuth
from app.crop_utils import crop_events
from app.errors import DownloaderFailed, OutputNotFound, ThemeTubeError, ValidationError
from app.events import LOG, STAGE, STAGE_YTDLP, ProgressEvent
from app.file_system_utils import ensure_backdrops, ensure_writable_target
from app.integrations_utils import refresh_media_server
from app.logs_utils import (
    is_authentication_error,
    log_authentication_error_hint,
    log_title,
    safe_push_log,
    should_suppress_message,
)
from app.process_utils import ProcessRunner, drain
from app.scan_utils import AUDIO_EXTENSIONS, VIDEO_EXTENSIONS, find_theme_file, make_item_id
from app.validate_utils import is_absolute_path, is_valid_http_url

AUDIO = "audio"
VIDEO = "video"


@dataclass(frozen=True)
class DownloadRequest:
    """One theme download, discarded once it resolves"""

    url: str
    item_id: str
    target_path: str
    auth: AuthenticationStrategy = field(default_factory=NoAuth)
    crop: bool = False

    def validate(self) -> None:
        """
        Raises:
            ValidationError: bad URL, relative target path or missing item id
        """
        if not self.url or not is_valid_http_url(self.url):
            raise ValidationError("Invalid url provided")
        if not self.target_path or not is_absolute_path(self.target_path):
            raise ValidationError("Invalid targetPath provided; must be absolute")
        if not self.item_id:
            raise ValidationError("Missing itemId")


@dataclass
class DownloadResult:
    item_id: str
    kind: str
    path: str
    format: str
    size: int
    created_backdrops: bool = False
    post_processed: bool = False
    cropped: bool = False
    crop_geometry: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        payload = {
            "success": True,
            "itemId": self.item_id,
            "file": {"path": self.path, "format": self.format, "size": self.size},
        }
        if self.kind == VIDEO:
            payload.update(
                {
                    "createdBackdrops": self.created_backdrops,
                    "postProcessed": self.post_processed,
                    "cropped": self.cropped,
                    "crop": self.crop_geometry,
                }
            )
        if self.warnings:
            payload["warnings"] = list(self.warnings)
        return payload


@dataclass(frozen=True)
class PreparedDownload:
    """A validated request with its output folder ready and yt-dlp args built"""

    request: DownloadRequest
    kind: str
    directory: str
    args: List[str]
    extensions: FrozenSet[str]
    created_backdrops: bool = False


# === PREPARATION ===


def prepare_audio(request: DownloadRequest, binary: Optional[str] = None) -> PreparedDownload:
    """
    Raises:
        ValidationError, FilesystemError: before anything is spawned
    """
    request.validate()
    ensure_writable_target(request.target_path)
    return PreparedDownload(
        request=request,
        kind=AUDIO,
        directory=request.target_path,
        args=build_audio_command(request.url, request.target_path, request.auth, binary),
        extensions=AUDIO_EXTENSIONS,
    )


def prepare_video(request: DownloadRequest, binary: Optional[str] = None) -> PreparedDownload:
    """
    Raises:
        ValidationError, FilesystemError: before anything is spawned
    """
    request.validate()
    backdrops_path, created = ensure_backdrops(request.target_path)
    if created:
        safe_push_log(f"📁 Created backdrops folder: {backdrops_path}")
    return PreparedDownload(
        request=request,
        kind=VIDEO,
        directory=backdrops_path,
        args=build_video_command(request.url, backdrops_path, request.auth, binary),
        extensions=VIDEO_EXTENSIONS,
        created_backdrops=created,
    )


# === PIPELINE ===


def locate_theme_file(directory: str, extensions: FrozenSet[str]) -> str:
    """
    Raises:
        OutputNotFound: yt-dlp succeeded but no theme.<ext> file is there
    """
    found = find_theme_file(directory, extensions)
    if not found:
        raise OutputNotFound(f"Download completed but theme file not found in {directory}")
    return found


def _run_downloader(prepared: PreparedDownload, runner: ProcessRunner) -> Generator:
    auth = prepared.request.auth
    safe_push_log(f"🍪 {auth.describe()}")
    yield ProgressEvent.stage(STAGE_YTDLP)
    result = yield from runner.stream(prepared.args)
    if not result.ok:
        safe_push_log(f"❌ yt-dlp exited with code {result.returncode}")
        if is_authentication_error(result.output):
            browser = auth.browser if isinstance(auth, BrowserExtraction) else ""
            log_authentication_error_hint(auth.kind, browser)
        raise DownloaderFailed(result.diagnostic, result.returncode)


def download_events(
    prepared: PreparedDownload, runner: ProcessRunner
) -> Generator[ProgressEvent, None, DownloadResult]:
    """Run a prepared download, yielding progress, returning the result"""
    request = prepared.request
    log_title(f"🎵 Theme {prepared.kind} for {request.item_id}")
    yield from _run_downloader(prepared, runner)

    path = locate_theme_file(prepared.directory, prepared.extensions)
    result = DownloadResult(
        item_id=request.item_id,
        kind=prepared.kind,
        path=path,
        format=os.path.splitext(path)[1].lstrip(".").lower(),
        size=0,
        created_backdrops=prepared.created_backdrops,
    )

    if prepared.kind == VIDEO and request.crop:
        crop = yield from crop_events(path, runner)
        result.post_processed = True
        result.cropped = crop.applied
        result.crop_geometry = crop.geometry
        if crop.warning:
            result.warnings.append(crop.warning)

    result.size = os.path.getsize(path)
    safe_push_log(f"✅ Saved {path} ({result.size} bytes)")
    refresh_media_server()
    return result


def stream_download(
    prepared: PreparedDownload, runner: ProcessRunner
) -> Iterator[ProgressEvent]:
    """Wrap a pipeline so it always ends with exactly one done or error event"""
    try:
        result = yield from download_events(prepared, runner)
    except ThemeTubeError as e:
        safe_push_log(f"❌ {e.message}")
        yield ProgressEvent.error(e.message)
        return
    except OSError as e:
        safe_push_log(f"❌ Unexpected filesystem error: {e}")
        yield ProgressEvent.error(str(e))
        return
    yield ProgressEvent.done(result.to_dict())


def _log_event(event: ProgressEvent) -> None:
    if event.kind == STAGE:
        safe_push_log(f"▶️ {event.data}")
    elif event.kind == LOG and not should_suppress_message(event.data):
        safe_push_log(event.data)


def _request(url, item_dir, auth, item_id, crop=False) -> DownloadRequest:
    return DownloadRequest(
        url=url,
        item_id=item_id or make_item_id(item_dir or ""),
        target_path=item_dir,
        auth=auth or NoAuth(),
        crop=crop,
    )


# === PUBLIC API ===


def fetch_audio(
    url: str,
    item_dir: str,
    auth: Optional[AuthenticationStrategy] = None,
    runner: Optional[ProcessRunner] = None,
    item_id: Optional[str] = None,
) -> DownloadResult:
    """Download theme.<audio ext> into item_dir"""
    prepared = prepare_audio(_request(url, item_dir, auth, item_id))
    return drain(download_events(prepared, runner or ProcessRunner()), on_event=_log_event)


def fetch_video(
    url: str,
    item_dir: str,
    auth: Optional[AuthenticationStrategy] = None,
    crop: bool = False,
    runner: Optional[ProcessRunner] = None,
    item_id: Optional[str] = None,
) -> DownloadResult:
    """Download backdrops/theme.<video ext> into item_dir, optionally cropping it"""
    prepared = prepare_video(_request(url, item_dir, auth, item_id, crop))
    return drain(download_events(prepared, runner or ProcessRunner()), on_event=_log_event)


def stream_audio(
    request: DownloadRequest, runner: Optional[ProcessRunner] = None
) -> Iterator[ProgressEvent]:
    """
    Prepare eagerly, then return the event stream.

    Raises:
        ValidationError, FilesystemError: before the stream starts
    """
    prepared = prepare_audio(request)
    return stream_download(prepared, runner or ProcessRunner())


def stream_video(
    request: DownloadRequest, runner: Optional[ProcessRunner] = None
) -> Iterator[ProgressEvent]:
    """
    Prepare eagerly, then return the event stream.

    Raises:
        ValidationError, FilesystemError: before the stream starts
    """
    prepared = prepare_video(request)
    return stream_download(prepared, runner or ProcessRunner())
