"""
Letterbox Cropping Utilities for ThemeTube

Best-effort post-processing of a downloaded theme video:

1. sample the first seconds with ffmpeg cropdetect
2. keep the last suggested crop (later samples skip intro logos/black frames)
3. skip when the crop is the full frame
4. re-encode into theme._cropped.<ext> and atomically replace the original

Any failure leaves the original download untouched and is reported as a
warning on the result, never as a download failure.
"""

import os
import re
from dataclasses import dataclass
from typing import Generator, List, Optional, Tuple

from app.core import build_crop_command, build_cropdetect_command, build_probe_dimensions_command
from app.errors import PostProcessWarning
from app.events import STAGE_FFMPEG_CROP, STAGE_FFMPEG_DETECT, ProgressEvent
from app.file_system_utils import remove_file_quietly
from app.logs_utils import safe_push_log
from app.process_utils import ProcessRunner, drain
from app.scan_utils import CROP_WORKING_STEM

CROP_PATTERN = re.compile(r"crop=(\d+:\d+:\d+:\d+)")
DIMENSIONS_PATTERN = re.compile(r"(\d+)x(\d+)")


@dataclass
class CropResult:
    applied: bool
    geometry: Optional[str] = None
    warning: Optional[str] = None


# === PARSING ===


def parse_crop_suggestions(text: str) -> List[str]:
    """All W:H:X:Y crop suggestions found in ffmpeg cropdetect output, in order"""
    return CROP_PATTERN.findall(text or "")


def select_crop_geometry(suggestions: List[str]) -> Optional[str]:
    """The last suggestion is taken as representative"""
    return suggestions[-1] if suggestions else None


def parse_geometry(geometry: str) -> Tuple[int, int, int, int]:
    width, height, x, y = (int(part) for part in geometry.split(":"))
    return width, height, x, y


def is_identity_crop(geometry: str, width: int, height: int) -> bool:
    """True when geometry keeps the full frame"""
    return parse_geometry(geometry) == (width, height, 0, 0)


def parse_dimensions(text: str) -> Optional[Tuple[int, int]]:
    """Parse ffprobe 'WIDTHxHEIGHT' output"""
    match = DIMENSIONS_PATTERN.search(text or "")
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def cropped_working_path(video_path: str) -> str:
    """<dir>/theme._cropped.<ext> next to the video"""
    directory = os.path.dirname(video_path)
    ext = os.path.splitext(video_path)[1]
    return os.path.join(directory, f"{CROP_WORKING_STEM}{ext}")


# === PIPELINE ===


def probe_dimensions(video_path: str, runner: ProcessRunner) -> Optional[Tuple[int, int]]:
    result = runner.run(build_probe_dimensions_command(video_path))
    if not result.ok:
        return None
    return parse_dimensions(result.stdout)


def _apply_crop(
    video_path: str, geometry: str, runner: ProcessRunner
) -> Generator[ProgressEvent, None, None]:
    """
    Re-encode with the crop filter then replace the original.

    Raises:
        PostProcessWarning: transcoder failure or rename failure
    """
    working_path = cropped_working_path(video_path)
    result = yield from runner.stream(build_crop_command(video_path, geometry, working_path))
    if not result.ok:
        raise PostProcessWarning(
            f"ffmpeg crop failed with code {result.returncode}; keeping original video"
        )
    if not os.path.isfile(working_path):
        raise PostProcessWarning("ffmpeg crop produced no output; keeping original video")
    try:
        os.replace(working_path, video_path)
    except OSError as e:
        raise PostProcessWarning(f"Could not replace original with cropped video: {e}")


def crop_events(
    video_path: str, runner: ProcessRunner
) -> Generator[ProgressEvent, None, CropResult]:
    """Crop pipeline as a stream of progress events, returning the CropResult"""
    yield ProgressEvent.stage(STAGE_FFMPEG_DETECT)
    detect = yield from runner.stream(build_cropdetect_command(video_path))

    geometry = select_crop_geometry(parse_crop_suggestions(detect.output))
    if geometry is None:
        if not detect.ok:
            warning = f"Crop detection failed with code {detect.returncode}; crop skipped"
            safe_push_log(f"⚠️ {warning}")
            return CropResult(applied=False, warning=warning)
        safe_push_log("✂️ No crop suggested, keeping video as is")
        return CropResult(applied=False)

    dimensions = probe_dimensions(video_path, runner)
    if dimensions is None:
        warning = "Could not read video dimensions; crop skipped"
        safe_push_log(f"⚠️ {warning}")
        return CropResult(applied=False, geometry=geometry, warning=warning)

    if is_identity_crop(geometry, *dimensions):
        safe_push_log(f"✂️ Detected crop {geometry} is the full frame, nothing to do")
        return CropResult(applied=False, geometry=geometry)

    safe_push_log(f"✂️ Cropping {os.path.basename(video_path)} to {geometry}")
    yield ProgressEvent.stage(STAGE_FFMPEG_CROP)
    try:
        yield from _apply_crop(video_path, geometry, runner)
    except PostProcessWarning as w:
        remove_file_quietly(cropped_working_path(video_path))
        safe_push_log(f"⚠️ {w.message}")
        return CropResult(applied=False, geometry=geometry, warning=w.message)

    return CropResult(applied=True, geometry=geometry)


def detect_and_crop(video_path: str, runner: Optional[ProcessRunner] = None) -> CropResult:
    """Detect letterboxing in video_path and crop it in place when needed"""
    return drain(crop_events(video_path, runner or ProcessRunner()))
