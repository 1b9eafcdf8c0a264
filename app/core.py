"""
Core ThemeTube command builders without Streamlit dependencies.
This module contains the yt-dlp and ffmpeg argument lists, kept pure for testing.
"""

import os
from typing import List, Optional

from app.config import get_settings
from app.cookies_utils import AuthenticationStrategy, NoAuth


THEME_OUTPUT_TEMPLATE = "theme.%(ext)s"
AUDIO_OUTPUT_CODEC = "mp3"
VIDEO_FORMAT_SPEC = "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best"
VIDEO_MERGE_FORMAT = "mp4"

# cropdetect=limit:round:reset
CROPDETECT_FILTER = "cropdetect=24:16:0"


def _ytdlp_binary(binary: Optional[str]) -> str:
    return binary or get_settings().YTDLP_PATH


def _with_auth(
    base_cmd: List[str], url: str, auth: Optional[AuthenticationStrategy]
) -> List[str]:
    """Append authentication flags, the URL always comes last"""
    return base_cmd + (auth or NoAuth()).to_args() + [url]


def build_audio_command(
    url: str,
    target_dir: str,
    auth: Optional[AuthenticationStrategy] = None,
    binary: Optional[str] = None,
) -> List[str]:
    """
    Build the yt-dlp command extracting a theme song into target_dir.

    Args:
        url: Source URL
        target_dir: Item folder receiving theme.<ext>
        auth: Resolved authentication strategy
        binary: yt-dlp executable (defaults to YTDLP_PATH)

    Returns:
        list: complete argument list, executable first
    """
    base_cmd = [
        _ytdlp_binary(binary),
        "--newline",
        "--extract-audio",
        "--audio-format",
        AUDIO_OUTPUT_CODEC,
        "--audio-quality",
        "0",
        "--output",
        os.path.join(target_dir, THEME_OUTPUT_TEMPLATE),
        "--no-playlist",
    ]
    return _with_auth(base_cmd, url, auth)


def build_video_command(
    url: str,
    backdrops_dir: str,
    auth: Optional[AuthenticationStrategy] = None,
    binary: Optional[str] = None,
) -> List[str]:
    """
    Build the yt-dlp command downloading a theme video into backdrops_dir.

    Prefers mp4 video + m4a audio, falls back to the best single file, and
    always merges into an mp4 container.
    """
    base_cmd = [
        _ytdlp_binary(binary),
        "--newline",
        "--format",
        VIDEO_FORMAT_SPEC,
        "--merge-output-format",
        VIDEO_MERGE_FORMAT,
        "--output",
        os.path.join(backdrops_dir, THEME_OUTPUT_TEMPLATE),
        "--no-playlist",
    ]
    return _with_auth(base_cmd, url, auth)


def build_cropdetect_command(
    video_path: str, seconds: Optional[int] = None, binary: Optional[str] = None
) -> List[str]:
    """ffmpeg command sampling the first seconds of video_path with cropdetect"""
    settings = get_settings()
    return [
        binary or settings.FFMPEG_PATH,
        "-hide_banner",
        "-t",
        str(seconds or settings.CROP_DETECT_SECONDS),
        "-i",
        video_path,
        "-vf",
        CROPDETECT_FILTER,
        "-f",
        "null",
        "-",
    ]


def build_crop_command(
    video_path: str, geometry: str, output_path: str, binary: Optional[str] = None
) -> List[str]:
    """ffmpeg command re-encoding video with a crop filter, audio copied as is"""
    return [
        binary or get_settings().FFMPEG_PATH,
        "-y",
        "-hide_banner",
        "-i",
        video_path,
        "-vf",
        f"crop={geometry}",
        "-c:a",
        "copy",
        output_path,
    ]


def build_probe_dimensions_command(
    video_path: str, binary: Optional[str] = None
) -> List[str]:
    """ffprobe command printing WIDTHxHEIGHT of the first video stream"""
    return [
        binary or get_settings().FFPROBE_PATH,
        "-v",
        "error",
        "-select_streams",
        "v:0",
        "-show_entries",
        "stream=width,height",
        "-of",
        "csv=s=x:p=0",
        video_path,
    ]
