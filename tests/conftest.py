"""
Shared fixtures: isolated settings and a scripted process runner.
"""

from typing import Any, Dict, List

import pytest

from app.config import get_settings
from app.events import ProgressEvent
from app.logs_utils import register_main_push_log
from app.process_utils import ProcessResult, ProcessRunner

_ENV_KEYS = (
    "YTDLP_PATH",
    "FFMPEG_PATH",
    "FFPROBE_PATH",
    "YTDLP_COOKIES_FILE",
    "YTDLP_BROWSER",
    "CROP_DETECT_SECONDS",
    "DEBUG",
    "JELLYFIN_BASE_URL",
    "JELLYFIN_API_KEY",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Point DATA_DIR at a temp folder and drop any developer overrides."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "config"))
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
    register_main_push_log(None)


class FakeRunner(ProcessRunner):
    """
    ProcessRunner replaying scripted results instead of spawning anything.

    Each response is a dict with optional keys returncode, stdout, stderr and
    side_effect (called with the args, e.g. to create the expected output file).
    Calls past the end of the script succeed with no output.
    """

    def __init__(self, *responses: Dict[str, Any]):
        super().__init__()
        self.responses = list(responses)
        self.calls: List[List[str]] = []

    def stream(self, args):
        self.calls.append(list(args))
        response = self.responses.pop(0) if self.responses else {}
        side_effect = response.get("side_effect")
        if side_effect is not None:
            side_effect(args)
        stdout = response.get("stdout", "")
        stderr = response.get("stderr", "")
        lines = (stdout + stderr).splitlines()
        for line in lines:
            yield ProgressEvent.log(line)
        return ProcessResult(
            args=list(args),
            returncode=response.get("returncode", 0),
            stdout=stdout,
            stderr=stderr,
            output=stdout + stderr,
            lines=lines,
        )


@pytest.fixture
def make_runner():
    return FakeRunner


@pytest.fixture
def captured_logs():
    logs: List[str] = []
    register_main_push_log(logs.append)
    yield logs
    register_main_push_log(None)
