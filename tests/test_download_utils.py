"""
Tests for the theme download orchestrator.
"""

import os

import pytest

from app.cookies_utils import BrowserExtraction, CookieFile
from app.download_utils import (
    DownloadRequest,
    fetch_audio,
    fetch_video,
    stream_audio,
    stream_video,
)
from app.errors import DownloaderFailed, FilesystemError, OutputNotFound, ValidationError
from app.events import DONE, ERROR, LOG, STAGE

URL = "https://www.youtube.com/watch?v=abc"


def _output_writer(name, content=b"theme"):
    """side_effect creating <output dir>/<name> like yt-dlp would."""

    def write(args):
        directory = os.path.dirname(args[args.index("--output") + 1])
        with open(os.path.join(directory, name), "wb") as f:
            f.write(content)

    return write


@pytest.fixture
def item_dir(tmp_path):
    path = tmp_path / "Movies" / "Alien (1979)"
    path.mkdir(parents=True)
    return str(path)


class TestFetchAudio:
    def test_success(self, item_dir, make_runner):
        runner = make_runner({"stdout": "[download] 100%\n", "side_effect": _output_writer("theme.mp3")})

        result = fetch_audio(URL, item_dir, runner=runner, item_id="abc123")

        assert result.path == os.path.join(item_dir, "theme.mp3")
        assert result.format == "mp3"
        assert result.size == len(b"theme")
        payload = result.to_dict()
        assert payload["success"] is True
        assert payload["itemId"] == "abc123"
        assert payload["file"] == {"path": result.path, "format": "mp3", "size": 5}
        assert "createdBackdrops" not in payload

    def test_item_id_defaults_to_folder_id(self, item_dir, make_runner):
        runner = make_runner({"side_effect": _output_writer("theme.mp3")})

        result = fetch_audio(URL, item_dir, runner=runner)

        assert len(result.item_id) == 16

    def test_downloader_failure_keeps_stderr(self, item_dir, make_runner):
        """Non-zero exit carries the tool's stderr verbatim."""
        stderr = "ERROR: [youtube] abc: Video unavailable\n"
        runner = make_runner({"returncode": 1, "stderr": stderr})

        with pytest.raises(DownloaderFailed) as exc_info:
            fetch_audio(URL, item_dir, runner=runner)

        assert exc_info.value.output == stderr
        assert exc_info.value.returncode == 1
        assert exc_info.value.message.startswith("yt-dlp failed: ")
        assert stderr in exc_info.value.message

    def test_progress_lines_reach_log_panel(self, item_dir, make_runner, captured_logs):
        """Downloader output is shown without DEBUG, minus noise lines."""
        runner = make_runner(
            {
                "stdout": "[download]  42.0% of 3MiB\n[download] Sleeping 3.0 seconds\n",
                "side_effect": _output_writer("theme.mp3"),
            }
        )

        fetch_audio(URL, item_dir, runner=runner)

        assert "[download]  42.0% of 3MiB" in captured_logs
        assert not any("Sleeping" in line for line in captured_logs)

    def test_auth_failure_logs_hint(self, item_dir, make_runner, captured_logs):
        runner = make_runner({"returncode": 1, "stderr": "ERROR: Sign in to confirm you're not a bot\n"})

        with pytest.raises(DownloaderFailed):
            fetch_audio(URL, item_dir, auth=BrowserExtraction("firefox"), runner=runner)

        assert any("cookies/authentication issue" in line for line in captured_logs)
        assert any("firefox" in line for line in captured_logs)

    def test_success_without_output(self, item_dir, make_runner):
        runner = make_runner({"stdout": "[download] done\n"})

        with pytest.raises(OutputNotFound):
            fetch_audio(URL, item_dir, runner=runner)

    def test_auth_flags_passed(self, item_dir, make_runner, tmp_path):
        cookies = tmp_path / "cookies.txt"
        cookies.write_text("x", encoding="utf-8")
        runner = make_runner({"side_effect": _output_writer("theme.mp3")})

        fetch_audio(URL, item_dir, auth=CookieFile(str(cookies)), runner=runner)

        assert runner.calls[0][-3:] == ["--cookies", str(cookies), URL]

    @pytest.mark.parametrize(
        "url, target",
        [("ftp://x", "/abs"), (URL, "relative/dir"), ("", "/abs")],
    )
    def test_validation_before_spawn(self, url, target, make_runner):
        runner = make_runner()

        with pytest.raises(ValidationError):
            fetch_audio(url, target, runner=runner, item_id="x")

        assert runner.calls == []

    def test_missing_item_folder_before_spawn(self, tmp_path, make_runner):
        runner = make_runner()

        with pytest.raises(FilesystemError):
            fetch_audio(URL, str(tmp_path / "gone"), runner=runner)

        assert runner.calls == []


class TestFetchVideo:
    def test_creates_backdrops(self, item_dir, make_runner):
        runner = make_runner({"side_effect": _output_writer("theme.mp4")})

        result = fetch_video(URL, item_dir, runner=runner)

        assert result.path == os.path.join(item_dir, "backdrops", "theme.mp4")
        payload = result.to_dict()
        assert payload["createdBackdrops"] is True
        assert payload["postProcessed"] is False
        assert payload["cropped"] is False
        assert payload["crop"] is None

    def test_symlinked_backdrops(self, item_dir, make_runner, tmp_path):
        elsewhere = tmp_path / "other_disk" / "alien_backdrops"
        elsewhere.mkdir(parents=True)
        os.symlink(str(elsewhere), os.path.join(item_dir, "backdrops"))
        runner = make_runner({"side_effect": _output_writer("theme.mp4")})

        result = fetch_video(URL, item_dir, runner=runner)

        assert result.created_backdrops is False
        assert (elsewhere / "theme.mp4").is_file()

    def test_existing_backdrops(self, item_dir, make_runner):
        os.mkdir(os.path.join(item_dir, "backdrops"))
        runner = make_runner({"side_effect": _output_writer("theme.webm")})

        result = fetch_video(URL, item_dir, runner=runner)

        assert result.created_backdrops is False
        assert result.format == "webm"

    def test_crop_applied(self, item_dir, make_runner):
        def write_cropped(args):
            with open(args[-1], "wb") as f:
                f.write(b"cropped!")

        runner = make_runner(
            {"side_effect": _output_writer("theme.mp4", b"original-video")},
            {"stderr": "crop=1920:800:0:140\n"},
            {"stdout": "1920x1080\n"},
            {"side_effect": write_cropped},
        )

        result = fetch_video(URL, item_dir, crop=True, runner=runner)

        assert result.post_processed is True
        assert result.cropped is True
        assert result.crop_geometry == "1920:800:0:140"
        assert result.size == len(b"cropped!")
        assert "warnings" not in result.to_dict()

    def test_crop_failure_is_warning_not_error(self, item_dir, make_runner):
        runner = make_runner(
            {"side_effect": _output_writer("theme.mp4")},
            {"stderr": "crop=1920:800:0:140\n"},
            {"stdout": "1920x1080\n"},
            {"returncode": 1, "stderr": "Conversion failed!\n"},
        )

        result = fetch_video(URL, item_dir, crop=True, runner=runner)

        assert result.post_processed is True
        assert result.cropped is False
        assert result.warnings
        assert result.to_dict()["warnings"] == result.warnings
        assert os.path.isfile(result.path)


class TestStreaming:
    def test_success_stream(self, item_dir, make_runner):
        runner = make_runner({"stdout": "line one\nline two\n", "side_effect": _output_writer("theme.mp3")})
        request = DownloadRequest(url=URL, item_id="abc", target_path=item_dir)

        events = list(stream_audio(request, runner))

        assert events[0].kind == STAGE and events[0].data == "yt-dlp"
        assert [e.data for e in events if e.kind == LOG] == ["line one", "line two"]
        assert [e.kind for e in events].count(DONE) == 1
        assert events[-1].kind == DONE
        assert events[-1].payload()["itemId"] == "abc"

    def test_failure_stream_ends_with_single_error(self, item_dir, make_runner):
        runner = make_runner({"returncode": 1, "stderr": "ERROR: boom\n"})
        request = DownloadRequest(url=URL, item_id="abc", target_path=item_dir)

        events = list(stream_audio(request, runner))

        terminal = [e for e in events if e.is_terminal]
        assert len(terminal) == 1
        assert events[-1].kind == ERROR
        assert "ERROR: boom" in events[-1].data

    def test_crop_stages(self, item_dir, make_runner):
        runner = make_runner(
            {"side_effect": _output_writer("theme.mp4")},
            {"stderr": "crop=1920:1080:0:0\n"},
            {"stdout": "1920x1080\n"},
        )
        request = DownloadRequest(url=URL, item_id="abc", target_path=item_dir, crop=True)

        events = list(stream_video(request, runner))

        stages = [e.data for e in events if e.kind == STAGE]
        assert stages == ["yt-dlp", "ffmpeg-detect"]
        assert events[-1].payload()["postProcessed"] is True

    def test_invalid_request_raises_before_stream(self, make_runner):
        runner = make_runner()
        request = DownloadRequest(url="ftp://x", item_id="abc", target_path="/abs")

        with pytest.raises(ValidationError):
            stream_audio(request, runner)
        assert runner.calls == []
