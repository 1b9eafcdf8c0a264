"""
Tests for configuration defaults and environment overrides.
"""

from pathlib import Path

from app.config import ensure_data_dir, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("API_PORT", raising=False)
    monkeypatch.delenv("STREAMLIT_PORT", raising=False)
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.YTDLP_PATH == "yt-dlp"
    assert settings.FFMPEG_PATH == "ffmpeg"
    assert settings.FFPROBE_PATH == "ffprobe"
    assert settings.YTDLP_COOKIES_FILE is None
    assert settings.YTDLP_BROWSER == ""
    assert settings.CROP_DETECT_SECONDS == 4
    assert settings.API_PORT == 8503
    assert settings.STREAMLIT_PORT == 8502
    assert settings.DEBUG is False
    assert settings.JELLYFIN_BASE_URL == ""


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("YTDLP_BROWSER", " Firefox ")
    monkeypatch.setenv("CROP_DETECT_SECONDS", "garbage")
    monkeypatch.setenv("DEBUG", "yes")
    monkeypatch.setenv("YTDLP_COOKIES_FILE", " /cookies/yt.txt ")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.YTDLP_BROWSER == "firefox"
    assert settings.CROP_DETECT_SECONDS == 4
    assert settings.DEBUG is True
    assert settings.YTDLP_COOKIES_FILE == "/cookies/yt.txt"


def test_data_dir_files(tmp_path):
    settings = get_settings()

    assert settings.DATA_DIR == Path(tmp_path / "config")
    assert settings.PATHS_FILE == settings.DATA_DIR / "paths.json"
    assert settings.COOKIES_FILE == settings.DATA_DIR / "cookies.txt"
    assert not settings.DATA_DIR.exists()

    assert ensure_data_dir().is_dir()


def test_relative_data_dir_resolved(monkeypatch):
    monkeypatch.setenv("DATA_DIR", "./somewhere")
    get_settings.cache_clear()

    assert get_settings().DATA_DIR.is_absolute()
