"""
ThemeTube Configuration Management

Centralized configuration handling for all environment variables.
Provides type-safe access to settings with proper defaults and validation.
"""

from __future__ import annotations

import os
from pathlib import Path
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


# === Container Detection ===
def in_container() -> bool:
    """Detect if we are running inside a container (Docker/Podman)"""
    return Path("/.dockerenv").exists() or Path("/run/.containerenv").exists()


IN_CONTAINER = in_container()


# === Early .env Loading (only if not in container) ===
if not IN_CONTAINER:
    env_file = Path(__file__).resolve().parent.parent / ".env"
    if env_file.exists():
        try:
            load_dotenv(env_file, override=False)
            print(f"✅ Loaded environment variables from {env_file}")
        except (OSError, ValueError) as e:
            print(f"⚠️ Failed to load .env file: {e}")


# === Default Configuration ===
_DEFAULTS = {
    # === Core Paths ===
    "DATA_DIR": "/config" if IN_CONTAINER else "./config",
    # === External Tools ===
    "YTDLP_PATH": "yt-dlp",
    "FFMPEG_PATH": "ffmpeg",
    "FFPROBE_PATH": "ffprobe",
    # === Authentication ===
    "YTDLP_COOKIES_FILE": "",  # Default cookies file, overridable per request
    "YTDLP_BROWSER": "",  # Default browser for cookie extraction
    # === Post-processing ===
    "CROP_DETECT_SECONDS": "4",  # Length of the cropdetect sampling window
    # === Servers ===
    "API_HOST": "0.0.0.0",
    "API_PORT": "8503",
    "STREAMLIT_PORT": "8502",
    # === System ===
    "DEBUG": "false",
    # === Jellyfin Integration ===
    "JELLYFIN_BASE_URL": "",
    "JELLYFIN_API_KEY": "",
}


# === Helper Functions ===
def _to_bool(v: str | None, default: bool = False) -> bool:
    """Convert string to boolean"""
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "on"}


def _to_int(v: str | None, default: int) -> int:
    """Convert string to int, keeping the default on garbage"""
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return default


# === Settings Dataclass ===
@dataclass(frozen=True)
class Settings:
    """
    Immutable configuration settings for ThemeTube.

    All settings are loaded once and cached for the lifetime of the application.
    Use get_settings() to access the singleton instance.
    """

    # Paths
    DATA_DIR: Path

    # External tools
    YTDLP_PATH: str
    FFMPEG_PATH: str
    FFPROBE_PATH: str

    # Authentication defaults
    YTDLP_COOKIES_FILE: Optional[str]
    YTDLP_BROWSER: str

    # Post-processing
    CROP_DETECT_SECONDS: int

    # Servers
    API_HOST: str
    API_PORT: int
    STREAMLIT_PORT: int

    # Debug
    DEBUG: bool

    # Integrations
    JELLYFIN_BASE_URL: str
    JELLYFIN_API_KEY: str

    # System info
    IN_CONTAINER: bool = IN_CONTAINER

    @property
    def PATHS_FILE(self) -> Path:
        return self.DATA_DIR / "paths.json"

    @property
    def COOKIES_FILE(self) -> Path:
        return self.DATA_DIR / "cookies.txt"


# === Configuration Loader ===
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Read configuration once, merging defaults and environment variables.

    This function is cached and will only run once per application lifetime.

    Returns:
        Settings: Immutable settings object with all configuration values
    """
    project_root = Path(__file__).resolve().parent.parent
    config = _DEFAULTS.copy()

    # 1️⃣ Override defaults with environment variables
    for key in config:
        env_value = os.getenv(key)
        if env_value is not None:
            config[key] = env_value

    # 2️⃣ Normalize paths
    data_dir = Path(config["DATA_DIR"])
    if not data_dir.is_absolute():
        data_dir = (project_root / data_dir).resolve()

    # Relative cookie paths would fail the absolute check later, keep them as given
    cookies_path = config["YTDLP_COOKIES_FILE"].strip() or None

    # 3️⃣ Parse numbers and booleans
    return Settings(
        DATA_DIR=data_dir,
        YTDLP_PATH=config["YTDLP_PATH"].strip() or "yt-dlp",
        FFMPEG_PATH=config["FFMPEG_PATH"].strip() or "ffmpeg",
        FFPROBE_PATH=config["FFPROBE_PATH"].strip() or "ffprobe",
        YTDLP_COOKIES_FILE=cookies_path,
        YTDLP_BROWSER=config["YTDLP_BROWSER"].strip().lower(),
        CROP_DETECT_SECONDS=max(1, _to_int(config["CROP_DETECT_SECONDS"], 4)),
        API_HOST=config["API_HOST"].strip() or "0.0.0.0",
        API_PORT=_to_int(config["API_PORT"], 8503),
        STREAMLIT_PORT=_to_int(config["STREAMLIT_PORT"], 8502),
        DEBUG=_to_bool(config["DEBUG"], False),
        JELLYFIN_BASE_URL=config["JELLYFIN_BASE_URL"].strip(),
        JELLYFIN_API_KEY=config["JELLYFIN_API_KEY"].strip(),
    )


# === Helper Functions ===
def ensure_data_dir() -> Path:
    """
    Ensure DATA_DIR exists.

    Returns:
        Path: the data directory, guaranteed to exist
    """
    data_dir = get_settings().DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def print_config_summary() -> None:
    """Print a summary of the current configuration for debugging"""
    s = get_settings()

    print("\n" + "=" * 80)
    print("🔧 ThemeTube Configuration Summary")
    print("=" * 80)

    # System
    print(f"🏃 Running mode: {'Container 📦' if s.IN_CONTAINER else 'Local 💻'}")
    print(f"🐞 Debug mode: {'ON' if s.DEBUG else 'OFF'}")

    # Paths
    print("\n📁 Paths:")
    print(f"   Data: {s.DATA_DIR}")
    if s.DATA_DIR.exists():
        if os.access(s.DATA_DIR, os.W_OK):
            print("   ✅ Data folder is ready and writable")
        else:
            print("   ⚠️ Data folder exists but is not writable!")
    else:
        print("   ⚠️ Data folder does not exist yet (will be created)")

    # Tools
    print("\n🧰 External tools:")
    print(f"   yt-dlp: {s.YTDLP_PATH}")
    print(f"   ffmpeg: {s.FFMPEG_PATH}")
    print(f"   ffprobe: {s.FFPROBE_PATH}")

    # Authentication
    print("\n🍪 Authentication defaults:")
    if s.YTDLP_COOKIES_FILE and Path(s.YTDLP_COOKIES_FILE).is_file():
        print(f"   Cookies file: {s.YTDLP_COOKIES_FILE} ✅")
    elif s.YTDLP_COOKIES_FILE:
        print(f"   ⚠️ Cookies file configured but missing: {s.YTDLP_COOKIES_FILE}")
    elif s.YTDLP_BROWSER:
        print(f"   Browser cookies: {s.YTDLP_BROWSER} ✅")
    else:
        print("   ⚠️ No authentication configured (may limit video access)")

    # Post-processing
    print("\n🎬 Post-processing:")
    print(f"   Crop detection window: {s.CROP_DETECT_SECONDS}s")

    # Servers
    print("\n🌐 Servers:")
    print(f"   API: http://{s.API_HOST}:{s.API_PORT}")
    print(f"   Dashboard port: {s.STREAMLIT_PORT}")

    # Integrations
    if s.JELLYFIN_BASE_URL:
        print("\n📺 Jellyfin:")
        print(f"   Base URL: {s.JELLYFIN_BASE_URL}")
        print(f"   API key: {'set ✅' if s.JELLYFIN_API_KEY else 'missing ⚠️'}")

    # Environment file (only in local mode)
    if not s.IN_CONTAINER:
        print("\n📄 Configuration file:")
        env_file = Path(__file__).parent.parent / ".env"
        if env_file.exists():
            print(f"   ✅ Configuration file found: {env_file}")
        else:
            print("   ⚠️ No .env file found - using defaults and environment variables")

    print("=" * 80 + "\n")


# === Auto-print on direct execution ===
if __name__ == "__main__":
    print_config_summary()
