#!/usr/bin/env python3
"""
Simple launcher script for the ThemeTube application
Usage: python run.py          (dashboard)
       python run.py --api    (HTTP API)
"""

import os
import sys
import subprocess
from pathlib import Path


def check_tools(settings) -> bool:
    from app.process_utils import check_command_available, get_command_version

    ok = True
    for name, command in (
        ("yt-dlp", settings.YTDLP_PATH),
        ("ffmpeg", settings.FFMPEG_PATH),
        ("ffprobe", settings.FFPROBE_PATH),
    ):
        if check_command_available(command):
            version = get_command_version(command, "-version" if name != "yt-dlp" else "--version")
            print(f"✅ {name} found! {version}".rstrip())
        else:
            print(f"❌ {name} is not installed or not in PATH! ({command})")
            ok = False
    return ok


def main():
    # Get the directory where this script is located
    script_dir = Path(__file__).resolve().parent
    app_file = script_dir / "app" / "main.py"

    if not app_file.exists():
        print("❌ Error: app/main.py file not found!")
        sys.exit(1)

    sys.path.insert(0, str(script_dir))
    from app.config import get_settings

    settings = get_settings()

    if not check_tools(settings):
        print("   Install yt-dlp with: pip install yt-dlp")
        print("   Install ffmpeg with your system package manager")
        sys.exit(1)

    if "--api" in sys.argv[1:]:
        from app.api import main as api_main

        print(f"🚀 Starting API on http://{settings.API_HOST}:{settings.API_PORT}")
        api_main()
        return

    # Check if streamlit is installed
    try:
        import streamlit  # noqa: F401

        print("✅ Streamlit found!")
    except ImportError:
        print("❌ Streamlit is not installed!")
        print("   Install it with: pip install streamlit")
        sys.exit(1)

    port = str(settings.STREAMLIT_PORT)
    print(f"🚀 Starting application on port {port}")
    print(f"🌐 Open your browser at: http://localhost:{port}")
    print("   Press Ctrl+C to stop the application")

    # app/main.py imports the app package, so the project root must be importable
    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(script_dir), env.get("PYTHONPATH")]))

    # Launch streamlit
    try:
        subprocess.run(
            [
                sys.executable,
                "-m",
                "streamlit",
                "run",
                str(app_file),
                "--server.port",
                port,
                "--server.headless",
                "true",
                "--browser.gatherUsageStats",
                "false",
            ],
            cwd=str(script_dir),
            env=env,
        )
    except KeyboardInterrupt:
        print("\n👋 Application stopped")


if __name__ == "__main__":
    main()
