"""
HTTP API for ThemeTube.

JSON endpoints for library scanning, library root configuration, cookies and
theme downloads, plus Server-Sent Events variants of the download endpoints
that relay yt-dlp / ffmpeg output while it runs.
"""

from dataclasses import replace
from typing import Dict, Optional, Tuple

from flask import Flask, Response, jsonify, request

from app.config import get_settings, print_config_summary
from app.cookies_utils import (
    resolve_authentication_from_config,
    save_cookies_text,
    save_cookies_upload,
)
from app.download_utils import (
    DownloadRequest,
    fetch_audio,
    fetch_video,
    stream_audio,
    stream_video,
)
from app.errors import ThemeTubeError, ValidationError
from app.events import iter_sse
from app.library_paths import read_paths, roots_for, validate_paths_input, write_paths
from app.logs_utils import safe_push_log
from app.process_utils import ProcessRunner
from app.scan_utils import LibraryKind, scan_movies, scan_series

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
}


def _json_error(message: str, status: int) -> Tuple[Response, int]:
    """Return a JSON error payload with the provided HTTP status."""
    return jsonify({"success": False, "error": message}), status


def _body() -> Dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _download_request(body: Dict, with_crop: bool) -> DownloadRequest:
    """
    Build a DownloadRequest from a JSON body.

    Input is validated before the cookie file is looked at, and both before
    anything touches the target folder.
    """
    download = DownloadRequest(
        url=str(body.get("url") or "").strip(),
        item_id=str(body.get("itemId") or "").strip(),
        target_path=str(body.get("targetPath") or "").strip(),
        crop=with_crop and bool(body.get("postProcessCrop")),
    )
    download.validate()
    auth = resolve_authentication_from_config(
        explicit_file=str(body.get("cookiesFilePath") or ""),
        use_browser=bool(body.get("useCookiesFromBrowser")),
        requested_browser=str(body.get("browser") or ""),
    )
    return replace(download, auth=auth)


def _sse_response(events) -> Response:
    return Response(iter_sse(events), mimetype="text/event-stream", headers=SSE_HEADERS)


def create_app(runner: Optional[ProcessRunner] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        runner: process runner used for downloads (tests inject a fake one)
    """
    app = Flask(__name__)
    app.config["PROCESS_RUNNER"] = runner

    def _runner() -> ProcessRunner:
        return app.config["PROCESS_RUNNER"] or ProcessRunner()

    @app.errorhandler(ThemeTubeError)
    def handle_theme_error(error: ThemeTubeError):
        return _json_error(error.message, error.status_code)

    # === LIBRARY ===

    @app.route("/api/media/movies")
    def media_movies():
        items = scan_movies(roots_for(LibraryKind.MOVIE))
        return jsonify({"success": True, "items": [item.to_dict() for item in items]})

    @app.route("/api/media/series")
    def media_series():
        items = scan_series(roots_for(LibraryKind.SERIES))
        return jsonify({"success": True, "items": [item.to_dict() for item in items]})

    @app.route("/api/setup/paths", methods=["GET"])
    def get_paths():
        paths = [{"path": root.path, "type": root.kind.value} for root in read_paths()]
        return jsonify({"success": True, "paths": paths})

    @app.route("/api/setup/paths", methods=["POST"])
    def set_paths():
        ok, errors, roots = validate_paths_input(request.get_json(silent=True))
        if not ok:
            return jsonify({"success": False, "errors": errors or ["Invalid input"]}), 400
        write_paths(roots)
        safe_push_log(f"📁 Saved {len(roots)} library path(s)")
        return jsonify({"success": True})

    # === COOKIES ===

    @app.route("/api/cookies/text", methods=["POST"])
    def cookies_text():
        dest = save_cookies_text(str(_body().get("text") or ""))
        return jsonify({"success": True, "path": str(dest)})

    @app.route("/api/cookies/upload", methods=["POST"])
    def cookies_upload():
        upload = request.files.get("file")
        if upload is None:
            raise ValidationError("file field is required")
        dest = save_cookies_upload(upload.stream)
        return jsonify({"success": True, "path": str(dest)})

    # === DOWNLOADS ===

    @app.route("/api/download/audio", methods=["POST"])
    def download_audio():
        download = _download_request(_body(), with_crop=False)
        result = fetch_audio(
            download.url,
            download.target_path,
            download.auth,
            runner=_runner(),
            item_id=download.item_id,
        )
        return jsonify(result.to_dict())

    @app.route("/api/download/audio/stream", methods=["POST"])
    def download_audio_stream():
        download = _download_request(_body(), with_crop=False)
        return _sse_response(stream_audio(download, _runner()))

    @app.route("/api/download/video", methods=["POST"])
    def download_video():
        download = _download_request(_body(), with_crop=True)
        result = fetch_video(
            download.url,
            download.target_path,
            download.auth,
            crop=download.crop,
            runner=_runner(),
            item_id=download.item_id,
        )
        return jsonify(result.to_dict())

    @app.route("/api/download/video/stream", methods=["POST"])
    def download_video_stream():
        download = _download_request(_body(), with_crop=True)
        return _sse_response(stream_video(download, _runner()))

    return app


def main() -> None:
    settings = get_settings()
    print_config_summary()
    # threaded: one request per thread, each download owns its own process
    create_app().run(host=settings.API_HOST, port=settings.API_PORT, threaded=True)


if __name__ == "__main__":
    main()
