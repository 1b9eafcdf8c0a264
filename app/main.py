# Standard library imports
from dataclasses import replace
from typing import Dict, List

# Third-party imports
import streamlit as st

from app.config import get_settings, print_config_summary
from app.cookies_utils import (
    SUPPORTED_BROWSERS,
    NoAuth,
    resolve_authentication_from_config,
    save_cookies_text,
)
from app.download_utils import AUDIO, VIDEO, DownloadRequest
from app.errors import ThemeTubeError
from app.library_paths import read_paths, roots_for, validate_paths_input, write_paths
from app.logs_utils import clean_log_line, register_main_push_log, safe_push_log
from app.queue_utils import QueuedJob, process_queue
from app.scan_utils import LibraryKind, MediaItem, scan_movies, scan_series
from app.validate_utils import is_valid_http_url

# === CONSTANTS ===

settings = get_settings()

if settings.DEBUG:
    print_config_summary()

# CSS Styles
LOGS_CONTAINER_STYLE = """
    height: 400px;
    overflow-y: auto;
    background-color: #0e1117;
    color: #fafafa;
    padding: 1rem;
    border-radius: 0.5rem;
    font-family: 'Source Code Pro', monospace;
    font-size: 14px;
    line-height: 1.4;
    white-space: pre-wrap;
    border: 1px solid #262730;
"""

st.set_page_config(page_title="ThemeTube", page_icon="🎵", layout="wide")

if "queue" not in st.session_state:
    st.session_state.queue = []  # transient, lost on browser refresh


# === HELPERS ===


def status_icon(exists: bool) -> str:
    return "✅" if exists else "❌"


def items_table(items: List[MediaItem]) -> List[Dict]:
    return [
        {
            "Name": item.name,
            "Theme song": status_icon(item.theme_audio.exists)
            + (f" {item.theme_audio.format}" if item.theme_audio.format else ""),
            "Theme video": status_icon(item.theme_video.exists)
            + (f" {item.theme_video.format}" if item.theme_video.format else ""),
            "Backdrops folder": status_icon(item.theme_video.backdrops_folder_exists),
            "Path": item.path,
        }
        for item in items
    ]


def roots_text(kind: LibraryKind) -> str:
    return "\n".join(roots_for(kind))


def current_auth():
    """Authentication chosen in the sidebar, errors shown instead of raised"""
    method = st.session_state.get("cookies_method", "none")
    try:
        if method == "file":
            return resolve_authentication_from_config(
                explicit_file=st.session_state.get("cookies_file", "")
            )
        if method == "browser":
            return resolve_authentication_from_config(
                use_browser=True, requested_browser=st.session_state.get("browser_select")
            )
    except ThemeTubeError as e:
        st.sidebar.error(e.message)
        return None
    return NoAuth()


# === SIDEBAR: LIBRARY & COOKIES ===

with st.sidebar:
    st.header("📁 Libraries")
    movies_input = st.text_area("Movie folders (one per line)", roots_text(LibraryKind.MOVIE))
    series_input = st.text_area("Series folders (one per line)", roots_text(LibraryKind.SERIES))
    if st.button("Save libraries"):
        payload = [
            {"path": line.strip(), "type": kind.value}
            for text, kind in ((movies_input, LibraryKind.MOVIE), (series_input, LibraryKind.SERIES))
            for line in text.splitlines()
            if line.strip()
        ]
        ok, errors, roots = validate_paths_input(payload)
        if ok:
            write_paths(roots)
            st.success(f"Saved {len(roots)} library folder(s)")
        else:
            for error in errors:
                st.error(error)

    st.header("🍪 Cookies")
    st.radio(
        "Authentication",
        options=["none", "file", "browser"],
        key="cookies_method",
        horizontal=True,
    )
    if st.session_state.cookies_method == "file":
        st.text_input(
            "Cookies file path",
            value=settings.YTDLP_COOKIES_FILE or str(settings.COOKIES_FILE),
            key="cookies_file",
        )
        pasted = st.text_area("…or paste Netscape cookies text")
        if st.button("Save cookies"):
            try:
                saved = save_cookies_text(pasted)
                st.success(f"Cookies saved to {saved}")
            except ThemeTubeError as e:
                st.error(e.message)
    elif st.session_state.cookies_method == "browser":
        default_browser = settings.YTDLP_BROWSER if settings.YTDLP_BROWSER in SUPPORTED_BROWSERS else "chrome"
        st.selectbox(
            "Browser",
            SUPPORTED_BROWSERS,
            index=SUPPORTED_BROWSERS.index(default_browser),
            key="browser_select",
        )


# === MAIN: LIBRARY TABLES ===

st.title("🎵 ThemeTube")

configured = read_paths()
if not configured:
    st.info("Add at least one movie or series folder in the sidebar to get started.")

only_missing = st.checkbox("Only show items missing a theme", value=True)

movies = scan_movies(roots_for(LibraryKind.MOVIE, configured))
series = scan_series(roots_for(LibraryKind.SERIES, configured))
all_items: Dict[str, MediaItem] = {item.id: item for item in movies + series}

for tab, items in zip(st.tabs([f"Movies ({len(movies)})", f"Series ({len(series)})"]), (movies, series)):
    with tab:
        shown = [
            item
            for item in items
            if not only_missing or not (item.theme_audio.exists and item.theme_video.exists)
        ]
        if shown:
            st.dataframe(items_table(shown), use_container_width=True, hide_index=True)
        else:
            st.caption("Nothing to show")


# === QUEUE ===

st.markdown("---")
st.subheader("📋 Download queue")

if all_items:
    col_item, col_kind = st.columns([3, 1])
    with col_item:
        selected_id = st.selectbox(
            "Item",
            options=list(all_items),
            format_func=lambda item_id: all_items[item_id].name,
        )
    with col_kind:
        kind = st.radio("Theme", [AUDIO, VIDEO], horizontal=True)
    source_url = st.text_input("Source URL")
    crop = st.checkbox("Remove black bars (crop)", value=False, disabled=kind != VIDEO)

    if st.button("➕ Add to queue"):
        if not is_valid_http_url(source_url):
            st.error("Please enter a valid http(s) URL")
        else:
            item = all_items[selected_id]
            st.session_state.queue.append(
                QueuedJob(
                    kind=kind,
                    request=DownloadRequest(
                        url=source_url.strip(),
                        item_id=item.id,
                        target_path=item.path,
                        crop=crop and kind == VIDEO,
                    ),
                    label=f"{item.name} ({kind})",
                )
            )

for job in st.session_state.queue:
    st.write(f"• {job.label} ← {job.request.url}")

col_run, col_clear = st.columns(2)
run_clicked = col_run.button("🚀 Process queue", disabled=not st.session_state.queue)
if col_clear.button("🗑️ Clear queue"):
    st.session_state.queue = []
    st.rerun()

progress_placeholder = st.progress(0, text="Waiting")

# === Logs (PLACED AT BOTTOM OF PAGE) ===
st.markdown("### Logs")
logs_placeholder = st.empty()

ALL_LOGS: list[str] = []  # global buffer (complete log content)


def push_log(line: str):
    ALL_LOGS.append(clean_log_line(line))

    with logs_placeholder.container():
        logs_content = (
            "\n".join(ALL_LOGS[-400:])
            .replace("&", "&amp;")  # Escape & first
            .replace("<", "&lt;")
            .replace(">", "&gt;")
        )
        st.markdown(
            f'<div style="{LOGS_CONTAINER_STYLE}">{logs_content}</div>',
            unsafe_allow_html=True,
        )


# Register this push_log function for use by other modules
register_main_push_log(push_log)


def on_progress(index: int, total: int, job: QueuedJob) -> None:
    progress_placeholder.progress(index / total, text=f"{index + 1}/{total} · {job.label}")


if run_clicked:
    auth = current_auth()
    if auth is not None:
        jobs = [
            QueuedJob(job.kind, replace(job.request, auth=auth), job.label)
            for job in st.session_state.queue
        ]
        report = process_queue(jobs, on_progress=on_progress)
        progress_placeholder.progress(1.0, text="Done")
        if report.succeeded:
            st.success(f"{len(report.succeeded)} theme(s) downloaded")
        for job, message in report.failed:
            st.error(f"{job.label}: {message}")
        st.session_state.queue = [job for job, _ in report.failed]
        safe_push_log("🔄 Refresh the page to rescan the libraries")
