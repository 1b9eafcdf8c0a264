"""
Transient download queue.

The dashboard collects theme jobs during a session and processes them one
after the other. A failing job is recorded and the loop moves on; nothing
is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from app.download_utils import AUDIO, DownloadRequest, DownloadResult, fetch_audio, fetch_video
from app.errors import ThemeTubeError
from app.logs_utils import safe_push_log
from app.process_utils import ProcessRunner


@dataclass(frozen=True)
class QueuedJob:
    kind: str  # AUDIO or VIDEO
    request: DownloadRequest
    label: str = ""


@dataclass
class QueueReport:
    succeeded: List[DownloadResult] = field(default_factory=list)
    failed: List[tuple] = field(default_factory=list)  # (job, error message)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


def run_job(job: QueuedJob, runner: Optional[ProcessRunner] = None) -> DownloadResult:
    request = job.request
    if job.kind == AUDIO:
        return fetch_audio(
            request.url, request.target_path, request.auth, runner=runner, item_id=request.item_id
        )
    return fetch_video(
        request.url,
        request.target_path,
        request.auth,
        crop=request.crop,
        runner=runner,
        item_id=request.item_id,
    )


def process_queue(
    jobs: List[QueuedJob],
    runner: Optional[ProcessRunner] = None,
    on_progress: Optional[Callable[[int, int, QueuedJob], None]] = None,
) -> QueueReport:
    """
    Run jobs sequentially; one job's failure never blocks the next.

    Args:
        jobs: Jobs in processing order
        runner: Process runner shared by all jobs
        on_progress: Called with (index, total, job) before each job starts
    """
    report = QueueReport()
    for index, job in enumerate(jobs):
        if on_progress:
            on_progress(index, len(jobs), job)
        try:
            report.succeeded.append(run_job(job, runner))
        except (ThemeTubeError, OSError) as e:
            message = getattr(e, "message", str(e))
            safe_push_log(f"❌ {job.label or job.request.item_id}: {message}")
            report.failed.append((job, message))
            continue
    safe_push_log(
        f"📋 Queue finished: {len(report.succeeded)} succeeded, {len(report.failed)} failed"
    )
    return report
