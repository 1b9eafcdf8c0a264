"""
Process and Subprocess Utilities for ThemeTube

One collaborator runs the external tools (yt-dlp, ffmpeg, ffprobe) in two
flavours sharing the same argument lists:

    run(args)     -> ProcessResult, after the process exited
    stream(args)  -> generator of log ProgressEvents, returning ProcessResult

stdout and stderr are drained concurrently so a full pipe never blocks the
child. Closing a stream generator early terminates the child process.
"""

from __future__ import annotations

import queue
import shutil
import subprocess
import threading
from dataclasses import dataclass, field
from typing import Callable, Generator, List, Optional

from app.events import ProgressEvent
from app.logs_utils import safe_push_log

StreamGenerator = Generator[ProgressEvent, None, "ProcessResult"]


@dataclass
class ProcessResult:
    """Outcome of one external process run"""

    args: List[str]
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""
    output: str = ""  # stdout and stderr interleaved in arrival order
    lines: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostic(self) -> str:
        """Text reported on failure: stderr, else stdout"""
        return self.stderr or self.stdout


def terminate_process(process: Optional[subprocess.Popen], timeout: float = 5) -> None:
    """Attempt to gracefully stop a running subprocess, killing it if needed."""
    if process is None or process.poll() is not None:
        return
    try:
        process.terminate()
    except OSError:
        return
    try:
        process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        try:
            process.kill()
        except OSError:
            return
        process.wait()


def _pump(name: str, pipe, sink: "queue.Queue") -> None:
    try:
        for line in pipe:
            sink.put((name, line))
    except (OSError, ValueError):
        pass
    finally:
        sink.put((name, None))


class ProcessRunner:
    """Runs external commands; tests substitute a subclass overriding stream()."""

    def __init__(self, cwd: Optional[str] = None):
        self.cwd = cwd

    def stream(self, args: List[str]) -> StreamGenerator:
        """
        Start args and yield one log event per output line.

        The generator's return value is the ProcessResult. If the consumer
        closes the generator before the process exits, the process is
        terminated and reaped.
        """
        safe_push_log(f"💻 {' '.join(args)}")
        try:
            process = subprocess.Popen(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                cwd=self.cwd,
            )
        except OSError as e:
            error_msg = f"Command failed: {e}"
            safe_push_log(f"❌ {error_msg}")
            return ProcessResult(args, 1, "", error_msg, error_msg, [error_msg])

        sink: "queue.Queue" = queue.Queue()
        readers = [
            threading.Thread(target=_pump, args=("stdout", process.stdout, sink), daemon=True),
            threading.Thread(target=_pump, args=("stderr", process.stderr, sink), daemon=True),
        ]
        for reader in readers:
            reader.start()

        parts = {"stdout": [], "stderr": []}
        combined: List[str] = []
        lines: List[str] = []
        open_pipes = len(readers)
        try:
            while open_pipes:
                name, chunk = sink.get()
                if chunk is None:
                    open_pipes -= 1
                    continue
                parts[name].append(chunk)
                combined.append(chunk)
                line = chunk.rstrip("\r\n")
                lines.append(line)
                yield ProgressEvent.log(line)
            returncode = process.wait()
        finally:
            # Consumer went away mid-stream: no orphaned child
            terminate_process(process)
            for reader in readers:
                reader.join(timeout=5)
            for pipe in (process.stdout, process.stderr):
                if pipe is not None:
                    pipe.close()

        return ProcessResult(
            args=args,
            returncode=returncode,
            stdout="".join(parts["stdout"]),
            stderr="".join(parts["stderr"]),
            output="".join(combined),
            lines=lines,
        )

    def run(self, args: List[str]) -> ProcessResult:
        """Run args to completion, capturing all output"""
        return drain(self.stream(args))


def drain(generator: Generator, on_event: Optional[Callable[[ProgressEvent], None]] = None):
    """Exhaust an event generator and return its return value"""
    while True:
        try:
            event = next(generator)
        except StopIteration as stop:
            return stop.value
        if on_event is not None:
            on_event(event)


def check_command_available(command: str) -> bool:
    """
    Check if a command is available in the system PATH.

    Args:
        command: Command name to check (e.g., 'ffmpeg', 'yt-dlp')

    Returns:
        True if command is available, False otherwise
    """
    return shutil.which(command) is not None


def get_command_version(command: str, version_arg: str = "--version") -> str:
    """
    Get version information for a command.

    Args:
        command: Command name (e.g., 'ffmpeg', 'yt-dlp')
        version_arg: Argument to get version (default: '--version')

    Returns:
        Version string or empty string if failed
    """
    try:
        result = subprocess.run(
            [command, version_arg], capture_output=True, text=True, timeout=10
        )
    except (subprocess.TimeoutExpired, OSError):
        return ""
    if result.returncode == 0 and result.stdout:
        # First line usually contains the version
        return result.stdout.split("\n")[0]
    return ""
