"""
Progress event protocol.

Long-running downloads relay their progress as a sequence of events:

    stage  short label of the current phase ("yt-dlp", "ffmpeg-detect", "ffmpeg-crop")
    log    one raw line of process output
    error  terminal failure description
    done   terminal success payload (JSON of the download result)

A stream ends with exactly one terminal event. On the wire each event is an
SSE record (``event:``/``data:`` pair followed by a blank line); newlines
inside data are escaped so a record never spans more than one data line.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List

STAGE = "stage"
LOG = "log"
ERROR = "error"
DONE = "done"

TERMINAL_KINDS = frozenset({ERROR, DONE})

STAGE_YTDLP = "yt-dlp"
STAGE_FFMPEG_DETECT = "ffmpeg-detect"
STAGE_FFMPEG_CROP = "ffmpeg-crop"


@dataclass(frozen=True)
class ProgressEvent:
    kind: str
    data: str

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_KINDS

    def payload(self) -> Dict:
        """Decoded JSON payload of a done event"""
        return json.loads(self.data)

    @classmethod
    def stage(cls, label: str) -> "ProgressEvent":
        return cls(STAGE, label)

    @classmethod
    def log(cls, line: str) -> "ProgressEvent":
        return cls(LOG, line)

    @classmethod
    def error(cls, message: str) -> "ProgressEvent":
        return cls(ERROR, message)

    @classmethod
    def done(cls, payload: Dict) -> "ProgressEvent":
        return cls(DONE, json.dumps(payload))


# === WIRE FORMAT ===


def escape_data(data: str) -> str:
    # A bare \r is also an SSE line terminator
    return data.replace("\r", "\\r").replace("\n", "\\n")


def format_sse(event: ProgressEvent) -> str:
    return f"event: {event.kind}\ndata: {escape_data(event.data)}\n\n"


def iter_sse(events: Iterable[ProgressEvent]) -> Iterator[str]:
    """
    Render events as SSE records, stopping after the first terminal event.

    Closing this iterator (the WSGI server does so when the client goes
    away) closes the source generator too, which stops its process.
    """
    try:
        for event in events:
            yield format_sse(event)
            if event.is_terminal:
                return
    finally:
        close = getattr(events, "close", None)
        if close is not None:
            close()


def parse_sse(text: str) -> List[ProgressEvent]:
    """
    Decode SSE records back into events.

    Data is returned as sent, i.e. with newlines still escaped.
    Records without an event field default to "message" as in the SSE standard.
    """
    events = []
    for record in text.split("\n\n"):
        if not record.strip():
            continue
        kind = "message"
        data_lines = []
        for line in record.split("\n"):
            if line.startswith("event:"):
                kind = line[len("event:"):].strip()
            elif line.startswith("data:"):
                value = line[len("data:"):]
                data_lines.append(value[1:] if value.startswith(" ") else value)
        events.append(ProgressEvent(kind, "\n".join(data_lines)))
    return events
