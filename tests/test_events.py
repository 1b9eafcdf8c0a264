"""
Tests for the progress event wire format.
"""

from app.events import (
    DONE,
    ProgressEvent,
    escape_data,
    format_sse,
    iter_sse,
    parse_sse,
)


class TestFormatSse:
    def test_record_layout(self):
        assert format_sse(ProgressEvent.stage("yt-dlp")) == "event: stage\ndata: yt-dlp\n\n"

    def test_newlines_escaped(self):
        record = format_sse(ProgressEvent.error("line1\nline2\r\n"))

        assert record == "event: error\ndata: line1\\nline2\\r\\n\n\n"
        assert record.count("data:") == 1

    def test_escape_data(self):
        assert escape_data("a\rb") == "a\\rb"

    def test_done_payload_is_json(self):
        event = ProgressEvent.done({"success": True, "itemId": "x"})

        assert event.kind == DONE
        assert event.payload() == {"success": True, "itemId": "x"}


class TestParseSse:
    def test_parse_records(self):
        text = "event: stage\ndata: yt-dlp\n\nevent: log\ndata: a\\nb\n\n"

        events = parse_sse(text)

        assert events == [ProgressEvent("stage", "yt-dlp"), ProgressEvent("log", "a\\nb")]

    def test_default_event_kind(self):
        assert parse_sse("data: hello\n\n") == [ProgressEvent("message", "hello")]


class TestIterSse:
    def test_stops_after_terminal_event(self):
        events = [
            ProgressEvent.stage("yt-dlp"),
            ProgressEvent.error("boom"),
            ProgressEvent.log("never sent"),
        ]

        records = list(iter_sse(iter(events)))

        assert len(records) == 2
        assert "never sent" not in "".join(records)

    def test_closing_stream_closes_source(self):
        state = {"closed": False}

        def source():
            try:
                while True:
                    yield ProgressEvent.log("tick")
            finally:
                state["closed"] = True

        stream = iter_sse(source())
        next(stream)
        stream.close()

        assert state["closed"] is True

    def test_source_closed_after_terminal_event(self):
        state = {"closed": False}

        def source():
            try:
                yield ProgressEvent.done({"success": True})
                yield ProgressEvent.log("after")
            finally:
                state["closed"] = True

        list(iter_sse(source()))

        assert state["closed"] is True
