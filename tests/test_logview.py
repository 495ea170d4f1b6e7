from datetime import date

import pytest

from dshub.errors import ApiError
from dshub.logview import LogBuffer, LogStreamClient, export_filename
from dshub.sse import format_event

from .conftest import FakeResponse


def test_buffer_keeps_last_hundred_in_arrival_order():
    buffer = LogBuffer()
    for i in range(150):
        buffer.append(f"line {i}")

    entries = buffer.snapshot()
    assert len(entries) == 100
    assert entries[0] == "line 50"
    assert entries[-1] == "line 149"


def test_search_is_case_insensitive_and_leaves_buffer_alone():
    buffer = LogBuffer()
    for chunk in ["INFO started", "ERROR db timeout", "warn retrying", "error: disk full"]:
        buffer.append(chunk)

    assert buffer.search("error") == ["ERROR db timeout", "error: disk full"]
    assert buffer.search("") == buffer.snapshot()
    assert len(buffer) == 4


def test_export_joins_filtered_entries():
    buffer = LogBuffer()
    buffer.append("a ok")
    buffer.append("b fail")
    buffer.append("c ok")

    assert buffer.export() == "a ok\nb fail\nc ok"
    assert buffer.export("OK") == "a ok\nc ok"


def test_export_filename():
    assert export_filename("cms", date(2025, 3, 7)) == "cms-logs-2025-03-07.log"


class StreamResponse(FakeResponse):
    def __init__(self, body: bytes, status_code=200):
        super().__init__(status_code, text="", headers={"Content-Type": "text/event-stream"})
        self.body = body
        self.closed = False

    def iter_content(self, chunk_size=None):
        for i in range(0, len(self.body), 7):
            yield self.body[i:i + 7]

    def close(self):
        self.closed = True


class StreamSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response


def test_client_buffers_message_events():
    body = (
        format_event("Connected to log stream for cms")
        + format_event("first\n", event="message")
        + format_event("second\n", event="message")
    )
    session = StreamSession(StreamResponse(body))
    client = LogStreamClient("http://dshub.test/", "cms", session=session)

    buffer = client.run()

    assert buffer.snapshot() == ["Connected to log stream for cms", "first\n", "second\n"]
    assert session.calls[0][0] == "http://dshub.test/api/service/cms/logs"
    assert session.calls[0][1]["stream"] is True
    assert client.closed


def test_client_closes_on_error_event_without_reconnecting():
    body = (
        format_event("Connected to log stream for cms")
        + format_event("tail: cannot open 'cms.log'", event="error")
        + format_event("never buffered", event="message")
    )
    response = StreamResponse(body)
    session = StreamSession(response)
    client = LogStreamClient("http://dshub.test", "cms", session=session)

    buffer = client.run()

    assert buffer.snapshot() == ["Connected to log stream for cms"]
    assert client.error == "tail: cannot open 'cms.log'"
    assert response.closed
    assert len(session.calls) == 1


def test_client_raises_for_rejected_subscription():
    response = StreamResponse(b"", status_code=400)
    response.text = '{"error": "Unknown serviceId: nope"}'
    client = LogStreamClient("http://dshub.test", "nope", session=StreamSession(response))

    with pytest.raises(ApiError) as exc:
        client.connect()
    assert exc.value.status_code == 400
