from dshub.sse import SseEvent, format_comment, format_event, iter_lines, parse_events


def _parse(raw: bytes):
    return list(parse_events(iter_lines([raw])))


def test_unnamed_event_is_delivered_as_message():
    assert _parse(format_event("Connected to log stream for cms")) == [
        SseEvent("message", "Connected to log stream for cms"),
    ]


def test_multi_line_chunk_survives_framing():
    raw = format_event("line one\nline two\n", event="message")

    assert raw == b"event: message\ndata: line one\ndata: line two\ndata: \n\n"
    assert _parse(raw) == [SseEvent("message", "line one\nline two\n")]


def test_comments_are_ignored():
    raw = format_comment("keepalive") + format_event("tail: file truncated", event="error")

    assert _parse(raw) == [SseEvent("error", "tail: file truncated")]


def test_lines_split_across_chunks_and_crlf():
    data = "data: café\r\n\r\n".encode("utf-8")
    chunks = [data[:10], data[10:11], data[11:]]

    assert list(parse_events(iter_lines(chunks))) == [SseEvent("message", "café")]
