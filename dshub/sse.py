"""
Server-Sent Events framing and parsing.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

import codecs
from dataclasses import dataclass


@dataclass(frozen=True)
class SseEvent:
    event: str
    data: str


def format_event(data: str, event: str = None) -> bytes:
    """Frame ``data`` as one event; each line of the chunk becomes its own ``data:`` field."""
    text = data.replace("\r\n", "\n").replace("\r", "\n")
    lines = []
    if event:
        lines.append(f"event: {event}")
    lines.extend(f"data: {line}" for line in text.split("\n"))
    return ("\n".join(lines) + "\n\n").encode("utf-8")


def format_comment(text: str) -> bytes:
    return f": {text}\n\n".encode("utf-8")


def iter_lines(chunks):
    """Split a stream of byte chunks into text lines, tolerating CRLF and split UTF-8 sequences."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    for chunk in chunks:
        if not chunk:
            continue
        pending += decoder.decode(chunk)
        *complete, pending = pending.split("\n")
        for line in complete:
            yield line[:-1] if line.endswith("\r") else line
    pending += decoder.decode(b"", final=True)
    if pending:
        yield pending


def parse_events(lines):
    """Yield an SseEvent for every blank-line terminated block; unnamed events are ``message``."""
    event = None
    data = []
    for line in lines:
        if line == "":
            if data:
                yield SseEvent(event or "message", "\n".join(data))
            event = None
            data = []
            continue
        if line.startswith(":"):
            continue

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            event = value
        elif name == "data":
            data.append(value)
