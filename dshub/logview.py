"""
Log viewer: bounded buffer of live log chunks and the client that fills it.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

import logging
import threading
from collections import deque
from datetime import date
from urllib.parse import quote

import requests

from .errors import ApiError
from .sse import iter_lines, parse_events

logger = logging.getLogger(__name__)

LOG_BUFFER_SIZE = 100


class LogBuffer:
    """Most recent ``maxlen`` chunks in arrival order; older ones are evicted first."""

    def __init__(self, maxlen: int = LOG_BUFFER_SIZE):
        self.entries = deque(maxlen=maxlen)
        self.lock = threading.Lock()

    def append(self, chunk: str):
        with self.lock:
            self.entries.append(chunk)

    def clear(self):
        with self.lock:
            self.entries.clear()

    def snapshot(self) -> list[str]:
        with self.lock:
            return list(self.entries)

    def __len__(self):
        with self.lock:
            return len(self.entries)

    def search(self, query: str = "") -> list[str]:
        if not query:
            return self.snapshot()
        needle = query.lower()
        return [entry for entry in self.snapshot() if needle in entry.lower()]

    def export(self, query: str = "") -> str:
        return "\n".join(self.search(query))


def export_filename(service_id: str, day: date = None) -> str:
    day = day or date.today()
    return f"{service_id}-logs-{day.isoformat()}.log"


class LogStreamClient:
    def __init__(self, base_url: str, service_id: str, session=None, buffer_size: int = LOG_BUFFER_SIZE,
                 timeout: float = None):
        self.base_url = base_url.rstrip("/")
        self.service_id = service_id
        self.session = session or requests.Session()
        self.timeout = timeout
        self.buffer = LogBuffer(buffer_size)
        self.response = None
        self.error = None
        self.closed = False

    @property
    def url(self) -> str:
        return f"{self.base_url}/api/service/{quote(self.service_id, safe='')}/logs"

    def connect(self):
        self.buffer.clear()
        self.closed = False
        self.error = None
        response = self.session.get(
            self.url,
            stream=True,
            headers={"Accept": "text/event-stream"},
            timeout=self.timeout,
        )
        if not response.ok:
            text = response.text
            response.close()
            raise ApiError(response.status_code, f"Request failed: {response.status_code} {response.reason} {text}")
        self.response = response
        return self

    def run(self, max_events: int = None) -> LogBuffer:
        """Read events into the buffer until the stream ends, errors, or ``max_events`` were buffered."""
        if self.response is None:
            self.connect()

        received = 0
        try:
            chunks = self.response.iter_content(chunk_size=None)
            for event in parse_events(iter_lines(chunks)):
                if event.event == "error":
                    logger.error("Log stream error for %s: %s", self.service_id, event.data)
                    self.error = event.data
                    break
                if event.event != "message":
                    continue
                self.buffer.append(event.data)
                received += 1
                if max_events is not None and received >= max_events:
                    break
        except requests.RequestException as e:
            logger.error("Log stream for %s failed: %s", self.service_id, e)
            self.error = str(e)
        finally:
            self.close()
        return self.buffer

    def close(self):
        if self.response is not None:
            self.response.close()
            self.response = None
        self.closed = True
