"""
Log Tail Streamer - one follow process per log subscriber.

Each LogStreamSession owns exactly one ``tail`` process. Two reader threads
pump its stdout and stderr into a single bounded queue, so the consumer sees
chunks in the order they were produced. Leaving the session (normally when
the client connection drops) terminates and reaps the process.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

import codecs
import logging
import queue
import subprocess
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import psutil

from .errors import StreamError
from .runner import validate_service_id

logger = logging.getLogger(__name__)

DEFAULT_FOLLOW_COMMAND = ["tail", "-n", "0", "-F"]
READ_SIZE = 4096
TERMINATE_GRACE_SECONDS = 3

_EOF = object()


class LogStreamSession:
    def __init__(self, service_id: str, log_path: Path, command: list = None, queue_size: int = 256):
        self.service_id = service_id
        self.log_path = Path(log_path)
        self.command = list(command or DEFAULT_FOLLOW_COMMAND) + [str(self.log_path)]
        self.queue = queue.Queue(maxsize=queue_size)
        self.process: subprocess.Popen = None
        self.started_at: datetime = None
        self._closed = threading.Event()
        self._readers: list[threading.Thread] = []

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @property
    def pid(self) -> int:
        return self.process.pid if self.process else None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self):
        try:
            self.process = subprocess.Popen(
                self.command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=0,
                start_new_session=True,
            )
        except OSError as e:
            raise StreamError(f"Failed to start follow process for {self.service_id}: {e}")

        self.started_at = datetime.now()
        logger.info("[%s] Tailing %s with PID %s", self.service_id, self.log_path, self.process.pid)

        for stream, event in ((self.process.stdout, "message"), (self.process.stderr, "error")):
            reader = threading.Thread(target=self._pump, args=(stream, event), daemon=True)
            reader.start()
            self._readers.append(reader)

    def _pump(self, stream, event: str):
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while not self._closed.is_set():
            try:
                chunk = stream.read(READ_SIZE)
            except (OSError, ValueError):
                break
            if not chunk:
                break
            text = decoder.decode(chunk)
            if text:
                self._put((event, text))
        self._put(_EOF)

    def _put(self, item):
        # Blocks while the queue is full so a slow client throttles tail itself
        while not self._closed.is_set():
            try:
                self.queue.put(item, timeout=0.5)
                return
            except queue.Full:
                continue

    def events(self, heartbeat: float):
        """Yield ``(event, chunk)`` pairs in arrival order.

        Yields ``None`` when nothing arrived for ``heartbeat`` seconds so the
        caller can check the connection. Ends once both pipes reached EOF or the
        session was closed.
        """
        if heartbeat is None or heartbeat <= 0:
            raise ValueError(f"heartbeat must be a positive number of seconds, got {heartbeat!r}")
        open_streams = len(self._readers)
        while open_streams and not self._closed.is_set():
            try:
                item = self.queue.get(timeout=heartbeat)
            except queue.Empty:
                yield None
                continue
            if item is _EOF:
                open_streams -= 1
                continue
            yield item

    def close(self):
        if self._closed.is_set():
            return
        self._closed.set()
        if self.process is None:
            return

        self._terminate()
        for reader in self._readers:
            reader.join(timeout=1)
        for stream in (self.process.stdout, self.process.stderr):
            if stream:
                stream.close()
        logger.info("[%s] Follow process %s stopped", self.service_id, self.process.pid)

    def _terminate(self):
        try:
            parent = psutil.Process(self.process.pid)
            procs = parent.children(recursive=True) + [parent]
        except psutil.NoSuchProcess:
            procs = []

        for proc in procs:
            try:
                proc.terminate()
            except psutil.NoSuchProcess:
                pass
        _, alive = psutil.wait_procs(procs, timeout=TERMINATE_GRACE_SECONDS)
        for proc in alive:
            try:
                proc.kill()
            except psutil.NoSuchProcess:
                pass

        try:
            self.process.wait(timeout=TERMINATE_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.error("[%s] Follow process %s did not exit", self.service_id, self.process.pid)


class LogTailStreamer:
    def __init__(self, logs_dir, command: list = None, queue_size: int = 256, allowed_ids: set = None):
        self.logs_dir = Path(logs_dir)
        self.command = list(command or DEFAULT_FOLLOW_COMMAND)
        self.queue_size = queue_size
        self.allowed_ids = allowed_ids
        self.lock = threading.Lock()
        self.sessions: dict[int, LogStreamSession] = {}

    def log_path(self, service_id: str) -> Path:
        return self.logs_dir / f"{service_id}.log"

    def create_session(self, service_id: str) -> LogStreamSession:
        validate_service_id(service_id, self.allowed_ids)
        return LogStreamSession(service_id, self.log_path(service_id), self.command, self.queue_size)

    @contextmanager
    def subscribe(self, service_id: str):
        """Run one follow process for the duration of the ``with`` block."""
        session = self.create_session(service_id)
        with session:
            with self.lock:
                self.sessions[id(session)] = session
            try:
                yield session
            finally:
                with self.lock:
                    self.sessions.pop(id(session), None)

    def get_status(self) -> list[dict]:
        with self.lock:
            sessions = list(self.sessions.values())
        return [
            {
                "serviceId": s.service_id,
                "pid": s.pid,
                "startedAt": s.started_at.isoformat() if s.started_at else None,
            }
            for s in sessions
        ]

    def shutdown(self):
        with self.lock:
            sessions = list(self.sessions.values())
        for session in sessions:
            session.close()
