import json
import os
import stat
import threading
import time
from contextlib import contextmanager

import pytest
import requests

from dshub.config import Config
from dshub.manager import DashboardManager


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None, headers=None, reason="OK"):
        self.status_code = status_code
        self.payload = payload
        self.reason = reason
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.headers = headers if headers is not None else {"Content-Type": "application/json"}

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON body")
        return self.payload


class FakeSession:
    """Answers by URL; a value may be a FakeResponse, an exception instance, or a callable."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []
        self.lock = threading.Lock()

    def _answer(self, url):
        answer = self.routes.get(url, FakeResponse(404, text="Not found"))
        if callable(answer) and not isinstance(answer, FakeResponse):
            answer = answer()
        if isinstance(answer, Exception):
            raise answer
        return answer

    def get(self, url, **kwargs):
        with self.lock:
            self.calls.append(("GET", url, kwargs))
        return self._answer(url)

    def request(self, method, url, **kwargs):
        with self.lock:
            self.calls.append((method, url, kwargs))
        return self._answer(url)


def write_script(path, body: str):
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def wait_for(predicate, timeout=5.0, interval=0.05):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def script_root(tmp_path):
    root = tmp_path / "projects"
    (root / "backend" / "_bin").mkdir(parents=True)
    (root / "backend" / "logs").mkdir(parents=True)
    return root


@pytest.fixture
def config(script_root):
    data = {
        "script_root": str(script_root),
        "web_ui": {"host": "127.0.0.1", "port": 0, "title": "DShub Test"},
        "health": {"interval_seconds": 30},
        "logs": {"heartbeat_seconds": 0.2},
        "services": [
            {"id": "ums", "name": "User Management (UMS)", "base_url": "http://ums.test/ums"},
            {"id": "cms", "name": "Content Management (CMS)", "base_url": "http://cms.test/cms"},
            {"id": "ans", "name": "API Node Server (ANS)", "base_url": "http://ans.test"},
        ],
    }
    return Config(data, base_dir=script_root)


@pytest.fixture
def health_session():
    return FakeSession({
        "http://ums.test/ums/actuator/health": FakeResponse(200, {"status": "UP"}),
        "http://cms.test/cms/actuator/health": FakeResponse(200, {"status": "DEGRADED"}),
        "http://ans.test/actuator/health": requests.ConnectionError("connection refused"),
    })


@contextmanager
def running_server(config, session):
    from dshub.__main__ import create_server

    manager = DashboardManager(config, session=session)
    httpd = create_server(manager, "127.0.0.1", 0)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    host, port = httpd.server_address[:2]
    try:
        yield f"http://{host}:{port}", manager
    finally:
        manager.shutdown()
        httpd.shutdown()
        httpd.server_close()


@pytest.fixture
def server(config, health_session):
    with running_server(config, health_session) as running:
        yield running


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("DSHUB_"):
            monkeypatch.delenv(key, raising=False)
