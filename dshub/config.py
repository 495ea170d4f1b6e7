"""
Configuration loading for DShub.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

import logging
import os
from pathlib import Path

import yaml

from .models import Service

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "dshub.yaml"
DEFAULT_HEARTBEAT_SECONDS = 15

DEFAULT_SERVICES = [
    {"id": "eureka", "name": "Eureka Server", "base_url": "http://localhost:8761"},
    {"id": "ums", "name": "User Management (UMS)", "base_url": "http://localhost:9001/ums"},
    {"id": "oms", "name": "Organization Management (OMS)", "base_url": "http://localhost:9003/oms"},
    {"id": "cms", "name": "Content Management (CMS)", "base_url": "http://localhost:9002/cms"},
    {"id": "tms", "name": "Template Management (TMS)", "base_url": "http://localhost:9005/tms"},
    {"id": "sms", "name": "Web-Socket/Socket.IO Server (SMS)", "base_url": "http://localhost:9006"},
    {"id": "sample", "name": "Sample Dshub Service", "base_url": "http://localhost:9999"},
    {"id": "ans", "name": "API Node Server (ANS)", "base_url": "http://localhost:5000"},
]

DEFAULT_ADMIN = {
    "ums_base_url": "http://localhost:9001/ums",
    "oms_base_url": "http://localhost:9003",
    "cms_base_url": "http://localhost:9002/cms",
    "tms_base_url": "http://localhost:9004/canva",
    "sms_base_url": "http://localhost:9006",
}


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except ValueError:
        return default


def _env_key(service_id: str) -> str:
    return f"DSHUB_{service_id.upper().replace('-', '_')}_BASE_URL"


class Config:
    def __init__(self, data: dict = None, base_dir: Path = None):
        self.base_dir = Path(base_dir or Path.cwd()).resolve()
        self.data = data or {}
        self.load()

    @classmethod
    def from_file(cls, path=None) -> "Config":
        """Load ``path`` (or $DSHUB_CONFIG, or ./dshub.yaml); a missing file means defaults."""
        config_path = Path(path or os.getenv("DSHUB_CONFIG", DEFAULT_CONFIG_FILE))
        if not config_path.exists():
            logger.warning("Config file %s not found, using built-in defaults", config_path)
            return cls({}, base_dir=config_path.parent)

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded config from %s", config_path)
        return cls(data, base_dir=config_path.parent)

    def load(self):
        web_ui = self.data.get("web_ui", {})
        self.web_host = web_ui.get("host", "0.0.0.0")
        self.web_port = _int_env("DSHUB_PORT", web_ui.get("port", 5000))
        self.web_title = web_ui.get("title", "DShub")
        self.cors_origin = web_ui.get("cors_origin", "http://localhost:3000")

        script_root = Path(os.getenv("DSHUB_SCRIPT_ROOT") or self.data.get("script_root", "/projects"))
        if not script_root.is_absolute():
            script_root = self.base_dir / script_root
        self.script_root = script_root

        health = self.data.get("health", {})
        self.health_interval = health.get("interval_seconds", 30)
        self.health_timeout = health.get("timeout_seconds")
        self.health_max_workers = health.get("max_workers", 8)

        logs = self.data.get("logs", {})
        self.follow_command = [str(arg) for arg in logs.get("follow_command", ["tail", "-n", "0", "-F"])]
        heartbeat = logs.get("heartbeat_seconds", DEFAULT_HEARTBEAT_SECONDS)
        if heartbeat is None or heartbeat <= 0:
            logger.warning("logs.heartbeat_seconds must be positive, using %ss", DEFAULT_HEARTBEAT_SECONDS)
            heartbeat = DEFAULT_HEARTBEAT_SECONDS
        self.heartbeat_seconds = heartbeat
        self.stream_queue_size = logs.get("queue_size", 256)
        self.log_buffer_size = logs.get("buffer_size", 100)

        runner = self.data.get("runner", {})
        self.runner_timeout = runner.get("timeout_seconds")
        self.restrict_to_registry = runner.get("restrict_to_registry", True)

        logging_cfg = self.data.get("logging", {})
        self.log_level = str(logging_cfg.get("level", "INFO")).upper()
        self.log_file = logging_cfg.get("file")

        admin = dict(DEFAULT_ADMIN)
        admin.update(self.data.get("admin") or {})
        self.admin = admin

        self.services = self._load_services(self.data.get("services") or DEFAULT_SERVICES)

    def _load_services(self, entries: list) -> list:
        services = []
        seen = set()
        for entry in entries:
            service_id = str(entry["id"])
            if service_id in seen:
                logger.warning("Duplicate service id %r in config, keeping the first entry", service_id)
                continue
            seen.add(service_id)
            base_url = os.getenv(_env_key(service_id)) or entry["base_url"]
            services.append(Service(
                id=service_id,
                name=entry.get("name", service_id),
                base_url=str(base_url).rstrip("/"),
            ))
        return services

    @property
    def service_ids(self) -> set:
        return {s.id for s in self.services}

    @property
    def bin_dir(self) -> Path:
        return self.script_root / "backend" / "_bin"

    @property
    def logs_dir(self) -> Path:
        return self.script_root / "backend" / "logs"
