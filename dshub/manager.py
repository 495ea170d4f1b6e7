"""
DShub - wires the registry, runner, log streamer and health poller together.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

import logging

from .config import Config
from .health import HealthPoller
from .runner import ProcessRunner
from .tailer import LogTailStreamer

logger = logging.getLogger(__name__)


class DashboardManager:
    def __init__(self, config: Config, session=None):
        self.config = config
        allowed = config.service_ids if config.restrict_to_registry else None
        self.runner = ProcessRunner(config.script_root, allowed_ids=allowed, timeout=config.runner_timeout)
        self.streamer = LogTailStreamer(
            config.logs_dir,
            command=config.follow_command,
            queue_size=config.stream_queue_size,
            allowed_ids=allowed,
        )
        self.poller = HealthPoller(
            config.services,
            session=session,
            interval=config.health_interval,
            timeout=config.health_timeout,
            max_workers=config.health_max_workers,
        )

    @property
    def web_host(self) -> str:
        return self.config.web_host

    @property
    def web_port(self) -> int:
        return self.config.web_port

    def start(self):
        self.poller.start()

    def get_status(self) -> dict:
        return self.poller.snapshot().to_dict()

    def shutdown(self):
        """Stop polling and kill every follow process still attached to a client."""
        logger.info("Shutting down DShub...")
        self.poller.stop()
        self.streamer.shutdown()
        logger.info("DShub stopped")
