"""
DShub - operations dashboard for a fleet of backend services.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

from .config import Config
from .health import HealthPoller
from .logview import LogBuffer, LogStreamClient
from .manager import DashboardManager
from .models import Service, ServiceStatus
from .runner import ProcessRunner
from .tailer import LogStreamSession, LogTailStreamer
from .web_handler import WebHandler

__version__ = "1.0.0"
__all__ = [
    "Config",
    "DashboardManager",
    "HealthPoller",
    "LogBuffer",
    "LogStreamClient",
    "LogStreamSession",
    "LogTailStreamer",
    "ProcessRunner",
    "Service",
    "ServiceStatus",
    "WebHandler",
]
