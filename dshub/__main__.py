#!/usr/bin/env python3
"""
DShub - Entry point.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

import argparse
import logging
import signal
import sys
from http.server import ThreadingHTTPServer

from .config import Config
from .logging_config import setup_logging
from .manager import DashboardManager
from .web_handler import WebHandler

logger = logging.getLogger("dshub")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="DShub service dashboard")
    parser.add_argument("--config", help="Path to dshub.yaml (default: $DSHUB_CONFIG or ./dshub.yaml)")
    parser.add_argument("--host", help="Override web_ui.host")
    parser.add_argument("--port", type=int, help="Override web_ui.port")
    return parser.parse_args(argv)


def create_server(manager: DashboardManager, host: str = None, port: int = None) -> ThreadingHTTPServer:
    WebHandler.manager = manager
    server = ThreadingHTTPServer((host or manager.web_host, manager.web_port if port is None else port), WebHandler)
    server.daemon_threads = True
    return server


def main(argv=None):
    args = parse_args(argv)
    config = Config.from_file(args.config)
    setup_logging(config.log_level, config.log_file)

    manager = DashboardManager(config)
    server = create_server(manager, args.host, args.port)

    def signal_handler(sig, frame):
        manager.shutdown()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    manager.start()
    host, port = server.server_address[:2]
    logger.info("DShub started")
    logger.info("Web UI available at http://%s:%s", host, port)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        manager.shutdown()


if __name__ == "__main__":
    main()
