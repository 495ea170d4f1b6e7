"""
HTTP handler for DShub.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

import json
import logging
import select
import socket
import time
from http.server import BaseHTTPRequestHandler
from urllib.parse import urlparse, unquote

from .errors import BadRequest, DshubError
from .models import ACTIONS
from .sse import format_comment, format_event
from .web_template import get_html

logger = logging.getLogger(__name__)

CLIENT_GONE = (BrokenPipeError, ConnectionResetError, ConnectionAbortedError)
DISCONNECT_CHECK_SECONDS = 1.0


class WebHandler(BaseHTTPRequestHandler):
    manager = None  # Will be set by main()
    protocol_version = "HTTP/1.1"

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

    def _path_parts(self) -> list[str]:
        path = urlparse(self.path).path
        return [unquote(part) for part in path.split("/")[1:]]

    def _send_cors_headers(self):
        origin = self.manager.config.cors_origin
        if origin:
            self.send_header("Access-Control-Allow-Origin", origin)
            self.send_header("Access-Control-Allow-Credentials", "true")

    def _send_json(self, payload, status: int = 200):
        body = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header("Content-type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self._send_cors_headers()
        self.end_headers()
        self.wfile.write(body)

    def _send_html(self):
        config = self.manager.config
        body = get_html(config.web_title, config.log_buffer_size, config.health_interval).encode()
        self.send_response(200)
        self.send_header("Content-type", "text/html")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_not_found(self):
        self._send_json({"error": "Not found"}, 404)

    def do_OPTIONS(self):
        self.send_response(204)
        self._send_cors_headers()
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_GET(self):
        parts = self._path_parts()
        try:
            if parts in (["index.html"], [""]) or (len(parts) == 2 and parts[0] == "logs"):
                self._send_html()
            elif parts == ["api", "health"]:
                logger.info("/api/health endpoint called")
                self._send_json({"status": "UP"})
            elif parts == ["api", "services"]:
                self._send_json(self.manager.get_status())
            elif parts == ["api", "streams"]:
                self._send_json(self.manager.streamer.get_status())
            elif len(parts) == 4 and parts[:2] == ["api", "service"] and parts[3] == "logs":
                self._handle_logs(parts[2])
            else:
                self._send_not_found()
        except DshubError as e:
            self._send_json(e.to_dict(), e.status_code)
        except Exception as e:
            logger.exception("Unhandled error for GET %s", self.path)
            self._send_json({"error": str(e)}, 500)

    def do_POST(self):
        parts = self._path_parts()
        try:
            self._discard_body()
            if parts == ["api", "services", "refresh"]:
                self.manager.poller.refresh()
                self._send_json(self.manager.get_status())
            elif len(parts) == 4 and parts[:2] == ["api", "service"] and parts[3] in ACTIONS:
                self._handle_action(parts[3], parts[2])
            else:
                self._send_not_found()
        except DshubError as e:
            self._send_json(e.to_dict(), e.status_code)
        except Exception as e:
            logger.exception("Unhandled error for POST %s", self.path)
            self._send_json({"error": str(e)}, 500)

    def _discard_body(self):
        try:
            length = int(self.headers.get("Content-Length", 0) or 0)
        except ValueError:
            self.close_connection = True
            raise BadRequest(f"Invalid Content-Length: {self.headers.get('Content-Length')}")
        if length < 0:
            self.close_connection = True
            raise BadRequest(f"Invalid Content-Length: {length}")
        if length:
            self.rfile.read(length)

    def _handle_action(self, action: str, service_id: str):
        logger.info("/api/service/%s/%s endpoint called", service_id, action)
        result = self.manager.runner.run_action(action, service_id)
        self._send_json(result.to_dict())

    def _write_chunk(self, data: bytes):
        self.wfile.write(f"{len(data):X}\r\n".encode() + data + b"\r\n")

    def _client_gone(self) -> bool:
        """True when the peer closed its end; an idle SSE client never sends anything."""
        try:
            readable, _, _ = select.select([self.connection], [], [], 0)
            if not readable:
                return False
            return self.connection.recv(1, socket.MSG_PEEK) == b""
        except OSError:
            return True

    def _handle_logs(self, service_id: str):
        logger.info("/api/service/%s/logs endpoint called", service_id)
        heartbeat = self.manager.config.heartbeat_seconds

        with self.manager.streamer.subscribe(service_id) as session:
            self.send_response(200)
            self.send_header("Content-Type", "text/event-stream")
            self.send_header("Cache-Control", "no-cache")
            self.send_header("Connection", "keep-alive")
            self.send_header("X-Accel-Buffering", "no")
            self.send_header("Transfer-Encoding", "chunked")
            self._send_cors_headers()
            self.end_headers()
            # send_header("Connection", "keep-alive") cleared this
            self.close_connection = True

            try:
                self._write_chunk(format_event(f"Connected to log stream for {service_id}"))
                last_write = time.monotonic()
                # Check for a closed peer more often than keepalives are sent
                for item in session.events(heartbeat=min(heartbeat, DISCONNECT_CHECK_SECONDS)):
                    if item is None:
                        if self._client_gone():
                            break
                        if time.monotonic() - last_write >= heartbeat:
                            self._write_chunk(format_comment("keepalive"))
                            last_write = time.monotonic()
                        continue
                    event, chunk = item
                    self._write_chunk(format_event(chunk, event=event))
                    last_write = time.monotonic()
                else:
                    self.wfile.write(b"0\r\n\r\n")
            except CLIENT_GONE:
                pass
            except Exception:
                logger.exception("[%s] Log stream failed", service_id)

        logger.info("[%s] Log stream client disconnected", service_id)
