"""
Process Runner - runs the start/stop/restart scripts of a service.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

import logging
import re
import subprocess
from pathlib import Path

from .errors import BadRequest, ScriptExecutionError
from .models import ACTIONS, ActionRequest, ActionResult

logger = logging.getLogger(__name__)

SERVICE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_service_id(service_id: str, allowed: set = None) -> str:
    """Reject ids that are empty, carry path or shell characters, or are not registered."""
    if not service_id:
        raise BadRequest("serviceId required")
    if not SERVICE_ID_PATTERN.match(service_id):
        raise BadRequest(f"Invalid serviceId: {service_id!r}")
    if allowed is not None and service_id not in allowed:
        raise BadRequest(f"Unknown serviceId: {service_id}")
    return service_id


class ProcessRunner:
    def __init__(self, script_root, allowed_ids: set = None, timeout: float = None):
        self.script_root = Path(script_root)
        self.allowed_ids = allowed_ids
        self.timeout = timeout

    @property
    def bin_dir(self) -> Path:
        return self.script_root / "backend" / "_bin"

    def script_path(self, action: str, service_id: str) -> Path:
        return self.bin_dir / f"{action}_{service_id}.sh"

    def run_action(self, action: str, service_id: str) -> ActionResult:
        if action not in ACTIONS:
            raise BadRequest(f"Unknown action: {action}")
        validate_service_id(service_id, self.allowed_ids)
        return self.run(ActionRequest(action=action, service_id=service_id))

    def run(self, request: ActionRequest) -> ActionResult:
        script = self.script_path(request.action, request.service_id)
        logger.info("Executing: %s (cwd=%s)", script, self.bin_dir)

        try:
            result = subprocess.run(
                [str(script)],
                cwd=self.bin_dir,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error("Script %s timed out after %ss", script, self.timeout)
            raise ScriptExecutionError(f"Command timed out after {self.timeout}s: {script}")
        except OSError as e:
            # Missing, non-executable, or unreadable script; surfaced like any other failure
            logger.error("Error: %s", e)
            raise ScriptExecutionError(f"Command failed: {script}\n{e}")

        if result.returncode != 0:
            message = f"Command failed: {script} (exit code {result.returncode})"
            if result.stderr:
                message = f"{message}\n{result.stderr}"
            logger.error("Error: %s", message)
            raise ScriptExecutionError(message)
        if result.stderr:
            logger.error("Stderr: %s", result.stderr)
            raise ScriptExecutionError(result.stderr)

        return ActionResult(
            action=request.action,
            service_id=request.service_id,
            output=result.stdout.strip(),
        )
