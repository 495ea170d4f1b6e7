"""
Error types for DShub.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""


class DshubError(Exception):
    """Base error. ``status_code`` is the HTTP status the web handler answers with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class BadRequest(DshubError):
    status_code = 400


class ScriptExecutionError(DshubError):
    """A start/stop/restart script failed, was missing, or wrote to stderr."""


class StreamError(DshubError):
    """The follow process for a log stream could not be started."""


class ValidationError(DshubError):
    """A required field was missing on an admin payload."""

    status_code = 400


class ApiError(DshubError):
    """An admin backend answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
