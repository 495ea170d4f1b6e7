"""
Data models for DShub.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

ACTIONS = ("start", "stop", "restart")


class ServiceStatus(str, Enum):
    UP = "UP"
    DEGRADED = "DEGRADED"
    DOWN = "DOWN"


@dataclass(frozen=True)
class Service:
    id: str
    name: str
    base_url: str
    status: ServiceStatus = ServiceStatus.UP  # Optimistic until the first poll round lands
    info: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "baseUrl": self.base_url,
            "status": self.status.value,
            "info": dict(self.info),
        }


@dataclass(frozen=True)
class ActionRequest:
    action: str
    service_id: str


@dataclass(frozen=True)
class ActionResult:
    action: str
    service_id: str
    output: str
    success: bool = True

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "action": self.action,
            "serviceId": self.service_id,
            "output": self.output,
        }


@dataclass(frozen=True)
class HealthSnapshot:
    round: int  # 0 for the seeded registry, then one per applied poll round
    services: tuple
    completed_at: datetime = None

    def to_dict(self) -> dict:
        return {
            "round": self.round,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "services": [s.to_dict() for s in self.services],
        }


@dataclass
class Page:
    content: list
    total_pages: int = 0
    total_elements: int = 0
    size: int = None
    number: int = None

    @classmethod
    def from_payload(cls, payload) -> "Page":
        """Build a page from a backend payload; a bare JSON array is one full page."""
        if isinstance(payload, list):
            return cls(content=payload, total_pages=1, total_elements=len(payload))
        if not isinstance(payload, dict):
            return cls(content=[])
        content = payload.get("content")
        return cls(
            content=content if isinstance(content, list) else [],
            total_pages=payload.get("totalPages", 0),
            total_elements=payload.get("totalElements", 0),
            size=payload.get("size"),
            number=payload.get("number"),
        )
