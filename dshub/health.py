"""
Health Poller - periodic liveness sweep over the service registry.

Every round checks all services concurrently against
``{base_url}/actuator/health`` and publishes a new immutable HealthSnapshot.
Rounds are numbered when they start; a round that finishes after a later
round was already applied is dropped, so a slow sweep never overwrites a
newer view.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

import dataclasses
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import requests

from .models import HealthSnapshot, Service, ServiceStatus

logger = logging.getLogger(__name__)

HEALTH_PATH = "/actuator/health"


def status_from_response(status_code: int, payload) -> ServiceStatus:
    """Map one health response to a status. Anything unexpected counts as DOWN."""
    if not 200 <= status_code < 300:
        return ServiceStatus.DOWN
    if not isinstance(payload, dict):
        return ServiceStatus.DOWN
    status = payload.get("status")
    if not isinstance(status, str):
        return ServiceStatus.DOWN
    status = status.upper()
    if status == "UP":
        return ServiceStatus.UP
    if status == "DEGRADED":
        return ServiceStatus.DEGRADED
    return ServiceStatus.DOWN


def check_service(service: Service, session, timeout: float = None) -> Service:
    url = f"{service.base_url}{HEALTH_PATH}"
    try:
        response = session.get(url, timeout=timeout)
        try:
            payload = response.json()
        except ValueError:
            payload = None
        status = status_from_response(response.status_code, payload)
    except requests.RequestException as e:
        logger.warning("Failed to fetch health for %s: %s", service.id, e)
        status = ServiceStatus.DOWN

    return dataclasses.replace(
        service,
        status=status,
        info={"lastChecked": datetime.now(timezone.utc).isoformat()},
    )


class HealthPoller:
    def __init__(self, services: list, session=None, interval: float = 30, timeout: float = None,
                 max_workers: int = 8):
        self.services = tuple(services)
        self.session = session or requests.Session()
        self.interval = interval
        self.timeout = timeout
        self.max_workers = max_workers
        self.lock = threading.Lock()
        self.running = False
        self._wakeup = threading.Event()
        self._thread: threading.Thread = None
        self._started_rounds = 0
        self._applied_round = 0
        self._snapshot = HealthSnapshot(round=0, services=self.services)
        self._subscribers = []

    def poll(self, services=None) -> list[Service]:
        """Check every service concurrently; the result keeps the input order."""
        services = list(self.services if services is None else services)
        if not services:
            return []
        workers = max(1, min(self.max_workers, len(services)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="health") as pool:
            return list(pool.map(lambda s: check_service(s, self.session, self.timeout), services))

    def run_round(self) -> HealthSnapshot:
        with self.lock:
            self._started_rounds += 1
            round_no = self._started_rounds

        results = self.poll()
        snapshot = HealthSnapshot(round=round_no, services=tuple(results), completed_at=datetime.now(timezone.utc))

        with self.lock:
            if round_no <= self._applied_round:
                logger.info("Dropping health round %d, round %d already applied", round_no, self._applied_round)
                return self._snapshot
            self._applied_round = round_no
            self._snapshot = snapshot
            subscribers = list(self._subscribers)

        down = [s.id for s in results if s.status != ServiceStatus.UP]
        logger.debug("Health round %d complete: %d services, not up: %s", round_no, len(results), down or "none")
        for callback in subscribers:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Health snapshot subscriber failed")
        return snapshot

    def refresh(self) -> HealthSnapshot:
        return self.run_round()

    def snapshot(self) -> HealthSnapshot:
        with self.lock:
            return self._snapshot

    def subscribe(self, callback):
        """Call ``callback(snapshot)`` after every applied round; returns an unsubscribe function."""
        with self.lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self.lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)
        return unsubscribe

    def start(self):
        if self.running:
            logger.warning("Health poller already running")
            return
        self.running = True
        self._wakeup.clear()
        self._thread = threading.Thread(target=self._poll_loop, name="health-poller", daemon=True)
        self._thread.start()
        logger.info("Health poller started: %d services, interval=%ss", len(self.services), self.interval)

    def stop(self):
        if not self.running:
            return
        self.running = False
        self._wakeup.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)
        logger.info("Health poller stopped")

    def _poll_loop(self):
        while self.running:
            try:
                self.run_round()
            except Exception:
                logger.exception("Health round failed")
            self._wakeup.wait(self.interval)
