"""
Health Checker

Architectural Intent:
- Bounded polling of a service's HTTP health endpoint through the remote host
- The probe runs on the target (curl), so loopback bindings are reachable
- Exhausting every attempt is a definitive failure, never retried

Timing:
- Sleeps only between attempts: none after a success, attempts - 1 on timeout
"""

from __future__ import annotations
import logging
import time
from typing import Callable

from systemd_rollout.application.services import remote_commands
from systemd_rollout.domain.errors import HealthCheckError
from systemd_rollout.domain.ports.remote_session_port import RemoteSessionPort

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 60
DEFAULT_INTERVAL_SECONDS = 1.0
DEFAULT_EXPECTED_STATUS = 200


class HealthChecker:
    def __init__(
        self,
        attempts: int = DEFAULT_ATTEMPTS,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        expected_status: int = DEFAULT_EXPECTED_STATUS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {attempts}")
        if interval < 0:
            raise ValueError(f"interval cannot be negative, got {interval}")
        self.attempts = attempts
        self.interval = interval
        self.expected_status = expected_status
        self._sleep = sleep

    def probe(self, session: RemoteSessionPort, url: str) -> bool:
        result = session.run_command(remote_commands.http_status_probe(url))
        status = result.stdout.strip()
        if status == str(self.expected_status):
            return True
        logger.debug("Health probe %s returned %r (exit %d)", url, status, result.exit_status)
        return False

    def wait_until_healthy(self, session: RemoteSessionPort, url: str) -> int:
        """Poll until healthy. Returns the number of attempts used."""
        logger.info(
            "Health check on %s (expected=%s, attempts=%d, interval=%ss)",
            url,
            self.expected_status,
            self.attempts,
            self.interval,
        )
        for attempt in range(1, self.attempts + 1):
            if self.probe(session, url):
                logger.info("Health check OK after %d attempt(s)", attempt)
                return attempt
            if attempt < self.attempts:
                self._sleep(self.interval)

        raise HealthCheckError(
            f"{url} did not return {self.expected_status} after {self.attempts} attempt(s)"
        )
