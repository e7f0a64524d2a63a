"""
Readiness reporting for the ingestion service.

The service is only useful when both the metadata database and the artifact
bucket answer; each is registered as a named async check and the probe folds
their results into a single report served by /ready.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class HealthCheckResult:
    """Outcome of probing one dependency."""

    name: str
    status: HealthStatus
    message: str | None = None
    latency_ms: float | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failed(cls, name: str, message: str) -> HealthCheckResult:
        return cls(name=name, status=HealthStatus.UNHEALTHY, message=message)


@dataclass
class HealthReport:
    """Combined view of every registered dependency."""

    status: HealthStatus
    checks: list[HealthCheckResult]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Render the report as the /ready response body."""
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "checks": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "message": c.message,
                    "latency_ms": c.latency_ms,
                    "details": c.details,
                }
                for c in self.checks
            ],
        }


HealthCheck = Callable[[], Awaitable[HealthCheckResult]]


def _overall(results: list[HealthCheckResult]) -> HealthStatus:
    statuses = {r.status for r in results}
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


class ReadinessProbe:
    """
    Runs the registered dependency checks concurrently.

    Usage:
        probe = get_readiness_probe()
        probe.register("database", check_database)
        probe.register("minio", check_minio)
        report = await probe.check_health()

    Attributes:
        timeout: Per-check time limit in seconds.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._checks: dict[str, HealthCheck] = {}

    def register(self, name: str, check: HealthCheck) -> None:
        """Add or replace the check stored under name."""
        self._checks[name] = check

    async def _run(self, name: str, check: HealthCheck) -> HealthCheckResult:
        loop = asyncio.get_running_loop()
        start = loop.time()
        try:
            result = await asyncio.wait_for(check(), timeout=self.timeout)
        except asyncio.TimeoutError:
            return HealthCheckResult.failed(
                name, f"Health check timed out after {self.timeout}s"
            )
        except Exception as e:
            return HealthCheckResult.failed(name, str(e))
        result.latency_ms = (loop.time() - start) * 1000
        return result

    async def check_health(self) -> HealthReport:
        """
        Probe every dependency.

        Returns:
            HealthReport listing checks in registration order. Any unhealthy
            check makes the whole report unhealthy.
        """
        results = await asyncio.gather(
            *(self._run(name, check) for name, check in self._checks.items())
        )
        results = list(results)
        return HealthReport(status=_overall(results), checks=results)


_readiness_probe: ReadinessProbe | None = None


def get_readiness_probe() -> ReadinessProbe:
    """Get the process-wide probe, creating it on first use."""
    global _readiness_probe
    if _readiness_probe is None:
        _readiness_probe = ReadinessProbe()
    return _readiness_probe
