# marketplace/services/health_checker.py

"""Backend connectivity health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass

from marketplace.config.settings import Settings
from marketplace.services.backend_client import BackendClient

logger = logging.getLogger("marketplace.health")


@dataclass
class HealthResult:
    """Result of a single endpoint probe."""

    probe_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def default_probes() -> list[dict[str, str]]:
    """REST table read and service-status RPC, as probe configs."""
    return [
        {
            "id": "rest",
            "path": f"{Settings.HEALTH_TABLE}?select=id&limit=1",
        },
        {
            "id": "rpc",
            "path": f"rpc/{Settings.HEALTH_RPC}",
        },
    ]


def probe_endpoint(
    client: BackendClient, probe: dict[str, str],
) -> HealthResult:
    """Probe a single backend endpoint for connectivity."""
    probe_id = probe["id"]
    start = time.monotonic()
    try:
        resp = client.probe(probe["path"])
        elapsed_ms = (time.monotonic() - start) * 1000

        if resp.status_code != 200:
            return HealthResult(
                probe_id=probe_id,
                status="down",
                latency_ms=elapsed_ms,
                message=f"HTTP {resp.status_code}",
            )

        if elapsed_ms > Settings.SLOW_THRESHOLD_MS:
            return HealthResult(
                probe_id=probe_id,
                status="slow",
                latency_ms=elapsed_ms,
                message="High latency",
            )

        return HealthResult(
            probe_id=probe_id,
            status="ok",
            latency_ms=elapsed_ms,
            message="",
        )

    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(
            probe_id=probe_id,
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )


class HealthChecker:
    """Runs concurrent probes against the backend."""

    def __init__(self, client: BackendClient) -> None:
        self.client = client
        self.probes = default_probes()

    async def check_all(self) -> list[HealthResult]:
        """Probe every endpoint concurrently."""
        tasks = [
            asyncio.to_thread(probe_endpoint, self.client, probe)
            for probe in self.probes
        ]
        results: list[HealthResult] = list(
            await asyncio.gather(*tasks)
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.probe_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
