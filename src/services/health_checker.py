# src/services/health_checker.py

"""Store connectivity health checker."""

import asyncio
import importlib
import logging
import time
from dataclasses import dataclass

from src.config.settings import Settings

logger = logging.getLogger("grocery_compare.health")

_HEALTH_TIMEOUT = 10  # seconds per store
_SLOW_MS = 5000


@dataclass
class HealthResult:
    """Result of a single store health check."""

    source_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def probe_source(source: dict[str, str]) -> HealthResult:
    """Probe one store's storefront homepage for connectivity."""
    source_id = source["id"]
    dotted_path = source["scraper"]

    try:
        module_path, class_name = dotted_path.rsplit(".", 1)
        module = importlib.import_module(module_path)
        client = getattr(module, class_name)()
    except Exception as exc:
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=0.0,
            message=f"Failed to load client: {exc}",
        )

    start = time.monotonic()
    try:
        homepage = client._get_homepage()
        resp = client.session.get(
            homepage,
            headers={**client.settings.DEFAULT_HEADERS, "Referer": homepage},
            timeout=_HEALTH_TIMEOUT,
        )
        elapsed_ms = (time.monotonic() - start) * 1000
    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )

    if resp.status_code != 200:
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=elapsed_ms,
            message=f"HTTP {resp.status_code}",
        )
    if elapsed_ms > _SLOW_MS:
        return HealthResult(
            source_id=source_id,
            status="slow",
            latency_ms=elapsed_ms,
            message="High latency",
        )
    return HealthResult(
        source_id=source_id,
        status="ok",
        latency_ms=elapsed_ms,
        message="",
    )


class HealthChecker:
    """Runs concurrent health probes against all stores."""

    def __init__(self, sources: list[dict[str, str]] | None = None) -> None:
        self.sources = sources or Settings.AVAILABLE_SOURCES

    async def check_all(self) -> list[HealthResult]:
        """Probe every registered store concurrently."""
        results: list[HealthResult] = list(
            await asyncio.gather(
                *(asyncio.to_thread(probe_source, s) for s in self.sources)
            )
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.source_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
