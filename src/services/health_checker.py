# src/services/health_checker.py

"""Source connectivity health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

from curl_cffi import requests as curl_requests

from src.config.settings import Settings

logger = logging.getLogger("dealfeed.health")

_HEALTH_TIMEOUT = 10  # seconds per source
_SLOW_MS = 5000


@dataclass
class HealthResult:
    """Result of a single source health check."""

    source_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def _homepage(source: dict[str, Any]) -> str:
    """URL whose reachability stands for the source."""
    if source["id"] == Settings.SNAPSHOT_SOURCE["id"]:
        return Settings.SNAPSHOT_URL
    return str(source.get("base_url", ""))


def check_source(source: dict[str, Any]) -> HealthResult:
    """GET a source's homepage once and classify the answer."""
    source_id = source["id"]
    url = _homepage(source)
    if not url:
        return HealthResult(source_id, "down", 0.0, "No URL configured")

    start = time.monotonic()
    try:
        resp = curl_requests.get(
            url,
            headers={**Settings.DEFAULT_HEADERS, "Referer": url},
            impersonate=Settings.IMPERSONATE_BROWSER,
            timeout=_HEALTH_TIMEOUT,
        )
    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(source_id, "down", elapsed_ms, str(exc)[:80])
    elapsed_ms = (time.monotonic() - start) * 1000

    if resp.status_code != 200:
        return HealthResult(
            source_id, "down", elapsed_ms, f"HTTP {resp.status_code}"
        )
    if elapsed_ms > _SLOW_MS:
        return HealthResult(source_id, "slow", elapsed_ms, "High latency")
    return HealthResult(source_id, "ok", elapsed_ms, "")


def check_snapshot(url: str) -> dict[str, Any]:
    """Report whether the remote snapshot document is reachable."""
    if not url:
        return {"url": url, "error": "SNAPSHOT_URL not configured", "ok": False}
    try:
        resp = curl_requests.get(
            url,
            impersonate=Settings.IMPERSONATE_BROWSER,
            timeout=_HEALTH_TIMEOUT,
        )
    except Exception as exc:
        logger.warning("Snapshot check failed for %s: %s", url, exc)
        return {"url": url, "error": str(exc), "ok": False}
    return {
        "url": url,
        "status": resp.status_code,
        "statusText": resp.reason,
        "ok": 200 <= resp.status_code < 300,
    }


class HealthChecker:
    """Runs concurrent health checks against all sources."""

    def __init__(
        self, sources: list[dict[str, Any]] | None = None
    ) -> None:
        self.sources = (
            sources if sources is not None else Settings.active_sources()
        )

    async def check_all(self) -> list[HealthResult]:
        """Check every registered source concurrently."""
        tasks = [
            asyncio.to_thread(check_source, src)
            for src in self.sources
        ]
        results: list[HealthResult] = list(
            await asyncio.gather(*tasks)
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
