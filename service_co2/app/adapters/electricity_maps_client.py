"""
Electricity Maps client for the CO2 service.
"""

import asyncio
import functools
from contextlib import nullcontext
from typing import Any, Dict, Mapping, Optional

import httpx

from shared.logging import get_logger
from shared.errors import ParseError, UpstreamError, UpstreamTimeoutError
from shared.metrics import MetricsCollector
from ..caching.ttl_cache import TTLCache
from .query_builder import Location, build_query, location_from_config


LATEST_PATH = "/v3/carbon-intensity/latest"
HISTORY_PATH = "/v3/carbon-intensity/history"

_MISSING = object()


class ElectricityMapsClient:
    """Single entry point for every Electricity Maps call.

    Results are cached per ``path?query`` for the cache TTL. Upstream
    failures are raised as ``UpstreamError``/``UpstreamTimeoutError`` and
    undecodable bodies as ``ParseError``; none of them touch the cache and
    there are no retries.

    With ``single_flight`` enabled, concurrent misses on the same key share
    one upstream request. Otherwise each miss issues its own request and the
    last response written wins.
    """

    service_label = "Electricity Maps"

    def __init__(
        self,
        base_url: str,
        auth_token: str,
        location: Location,
        cache: Optional[TTLCache] = None,
        *,
        timeout: Optional[float] = 10.0,
        single_flight: bool = False,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.auth_token = auth_token
        self.location = location
        self.cache = cache if cache is not None else TTLCache()
        self.timeout = timeout or None
        self.single_flight = single_flight
        self.metrics = metrics
        self.logger = get_logger("co2.electricity_maps")

        self._transport = transport
        self._inflight: Dict[str, "asyncio.Future[Any]"] = {}

    @classmethod
    def from_config(
        cls,
        config: Any,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ElectricityMapsClient":
        """Build a client from service configuration."""
        return cls(
            config.em_base_url,
            config.em_auth_token,
            location_from_config(config),
            TTLCache(ttl_seconds=config.cache_ttl_seconds),
            timeout=config.upstream_timeout_seconds,
            single_flight=config.single_flight,
            metrics=metrics,
            transport=transport,
        )

    async def get_latest(self) -> Any:
        """Fetch the latest carbon intensity reading."""
        return await self.fetch(LATEST_PATH)

    async def get_history(self, hours: float) -> Any:
        """Fetch the carbon intensity history for the past ``hours``."""
        return await self.fetch(HISTORY_PATH, {"pastHours": hours})

    async def fetch(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Return the decoded JSON for path, from cache when possible."""
        query = build_query(self.location, params)
        cache_key = f"{path}?{query}"

        cached = self.cache.get(cache_key, _MISSING)
        if cached is not _MISSING:
            self.logger.debug("Cache hit", key=cache_key)
            self._count("cache_hits_total")
            return cached

        self._count("cache_misses_total")

        if not self.single_flight:
            return await self._request(path, query, cache_key)

        pending = self._inflight.get(cache_key)
        if pending is None:
            pending = asyncio.ensure_future(self._request(path, query, cache_key))
            self._inflight[cache_key] = pending
            pending.add_done_callback(functools.partial(self._release, cache_key))
        else:
            self.logger.debug("Joining in-flight upstream request", key=cache_key)

        return await asyncio.shield(pending)

    def in_flight(self) -> int:
        """Number of upstream requests currently shared by waiters."""
        return len(self._inflight)

    def _release(self, cache_key: str, task: "asyncio.Future[Any]") -> None:
        if self._inflight.get(cache_key) is task:
            del self._inflight[cache_key]
        if not task.cancelled():
            # Mark the outcome retrieved; waiters re-raise it themselves.
            task.exception()

    async def _request(self, path: str, query: str, cache_key: str) -> Any:
        """Issue one upstream GET, then decode and cache the body."""
        url = f"{self.base_url}{path}?{query}"
        try:
            with self._timed(path):
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    response = await client.get(url, headers={"auth-token": self.auth_token})
        except httpx.TimeoutException as exc:
            self._record_upstream(path, "timeout")
            self.logger.error("Electricity Maps request timed out", path=path, timeout=self.timeout)
            raise UpstreamTimeoutError(
                f"{self.service_label} did not answer within {self.timeout}s",
                details={"path": path}
            ) from exc
        except httpx.HTTPError as exc:
            self._record_upstream(path, "error")
            self.logger.error("Electricity Maps request failed", path=path, error=str(exc))
            raise UpstreamError(
                f"{self.service_label} unreachable: {exc}",
                details={"path": path}
            ) from exc

        self._record_upstream(path, str(response.status_code))

        if response.status_code >= 400:
            self.logger.error(
                "Electricity Maps returned an error status",
                path=path,
                status_code=response.status_code,
                response=response.text
            )
            raise UpstreamError.from_status(self.service_label, response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            self.logger.error("Electricity Maps returned malformed JSON", path=path, error=str(exc))
            raise ParseError(
                f"{self.service_label} returned malformed JSON",
                details={"path": path, "error": str(exc)}
            ) from exc

        self.cache.set(cache_key, data)
        self.logger.info("Electricity Maps response cached", key=cache_key)
        return data

    def _count(self, metric_name: str) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, cache_type="electricity_maps")

    def _timed(self, path: str):
        if not self.metrics:
            return nullcontext()
        return self.metrics.time_operation("upstream_request_duration_seconds", path=path)

    def _record_upstream(self, path: str, status: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("upstream_requests_total", path=path, status=status)
