"""
Unit tests for the Electricity Maps client.
"""

import asyncio
from typing import List

import httpx
import pytest

from shared.errors import ParseError, UpstreamError, UpstreamTimeoutError
from shared.metrics import MetricsCollector
from service_co2.app.adapters.electricity_maps_client import (
    ElectricityMapsClient,
    HISTORY_PATH,
    LATEST_PATH,
)
from service_co2.app.adapters.query_builder import CoordinateLocation, ZoneLocation
from service_co2.app.caching.ttl_cache import TTLCache


LATEST_PAYLOAD = {"zone": "AT", "carbonIntensity": 250, "updatedAt": "2024-01-01T12:00:00.000Z"}


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordingUpstream:
    """MockTransport handler that records every request it serves."""

    def __init__(self, status_code: int = 200, json_body=None, text: str = None, delay: float = 0.0):
        self.status_code = status_code
        self.json_body = LATEST_PAYLOAD if json_body is None and text is None else json_body
        self.text = text
        self.delay = delay
        self.requests: List[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body)


def make_client(upstream, location=None, cache=None, **kwargs) -> ElectricityMapsClient:
    if cache is None:
        cache = TTLCache(clock=FakeClock())
    return ElectricityMapsClient(
        "https://api.electricitymap.org/",
        "secret-token",
        location or ZoneLocation("AT"),
        cache,
        transport=httpx.MockTransport(upstream),
        **kwargs
    )


class TestElectricityMapsClient:
    """Test cases for ElectricityMapsClient."""

    @pytest.fixture
    def upstream(self):
        return RecordingUpstream()

    @pytest.fixture
    def client(self, upstream):
        return make_client(upstream)

    @pytest.mark.asyncio
    async def test_fetch_builds_url_and_auth_header(self, client, upstream):
        data = await client.fetch(LATEST_PATH)

        assert data == LATEST_PAYLOAD
        assert len(upstream.requests) == 1
        request = upstream.requests[0]
        assert request.method == "GET"
        assert str(request.url) == "https://api.electricitymap.org/v3/carbon-intensity/latest?zone=AT"
        assert request.headers["auth-token"] == "secret-token"

    @pytest.mark.asyncio
    async def test_history_uses_coordinates_and_past_hours(self, upstream):
        client = make_client(upstream, location=CoordinateLocation(48.2, 16.37))

        await client.get_history(24)

        url = str(upstream.requests[0].url)
        assert url.startswith("https://api.electricitymap.org" + HISTORY_PATH + "?")
        assert "lat=48.2" in url
        assert "lon=16.37" in url
        assert "pastHours=24" in url

    @pytest.mark.asyncio
    async def test_cache_hit_skips_network(self, client, upstream):
        first = await client.fetch(LATEST_PATH)
        second = await client.fetch(LATEST_PATH)

        assert first == second
        assert len(upstream.requests) == 1
        assert len(client.cache) == 1
        assert client.cache.get(LATEST_PATH + "?zone=AT") == LATEST_PAYLOAD

    @pytest.mark.asyncio
    async def test_distinct_params_use_distinct_entries(self, client, upstream):
        await client.fetch(HISTORY_PATH, {"pastHours": 24})
        await client.fetch(HISTORY_PATH, {"pastHours": 48})
        await client.fetch(HISTORY_PATH, {"pastHours": 24.0})

        assert len(upstream.requests) == 2
        assert len(client.cache) == 2

    @pytest.mark.asyncio
    async def test_expired_entry_is_refetched(self, upstream):
        clock = FakeClock()
        client = make_client(upstream, cache=TTLCache(ttl_seconds=60, clock=clock))

        await client.fetch(LATEST_PATH)
        clock.now += 61
        await client.fetch(LATEST_PATH)

        assert len(upstream.requests) == 2

    @pytest.mark.asyncio
    async def test_falsy_payload_is_cached(self):
        upstream = RecordingUpstream(json_body=[])
        client = make_client(upstream)

        assert await client.fetch(LATEST_PATH) == []
        assert await client.fetch(LATEST_PATH) == []
        assert len(upstream.requests) == 1

    @pytest.mark.asyncio
    async def test_error_status_raises_and_leaves_cache_untouched(self):
        upstream = RecordingUpstream(status_code=500, text="internal upstream failure")
        client = make_client(upstream)

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch(LATEST_PATH)

        assert "500" in str(exc_info.value)
        assert "internal upstream failure" in str(exc_info.value)
        assert exc_info.value.status == 500
        assert exc_info.value.body == "internal upstream failure"
        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_error_status_is_not_retried(self):
        upstream = RecordingUpstream(status_code=401, text='{"error":"unauthorized"}')
        client = make_client(upstream)

        with pytest.raises(UpstreamError):
            await client.fetch(LATEST_PATH)
        with pytest.raises(UpstreamError):
            await client.fetch(LATEST_PATH)

        assert len(upstream.requests) == 2

    @pytest.mark.asyncio
    async def test_failed_refresh_does_not_serve_stale(self):
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=60, clock=clock)
        good = make_client(RecordingUpstream(), cache=cache)
        await good.fetch(LATEST_PATH)

        clock.now += 61
        failing = make_client(RecordingUpstream(status_code=503, text="down"), cache=cache)

        with pytest.raises(UpstreamError):
            await failing.fetch(LATEST_PATH)
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_malformed_json_raises_parse_error(self):
        upstream = RecordingUpstream(text="<html>not json</html>")
        client = make_client(upstream)

        with pytest.raises(ParseError):
            await client.fetch(LATEST_PATH)
        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_timeout_raises_upstream_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler)

        with pytest.raises(UpstreamTimeoutError) as exc_info:
            await client.fetch(LATEST_PATH)
        assert exc_info.value.code == "UPSTREAM_TIMEOUT"
        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_transport_error_raises_upstream_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch(LATEST_PATH)
        assert exc_info.value.status is None
        assert "connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_concurrent_cold_fetches_return_equal_data(self):
        upstream = RecordingUpstream(delay=0.01)
        client = make_client(upstream)

        first, second = await asyncio.gather(client.fetch(LATEST_PATH), client.fetch(LATEST_PATH))

        assert first == second == LATEST_PAYLOAD
        assert 1 <= len(upstream.requests) <= 2
        assert len(client.cache) == 1

    @pytest.mark.asyncio
    async def test_single_flight_shares_one_request(self):
        upstream = RecordingUpstream(delay=0.01)
        client = make_client(upstream, single_flight=True)

        results = await asyncio.gather(*(client.fetch(LATEST_PATH) for _ in range(5)))

        assert all(result == LATEST_PAYLOAD for result in results)
        assert len(upstream.requests) == 1
        await asyncio.sleep(0)
        assert client.in_flight() == 0

    @pytest.mark.asyncio
    async def test_single_flight_shares_failure(self):
        upstream = RecordingUpstream(status_code=500, text="boom", delay=0.01)
        client = make_client(upstream, single_flight=True)

        results = await asyncio.gather(
            client.fetch(LATEST_PATH),
            client.fetch(LATEST_PATH),
            return_exceptions=True
        )

        assert all(isinstance(result, UpstreamError) for result in results)
        assert len(upstream.requests) == 1
        await asyncio.sleep(0)
        assert client.in_flight() == 0

    @pytest.mark.asyncio
    async def test_metrics_count_hits_and_misses(self, upstream):
        metrics = MetricsCollector("co2")
        client = make_client(upstream, metrics=metrics)

        await client.fetch(LATEST_PATH)
        await client.fetch(LATEST_PATH)

        registry = metrics.registry
        assert registry.get_sample_value("cache_misses_total", {"cache_type": "electricity_maps"}) == 1
        assert registry.get_sample_value("cache_hits_total", {"cache_type": "electricity_maps"}) == 1
        assert registry.get_sample_value(
            "upstream_requests_total", {"path": LATEST_PATH, "status": "200"}
        ) == 1
        assert registry.get_sample_value(
            "upstream_request_duration_seconds_count", {"path": LATEST_PATH}
        ) == 1

    def test_zero_timeout_disables_deadline(self, upstream):
        client = make_client(upstream, timeout=0)

        assert client.timeout is None
