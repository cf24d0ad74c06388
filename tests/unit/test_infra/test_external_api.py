"""Tests for the circuit-breaker protected external API service."""

from __future__ import annotations

import httpx
import pytest

from catalog_service.core.settings import ExternalApiSettings
from catalog_service.infra.external import (
    ExternalApiClient,
    ExternalApiError,
    ExternalApiService,
    is_retryable,
)
from catalog_service.infra.resilience import CircuitBreaker, CircuitState

URL = "https://external.test/v1/sync"


class Upstream:
    """Scripted responses for httpx.MockTransport."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def make_service(upstream: Upstream, *, retries: int = 2, threshold: int = 2, **overrides):
    settings = ExternalApiSettings(
        enabled=overrides.pop("enabled", True),
        url=overrides.pop("url", URL),
        retries=retries,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        breaker_failure_threshold=threshold,
        breaker_cooldown=60.0,
    )
    breaker = CircuitBreaker(
        name="external_a",
        failure_threshold=settings.breaker_failure_threshold,
        cooldown=settings.breaker_cooldown,
    )
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    return ExternalApiService(settings, breaker, http_client)


@pytest.mark.unit
class TestExternalApiClient:
    async def test_fetch_json_sends_accept_header(self):
        upstream = Upstream(httpx.Response(200, json={"ok": 1}))
        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as http:
            client = ExternalApiClient(http, URL, timeout=1.0)

            assert await client.fetch_json() == {"ok": 1}
        assert upstream.requests[0].headers["accept"] == "application/json"

    async def test_non_2xx_raises_with_truncated_body(self):
        upstream = Upstream(httpx.Response(502, text="x" * 1000))
        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as http:
            client = ExternalApiClient(http, URL, timeout=1.0)

            with pytest.raises(ExternalApiError) as exc_info:
                await client.fetch_json()
        assert exc_info.value.status_code == 502
        assert len(exc_info.value.body) == 300

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (ExternalApiError(400, ""), False),
            (ExternalApiError(401, ""), False),
            (ExternalApiError(403, ""), False),
            (ExternalApiError(404, ""), True),
            (ExternalApiError(503, ""), True),
            (httpx.ConnectError("refused"), True),
            (httpx.ReadTimeout("slow"), True),
        ],
    )
    def test_retry_classification(self, error, expected):
        assert is_retryable(error) is expected


@pytest.mark.unit
class TestExternalApiService:
    async def test_live_result(self):
        service = make_service(Upstream(httpx.Response(200, json={"items": [1]})))

        result = await service.fetch()

        assert result.to_dict() == {
            "ok": True,
            "enabled": True,
            "source": "live",
            "data": {"items": [1]},
        }

    async def test_retries_transient_errors(self):
        upstream = Upstream(
            httpx.Response(503, text="busy"),
            httpx.Response(200, json={"n": 1}),
        )
        service = make_service(upstream, retries=2)

        result = await service.fetch()

        assert result.result.source == "live"
        assert len(upstream.requests) == 2

    async def test_non_retryable_status_fails_fast(self):
        upstream = Upstream(httpx.Response(401, text="unauthorized"))
        service = make_service(upstream, retries=3)

        result = await service.fetch()

        assert result.result.source == "fallback"
        assert len(upstream.requests) == 1
        assert "401" in result.result.reason

    async def test_exhausted_retries_count_as_one_breaker_failure(self):
        upstream = Upstream(httpx.ConnectError("refused"))
        service = make_service(upstream, retries=2, threshold=5)

        result = await service.fetch()

        assert len(upstream.requests) == 3
        assert service.breaker.consecutive_failures == 1
        assert result.to_dict()["data"] == {"message": "External API A failed; fallback used"}

    async def test_opens_circuit_and_serves_last_good(self):
        upstream = Upstream(
            httpx.Response(200, json={"good": True}),
            httpx.Response(500, text="err"),
        )
        service = make_service(upstream, retries=0, threshold=2)

        await service.fetch()
        await service.fetch()
        await service.fetch()
        result = await service.fetch()

        assert service.breaker.state == CircuitState.OPEN
        body = result.to_dict()
        assert body["source"] == "fallback"
        assert body["fallbackReason"] == "circuit_open"
        assert body["data"] == {"good": True}

    async def test_open_without_history_uses_placeholder(self):
        service = make_service(Upstream(httpx.Response(500, text="err")), retries=0, threshold=1)

        await service.fetch()
        result = await service.fetch()

        assert result.result.reason == "circuit_open"
        assert result.result.data == {"message": "External API A temporarily unavailable"}

    async def test_disabled_never_calls_upstream(self):
        upstream = Upstream(httpx.Response(200, json={}))
        service = make_service(upstream, enabled=False)

        body = (await service.fetch()).to_dict()

        assert body == {
            "ok": True,
            "enabled": False,
            "source": "fallback",
            "fallbackReason": "disabled",
            "data": {"message": "External API A disabled"},
        }
        assert upstream.requests == []

    async def test_missing_url_is_disabled(self):
        service = make_service(Upstream(httpx.Response(200)), enabled=False, url=None)

        assert not service.enabled
        assert service.health()["enabled"] is False

    async def test_health(self):
        service = make_service(Upstream(httpx.Response(200, json={})))

        assert service.health() == {
            "enabled": True,
            "state": "closed",
            "consecutiveFailures": 0,
            "cooldownRemainingMs": 0,
            "hasFallback": False,
        }
