"""Circuit-breaker protected access to External API A.

The call path is ``breaker -> retry -> HTTP GET``. One breaker attempt covers
every retry of a call, so the breaker counts a call as failed only after the
retry budget is spent (or a non-retryable error short-circuits it).
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from catalog_service.infra.external.client import ExternalApiClient, is_retryable
from catalog_service.infra.metrics.tracking import track_external_service_call
from catalog_service.infra.resilience.circuit_breaker import BreakerResult
from catalog_service.utils.retry import with_retry

if TYPE_CHECKING:
    import httpx

    from catalog_service.core.settings.external import ExternalApiSettings
    from catalog_service.infra.resilience.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

SERVICE_NAME = "external_a"
DISABLED_REASON = "disabled"

DISABLED_PLACEHOLDER = {"message": "External API A disabled"}
OPEN_PLACEHOLDER = {"message": "External API A temporarily unavailable"}
FAILURE_PLACEHOLDER = {"message": "External API A failed; fallback used"}


@dataclass(frozen=True)
class ExternalSyncResult:
    """What ``/external-a/sync`` returns."""

    enabled: bool
    result: BreakerResult

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "ok": True,
            "enabled": self.enabled,
            "source": self.result.source,
        }
        if self.result.reason is not None:
            body["fallbackReason"] = self.result.reason
        body["data"] = self.result.data
        return body


class ExternalApiService:
    """Fetches External API A through the circuit breaker; never raises."""

    def __init__(
        self,
        settings: ExternalApiSettings,
        breaker: CircuitBreaker,
        http_client: httpx.AsyncClient,
    ) -> None:
        self.settings = settings
        self.breaker = breaker
        self.client = (
            ExternalApiClient(http_client, settings.url, timeout=settings.timeout)
            if settings.url
            else None
        )
        self._endpoint = (urlsplit(settings.url).path or "/") if settings.url else "/"

    @property
    def enabled(self) -> bool:
        return self.settings.enabled and self.client is not None

    async def _fetch_once(self) -> Any:
        assert self.client is not None
        async with track_external_service_call(SERVICE_NAME, self._endpoint):
            return await self.client.fetch_json()

    async def _fetch_with_retry(self) -> Any:
        try:
            return await with_retry(
                self._fetch_once,
                retries=self.settings.retries,
                base_delay=self.settings.retry_base_delay,
                max_delay=self.settings.retry_max_delay,
                should_retry=is_retryable,
                name=SERVICE_NAME,
            )
        except Exception as e:
            logger.warning(
                "External API A request failed",
                extra={
                    "error": str(e),
                    "consecutive_failures": self.breaker.consecutive_failures + 1,
                    "threshold": self.breaker.failure_threshold,
                    "state": self.breaker.state.value,
                },
            )
            raise

    async def fetch(self) -> ExternalSyncResult:
        """Fetch the live payload, or a fallback tagged with its reason."""
        if not self.enabled:
            return ExternalSyncResult(
                enabled=False,
                result=BreakerResult(
                    source="fallback",
                    data=DISABLED_PLACEHOLDER,
                    reason=DISABLED_REASON,
                ),
            )

        result = await self.breaker.execute(
            self._fetch_with_retry,
            open_placeholder=OPEN_PLACEHOLDER,
            failure_placeholder=FAILURE_PLACEHOLDER,
        )
        return ExternalSyncResult(enabled=True, result=result)

    def health(self) -> dict[str, Any]:
        return {"enabled": self.enabled, **self.breaker.health()}
