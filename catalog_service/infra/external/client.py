"""HTTP client for External API A."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Client errors that a retry cannot fix
NON_RETRYABLE_STATUS_CODES = frozenset({400, 401, 403})
_MAX_ERROR_BODY = 300


class ExternalApiError(Exception):
    """Non-2xx response from the external API."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body[:_MAX_ERROR_BODY]
        super().__init__(f"External API A error {status_code}: {self.body}")

    @property
    def retryable(self) -> bool:
        return self.status_code not in NON_RETRYABLE_STATUS_CODES


def is_retryable(error: Exception) -> bool:
    """Retry classifier: transport errors and timeouts retry, 400/401/403 fail fast."""
    if isinstance(error, ExternalApiError):
        return error.retryable
    return True


class ExternalApiClient:
    """Thin wrapper around ``httpx.AsyncClient`` for one JSON GET endpoint.

    Example:
            async with httpx.AsyncClient() as http:
            client = ExternalApiClient(http, "https://api.example.com/sync", timeout=3.0)
            payload = await client.fetch_json()
    """

    def __init__(self, http_client: httpx.AsyncClient, url: str, *, timeout: float) -> None:
        self.http_client = http_client
        self.url = url
        self.timeout = timeout

    async def fetch_json(self) -> Any:
        """GET the endpoint and decode its JSON body.

        Raises:
            ExternalApiError: On a non-2xx response.
            httpx.HTTPError: On timeouts and transport failures.
            ValueError: If the body is not valid JSON.
        """
        response = await self.http_client.get(
            self.url,
            headers={"accept": "application/json"},
            timeout=self.timeout,
        )
        if not response.is_success:
            raise ExternalApiError(response.status_code, response.text)
        return response.json()
