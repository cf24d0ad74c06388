"""External API A: HTTP client and breaker-protected service."""

from __future__ import annotations

from catalog_service.infra.external.client import (
    NON_RETRYABLE_STATUS_CODES,
    ExternalApiClient,
    ExternalApiError,
    is_retryable,
)
from catalog_service.infra.external.service import (
    ExternalApiService,
    ExternalSyncResult,
)

__all__ = [
    "NON_RETRYABLE_STATUS_CODES",
    "ExternalApiClient",
    "ExternalApiError",
    "ExternalApiService",
    "ExternalSyncResult",
    "is_retryable",
]
