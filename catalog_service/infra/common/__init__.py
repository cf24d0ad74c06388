"""Types shared across infrastructure clients."""

from __future__ import annotations

from catalog_service.infra.common.health import DependencyHealth, DependencyStatus

__all__ = ["DependencyHealth", "DependencyStatus"]
