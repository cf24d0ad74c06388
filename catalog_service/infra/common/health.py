"""Connection status shared by the database and Redis clients."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class DependencyStatus(StrEnum):
    """Lifecycle of an optional backing service."""

    DISABLED = "disabled"
    CONNECTING = "connecting"
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class DependencyHealth:
    """Point-in-time view of a backing service.

    Example:
        DependencyHealth(enabled=True, status=DependencyStatus.DOWN, last_error="timeout")
    """

    enabled: bool
    status: DependencyStatus
    last_error: str | None = None

    @property
    def is_healthy(self) -> bool:
        """Disabled services count as healthy; enabled ones must be up."""
        return not self.enabled or self.status == DependencyStatus.UP

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "status": self.status.value,
            "lastError": self.last_error,
        }
