"""Background tasks owned by the application lifespan."""

from __future__ import annotations

from catalog_service.infra.tasks.periodic import PeriodicTask

__all__ = ["PeriodicTask"]
