"""Metrics infrastructure for Prometheus monitoring."""

from __future__ import annotations

from prometheus_client import generate_latest

from catalog_service.infra.metrics import business, tracking
from catalog_service.infra.metrics.prometheus import REGISTRY

__all__ = [
    "REGISTRY",
    "business",
    "generate_latest",
    "tracking",
]
