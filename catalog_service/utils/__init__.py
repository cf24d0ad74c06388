"""Utility modules for common operations.

This package provides reusable utilities for:
- Retry with bounded exponential backoff
- Deterministic hashing of request parameters
"""

from catalog_service.utils.hashing import stable_hash, stable_stringify

__all__ = [
    "stable_hash",
    "stable_stringify",
]
