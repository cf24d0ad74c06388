"""Database models package."""

from __future__ import annotations

from .product import Product, search_document

__all__ = ["Product", "search_document"]
