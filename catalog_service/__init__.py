"""Catalog service: cached, keyset-paginated product API."""

__version__ = "1.0.0"
