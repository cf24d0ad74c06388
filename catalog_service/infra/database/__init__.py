"""Relational storage: declarative base, engine and sessions."""

from __future__ import annotations

from catalog_service.infra.database.base import NAMING_CONVENTION, Base
from catalog_service.infra.database.session import Database, instrument_engine

__all__ = ["NAMING_CONVENTION", "Base", "Database", "instrument_engine"]
