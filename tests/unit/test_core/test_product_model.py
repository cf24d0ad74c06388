"""Tests for the product model's full-text search expression."""

from __future__ import annotations

import pytest
from sqlalchemy import func
from sqlalchemy.dialects import postgresql

from catalog_service.core.models.product import SEARCH_CONFIG, Product, search_document


@pytest.mark.unit
class TestSearchDocument:
    def test_query_and_index_use_the_english_configuration(self):
        predicate = search_document().bool_op("@@")(func.plainto_tsquery(SEARCH_CONFIG, "fresh milk"))

        sql = str(predicate.compile(dialect=postgresql.dialect()))

        assert sql.count("'english'::regconfig") == 2
        assert "to_tsvector" in sql
        assert "plainto_tsquery" in sql

    def test_search_index_uses_gin(self):
        index = next(i for i in Product.__table__.indexes if i.name == "ix_products_search")

        assert index.dialect_options["postgresql"]["using"] == "gin"
