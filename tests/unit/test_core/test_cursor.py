"""Tests for keyset pagination cursor encoding and decoding."""

from __future__ import annotations

import base64
from datetime import UTC, datetime
from decimal import Decimal
import json

import pytest

from catalog_service.core.exceptions import InvalidCursorError
from catalog_service.core.pagination import CursorCodec, DateCursor, NumericCursor, TextCursor


def _raw_token(payload: object) -> str:
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode().rstrip("=")


@pytest.mark.unit
class TestCursorCodec:
    def test_encode_is_unpadded_base64url_json(self):
        token = CursorCodec.encode("price", "asc", NumericCursor(Decimal("10.00"), 1))

        assert "=" not in token
        padded = token + "=" * (-len(token) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded))
        assert payload == {"sortBy": "price", "sortOrder": "asc", "v": "10.00", "id": 1}

    def test_numeric_cursor_keeps_scale(self):
        token = CursorCodec.encode("price", "desc", NumericCursor(Decimal("19.90"), 7))

        cursor = CursorCodec.decode(
            token, sort_by="price", sort_order="desc", cursor_type=NumericCursor,
        )

        assert cursor == NumericCursor(Decimal("19.90"), 7)
        assert str(cursor.value) == "19.90"

    def test_date_cursor_keeps_microseconds(self):
        created = datetime(2024, 3, 1, 8, 30, 15, 123456, tzinfo=UTC)
        token = CursorCodec.encode("createdAt", "desc", DateCursor(created, 42))

        cursor = CursorCodec.decode(
            token, sort_by="createdAt", sort_order="desc", cursor_type=DateCursor,
        )

        assert cursor == DateCursor(created, 42)

    def test_naive_date_is_read_as_utc(self):
        token = _raw_token(
            {"sortBy": "createdAt", "sortOrder": "asc", "v": "2024-03-01T08:30:15", "id": 1},
        )

        cursor = CursorCodec.decode(
            token, sort_by="createdAt", sort_order="asc", cursor_type=DateCursor,
        )

        assert cursor.value == datetime(2024, 3, 1, 8, 30, 15, tzinfo=UTC)

    def test_text_cursor(self):
        token = CursorCodec.encode("name", "asc", TextCursor("Café lamp", 3))

        cursor = CursorCodec.decode(token, sort_by="name", sort_order="asc", cursor_type=TextCursor)

        assert cursor == TextCursor("Café lamp", 3)

    @pytest.mark.parametrize(
        ("sort_by", "sort_order"),
        [("price", "desc"), ("name", "asc"), ("createdAt", "asc")],
    )
    def test_rejects_cursor_minted_for_another_sort(self, sort_by, sort_order):
        token = CursorCodec.encode("price", "asc", NumericCursor(Decimal("1.00"), 1))

        with pytest.raises(InvalidCursorError) as exc_info:
            CursorCodec.decode(
                token, sort_by=sort_by, sort_order=sort_order, cursor_type=TextCursor,
            )
        assert exc_info.value.status_code == 400
        assert exc_info.value.type == "invalid-cursor"

    @pytest.mark.parametrize(
        "token",
        [
            "not base64 at all!",
            base64.urlsafe_b64encode(b"not json").decode(),
            _raw_token([1, 2, 3]),
            _raw_token({"sortBy": "price", "sortOrder": "asc", "v": "1.00"}),
            _raw_token({"sortBy": "price", "sortOrder": "sideways", "v": "1.00", "id": 1}),
            _raw_token({"sortBy": "price", "sortOrder": "asc", "v": "1.00", "id": "1"}),
            _raw_token({"sortBy": "price", "sortOrder": "asc", "v": "1", "id": 1, "x": 0}),
        ],
    )
    def test_rejects_malformed_tokens(self, token):
        with pytest.raises(InvalidCursorError):
            CursorCodec.decode(
                token, sort_by="price", sort_order="asc", cursor_type=NumericCursor,
            )

    @pytest.mark.parametrize(
        ("sort_by", "cursor_type", "value"),
        [
            ("price", NumericCursor, "ten"),
            ("price", NumericCursor, "NaN"),
            ("price", NumericCursor, True),
            ("createdAt", DateCursor, "yesterday"),
            ("createdAt", DateCursor, 1700000000),
            ("name", TextCursor, 5),
        ],
    )
    def test_rejects_value_of_wrong_type(self, sort_by, cursor_type, value):
        token = _raw_token({"sortBy": sort_by, "sortOrder": "asc", "v": value, "id": 1})

        with pytest.raises(InvalidCursorError):
            CursorCodec.decode(token, sort_by=sort_by, sort_order="asc", cursor_type=cursor_type)
