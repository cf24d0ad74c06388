"""Cursor encoding and decoding for keyset pagination.

A cursor marks the last row of a page by its sort-column value and its id.
It is only meaningful together with the ``(sortBy, sortOrder)`` it was minted
under, so both are embedded in the payload and checked on decode.

The cursor format is:
1. JSON object ``{"sortBy", "sortOrder", "v", "id"}``
2. Base64 URL-safe encoded, without padding

Example cursor payload:
    {"sortBy":"price","sortOrder":"asc","v":"10.00","id":1}

The sort value is a tagged union chosen by the sort column:
``DateCursor`` (ISO-8601 timestamp), ``NumericCursor`` (decimal, sent as a
string to keep its exact scale) or ``TextCursor``. Anything that does not
parse into the expected variant is rejected.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
import json
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from catalog_service.core.exceptions import InvalidCursorError

SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True)
class DateCursor:
    value: datetime
    id: int

    @classmethod
    def from_wire(cls, raw: Any, row_id: int) -> Self:
        if not isinstance(raw, str):
            raise InvalidCursorError("Invalid cursor value")
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as e:
            raise InvalidCursorError("Invalid cursor value") from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return cls(value=parsed.astimezone(UTC), id=row_id)

    def wire_value(self) -> str:
        value = self.value if self.value.tzinfo else self.value.replace(tzinfo=UTC)
        # Microseconds keep the seek exact against timestamp columns
        return value.astimezone(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class NumericCursor:
    value: Decimal
    id: int

    @classmethod
    def from_wire(cls, raw: Any, row_id: int) -> Self:
        if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
            raise InvalidCursorError("Invalid cursor value")
        try:
            value = Decimal(str(raw))
        except InvalidOperation as e:
            raise InvalidCursorError("Invalid cursor value") from e
        if not value.is_finite():
            raise InvalidCursorError("Invalid cursor value")
        return cls(value=value, id=row_id)

    def wire_value(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class TextCursor:
    value: str
    id: int

    @classmethod
    def from_wire(cls, raw: Any, row_id: int) -> Self:
        if not isinstance(raw, str):
            raise InvalidCursorError("Invalid cursor value")
        return cls(value=raw, id=row_id)

    def wire_value(self) -> str:
        return self.value


Cursor = DateCursor | NumericCursor | TextCursor


class CursorPayload(BaseModel):
    """Wire shape of a decoded cursor before its value is typed."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    sort_by: str = Field(alias="sortBy")
    sort_order: SortOrder = Field(alias="sortOrder")
    v: Any
    id: StrictInt


class CursorCodec:
    """Encode and decode pagination cursors.

    Usage:
        # Encoding
        token = CursorCodec.encode("price", "asc", NumericCursor(Decimal("10.00"), 1))

        # Decoding (raises InvalidCursorError on any mismatch)
        cursor = CursorCodec.decode(token, sort_by="price", sort_order="asc", cursor_type=NumericCursor)
    """

    @staticmethod
    def encode(sort_by: str, sort_order: SortOrder, cursor: Cursor) -> str:
        """Encode a cursor to an opaque URL-safe string."""
        payload = {
            "sortBy": sort_by,
            "sortOrder": sort_order,
            "v": cursor.wire_value(),
            "id": cursor.id,
        }
        json_str = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        return base64.urlsafe_b64encode(json_str.encode("utf-8")).decode("ascii").rstrip("=")

    @staticmethod
    def decode_payload(token: str) -> CursorPayload:
        """Decode the JSON envelope without interpreting the sort value.

        Raises:
            InvalidCursorError: If the token is not base64url JSON of the expected shape.
        """
        padded = token + "=" * (-len(token) % 4)
        try:
            raw = base64.urlsafe_b64decode(padded.encode("ascii"))
            data = json.loads(raw.decode("utf-8"))
            return CursorPayload.model_validate(data)
        except (binascii.Error, UnicodeError, ValueError, ValidationError) as e:
            raise InvalidCursorError("Invalid cursor") from e

    @staticmethod
    def decode(
        token: str,
        *,
        sort_by: str,
        sort_order: SortOrder,
        cursor_type: type[Cursor],
    ) -> Cursor:
        """Decode ``token`` and check it was minted for ``(sort_by, sort_order)``.

        Raises:
            InvalidCursorError: If the token is malformed, was minted under a
                different sort, or carries a value of the wrong type.
        """
        payload = CursorCodec.decode_payload(token)
        if payload.sort_by != sort_by or payload.sort_order != sort_order:
            raise InvalidCursorError(
                "Cursor does not match sortBy/sortOrder",
                extra={"sortBy": sort_by, "sortOrder": sort_order},
            )
        return cursor_type.from_wire(payload.v, payload.id)


__all__ = [
    "Cursor",
    "CursorCodec",
    "CursorPayload",
    "DateCursor",
    "NumericCursor",
    "SortOrder",
    "TextCursor",
]
