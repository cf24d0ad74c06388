"""Keyset (cursor) pagination primitives."""

from __future__ import annotations

from .cursor import (
    Cursor,
    CursorCodec,
    CursorPayload,
    DateCursor,
    NumericCursor,
    SortOrder,
    TextCursor,
)

__all__ = [
    "Cursor",
    "CursorCodec",
    "CursorPayload",
    "DateCursor",
    "NumericCursor",
    "SortOrder",
    "TextCursor",
]
