"""Utilities for running async operations in CLI commands."""

from __future__ import annotations

import asyncio
from functools import wraps
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")


def coro(f: Callable[..., Awaitable[T]]) -> Callable[..., T]:
    """Decorator that makes an async function synchronous for Click.

    Usage:
            @cli.command()
        @coro
        async def my_command():
            result = await some_async_function()
            click.echo(result)
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        return asyncio.run(f(*args, **kwargs))

    return wrapper
