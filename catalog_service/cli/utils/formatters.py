"""Output formatting utilities for CLI commands."""

from __future__ import annotations

import click


def success(message: str) -> None:
    """Print a success message in green."""
    click.secho(f"✓ {message}", fg="green")


def error(message: str) -> None:
    """Print an error message in red."""
    click.secho(f"✗ {message}", fg="red", err=True)


def warning(message: str) -> None:
    """Print a warning message in yellow."""
    click.secho(f"⚠ {message}", fg="yellow")


def info(message: str) -> None:
    """Print an info message in blue."""
    click.secho(f"ℹ {message}", fg="blue")
