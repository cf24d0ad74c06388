"""Custom exception classes for the application."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    Rendered as an RFC 7807 problem details document by the global
    exception handlers.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.

    Example:
            raise AppException(
            status_code=400,
            detail="minPrice cannot be greater than maxPrice",
            type="invalid-price-range",
            extra={"minPrice": 50, "maxPrice": 10},
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        titles = {
            400: "Bad Request",
            403: "Forbidden",
            404: "Not Found",
            422: "Unprocessable Entity",
            429: "Too Many Requests",
            500: "Internal Server Error",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")


class BadRequestException(AppException):
    """Exception raised for malformed client input that passed schema validation.

    Example:
            raise BadRequestException(
            detail="createdFrom cannot be after createdTo",
            type="invalid-date-range",
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "bad-request",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=400,
            detail=detail,
            type=type,
            title="Bad Request",
            instance=instance,
            extra=extra,
        )


class InvalidCursorError(BadRequestException):
    """Raised when a pagination cursor cannot be decoded or was minted for a different sort."""

    def __init__(self, detail: str = "Invalid cursor", extra: dict[str, Any] | None = None) -> None:
        super().__init__(detail=detail, type="invalid-cursor", extra=extra)


class ForbiddenException(AppException):
    """Exception raised when an action is not permitted in the current environment."""

    def __init__(
        self,
        detail: str,
        type: str = "forbidden",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=403,
            detail=detail,
            type=type,
            title="Forbidden",
            instance=instance,
            extra=extra,
        )


class NotFoundException(AppException):
    """Exception raised when a resource or a disabled endpoint is requested."""

    def __init__(
        self,
        detail: str,
        type: str = "not-found",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=404,
            detail=detail,
            type=type,
            title="Not Found",
            instance=instance,
            extra=extra,
        )


class RateLimitException(AppException):
    """Exception raised when a client exceeds the request budget of a window.

    Example:
            raise RateLimitException(
            detail="Too many requests",
            retry_after=42,
        )
    """

    def __init__(
        self,
        detail: str = "Too many requests",
        type: str = "rate-limit-exceeded",
        instance: str | None = None,
        retry_after: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        extra_data = extra or {}
        if retry_after is not None:
            extra_data["retry_after"] = retry_after

        super().__init__(
            status_code=429,
            detail=detail,
            type=type,
            title="Too Many Requests",
            instance=instance,
            extra=extra_data,
        )
        self.retry_after = retry_after


class ServiceUnavailableException(AppException):
    """Exception raised when a required dependency is disabled or down."""

    def __init__(
        self,
        detail: str,
        type: str = "service-unavailable",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=503,
            detail=detail,
            type=type,
            title="Service Unavailable",
            instance=instance,
            extra=extra,
        )


__all__ = [
    "AppException",
    "BadRequestException",
    "ForbiddenException",
    "InvalidCursorError",
    "NotFoundException",
    "RateLimitException",
    "ServiceUnavailableException",
]
