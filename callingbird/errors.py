"""
Exception hierarchy shared by the mappers, decoders, tracker and API client.
"""
from typing import Any, List, Optional


class CallingBirdError(Exception):
    """Base class for every error raised by this package."""


class NetworkError(CallingBirdError):
    """
    A request failed at the transport level or returned a non-2xx status.

    Attributes:
        status: HTTP status code, None when no response was received
        method: HTTP method of the failed request
        path: Backend path of the failed request
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        method: Optional[str] = None,
        path: Optional[str] = None
    ):
        super().__init__(message)
        self.status = status
        self.method = method
        self.path = path


class ValidationError(CallingBirdError, ValueError):
    """Caller-side validation failure, raised before any request is sent."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class MappingError(CallingBirdError, ValueError):
    """A day key or day number fell outside the fixed day tables."""

    def __init__(self, value: Any, table: str):
        super().__init__(f"{value!r} is not a valid entry of {table}")
        self.value = value
        self.table = table


class DecodeError(CallingBirdError, ValueError):
    """A backend payload matched none of the known shapes."""

    def __init__(self, message: str, errors: Optional[List[Exception]] = None):
        super().__init__(message)
        self.errors = errors or []
