"""Error taxonomy for calls against the remote data service.

Adapter and auth calls never raise these; they are returned as the
``error`` half of a ``Result``. ``ConfigError`` is the exception: it is
raised at startup and aborts initialization.
"""

from typing import Optional


class ServiceError(Exception):
    """Base class for remote service failures.

    Attributes:
        message: Human-readable description
        code: Service error code (PostgREST code, SQLSTATE or auth code)
        status_code: HTTP status returned by the service, if any
    """

    status_code: Optional[int] = None

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, code={self.code!r})"


class NotFound(ServiceError):
    """Single-row query matched zero rows."""

    status_code = 404


class Conflict(ServiceError):
    """Unique constraint violation (e.g. duplicate favorite)."""

    status_code = 409


class ValidationError(ServiceError):
    """Malformed filter or payload, rejected locally or by the service."""

    status_code = 400


class NetworkError(ServiceError):
    """Transport failure before a response was received."""

    status_code = 503


class ConfigError(Exception):
    """Missing startup configuration. Fatal."""
