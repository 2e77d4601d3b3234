"""Result pair returned by every adapter and auth call."""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from edu_catalog.errors import ServiceError

T = TypeVar('T')


@dataclass
class Result(Generic[T]):
    """Wrapper for service responses. Callers check ``error`` before ``data``.

    Attributes:
        data: The response payload, None on failure
        error: A ServiceError instance on failure, None on success
    """

    data: Optional[T] = None
    error: Optional[ServiceError] = None

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        """Create a successful result."""
        return cls(data=data, error=None)

    @classmethod
    def fail(cls, error: ServiceError) -> "Result[T]":
        """Create a failed result."""
        return cls(data=None, error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def __iter__(self):
        # Allows ``data, error = await db.resources.get_all()``
        yield self.data
        yield self.error
