"""State container shared by all data-sync hooks.

A hook mirrors one remote query into local ``data``/``loading``/``error``
fields. It moves ``idle -> loading -> ready | errored`` and goes back to
``loading`` on ``refetch()`` or when one of its dependencies changes by
value. Only the most recently started fetch may write state; responses
from superseded fetches are dropped.
"""

from enum import Enum
from typing import Any, Generic, Optional, TypeVar

import structlog

from edu_catalog.services.database import Database
from edu_catalog.services.result import Result

logger = structlog.get_logger(__name__)

T = TypeVar('T')


class HookState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


class DataHook(Generic[T]):
    """Base class: subclasses implement ``_load`` and may gate on ``_can_fetch``."""

    def __init__(self, db: Database):
        self.db = db
        self.data: Optional[T] = self._empty()
        self.loading = True
        self.error: Optional[str] = None
        self.state = HookState.IDLE
        self.mounted = False
        self._generation = 0

    def _empty(self) -> Any:
        return None

    def _can_fetch(self) -> bool:
        return True

    async def _load(self) -> Result[T]:
        raise NotImplementedError

    async def mount(self) -> None:
        self.mounted = True
        await self.refetch()

    def unmount(self) -> None:
        """Detach the hook; a fetch still in flight will not write state."""
        self.mounted = False
        self._generation += 1

    async def refetch(self) -> None:
        """Load from the service again. Never raises."""
        if not self._can_fetch():
            return
        self._generation += 1
        generation = self._generation
        self.loading = True
        self.state = HookState.LOADING

        result: Optional[Result[T]] = None
        try:
            result = await self._load()
            message = result.error.message if result.error else None
        except Exception as e:
            logger.error("hook_fetch_failed", hook=type(self).__name__, error=str(e))
            message = str(e) or type(e).__name__

        if generation != self._generation:
            logger.debug("stale_response_discarded", hook=type(self).__name__)
            return

        if message is None:
            self.data = result.data if result.data is not None else self._empty()
            self.error = None
            self.state = HookState.READY
        else:
            self.error = message
            self.state = HookState.ERRORED
        self.loading = False

    async def _change_dependency(self, name: str, value: Any) -> None:
        """Store a dependency and reload when it changed by value."""
        if getattr(self, name) == value:
            return
        setattr(self, name, value)
        if not self._can_fetch():
            # Waiting for an identifier: drop anything already shown
            self._generation += 1
            self.data = self._empty()
            self.error = None
            self.loading = True
            self.state = HookState.IDLE
            return
        if self.mounted:
            await self.refetch()

    def snapshot(self) -> dict[str, Any]:
        return {"data": self.data, "loading": self.loading, "error": self.error}

    async def __aenter__(self):
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.unmount()
