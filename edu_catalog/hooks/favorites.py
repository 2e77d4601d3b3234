"""Favorites hook with add/remove actions."""

from typing import Awaitable, Callable, Optional

import structlog

from edu_catalog.errors import ServiceError, ValidationError
from edu_catalog.hooks.base import DataHook, HookState
from edu_catalog.services.database import Database
from edu_catalog.services.result import Result

logger = structlog.get_logger(__name__)


class FavoritesHook(DataHook[list]):
    """A user's favorites, newest first.

    Mutations go to the service first and are followed by a full reload
    of the list, so the local list always reflects the remote one.
    """

    def __init__(self, db: Database, user_id: Optional[str] = None):
        super().__init__(db)
        self.user_id = user_id

    def _empty(self) -> list:
        return []

    def _can_fetch(self) -> bool:
        return bool(self.user_id)

    async def _load(self):
        return await self.db.favorites.get_user_favorites(self.user_id)

    async def set_user(self, user_id: Optional[str]) -> None:
        await self._change_dependency("user_id", user_id)

    async def add_to_favorites(self, resource_id: str) -> Result:
        return await self._mutate(self.db.favorites.add, resource_id)

    async def remove_from_favorites(self, resource_id: str) -> Result:
        return await self._mutate(self.db.favorites.remove, resource_id)

    def is_favorite(self, resource_id: str) -> bool:
        """Whether the local list holds ``resource_id``."""
        return any(f.get("resource_id") == resource_id for f in self.data or [])

    async def _mutate(
        self, operation: Callable[[str, str], Awaitable[Result]], resource_id: str
    ) -> Result:
        if not self.user_id:
            return Result.fail(ValidationError("Sign in to manage favorites", code="no_user"))
        try:
            result = await operation(self.user_id, resource_id)
        except Exception as e:
            logger.error("favorite_mutation_failed", resource_id=resource_id, error=str(e))
            result = Result.fail(ServiceError(str(e) or type(e).__name__))

        await self.refetch()
        if result.error:
            self.error = result.error.message
            self.state = HookState.ERRORED
        return result
