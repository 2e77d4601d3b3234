"""Progress hook for a user's learning progress."""

from typing import Optional

import structlog

from edu_catalog.errors import ServiceError, ValidationError
from edu_catalog.hooks.base import DataHook, HookState
from edu_catalog.services.database import Database
from edu_catalog.services.result import Result

logger = structlog.get_logger(__name__)


class ProgressHook(DataHook[list]):
    """All progress rows of a user, most recently updated first."""

    def __init__(self, db: Database, user_id: Optional[str] = None):
        super().__init__(db)
        self.user_id = user_id

    def _empty(self) -> list:
        return []

    def _can_fetch(self) -> bool:
        return bool(self.user_id)

    async def _load(self):
        return await self.db.progress.get_user_progress(self.user_id)

    async def set_user(self, user_id: Optional[str]) -> None:
        await self._change_dependency("user_id", user_id)

    def progress_for(self, resource_id: str) -> Optional[dict]:
        return next(
            (p for p in self.data or [] if p.get("resource_id") == resource_id), None
        )

    async def update_progress(self, resource_id: str, percentage: int) -> Result:
        """Write progress for a resource, then reload the list."""
        if not self.user_id:
            return Result.fail(ValidationError("Sign in to track progress", code="no_user"))
        try:
            result = await self.db.progress.update_progress(
                self.user_id, resource_id, percentage
            )
        except Exception as e:
            logger.error("progress_update_failed", resource_id=resource_id, error=str(e))
            result = Result.fail(ServiceError(str(e) or type(e).__name__))
        if result.error:
            self.error = result.error.message
            self.state = HookState.ERRORED
            return result
        await self.refetch()
        return result
