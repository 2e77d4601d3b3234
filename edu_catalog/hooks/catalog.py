"""Hooks for categories and resources."""

from typing import Any, Optional, Union

from edu_catalog.hooks.base import DataHook
from edu_catalog.models import ResourceFilters
from edu_catalog.services.database import Database

Filters = Union[ResourceFilters, dict[str, Any], None]


class CategoriesHook(DataHook[list]):
    """All categories ordered by name."""

    def _empty(self) -> list:
        return []

    async def _load(self):
        return await self.db.categories.get_all()


class ResourcesHook(DataHook[list]):
    """Published resources for a filter configuration."""

    def __init__(self, db: Database, filters: Filters = None):
        super().__init__(db)
        self.filters = _copy_filters(filters)

    def _empty(self) -> list:
        return []

    async def _load(self):
        return await self.db.resources.get_all(self.filters)

    async def set_filters(self, filters: Filters) -> None:
        await self._change_dependency("filters", _copy_filters(filters))


class ResourceHook(DataHook[dict]):
    """A single resource. Does nothing until ``resource_id`` is set."""

    def __init__(self, db: Database, resource_id: Optional[str] = None):
        super().__init__(db)
        self.resource_id = resource_id

    def _can_fetch(self) -> bool:
        return bool(self.resource_id)

    async def _load(self):
        return await self.db.resources.get_by_id(self.resource_id)

    async def set_id(self, resource_id: Optional[str]) -> None:
        await self._change_dependency("resource_id", resource_id)


def _copy_filters(filters: Filters) -> Filters:
    # Compared by value later, so the caller mutating its dict must not leak in
    if isinstance(filters, dict):
        return dict(filters)
    return filters
