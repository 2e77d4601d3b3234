"""Query adapter: per-entity operations against the catalog schema.

Each operation builds a ``Query`` and sends it through the shared
``ServiceClient``. Operations return a ``Result`` and do not raise;
locally rejected input comes back as a ``ValidationError`` result
without any request being made.
"""

import functools
from typing import Any, Union

import structlog

from edu_catalog.errors import NotFound, ServiceError
from edu_catalog.models import ResourceFilters, completion_timestamp, validate_percentage
from edu_catalog.services.client import ServiceClient
from edu_catalog.services.query import Query
from edu_catalog.services.result import Result

logger = structlog.get_logger(__name__)

CATEGORY_EMBED = "categories(id, name, color, icon)"
RESOURCE_SELECT = f"*, {CATEGORY_EMBED}"
FAVORITE_SELECT = f"*, resources(*, {CATEGORY_EMBED})"
PROGRESS_SELECT = "*, resources(id, title, type)"
SEARCH_COLUMNS = ("title", "description", "author")


def returns_result(method):
    """Turn locally raised ServiceErrors into failed results."""

    @functools.wraps(method)
    async def wrapper(*args, **kwargs) -> Result:
        try:
            return await method(*args, **kwargs)
        except ServiceError as e:
            logger.info("request_rejected", operation=method.__qualname__, error=e.message)
            return Result.fail(e)

    return wrapper


class _Queries:
    def __init__(self, client: ServiceClient):
        self.client = client


class CategoryQueries(_Queries):
    """Category operations."""

    table = "categories"

    @returns_result
    async def get_all(self) -> Result[list[dict]]:
        """All categories ordered by name."""
        return await self.client.execute(Query(self.table).select("*").order("name"))

    @returns_result
    async def get_by_id(self, category_id: str) -> Result[dict]:
        return await self.client.execute(
            Query(self.table).select("*").eq("id", category_id).single()
        )

    @returns_result
    async def create(self, data: dict) -> Result[dict]:
        return await self.client.execute(Query(self.table).insert(data).select().single())

    @returns_result
    async def update(self, category_id: str, data: dict) -> Result[dict]:
        return await self.client.execute(
            Query(self.table).update(data).eq("id", category_id).select().single()
        )

    @returns_result
    async def delete(self, category_id: str) -> Result[None]:
        return await self.client.execute(Query(self.table).delete().eq("id", category_id))


class ResourceQueries(_Queries):
    """Resource operations."""

    table = "resources"

    def listing(
        self, filters: Union[ResourceFilters, dict[str, Any], None] = None
    ) -> Query:
        """Build the published listing query for a filter configuration.

        Raises:
            ValidationError: for unknown filter keys or invalid values
        """
        filters = ResourceFilters.coerce(filters)
        query = (
            Query(self.table)
            .select(RESOURCE_SELECT)
            .eq("is_published", True)
            .order("created_at", desc=True)
        )
        if filters.category_id is not None:
            query.eq("category_id", filters.category_id)
        if filters.type is not None:
            query.eq("type", filters.type)
        if filters.difficulty_level is not None:
            query.eq("difficulty_level", filters.difficulty_level)
        if filters.search is not None:
            query.search(SEARCH_COLUMNS, filters.search)
        if filters.featured is not None:
            query.eq("is_featured", filters.featured)
        return query

    @returns_result
    async def get_all(
        self, filters: Union[ResourceFilters, dict[str, Any], None] = None
    ) -> Result[list[dict]]:
        """Published resources, newest first, with category expanded."""
        return await self.client.execute(self.listing(filters))

    @returns_result
    async def get_by_id(self, resource_id: str) -> Result[dict]:
        """A single resource with category expanded; NotFound when absent."""
        return await self.client.execute(
            Query(self.table).select(RESOURCE_SELECT).eq("id", resource_id).single()
        )

    @returns_result
    async def create(self, data: dict) -> Result[dict]:
        return await self.client.execute(Query(self.table).insert(data).select().single())

    @returns_result
    async def update(self, resource_id: str, data: dict) -> Result[dict]:
        return await self.client.execute(
            Query(self.table).update(data).eq("id", resource_id).select().single()
        )

    @returns_result
    async def delete(self, resource_id: str) -> Result[None]:
        return await self.client.execute(Query(self.table).delete().eq("id", resource_id))

    # Counters are incremented server-side to avoid lost updates

    @returns_result
    async def increment_views(self, resource_id: str) -> Result[Any]:
        return await self.client.rpc("increment_views", {"resource_id": resource_id})

    @returns_result
    async def increment_downloads(self, resource_id: str) -> Result[Any]:
        return await self.client.rpc("increment_downloads", {"resource_id": resource_id})


class FavoriteQueries(_Queries):
    """User favorite operations."""

    table = "user_favorites"

    @returns_result
    async def get_user_favorites(self, user_id: str) -> Result[list[dict]]:
        """Favorites with resource and category expanded, newest first."""
        return await self.client.execute(
            Query(self.table)
            .select(FAVORITE_SELECT)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
        )

    @returns_result
    async def add(self, user_id: str, resource_id: str) -> Result[dict]:
        """Insert a favorite. A duplicate pair fails with Conflict."""
        return await self.client.execute(
            Query(self.table)
            .insert({"user_id": user_id, "resource_id": resource_id})
            .select()
            .single()
        )

    @returns_result
    async def remove(self, user_id: str, resource_id: str) -> Result[None]:
        """Delete a favorite. Removing an absent favorite is not an error."""
        return await self.client.execute(
            Query(self.table)
            .delete()
            .eq("user_id", user_id)
            .eq("resource_id", resource_id)
        )

    @returns_result
    async def check(self, user_id: str, resource_id: str) -> Result[dict]:
        """Probe for a favorite row; NotFound when absent."""
        return await self.client.execute(
            Query(self.table)
            .select("id")
            .eq("user_id", user_id)
            .eq("resource_id", resource_id)
            .single()
        )

    async def is_favorite(self, user_id: str, resource_id: str) -> Result[bool]:
        result = await self.check(user_id, resource_id)
        if isinstance(result.error, NotFound):
            return Result.ok(False)
        if result.error:
            return Result.fail(result.error)
        return Result.ok(True)


class ProgressQueries(_Queries):
    """User progress operations."""

    table = "user_progress"
    key = "user_id,resource_id"

    @returns_result
    async def get_user_progress(self, user_id: str) -> Result[list[dict]]:
        return await self.client.execute(
            Query(self.table)
            .select(PROGRESS_SELECT)
            .eq("user_id", user_id)
            .order("updated_at", desc=True)
        )

    @returns_result
    async def update_progress(
        self, user_id: str, resource_id: str, percentage: int
    ) -> Result[dict]:
        """Upsert progress for (user, resource), replacing any existing row.

        ``completed_at`` is set to now when percentage is 100, else cleared.
        """
        percentage = validate_percentage(percentage)
        row = {
            "user_id": user_id,
            "resource_id": resource_id,
            "progress_percentage": percentage,
            "completed_at": completion_timestamp(percentage),
        }
        return await self.client.execute(
            Query(self.table).upsert(row, on_conflict=self.key).select().single()
        )

    @returns_result
    async def get_resource_progress(
        self, user_id: str, resource_id: str
    ) -> Result[dict]:
        return await self.client.execute(
            Query(self.table)
            .select("*")
            .eq("user_id", user_id)
            .eq("resource_id", resource_id)
            .single()
        )


class Database:
    """Entry point for all table operations, grouped by entity."""

    def __init__(self, client: ServiceClient):
        self.client = client
        self.categories = CategoryQueries(client)
        self.resources = ResourceQueries(client)
        self.favorites = FavoriteQueries(client)
        self.progress = ProgressQueries(client)
