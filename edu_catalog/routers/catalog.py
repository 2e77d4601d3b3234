"""Routes for categories and resources."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from edu_catalog.models import DifficultyLevel, ResourceType
from edu_catalog.routers import get_catalog, unwrap
from edu_catalog.services import Catalog

router = APIRouter(tags=["catalog"])


@router.get("/categories")
async def list_categories(catalog: Catalog = Depends(get_catalog)):
    """All categories ordered by name."""
    return unwrap(await catalog.db.categories.get_all())


@router.get("/resources")
async def list_resources(
    category_id: Optional[str] = Query(default=None),
    type: Optional[ResourceType] = Query(default=None),
    difficulty_level: Optional[DifficultyLevel] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Title, description or author"),
    featured: Optional[bool] = Query(default=None),
    catalog: Catalog = Depends(get_catalog),
):
    """Published resources, newest first."""
    filters = {
        "category_id": category_id,
        "type": type,
        "difficulty_level": difficulty_level,
        "search": search,
        "featured": featured,
    }
    return unwrap(await catalog.db.resources.get_all(filters))


@router.get("/resources/{resource_id}")
async def get_resource(resource_id: str, catalog: Catalog = Depends(get_catalog)):
    return unwrap(await catalog.db.resources.get_by_id(resource_id))


@router.post("/resources/{resource_id}/views", status_code=204)
async def record_view(resource_id: str, catalog: Catalog = Depends(get_catalog)):
    unwrap(await catalog.db.resources.increment_views(resource_id))


@router.post("/resources/{resource_id}/downloads", status_code=204)
async def record_download(resource_id: str, catalog: Catalog = Depends(get_catalog)):
    unwrap(await catalog.db.resources.increment_downloads(resource_id))
