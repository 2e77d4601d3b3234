"""Routes for a user's favorites and progress."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from edu_catalog.routers import get_catalog, unwrap
from edu_catalog.services import Catalog

router = APIRouter(prefix="/users/{user_id}", tags=["users"])


class ProgressUpdate(BaseModel):
    percentage: int = Field(ge=0, le=100)


@router.get("/favorites")
async def list_favorites(user_id: str, catalog: Catalog = Depends(get_catalog)):
    return unwrap(await catalog.db.favorites.get_user_favorites(user_id))


@router.put("/favorites/{resource_id}", status_code=201)
async def add_favorite(
    user_id: str, resource_id: str, catalog: Catalog = Depends(get_catalog)
):
    """Favorite a resource. 409 if it already is one."""
    return unwrap(await catalog.db.favorites.add(user_id, resource_id))


@router.delete("/favorites/{resource_id}", status_code=204)
async def remove_favorite(
    user_id: str, resource_id: str, catalog: Catalog = Depends(get_catalog)
):
    unwrap(await catalog.db.favorites.remove(user_id, resource_id))


@router.get("/progress")
async def list_progress(user_id: str, catalog: Catalog = Depends(get_catalog)):
    return unwrap(await catalog.db.progress.get_user_progress(user_id))


@router.put("/progress/{resource_id}")
async def update_progress(
    user_id: str,
    resource_id: str,
    update: ProgressUpdate,
    catalog: Catalog = Depends(get_catalog),
):
    return unwrap(
        await catalog.db.progress.update_progress(user_id, resource_id, update.percentage)
    )
