"""Data-sync hooks: view-scoped state containers over the query adapter.

Each ``use_*`` function returns an unmounted hook. Mount it directly or
use it as an async context manager::

    async with use_resources(catalog.db, {"type": "video"}) as hook:
        render(hook.data)
"""

from typing import Optional

from edu_catalog.hooks.auth_state import AuthState
from edu_catalog.hooks.base import DataHook, HookState
from edu_catalog.hooks.catalog import CategoriesHook, Filters, ResourceHook, ResourcesHook
from edu_catalog.hooks.favorites import FavoritesHook
from edu_catalog.hooks.progress import ProgressHook
from edu_catalog.services.auth import AuthBridge
from edu_catalog.services.database import Database


def use_categories(db: Database) -> CategoriesHook:
    return CategoriesHook(db)


def use_resources(db: Database, filters: Filters = None) -> ResourcesHook:
    return ResourcesHook(db, filters)


def use_resource(db: Database, resource_id: Optional[str]) -> ResourceHook:
    return ResourceHook(db, resource_id)


def use_favorites(db: Database, user_id: Optional[str]) -> FavoritesHook:
    return FavoritesHook(db, user_id)


def use_progress(db: Database, user_id: Optional[str]) -> ProgressHook:
    return ProgressHook(db, user_id)


def use_auth(bridge: AuthBridge) -> AuthState:
    return AuthState(bridge)


__all__ = [
    "AuthState",
    "DataHook",
    "HookState",
    "CategoriesHook",
    "ResourcesHook",
    "ResourceHook",
    "FavoritesHook",
    "ProgressHook",
    "use_categories",
    "use_resources",
    "use_resource",
    "use_favorites",
    "use_progress",
    "use_auth",
]
