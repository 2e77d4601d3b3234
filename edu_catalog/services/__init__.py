"""Remote data service client, query adapter and auth bridge."""

from edu_catalog.services.result import Result
from edu_catalog.services.query import Query
from edu_catalog.services.client import ServiceClient
from edu_catalog.services.database import Database
from edu_catalog.services.auth import AuthBridge, AuthEvent, Session, Subscription
from edu_catalog.services.container import Catalog, create_catalog

__all__ = [
    "Result",
    "Query",
    "ServiceClient",
    "Database",
    "AuthBridge",
    "AuthEvent",
    "Session",
    "Subscription",
    "Catalog",
    "create_catalog",
]
