"""Process-wide wiring of the service client, query adapter and auth bridge."""

from dataclasses import dataclass
from typing import Optional

import httpx

from edu_catalog.config import Settings, get_settings
from edu_catalog.services.auth import AuthBridge
from edu_catalog.services.client import ServiceClient
from edu_catalog.services.database import Database


@dataclass
class Catalog:
    """The single configured connection and everything built on it."""

    client: ServiceClient
    db: Database
    auth: AuthBridge

    async def aclose(self) -> None:
        await self.client.aclose()


def create_catalog(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Catalog:
    """Build the catalog once at startup.

    Raises:
        ConfigError: if the service URL or anon key is missing
    """
    settings = (settings or get_settings()).validate()
    client = ServiceClient(settings, transport=transport)
    return Catalog(client=client, db=Database(client), auth=AuthBridge(client))
