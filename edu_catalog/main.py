"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from edu_catalog.routers import catalog, users
from edu_catalog.services import create_catalog


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service connection once and close it on shutdown."""
    if getattr(app.state, "catalog", None) is None:
        app.state.catalog = create_catalog()
    yield
    await app.state.catalog.aclose()


app = FastAPI(
    title="Edu Catalog",
    description="Browse educational resources, favorites and learning progress",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(catalog.router)
app.include_router(users.router)
