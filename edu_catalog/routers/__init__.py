"""HTTP routes over the query adapter."""

from fastapi import HTTPException, Request

from edu_catalog.services import Catalog, Result


def get_catalog(request: Request) -> Catalog:
    return request.app.state.catalog


def unwrap(result: Result):
    """Return the result data or raise the matching HTTP error."""
    if result.error:
        raise HTTPException(
            status_code=result.error.status_code or 502,
            detail={"message": result.error.message, "code": result.error.code},
        )
    return result.data
